#!/usr/bin/env python3
"""Group-by-count aggregations over normalized permits."""

from typing import Dict, Iterable

import numpy as np
import pandas as pd

from filmpermits.data_processing.derive_calendar_fields import MONTHS, WEEKDAYS
from filmpermits.errors import FilmPermitError, SchemaError

COUNT_COLUMN = "permit_count"

# Selector names double as the column they group on
GROUP_KEYS = (
    "start_weekday",
    "end_weekday",
    "start_month",
    "start_year",
    "borough",
    "zip_code",
    "start_hour",
    "entered_hour",
    "category",
)

NUMERIC_KEYS = {"start_year", "zip_code", "start_hour", "entered_hour"}

ENUMERATIONS = {
    "start_weekday": WEEKDAYS,
    "end_weekday": WEEKDAYS,
    "start_month": MONTHS,
}

# Aggregates computed from the ZIP-expanded rows rather than one row per permit
ZIP_KEYS = {"zip_code"}


def count_by(df: pd.DataFrame, key: str) -> pd.Series:
    """Count permits per distinct value of ``key``.

    Only observed values appear in the result; missing keys are dropped.
    """
    if key not in GROUP_KEYS:
        raise FilmPermitError(f"unknown grouping key {key!r}, expected one of {GROUP_KEYS}")
    if key not in df.columns:
        raise SchemaError(f"column {key!r} not present, run the matching pipeline step first")

    counts = df.groupby(key, observed=True, dropna=True).size()
    counts.name = COUNT_COLUMN
    counts.index.name = key
    return counts


def order_for_display(counts: pd.Series, key: str) -> pd.Series:
    """Calendar order for weekday/month keys, ascending for numeric keys,
    largest first for everything else."""
    if key in ENUMERATIONS:
        position = {value: i for i, value in enumerate(ENUMERATIONS[key])}
        return counts.sort_index(
            key=lambda idx: pd.Index([position.get(v, len(position)) for v in idx])
        )
    if key in NUMERIC_KEYS:
        return counts.sort_index()
    return counts.sort_values(ascending=False, kind="stable")


def complete_axis(counts: pd.Series, categories: Iterable, fill_value=0) -> pd.Series:
    """Union counts with a full category axis (e.g. all twelve months) for display."""
    categories = list(categories)
    known = set(categories)
    axis = categories + [v for v in counts.index if v not in known]
    plain = pd.Series(
        counts.to_numpy(),
        index=pd.Index(list(counts.index), name=counts.index.name),
        name=counts.name,
    )
    return plain.reindex(pd.Index(axis, name=counts.index.name), fill_value=fill_value)


def expand_counts(counts: pd.Series) -> pd.DataFrame:
    """Turn an aggregate back into one row per counted permit."""
    key = counts.index.name
    values = np.repeat(counts.index.to_numpy(), counts.to_numpy().astype(int))
    return pd.DataFrame({key: pd.Series(values, dtype=counts.index.dtype)})


def count_all(permits: pd.DataFrame, zip_rows: pd.DataFrame) -> Dict[str, pd.Series]:
    """Every standard aggregate, keyed by grouping key."""
    results = {}
    for key in GROUP_KEYS:
        source = zip_rows if key in ZIP_KEYS else permits
        if key not in source.columns:
            continue
        results[key] = order_for_display(count_by(source, key), key)
    return results
