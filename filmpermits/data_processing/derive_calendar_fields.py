#!/usr/bin/env python3
"""Parse permit timestamps and derive weekday, month, year and hour columns."""

import logging
from dataclasses import dataclass
from typing import Dict, Sequence

import pandas as pd

from filmpermits.errors import ParseError

logger = logging.getLogger(__name__)

# First format is the documented one; the export also ships 12-hour clock text
TIMESTAMP_FORMATS = ("%m/%d/%Y %H:%M:%S", "%m/%d/%Y %I:%M:%S %p")

TIMESTAMP_COLUMNS = {
    "start": "start_datetime",
    "end": "end_datetime",
    "entered": "entered_on",
}

WEEKDAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTHS = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

WEEKDAY_DTYPE = pd.CategoricalDtype(WEEKDAYS, ordered=True)
MONTH_DTYPE = pd.CategoricalDtype(MONTHS, ordered=True)


@dataclass(frozen=True)
class NormalizedPermits:
    permits: pd.DataFrame
    rejected: pd.DataFrame


def parse_timestamps(series: pd.Series, formats: Sequence[str] = TIMESTAMP_FORMATS) -> pd.Series:
    """Parse fixed-format timestamp text. Anything no format matches is NaT."""
    s = series.astype("string").str.strip()
    parsed = pd.to_datetime(s, format=formats[0], errors="coerce")
    for fmt in formats[1:]:
        parsed = parsed.fillna(pd.to_datetime(s, format=fmt, errors="coerce"))
    return parsed


def add_calendar_fields(df: pd.DataFrame) -> pd.DataFrame:
    """Derive calendar columns from already-parsed timestamp columns."""
    out = df.copy()
    start = out[TIMESTAMP_COLUMNS["start"]]
    end = out[TIMESTAMP_COLUMNS["end"]]
    entered = out[TIMESTAMP_COLUMNS["entered"]]

    out["start_date"] = start.dt.date
    out["end_date"] = end.dt.date
    out["start_weekday"] = start.dt.day_name().astype(WEEKDAY_DTYPE)
    out["end_weekday"] = end.dt.day_name().astype(WEEKDAY_DTYPE)
    out["start_month"] = start.dt.month_name().astype(MONTH_DTYPE)
    out["start_year"] = start.dt.isocalendar().year.astype("Int64")
    out["start_hour"] = start.dt.hour.astype("Int64")
    out["end_hour"] = end.dt.hour.astype("Int64")
    out["entered_hour"] = entered.dt.hour.astype("Int64")
    out["duration_hours"] = (end - start).dt.total_seconds() / 3600
    return out


def normalize_permits(
    df: pd.DataFrame,
    strict: bool = False,
    formats: Sequence[str] = TIMESTAMP_FORMATS,
) -> NormalizedPermits:
    """Parse the three timestamp columns and split off records that fail.

    Rejected rows keep their original text plus a ``reject_reason`` naming the
    columns that did not parse. With ``strict=True`` the first failing column
    raises ParseError instead.
    """
    parsed: Dict[str, pd.Series] = {}
    for column in TIMESTAMP_COLUMNS.values():
        parsed[column] = parse_timestamps(df[column], formats)
        failed = parsed[column].isna()
        if strict and failed.any():
            raise ParseError(column, df.loc[failed, column].tolist())

    failures = pd.DataFrame({column: values.isna() for column, values in parsed.items()})
    rejected_mask = failures.any(axis=1)

    rejected = df.loc[rejected_mask].copy()
    rejected["reject_reason"] = [
        "unparseable " + ", ".join(column for column in failures.columns if row[column])
        for _, row in failures.loc[rejected_mask].iterrows()
    ]

    permits = df.loc[~rejected_mask].copy()
    for column, values in parsed.items():
        permits[column] = values.loc[~rejected_mask]
    permits = add_calendar_fields(permits)

    if len(rejected):
        logger.warning("rejected %d permit(s) with unparseable timestamps", len(rejected))
    inverted = int((permits["duration_hours"] < 0).sum())
    if inverted:
        # reported only, these rows stay in the output
        logger.warning("%d permit(s) end before they start", inverted)
    logger.info("normalized %d permit(s)", len(permits))
    return NormalizedPermits(permits=permits, rejected=rejected)
