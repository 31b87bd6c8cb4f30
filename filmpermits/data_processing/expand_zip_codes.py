#!/usr/bin/env python3
"""Expand comma-separated ZIP-code fields into one row per (permit, ZIP) pair."""

import logging
import re
from dataclasses import dataclass
from typing import List

import pandas as pd

from filmpermits.errors import MalformedKeyError

logger = logging.getLogger(__name__)

ZIP_FIELD = "zip_codes"
ZIP_COLUMN = "zip_code"
ZIP_DELIMITER = ","
ZIP_REGEX = r"\d{5}"
# Delimiters seen in hand-typed ZIP fields that are not the agreed comma
FOREIGN_DELIMITERS = re.compile(r"[;|/]")


@dataclass(frozen=True)
class ZipExpansion:
    rows: pd.DataFrame
    excluded: pd.DataFrame

    @property
    def excluded_count(self) -> int:
        return len(self.excluded)


def split_zip_field(text) -> List[str]:
    """Split one ZIP field into validated 5-digit tokens.

    Raises MalformedKeyError for missing/blank fields, empty tokens ("10001,,10002"),
    non-numeric tokens and fields using a delimiter other than a comma.
    """
    if text is None or pd.isna(text):
        raise MalformedKeyError("ZIP field is missing")
    text = str(text).strip()
    if not text:
        raise MalformedKeyError("ZIP field is empty")
    if FOREIGN_DELIMITERS.search(text):
        raise MalformedKeyError(f"unexpected delimiter in ZIP field {text!r}")

    tokens = [token.strip() for token in text.split(ZIP_DELIMITER)]
    for token in tokens:
        if not re.fullmatch(ZIP_REGEX, token):
            raise MalformedKeyError(f"invalid ZIP code {token!r} in {text!r}")
    return tokens


def to_zip_ids(series: pd.Series) -> pd.Series:
    """Validated conversion of a ZIP column to nullable integers.

    Unlike a bare ``pd.to_numeric(errors="coerce")`` this refuses to turn bad
    identifiers into missing values.
    """
    if pd.api.types.is_integer_dtype(series):
        if series.isna().any():
            raise MalformedKeyError(f"{int(series.isna().sum())} missing ZIP code(s)")
        return series.astype("Int64")

    text = series.astype("string").str.strip().str.replace(r"\.0$", "", regex=True)
    valid = text.str.fullmatch(ZIP_REGEX).fillna(False).astype(bool)
    if not valid.all():
        bad = series[~valid].tolist()
        preview = ", ".join(repr(v) for v in bad[:5])
        raise MalformedKeyError(f"{len(bad)} non-numeric ZIP code(s): {preview}")
    return text.astype("Int64")


def expand_zip_codes(df: pd.DataFrame, field: str = ZIP_FIELD) -> ZipExpansion:
    tokens = []
    malformed = []
    for index, text in df[field].items():
        try:
            tokens.append(split_zip_field(text))
        except MalformedKeyError as exc:
            tokens.append([])
            malformed.append((index, str(exc)))

    bad_index = [index for index, _ in malformed]
    excluded = df.loc[bad_index].copy()
    excluded["reject_reason"] = [reason for _, reason in malformed]

    keep = ~df.index.isin(bad_index)
    rows = df.loc[keep].copy()
    rows[ZIP_COLUMN] = pd.Series(
        [t for t, k in zip(tokens, keep) if k], index=rows.index, dtype=object
    )
    rows = rows.explode(ZIP_COLUMN, ignore_index=True)
    rows[ZIP_COLUMN] = rows[ZIP_COLUMN].astype("string").astype("Int64")

    if malformed:
        logger.warning("excluded %d permit(s) with malformed ZIP fields", len(malformed))
    logger.info("expanded %d permit(s) into %d ZIP row(s)", len(df) - len(malformed), len(rows))
    return ZipExpansion(rows=rows, excluded=excluded)
