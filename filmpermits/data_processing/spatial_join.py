#!/usr/bin/env python3
"""Align ZIP-keyed counts and income figures to ZIP boundary geometries."""

import logging
import warnings
from typing import Optional, Union

import geopandas as gp
import pandas as pd

from filmpermits.config import TARGET_CRS
from filmpermits.errors import JoinMismatchError, MissingDataWarning

logger = logging.getLogger(__name__)

ZIP_COLUMN = "zip_code"


def normalize_crs(gdf: gp.GeoDataFrame, crs: str = TARGET_CRS) -> gp.GeoDataFrame:
    """Reproject to ``crs``; files without an embedded CRS are assumed to be in it."""
    if gdf.crs is None:
        logger.warning("boundary file has no CRS, assuming %s", crs)
        return gdf.set_crs(crs)
    return gdf.to_crs(crs)


def _value_frame(values: Union[pd.Series, pd.DataFrame], column: Optional[str], key: str) -> pd.DataFrame:
    if isinstance(values, pd.Series):
        name = column or values.name
        if name is None:
            raise JoinMismatchError("value series needs a name or an explicit column")
        frame = values.rename(name).rename_axis(key).reset_index()
    else:
        frame = pd.DataFrame(values).copy()
        if isinstance(values, gp.GeoDataFrame):
            frame = frame.drop(columns=values.geometry.name)
    if key not in frame.columns:
        raise JoinMismatchError(f"value side has no {key!r} column")
    return frame


def _check_key(series: pd.Series, side: str) -> None:
    if len(series) and not pd.api.types.is_integer_dtype(series):
        raise JoinMismatchError(
            f"{side} join key has dtype {series.dtype}, expected integer ZIP identifiers"
        )


def join_to_boundaries(
    boundaries: gp.GeoDataFrame,
    values: Union[pd.Series, pd.DataFrame],
    column: Optional[str] = None,
    key: str = ZIP_COLUMN,
) -> gp.GeoDataFrame:
    """Left join ``values`` onto ``boundaries`` by ZIP identifier.

    Every boundary row is kept and unmatched rows hold NA, never zero. Key
    dtype or CRS disagreement raises JoinMismatchError rather than yielding an
    all-NA join.
    """
    if boundaries.crs is None:
        raise JoinMismatchError("boundaries have no CRS, call normalize_crs first")
    if isinstance(values, gp.GeoDataFrame) and values.crs != boundaries.crs:
        raise JoinMismatchError(f"CRS mismatch: boundaries {boundaries.crs} vs values {values.crs}")

    frame = _value_frame(values, column, key)
    if key not in boundaries.columns:
        raise JoinMismatchError(f"boundaries have no {key!r} column")
    _check_key(boundaries[key], "boundary")
    _check_key(frame[key], "value")
    if frame[key].duplicated().any():
        raise JoinMismatchError(f"value side has duplicate {key!r} entries")

    left = boundaries.copy()
    left[key] = left[key].astype("Int64")
    frame[key] = frame[key].astype("Int64")
    value_columns = [c for c in frame.columns if c != key]

    joined = left.merge(frame, on=key, how="left", validate="m:1")
    for c in value_columns:
        if pd.api.types.is_integer_dtype(frame[c]):
            joined[c] = joined[c].astype("Int64")

    unmatched = int(joined[value_columns].isna().all(axis=1).sum()) if value_columns else len(joined)
    if unmatched:
        warnings.warn(
            f"{unmatched} of {len(joined)} boundaries have no {', '.join(value_columns)} data",
            MissingDataWarning,
            stacklevel=2,
        )
    return joined


def build_zip_choropleth(
    boundaries: gp.GeoDataFrame, zip_counts: pd.Series, income: pd.DataFrame
) -> gp.GeoDataFrame:
    """Boundaries with ``permit_count`` and ``avg_income`` columns for mapping."""
    joined = join_to_boundaries(boundaries, zip_counts, column="permit_count")
    joined = join_to_boundaries(joined, income[[ZIP_COLUMN, "avg_income"]])
    return joined
