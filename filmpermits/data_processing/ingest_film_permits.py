#!/usr/bin/env python3
"""Load film permits, ZIP boundaries and income-by-ZIP into canonical tables."""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import geopandas as gp
import pandas as pd

from filmpermits.config import BOROUGHS, TARGET_CRS
from filmpermits.data_processing.expand_zip_codes import ZIP_COLUMN, to_zip_ids
from filmpermits.data_processing.spatial_join import normalize_crs
from filmpermits.errors import SchemaError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# NYC Open Data "Film Permits" export -> canonical names
PERMIT_COLUMN_MAP = {
    "EventID": "event_id",
    "EventType": "event_type",
    "Category": "category",
    "SubCategoryName": "subcategory",
    "Borough": "borough",
    "ZipCode(s)": "zip_codes",
    "StartDateTime": "start_datetime",
    "EndDateTime": "end_datetime",
    "EnteredOn": "entered_on",
}

CANONICAL_COLUMNS = list(PERMIT_COLUMN_MAP.values())

REQUIRED_PERMIT_COLUMNS = [
    "borough",
    "zip_codes",
    "start_datetime",
    "end_datetime",
    "entered_on",
]

BOUNDARY_ZIP_CANDIDATES = ["zip_code", "ZIPCODE", "MODZCTA", "ZCTA5CE10", "ZCTA5CE20", "postalCode"]
INCOME_ZIP_CANDIDATES = ["zip_code", "ZipCode", "Zip Code", "ZIP", "zip"]
INCOME_VALUE_CANDIDATES = ["avg_income", "Avg. Income/H/hold", "Average Income", "average_income", "income"]


def _pick_column(columns: Iterable[str], candidates: Iterable[str], what: str, explicit: Optional[str]) -> str:
    columns = list(columns)
    if explicit is not None:
        if explicit not in columns:
            raise SchemaError(f"{what} column {explicit!r} not found")
        return explicit
    found = next((c for c in candidates if c in columns), None)
    if found is None:
        raise SchemaError(f"no {what} column found among {columns}")
    return found


def prepare_permits(raw: pd.DataFrame) -> pd.DataFrame:
    """Rename to canonical columns and check the permit schema."""
    df = raw.rename(columns=PERMIT_COLUMN_MAP)
    missing = [c for c in REQUIRED_PERMIT_COLUMNS if c not in df.columns]
    if missing:
        raise SchemaError(f"permit table is missing columns: {', '.join(missing)}")

    df = df[[c for c in CANONICAL_COLUMNS if c in df.columns]].copy()
    df["borough"] = df["borough"].astype("string").str.strip().str.title()

    unknown = df["borough"].notna() & ~df["borough"].isin(BOROUGHS)
    if unknown.any():
        logger.warning(
            "%d permit(s) with unrecognized borough: %s",
            int(unknown.sum()),
            sorted(df.loc[unknown, "borough"].unique()),
        )
    if df["borough"].isna().any():
        logger.warning("%d permit(s) without a borough", int(df["borough"].isna().sum()))
    return df


def load_permits(path: PathLike) -> pd.DataFrame:
    raw = pd.read_csv(path, dtype="string")
    permits = prepare_permits(raw)
    logger.info("loaded %d permit(s) from %s", len(permits), path)
    return permits


def prepare_zip_boundaries(
    polys: gp.GeoDataFrame, zip_column: Optional[str] = None, crs: str = TARGET_CRS
) -> gp.GeoDataFrame:
    """Canonical ``zip_code``/``geometry`` frame, one row per ZIP, in ``crs``."""
    source = _pick_column(polys.columns, BOUNDARY_ZIP_CANDIDATES, "boundary ZIP", zip_column)
    polys = normalize_crs(polys, crs)
    polys = polys[[source, polys.geometry.name]].rename(columns={source: ZIP_COLUMN})
    polys[ZIP_COLUMN] = to_zip_ids(polys[ZIP_COLUMN])

    # Some ZIP maps split one ZIP across several polygons
    if polys[ZIP_COLUMN].duplicated().any():
        polys = polys.dissolve(by=ZIP_COLUMN, as_index=False)
        polys[ZIP_COLUMN] = polys[ZIP_COLUMN].astype("Int64")
    return polys.reset_index(drop=True)


def load_zip_boundaries(
    path: PathLike, zip_column: Optional[str] = None, crs: str = TARGET_CRS
) -> gp.GeoDataFrame:
    path = Path(path)
    if path.suffix == ".parquet":
        polys = gp.read_parquet(path)
    else:
        polys = gp.read_file(path)
    boundaries = prepare_zip_boundaries(polys, zip_column=zip_column, crs=crs)
    logger.info("loaded %d ZIP boundaries from %s (crs %s)", len(boundaries), path, boundaries.crs)
    return boundaries


def parse_currency(series: pd.Series) -> pd.Series:
    s = series.astype("string").str.replace(r"[$,\s]", "", regex=True)
    return pd.to_numeric(s, errors="coerce")


def prepare_income(
    raw: pd.DataFrame, zip_column: Optional[str] = None, income_column: Optional[str] = None
) -> pd.DataFrame:
    zip_source = _pick_column(raw.columns, INCOME_ZIP_CANDIDATES, "income ZIP", zip_column)
    value_source = _pick_column(raw.columns, INCOME_VALUE_CANDIDATES, "income value", income_column)
    out = pd.DataFrame(
        {
            ZIP_COLUMN: to_zip_ids(raw[zip_source]),
            "avg_income": parse_currency(raw[value_source]),
        }
    )
    if out[ZIP_COLUMN].duplicated().any():
        raise SchemaError("income table has more than one row for some ZIP codes")
    return out


def load_income(
    path: PathLike, zip_column: Optional[str] = None, income_column: Optional[str] = None
) -> pd.DataFrame:
    raw = pd.read_csv(path, dtype="string")
    income = prepare_income(raw, zip_column=zip_column, income_column=income_column)
    logger.info("loaded income for %d ZIP code(s) from %s", len(income), path)
    return income
