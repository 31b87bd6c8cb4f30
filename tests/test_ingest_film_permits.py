import geopandas as gp
import pandas as pd
import pytest
from shapely.geometry import box

from filmpermits.data_processing.ingest_film_permits import (
    load_income,
    load_permits,
    load_zip_boundaries,
    parse_currency,
    prepare_income,
    prepare_permits,
    prepare_zip_boundaries,
)
from filmpermits.errors import MalformedKeyError, SchemaError


def test_prepare_permits_renames_to_canonical_columns(raw_permits):
    permits = prepare_permits(raw_permits)

    assert list(permits.columns) == [
        "event_id",
        "category",
        "borough",
        "zip_codes",
        "start_datetime",
        "end_datetime",
        "entered_on",
    ]
    assert list(permits["borough"]) == ["Manhattan", "Brooklyn", "Manhattan", "Queens"]


def test_prepare_permits_reports_missing_columns(raw_permits):
    with pytest.raises(SchemaError, match="entered_on"):
        prepare_permits(raw_permits.drop(columns=["EnteredOn"]))


def test_load_permits_reads_csv_as_text(tmp_path, raw_permits):
    path = tmp_path / "permits.csv"
    raw_permits.to_csv(path, index=False)

    permits = load_permits(path)

    assert len(permits) == 4
    assert permits["zip_codes"].iloc[3] == "11101, 11102, 11103"


def test_parse_currency():
    parsed = parse_currency(pd.Series(["$85,000", "41000.50", "n/a", None]))

    assert parsed.iloc[0] == 85000
    assert parsed.iloc[1] == 41000.5
    assert pd.isna(parsed.iloc[2])
    assert pd.isna(parsed.iloc[3])


def test_prepare_income_detects_columns():
    raw = pd.DataFrame({"Zip Code": ["10001", "10002"], "Avg. Income/H/hold": ["$98,000", "$41,000"]})

    income = prepare_income(raw)

    assert list(income.columns) == ["zip_code", "avg_income"]
    assert income["zip_code"].dtype == "Int64"
    assert list(income["avg_income"]) == [98000, 41000]


def test_prepare_income_rejects_bad_zip():
    raw = pd.DataFrame({"zip_code": ["10001", "Total"], "avg_income": ["1", "2"]})

    with pytest.raises(MalformedKeyError):
        prepare_income(raw)


def test_load_income(tmp_path):
    path = tmp_path / "income.csv"
    path.write_text("ZIP,income\n10001,98000\n11201,87000\n")

    income = load_income(path)

    assert income.set_index("zip_code")["avg_income"].to_dict() == {10001: 98000, 11201: 87000}


def test_prepare_zip_boundaries_normalizes_key_crs_and_dissolves():
    polys = gp.GeoDataFrame(
        {
            "ZIPCODE": ["10001", "10001", "11201"],
            "PO_NAME": ["New York", "New York", "Brooklyn"],
            "geometry": [box(0, 0, 1000, 1000), box(1000, 0, 2000, 1000), box(0, 1000, 1000, 2000)],
        },
        crs="EPSG:3857",
    )

    boundaries = prepare_zip_boundaries(polys)

    assert list(boundaries.columns) == ["zip_code", "geometry"]
    assert list(boundaries["zip_code"]) == [10001, 11201]
    assert boundaries["zip_code"].dtype == "Int64"
    assert boundaries.crs == "EPSG:4326"


def test_prepare_zip_boundaries_needs_zip_column():
    polys = gp.GeoDataFrame({"name": ["x"], "geometry": [box(0, 0, 1, 1)]}, crs="EPSG:4326")

    with pytest.raises(SchemaError):
        prepare_zip_boundaries(polys)


def test_load_zip_boundaries_from_geoparquet(tmp_path, boundaries):
    path = tmp_path / "zips.parquet"
    boundaries.to_parquet(path)

    loaded = load_zip_boundaries(path)

    assert list(loaded["zip_code"]) == [10001, 10002, 11201, 10475]
