import geopandas as gp
import pandas as pd
import pytest
from shapely.geometry import box

from filmpermits.data_processing.spatial_join import (
    build_zip_choropleth,
    join_to_boundaries,
    normalize_crs,
)
from filmpermits.errors import JoinMismatchError, MissingDataWarning


def zip_counts(mapping):
    return pd.Series(mapping, dtype="int64", name="permit_count").rename_axis("zip_code")


def single_boundary():
    return gp.GeoDataFrame({"zip_code": [10001], "geometry": [box(0, 0, 1, 1)]}, crs="EPSG:4326")


def test_join_matches_count():
    joined = join_to_boundaries(single_boundary(), zip_counts({10001: 5}))

    assert len(joined) == 1
    assert joined.loc[0, "permit_count"] == 5


def test_join_against_empty_counts_is_no_data_not_zero():
    with pytest.warns(MissingDataWarning):
        joined = join_to_boundaries(single_boundary(), zip_counts({}))

    assert len(joined) == 1
    assert pd.isna(joined.loc[0, "permit_count"])


def test_left_join_preserves_boundary_cardinality(boundaries):
    counts = zip_counts({10001: 2, 11201: 1, 99999: 8})

    with pytest.warns(MissingDataWarning, match="2 of 4"):
        joined = join_to_boundaries(boundaries, counts)

    assert len(joined) == len(boundaries)
    assert list(joined["zip_code"]) == list(boundaries["zip_code"])
    assert joined["permit_count"].isna().sum() == 2
    assert isinstance(joined, gp.GeoDataFrame)
    assert joined.crs == boundaries.crs


def test_join_rejects_text_keys(boundaries):
    text_keys = pd.Series({"10001": 2}, name="permit_count").rename_axis("zip_code")

    with pytest.raises(JoinMismatchError, match="dtype"):
        join_to_boundaries(boundaries, text_keys)


def test_join_rejects_crs_mismatch(boundaries):
    other = gp.GeoDataFrame(
        {"zip_code": [10001], "avg_income": [1.0], "geometry": [box(0, 0, 1, 1)]},
        crs="EPSG:3857",
    )

    with pytest.raises(JoinMismatchError, match="CRS"):
        join_to_boundaries(boundaries, other)


def test_join_requires_boundary_crs():
    naive = gp.GeoDataFrame({"zip_code": [10001], "geometry": [box(0, 0, 1, 1)]})

    with pytest.raises(JoinMismatchError):
        join_to_boundaries(naive, zip_counts({10001: 1}))


def test_join_rejects_duplicate_value_keys(boundaries):
    dupes = pd.DataFrame({"zip_code": [10001, 10001], "avg_income": [1.0, 2.0]})

    with pytest.raises(JoinMismatchError, match="duplicate"):
        join_to_boundaries(boundaries, dupes)


def test_normalize_crs_reprojects_and_assigns():
    projected = gp.GeoDataFrame(
        {"zip_code": [10001], "geometry": [box(0, 0, 1000, 1000)]}, crs="EPSG:3857"
    )
    naive = gp.GeoDataFrame({"zip_code": [10001], "geometry": [box(0, 0, 1, 1)]})

    assert normalize_crs(projected).crs == "EPSG:4326"
    assert normalize_crs(naive).crs == "EPSG:4326"
    assert projected.crs == "EPSG:3857"


def test_build_zip_choropleth(boundaries, income):
    counts = zip_counts({10001: 2, 10002: 1})

    with pytest.warns(MissingDataWarning):
        gdf = build_zip_choropleth(boundaries, counts, income)

    assert len(gdf) == 4
    by_zip = gdf.set_index("zip_code")
    assert by_zip.loc[10001, "permit_count"] == 2
    assert by_zip.loc[10001, "avg_income"] == 98000.0
    assert pd.isna(by_zip.loc[11201, "permit_count"])
    assert by_zip.loc[11201, "avg_income"] == 87000.0
    assert pd.isna(by_zip.loc[10475, "avg_income"])
