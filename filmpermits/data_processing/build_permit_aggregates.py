#!/usr/bin/env python3
"""Build permit count tables and the ZIP choropleth frame from raw inputs."""

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

import geopandas as gp
import pandas as pd

from filmpermits import config
from filmpermits.data_processing.aggregate_counts import count_all
from filmpermits.data_processing.derive_calendar_fields import normalize_permits
from filmpermits.data_processing.expand_zip_codes import expand_zip_codes
from filmpermits.data_processing.ingest_film_permits import (
    load_income,
    load_permits,
    load_zip_boundaries,
)
from filmpermits.data_processing.spatial_join import build_zip_choropleth

CHOROPLETH_NAME = "zip_choropleth.parquet"


@dataclass(frozen=True)
class PipelineResult:
    permits: pd.DataFrame
    rejected: pd.DataFrame
    zip_rows: pd.DataFrame
    zip_excluded: pd.DataFrame
    counts: Dict[str, pd.Series]
    choropleth: gp.GeoDataFrame


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build film permit aggregate tables.")
    parser.add_argument(
        "--permits-input",
        default=str(config.PERMITS_PATH),
        help="Film permits CSV",
    )
    parser.add_argument(
        "--zip-input",
        default=str(config.ZIP_BOUNDARY_PATH),
        help="ZIP boundary file (GeoJSON, shapefile or GeoParquet)",
    )
    parser.add_argument(
        "--income-input",
        default=str(config.INCOME_PATH),
        help="Average income by ZIP CSV",
    )
    parser.add_argument(
        "--output-dir",
        default=str(config.OUTPUT_DIR),
        help="Directory for aggregate tables",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first unparseable timestamp instead of rejecting the record",
    )
    return parser.parse_args()


def run_pipeline(
    permits_path,
    zip_path,
    income_path,
    strict: bool = False,
) -> PipelineResult:
    raw = load_permits(permits_path)
    normalized = normalize_permits(raw, strict=strict)
    expansion = expand_zip_codes(normalized.permits)
    counts = count_all(normalized.permits, expansion.rows)

    boundaries = load_zip_boundaries(zip_path)
    income = load_income(income_path)
    choropleth = build_zip_choropleth(boundaries, counts["zip_code"], income)

    return PipelineResult(
        permits=normalized.permits,
        rejected=normalized.rejected,
        zip_rows=expansion.rows,
        zip_excluded=expansion.excluded,
        counts=counts,
        choropleth=choropleth,
    )


def write_outputs(result: PipelineResult, output_dir) -> Path:
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    for key, counts in result.counts.items():
        table = counts.reset_index()
        if isinstance(table[key].dtype, pd.CategoricalDtype):
            table[key] = table[key].astype(str)
        table.to_parquet(output_path / f"permits_by_{key}.parquet", index=False)
        table.to_csv(output_path / f"permits_by_{key}.csv", index=False)

    result.choropleth.to_parquet(output_path / CHOROPLETH_NAME, index=False)
    result.rejected.to_csv(output_path / "rejected_timestamps.csv", index=False)
    result.zip_excluded.to_csv(output_path / "excluded_zip_fields.csv", index=False)
    return output_path


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    result = run_pipeline(
        args.permits_input,
        args.zip_input,
        args.income_input,
        strict=args.strict,
    )
    output_path = write_outputs(result, args.output_dir)

    print(f"wrote aggregates: {output_path}")
    print(f"permits: {len(result.permits):,}")
    print(f"rejected (bad timestamps): {len(result.rejected):,}")
    print(f"ZIP rows: {len(result.zip_rows):,} (excluded permits: {len(result.zip_excluded):,})")
    print("permits by borough:")
    print(result.counts["borough"])
    print("ZIP boundaries without permits:", int(result.choropleth["permit_count"].isna().sum()))


if __name__ == "__main__":
    main()
