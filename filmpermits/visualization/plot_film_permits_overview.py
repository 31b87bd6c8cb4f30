#!/usr/bin/env python3
"""Bar charts of permit counts and a ZIP choropleth against average income."""

import argparse
from pathlib import Path

import geopandas as gp
import matplotlib.pyplot as plt
import pandas as pd

from filmpermits import config
from filmpermits.data_processing.aggregate_counts import (
    COUNT_COLUMN,
    ENUMERATIONS,
    GROUP_KEYS,
    complete_axis,
    order_for_display,
)
from filmpermits.data_processing.build_permit_aggregates import CHOROPLETH_NAME

# ZIP counts are shown on the map, not as a bar chart
BAR_KEYS = [k for k in GROUP_KEYS if k != "zip_code"]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Plot film permit aggregates.")
    parser.add_argument(
        "--input-dir",
        default=str(config.OUTPUT_DIR),
        help="Directory written by build_permit_aggregates",
    )
    parser.add_argument(
        "--output-dir",
        default=str(config.CHART_DIR),
        help="Directory for PNG charts",
    )
    return parser.parse_args()


def read_counts(input_dir: Path, key: str) -> pd.Series:
    table = pd.read_parquet(input_dir / f"permits_by_{key}.parquet")
    return table.set_index(key)[COUNT_COLUMN]


def plot_counts(counts: pd.Series, key: str, output: Path) -> Path:
    counts = order_for_display(counts, key)
    if key in ENUMERATIONS:
        counts = complete_axis(counts, ENUMERATIONS[key])

    plt.style.use("dark_background")
    fig, ax = plt.subplots(figsize=(10, 5))
    fig.patch.set_facecolor("#111111")
    ax.set_facecolor("#111111")
    ax.bar([str(v) for v in counts.index], counts.to_numpy(), color="#7A00FF")
    ax.set_title(f"Film permits by {key.replace('_', ' ')}")
    ax.set_xlabel(key.replace("_", " ").capitalize())
    ax.set_ylabel("Permit count")
    ax.grid(color="gray", alpha=0.3, axis="y")
    plt.setp(ax.get_xticklabels(), rotation=45, ha="right")
    plt.tight_layout()
    plt.savefig(output, dpi=150)
    plt.close(fig)
    return output


def plot_choropleth(gdf: gp.GeoDataFrame, output: Path) -> Path:
    plt.style.use("dark_background")
    fig, axes = plt.subplots(1, 2, figsize=(14, 7))
    fig.patch.set_facecolor("#111111")
    no_data = {"color": "#333333", "label": "No data"}
    for ax, column, title in [
        (axes[0], "permit_count", "Film permits by ZIP code"),
        (axes[1], "avg_income", "Average income by ZIP code"),
    ]:
        ax.set_facecolor("#111111")
        plot_frame = gdf.assign(**{column: gdf[column].astype(float)})
        plot_frame.plot(column=column, ax=ax, cmap="magma", legend=True, missing_kwds=no_data)
        ax.set_title(title)
        ax.set_axis_off()
    plt.tight_layout()
    plt.savefig(output, dpi=150)
    plt.close(fig)
    return output


def main() -> None:
    args = parse_args()
    input_dir = Path(args.input_dir)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    for key in BAR_KEYS:
        path = input_dir / f"permits_by_{key}.parquet"
        if not path.exists():
            print("skipped (no table):", key)
            continue
        saved = plot_counts(read_counts(input_dir, key), key, output_dir / f"permits_by_{key}.png")
        print("saved:", saved)

    gdf = gp.read_parquet(input_dir / CHOROPLETH_NAME)
    print("saved:", plot_choropleth(gdf, output_dir / "zip_choropleth.png"))


if __name__ == "__main__":
    main()
