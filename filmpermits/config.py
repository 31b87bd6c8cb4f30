"""Default input/output locations and dataset constants."""

from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

DATA_DIR = PROJECT_ROOT / "data"
RAW_DIR = DATA_DIR / "raw"
PROCESSED_DIR = DATA_DIR / "processed"

PERMITS_PATH = RAW_DIR / "Film_Permits.csv"
ZIP_BOUNDARY_PATH = RAW_DIR / "nyc_zcta.geojson"
INCOME_PATH = RAW_DIR / "income_by_zip.csv"

OUTPUT_DIR = PROCESSED_DIR / "film_permits"
CHART_DIR = OUTPUT_DIR / "charts"

# All geometry is compared and joined in WGS84
TARGET_CRS = "EPSG:4326"

BOROUGHS = ["Manhattan", "Brooklyn", "Queens", "Bronx", "Staten Island"]
