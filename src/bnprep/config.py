from __future__ import annotations
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
DATA = ROOT / "data"
RAW = DATA / "raw"
INTERIM = DATA / "interim"
PROC = DATA / "processed"
LOGS = ROOT / "logs"

# raw inputs; any path or URL pandas/geopandas can read
RAW_CEDEN_CSV = RAW / "ceden_data.csv"
RAW_SURF_CSV = RAW / "surf_data.csv"
RISK_REGIONS = RAW / "risk_regions.shp"
REGION_NAME_FIELD = "Subregion"

# monitoring window (inclusive)
START_DATE = date(2009, 1, 1)
END_DATE = date(2019, 12, 31)

# columns every input table must carry
REQUIRED_COLUMNS = [
    "Analyte", "Result", "Unit", "Matrix", "Date",
    "StationName", "Latitude", "Longitude",
]
LONG_COLUMNS = REQUIRED_COLUMNS + ["Subregion", "Source"]
TYPE_SPEC = {
    "Analyte": "string",
    "Unit": "string",
    "Matrix": "string",
    "StationName": "string",
    "Subregion": "string",
    "Source": "string",
    "Result": "float64",
    "Latitude": "float64",
    "Longitude": "float64",
    "Date": "datetime64[ns]",
}

# keys
SITE_KEYS = ["Date", "Latitude", "Longitude"]
GROUP_KEYS = SITE_KEYS + ["Analyte", "Matrix"]
# same measurement published by two sources
DUPLICATE_KEYS = GROUP_KEYS + ["Result", "Unit"]

# raw matrix label -> matrix
MATRIX_LABELS = {
    "water": "water",
    "samplewater": "water",
    "surface water": "water",
    "sediment": "sediment",
    "bed sediment": "sediment",
}

# output filenames (under PROC)
LOOKUP_CSV = "analyte_categories.csv"
CATEGORIZED_CSV = "long_categorized.csv"
NORMALIZED_CSV = "long_normalized.csv"
WIDE_WATER_CSV = "wide_water.csv"
WIDE_SEDIMENT_CSV = "wide_sediment.csv"
WIDE_CATEGORY_CSV = "wide_water_{category}.csv"
DROP_REPORT_CSV = "drop_report.csv"
CATEGORIZED_PARQUET = "long_categorized.parquet"
