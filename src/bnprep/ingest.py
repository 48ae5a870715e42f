from __future__ import annotations
import logging

import geopandas as gpd
import pandas as pd

from .cleaning import normalize_columns
from .config import RAW_CEDEN_CSV, RAW_SURF_CSV, RISK_REGIONS, REQUIRED_COLUMNS

logger = logging.getLogger(__name__)


def read_measurements_raw(path, source: str) -> pd.DataFrame:
    """
    Read one agency's measurement table and tag every row with its source.

    Headers are normalized first, so "Station Name" or "result" match the
    required columns.

    Args:
        path: Local path or URL of a comma-delimited table
        source: Label stored in the "Source" column

    Raises:
        KeyError: If any of the required measurement columns is missing
    """
    df = normalize_columns(pd.read_csv(path, low_memory=False), expected=REQUIRED_COLUMNS + ["Subregion"])
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise KeyError(f"{source} table at {path} is missing columns: {missing}")
    df["Source"] = source
    logger.info("Read %d %s rows from %s", len(df), source, path)
    return df

def read_ceden_raw(path=None) -> pd.DataFrame:
    return read_measurements_raw(path or RAW_CEDEN_CSV, "CEDEN")

def read_surf_raw(path=None) -> pd.DataFrame:
    return read_measurements_raw(path or RAW_SURF_CSV, "SURF")

def read_risk_regions(path=None) -> gpd.GeoDataFrame:
    regions = gpd.read_file(path or RISK_REGIONS)
    logger.info("Read %d risk-region polygons", len(regions))
    return regions
