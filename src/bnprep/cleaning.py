from __future__ import annotations
from datetime import date
from typing import Iterable, Optional

import geopandas as gpd
import pandas as pd

from .config import LONG_COLUMNS, MATRIX_LABELS, REGION_NAME_FIELD
from .report import DropReport, record_drop

# raw unit spelling (lowercased, spaces removed) -> unit label
UNIT_ALIASES = {
    "mg/l": "mg/L",
    "ug/l": "ug/L",
    "µg/l": "ug/L",
    "μg/l": "ug/L",
    "ng/l": "ng/L",
    "pg/l": "pg/L",
    "ppb": "ppb",
    "ppm": "ppm",
    "%": "%",
    "%sat": "%",
    "%saturation": "%",
    "us/cm": "uS/cm",
    "µs/cm": "uS/cm",
    "umhos/cm": "umhos/cm",
    "µmhos/cm": "umhos/cm",
    "ms/cm": "mS/cm",
    "degc": "Deg C",
    "°c": "Deg C",
    "none": "none",
    "phunits": "none",
    "su": "none",
    "ntu": "NTU",
    "ppt": "ppt",
    "psu": "psu",
    "mg/kgdw": "mg/Kg dw",
    "ug/gdw": "ug/g dw",
    "µg/gdw": "ug/g dw",
    "ng/gdw": "ng/g dw",
    "pg/gdw": "pg/g dw",
    "ug/kgdw": "ug/Kg dw",
    "µg/kgdw": "ug/Kg dw",
    "%dw": "% dw",
}


def _header_key(name: str) -> str:
    return name.replace("_", "").lower()

def normalize_columns(df: pd.DataFrame, expected: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """
    Normalize column names by stripping whitespace, replacing spaces with underscores,
    and removing special characters.

    When `expected` is given, headers equal to one of its names up to case and
    underscores are renamed to it, so " Station Name" becomes "StationName".

    Args:
        df: Input DataFrame
        expected: Canonical column names to match headers against

    Returns:
        DataFrame with normalized column names
    """
    df = df.copy()
    df.columns = (
        df.columns
        .astype(str)
        .str.strip()
        .str.replace(r"\s+", "_", regex=True)
        .str.replace(r"[^0-9A-Za-z_]", "", regex=True)
    )
    if expected:
        lookup = {_header_key(c): c for c in expected}
        df = df.rename(columns=lambda c: lookup.get(_header_key(c), c))
    return df

def cast_types(df: pd.DataFrame, spec: dict[str, str]) -> pd.DataFrame:
    """
    Cast columns to specified data types based on a specification dictionary.

    Datetime columns are coerced (unparseable values become NaT) and truncated
    to the calendar day; float columns are coerced from text, so lab flags such
    as "ND" become NaN instead of raising.

    Args:
        df: Input DataFrame
        spec: Dictionary mapping column names to target data types

    Returns:
        DataFrame with columns cast to specified types
    """
    df = df.copy()
    for col, t in spec.items():
        if col not in df.columns:
            continue
        if t.startswith("datetime"):
            df[col] = pd.to_datetime(df[col], errors="coerce").dt.normalize()
        elif t.startswith("float"):
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(t)
        else:
            df[col] = df[col].astype(t)
    return df

def normalize_analyte_names(df: pd.DataFrame, col: str = "Analyte") -> pd.DataFrame:
    """
    Lowercase analyte names and collapse every run of symbols/whitespace to a
    single space, e.g. "Oxygen, Dissolved, Total" -> "oxygen dissolved total".
    """
    df = df.copy()
    df[col] = (
        df[col]
        .astype("string")
        .str.lower()
        .str.replace(r"[^0-9a-z]+", " ", regex=True)
        .str.strip()
    )
    return df

def standardize_units(df: pd.DataFrame, col: str = "Unit") -> pd.DataFrame:
    """
    Map raw unit spellings onto the label set used by the unit tables.
    Spellings without an alias are kept (stripped) so normalization can flag them.
    """
    df = df.copy()
    raw = df[col].astype("string").str.strip()
    key = raw.str.lower().str.replace(" ", "", regex=False)
    df[col] = key.map(UNIT_ALIASES).fillna(raw).astype("string")
    return df

def standardize_matrix(df: pd.DataFrame, report: Optional[DropReport] = None) -> pd.DataFrame:
    """Map raw matrix labels onto water/sediment; rows with any other matrix are dropped."""
    out = df.copy()
    out["Matrix"] = out["Matrix"].astype("string").str.strip().str.lower().map(MATRIX_LABELS)
    unknown = df.loc[out["Matrix"].isna(), "Matrix"].dropna().unique()
    out = out[out["Matrix"].notna()]
    record_drop(report, "unknown_matrix", df, out,
                detail=", ".join(sorted(map(str, unknown))[:10]) or None)
    return out

def drop_missing_keys(
    df: pd.DataFrame,
    keys: Iterable[str] = ("Date", "Latitude", "Longitude", "Analyte"),
    report: Optional[DropReport] = None,
) -> pd.DataFrame:
    """Drop rows missing any grouping key (groupby would otherwise discard them unannounced)."""
    out = df.dropna(subset=list(keys))
    record_drop(report, "missing_keys", df, out)
    return out

def filter_date_window(
    df: pd.DataFrame,
    start: date,
    end: date,
    report: Optional[DropReport] = None,
) -> pd.DataFrame:
    """Keep rows sampled between start and end, both inclusive."""
    dates = pd.to_datetime(df["Date"])
    mask = dates.between(pd.Timestamp(start), pd.Timestamp(end), inclusive="both")
    out = df[mask]
    record_drop(report, "outside_window", df, out, detail=f"{start} to {end}")
    return out

def drop_duplicates_on_keys(
    df: pd.DataFrame,
    keys: list[str],
    source_col: str = "Source",
    report: Optional[DropReport] = None,
) -> pd.DataFrame:
    """
    Remove measurements reported by more than one source.

    Rows matching on `keys` but coming from different sources are the same
    measurement published twice; only the rows of the first source seen are
    kept. Matching rows from a single source are lab replicates and all stay.

    Args:
        df: Input DataFrame
        keys: List of column names to use for duplicate detection
        source_col: Column naming the table each row came from
        report: Optional drop tally

    Returns:
        DataFrame with cross-source duplicates removed
    """
    if df.empty or source_col not in df.columns:
        return df
    source = df[source_col].astype("string").fillna("")
    first = (
        df.assign(_source=source)
        .groupby(keys, dropna=False, sort=False)["_source"]
        .transform("first")
    )
    out = df[source == first]
    record_drop(report, "duplicate", df, out)
    return out

def merge_sources(frames: Iterable[pd.DataFrame]) -> pd.DataFrame:
    """
    Stack the agency tables on the shared long-format columns.
    Columns absent from a table (typically Subregion) are filled with NA.
    """
    aligned = [f.reindex(columns=LONG_COLUMNS) for f in frames]
    if not aligned:
        return pd.DataFrame(columns=LONG_COLUMNS)
    return pd.concat(aligned, ignore_index=True)

def assign_subregions(
    df: pd.DataFrame,
    regions: gpd.GeoDataFrame,
    name_field: str = REGION_NAME_FIELD,
    report: Optional[DropReport] = None,
) -> pd.DataFrame:
    """
    Point-in-polygon join of sample locations onto risk-region polygons.

    The region name replaces any Subregion carried by the input. Points that
    fall in no polygon are dropped; a point on overlapping polygons keeps the
    first match.
    """
    if name_field not in regions.columns:
        raise KeyError(f"Region layer has no '{name_field}' column. Available: {list(regions.columns)}")
    if regions.crs is None:
        regions = regions.set_crs("EPSG:4326")
    else:
        regions = regions.to_crs("EPSG:4326")

    points = gpd.GeoDataFrame(
        df,
        geometry=gpd.points_from_xy(df["Longitude"], df["Latitude"]),
        crs="EPSG:4326",
    )
    polys = regions[[name_field, "geometry"]].rename(columns={name_field: "_region"})
    joined = gpd.sjoin(points, polys, how="left", predicate="within")
    joined = joined[~joined.index.duplicated(keep="first")]

    out = pd.DataFrame(joined.drop(columns=["geometry", "index_right"], errors="ignore"))
    out["Subregion"] = out.pop("_region").astype("string")
    kept = out[out["Subregion"].notna()]
    record_drop(report, "outside_regions", df, kept)
    return kept
