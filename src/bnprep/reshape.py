from __future__ import annotations
import logging
from typing import Optional

import numpy as np
import pandas as pd

from .categories import CATEGORIES
from .config import GROUP_KEYS, SITE_KEYS

logger = logging.getLogger(__name__)

# -------------------------------
# Long -> grouped
# -------------------------------

def _modal_subregion(s: pd.Series):
    """Most frequent non-null value; ties go to the alphabetically first one."""
    s = s.dropna()
    if s.empty:
        return np.nan
    counts = s.value_counts()
    return sorted(counts[counts == counts.max()].index)[0]

def _warn_mixed_subregions(df: pd.DataFrame, keys: list[str]) -> None:
    if "Subregion" not in df.columns or df.empty:
        return
    n_regions = df.groupby(keys)["Subregion"].nunique()
    mixed = int((n_regions > 1).sum())
    if mixed:
        logger.warning("%d groups span more than one subregion; keeping the most frequent", mixed)

def group_measurements(df: pd.DataFrame) -> pd.DataFrame:
    """
    Collapse replicate measurements: one row per (Date, Latitude, Longitude,
    Analyte, Matrix) holding the mean Result (NaN ignored) and the group's
    subregion.

    Units must already be normalized; averaging across units mixes scales.
    """
    agg = {"Result": "mean"}
    if "Subregion" in df.columns:
        agg["Subregion"] = _modal_subregion
    if "Category" in df.columns:
        agg["Category"] = "first"
    if df.empty:
        return pd.DataFrame(columns=GROUP_KEYS + list(agg))
    _warn_mixed_subregions(df, GROUP_KEYS)
    out = df.groupby(GROUP_KEYS, as_index=False, sort=True).agg(agg)
    logger.info("Grouped %d measurements into %d site/date/analyte rows", len(df), len(out))
    return out

# -------------------------------
# Grouped -> wide
# -------------------------------

def pivot_wide(grouped: pd.DataFrame, column: str = "Analyte") -> pd.DataFrame:
    """
    One row per (Date, Latitude, Longitude), one column per value of `column`
    holding Result; a Subregion passthrough column follows the keys.
    Cells with no measurement stay NaN.

    Raises:
        ValueError: If grouped still holds more than one row per key and column
    """
    dup = grouped.duplicated(subset=SITE_KEYS + [column])
    if dup.any():
        raise ValueError(
            f"{int(dup.sum())} rows share (Date, Latitude, Longitude, {column}); "
            "run group_measurements first."
        )
    if grouped.empty:
        return pd.DataFrame(columns=SITE_KEYS + ["Subregion"])

    wide = grouped.pivot(index=SITE_KEYS, columns=column, values="Result")
    wide = wide.reindex(columns=sorted(wide.columns))
    wide.columns.name = None

    if "Subregion" in grouped.columns:
        regions = grouped.groupby(SITE_KEYS)["Subregion"].agg(_modal_subregion)
        wide.insert(0, "Subregion", regions.reindex(wide.index))
    else:
        wide.insert(0, "Subregion", np.nan)

    assert_unique_index(wide, name="wide table")
    return wide.reset_index()

def wide_water(df: pd.DataFrame) -> pd.DataFrame:
    """All-category water table, columns named by analyte."""
    water = df[df["Matrix"] == "water"]
    return pivot_wide(group_measurements(water))

def wide_sediment(df: pd.DataFrame) -> pd.DataFrame:
    """All-category sediment table, columns named <analyte>_<matrix>."""
    sediment = group_measurements(df[df["Matrix"] == "sediment"])
    sediment = sediment.assign(Column=sediment["Analyte"].astype(str) + "_" + sediment["Matrix"].astype(str))
    return pivot_wide(sediment, column="Column")

def wide_by_category(df: pd.DataFrame, categories: Optional[tuple] = None) -> dict[str, pd.DataFrame]:
    """Water-only wide table per category; categories without water rows are skipped."""
    out = {}
    for category in categories or CATEGORIES:
        sub = df[(df["Category"] == category) & (df["Matrix"] == "water")]
        if sub.empty:
            continue
        out[category] = pivot_wide(group_measurements(sub))
    return out

# -------------------------------
# Validation / Safety
# -------------------------------

def assert_unique_index(df: pd.DataFrame, name: str = "frame") -> None:
    if not df.index.is_unique:
        dups = df.index[df.index.duplicated()].unique()
        raise ValueError(f"{name} has duplicate index values (first 10): {dups[:10].tolist()}")
