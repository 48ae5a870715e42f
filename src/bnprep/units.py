"""
Per-category unit normalization.

Within a category, each (analyte, matrix) pair has one canonical unit. Rows in
any other unit are rewritten as result / divisor, where a divisor of 1.0 is a
plain relabel of an equivalent unit (umhos/cm == uS/cm, ug/L == ppb). Before
conversion, raw analyte variants are renamed onto canonical names and analytes
judged non-comparable (or too sparsely sampled) are dropped.

All conversions are linear; results keep full float precision.
"""
from __future__ import annotations
import logging
from typing import Literal, Optional

import numpy as np
import pandas as pd

from .categories import CATEGORIES
from .report import DropReport, record_drop
from .validators import assert_single_unit

logger = logging.getLogger(__name__)

UnitErrors = Literal["raise", "drop"]

# Dissolved oxygen saturation (%) -> mg/L at the fixed reference temperature
DO_SATURATION_DIVISOR = 10.995

# dimensionless analytes; a blank unit means "none"
UNITLESS_ANALYTES = frozenset({"ph"})


class UnitConversionError(ValueError):
    """A measurement unit has no conversion path to its canonical unit."""


# raw analyte variant -> canonical analyte, per category
ANALYTE_MERGES = {
    "WQP": {
        "oxygen dissolved": "oxygen",
        "oxygen dissolved total": "oxygen",
        "oxygen saturation": "oxygen",
        "specificconductivity total": "specific conductivity",
        "specific conductance": "specific conductivity",
        "turbidity total": "turbidity",
        "salinity total": "salinity",
        "total organic carbon total": "total organic carbon",
    },
    "OrganoP": {
        "diazinon oxon": "diazoxon",
        "diazinon degradate": "diazoxon",
    },
    "Pyrethroids": {
        "cyfluthrin total": "cyfluthrin",
        "cypermethrin total": "cypermethrin",
        "deltamethrin tralomethrin": "deltamethrin",
        "esfenvalerate fenvalerate": "esfenvalerate",
        "esfenvalerate fenvalerate total": "esfenvalerate",
        "cyhalothrin lambda": "lambda cyhalothrin",
        "cyhalothrin total lambda": "lambda cyhalothrin",
        "permethrin total": "permethrin",
    },
    "Glyphosate": {
        "aminomethylphosphonic acid": "ampa",
    },
    "Atrazine": {
        "atrazine desethyl": "deethylatrazine",
        "atrazine desisopropyl": "deisopropylatrazine",
    },
}

# analytes removed outright (non-comparable measurement basis or too few records)
DROPPED_ANALYTES = {
    "WQP": frozenset({"secchi depth", "transparency"}),
    "Neon": frozenset({"imidacloprid urea"}),
    "Pyrethroids": frozenset({"permethrin cis", "permethrin trans"}),
    "GABA": frozenset({"fipronil amide", "fipronil desulfinyl amide"}),
}

# canonical unit by (category, matrix)
CANONICAL_UNITS = {
    ("Metal", "water"): "ug/L",
    ("Metal", "sediment"): "mg/Kg dw",
    ("OrganoP", "water"): "ppb",
    ("OrganoP", "sediment"): "ppb",
    ("Neon", "water"): "ppb",
    ("Neon", "sediment"): "ppb",
    ("Pyrethroids", "water"): "ppb",
    ("Pyrethroids", "sediment"): "ppb",
    ("GABA", "water"): "ppb",
    ("GABA", "sediment"): "ppb",
    ("Glyphosate", "water"): "ppb",
    ("Glyphosate", "sediment"): "ppb",
    ("Atrazine", "water"): "ppb",
    ("Atrazine", "sediment"): "ppb",
}

# per-analyte canonical unit; wins over CANONICAL_UNITS
ANALYTE_UNITS = {
    ("oxygen", "water"): "mg/L",
    ("ph", "water"): "none",
    ("temperature", "water"): "Deg C",
    ("specific conductivity", "water"): "uS/cm",
    ("turbidity", "water"): "NTU",
    ("salinity", "water"): "ppt",
    ("total organic carbon", "water"): "mg/L",
    ("total organic carbon", "sediment"): "% dw",
}

# (from unit, to unit) -> divisor
UNIT_DIVISORS = {
    # water, to ppb / ug/L
    ("ug/L", "ppb"): 1.0,
    ("ng/L", "ppb"): 1e3,
    ("pg/L", "ppb"): 1e6,
    ("mg/L", "ppb"): 1e-3,
    ("ppb", "ug/L"): 1.0,
    ("ng/L", "ug/L"): 1e3,
    ("pg/L", "ug/L"): 1e6,
    ("mg/L", "ug/L"): 1e-3,
    # water, to mg/L
    ("ppm", "mg/L"): 1.0,
    ("ug/L", "mg/L"): 1e3,
    ("ppb", "mg/L"): 1e3,
    # sediment, to ppb (ng/g dw)
    ("ng/g dw", "ppb"): 1.0,
    ("ug/Kg dw", "ppb"): 1.0,
    ("pg/g dw", "ppb"): 1e3,
    ("ug/g dw", "ppb"): 1e-3,
    ("mg/Kg dw", "ppb"): 1e-3,
    # sediment, to mg/Kg dw
    ("ug/g dw", "mg/Kg dw"): 1.0,
    ("ppm", "mg/Kg dw"): 1.0,
    ("ng/g dw", "mg/Kg dw"): 1e3,
    ("ug/Kg dw", "mg/Kg dw"): 1e3,
    ("ppb", "mg/Kg dw"): 1e3,
    ("mg/Kg dw", "% dw"): 1e4,
    ("%", "% dw"): 1.0,
    # field parameters
    ("umhos/cm", "uS/cm"): 1.0,
    ("mS/cm", "uS/cm"): 1e-3,
    ("psu", "ppt"): 1.0,
}

# (analyte, from unit, to unit) -> divisor; checked before UNIT_DIVISORS
ANALYTE_DIVISORS = {
    ("oxygen", "%", "mg/L"): DO_SATURATION_DIVISOR,
}


def canonical_unit(category: str, analyte: str, matrix: str) -> Optional[str]:
    return ANALYTE_UNITS.get((analyte, matrix), CANONICAL_UNITS.get((category, matrix)))


def conversion_divisor(from_unit, to_unit, analyte: Optional[str] = None) -> Optional[float]:
    """Divisor taking from_unit onto to_unit, or None when no conversion is defined."""
    if to_unit is None or from_unit is None or pd.isna(from_unit):
        return None
    if from_unit == to_unit:
        return 1.0
    if analyte is not None and (analyte, from_unit, to_unit) in ANALYTE_DIVISORS:
        return ANALYTE_DIVISORS[(analyte, from_unit, to_unit)]
    return UNIT_DIVISORS.get((from_unit, to_unit))


def convert_value(value: float, from_unit: str, to_unit: str, analyte: Optional[str] = None) -> float:
    """Scalar conversion; raises UnitConversionError when no path exists."""
    divisor = conversion_divisor(from_unit, to_unit, analyte)
    if divisor is None:
        raise UnitConversionError(f"No conversion from {from_unit!r} to {to_unit!r} for {analyte!r}")
    return value / divisor


def merge_analytes(df: pd.DataFrame, category: str) -> pd.DataFrame:
    """Rename raw analyte variants onto their canonical name; results untouched."""
    merges = ANALYTE_MERGES.get(category)
    if not merges:
        return df
    df = df.copy()
    renamed = df["Analyte"].isin(list(merges))
    if renamed.any():
        logger.debug("%s: merged %d rows into canonical analytes", category, int(renamed.sum()))
    df["Analyte"] = df["Analyte"].replace(merges)
    return df


def drop_analytes(df: pd.DataFrame, category: str, report: Optional[DropReport] = None) -> pd.DataFrame:
    dropped = DROPPED_ANALYTES.get(category, frozenset())
    if not dropped:
        return df
    out = df[~df["Analyte"].isin(list(dropped))]
    record_drop(report, "dropped_analyte", df, out, detail=f"{category}: {sorted(dropped)}")
    return out


def fill_unitless(df: pd.DataFrame) -> pd.DataFrame:
    """Blank units on dimensionless analytes (pH) are the unitless label "none"."""
    blank = df["Analyte"].isin(list(UNITLESS_ANALYTES)) & df["Unit"].isna()
    if not blank.any():
        return df
    df = df.copy()
    df.loc[blank, "Unit"] = "none"
    return df


def convert_units(
    df: pd.DataFrame,
    category: str,
    report: Optional[DropReport] = None,
    errors: UnitErrors = "raise",
) -> pd.DataFrame:
    """
    Rewrite Result and Unit onto the canonical unit of each (analyte, matrix).

    Rows of an (analyte, matrix) with no canonical unit (e.g. field parameters
    sampled in sediment) are outside the modeled tables and always dropped.

    Args:
        df: Measurements of a single category
        category: Category the rows belong to
        report: Optional drop tally
        errors: "raise" to fail on units with no conversion, "drop" to remove those rows

    Raises:
        UnitConversionError: errors="raise" and some unit cannot be converted
    """
    if errors not in ("raise", "drop"):
        raise ValueError(f"Unknown errors policy: {errors}")
    if df.empty:
        return df

    df = fill_unitless(df)
    combos = df[["Analyte", "Matrix", "Unit"]].drop_duplicates()
    targets, divisors, untargeted, bad = [], [], [], []
    for analyte, matrix, unit in combos.itertuples(index=False):
        target = canonical_unit(category, analyte, matrix)
        divisor = conversion_divisor(unit, target, analyte)
        if target is None:
            untargeted.append((analyte, matrix))
        elif divisor is None:
            bad.append((analyte, matrix, unit))
        targets.append(target)
        divisors.append(np.nan if divisor is None else divisor)
    combos = combos.assign(_target=targets, _divisor=divisors)

    if bad and errors == "raise":
        raise UnitConversionError(f"{category}: no conversion for (analyte, matrix, unit) {bad}")

    out = df.merge(combos, on=["Analyte", "Matrix", "Unit"], how="left")
    if untargeted:
        kept = out[out["_target"].notna()]
        untargeted = sorted(set(untargeted))
        logger.warning("%s: no canonical unit for %s; dropping %d rows",
                       category, untargeted, len(out) - len(kept))
        record_drop(report, "no_canonical_unit", out, kept, detail=f"{category}: {untargeted}")
        out = kept
    if bad:
        kept = out[out["_divisor"].notna()]
        record_drop(report, "unconvertible_unit", out, kept, detail=f"{category}: {bad}")
        out = kept
    out = out.copy()

    converted = out["Unit"] != out["_target"]
    if converted.any():
        logger.debug("%s: converted %d rows to canonical units", category, int(converted.sum()))
    out["Result"] = out["Result"] / out["_divisor"]
    out["Unit"] = out["_target"].astype("string")
    return out.drop(columns=["_target", "_divisor"])


def normalize_category(
    df: pd.DataFrame,
    category: str,
    report: Optional[DropReport] = None,
    errors: UnitErrors = "raise",
) -> pd.DataFrame:
    """Merge, drop, then convert the rows of one category; other categories are ignored."""
    sub = df[df["Category"] == category]
    sub = merge_analytes(sub, category)
    sub = drop_analytes(sub, category, report)
    return convert_units(sub, category, report, errors)


def normalize_units(
    df: pd.DataFrame,
    report: Optional[DropReport] = None,
    errors: UnitErrors = "raise",
) -> pd.DataFrame:
    """
    Normalize every category in turn and stack the results.

    The output is checked to carry exactly one unit per
    (Category, Analyte, Matrix).
    """
    parts = [normalize_category(df, c, report, errors) for c in CATEGORIES]
    parts = [p for p in parts if not p.empty]
    out = pd.concat(parts, ignore_index=True) if parts else df.iloc[0:0].copy()
    assert_single_unit(out)
    logger.info("Normalized units for %d rows across %d categories", len(out), out["Category"].nunique())
    return out
