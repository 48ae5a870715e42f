"""
Conceptual-model categories and their curated analyte lists.

- CATEGORY_ANALYTES maps each category to the normalized analyte names (see
  cleaning.normalize_analyte_names) that belong to it, raw variants included.
  Variants are renamed onto a canonical name later, in units.ANALYTE_MERGES.
- Lists are disjoint; an analyte found in no list is unclassified and never
  reaches an output table.
"""
from __future__ import annotations
import logging
from types import MappingProxyType
from typing import Optional

import pandas as pd

from .report import DropReport, record_drop

logger = logging.getLogger(__name__)

CATEGORIES = ("WQP", "Metal", "OrganoP", "Neon", "Pyrethroids", "GABA", "Glyphosate", "Atrazine")

_ANALYTES = {
    # Water quality parameters
    "WQP": {
        "oxygen", "oxygen dissolved", "oxygen dissolved total", "oxygen saturation",
        "ph",
        "temperature",
        "specificconductivity total", "specific conductivity", "specific conductance",
        "turbidity", "turbidity total",
        "secchi depth", "transparency",
        "salinity", "salinity total",
        "total organic carbon", "total organic carbon total",
    },
    "Metal": {
        "copper dissolved", "copper total",
        "mercury total", "methylmercury total",
        "zinc dissolved", "zinc total",
        "lead total", "cadmium total", "arsenic total",
        "nickel total", "selenium total",
    },
    # Organophosphates and their oxons
    "OrganoP": {
        "chlorpyrifos", "chlorpyrifos oxon",
        "diazinon", "diazoxon", "diazinon oxon", "diazinon degradate",
        "malathion", "malaoxon",
        "dimethoate",
    },
    # Neonicotinoids
    "Neon": {
        "imidacloprid", "clothianidin", "thiamethoxam",
        "acetamiprid", "dinotefuran", "imidacloprid urea",
    },
    "Pyrethroids": {
        "bifenthrin",
        "cyfluthrin", "cyfluthrin total",
        "cypermethrin", "cypermethrin total",
        "deltamethrin", "deltamethrin tralomethrin",
        "esfenvalerate", "esfenvalerate fenvalerate", "esfenvalerate fenvalerate total",
        "fenpropathrin",
        "lambda cyhalothrin", "cyhalothrin lambda", "cyhalothrin total lambda",
        "permethrin", "permethrin total", "permethrin cis", "permethrin trans",
    },
    # GABA-gated chloride channel blockers (fipronil and degradates)
    "GABA": {
        "fipronil", "fipronil desulfinyl", "fipronil sulfide", "fipronil sulfone",
        "fipronil amide", "fipronil desulfinyl amide",
    },
    "Glyphosate": {
        "glyphosate", "aminomethylphosphonic acid", "ampa",
    },
    "Atrazine": {
        "atrazine", "deethylatrazine", "atrazine desethyl",
        "deisopropylatrazine", "atrazine desisopropyl",
    },
}


def _freeze(lists: dict[str, set[str]]) -> MappingProxyType:
    seen: dict[str, str] = {}
    for category, names in lists.items():
        if category not in CATEGORIES:
            raise ValueError(f"Unknown category: {category}")
        for name in names:
            if name in seen:
                raise ValueError(f"Analyte '{name}' listed under both {seen[name]} and {category}")
            seen[name] = category
    return MappingProxyType({c: frozenset(lists.get(c, ())) for c in CATEGORIES})


CATEGORY_ANALYTES = _freeze(_ANALYTES)
CATEGORY_BY_ANALYTE = MappingProxyType(
    {name: cat for cat, names in CATEGORY_ANALYTES.items() for name in names}
)


def categorize_analyte(name) -> Optional[str]:
    """Return the category of a normalized analyte name, or None when it is not curated."""
    if name is None or pd.isna(name):
        return None
    return CATEGORY_BY_ANALYTE.get(str(name).strip().lower())


def build_lookup_table() -> pd.DataFrame:
    """Two-column (Analyte, Category) lookup of every curated name, sorted."""
    rows = sorted(CATEGORY_BY_ANALYTE.items(), key=lambda kv: (CATEGORIES.index(kv[1]), kv[0]))
    return pd.DataFrame(rows, columns=["Analyte", "Category"])


def classify(df: pd.DataFrame, report: Optional[DropReport] = None) -> pd.DataFrame:
    """
    Attach a Category to every measurement via an inner merge on Analyte.

    Measurements whose analyte is in no curated list are dropped and tallied
    under "unclassified"; their distinct names are logged at DEBUG.
    """
    lookup = build_lookup_table()
    keyed = df.drop(columns=["Category"], errors="ignore")
    keyed = keyed.assign(_key=keyed["Analyte"].astype("string").str.lower())
    out = keyed.merge(
        lookup.rename(columns={"Analyte": "_key"}),
        on="_key",
        how="inner",
    ).drop(columns="_key")
    unmatched = sorted(set(keyed["_key"].dropna()) - set(lookup["Analyte"]))
    if unmatched:
        logger.debug("Unclassified analytes (%d): %s", len(unmatched), unmatched)
    record_drop(report, "unclassified", df, out, detail=f"{len(unmatched)} distinct analytes")
    return out


def search_analytes(df: pd.DataFrame, pattern: str, col: str = "Analyte") -> list[str]:
    """
    Distinct analyte names containing pattern (case-insensitive substring).
    Curation aid for extending the lists above; not used at run time.
    """
    names = df[col].dropna().astype(str)
    hits = names[names.str.contains(pattern, case=False, regex=False)]
    return sorted(hits.unique())
