from .categories import CATEGORIES, CATEGORY_ANALYTES, categorize_analyte, classify, build_lookup_table
from .units import normalize_units, normalize_category, convert_value, UnitConversionError
from .reshape import group_measurements, pivot_wide, wide_water, wide_sediment, wide_by_category
from .report import DropReport

__all__ = [
    "CATEGORIES",
    "CATEGORY_ANALYTES",
    "categorize_analyte",
    "classify",
    "build_lookup_table",
    "normalize_units",
    "normalize_category",
    "convert_value",
    "UnitConversionError",
    "group_measurements",
    "pivot_wide",
    "wide_water",
    "wide_sediment",
    "wide_by_category",
    "DropReport",
]
