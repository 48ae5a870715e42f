from __future__ import annotations
import logging

import pandas as pd
import pandera as pa
from pandera import Column, DataFrameSchema, Check
from pandera.errors import SchemaErrors

from .categories import CATEGORIES

MATRICES = ["water", "sediment"]
UNIT_GROUP_KEYS = ["Category", "Analyte", "Matrix"]

logger = logging.getLogger(__name__)


def _one_unit_per_group(df: pd.DataFrame) -> bool:
    if df.empty:
        return True
    return bool(df.groupby(UNIT_GROUP_KEYS, dropna=False)["Unit"].nunique(dropna=False).le(1).all())


measurement_schema = DataFrameSchema({
    "Analyte": Column(nullable=False),
    "Result": Column(float, nullable=True, coerce=True),
    "Unit": Column(nullable=True),
    "Matrix": Column(checks=Check.isin(MATRICES), nullable=False),
    "Date": Column(pa.DateTime, nullable=False, coerce=True),
    "Latitude": Column(float, Check.in_range(-90, 90), nullable=False, coerce=True),
    "Longitude": Column(float, Check.in_range(-180, 180), nullable=False, coerce=True),
    "Category": Column(checks=Check.isin(list(CATEGORIES)), nullable=False),
})

unit_consistency_schema = DataFrameSchema(
    {
        "Category": Column(nullable=False),
        "Analyte": Column(nullable=False),
        "Matrix": Column(nullable=False),
        "Unit": Column(nullable=False),
    },
    checks=Check(_one_unit_per_group, error="more than one unit per (Category, Analyte, Matrix)"),
)


def assert_measurements(df):
    measurement_schema.validate(df, lazy=True)

def units_per_group(df: pd.DataFrame) -> pd.Series:
    """Distinct unit count per (Category, Analyte, Matrix)."""
    return df.groupby(UNIT_GROUP_KEYS, dropna=False)["Unit"].nunique(dropna=False)

def assert_single_unit(df):
    try:
        unit_consistency_schema.validate(df, lazy=True)
    except SchemaErrors:
        counts = units_per_group(df)
        logger.error("Groups with more than one unit: %s", counts[counts > 1].index.tolist()[:10])
        raise
