"""Pytest configuration for local package imports.

Prepends the repository `src` directory to sys.path so tests can import
`bnprep` without installing it, and provides small measurement tables.
"""

import sys
from pathlib import Path

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))


def measurement(analyte, result, unit, matrix="water", date="2015-06-01",
                lat=38.1, lon=-121.5, subregion="North Delta", station="S1"):
    return {
        "Analyte": analyte, "Result": result, "Unit": unit, "Matrix": matrix,
        "Date": date, "StationName": station, "Latitude": lat, "Longitude": lon,
        "Subregion": subregion,
    }


@pytest.fixture
def ceden_raw():
    return pd.DataFrame([
        measurement("Bifenthrin", 500.0, "ng/L", matrix="samplewater"),
        measurement("Oxygen, Dissolved, Total", 50.0, "%", matrix="samplewater"),
        measurement("Diazinon Oxon", 200.0, "ng/L", matrix="samplewater"),
        measurement("Silver", 1.0, "ug/L", matrix="samplewater"),
        measurement("Mercury, Total", 0.25, "ug/g dw", matrix="sediment"),
        measurement("Copper, Dissolved", 3.0, "ug/L", matrix="blankwater"),
        measurement("Bifenthrin", 40.0, "ng/L", matrix="samplewater", date="2005-03-01"),
    ]).assign(Source="CEDEN")


@pytest.fixture
def surf_raw():
    return pd.DataFrame([
        measurement("bifenthrin", 0.6, "ppb", matrix="water"),
        measurement("bifenthrin", 12.0, "ng/g dw", matrix="sediment"),
        measurement("imidacloprid", 0.05, "ppb", matrix="water",
                    date="2016-07-12", lat=38.3, lon=-121.6, subregion="Sacramento River"),
    ]).assign(Source="SURF")


@pytest.fixture
def make_measurement():
    return measurement
