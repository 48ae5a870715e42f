import numpy as np
import pandas as pd
import pytest

from bnprep.reshape import (
    group_measurements, pivot_wide, wide_by_category, wide_sediment, wide_water,
)


def long_frame(rows):
    cols = ["Date", "Latitude", "Longitude", "Analyte", "Matrix", "Result", "Subregion", "Category"]
    df = pd.DataFrame(rows, columns=cols)
    df["Date"] = pd.to_datetime(df["Date"])
    return df


def test_bifenthrin_replicates_average_in_wide_column():
    # 500 ng/L already normalized to 0.5 ppb, plus a 0.6 ppb record
    df = long_frame([
        ("2015-06-01", 38.1, -121.5, "bifenthrin", "water", 0.5, "North Delta", "Pyrethroids"),
        ("2015-06-01", 38.1, -121.5, "bifenthrin", "water", 0.6, "North Delta", "Pyrethroids"),
    ])
    wide = wide_water(df)
    assert len(wide) == 1
    assert wide.loc[0, "bifenthrin"] == pytest.approx(0.55)
    assert wide.loc[0, "Subregion"] == "North Delta"

def test_mean_ignores_missing_results():
    df = long_frame([
        ("2015-06-01", 38.1, -121.5, "ph", "water", np.nan, "A", "WQP"),
        ("2015-06-01", 38.1, -121.5, "ph", "water", 7.2, "A", "WQP"),
    ])
    grouped = group_measurements(df)
    assert grouped.loc[0, "Result"] == pytest.approx(7.2)

def test_one_row_per_site_and_date():
    df = long_frame([
        ("2015-06-01", 38.1, -121.5, "bifenthrin", "water", 0.5, "A", "Pyrethroids"),
        ("2015-06-01", 38.1, -121.5, "ph", "water", 7.1, "A", "WQP"),
        ("2015-06-02", 38.1, -121.5, "ph", "water", 7.3, "A", "WQP"),
        ("2015-06-01", 38.2, -121.5, "oxygen", "water", 8.0, "B", "WQP"),
    ])
    wide = wide_water(df)
    pairs = df[["Date", "Latitude", "Longitude"]].drop_duplicates()
    assert len(wide) == len(pairs)
    assert list(wide.columns) == ["Date", "Latitude", "Longitude", "Subregion", "bifenthrin", "oxygen", "ph"]
    # no bifenthrin sampled on the second date
    second = wide[wide["Date"] == pd.Timestamp("2015-06-02")]
    assert pd.isna(second["bifenthrin"].iloc[0])

def test_subregion_most_frequent_then_alphabetical():
    df = long_frame([
        ("2015-06-01", 38.1, -121.5, "ph", "water", 7.0, "South", "WQP"),
        ("2015-06-01", 38.1, -121.5, "ph", "water", 7.0, "North", "WQP"),
        ("2015-06-01", 38.1, -121.5, "ph", "water", 7.0, None, "WQP"),
        ("2015-06-01", 38.1, -121.5, "oxygen", "water", 9.0, "South", "WQP"),
        ("2015-06-01", 38.1, -121.5, "oxygen", "water", 9.0, "South", "WQP"),
    ])
    grouped = group_measurements(df).set_index("Analyte")
    assert grouped.loc["ph", "Subregion"] == "North"
    assert grouped.loc["oxygen", "Subregion"] == "South"

def test_sediment_columns_carry_matrix_suffix():
    df = long_frame([
        ("2015-06-01", 38.1, -121.5, "bifenthrin", "sediment", 12.0, "A", "Pyrethroids"),
        ("2015-06-01", 38.1, -121.5, "mercury total", "sediment", 0.25, "A", "Metal"),
        ("2015-06-01", 38.1, -121.5, "bifenthrin", "water", 0.5, "A", "Pyrethroids"),
    ])
    wide = wide_sediment(df)
    assert len(wide) == 1
    assert "bifenthrin_sediment" in wide.columns
    assert "mercury total_sediment" in wide.columns
    assert "bifenthrin" not in wide.columns
    assert wide.loc[0, "bifenthrin_sediment"] == 12.0

def test_wide_by_category_is_water_only():
    df = long_frame([
        ("2015-06-01", 38.1, -121.5, "bifenthrin", "water", 0.5, "A", "Pyrethroids"),
        ("2015-06-01", 38.1, -121.5, "mercury total", "sediment", 0.25, "A", "Metal"),
        ("2015-06-01", 38.1, -121.5, "ph", "water", 7.1, "A", "WQP"),
    ])
    tables = wide_by_category(df)
    assert set(tables) == {"Pyrethroids", "WQP"}
    assert "ph" not in tables["Pyrethroids"].columns

def test_pivot_rejects_ungrouped_rows():
    df = long_frame([
        ("2015-06-01", 38.1, -121.5, "ph", "water", 7.0, "A", "WQP"),
        ("2015-06-01", 38.1, -121.5, "ph", "water", 7.2, "A", "WQP"),
    ])
    with pytest.raises(ValueError):
        pivot_wide(df)

def test_empty_matrix_gives_empty_table():
    df = long_frame([
        ("2015-06-01", 38.1, -121.5, "ph", "water", 7.0, "A", "WQP"),
    ])
    wide = wide_sediment(df)
    assert wide.empty
    assert {"Date", "Latitude", "Longitude", "Subregion"} <= set(wide.columns)
