from functools import partial

import pandas as pd
import pytest

from bnprep import config
from bnprep.pipeline import build_tables, make_outputs, run_steps, write_outputs
from bnprep.report import DropReport


def test_build_tables_end_to_end(ceden_raw, surf_raw):
    report = DropReport()
    result = build_tables([ceden_raw, surf_raw], report=report)

    # nothing unclassified or out of scope survives
    for table in (result.categorized, result.normalized):
        assert table["Category"].notna().all()
        assert "silver" not in set(table["Analyte"])
    assert "silver" not in result.water.columns
    assert report.counts["unclassified"] == 1
    assert report.counts["unknown_matrix"] == 1
    assert report.counts["outside_window"] == 1

    norm = result.normalized
    assert (norm.groupby(["Category", "Analyte", "Matrix"])["Unit"].nunique() == 1).all()
    oxygen = norm[norm["Analyte"] == "oxygen"].iloc[0]
    assert oxygen["Unit"] == "mg/L"
    assert oxygen["Result"] == pytest.approx(50 / 10.995)
    diazoxon = norm[norm["Analyte"] == "diazoxon"].iloc[0]
    assert diazoxon["Unit"] == "ppb"
    assert diazoxon["Result"] == pytest.approx(0.2)

    water = result.water
    pairs = norm.loc[norm["Matrix"] == "water", ["Date", "Latitude", "Longitude"]].drop_duplicates()
    assert len(water) == len(pairs) == 2
    june = water[water["Date"] == pd.Timestamp("2015-06-01")].iloc[0]
    assert june["bifenthrin"] == pytest.approx(0.55)
    assert june["oxygen"] == pytest.approx(4.547, abs=1e-3)

    sediment = result.sediment
    assert len(sediment) == 1
    assert sediment.loc[0, "bifenthrin_sediment"] == pytest.approx(12.0)
    assert sediment.loc[0, "mercury total_sediment"] == pytest.approx(0.25)

    assert set(result.category_wide) == {"Pyrethroids", "OrganoP", "WQP", "Neon"}

def test_write_outputs_creates_every_file(ceden_raw, surf_raw, tmp_path):
    result = build_tables([ceden_raw, surf_raw])
    paths = write_outputs(result, tmp_path)
    names = {p.name for p in paths}
    assert {
        config.LOOKUP_CSV, config.CATEGORIZED_CSV, config.NORMALIZED_CSV,
        config.WIDE_WATER_CSV, config.WIDE_SEDIMENT_CSV, config.DROP_REPORT_CSV,
        "wide_water_Pyrethroids.csv",
    } <= names
    for p in paths:
        assert p.exists()
        assert "silver" not in p.read_text().lower() or p.name == config.DROP_REPORT_CSV

    water = pd.read_csv(tmp_path / config.WIDE_WATER_CSV)
    assert "2015-06-01" in set(water["Date"])

def test_make_outputs_from_files(ceden_raw, surf_raw, tmp_path):
    ceden_csv = tmp_path / "ceden.csv"
    surf_csv = tmp_path / "surf.csv"
    ceden_raw.drop(columns="Source").to_csv(ceden_csv, index=False)
    surf_raw.drop(columns="Source").to_csv(surf_csv, index=False)

    result = make_outputs(
        ceden=ceden_csv, surf=surf_csv,
        out_dir=tmp_path / "out", interim_dir=tmp_path / "interim",
    )
    assert (tmp_path / "out" / config.WIDE_SEDIMENT_CSV).exists()
    assert set(result.categorized["Source"]) == {"CEDEN", "SURF"}
    snapshot = pd.read_parquet(tmp_path / "interim" / config.CATEGORIZED_PARQUET)
    assert len(snapshot) == len(result.categorized)

def test_make_outputs_requires_columns(tmp_path):
    bad = tmp_path / "bad.csv"
    pd.DataFrame({"Analyte": ["ph"]}).to_csv(bad, index=False)
    with pytest.raises(KeyError):
        make_outputs(ceden=bad, surf=bad, out_dir=tmp_path / "out")

def test_run_steps_applies_in_order():
    df = pd.DataFrame({"x": [1, 2, 3]})
    steps = [
        lambda d: d[d["x"] > 1],
        partial(pd.DataFrame.assign, y=lambda d: d["x"] * 10),
    ]
    out = run_steps(df, steps)
    assert list(out["y"]) == [20, 30]

def test_replicates_from_one_source_are_all_averaged(make_measurement):
    measurement = make_measurement
    ceden = pd.DataFrame([
        measurement("Bifenthrin", 1.0, "ppb"),
        measurement("Bifenthrin", 1.0, "ppb"),
        measurement("Bifenthrin", 4.0, "ppb"),
    ]).assign(Source="CEDEN")
    surf = pd.DataFrame([measurement("bifenthrin", 1.0, "ppb")]).assign(Source="SURF")
    report = DropReport()

    result = build_tables([ceden, surf], report=report)
    assert len(result.normalized) == 3
    assert result.water.loc[0, "bifenthrin"] == pytest.approx(2.0)
    assert report.counts["duplicate"] == 1

def test_blank_ph_unit_and_sediment_field_parameters_do_not_abort(make_measurement):
    measurement = make_measurement
    ceden = pd.DataFrame([
        measurement("pH", 7.4, None),
        measurement("Turbidity", 3.0, "NTU", matrix="sediment"),
        measurement("Bifenthrin", 0.5, "ppb"),
    ]).assign(Source="CEDEN")
    report = DropReport()

    result = build_tables([ceden], report=report)
    ph = result.normalized[result.normalized["Analyte"] == "ph"].iloc[0]
    assert ph["Unit"] == "none"
    assert ph["Result"] == 7.4
    assert "turbidity" not in set(result.normalized["Analyte"])
    assert report.counts["no_canonical_unit"] == 1
    assert result.water.loc[0, "bifenthrin"] == pytest.approx(0.5)

def test_make_outputs_accepts_loose_headers(ceden_raw, surf_raw, tmp_path):
    ceden_csv = tmp_path / "ceden.csv"
    surf_csv = tmp_path / "surf.csv"
    loose = {"StationName": " Station Name", "Result": "result", "Analyte": "ANALYTE "}
    ceden_raw.drop(columns="Source").rename(columns=loose).to_csv(ceden_csv, index=False)
    surf_raw.drop(columns="Source").to_csv(surf_csv, index=False)

    result = make_outputs(ceden=ceden_csv, surf=surf_csv,
                          out_dir=tmp_path / "out", interim_dir=tmp_path / "interim")
    assert "S1" in set(result.categorized["StationName"])
    assert set(result.categorized["Source"]) == {"CEDEN", "SURF"}
