from __future__ import annotations
import logging
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, Optional

import geopandas as gpd
import pandas as pd

from . import config
from .categories import build_lookup_table, classify
from .cleaning import (
    cast_types, normalize_analyte_names, standardize_units,
    standardize_matrix, drop_missing_keys, filter_date_window,
    drop_duplicates_on_keys, merge_sources, assign_subregions,
)
from .data_io import save_interim, write_csv
from .ingest import read_ceden_raw, read_surf_raw, read_risk_regions
from .logging_config import log_data_processing, setup_logging
from .report import DropReport
from .reshape import wide_water, wide_sediment, wide_by_category
from .units import normalize_units, UnitErrors
from .validators import assert_measurements

logger = logging.getLogger(__name__)

Step = Callable[[pd.DataFrame], pd.DataFrame]


@dataclass
class PipelineResult:
    lookup: pd.DataFrame
    categorized: pd.DataFrame
    normalized: pd.DataFrame
    category_wide: dict[str, pd.DataFrame]
    water: pd.DataFrame
    sediment: pd.DataFrame
    drops: DropReport = field(default_factory=DropReport)


def _step_name(step: Step) -> str:
    func = step.func if isinstance(step, partial) else step
    return getattr(func, "__name__", repr(func))

def run_steps(df: pd.DataFrame, steps: Iterable[Step]) -> pd.DataFrame:
    """Apply steps in order, logging the row count after each."""
    for step in steps:
        df = step(df)
        log_data_processing(_step_name(step), len(df))
    return df

def cleaning_steps(
    report: Optional[DropReport] = None,
    regions: Optional[gpd.GeoDataFrame] = None,
    start=config.START_DATE,
    end=config.END_DATE,
) -> list[Step]:
    steps: list[Step] = [
        partial(cast_types, spec=config.TYPE_SPEC),
        normalize_analyte_names,
        standardize_units,
        partial(standardize_matrix, report=report),
        partial(drop_missing_keys, report=report),
        partial(filter_date_window, start=start, end=end, report=report),
        partial(drop_duplicates_on_keys, keys=config.DUPLICATE_KEYS, report=report),
    ]
    if regions is not None:
        steps.append(partial(assign_subregions, regions=regions, report=report))
    return steps

def build_tables(
    frames: Iterable[pd.DataFrame],
    regions: Optional[gpd.GeoDataFrame] = None,
    report: Optional[DropReport] = None,
    unit_errors: UnitErrors = "raise",
    start=config.START_DATE,
    end=config.END_DATE,
) -> PipelineResult:
    """
    Run every table-to-table stage on already-loaded agency tables:
    merge -> clean -> classify -> normalize units -> reshape. No file I/O.
    """
    report = report if report is not None else DropReport()

    long = run_steps(merge_sources(frames), cleaning_steps(report, regions, start, end))

    categorized = classify(long, report)
    assert_measurements(categorized)
    log_data_processing("classify", len(categorized))

    normalized = normalize_units(categorized, report, errors=unit_errors)
    assert_measurements(normalized)
    log_data_processing("normalize_units", len(normalized))

    return PipelineResult(
        lookup=build_lookup_table(),
        categorized=categorized,
        normalized=normalized,
        category_wide=wide_by_category(normalized),
        water=wide_water(normalized),
        sediment=wide_sediment(normalized),
        drops=report,
    )

def write_outputs(result: PipelineResult, out_dir: Optional[Path] = None) -> list[Path]:
    out_dir = Path(out_dir or config.PROC)
    paths = [
        write_csv(result.lookup, out_dir / config.LOOKUP_CSV),
        write_csv(result.categorized, out_dir / config.CATEGORIZED_CSV),
        write_csv(result.normalized, out_dir / config.NORMALIZED_CSV),
    ]
    for category, wide in result.category_wide.items():
        paths.append(write_csv(wide, out_dir / config.WIDE_CATEGORY_CSV.format(category=category)))
    paths.append(write_csv(result.water, out_dir / config.WIDE_WATER_CSV))
    paths.append(write_csv(result.sediment, out_dir / config.WIDE_SEDIMENT_CSV))
    paths.append(write_csv(result.drops.to_frame(), out_dir / config.DROP_REPORT_CSV))
    return paths

def _load_regions(regions):
    if isinstance(regions, gpd.GeoDataFrame):
        return regions
    if regions is not None:
        return read_risk_regions(regions)
    if Path(config.RISK_REGIONS).exists():
        return read_risk_regions()
    logger.info("No risk-region layer at %s; keeping input Subregion values", config.RISK_REGIONS)
    return None

def make_outputs(
    ceden=None,
    surf=None,
    regions=None,
    out_dir: Optional[Path] = None,
    interim_dir: Optional[Path] = None,
    unit_errors: UnitErrors = "raise",
) -> PipelineResult:
    """
    Read both agency tables, run the full pipeline and write every output table.

    Args:
        ceden, surf: Paths/URLs of the input tables (config defaults when None)
        regions: Path/URL or GeoDataFrame of risk-region polygons; None uses
            the configured layer when it exists
        out_dir: Output directory (config.PROC when None)
        interim_dir: Directory for the categorized parquet snapshot (config.INTERIM when None)
        unit_errors: "raise" or "drop" for units with no conversion
    """
    logger.info("Starting pipeline: bnprep")
    try:
        frames = [read_ceden_raw(ceden), read_surf_raw(surf)]
        report = DropReport()
        result = build_tables(frames, _load_regions(regions), report, unit_errors)
        save_interim(result.categorized, config.CATEGORIZED_PARQUET, interim_dir)
        paths = write_outputs(result, out_dir)
    except Exception:
        logger.exception("Pipeline bnprep failed")
        raise
    logger.info("Wrote %d output files; %r", len(paths), result.drops)
    logger.info("Pipeline bnprep completed successfully")
    return result


if __name__ == "__main__":
    setup_logging(log_file=str(config.LOGS / "bnprep.log"))
    make_outputs()
