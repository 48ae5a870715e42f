from __future__ import annotations
from pathlib import Path
import pandas as pd
from .config import INTERIM

def save_interim(df: pd.DataFrame, name: str, directory: Path | None = None) -> Path:
    """
    Save a DataFrame to the interim data directory as a Parquet file.

    Args:
        df: The DataFrame to save
        name: The filename (without path) for the saved file
        directory: Override for the interim directory

    Returns:
        Path: The full path to the saved file
    """
    directory = Path(directory or INTERIM)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    df.to_parquet(path, index=False)
    return path


def write_csv(frame: pd.DataFrame, path: Path) -> Path:
    """Write a DataFrame to CSV, creating parent folders when needed. Dates are written as YYYY-MM-DD."""
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(destination, index=False, date_format="%Y-%m-%d")
    return destination
