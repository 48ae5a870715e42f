from __future__ import annotations
import logging
from collections import Counter
from typing import Optional

import pandas as pd

logger = logging.getLogger(__name__)


class DropReport:
    """
    Running tally of rows removed by the cleaning and normalization filters.

    Every filter that removes rows reports here instead of dropping silently;
    the pipeline writes the tally next to its outputs.
    """

    def __init__(self):
        self.counts: Counter = Counter()

    def record(self, reason: str, n_rows: int, detail: Optional[str] = None) -> None:
        if n_rows <= 0:
            return
        self.counts[reason] += int(n_rows)
        if detail:
            logger.info("Dropped %d rows (%s): %s", n_rows, reason, detail)
        else:
            logger.info("Dropped %d rows (%s)", n_rows, reason)

    def total(self) -> int:
        return sum(self.counts.values())

    def to_frame(self) -> pd.DataFrame:
        rows = sorted(self.counts.items())
        return pd.DataFrame(rows, columns=["reason", "rows_dropped"])

    def __repr__(self):
        return f"DropReport(total={self.total()}, reasons={dict(self.counts)})"


def record_drop(
    report: Optional[DropReport],
    reason: str,
    before: pd.DataFrame,
    after: pd.DataFrame,
    detail: Optional[str] = None,
) -> None:
    """Record len(before) - len(after) under reason; logs even without a report."""
    n = len(before) - len(after)
    if report is not None:
        report.record(reason, n, detail)
    elif n > 0:
        logger.info("Dropped %d rows (%s)%s", n, reason, f": {detail}" if detail else "")
