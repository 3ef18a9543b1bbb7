import logging
from dataclasses import dataclass, field
from typing import List
import pandas as pd

logger = logging.getLogger(__name__)


@dataclass
class DedupReport:
    rows_in: int
    exact_duplicates: int
    timestamp_conflicts: int
    conflicting_timestamps: List[pd.Timestamp] = field(default_factory=list)

    @property
    def rows_out(self) -> int:
        return self.rows_in - self.exact_duplicates - self.timestamp_conflicts


class Deduplicator:
    """Drop exact duplicate rows, then keep the first row seen per timestamp."""

    def __init__(self, time_column: str) -> None:
        self.time_column = time_column

    def run(self, raw: pd.DataFrame) -> tuple[pd.DataFrame, DedupReport]:
        exact = raw.duplicated(keep="first")
        unique = raw.loc[~exact]
        clash = unique.duplicated(subset=[self.time_column], keep="first")
        conflicting = sorted(pd.Timestamp(t) for t in unique.loc[clash, self.time_column].unique())
        report = DedupReport(
            rows_in=len(raw),
            exact_duplicates=int(exact.sum()),
            timestamp_conflicts=int(clash.sum()),
            conflicting_timestamps=conflicting,
        )
        if report.exact_duplicates:
            logger.info("dropped %d exact duplicate rows", report.exact_duplicates)
        if conflicting:
            logger.warning(
                "%d timestamps carried conflicting records; kept first seen (e.g. %s)",
                len(conflicting), conflicting[0],
            )
        return unique.loc[~clash].reset_index(drop=True), report

    def __call__(self, raw: pd.DataFrame) -> pd.DataFrame:
        return self.run(raw)[0]
