from typing import Optional
import pandas as pd


class TsGridError(Exception):
    """Base class for every error raised by tsgrid."""


class EmptyLogError(TsGridError):
    pass


class SchemaError(TsGridError):
    pass


class NonMonotonicOrGappyGridError(TsGridError):
    """The canonical grid is not strictly increasing at exactly one hour."""


class GridOwnershipError(TsGridError):
    pass


class UnresolvableGapError(TsGridError):
    """Cells still missing after every imputation stage.

    ``report`` has one row per (timestamp, field) that could not be filled.
    """

    def __init__(self, report: pd.DataFrame, message: Optional[str] = None) -> None:
        self.report = report
        if message is None:
            n_ts = report["timestamp"].nunique() if len(report) else 0
            message = f"{len(report)} cells unresolved across {n_ts} timestamps"
        super().__init__(message)
