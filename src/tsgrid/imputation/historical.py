from typing import Any, Dict, Optional
import pandas as pd

from ..data.entities import FillSource, FillState
from ..grid.state import ImputationGrid
from .base import Imputer


def years_back(ts: pd.Timestamp, years: int) -> Optional[pd.Timestamp]:
    """Same month, day and time ``years`` earlier; None when that date does not exist."""
    try:
        return ts.replace(year=ts.year - years)
    except ValueError:
        return None


class HistoricalYearImputer(Imputer):
    """Copy every still-missing cell from the same slot one year earlier."""
    name = "historical_year"
    source = FillSource.HISTORICAL
    next_state = FillState.AWAITING_LEAP_FALLBACK

    def __init__(self, max_lookback_years: int = 1) -> None:
        super().__init__()
        self.max_lookback_years = max_lookback_years

    def describe(self) -> Dict[str, Any]:
        return {"max_lookback_years": self.max_lookback_years}

    def fill_field(self, grid: ImputationGrid, field: str) -> tuple[int, int]:
        filled = deferred = 0
        for pos in grid.pending(field):
            ts = grid.timestamps[pos]
            for years in range(1, self.max_lookback_years + 1):
                target = years_back(ts, years)
                src = grid.position(target) if target is not None else None
                if src is not None and not grid.missing(field, src):
                    grid.write(field, pos, grid.values[field][src])
                    filled += 1
                    break
            else:
                grid.defer(field, pos, self.next_state)
                deferred += 1
        return filled, deferred
