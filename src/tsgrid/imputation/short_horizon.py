from collections import deque
from typing import Any, Dict, Optional
import pandas as pd

from ..core.config import OutageWindow
from ..data.entities import FillSource, FillState
from ..grid.state import ImputationGrid
from .base import Imputer


class ShortHorizonImputer(Imputer):
    """Fill the outage window from the most recent known values.

    Numeric fields take the mean of the two most recent non-missing values,
    categorical fields the most recent one. Values written earlier in the
    window count as known for the slots after them.
    """
    name = "short_horizon"
    source = FillSource.SHORT_HORIZON
    next_state = FillState.AWAITING_HISTORICAL

    def __init__(self, window: Optional[OutageWindow]) -> None:
        super().__init__()
        self.window = window

    def describe(self) -> Dict[str, Any]:
        if self.window is None:
            return {"window": None}
        return {"window_start": str(self.window.start), "window_end": str(self.window.end)}

    def fill_field(self, grid: ImputationGrid, field: str) -> tuple[int, int]:
        if self.window is None:
            return 0, 0
        slots = grid.window(pd.Timestamp(self.window.start), pd.Timestamp(self.window.end))
        if not slots:
            self.logger.warning("outage window %s..%s lies outside the grid", self.window.start, self.window.end)
            return 0, 0

        numeric = field in grid.numeric
        recent = deque(self._seed(grid, field, slots.start, 2 if numeric else 1), maxlen=2 if numeric else 1)
        values = grid.values[field]
        filled = deferred = 0
        for pos in slots:
            if grid.missing(field, pos):
                if not recent:
                    grid.defer(field, pos, self.next_state)
                    deferred += 1
                    continue
                grid.write(field, pos, sum(recent) / len(recent) if numeric else recent[-1])
                filled += 1
            recent.append(values[pos])
        return filled, deferred

    @staticmethod
    def _seed(grid: ImputationGrid, field: str, before: int, n: int) -> list:
        """Up to ``n`` most recent known values before ``before``, oldest first."""
        found = []
        for pos in range(before - 1, -1, -1):
            if not grid.missing(field, pos):
                found.append(grid.values[field][pos])
                if len(found) == n:
                    break
        return found[::-1]
