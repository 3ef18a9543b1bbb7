from abc import ABC, abstractmethod
import logging
from typing import Any, Dict

from ..core.events import StageEvent
from ..data.entities import FillSource, FillState
from ..grid.state import ImputationGrid


class Imputer(ABC):
    """One imputation stage.

    A stage takes the grid, fills what it can in chronological order and
    moves every cell it could not fill to ``next_state``.
    """
    name: str = "imputer"
    source: FillSource = FillSource.NONE
    next_state: FillState = FillState.UNRESOLVED

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__.rsplit('.', 1)[0]}.{self.name}")

    def apply(self, grid: ImputationGrid) -> StageEvent:
        grid.acquire(self.source)
        try:
            filled, deferred = 0, 0
            for field in grid.fields:
                f, d = self.fill_field(grid, field)
                filled += f
                deferred += d
        finally:
            grid.release(self.source)
        self.logger.info("%s filled %d cells, deferred %d", self.name, filled, deferred)
        return StageEvent(stage=self.name, filled=filled, deferred=deferred, payload=self.describe())

    def describe(self) -> Dict[str, Any]:
        """Stage settings reported alongside the fill counts."""
        return {}

    @abstractmethod
    def fill_field(self, grid: ImputationGrid, field: str) -> tuple[int, int]:
        """Fill one field; return (cells filled, cells deferred)."""
