from datetime import date, datetime
from typing import Any, Dict, Optional
import pandas as pd

from ..data.entities import FillSource, FillState
from ..grid.state import ImputationGrid
from .base import Imputer


class LeapDayResolver(Imputer):
    """Fill cells the yearly lookup left missing from a reference February 28.

    Structurally these are February 29 slots, whose one-year-back date does
    not exist, but any still-missing slot is tried at the reference date
    combined with its time of day. Without a configured reference the
    February 28 of the slot's preceding year is used. A reference that is
    not strictly before the slot is never read. Anything still missing
    afterwards is marked unresolved.
    """
    name = "leap_day"
    source = FillSource.LEAP_FALLBACK
    next_state = FillState.UNRESOLVED

    def __init__(self, reference_date: Optional[date] = None) -> None:
        super().__init__()
        self.reference_date = reference_date
        self._future_refs = 0

    def reference_for(self, ts: pd.Timestamp) -> Optional[pd.Timestamp]:
        ref = self.reference_date or date(ts.year - 1, 2, 28)
        if ref >= ts.date():
            return None
        return pd.Timestamp(datetime.combine(ref, ts.time()))

    def apply(self, grid: ImputationGrid):
        self._future_refs = 0
        return super().apply(grid)

    def describe(self) -> Dict[str, Any]:
        return {
            "reference_date": str(self.reference_date) if self.reference_date else "previous-february-28",
            "future_reference_skipped": self._future_refs,
        }

    def fill_field(self, grid: ImputationGrid, field: str) -> tuple[int, int]:
        filled = deferred = skipped = 0
        for pos in grid.pending(field):
            target = self.reference_for(grid.timestamps[pos])
            if target is None:
                skipped += 1
            else:
                src = grid.position(target)
                if src is not None and not grid.missing(field, src):
                    grid.write(field, pos, grid.values[field][src])
                    filled += 1
                    continue
            grid.defer(field, pos, self.next_state)
            deferred += 1
        if skipped:
            self._future_refs += skipped
            self.logger.warning("%s: reference %s is not before %d pending cells; left unresolved",
                                field, self.reference_date, skipped)
        return filled, deferred
