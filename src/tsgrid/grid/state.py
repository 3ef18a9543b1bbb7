from typing import Any, Dict, Iterator, Optional
import numpy as np
import pandas as pd

from ..core.errors import GridOwnershipError
from ..data.entities import FillSource, FillState
from .builder import HOUR


def is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and np.isnan(value)) or value is pd.NA or value is pd.NaT


class ImputationGrid:
    """The single mutable buffer handed from stage to stage.

    Values, fill states and fill sources are held per field as arrays aligned
    with ``timestamps``. Only the stage currently holding the grid may write.
    """

    def __init__(
        self,
        timestamps: pd.DatetimeIndex,
        values: Dict[str, np.ndarray],
        states: Dict[str, np.ndarray],
        numeric: list[str],
        categorical: list[str],
        time_column: str = "date_time",
    ) -> None:
        self.timestamps = timestamps
        self.values = values
        self.states = states
        self.sources = {
            f: np.where(states[f] == FillState.RESOLVED, FillSource.OBSERVED, FillSource.NONE).astype(np.int8)
            for f in values
        }
        self.numeric = list(numeric)
        self.categorical = list(categorical)
        self.time_column = time_column
        self._owner: Optional[FillSource] = None

    def __len__(self) -> int:
        return len(self.timestamps)

    @property
    def fields(self) -> list[str]:
        return [*self.numeric, *self.categorical]

    @property
    def owner(self) -> Optional[FillSource]:
        return self._owner

    def acquire(self, stage: FillSource) -> None:
        if self._owner is not None:
            raise GridOwnershipError(f"grid held by {self._owner.name}, cannot hand to {stage.name}")
        self._owner = stage

    def release(self, stage: FillSource) -> None:
        if self._owner is not stage:
            raise GridOwnershipError(f"{stage.name} releasing a grid it does not hold")
        self._owner = None

    def _check_owner(self) -> None:
        if self._owner is None:
            raise GridOwnershipError("grid modified outside of a stage")

    def position(self, ts: pd.Timestamp) -> Optional[int]:
        delta = pd.Timestamp(ts) - self.timestamps[0]
        if delta % HOUR != pd.Timedelta(0):
            return None
        pos = delta // HOUR
        if 0 <= pos < len(self.timestamps):
            return int(pos)
        return None

    def window(self, start: pd.Timestamp, end: pd.Timestamp) -> range:
        """Positions of the slots inside [start, end], clipped to the grid."""
        lo = self.timestamps.searchsorted(pd.Timestamp(start), side="left")
        hi = self.timestamps.searchsorted(pd.Timestamp(end), side="right")
        return range(int(lo), int(hi))

    def missing(self, field: str, pos: int) -> bool:
        return is_missing(self.values[field][pos])

    def write(self, field: str, pos: int, value: Any) -> None:
        self._check_owner()
        self.values[field][pos] = value
        self.states[field][pos] = FillState.RESOLVED
        self.sources[field][pos] = self._owner

    def defer(self, field: str, pos: int, state: FillState) -> None:
        self._check_owner()
        self.states[field][pos] = state

    def pending(self, field: str) -> Iterator[int]:
        """Chronological positions whose field is still missing."""
        for pos in np.flatnonzero(self.states[field] != FillState.RESOLVED):
            yield int(pos)

    def count(self, state: FillState) -> int:
        return int(sum((s == state).sum() for s in self.states.values()))

    def unresolved_report(self) -> pd.DataFrame:
        rows = []
        for f in self.fields:
            for pos in np.flatnonzero(self.states[f] != FillState.RESOLVED):
                rows.append({"timestamp": self.timestamps[pos], "field": f,
                             "state": FillState(int(self.states[f][pos])).name})
        return pd.DataFrame(rows, columns=["timestamp", "field", "state"])

    def to_frame(self) -> pd.DataFrame:
        out = pd.DataFrame({self.time_column: self.timestamps})
        for f in self.numeric:
            out[f] = self.values[f].astype(float)
        for f in self.categorical:
            out[f] = pd.Series(self.values[f].copy(), dtype=object)
        return out

    def sources_frame(self) -> pd.DataFrame:
        out = pd.DataFrame({self.time_column: self.timestamps})
        for f in self.fields:
            out[f] = [FillSource(int(s)).name for s in self.sources[f]]
        return out

    def finalize(self) -> int:
        """Mark every cell no stage could fill as unresolved; return how many."""
        self._check_released()
        n = 0
        for s in self.states.values():
            left = s != FillState.RESOLVED
            s[left] = FillState.UNRESOLVED
            n += int(left.sum())
        return n

    def _check_released(self) -> None:
        if self._owner is not None:
            raise GridOwnershipError(f"grid still held by {self._owner.name}")
