from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, Iterable
import pandas as pd


class FillState(IntEnum):
    RESOLVED = 0
    AWAITING_SHORT_HORIZON = 1
    AWAITING_HISTORICAL = 2
    AWAITING_LEAP_FALLBACK = 3
    UNRESOLVED = 4


class FillSource(IntEnum):
    """Which stage wrote a cell. NONE means the cell is still missing."""
    NONE = 0
    OBSERVED = 1
    SHORT_HORIZON = 2
    HISTORICAL = 3
    LEAP_FALLBACK = 4


@dataclass(frozen=True)
class Observation:
    timestamp: datetime
    values: Dict[str, Any] = field(default_factory=dict)


def observations_to_frame(observations: Iterable[Observation], time_column: str = "date_time") -> pd.DataFrame:
    rows = [{time_column: pd.Timestamp(o.timestamp), **o.values} for o in observations]
    return pd.DataFrame(rows)
