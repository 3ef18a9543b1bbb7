import logging
import pandas as pd
from ..core.errors import EmptyLogError, NonMonotonicOrGappyGridError

logger = logging.getLogger(__name__)

HOUR = pd.Timedelta(hours=1)


class GridBuilder:
    """Hourly grid spanning the observed range; hourly is the declared resolution."""

    def build(self, timestamps: pd.Series) -> pd.DatetimeIndex:
        ts = pd.to_datetime(timestamps).dropna()
        if ts.empty:
            raise EmptyLogError("no timestamps to build a grid from")
        start, end = ts.min(), ts.max()
        grid = pd.date_range(start, end, freq=HOUR)
        logger.info("grid %s .. %s: %d hourly slots", start, end, len(grid))
        return grid


def validate_grid(grid: pd.DatetimeIndex) -> None:
    if len(grid) == 0:
        raise NonMonotonicOrGappyGridError("grid is empty")
    if grid.has_duplicates:
        raise NonMonotonicOrGappyGridError("grid contains duplicate timestamps")
    if not grid.is_monotonic_increasing:
        raise NonMonotonicOrGappyGridError("grid is not increasing")
    steps = grid[1:] - grid[:-1]
    bad = steps != HOUR
    if bad.any():
        first = int(bad.argmax())
        raise NonMonotonicOrGappyGridError(
            f"grid spacing {steps[first]} between {grid[first]} and {grid[first + 1]}"
        )
