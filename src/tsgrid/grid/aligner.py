import logging
from typing import Optional
import numpy as np
import pandas as pd

from ..core.config import OutageWindow
from ..data.entities import FillState
from .state import ImputationGrid

logger = logging.getLogger(__name__)


class Aligner:
    """Left-join deduplicated observations onto the canonical grid."""

    def __init__(self, time_column: str, numeric: list[str], categorical: list[str]) -> None:
        self.time_column = time_column
        self.numeric = list(numeric)
        self.categorical = list(categorical)

    def align(
        self,
        grid: pd.DatetimeIndex,
        observations: pd.DataFrame,
        outage: Optional[OutageWindow] = None,
    ) -> ImputationGrid:
        cols = [self.time_column, *self.numeric, *self.categorical]
        obs = observations[cols].copy()
        obs[self.time_column] = pd.to_datetime(obs[self.time_column]).astype(grid.dtype)
        frame = pd.DataFrame({self.time_column: grid}).merge(obs, on=self.time_column, how="left")

        matched = int(obs[self.time_column].isin(grid).sum())
        if matched < len(obs):
            logger.warning("%d observations fall between grid slots and were not aligned", len(obs) - matched)

        in_outage = np.zeros(len(grid), dtype=bool)
        if outage is not None:
            in_outage = np.asarray((grid >= pd.Timestamp(outage.start)) & (grid <= pd.Timestamp(outage.end)))

        values, states = {}, {}
        for f in self.numeric:
            values[f] = pd.to_numeric(frame[f], errors="coerce").to_numpy(dtype=float, copy=True)
        for f in self.categorical:
            col = frame[f].astype(object)
            values[f] = col.where(col.notna(), None).to_numpy(dtype=object, copy=True)
        for f, arr in values.items():
            missing = pd.isna(arr)
            awaiting = np.where(in_outage, int(FillState.AWAITING_SHORT_HORIZON), int(FillState.AWAITING_HISTORICAL))
            states[f] = np.where(missing, awaiting, int(FillState.RESOLVED)).astype(np.int8)

        aligned = ImputationGrid(grid, values, states, self.numeric, self.categorical, self.time_column)
        logger.info(
            "aligned %d slots: %d cells awaiting short-horizon, %d awaiting historical",
            len(aligned),
            aligned.count(FillState.AWAITING_SHORT_HORIZON),
            aligned.count(FillState.AWAITING_HISTORICAL),
        )
        return aligned
