from typing import List
from ..core.config import ImputationConfig
from .base import Imputer
from .historical import HistoricalYearImputer
from .leap_day import LeapDayResolver
from .short_horizon import ShortHorizonImputer


def build_imputers(cfg: ImputationConfig) -> List[Imputer]:
    imputers: List[Imputer] = []
    for name in cfg.stages:
        if name == "short_horizon":
            imputers.append(ShortHorizonImputer(cfg.outage_window))
        elif name == "historical_year":
            imputers.append(HistoricalYearImputer(cfg.max_lookback_years))
        elif name == "leap_day":
            imputers.append(LeapDayResolver(cfg.leap_reference_date))
        else:
            raise ValueError(f"Unknown imputation stage: {name}")
    return imputers


def run_imputers(grid, imputers: List[Imputer]):
    return [imp.apply(grid) for imp in imputers]
