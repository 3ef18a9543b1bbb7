import numpy as np
import pandas as pd
import pytest

from tsgrid.core.config import PipelineConfig


def hourly_log(start, end, seed=0, drop=()):
    idx = pd.date_range(start, end, freq="h")
    rng = np.random.default_rng(seed)
    df = pd.DataFrame({
        "date_time": idx,
        "temp": rng.normal(280, 5, len(idx)).round(2),
        "traffic_volume": rng.integers(100, 6000, len(idx)).astype(float),
        "weather_main": rng.choice(["Clear", "Clouds", "Rain"], len(idx)),
    })
    if len(drop):
        df = df[~df["date_time"].isin(pd.to_datetime(list(drop)))]
    return df.reset_index(drop=True)


@pytest.fixture
def make_log():
    return hourly_log


@pytest.fixture
def make_config():
    def _make(**imputation):
        return PipelineConfig(
            columns={"time_column": "date_time", "numeric": ["temp", "traffic_volume"], "categorical": ["weather_main"]},
            imputation=imputation,
        )
    return _make
