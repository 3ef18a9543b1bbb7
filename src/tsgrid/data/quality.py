from typing import Dict, Any, Sequence
import pandas as pd

from ..core.errors import NonMonotonicOrGappyGridError, UnresolvableGapError

HOUR = pd.Timedelta(hours=1)


class DataQualityService:
    def profile(self, df: pd.DataFrame, fields: Sequence[str]) -> Dict[str, Any]:
        n_rows = len(df)
        missing = df[list(fields)].isna().sum()
        missing_rate = float(df[list(fields)].isna().mean().mean()) if n_rows else 0.0
        return {
            "n_rows": n_rows,
            "missing_rate": missing_rate,
            "missing_by_field": {k: int(v) for k, v in missing.items()},
        }


def assert_forecast_ready(df: pd.DataFrame, time_column: str, fields: Sequence[str]) -> None:
    """Raise unless ``df`` is a gapless, unique, fully populated hourly series."""
    ts = pd.to_datetime(df[time_column])
    if ts.duplicated().any():
        raise NonMonotonicOrGappyGridError("duplicate timestamps in output")
    steps = ts.diff().iloc[1:]
    if (steps != HOUR).any():
        raise NonMonotonicOrGappyGridError("output is not spaced at exactly one hour")
    holes = df[list(fields)].isna()
    if holes.any().any():
        long = holes.assign(timestamp=ts).melt(id_vars="timestamp", var_name="field", value_name="missing")
        raise UnresolvableGapError(long.loc[long["missing"], ["timestamp", "field"]].reset_index(drop=True))
