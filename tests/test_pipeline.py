import datetime as dt
import pandas as pd
import pytest

from tsgrid.core.config import PipelineConfig
from tsgrid.core.errors import SchemaError, UnresolvableGapError
from tsgrid.data.entities import Observation
from tsgrid.data.quality import assert_forecast_ready
from tsgrid.orchestration.pipeline import ImputationPipeline

OUTAGE = {"start": "2013-03-01 00:00:00", "end": "2013-05-01 00:00:00"}
FIELDS = ["temp", "traffic_volume", "weather_main"]


def _raw(make_log, extra_drop=()):
    outage = pd.date_range(OUTAGE["start"], OUTAGE["end"], freq="h")
    scattered = ["2014-01-15 07:00:00", "2014-10-02 09:00:00", "2014-03-10 12:00:00"]
    raw = make_log("2012-10-01 00:00", "2014-10-03 00:00", drop=[*outage, *scattered, *extra_drop])
    dup = raw[raw["date_time"] == pd.Timestamp("2013-01-01 03:00")]
    clash = dup.assign(temp=-1.0)
    return pd.concat([raw, dup, clash], ignore_index=True)


def test_pipeline_produces_forecast_ready_grid(make_log, make_config):
    raw = _raw(make_log)
    result = ImputationPipeline(make_config(outage_window=OUTAGE)).run(raw, persist=False)
    out = result.grid

    assert result.complete
    assert_forecast_ready(out, "date_time", FIELDS)
    assert len(out) == len(pd.date_range("2012-10-01 00:00", "2014-10-03 00:00", freq="h"))
    assert result.dedup.exact_duplicates == 1 and result.dedup.timestamp_conflicts == 1
    assert out.loc[out["date_time"] == pd.Timestamp("2013-01-01 03:00"), "temp"].iloc[0] != -1.0

    src = result.sources.set_index("date_time")
    assert src.loc[pd.Timestamp("2013-04-01 00:00"), "temp"] == "SHORT_HORIZON"
    assert src.loc[pd.Timestamp("2014-10-02 09:00"), "temp"] == "HISTORICAL"
    assert src.loc[pd.Timestamp("2014-03-10 12:00"), "weather_main"] == "HISTORICAL"
    assert src.loc[pd.Timestamp("2012-10-01 00:00"), "temp"] == "OBSERVED"

    # the March 2014 slot copies a value bridged by the short-horizon pass
    bridged = out.loc[out["date_time"] == pd.Timestamp("2013-03-10 12:00"), "temp"].iloc[0]
    assert out.loc[out["date_time"] == pd.Timestamp("2014-03-10 12:00"), "temp"].iloc[0] == bridged

    stages = [ev.stage for ev in result.events]
    assert stages == ["short_horizon", "historical_year", "leap_day"]
    assert result.dq_before["missing_by_field"]["temp"] == len(pd.date_range(OUTAGE["start"], OUTAGE["end"], freq="h")) + 3
    assert result.dq_after["missing_rate"] == 0.0


def test_unresolvable_gap_is_raised(make_log, make_config):
    raw = _raw(make_log, extra_drop=["2012-10-01 05:00:00"])
    with pytest.raises(UnresolvableGapError) as exc:
        ImputationPipeline(make_config(outage_window=OUTAGE)).run(raw, persist=False)
    report = exc.value.report
    assert set(report["timestamp"]) == {pd.Timestamp("2012-10-01 05:00")}
    assert sorted(report["field"]) == sorted(FIELDS)


def test_report_mode_returns_gaps_and_skips_persistence(make_log, tmp_path):
    cfg = PipelineConfig(
        columns={"numeric": ["temp", "traffic_volume"], "categorical": ["weather_main"]},
        imputation={"outage_window": OUTAGE, "on_unresolved": "report"},
        storage={"output_path": str(tmp_path / "grid.csv")},
    )
    result = ImputationPipeline(cfg).run(_raw(make_log, extra_drop=["2012-10-01 05:00:00"]))
    assert not result.complete
    assert len(result.unresolved) == 3
    assert result.summary()["unresolved_cells"] == 3
    assert not (tmp_path / "grid.csv").exists()


def test_grid_written_with_fixed_format_timestamps(make_log, tmp_path):
    cfg = PipelineConfig(
        columns={"numeric": ["temp", "traffic_volume"], "categorical": ["weather_main"]},
        imputation={"outage_window": OUTAGE},
        storage={"output_path": str(tmp_path / "out" / "grid.csv")},
    )
    result = ImputationPipeline(cfg).run(_raw(make_log))
    lines = (tmp_path / "out" / "grid.csv").read_text(encoding="utf-8").splitlines()
    assert lines[0] == "row_id,date_time,temp,traffic_volume,weather_main"
    assert lines[1].startswith("0,2012-10-01 00:00:00,")
    assert lines[-1].startswith(f"{len(result.grid) - 1},2014-10-03 00:00:00,")
    assert len(lines) == len(result.grid) + 1


def test_leap_day_resolved_through_the_pipeline(make_log, make_config):
    raw = make_log("2015-02-27 00:00", "2016-03-01 00:00", drop=["2016-02-29 05:00:00"])
    result = ImputationPipeline(make_config(leap_reference_date=dt.date(2015, 2, 28))).run(raw, persist=False)
    out = result.grid.set_index("date_time")
    expected = raw.set_index("date_time").loc[pd.Timestamp("2015-02-28 05:00")]
    for f in FIELDS:
        assert out.loc[pd.Timestamp("2016-02-29 05:00"), f] == expected[f]


def test_missing_columns_rejected(make_log, make_config):
    raw = make_log("2016-01-01 00:00", "2016-01-02 00:00").drop(columns=["temp"])
    with pytest.raises(SchemaError):
        ImputationPipeline(make_config()).run(raw, persist=False)


def test_string_timestamps_are_parsed(make_log, make_config):
    raw = make_log("2016-01-01 00:00", "2016-01-02 00:00")
    raw["date_time"] = raw["date_time"].dt.strftime("%Y-%m-%d %H:%M:%S")
    result = ImputationPipeline(make_config()).run(raw, persist=False)
    assert len(result.grid) == 25
    assert result.grid["date_time"].iloc[0] == pd.Timestamp("2016-01-01 00:00")


def test_reference_date_fills_gap_without_yearly_source(make_log, make_config):
    raw = make_log("2015-02-27 00:00", "2016-03-01 00:00", drop=["2015-06-01 05:00:00"])
    cfg = make_config(leap_reference_date=dt.date(2015, 2, 28), on_unresolved="report")
    result = ImputationPipeline(cfg).run(raw, persist=False)
    assert result.complete
    src = result.sources.set_index("date_time")
    assert src.loc[pd.Timestamp("2015-06-01 05:00"), "temp"] == "LEAP_FALLBACK"
    payloads = {ev.stage: ev.payload for ev in result.events}
    assert payloads["historical_year"] == {"max_lookback_years": 1}
    assert payloads["leap_day"]["reference_date"] == "2015-02-28"


def test_observation_records_accepted(make_config):
    obs = [
        Observation(dt.datetime(2016, 1, 1, h), {"temp": float(h), "traffic_volume": 10.0 * h, "weather_main": "Clear"})
        for h in (0, 1, 3)
    ]
    window = {"start": "2016-01-01 02:00:00", "end": "2016-01-01 02:00:00"}
    result = ImputationPipeline(make_config(outage_window=window)).run(obs, persist=False)
    assert result.grid["temp"].tolist() == [0.0, 1.0, 0.5, 3.0]
    assert result.grid["weather_main"].tolist() == ["Clear"] * 4
