import logging
import uuid, time
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence, Union
import pandas as pd

from ..core.config import PipelineConfig
from ..core.errors import SchemaError, UnresolvableGapError
from ..core.events import StageEvent
from ..data.dedup import Deduplicator, DedupReport
from ..data.entities import Observation, observations_to_frame
from ..data.quality import DataQualityService, assert_forecast_ready
from ..data.repository import AbstractRepository, build_repository
from ..grid.aligner import Aligner
from ..grid.builder import GridBuilder, validate_grid
from ..grid.state import ImputationGrid
from ..imputation.registry import build_imputers, run_imputers
from ..monitoring.resource import ResourceMonitor

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    run_id: str
    duration_sec: float
    grid: pd.DataFrame
    sources: pd.DataFrame
    dedup: DedupReport
    events: List[StageEvent]
    unresolved: pd.DataFrame
    dq_before: Dict[str, Any]
    dq_after: Dict[str, Any]
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return self.unresolved.empty

    def summary(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "duration_sec": self.duration_sec,
            "rows": len(self.grid),
            "complete": self.complete,
            "unresolved_cells": len(self.unresolved),
            "dedup": {
                "rows_in": self.dedup.rows_in,
                "exact_duplicates": self.dedup.exact_duplicates,
                "timestamp_conflicts": self.dedup.timestamp_conflicts,
            },
            "stages": [ev.as_dict() for ev in self.events],
            "dq_before": self.dq_before,
            "dq_after": self.dq_after,
            "context": self.context,
        }


class ImputationPipeline:
    def __init__(self, config: PipelineConfig, repository: Optional[AbstractRepository] = None) -> None:
        self.cfg = config
        self._schema = config.columns
        self._repo = repository
        self._dedup = Deduplicator(self._schema.time_column)
        self._builder = GridBuilder()
        self._aligner = Aligner(self._schema.time_column, self._schema.numeric, self._schema.categorical)
        self._dq = DataQualityService()
        self._rm = ResourceMonitor()

    @classmethod
    def from_yaml(cls, path: str) -> "ImputationPipeline":
        return cls(PipelineConfig.from_yaml(path))

    @property
    def repository(self) -> AbstractRepository:
        if self._repo is None:
            self._repo = build_repository(self.cfg.storage)
        return self._repo

    def load(self) -> pd.DataFrame:
        st = self.cfg.storage
        source = st.source_table if st.format == "sql" else st.input_path
        if not source:
            raise ValueError("storage.input_path is not configured")
        return self.repository.load_observations(source)

    def prepare(self, raw: pd.DataFrame) -> pd.DataFrame:
        tc = self._schema.time_column
        absent = [c for c in [tc, *self._schema.fields] if c not in raw.columns]
        if absent:
            raise SchemaError(f"raw log lacks columns {absent}")
        out = raw.copy()
        out[tc] = pd.to_datetime(out[tc], format=self._schema.timestamp_format)
        return out

    def build_grid(self, raw: pd.DataFrame) -> tuple[ImputationGrid, DedupReport]:
        observations, report = self._dedup.run(self.prepare(raw))
        grid = self._builder.build(observations[self._schema.time_column])
        validate_grid(grid)
        return self._aligner.align(grid, observations, self.cfg.imputation.outage_window), report

    def run(
        self,
        raw: Union[pd.DataFrame, Sequence[Observation], None] = None,
        persist: bool = True,
    ) -> PipelineResult:
        run_id = uuid.uuid4().hex[:12]
        t0 = time.time()
        ctx = self._rm.snapshot()
        if raw is None:
            raw = self.load()
        elif not isinstance(raw, pd.DataFrame):
            raw = observations_to_frame(raw, self._schema.time_column)
        logger.info("run %s: %d raw records", run_id, len(raw))

        grid, dedup = self.build_grid(raw)
        fields = self._schema.fields
        dq_before = self._dq.profile(grid.to_frame(), fields)

        events = run_imputers(grid, build_imputers(self.cfg.imputation))
        grid.finalize()
        unresolved = grid.unresolved_report()
        out = grid.to_frame()

        result = PipelineResult(
            run_id=run_id,
            duration_sec=time.time() - t0,
            grid=out,
            sources=grid.sources_frame(),
            dedup=dedup,
            events=events,
            unresolved=unresolved,
            dq_before=dq_before,
            dq_after=self._dq.profile(out, fields),
            context=self._rm.delta(ctx),
        )
        self._track(result)

        if not unresolved.empty:
            if self.cfg.imputation.on_unresolved == "raise":
                raise UnresolvableGapError(unresolved)
            logger.error("%d cells unresolved; grid not persisted", len(unresolved))
            return result

        assert_forecast_ready(out, self._schema.time_column, fields)
        if persist:
            self.save(out)
        return result

    def save(self, df: pd.DataFrame) -> None:
        st = self.cfg.storage
        target = st.table if st.format == "sql" else st.output_path
        if not target:
            logger.info("no output target configured; skipping persistence")
            return
        self.repository.save_grid(df, self._schema.time_column, target)

    def _track(self, result: PipelineResult) -> None:
        tr_cfg = self.cfg.tracking
        if not tr_cfg.enabled:
            return
        from ..tracking.mlflow_tracker import Tracker
        tracker = Tracker(tr_cfg.tracking_uri)
        tracker.start(tr_cfg.run_name)
        try:
            imp = self.cfg.imputation
            tracker.log_params({
                "stages": ",".join(imp.stages),
                "max_lookback_years": imp.max_lookback_years,
                "leap_reference_date": imp.leap_reference_date,
                "outage_start": imp.outage_window.start if imp.outage_window else None,
                "outage_end": imp.outage_window.end if imp.outage_window else None,
            })
            tracker.log_stages(result.events)
            tracker.log_metrics({
                "rows": float(len(result.grid)),
                "unresolved_cells": float(len(result.unresolved)),
                "duration_sec": result.duration_sec,
            })
        finally:
            tracker.end("FINISHED" if result.complete else "FAILED")
