from datetime import date, datetime
from typing import Optional, Literal
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

STAGE_ORDER = ("short_horizon", "historical_year", "leap_day")


class SchemaConfig(BaseModel):
    time_column: str = "date_time"
    timestamp_format: Optional[str] = "%Y-%m-%d %H:%M:%S"
    numeric: list[str] = Field(default_factory=list)
    categorical: list[str] = Field(default_factory=list)

    @property
    def fields(self) -> list[str]:
        return [*self.numeric, *self.categorical]

    @model_validator(mode="after")
    def _check_columns(self) -> "SchemaConfig":
        if not self.fields:
            raise ValueError("schema declares no numeric or categorical fields")
        overlap = set(self.numeric) & set(self.categorical)
        if overlap:
            raise ValueError(f"fields declared both numeric and categorical: {sorted(overlap)}")
        if self.time_column in self.fields:
            raise ValueError(f"time column {self.time_column!r} cannot also be a field")
        return self


class OutageWindow(BaseModel):
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _ordered(self) -> "OutageWindow":
        if self.start > self.end:
            raise ValueError(f"outage window start {self.start} is after end {self.end}")
        return self


class ImputationConfig(BaseModel):
    outage_window: Optional[OutageWindow] = None
    leap_reference_date: Optional[date] = None
    max_lookback_years: int = Field(1, ge=1)
    on_unresolved: Literal["raise", "report"] = "raise"
    stages: list[str] = Field(default_factory=lambda: list(STAGE_ORDER))

    @field_validator("leap_reference_date")
    @classmethod
    def _feb_28(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and (v.month, v.day) != (2, 28):
            raise ValueError(f"leap reference date must be a February 28, got {v}")
        return v

    @field_validator("stages")
    @classmethod
    def _stage_order(cls, v: list[str]) -> list[str]:
        unknown = [s for s in v if s not in STAGE_ORDER]
        if unknown:
            raise ValueError(f"unknown stages: {unknown}")
        if v != sorted(v, key=STAGE_ORDER.index) or len(set(v)) != len(v):
            raise ValueError(f"stages must be unique and follow {list(STAGE_ORDER)}")
        return v


class StorageConfig(BaseModel):
    format: Literal["csv", "parquet", "sql"] = "csv"
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    dsn: Optional[str] = None
    source_table: str = "observations"
    table: str = "hourly_grid"
    output_timestamp_format: str = "%Y-%m-%d %H:%M:%S"
    row_id_column: str = "row_id"


class TrackingConfig(BaseModel):
    enabled: bool = False
    tracking_uri: Optional[str] = None
    run_name: str = "tsgrid"


class PipelineConfig(BaseModel):
    model_config = ConfigDict(protected_namespaces=())
    alias: str = "hourly-grid"
    log_level: str = "INFO"
    columns: SchemaConfig
    imputation: ImputationConfig = Field(default_factory=ImputationConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)

    @classmethod
    def from_yaml(cls, path: str) -> "PipelineConfig":
        with open(path, 'r', encoding='utf-8') as f:
            return cls(**(yaml.safe_load(f) or {}))
