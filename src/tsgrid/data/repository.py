from abc import ABC, abstractmethod
from pathlib import Path
import logging
import pandas as pd
from sqlalchemy import create_engine

from ..core.config import StorageConfig

logger = logging.getLogger(__name__)


class AbstractRepository(ABC):
    def __init__(self, cfg: StorageConfig) -> None:
        self.cfg = cfg

    @abstractmethod
    def load_observations(self, source: str) -> pd.DataFrame: ...

    @abstractmethod
    def save_grid(self, df: pd.DataFrame, time_column: str, target: str) -> None: ...

    def _render(self, df: pd.DataFrame, time_column: str) -> pd.DataFrame:
        """Fixed-format timestamps and an explicit row id as first column."""
        out = df.copy()
        out[time_column] = pd.to_datetime(out[time_column]).dt.strftime(self.cfg.output_timestamp_format)
        out.insert(0, self.cfg.row_id_column, range(len(out)))
        return out


class CsvRepository(AbstractRepository):
    def load_observations(self, source: str) -> pd.DataFrame:
        # "None" is a real holiday label, only empty cells are missing
        return pd.read_csv(source, keep_default_na=False, na_values=[""])

    def save_grid(self, df: pd.DataFrame, time_column: str, target: str) -> None:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        self._render(df, time_column).to_csv(target, index=False)
        logger.info("wrote %d rows to %s", len(df), target)


class ParquetRepository(AbstractRepository):
    def load_observations(self, source: str) -> pd.DataFrame:
        return pd.read_parquet(source)

    def save_grid(self, df: pd.DataFrame, time_column: str, target: str) -> None:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        self._render(df, time_column).to_parquet(target, index=False)
        logger.info("wrote %d rows to %s", len(df), target)


class SQLRepository(AbstractRepository):
    def __init__(self, cfg: StorageConfig) -> None:
        super().__init__(cfg)
        if not cfg.dsn:
            raise ValueError("storage.dsn is required for the sql format")
        self._engine = create_engine(cfg.dsn, pool_pre_ping=True)

    def load_observations(self, source: str) -> pd.DataFrame:
        with self._engine.begin() as conn:
            return pd.read_sql_table(source, conn)

    def save_grid(self, df: pd.DataFrame, time_column: str, target: str) -> None:
        with self._engine.begin() as conn:
            self._render(df, time_column).to_sql(target, conn, if_exists="replace", index=False)
        logger.info("wrote %d rows to table %s", len(df), target)


def build_repository(cfg: StorageConfig) -> AbstractRepository:
    if cfg.format == "csv":
        return CsvRepository(cfg)
    if cfg.format == "parquet":
        return ParquetRepository(cfg)
    if cfg.format == "sql":
        return SQLRepository(cfg)
    raise ValueError(f"Unknown storage format: {cfg.format}")
