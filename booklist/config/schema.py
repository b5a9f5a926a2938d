from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ConfigDict, field_validator


LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

OutputFormat = Literal["plain", "json", "table"]


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data_dir: Path = Field(default=Path("~/.booklist"))
    log_level: str = Field(default="WARNING")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Defaults to <data_dir>/booklist.db once paths are resolved.
    sqlite_path: Path | None = None


class OutputConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    format: OutputFormat = "plain"


class AppConfigRoot(BaseModel):
    model_config = ConfigDict(extra="forbid")

    app: AppConfig = AppConfig()
    storage: StorageConfig = StorageConfig()
    output: OutputConfig = OutputConfig()

    @property
    def sqlite_path(self) -> Path:
        if self.storage.sqlite_path is None:
            return self.app.data_dir / "booklist.db"
        return self.storage.sqlite_path


def resolve_paths(config: AppConfigRoot, base_dir: Path) -> AppConfigRoot:
    """Make paths absolute: data_dir against ``base_dir``, a relative sqlite_path against data_dir."""

    def _resolve(path_value: Path, root: Path) -> Path:
        path_value = path_value.expanduser()
        return path_value if path_value.is_absolute() else (root / path_value).resolve()

    config.app.data_dir = _resolve(config.app.data_dir, base_dir)
    if config.storage.sqlite_path is not None:
        config.storage.sqlite_path = _resolve(config.storage.sqlite_path, config.app.data_dir)
    return config
