from __future__ import annotations

from pathlib import Path
from typing import Any
import os

import yaml
from loguru import logger

from booklist.config.schema import AppConfig, AppConfigRoot, resolve_paths

ENV_DATA_DIR = "BOOKLIST_DATA_DIR"
ENV_DB_PATH = "BOOKLIST_DB_PATH"
ENV_LOG_LEVEL = "BOOKLIST_LOG_LEVEL"


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _load_dotenv(dotenv_path: Path) -> None:
    if not dotenv_path.exists():
        return
    for raw_line in dotenv_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip("\"")
        os.environ.setdefault(key, value)


def _apply_env(config_data: dict[str, Any]) -> dict[str, Any]:
    data_dir = os.getenv(ENV_DATA_DIR)
    if data_dir:
        config_data.setdefault("app", {})["data_dir"] = data_dir

    log_level = os.getenv(ENV_LOG_LEVEL)
    if log_level:
        config_data.setdefault("app", {})["log_level"] = log_level

    db_path = os.getenv(ENV_DB_PATH)
    if db_path:
        config_data.setdefault("storage", {})["sqlite_path"] = db_path
    return config_data


def _user_config_path(config_data: dict[str, Any]) -> Path:
    data_dir = os.getenv(ENV_DATA_DIR) or config_data.get("app", {}).get("data_dir") or AppConfig().data_dir
    return Path(data_dir).expanduser() / "config.yaml"


def load_config(
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> AppConfigRoot:
    base_dir = Path.cwd()
    _load_dotenv(base_dir / ".env")

    config_data: dict[str, Any] = {}
    config_data = _deep_merge(config_data, _read_yaml(_user_config_path(config_data)))

    if config_path:
        config_data = _deep_merge(config_data, _read_yaml(config_path))

    config_data = _apply_env(config_data)

    if overrides:
        config_data = _deep_merge(config_data, overrides)

    config = AppConfigRoot.model_validate(config_data)
    config = resolve_paths(config, base_dir)

    logger.debug("Loaded config, database at {}", config.sqlite_path)
    return config
