"""Configuration loading and schema."""

from booklist.config.loader import load_config
from booklist.config.schema import AppConfig, AppConfigRoot

__all__ = ["AppConfig", "AppConfigRoot", "load_config"]
