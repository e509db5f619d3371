"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Track library persistence (JSON files)
- Settings and the credit ledger
- Logging (Loguru)
"""

from .config import (
    Config,
    create_default_config,
    ensure_directories,
    get_config_dir,
    get_config_path,
    get_data_dir,
    load_config,
)
from .library_store import LibraryStore, TrackStore
from .output import log, setup_loguru
from .settings_store import AppSettings, CreditLedger, SettingsStore

__all__ = [
    "AppSettings",
    "Config",
    "CreditLedger",
    "LibraryStore",
    "SettingsStore",
    "TrackStore",
    "create_default_config",
    "ensure_directories",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "load_config",
    "log",
    "setup_loguru",
]
