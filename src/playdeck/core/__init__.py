"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- JSON key-value storage
- Console management (Rich)
- Logging setup (Loguru)
"""

# Configuration
from .config import (
    Config,
    load_config,
    parse_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_state_dir,
    get_log_file_path,
    create_default_config,
    ensure_directories,
)

# Storage
from .storage import JSONStorage

# Console
from .console import get_console, safe_print

__all__ = [
    # Configuration
    "Config",
    "load_config",
    "parse_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_state_dir",
    "get_log_file_path",
    "create_default_config",
    "ensure_directories",
    # Storage
    "JSONStorage",
    # Console
    "get_console",
    "safe_print",
]
