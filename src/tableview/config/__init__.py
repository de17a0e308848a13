"""
Configuration Package - Models and Loaders.

Configuration Structure:
    - ViewConfig: Root configuration object
    - SearchConfig: Tokenization, scoring, token pattern
    - CollationConfig: Locale and numeric-aware ordering
    - ResilienceConfig: Callback failure policy
    - ColumnConfig: Declarative column definition plus initial state

Design Principles:
    - Type-safe via Pydantic
    - Validation on load (fail fast)
    - Profiles in a profiles/ directory beside the file they overlay
"""

from tableview.config.loader import ConfigError, ConfigLoader, load_config
from tableview.config.models import (
    CallbackPolicy,
    CollationConfig,
    ColumnConfig,
    ResilienceConfig,
    SearchConfig,
    ViewConfig,
)

__all__ = [
    "CallbackPolicy",
    "CollationConfig",
    "ColumnConfig",
    "ConfigError",
    "ConfigLoader",
    "ResilienceConfig",
    "SearchConfig",
    "ViewConfig",
    "load_config",
]
