"""VTL Configuration - Config loading and management."""

from .loader import (
    ConfigLoader,
    deep_merge,
    get_config_loader,
    load_config,
    resolve_env_vars,
)
from .models import (
    DEFAULT_MAX_DEPTH,
    MAX_DEPTH_LIMIT,
    EngineConfig,
    EvaluationConfig,
    LoggingConfig,
)

__all__ = [
    # Config models
    "EngineConfig",
    "EvaluationConfig",
    "LoggingConfig",
    "DEFAULT_MAX_DEPTH",
    "MAX_DEPTH_LIMIT",
    # Loader
    "ConfigLoader",
    "get_config_loader",
    "load_config",
    "resolve_env_vars",
    "deep_merge",
]
