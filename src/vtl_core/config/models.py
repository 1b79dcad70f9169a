"""VTL Configuration data models."""

from dataclasses import dataclass, field

from vtl_core.types import LogFormat, LogLevel

DEFAULT_MAX_DEPTH = 50
# Highest macro budget that stays within the default interpreter recursion limit
MAX_DEPTH_LIMIT = 100


@dataclass
class EvaluationConfig:
    """Template evaluation limits."""

    max_depth: int = DEFAULT_MAX_DEPTH  # Nested macro calls allowed per render


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON


@dataclass
class EngineConfig:
    """Root configuration object."""

    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
