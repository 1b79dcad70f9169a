"""VTL Configuration loader."""

import os
import re
import typing
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from vtl_core.errors import create_error
from vtl_core.telemetry.logging import get_logger
from vtl_core.types import LogFormat, LogLevel, ValidationIssue, ValidationResult

from .models import MAX_DEPTH_LIMIT, EngineConfig

logger = get_logger("config")

_VALID_SECTIONS = {"evaluation", "logging"}


def resolve_env_vars(value: str) -> str:
    """Resolve environment variable references in string.

    Supports:
    - ${VAR} - Required, error if not set
    - ${VAR:-default} - With default value
    - ${VAR:?error message} - Required with custom error

    Args:
        value: String with potential env var references

    Returns:
        String with env vars resolved

    Raises:
        VTLError: If required var not set
    """
    pattern = r"\$\{([^}:]+)(?::([?-])([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        operator = match.group(2)  # '-' or '?' or None
        operand = match.group(3)  # default value or error message

        env_value = os.environ.get(var_name)

        if env_value is not None:
            return env_value

        if operator == "-":
            return operand or ""
        elif operator == "?":
            error_msg = operand or f"Required environment variable {var_name} not set"
            raise create_error("CONFIG_INVALID", detail=error_msg)
        else:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Required environment variable {var_name} not set",
            )

    return re.sub(pattern, replacer, value)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    else:
        return data


class ConfigLoader:
    """Load and validate engine configuration."""

    def __init__(self) -> None:
        self._config: EngineConfig | None = None
        self._config_path: Path | None = None

    @property
    def config_path(self) -> Path | None:
        return self._config_path

    def load(
        self,
        path: str | Path | None = None,
        use_defaults: bool = True,
        overrides: dict[str, Any] | None = None,
    ) -> EngineConfig:
        """Load configuration from file.

        Resolution order if path not specified:
        1. VTL_CONFIG_PATH environment variable
        2. ./vtl-config.yaml
        3. ~/.vtl/config.yaml
        4. If use_defaults=True and no file found, use default configuration

        Args:
            path: Optional path to config file
            use_defaults: If True, use default config when no file found
            overrides: Settings deep-merged over the file contents (or over the
                defaults when no file is found)

        Returns:
            Loaded EngineConfig instance

        Raises:
            VTLError: If file not found (when use_defaults=False) or invalid
        """
        if path is None:
            path = self._resolve_config_path()

        config_path = Path(path)

        if not config_path.exists():
            if use_defaults:
                logger.info("No config file found, using default configuration")
                return self.load_from_dict(deep_merge({}, overrides or {}))
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration file not found: {config_path}",
            )

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise create_error(
                "CONFIG_INVALID",
                cause=e,
                detail=f"Invalid YAML in config file: {e}",
            ) from e

        if not isinstance(data, dict):
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration root must be a mapping: {config_path}",
            )

        data = _resolve_env_vars_recursive(data)
        if overrides:
            data = deep_merge(data, overrides)

        return self.load_from_dict(data, config_path)

    def load_defaults(self) -> EngineConfig:
        """Load default configuration without a file.

        Returns:
            EngineConfig with default values
        """
        return self.load_from_dict({})

    def load_from_dict(
        self, data: dict[str, Any], config_path: Path | None = None
    ) -> EngineConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration dictionary
            config_path: Optional path to config file (for tracking)

        Returns:
            Loaded EngineConfig instance

        Raises:
            VTLError: If configuration is invalid
        """
        validation = self.validate(data)
        for issue in validation.warnings:
            logger.warning(issue.message, path=issue.path)
        if not validation.valid:
            error_messages = [f"- {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._convert_field(EngineConfig, data)
        except (TypeError, ValueError) as e:
            raise create_error(
                "CONFIG_INVALID",
                cause=e,
                detail=f"Failed to parse configuration: {e}",
            ) from e

        self._config = config
        self._config_path = config_path
        logger.debug("Configuration loaded", path=str(config_path) if config_path else None)
        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate config data without loading.

        Args:
            data: Configuration dictionary

        Returns:
            ValidationResult with errors and warnings
        """
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        for key in data:
            if key not in _VALID_SECTIONS:
                warnings.append(
                    ValidationIssue(
                        path=key,
                        message=f"Unknown configuration key: {key}",
                        severity="warning",
                    )
                )

        for section in _VALID_SECTIONS:
            if section in data and not isinstance(data[section], dict):
                errors.append(
                    ValidationIssue(
                        path=section,
                        message=f"{section} must be a dictionary",
                        severity="error",
                    )
                )

        evaluation = data.get("evaluation")
        if isinstance(evaluation, dict) and "max_depth" in evaluation:
            value = evaluation["max_depth"]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                errors.append(
                    ValidationIssue(
                        path="evaluation.max_depth",
                        message="max_depth must be a positive integer",
                        severity="error",
                    )
                )
            elif value > MAX_DEPTH_LIMIT:
                errors.append(
                    ValidationIssue(
                        path="evaluation.max_depth",
                        message=f"max_depth must not exceed {MAX_DEPTH_LIMIT}",
                        severity="error",
                    )
                )

        logging_section = data.get("logging")
        if isinstance(logging_section, dict):
            level = logging_section.get("level")
            if level is not None and level not in {lv.value for lv in LogLevel}:
                errors.append(
                    ValidationIssue(
                        path="logging.level",
                        message=f"Unknown log level: {level}",
                        severity="error",
                    )
                )
            log_format = logging_section.get("format")
            if log_format is not None and log_format not in {lf.value for lf in LogFormat}:
                errors.append(
                    ValidationIssue(
                        path="logging.format",
                        message=f"Unknown log format: {log_format}",
                        severity="error",
                    )
                )

        return ValidationResult(valid=True, errors=errors, warnings=warnings)

    def get(self) -> EngineConfig:
        """Get current configuration.

        Raises:
            VTLError: If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def _resolve_config_path(self) -> Path:
        env_path = os.environ.get("VTL_CONFIG_PATH")
        if env_path:
            return Path(env_path)

        local_path = Path("vtl-config.yaml")
        if local_path.exists():
            return local_path

        home_path = Path.home() / ".vtl" / "config.yaml"
        if home_path.exists():
            return home_path

        return local_path

    def _convert_field(self, field_type: Any, value: Any) -> Any:
        """Convert a raw YAML value to the declared field type.

        Args:
            field_type: Expected field type
            value: Value to convert

        Returns:
            Converted value
        """
        if value is None:
            return None

        if hasattr(field_type, "__dataclass_fields__"):
            if not isinstance(value, dict):
                return value
            hints = typing.get_type_hints(field_type)
            kwargs = {
                f.name: self._convert_field(hints[f.name], value[f.name])
                for f in fields(field_type)
                if f.name in value
            }
            return field_type(**kwargs)

        if isinstance(field_type, type) and issubclass(field_type, LogLevel | LogFormat):
            if isinstance(value, str):
                return field_type(value)
            return value

        return value


# Convenience singleton
_default_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Get default config loader singleton."""
    global _default_loader  # noqa: PLW0603
    if _default_loader is None:
        _default_loader = ConfigLoader()
    return _default_loader


def load_config(
    path: str | Path | None = None, overrides: dict[str, Any] | None = None
) -> EngineConfig:
    """Convenience function to load config.

    Args:
        path: Optional path to config file
        overrides: Settings deep-merged over the file contents

    Returns:
        Loaded EngineConfig instance
    """
    return get_config_loader().load(path, overrides=overrides)
