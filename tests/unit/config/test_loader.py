"""Tests for engine configuration loading."""

from pathlib import Path

import pytest

from vtl_core.config import (
    DEFAULT_MAX_DEPTH,
    MAX_DEPTH_LIMIT,
    ConfigLoader,
    EngineConfig,
    deep_merge,
    get_config_loader,
    load_config,
    resolve_env_vars,
)
from vtl_core.errors import VTLError
from vtl_core.types import LogFormat, LogLevel


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "vtl-config.yaml"
    path.write_text(content)
    return path


class TestResolveEnvVars:
    """Tests for ${VAR} substitution."""

    def test_set_variable(self, monkeypatch):
        monkeypatch.setenv("VTL_TEST_DEPTH", "12")
        assert resolve_env_vars("${VTL_TEST_DEPTH}") == "12"

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("VTL_TEST_UNSET", raising=False)
        assert resolve_env_vars("${VTL_TEST_UNSET:-DEBUG}") == "DEBUG"

    def test_required_variable_missing(self, monkeypatch):
        monkeypatch.delenv("VTL_TEST_UNSET", raising=False)
        with pytest.raises(VTLError) as exc_info:
            resolve_env_vars("${VTL_TEST_UNSET}")
        assert exc_info.value.code == "CONFIG_INVALID"
        assert "VTL_TEST_UNSET" in exc_info.value.detail

    def test_custom_error_message(self, monkeypatch):
        monkeypatch.delenv("VTL_TEST_UNSET", raising=False)
        with pytest.raises(VTLError) as exc_info:
            resolve_env_vars("${VTL_TEST_UNSET:?set the level}")
        assert exc_info.value.detail == "set the level"

    def test_plain_text_untouched(self):
        assert resolve_env_vars("no vars here") == "no vars here"


class TestDeepMerge:
    def test_nested_override(self):
        base = {"evaluation": {"max_depth": 10}, "logging": {"level": "INFO"}}
        override = {"logging": {"format": "text"}}
        assert deep_merge(base, override) == {
            "evaluation": {"max_depth": 10},
            "logging": {"level": "INFO", "format": "text"},
        }

    def test_base_not_mutated(self):
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestConfigLoader:
    """Tests for ConfigLoader."""

    def test_defaults(self):
        config = ConfigLoader().load_defaults()
        assert config == EngineConfig()
        assert config.evaluation.max_depth == DEFAULT_MAX_DEPTH
        assert config.logging.level == LogLevel.INFO
        assert config.logging.format == LogFormat.JSON

    def test_load_yaml_file(self, tmp_path):
        path = write_config(
            tmp_path,
            "evaluation:\n  max_depth: 7\nlogging:\n  level: DEBUG\n  format: text\n",
        )
        loader = ConfigLoader()
        config = loader.load(path)

        assert config.evaluation.max_depth == 7
        assert config.logging.level is LogLevel.DEBUG
        assert config.logging.format is LogFormat.TEXT
        assert loader.config_path == path
        assert loader.get() is config

    def test_env_var_in_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VTL_TEST_LEVEL", "ERROR")
        path = write_config(tmp_path, "logging:\n  level: ${VTL_TEST_LEVEL}\n")
        config = ConfigLoader().load(path)
        assert config.logging.level is LogLevel.ERROR

    def test_empty_file_gives_defaults(self, tmp_path):
        path = write_config(tmp_path, "")
        assert ConfigLoader().load(path) == EngineConfig()

    def test_missing_file_uses_defaults(self, tmp_path):
        config = ConfigLoader().load(tmp_path / "absent.yaml")
        assert config == EngineConfig()

    def test_missing_file_without_defaults(self, tmp_path):
        with pytest.raises(VTLError) as exc_info:
            ConfigLoader().load(tmp_path / "absent.yaml", use_defaults=False)
        assert exc_info.value.code == "CONFIG_INVALID"
        assert "not found" in exc_info.value.detail

    def test_invalid_yaml(self, tmp_path):
        path = write_config(tmp_path, "evaluation: [unclosed\n")
        with pytest.raises(VTLError) as exc_info:
            ConfigLoader().load(path)
        assert "Invalid YAML" in exc_info.value.detail
        assert exc_info.value.cause is not None

    def test_non_mapping_root(self, tmp_path):
        path = write_config(tmp_path, "- just\n- a list\n")
        with pytest.raises(VTLError, match="Invalid configuration"):
            ConfigLoader().load(path)

    def test_env_path_resolution(self, tmp_path, monkeypatch):
        path = write_config(tmp_path, "evaluation:\n  max_depth: 3\n")
        monkeypatch.setenv("VTL_CONFIG_PATH", str(path))
        assert ConfigLoader().load().evaluation.max_depth == 3

    def test_get_before_load(self):
        with pytest.raises(VTLError, match="Invalid configuration"):
            ConfigLoader().get()

    def test_invalid_data_rejected(self):
        with pytest.raises(VTLError) as exc_info:
            ConfigLoader().load_from_dict({"evaluation": {"max_depth": 0}})
        assert "max_depth must be a positive integer" in exc_info.value.detail

    def test_overrides_merged_over_file(self, tmp_path):
        path = write_config(
            tmp_path, "evaluation:\n  max_depth: 7\nlogging:\n  level: DEBUG\n"
        )
        config = ConfigLoader().load(path, overrides={"logging": {"format": "text"}})
        assert config.evaluation.max_depth == 7
        assert config.logging.level is LogLevel.DEBUG
        assert config.logging.format is LogFormat.TEXT

    def test_overrides_take_precedence(self, tmp_path):
        path = write_config(tmp_path, "evaluation:\n  max_depth: 7\n")
        config = ConfigLoader().load(path, overrides={"evaluation": {"max_depth": 9}})
        assert config.evaluation.max_depth == 9

    def test_overrides_without_file(self, tmp_path):
        config = ConfigLoader().load(
            tmp_path / "absent.yaml", overrides={"evaluation": {"max_depth": 4}}
        )
        assert config.evaluation.max_depth == 4
        assert config.logging == EngineConfig().logging

    def test_overrides_validated(self, tmp_path):
        with pytest.raises(VTLError, match="Invalid configuration"):
            ConfigLoader().load(
                tmp_path / "absent.yaml", overrides={"logging": {"level": "LOUD"}}
            )

    def test_load_config_uses_default_loader(self, tmp_path):
        path = write_config(tmp_path, "evaluation:\n  max_depth: 11\n")
        config = load_config(path)
        assert get_config_loader() is get_config_loader()
        assert get_config_loader().get() is config
        assert get_config_loader().config_path == path


class TestValidate:
    """Tests for ConfigLoader.validate."""

    def test_valid_config(self):
        result = ConfigLoader().validate({"evaluation": {"max_depth": 5}})
        assert result.valid
        assert result.errors == []

    def test_max_depth_at_limit(self):
        result = ConfigLoader().validate({"evaluation": {"max_depth": MAX_DEPTH_LIMIT}})
        assert result.valid

    def test_max_depth_above_limit_message(self):
        result = ConfigLoader().validate({"evaluation": {"max_depth": 2000}})
        assert [issue.message for issue in result.errors] == [
            f"max_depth must not exceed {MAX_DEPTH_LIMIT}"
        ]

    def test_unknown_key_is_warning(self):
        result = ConfigLoader().validate({"server": {}})
        assert result.valid
        assert result.warnings[0].path == "server"

    @pytest.mark.parametrize(
        "data, path",
        [
            ({"evaluation": "deep"}, "evaluation"),
            ({"evaluation": {"max_depth": -1}}, "evaluation.max_depth"),
            ({"evaluation": {"max_depth": "ten"}}, "evaluation.max_depth"),
            ({"evaluation": {"max_depth": True}}, "evaluation.max_depth"),
            ({"evaluation": {"max_depth": MAX_DEPTH_LIMIT + 1}}, "evaluation.max_depth"),
            ({"logging": {"level": "TRACE"}}, "logging.level"),
            ({"logging": {"format": "xml"}}, "logging.format"),
        ],
    )
    def test_errors(self, data, path):
        result = ConfigLoader().validate(data)
        assert not result.valid
        assert [issue.path for issue in result.errors] == [path]
