"""
Tests for configuration loading.

Covers:
- Schema defaults and validation (extra keys, settings_dir, tag, workers)
- deep_merge
- YAML < env < CLI precedence
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from tnet.config import AppConfig, load_config
from tnet.config.loader import apply_cli_overrides, deep_merge, load_env_overrides, load_yaml_config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for var in ("TNET_WORKSPACE", "TNET_SETTINGS_DIR", "TNET_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


def _write_yaml(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "tnet.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestSchema:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.workspace.root == "."
        assert config.workspace.settings_dir == ".tnet"
        assert config.keywords.tag == "keyword"
        assert config.keywords.extensions == [".md", ".markdown", ".txt"]
        assert config.sync.metadata_errors == "raise"
        assert config.tree.show_hidden is True
        assert config.tree.max_workers == 1
        assert config.logging.level == "human"

    def test_extra_keys_forbidden(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(workspace={"root": ".", "unknown": 1})

    @pytest.mark.parametrize("bad", ["", "a/b", "..", "."])
    def test_settings_dir_must_be_a_name(self, bad: str) -> None:
        with pytest.raises(ValidationError):
            AppConfig(workspace={"settings_dir": bad})

    def test_invalid_tag(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(keywords={"tag": "key word"})

    def test_invalid_metadata_policy(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(sync={"metadata_errors": "ignore"})

    def test_max_workers_bounds(self) -> None:
        with pytest.raises(ValidationError):
            AppConfig(tree={"max_workers": 0})


class TestDeepMerge:
    def test_nested_merge(self) -> None:
        assert deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"b": 99}, "e": 4}) == {
            "a": {"b": 99, "c": 2},
            "e": 4,
        }

    def test_base_not_mutated(self) -> None:
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestYaml:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_yaml_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        assert load_yaml_config(_write_yaml(tmp_path, "")) == {}

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            load_yaml_config(_write_yaml(tmp_path, "- a\n- b\n"))

    def test_load_full(self, tmp_path: Path) -> None:
        path = _write_yaml(
            tmp_path,
            "workspace:\n"
            "  root: /notes\n"
            "keywords:\n"
            "  tag: term\n"
            "sync:\n"
            "  metadata_errors: log\n",
        )
        config = load_config(config_path=path)
        assert config.workspace.root == "/notes"
        assert config.keywords.tag == "term"
        assert config.sync.metadata_errors == "log"


class TestPrecedence:
    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch) -> None:
        path = _write_yaml(tmp_path, "workspace:\n  root: /from-yaml\n")
        monkeypatch.setenv("TNET_WORKSPACE", "/from-env")
        monkeypatch.setenv("TNET_LOG_LEVEL", "DEBUG")
        config = load_config(config_path=path)
        assert config.workspace.root == "/from-env"
        assert config.logging.level == "debug"

    def test_empty_env_workspace_means_no_workspace(self, monkeypatch) -> None:
        monkeypatch.setenv("TNET_WORKSPACE", "")
        assert load_env_overrides() == {"workspace": {"root": ""}}

    def test_cli_overrides_env(self, monkeypatch) -> None:
        monkeypatch.setenv("TNET_WORKSPACE", "/from-env")
        config = load_config(cli_args={"workspace": "/from-cli", "metadata_errors": "log"})
        assert config.workspace.root == "/from-cli"
        assert config.sync.metadata_errors == "log"

    def test_cli_none_values_ignored(self) -> None:
        merged = apply_cli_overrides(
            {"workspace": {"root": "/keep"}},
            {"workspace": None, "log_file": None, "verbose": 0},
        )
        assert merged == {"workspace": {"root": "/keep"}}

    def test_cli_has_no_level_override(self) -> None:
        merged = apply_cli_overrides(
            {"logging": {"level": "warn"}},
            {"log_level": "debug", "verbose": 2},
        )
        assert merged == {"logging": {"level": "warn", "verbose": 2}}

    def test_settings_dir_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv("TNET_SETTINGS_DIR", ".notes")
        assert load_config().workspace.settings_dir == ".notes"
