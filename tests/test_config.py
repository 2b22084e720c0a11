"""Tests for config models and YAML loading."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from sitegate.config import SitegateConfig, load_config
from sitegate.config.loader import DEFAULT_CONFIG_TEMPLATE
from sitegate.config.models import CommandCheckConfig, FormatterConfig


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    """Keep project-local and user-global config files out of the tests."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestModels:
    def test_defaults(self, sample_config):
        assert sample_config.source.entry_candidates == ["index.html", "index.md", "README.md"]
        assert sample_config.formatter.line_ending == "lf"
        assert sample_config.formatter.max_blank_lines == 1
        assert sample_config.gate.checks == ["entry", "valid", "format", "links"]
        assert sample_config.gate.mode == "strict"
        assert sample_config.watch.debounce_seconds == 0.5
        assert sample_config.log_level == "info"

    def test_zero_blank_lines_rejected(self):
        with pytest.raises(ValidationError):
            FormatterConfig(max_blank_lines=0)

    def test_unknown_list_marker_rejected(self):
        with pytest.raises(ValidationError):
            FormatterConfig(list_marker="1.")

    def test_command_needs_argv(self):
        with pytest.raises(ValidationError):
            CommandCheckConfig(name="lint", run=[])

    def test_unknown_check_rejected(self):
        with pytest.raises(ValidationError):
            SitegateConfig.model_validate({"gate": {"checks": ["spelling"]}})


class TestLoadConfig:
    def test_defaults_without_files(self):
        assert load_config() == SitegateConfig()

    def test_project_local_file(self, isolated_dirs: Path):
        (isolated_dirs / "sitegate.yaml").write_text("formatter:\n  quote_style: single\n")
        assert load_config().formatter.quote_style == "single"

    def test_user_global_file(self, isolated_dirs: Path):
        cfg_dir = isolated_dirs / "home" / ".sitegate"
        cfg_dir.mkdir()
        (cfg_dir / "config.yaml").write_text("gate:\n  mode: warn\n")
        assert load_config().gate.mode == "warn"

    def test_cli_path_wins(self, isolated_dirs: Path):
        (isolated_dirs / "sitegate.yaml").write_text("log_level: debug\n")
        cli = isolated_dirs / "ci.yaml"
        cli.write_text("log_level: error\n")
        assert load_config(str(cli)).log_level == "error"

    def test_empty_file_falls_through(self, isolated_dirs: Path):
        cli = isolated_dirs / "empty.yaml"
        cli.write_text("")
        (isolated_dirs / "sitegate.yaml").write_text("log_format: json\n")
        assert load_config(str(cli)).log_format == "json"

    def test_env_var_expansion(self, isolated_dirs: Path, monkeypatch):
        monkeypatch.setenv("SITE_FORMATTER", "prettier")
        (isolated_dirs / "sitegate.yaml").write_text(
            'formatter:\n  command: ["${SITE_FORMATTER}", "--stdin-filepath", "{path}"]\n'
        )
        assert load_config().formatter.command == ["prettier", "--stdin-filepath", "{path}"]

    def test_missing_cli_path(self):
        with pytest.raises(ValueError, match="Config file not found"):
            load_config("nope.yaml")

    def test_invalid_yaml(self, isolated_dirs: Path):
        (isolated_dirs / "sitegate.yaml").write_text("gate: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config()

    def test_invalid_values(self, isolated_dirs: Path):
        (isolated_dirs / "sitegate.yaml").write_text("formatter:\n  max_blank_lines: 0\n")
        with pytest.raises(ValueError, match="Invalid config"):
            load_config()

    def test_top_level_must_be_mapping(self, isolated_dirs: Path):
        (isolated_dirs / "sitegate.yaml").write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_config()


def test_default_template_matches_defaults():
    raw = yaml.safe_load(DEFAULT_CONFIG_TEMPLATE)
    assert SitegateConfig(**raw) == SitegateConfig()
