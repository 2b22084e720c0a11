"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import SitegateConfig


def load_config(cli_path: str | None = None) -> SitegateConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    if cli_path and not Path(cli_path).exists():
        raise ValueError(f"Config file not found: {cli_path}")

    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./sitegate.yaml"),
        Path.home() / ".sitegate" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                if not isinstance(raw, dict):
                    raise ValueError(f"Invalid config in {path}: top level must be a mapping")
                raw = _expand_env_vars(raw)
                return SitegateConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return SitegateConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `sitegate config init`
DEFAULT_CONFIG_TEMPLATE = """\
# sitegate.yaml

# Source tree
source:
  entry_candidates: [index.html, index.md, README.md]
  # extensions:
  #   .html: html
  #   .md: markdown
  ignore_patterns: [.git, node_modules, dist, build, _site, .venv, __pycache__]

# Formatter
formatter:
  line_ending: "lf"            # lf | crlf
  max_blank_lines: 1
  quote_style: "double"        # double | single (HTML attributes)
  list_marker: "-"             # - | * | + (Markdown bullets)
  # command: [npx, prettier, --stdin-filepath, "{path}"]
  command_timeout: 30

# Merge gate
gate:
  checks: [entry, valid, format, links]
  mode: "strict"               # strict | warn | off
  # commands:
  #   - name: lint
  #     run: [npm, run, lint]
  #     timeout: 300

# Watch mode
watch:
  debounce_seconds: 0.5

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
