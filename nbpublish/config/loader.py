"""Locate, read and validate nbpublish.yaml.

Relative entries under ``paths:`` are taken relative to the directory of the
config file they came from, so a build behaves the same from any working
directory. Strings may reference environment variables as ``${VAR}`` or
``${VAR:-fallback}``.
"""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import NbPublishConfig

CONFIG_ENV_VAR = "NBPUBLISH_CONFIG"
PROJECT_CONFIG = "nbpublish.yaml"

_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def config_search_paths(cli_path: str | None = None) -> list[Path]:
    """Candidate config files, highest priority first.

    An explicit path (``--config`` or $NBPUBLISH_CONFIG) replaces the search
    entirely and must exist.
    """
    explicit = cli_path or os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise ValueError(f"Config file not found: {explicit}")
        return [path]
    return [Path(PROJECT_CONFIG), Path.home() / ".nbpublish" / "config.yaml"]


def load_config(cli_path: str | None = None) -> NbPublishConfig:
    """Load the first non-empty config file found, or the defaults."""
    for path in config_search_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_mapping(path)
        if raw is None:
            continue
        raw = _expand_env_vars(raw)
        _anchor_paths(raw, path.parent)
        try:
            return NbPublishConfig(**raw)
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
    return NbPublishConfig()


def _read_mapping(path: Path) -> dict | None:
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping")
    return raw


def _anchor_paths(raw: dict, base: Path) -> None:
    """Rewrite relative ``paths:`` entries in place to sit under ``base``."""
    section = raw.get("paths")
    if not isinstance(section, dict):
        return
    for key, value in section.items():
        if isinstance(value, str) and value and not Path(value).is_absolute():
            section[key] = str(base / value)


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} and ${VAR:-fallback} in strings."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `nbpublish config init`
DEFAULT_CONFIG_TEMPLATE = """\
# nbpublish.yaml

# Where notebooks are read from and artifacts are written to
paths:
  source_dir: "notebooks"
  markdown_dir: "markdown"
  script_dir: "scripts"
  publish_dir: "../documentation/src/examples"

# External converter
nbconvert:
  command: ["jupyter", "nbconvert"]
  kernel_name: "python3"
  # template: "markdown_template.tpl"
  # cell_timeout: 600            # seconds per executed cell
  # process_timeout: 1800        # seconds per nbconvert process

# Build behaviour
build:
  document_extension: ".ipynb"
  sort_documents: true
  clean: true                    # empty the script and markdown roots before converting
  on_error: "halt"               # halt | continue
  publish: true
  publish_on_failure: false

# Logging
log_level: "info"                # debug | info | warn | error
log_format: "text"               # text | json
"""
