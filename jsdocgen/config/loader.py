"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import RenderConfiguration

CONFIG_ENV = "JSDOCGEN_CONFIG"
LOG_LEVEL_ENV = "JSDOCGEN_LOG_LEVEL"

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def config_paths(cli_path: str | None = None) -> list[Path]:
    """Candidate config files, highest priority first.

    The ``--config`` path, then ``$JSDOCGEN_CONFIG``, then the project's
    ``jsdocgen.yaml``, then ``~/.jsdocgen/config.yaml``.
    """
    paths = []
    if cli_path:
        paths.append(Path(cli_path))
    if os.environ.get(CONFIG_ENV):
        paths.append(Path(os.environ[CONFIG_ENV]))
    paths.append(Path("jsdocgen.yaml"))
    paths.append(Path.home() / ".jsdocgen" / "config.yaml")
    return paths


def load_config(cli_path: str | None = None) -> RenderConfiguration:
    """Build the RenderConfiguration from the first non-empty config file.

    ``$JSDOCGEN_LOG_LEVEL`` overrides whatever ``log_level`` the file sets.
    With no file at all the defaults are returned.
    """
    raw: dict = {}
    source: Path | None = None
    for path in config_paths(cli_path):
        if not path.is_file():
            continue
        data = _read_yaml(path)
        if data:
            raw, source = data, path
            break

    level = os.environ.get(LOG_LEVEL_ENV)
    if level:
        raw = {**raw, "log_level": level.strip().lower()}

    try:
        return RenderConfiguration(**_expand_env_vars(raw))
    except ValidationError as e:
        where = source or f"${LOG_LEVEL_ENV}"
        raise ValueError(f"Invalid config in {where}: {e}") from e


def _read_yaml(path: Path) -> dict | None:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping, got {type(data).__name__}")
    return data


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} and ${VAR:-fallback} references in strings.

    An unset variable without a fallback expands to the empty string.
    """
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `jsdocgen config init`
DEFAULT_CONFIG_TEMPLATE = """\
# jsdocgen.yaml

# Summary line
description_placeholder: "Description placeholder"
author: ""                     # adds an @author line when set
include_date: false
include_time: false

# Tags
include_types: true
include_parenthesis_for_multiple_types: true
description_for_constructors: "Creates an instance of {Object}."
function_variables_as_functions: true
include_export: true
include_async: true
custom_tags: []
#  - tag: "since"
#    placeholder: "1.0.0"

# Column alignment (minimum offsets from the '@')
tag_value_column_start: 0
tag_name_column_start: 0
tag_description_column_start: 0

# Generated descriptions
generative:
  provider: "openai"           # openai | anthropic
  model: "gpt-4o-mini"
  api_key: ""                  # e.g. "${OPENAI_API_KEY}"
  api_key_env: "OPENAI_API_KEY"
  language: "English"
  generate_description_for_type_parameters: false
  generate_description_for_parameters: false
  generate_description_for_returns: false

# Traversal
ignore_patterns: [".git", "node_modules", "dist", "build", "coverage", "out"]

# Logging
log_level: "info"              # debug | info | warn | error
"""
