"""Config resolution for workspace-skills.

An explicit ``--config`` path must exist; an empty file there means
"all defaults". Otherwise the first non-empty file among the project-local
and user-global locations is used.
"""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import SkillsConfig

CONFIG_FILENAME = "workspace-skills.yaml"
USER_CONFIG = Path(".workspace-skills") / "config.yaml"

_ENV_REF = re.compile(r"\$\{(\w+)\}")


def load_config(cli_path: str | None = None) -> SkillsConfig:
    """Resolve config: CLI path > project-local > user-global > defaults."""
    if cli_path:
        path = Path(cli_path)
        if not path.is_file():
            raise ValueError(f"Config file not found: {cli_path}")
        return _parse(path, _read_yaml(path) or {})

    for path in _candidate_paths():
        raw = _read_yaml(path)
        if raw is not None:
            return _parse(path, raw)
    return SkillsConfig()


def _candidate_paths() -> list[Path]:
    """Discovered locations that exist, in priority order."""
    paths = [Path.cwd() / CONFIG_FILENAME, Path.home() / USER_CONFIG]
    return [p for p in paths if p.is_file()]


def _read_yaml(path: Path) -> object:
    try:
        with open(path) as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _parse(path: Path, raw: object) -> SkillsConfig:
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid config in {path}: expected a mapping")
    try:
        return SkillsConfig(**_expand_env_vars(raw))
    except ValidationError as e:
        raise ValueError(f"Invalid config in {path}: {e}") from e


def _expand_env_vars(obj: object) -> object:
    """Replace ${VAR} in every string, recursing into dicts and lists.

    Unset variables expand to the empty string.
    """
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    return obj


# Default YAML template for `workspace-skills config init`
DEFAULT_CONFIG_TEMPLATE = """\
# workspace-skills.yaml

# HTTP transport
http:
  timeout: 60                  # seconds per request
  max_redirects: 10

# Google Drive
drive:
  token_env: "GCLOUD_ACCESS_TOKEN"
  page_size: 100               # search page size (max 1000)

# Google Docs
docs:
  token_env: "GCLOUD_ACCESS_TOKEN"

# Deep research (Interactions API)
research:
  api_key_env: "GEMINI_API_KEY"
  agent: "deep-research-pro-preview-12-2025"
  poll_interval: 10            # seconds between status checks

# Image generation
image:
  api_key_env: "GEMINI_API_KEY"
  model: "gemini-2.5-flash-image"
  output_dir: "nanobanana-outputs"

# Version bump
release:
  manifest: "gemini-extension.json"
  tag_prefix: "v"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
