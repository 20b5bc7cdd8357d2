"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import GitlockConfig

_ENV_REF = re.compile(r"\$\{(\w+)\}")


def config_search_paths(cli_path: str | None = None) -> list[Path]:
    """Candidate config files, highest priority first.

    An explicit ``--config`` path wins, then ``$GITLOCK_CONFIG``, then
    ``./gitlock.yaml``, then ``~/.gitlock/config.yaml``.
    """
    paths: list[Path] = []
    if cli_path:
        paths.append(Path(cli_path))
    if env_path := os.environ.get("GITLOCK_CONFIG"):
        paths.append(Path(env_path))
    paths.append(Path("gitlock.yaml"))
    paths.append(Path.home() / ".gitlock" / "config.yaml")
    return paths


def load_config(cli_path: str | None = None) -> GitlockConfig:
    """Load the first non-empty config file found, falling back to defaults."""
    for path in config_search_paths(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        try:
            return GitlockConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
    return GitlockConfig()


def _read_yaml(path: Path) -> object:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _expand_env_vars(obj: object) -> object:
    """Expand ${VAR} in every string value; unset variables expand to ''."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), obj)
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    return obj


# Written by `gitlock config init`
DEFAULT_CONFIG_TEMPLATE = """\
# gitlock.yaml

# Snapshot chain
chain:
  evict_processed: true        # drop cached snapshots once all children are locked
  progress_interval: 1.0       # seconds between progress log lines

# Lock storage
store:
  provider: "sqlite"           # sqlite | memory
  path: ".gitlock/locks.db"
  # path: "${GITLOCK_HOME}/locks.db"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
