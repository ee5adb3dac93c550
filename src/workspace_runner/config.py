"""Runner configuration.

Values are layered: built-in defaults, then an optional YAML file in the
workspace root, then ``WSRUN_*`` environment variables. Command-line flags
are applied last by the CLI through :meth:`RunnerConfig.with_overrides`.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping

import yaml

from .errors import ConfigError
from .utils import _get


DEFAULT_CONFIG_FILE = "workspace-runner.yaml"

# Heuristic pause between two parallel starts; not a readiness check.
DEFAULT_SETTLE_INTERVAL = 1.0

ENV_VARS = {
    "internal_prefix": "WSRUN_INTERNAL_PREFIX",
    "runner": "WSRUN_RUNNER",
    "settle_interval": "WSRUN_SETTLE_INTERVAL",
    "log_file": "WSRUN_LOG_FILE",
}


@dataclass(frozen=True)
class RunnerConfig:
    internal_prefix: str = "@arvasit/"
    runner: str = "pnpm"
    settle_interval: float = DEFAULT_SETTLE_INTERVAL
    manifest_name: str = "package.json"
    log_file: Path | None = None

    def with_overrides(self, **values) -> "RunnerConfig":
        """Return a copy with every non-None value applied and validated."""
        given = {k: v for k, v in values.items() if v is not None}
        if not given:
            return self
        return _validated(replace(self, **_coerce(given)))


def _coerce(values: Mapping) -> dict:
    out: dict = {}
    for key, value in values.items():
        if key not in RunnerConfig.__dataclass_fields__:
            raise ConfigError(f"Unknown config key: {key}")
        # An empty YAML value keeps the default.
        if value is None:
            continue
        if key == "settle_interval":
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ConfigError(f"settle_interval must be a number, got {value!r}")
        elif not isinstance(value, (str, Path)):
            raise ConfigError(f"{key} must be a string, got {value!r}")
        elif key == "log_file":
            value = Path(value) if str(value).strip() else None
        out[key] = value
    return out


def _validated(cfg: RunnerConfig) -> RunnerConfig:
    if not math.isfinite(cfg.settle_interval) or cfg.settle_interval < 0:
        raise ConfigError(f"settle_interval must be a finite number >= 0, got {cfg.settle_interval}")
    if not cfg.internal_prefix.strip():
        raise ConfigError("internal_prefix must not be empty")
    if not cfg.runner.strip():
        raise ConfigError("runner must not be empty")
    if not cfg.manifest_name.strip():
        raise ConfigError("manifest_name must not be empty")
    return cfg


def read_config_file(path: Path) -> dict:
    """Parse a YAML config file; keys may sit at top level or under ``runner:``."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    section = _get(data, "runner", default=None)
    if isinstance(section, dict):
        return dict(section)
    return data


def load_config(
    root: Path,
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RunnerConfig:
    """Build the effective configuration for a workspace rooted at ``root``.

    An explicitly requested ``path`` must exist; the default file is optional.
    """
    environ = os.environ if environ is None else environ
    values: dict = {}

    if path is not None:
        cfg_path = Path(path)
        if not cfg_path.is_absolute():
            cfg_path = root / cfg_path
        if not cfg_path.is_file():
            raise ConfigError(f"Config file not found: {cfg_path}")
        values.update(read_config_file(cfg_path))
    else:
        default_path = root / DEFAULT_CONFIG_FILE
        if default_path.is_file():
            values.update(read_config_file(default_path))

    for key, env_name in ENV_VARS.items():
        if environ.get(env_name):
            values[key] = environ[env_name]

    return _validated(RunnerConfig(**_coerce(values)))
