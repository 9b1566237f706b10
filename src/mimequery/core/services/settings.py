"""Load the error policy from the CLI, MIMEQUERY_ERROR_POLICY or $XDG_CONFIG_HOME/mimequery/config.yaml."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from mimequery.core.domain.entities import ErrorPolicy
from mimequery.core.services.error_codes import ErrorCode, MimeQueryError
from mimequery.core.services.observability import log_debug
from mimequery.core.services.xdg_environment import XdgEnvironment

CONFIG_DIR_NAME = "mimequery"
CONFIG_FILE_NAME = "config.yaml"
ERROR_POLICY_ENV = "MIMEQUERY_ERROR_POLICY"
DEFAULT_ERROR_POLICY = ErrorPolicy.BEST_EFFORT


@dataclass(frozen=True)
class Settings:
    error_policy: ErrorPolicy = DEFAULT_ERROR_POLICY
    source: str = "default"


def config_file_path(env: XdgEnvironment) -> Optional[Path]:
    """Return $XDG_CONFIG_HOME/mimequery/config.yaml, or None without a config home."""
    config_home = env.config_home
    if config_home is None:
        return None
    return config_home.expanduser() / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def parse_error_policy(raw: Any, source: str) -> ErrorPolicy:
    if isinstance(raw, ErrorPolicy):
        return raw
    value = str(raw).strip().lower().replace("_", "-")
    try:
        return ErrorPolicy(value)
    except ValueError as exc:
        raise MimeQueryError(
            ErrorCode.CONFIG_INVALID,
            f"Unknown error policy {raw!r} in {source}",
            details={"source": source, "valid_values": [p.value for p in ErrorPolicy]},
        ) from exc


def _load_config_file(path: Path) -> Mapping[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise MimeQueryError(
            ErrorCode.CONFIG_INVALID,
            f"Failed to load config from {path}: {exc}",
            details={"path": str(path)},
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise MimeQueryError(
            ErrorCode.CONFIG_INVALID,
            f"Config file {path} must contain a mapping",
            details={"path": str(path)},
        )
    return data


def load_settings(
    env: XdgEnvironment,
    process_env: Optional[Mapping[str, str]] = None,
    override: Optional[str] = None,
) -> Settings:
    """Resolve settings: explicit override, then MIMEQUERY_ERROR_POLICY, then config file."""
    if override:
        return Settings(error_policy=parse_error_policy(override, "--error-policy"), source="cli")

    process_env = os.environ if process_env is None else process_env
    from_env = process_env.get(ERROR_POLICY_ENV)
    if from_env:
        return Settings(error_policy=parse_error_policy(from_env, ERROR_POLICY_ENV), source="env")

    path = config_file_path(env)
    if path is None or not path.is_file():
        return Settings()

    data = _load_config_file(path)
    log_debug("config_loaded", path=str(path))
    raw_policy = data.get("error_policy")
    if raw_policy is None:
        return Settings(source=str(path))
    return Settings(error_policy=parse_error_policy(raw_policy, str(path)), source=str(path))
