"""Helpers for loading dispatcher configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:  # pragma: no cover - Python 3.11+ includes tomllib
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for older versions
    import tomli as tomllib  # type: ignore[no-redef]

from ..core.dispatcher import RequestDispatcher

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_NAME = "config.toml"
CONFIG_ENV_VAR = "RESTSDK_CONFIG"
DEFAULT_TIMEOUT = 10.0


@dataclass(slots=True)
class DispatcherSettings:
    host: str
    timeout: float | None = DEFAULT_TIMEOUT
    default_headers: dict[str, str] = field(default_factory=dict)


def _config_path(explicit: str | os.PathLike[str] | None = None) -> Path:
    candidate: Path
    if explicit:
        candidate = Path(explicit)
    else:
        env_value = os.environ.get(CONFIG_ENV_VAR)
        candidate = Path(env_value) if env_value else PROJECT_ROOT / DEFAULT_CONFIG_NAME
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _parse_timeout(value: Any) -> float | None:
    if value is None:
        return DEFAULT_TIMEOUT
    timeout = float(value)
    return timeout if timeout > 0 else None


def load_config(config_path: str | os.PathLike[str] | None = None) -> DispatcherSettings:
    path = _config_path(config_path)
    data = _load_toml(path)

    section = data.get("dispatcher", {})
    host = section.get("host")
    if not host:
        raise ValueError(f"[dispatcher] host is required in {path}")

    headers = section.get("headers", {})
    return DispatcherSettings(
        host=str(host),
        timeout=_parse_timeout(section.get("timeout")),
        default_headers={str(k): str(v) for k, v in headers.items()},
    )


def build_dispatcher(settings: DispatcherSettings) -> RequestDispatcher:
    return RequestDispatcher(
        settings.host,
        settings.default_headers,
        timeout=settings.timeout,
    )
