"""Settings package exports."""

from .loader import (
    CONFIG_ENV_VAR,
    DispatcherSettings,
    build_dispatcher,
    load_config,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "DispatcherSettings",
    "build_dispatcher",
    "load_config",
]
