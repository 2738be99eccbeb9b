"""Engine configuration management."""

from calcform.config.settings import (
    EngineSettings,
    get_engine_settings,
    load_engine_settings,
    reset_engine_settings_cache,
)

__all__ = [
    "EngineSettings",
    "get_engine_settings",
    "load_engine_settings",
    "reset_engine_settings_cache",
]
