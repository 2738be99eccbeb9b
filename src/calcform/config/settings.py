"""Engine settings schema and loader.

Settings are read from a YAML file (``calcform.yaml`` in the working
directory, or the path in ``CALCFORM_CONFIG``). A ``.env`` file is loaded
first so environment overrides can live there too:

- ``CALCFORM_COMPUTATION_URL`` overrides ``computation_base_url``
- ``CALCFORM_DEFINITIONS_DIR`` overrides ``definitions_dir``
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "calcform.yaml"
PACKAGE_DEFINITIONS_DIR = Path(__file__).parent.parent / "data" / "calculators"

DEFAULT_MAIN_OUTPUT_PRIORITY = [
    "area",
    "volume",
    "perimeter",
    "percentageChange",
    "roots",
    "result",
    "value",
    "mean",
    "standardDeviation",
    "monthlyPayment",
    "netWorth",
    "total",
]


class EngineSettings(BaseModel):
    """Settings for the calculator form engine.

    Attributes:
        computation_base_url: Base URL of the computation endpoint.
        request_timeout_seconds: Timeout for one computation request.
        default_locale: Locale used when a definition is missing in the
            requested one.
        definitions_dir: Directory of calculator definition files.
        clearing_controllers: Input names that clear their dependents on
            change unless the input declares ``clears_dependents``.
        main_output_priority: Output names tried in order when picking the
            headline output of a generic result.
        currency_code: ISO code used by the currency formatter.
    """

    computation_base_url: str = Field(default="http://localhost:3000")
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    default_locale: str = Field(default="en", min_length=2)
    definitions_dir: Path = Field(default=PACKAGE_DEFINITIONS_DIR)
    clearing_controllers: List[str] = Field(default_factory=lambda: ["shape", "inputMode"])
    main_output_priority: List[str] = Field(
        default_factory=lambda: list(DEFAULT_MAIN_OUTPUT_PRIORITY)
    )
    currency_code: str = Field(default="USD", min_length=3, max_length=3)

    @field_validator("computation_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"computation_base_url must be an http(s) URL, got '{v}'")
        return v.rstrip("/")

    @field_validator("currency_code")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()


def _apply_env_overrides(data: dict) -> dict:
    url = os.getenv("CALCFORM_COMPUTATION_URL")
    if url:
        data["computation_base_url"] = url
    definitions_dir = os.getenv("CALCFORM_DEFINITIONS_DIR")
    if definitions_dir:
        data["definitions_dir"] = definitions_dir
    return data


def load_engine_settings(config_path: Optional[Path] = None) -> EngineSettings:
    """Load engine settings from YAML plus environment overrides.

    Args:
        config_path: Optional explicit path to the YAML file. Defaults to
            ``CALCFORM_CONFIG`` or ``./calcform.yaml``.

    Returns:
        EngineSettings. Defaults are used when no file exists.

    Raises:
        ValueError: If the file exists but is not valid YAML or holds
            invalid settings.
    """
    load_dotenv(Path.cwd() / ".env")

    if config_path is None:
        config_path = Path(os.getenv("CALCFORM_CONFIG", DEFAULT_CONFIG_FILENAME))

    data: dict = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in settings file {config_path}: {e}")

        if loaded is None:
            logger.warning(f"Empty settings file at {config_path}")
        elif not isinstance(loaded, dict):
            raise ValueError(f"Settings file {config_path} must contain a mapping")
        else:
            data = loaded
            logger.debug(f"Loaded engine settings from {config_path}")
    else:
        logger.debug(f"No settings file at {config_path}, using defaults")

    try:
        return EngineSettings.model_validate(_apply_env_overrides(data))
    except ValidationError as e:
        raise ValueError(f"Invalid engine settings in {config_path}: {e}")


# Cached settings (loaded once per process)
_cached_settings: Optional[EngineSettings] = None


def get_engine_settings(force_reload: bool = False) -> EngineSettings:
    """Get the current engine settings (cached).

    Args:
        force_reload: If True, reload from disk even if cached.
    """
    global _cached_settings

    if force_reload or _cached_settings is None:
        _cached_settings = load_engine_settings()

    return _cached_settings


def reset_engine_settings_cache() -> None:
    """Reset the settings cache so the next lookup reloads from disk."""
    global _cached_settings
    _cached_settings = None
