"""
Loading calculator definitions from YAML/JSON files.

Definitions live in one directory per locale:

    <definitions_dir>/
        en/area-calculator.yaml
        ru/area-calculator.yaml

``CalculatorRegistry`` looks a calculator up by id and locale. When the
requested locale has no file it falls back to the default locale and marks
the definition with ``content_locale`` so the page can tell the user the
text is not translated.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from calcform.runtime.visibility import find_visibility_chains
from calcform.schemas.calculator import CalculatorDefinition
from calcform.schemas.errors import SchemaLoadError

logger = logging.getLogger(__name__)

DEFINITION_SUFFIXES = (".yaml", ".yml", ".json")


def load_definition(file_path: Union[str, Path]) -> CalculatorDefinition:
    """
    Load and validate one calculator definition file.

    Args:
        file_path: Path to a ``.yaml``, ``.yml`` or ``.json`` file

    Returns:
        Validated, frozen CalculatorDefinition

    Raises:
        SchemaLoadError: If the file cannot be read, parsed or validated
    """
    path = Path(file_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except FileNotFoundError:
        raise SchemaLoadError(f"Definition file not found: {path}")
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invalid JSON in definition file {path}: {e}")
    except yaml.YAMLError as e:
        raise SchemaLoadError(f"Invalid YAML in definition file {path}: {e}")

    if not isinstance(data, dict):
        raise SchemaLoadError(f"Definition file {path} must contain a mapping")

    try:
        definition = CalculatorDefinition.model_validate(data)
    except ValidationError as e:
        raise SchemaLoadError(f"Invalid calculator definition in {path}: {e}")

    for name, controller in find_visibility_chains(definition.inputs):
        logger.warning(
            f"{definition.id}: input '{name}' depends on '{controller}', which is itself "
            f"conditional; visibility is evaluated one level only"
        )

    return definition


class CalculatorRegistry:
    """
    Locale-aware lookup over a directory of definition files.

    Args:
        definitions_dir: Root directory holding one sub-directory per locale
        default_locale: Locale used when the requested one has no file
    """

    def __init__(self, definitions_dir: Union[str, Path], default_locale: str = "en"):
        self.definitions_dir = Path(definitions_dir)
        self.default_locale = default_locale
        self._cache: Dict[Tuple[str, str], Optional[CalculatorDefinition]] = {}

    def _find_file(self, calculator_id: str, locale: str) -> Optional[Path]:
        locale_dir = self.definitions_dir / locale
        for suffix in DEFINITION_SUFFIXES:
            candidate = locale_dir / f"{calculator_id}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def iter_files(self, locale: Optional[str] = None) -> Iterator[Tuple[str, Path]]:
        """Yield ``(locale, path)`` for every definition file, sorted."""
        if not self.definitions_dir.is_dir():
            return
        locale_dirs = sorted(p for p in self.definitions_dir.iterdir() if p.is_dir())
        for locale_dir in locale_dirs:
            if locale is not None and locale_dir.name != locale:
                continue
            for path in sorted(locale_dir.iterdir()):
                if path.suffix in DEFINITION_SUFFIXES:
                    yield locale_dir.name, path

    def get_by_id(self, calculator_id: str, locale: Optional[str] = None) -> Optional[CalculatorDefinition]:
        """
        Look up a calculator.

        Args:
            calculator_id: Calculator id (file stem)
            locale: Requested locale (defaults to the registry default)

        Returns:
            The definition, or None when it does not exist or is disabled

        Raises:
            SchemaLoadError: If the file exists but is invalid
        """
        locale = locale or self.default_locale
        key = (calculator_id, locale)
        if key in self._cache:
            return self._cache[key]

        path = self._find_file(calculator_id, locale)
        content_locale = locale
        if path is None and locale != self.default_locale:
            path = self._find_file(calculator_id, self.default_locale)
            content_locale = self.default_locale
            if path is not None:
                logger.debug(f"{calculator_id}: no '{locale}' definition, using '{self.default_locale}'")

        definition = None
        if path is not None:
            loaded = load_definition(path)
            if loaded.id != calculator_id:
                raise SchemaLoadError(f"Definition {path} declares id '{loaded.id}', expected '{calculator_id}'")
            if loaded.is_enabled:
                definition = loaded.model_copy(update={"locale": locale, "content_locale": content_locale})
                logger.debug(f"Loaded {calculator_id} ({locale}) from {path}")
            else:
                logger.debug(f"{calculator_id} is disabled")

        self._cache[key] = definition
        return definition

    def list_ids(self, locale: Optional[str] = None) -> List[str]:
        """Ids of enabled calculators available in ``locale`` (with fallback)."""
        locale = locale or self.default_locale
        stems = {
            path.stem
            for file_locale, path in self.iter_files()
            if file_locale in (locale, self.default_locale)
        }
        return sorted(stem for stem in stems if self.get_by_id(stem, locale) is not None)

    def clear_cache(self) -> None:
        self._cache.clear()
