"""
Result Explanation Lookup - category-level prose for outputs.

Any calculator in a category shares the same explanation for an output name
(every finance ``monthlyPayment`` gets the same budgeting note). The table
is YAML shipped with the package:

    finance:
      monthlyPayment:
        text: "..."
    health:
      bmi:
        bands:
          - below: 18.5
            text: "..."
          - text: "..."      # no bound: catch-all

Bands are tried in order; the first whose ``below`` exceeds the value wins.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from calcform.runtime.validators import parse_number
from calcform.schemas.calculator import CalculatorCategory
from calcform.schemas.errors import SchemaLoadError

logger = logging.getLogger(__name__)

DEFAULT_EXPLANATIONS_PATH = Path(__file__).parent.parent / "data" / "result_explanations.yaml"


class ExplanationBand(BaseModel):
    model_config = ConfigDict(frozen=True)

    below: Optional[float] = None
    text: str


class ExplanationEntry(BaseModel):
    """Explanation for one (category, output) pair: fixed text or bands."""

    model_config = ConfigDict(frozen=True)

    text: Optional[str] = None
    bands: List[ExplanationBand] = []

    @model_validator(mode="after")
    def check_text_or_bands(self) -> "ExplanationEntry":
        if self.text is None and not self.bands:
            raise ValueError("explanation entry needs 'text' or 'bands'")
        return self

    def select(self, value: Any) -> Optional[str]:
        if self.bands:
            number = parse_number(value)
            if number is not None:
                for band in self.bands:
                    if band.below is None or number < band.below:
                        return band.text
        return self.text


class ResultExplanationLookup:
    """
    Looks up generic prose by (category, output name, value).

    Args:
        table: Parsed table ``{category: {output_name: entry}}``
    """

    def __init__(self, table: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._entries: Dict[str, Dict[str, ExplanationEntry]] = {}
        for category, outputs in (table or {}).items():
            try:
                self._entries[str(category)] = {
                    str(name): ExplanationEntry.model_validate(entry)
                    for name, entry in (outputs or {}).items()
                }
            except (ValidationError, AttributeError) as e:
                raise SchemaLoadError(f"Invalid explanations for category '{category}': {e}")

    @classmethod
    def from_yaml(cls, path: Path = DEFAULT_EXPLANATIONS_PATH) -> "ResultExplanationLookup":
        """
        Load the lookup table from a YAML file.

        Raises:
            SchemaLoadError: If the file is missing, unreadable or malformed
        """
        if not path.exists():
            raise SchemaLoadError(f"Explanation table not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                table = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise SchemaLoadError(f"Invalid YAML in explanation table {path}: {e}")
        if not isinstance(table, dict):
            raise SchemaLoadError(f"Explanation table {path} must contain a mapping")

        lookup = cls(table)
        logger.debug(f"Loaded {lookup.entry_count} result explanations from {path}")
        return lookup

    @property
    def entry_count(self) -> int:
        return sum(len(outputs) for outputs in self._entries.values())

    def explain(
        self,
        category: Union[CalculatorCategory, str],
        output_name: str,
        value: Any,
    ) -> Optional[str]:
        """
        Explanation text for one output value.

        Returns:
            Prose, or None when there is no entry or no value
        """
        if value is None:
            return None
        key = category.value if isinstance(category, CalculatorCategory) else str(category)
        entry = self._entries.get(key, {}).get(output_name)
        if entry is None:
            return None
        return entry.select(value)
