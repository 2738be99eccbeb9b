"""
calcform - A declarative calculator form engine.

This package derives defaults, resolves conditional visibility, validates
input and interprets computation results for calculators described as data.
"""

__version__ = "0.1.0"

from calcform.runtime import CalculatorRegistry, FormSession, ResultInterpreter

__all__ = [
    "CalculatorRegistry",
    "FormSession",
    "ResultInterpreter",
]
