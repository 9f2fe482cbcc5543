"""Small-vocabulary spreadsheet formula evaluation.

Public API::

    from sheetcalc.formulas import evaluate, ERROR_MARKER
"""

from sheetcalc.formulas.context import CellSource, EvalContext
from sheetcalc.formulas.errors import (
    ENGINE_ERRORS,
    ERROR_MARKER,
    FormulaError,
    FormulaFunctionError,
    FormulaParseError,
    FormulaRefError,
)
from sheetcalc.formulas.evaluator import evaluate
from sheetcalc.formulas.parser import parse_arithmetic, split_args

__all__ = [
    "CellSource",
    "ENGINE_ERRORS",
    "ERROR_MARKER",
    "EvalContext",
    "FormulaError",
    "FormulaFunctionError",
    "FormulaParseError",
    "FormulaRefError",
    "evaluate",
    "parse_arithmetic",
    "split_args",
]
