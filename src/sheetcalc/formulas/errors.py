"""Exceptions raised while evaluating a formula.

They stay inside the formula package: :func:`~sheetcalc.formulas.evaluate`
turns every one of them into :data:`ERROR_MARKER`.
"""

from __future__ import annotations

ERROR_MARKER = "#ERROR"


class FormulaError(Exception):
    """A formula that cannot produce a value."""


class FormulaParseError(FormulaError):
    """Malformed formula text; *position* is a 0-based column when known."""

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        where = "" if position is None else f" at {position}"
        super().__init__(f"cannot parse formula{where}: {message}")


class FormulaRefError(FormulaError):
    """A reference that cannot be used, such as one re-entered mid-evaluation."""

    def __init__(self, ref_name: str, message: str | None = None) -> None:
        self.ref_name = ref_name
        super().__init__(message or f"bad reference {ref_name}")


class FormulaFunctionError(FormulaError):
    """A function called with arguments it does not accept."""

    def __init__(self, func_name: str, message: str | None = None) -> None:
        self.func_name = func_name
        super().__init__(message or f"{func_name}: unsupported call")


# Everything the evaluator turns into ERROR_MARKER.
ENGINE_ERRORS: tuple[type[BaseException], ...] = (
    FormulaError,
    ArithmeticError,
    ValueError,
    TypeError,
    RecursionError,
    MemoryError,
)
