"""Cell model and input type detection.

A committed edit is classified once, at write time, into a typed
:class:`Cell`.  Formulas are stored as source and evaluated at display time.
"""

from __future__ import annotations

import datetime
import math
import re
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class CellType(str, Enum):
    text = "text"
    number = "number"
    currency = "currency"
    date = "date"
    checkbox = "checkbox"
    formula = "formula"


CellValue = bool | int | float | str | None

CURRENCY_SYMBOLS = "$€£"

_CURRENCY_RE = re.compile(r"^([$€£])([0-9,]+\.?[0-9]*)$")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_US_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}/(\d{2}|\d{4})$")

_UNCHECKED = {"[]", "[ ]"}
_CHECKED = {"[x]", "[X]"}


class Cell(BaseModel):
    """Content of one grid position.

    Cells are immutable; every edit replaces the cell object, so a cell can
    be handed to presentation code without exposing engine state.
    """

    model_config = ConfigDict(frozen=True)

    value: CellValue = None
    type: CellType = CellType.text
    formula: str | None = None
    format: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("type", CellType.text) == CellType.formula:
            source = data.get("formula") or data.get("value")
            if isinstance(source, str) and source:
                data["value"] = data["formula"] = source
                return data
            data["type"] = CellType.text
        data.pop("formula", None)
        if data.get("value") is None:
            data["type"] = CellType.text
            data.pop("format", None)
        return data

    @property
    def is_empty(self) -> bool:
        return self.value is None

    @property
    def source(self) -> str | None:
        """Formula source for formula cells (or string values starting with ``=``)."""
        if self.formula:
            return self.formula
        if isinstance(self.value, str) and self.value.startswith("="):
            return self.value
        return None


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def parse_number(text: str) -> int | float | None:
    """Parse a number after stripping thousands separators, or return None.

    Values that overflow a float are not numbers.
    """
    cleaned = text.replace(",", "")
    if not _NUMBER_RE.match(cleaned):
        return None
    if "." in cleaned or "e" in cleaned.lower():
        number = float(cleaned)
        return number if math.isfinite(number) else None
    return int(cleaned)


def parse_date(text: str) -> datetime.date | None:
    """Parse ``YYYY-MM-DD`` or ``M/D/YY[YY]``; None if not a real calendar date."""
    text = text.strip()
    try:
        if _ISO_DATE_RE.match(text):
            return datetime.date.fromisoformat(text)
        m = _US_DATE_RE.match(text)
        if m:
            fmt = "%m/%d/%Y" if len(m.group(1)) == 4 else "%m/%d/%y"
            return datetime.datetime.strptime(text, fmt).date()
    except ValueError:
        return None
    return None


def detect(raw: str) -> tuple[CellValue, CellType]:
    """Classify raw user input into ``(value, type)``.

    Checkbox and formula prefixes are checked before any numeric pattern,
    so ``=A1+1`` is never taken for a number.
    """
    text = raw.strip()
    if not text:
        return None, CellType.text
    if text in _UNCHECKED:
        return False, CellType.checkbox
    if text in _CHECKED:
        return True, CellType.checkbox
    if text.startswith("="):
        return text, CellType.formula

    m = _CURRENCY_RE.match(text)
    if m:
        digits = m.group(2).replace(",", "")
        if digits and digits != "." and math.isfinite(float(digits)):
            return float(digits), CellType.currency

    number = parse_number(text)
    if number is not None:
        return number, CellType.number

    if parse_date(text) is not None:
        return text, CellType.date

    return raw, CellType.text


def currency_format(symbol: str) -> str:
    """Format hint for a currency cell; ``$`` is the implicit default."""
    return "currency" if symbol == "$" else f"currency:{symbol}"


def currency_symbol(fmt: str | None, default: str = "$") -> str | None:
    """Symbol named by a format hint, or None if the hint is not a currency."""
    if not fmt or not fmt.startswith("currency"):
        return None
    _, _, symbol = fmt.partition(":")
    return symbol or default


def make_cell(raw: str) -> Cell | None:
    """Build the cell stored for a committed edit; None clears the position."""
    value, cell_type = detect(raw)
    if value is None:
        return None
    if cell_type == CellType.formula:
        return Cell(value=value, type=cell_type, formula=value)
    if cell_type == CellType.currency:
        return Cell(value=value, type=cell_type, format=currency_format(raw.strip()[0]))
    return Cell(value=value, type=cell_type)


def raw_input(cell: Cell | None) -> str:
    """Text that re-creates *cell* when committed (edit-mode population)."""
    if cell is None or cell.value is None:
        return ""
    if cell.formula:
        return cell.formula
    if isinstance(cell.value, bool):
        return "[x]" if cell.value else "[ ]"
    if cell.type == CellType.currency and isinstance(cell.value, (int, float)):
        symbol = currency_symbol(cell.format) or "$"
        return f"{symbol}{number_text(cell.value)}"
    if isinstance(cell.value, (int, float)):
        return number_text(cell.value)
    return str(cell.value)


# ---------------------------------------------------------------------------
# Numeric coercion
# ---------------------------------------------------------------------------


def number_text(value: int | float) -> str:
    """Plain text for a number: no grouping, no exponent, ``5.0`` -> ``5``."""
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        text = repr(value)
        if "e" in text or "E" in text:
            text = format(Decimal(text), "f")
        return text
    return str(value)


def coerce_text(text: str) -> int | float:
    """Leading number in *text* after dropping currency symbols and separators.

    ``"$1,200"`` -> 1200, ``"12 apples"`` -> 12, ``"x"`` -> 0.
    """
    cleaned = text.strip()
    for ch in CURRENCY_SYMBOLS + ",":
        cleaned = cleaned.replace(ch, "")
    m = _LEADING_NUMBER_RE.match(cleaned.strip())
    if not m:
        return 0
    number = parse_number(m.group(0))
    return 0 if number is None else number


def coerce_value(value: Any) -> int | float:
    """Numeric value of a stored (non-formula) value, 0 on failure or None."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value
    return coerce_text(str(value))


def format_date(value: datetime.date) -> str:
    """Render a date as ``M/D/YYYY``."""
    return f"{value.month}/{value.day}/{value.year}"
