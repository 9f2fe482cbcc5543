"""Parsing helpers for the formula vocabulary.

Supports:
- A lark grammar for plain arithmetic (numbers, ``+ - * /``, unary sign,
  parentheses), used once cell references have been substituted
- Top-level argument splitting that respects parentheses and quoted strings
- Splitting an ``IF`` condition into ``(left, operator, right)``
"""

from __future__ import annotations

import re

from lark import Lark, Tree

from sheetcalc.formulas.errors import FormulaParseError

# LALR(1) grammar for the substituted arithmetic expression.
# Operator precedence (lowest to highest):
#   1. Addition/subtraction: + -
#   2. Multiplication/division: * /
#   3. Unary plus/minus: + -
#   4. Atoms: number, parenthesized expr
GRAMMAR = r"""
start: expr

?expr: addition

?addition: multiplication
    | addition "+" multiplication  -> add
    | addition "-" multiplication  -> sub

?multiplication: unary
    | multiplication "*" unary  -> mul
    | multiplication "/" unary  -> div

?unary: atom
    | "-" unary  -> neg
    | "+" unary  -> pos

?atom: NUMBER               -> number
    | "(" expr ")"

NUMBER: /[0-9]+\.?[0-9]*|\.[0-9]+/

%import common.WS
%ignore WS
"""

_parser = Lark(GRAMMAR, parser="lalr", start="start")

# Only these characters may survive reference substitution.
ARITHMETIC_CHARS_RE = re.compile(r"^[0-9\s+\-*/().]+$")

# Two-character operators first so ">=" is not read as ">".
COMPARISON_OPERATORS = (">=", "<=", "<>", "!=", ">", "<", "=")


def parse_arithmetic(text: str) -> Tree:
    """Parse a substituted arithmetic expression into a Lark Tree.

    Args:
        text: Expression text without the leading ``=``, e.g. ``"(1)+(2)*3"``.

    Raises:
        FormulaParseError: If the text holds anything but numbers, operators
            and parentheses, or is not a well-formed expression.
    """
    if not ARITHMETIC_CHARS_RE.match(text):
        raise FormulaParseError(f"Unsafe characters in expression: {text!r}")
    try:
        return _parser.parse(text)
    except Exception as exc:
        pos = getattr(exc, "column", None)
        raise FormulaParseError(str(exc), position=pos) from exc


def split_args(text: str) -> list[str]:
    """Split a function argument list on top-level commas only.

    Commas inside nested parentheses or double-quoted strings do not split.
    ``""`` inside a string is an escaped quote.  Arguments are stripped.

    Raises:
        FormulaParseError: On unbalanced parentheses or an unterminated string.
    """
    args: list[str] = []
    depth = 0
    in_string = False
    current: list[str] = []
    for pos, ch in enumerate(text):
        if ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth < 0:
                    raise FormulaParseError("Unbalanced ')'", position=pos)
            elif ch == "," and depth == 0:
                args.append("".join(current).strip())
                current = []
                continue
        current.append(ch)
    if in_string:
        raise FormulaParseError("Unterminated string literal")
    if depth != 0:
        raise FormulaParseError("Unbalanced '('")
    args.append("".join(current).strip())
    if args == [""]:
        return []
    return args


def split_comparison(text: str) -> tuple[str, str, str]:
    """Split ``"A1>=5"`` into ``("A1", ">=", "5")``.

    The first top-level operator outside quotes and parentheses wins.

    Raises:
        FormulaParseError: If no comparison operator is present.
    """
    depth = 0
    in_string = False
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '"':
            in_string = not in_string
        elif not in_string:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
            elif depth == 0:
                for op in COMPARISON_OPERATORS:
                    if text.startswith(op, i):
                        return text[:i].strip(), op, text[i + len(op):].strip()
        i += 1
    raise FormulaParseError(f"No comparison operator in condition: {text!r}")


def is_string_literal(text: str) -> bool:
    return len(text) >= 2 and text[0] == '"' and text[-1] == '"'


def unquote(text: str) -> str:
    """Strip the surrounding quotes of a string literal and unescape ``""``."""
    return text[1:-1].replace('""', '"')
