"""Range aggregate functions: SUM, AVERAGE/AVG, COUNT, MIN, MAX."""

from __future__ import annotations

from re import Match
from typing import Iterable, Iterator

from sheetcalc.formulas.context import EvalContext
from sheetcalc.refs import CellRange, CellReference, parse_cell_ref, parse_range_obj


def range_refs(arg: str, ctx: EvalContext) -> Iterator[CellReference]:
    """Coordinates named by a range argument that lie inside the grid.

    A single reference counts as a 1x1 range; anything unparseable
    names no cells at all.  Cells past the grid edge are empty, so the
    range is clipped to the grid before it is walked.
    """
    arg = arg.strip()
    if ":" in arg:
        rng = parse_range_obj(arg)
    else:
        ref = parse_cell_ref(arg)
        rng = CellRange(ref, ref) if ref is not None else None
    if rng is not None:
        rng = rng.clipped(*ctx.bounds)
    return iter(rng) if rng is not None else iter(())


def _present(refs: Iterable[CellReference], ctx: EvalContext) -> list[CellReference]:
    return [ref for ref in refs if not ctx.is_empty(ref)]


def _fn_sum(m: Match[str], ctx: EvalContext) -> int | float:
    """SUM(range): missing and non-numeric cells add 0."""
    return sum(ctx.numeric(ref) for ref in range_refs(m.group(1), ctx))


def _fn_average(m: Match[str], ctx: EvalContext) -> int | float:
    """AVERAGE(range): mean over non-empty cells, 0 for an empty range."""
    refs = _present(range_refs(m.group(1), ctx), ctx)
    if not refs:
        return 0
    return sum(ctx.numeric(ref) for ref in refs) / len(refs)


def _fn_count(m: Match[str], ctx: EvalContext) -> int:
    """COUNT(range): number of non-empty cells."""
    return len(_present(range_refs(m.group(1), ctx), ctx))


def _fn_min(m: Match[str], ctx: EvalContext) -> int | float:
    refs = _present(range_refs(m.group(1), ctx), ctx)
    if not refs:
        return 0
    return min(ctx.numeric(ref) for ref in refs)


def _fn_max(m: Match[str], ctx: EvalContext) -> int | float:
    refs = _present(range_refs(m.group(1), ctx), ctx)
    if not refs:
        return 0
    return max(ctx.numeric(ref) for ref in refs)


RANGE_FUNCTIONS = {
    "SUM": _fn_sum,
    "AVERAGE": _fn_average,
    "COUNT": _fn_count,
    "MIN": _fn_min,
    "MAX": _fn_max,
}
