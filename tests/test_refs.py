"""Tests for A1-style references and ranges."""

from __future__ import annotations

import pytest

from sheetcalc.refs import (
    CellRange,
    CellReference,
    col_letter_to_index,
    format_ref,
    index_to_col_letter,
    parse_cell_ref,
    parse_range,
    parse_range_obj,
)


# ────────────────────────────────────────────────────────────────
# Column letters
# ────────────────────────────────────────────────────────────────


class TestColumnLetters:
    def test_col_letter_to_index(self) -> None:
        assert col_letter_to_index("A") == 0
        assert col_letter_to_index("B") == 1
        assert col_letter_to_index("Z") == 25
        assert col_letter_to_index("AA") == 26
        assert col_letter_to_index("AZ") == 51
        assert col_letter_to_index("BA") == 52

    def test_index_to_col_letter(self) -> None:
        assert index_to_col_letter(0) == "A"
        assert index_to_col_letter(25) == "Z"
        assert index_to_col_letter(26) == "AA"
        assert index_to_col_letter(701) == "ZZ"
        assert index_to_col_letter(702) == "AAA"

    def test_roundtrip(self) -> None:
        for i in range(800):
            assert col_letter_to_index(index_to_col_letter(i)) == i

    def test_negative_index_rejected(self) -> None:
        with pytest.raises(ValueError):
            index_to_col_letter(-1)


# ────────────────────────────────────────────────────────────────
# Cell references
# ────────────────────────────────────────────────────────────────


class TestParseCellRef:
    def test_parse(self) -> None:
        assert parse_cell_ref("A1") == CellReference(0, 0)
        assert parse_cell_ref("B3") == CellReference(1, 2)
        assert parse_cell_ref("AA10") == (26, 9)

    def test_lowercase_accepted(self) -> None:
        assert parse_cell_ref("c4") == CellReference(2, 3)

    @pytest.mark.parametrize("label", ["", "1A", "A", "12", "A-1", "A1B", "A0", "$A$1"])
    def test_invalid(self, label: str) -> None:
        assert parse_cell_ref(label) is None

    @pytest.mark.parametrize("label", ["A1", "Z99", "AA10", "XFD1048576", "BC7"])
    def test_format_roundtrip(self, label: str) -> None:
        assert format_ref(parse_cell_ref(label)) == label

    def test_format_ref(self) -> None:
        assert format_ref((0, 0)) == "A1"
        assert format_ref(CellReference(27, 4)) == "AB5"


# ────────────────────────────────────────────────────────────────
# Ranges
# ────────────────────────────────────────────────────────────────


class TestParseRange:
    def test_two_by_two(self) -> None:
        assert set(parse_range("A1:B2")) == {(0, 0), (1, 0), (0, 1), (1, 1)}
        assert len(parse_range("A1:B2")) == 4

    def test_corner_order_irrelevant(self) -> None:
        assert parse_range("B2:A1") == parse_range("A1:B2")
        assert parse_range("A2:B1") == parse_range("A1:B2")

    def test_row_major_order(self) -> None:
        assert parse_range("A1:B2") == [(0, 0), (1, 0), (0, 1), (1, 1)]

    def test_single_cell_range(self) -> None:
        assert parse_range("C3:C3") == [CellReference(2, 2)]

    @pytest.mark.parametrize("label", ["A1", "A1:B2:C3", "A1:", ":B2", "A1-B2", "X:Y"])
    def test_invalid(self, label: str) -> None:
        assert parse_range(label) == []

    def test_range_object(self) -> None:
        rng = parse_range_obj("C5:A2")
        assert isinstance(rng, CellRange)
        assert (rng.min_col, rng.max_col, rng.min_row, rng.max_row) == (0, 2, 1, 4)
        assert len(rng) == 12
        assert (1, 3) in rng
        assert (3, 3) not in rng
        assert repr(rng) == "CellRange(C5:A2)"

    def test_clipped(self) -> None:
        rng = parse_range_obj("B2:XFD1048576").clipped(10, 5)
        assert (rng.min_col, rng.max_col, rng.min_row, rng.max_row) == (1, 9, 1, 4)
        assert len(list(rng)) == 36
        assert parse_range_obj("A1:C2").clipped(10, 5).max_col == 2
        assert parse_range_obj("K1:K3").clipped(10, 5) is None
        assert parse_range_obj("A9:B9").clipped(10, 5) is None
