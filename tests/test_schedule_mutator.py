"""
Tests for schedule editing: swap, move (drag and drop) and slot shifting.
"""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from kickoff.services.schedule_errors import InputError
from kickoff.services.schedule_mutator import move_match, shift_time_slot, swap_matches, time_slots


def _at(hh, mm):
    return datetime(2026, 5, 2, hh, mm)


def _grid():
    """Two fields, three rows (09:00, 09:25, 09:50), one empty cell at 09:50 field 2."""
    cells = [
        (_at(9, 0), 1), (_at(9, 0), 2),
        (_at(9, 25), 1), (_at(9, 25), 2),
        (_at(9, 50), 1),
    ]
    return [
        SimpleNamespace(match_number=n, scheduled_time=t, field_number=f)
        for n, (t, f) in enumerate(cells, start=1)
    ]


def _cell(matches, number):
    match = next(m for m in matches if m.match_number == number)
    return match.scheduled_time, match.field_number


class TestSwap:
    def test_exchanges_cells(self):
        matches = _grid()
        changed = swap_matches(matches, 1, 4)

        assert {m.match_number for m in changed} == {1, 4}
        assert _cell(matches, 1) == (_at(9, 25), 2)
        assert _cell(matches, 4) == (_at(9, 0), 1)

    def test_unplaced_match_is_noop(self):
        matches = _grid()
        matches[0].scheduled_time = None
        assert swap_matches(matches, 1, 2) == []
        assert _cell(matches, 2) == (_at(9, 0), 2)

    def test_same_match_is_noop(self):
        assert swap_matches(_grid(), 3, 3) == []

    def test_unknown_match(self):
        with pytest.raises(InputError):
            swap_matches(_grid(), 1, 99)


class TestMove:
    def test_onto_occupied_cell_swaps(self):
        matches = _grid()
        changed = move_match(matches, 5, _at(9, 0), 2)

        assert {m.match_number for m in changed} == {2, 5}
        assert _cell(matches, 5) == (_at(9, 0), 2)
        assert _cell(matches, 2) == (_at(9, 50), 1)

    def test_onto_empty_cell_moves(self):
        matches = _grid()
        changed = move_match(matches, 1, _at(9, 50), 2)

        assert [m.match_number for m in changed] == [1]
        assert _cell(matches, 1) == (_at(9, 50), 2)

    def test_onto_own_cell_is_noop(self):
        assert move_match(_grid(), 3, _at(9, 25), 1) == []

    def test_invalid_field(self):
        with pytest.raises(InputError):
            move_match(_grid(), 1, _at(9, 0), 0)


class TestShift:
    def test_shift_cascades_to_later_rows(self):
        matches = _grid()
        changed = shift_time_slot(matches, _at(9, 25), _at(9, 40))

        assert {m.match_number for m in changed} == {3, 4, 5}
        assert time_slots(matches) == [_at(9, 0), _at(9, 40), _at(10, 5)]

    def test_first_row_shift_keeps_gaps(self):
        matches = _grid()
        before = [m.scheduled_time for m in matches]
        shift_time_slot(matches, _at(9, 0), _at(9, 15))

        assert [m.scheduled_time for m in matches] == [t + timedelta(minutes=15) for t in before]
        assert _cell(matches, 1) == (_at(9, 15), 1)

    def test_shift_backwards(self):
        matches = _grid()
        shift_time_slot(matches, _at(9, 50), _at(9, 45))
        assert time_slots(matches) == [_at(9, 0), _at(9, 25), _at(9, 45)]

    def test_zero_delta(self):
        assert shift_time_slot(_grid(), _at(9, 0), _at(9, 0)) == []

    def test_unknown_slot(self):
        matches = _grid()
        with pytest.raises(InputError):
            shift_time_slot(matches, _at(9, 10), _at(9, 30))
        assert time_slots(matches) == [_at(9, 0), _at(9, 25), _at(9, 50)]
