"""
Schedule Mutator: post-generation edits on an in-memory match list.

Operations mirror the schedule editor grid (time rows x field columns):

1. **Swap**: two placed matches exchange (time, field)
2. **Move**: a match is dropped on a cell; an occupant swaps into the source cell
3. **Shift**: re-timing one row shifts that row and every later row by the same delta

Matches are any objects with match_number, scheduled_time and field_number
(PlannedMatch or the Match table). Edits are applied in place and the changed
matches are returned, so the caller persists them with a single commit.

Team conflicts are NOT re-validated here. Callers may run
find_team_conflicts() afterwards and report the result to the operator.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from kickoff.services.schedule_errors import InputError


def _by_number(matches: Sequence[Any], match_number: int) -> Any:
    for match in matches:
        if match.match_number == match_number:
            return match
    raise InputError([f"Match {match_number} not found"])


def _is_placed(match: Any) -> bool:
    return match.scheduled_time is not None and match.field_number is not None


def swap_matches(matches: Sequence[Any], first_number: int, second_number: int) -> List[Any]:
    """
    Exchange the (time, field) cells of two matches.

    No-op (returns []) when either match is not placed on the timeline or
    both numbers are the same.
    """
    first = _by_number(matches, first_number)
    second = _by_number(matches, second_number)
    if first is second or not _is_placed(first) or not _is_placed(second):
        return []

    first_cell = (first.scheduled_time, first.field_number)
    first.scheduled_time, first.field_number = second.scheduled_time, second.field_number
    second.scheduled_time, second.field_number = first_cell
    return [first, second]


def move_match(
    matches: Sequence[Any],
    match_number: int,
    target_time: datetime,
    target_field: int,
) -> List[Any]:
    """
    Drop a match onto a cell.

    If another match occupies the cell the two are swapped; otherwise the
    match moves and its old cell stays empty.
    """
    if target_field < 1:
        raise InputError([f"Field number must be >= 1, got {target_field}"])

    match = _by_number(matches, match_number)
    occupant: Optional[Any] = None
    for other in matches:
        if other is not match and other.scheduled_time == target_time and other.field_number == target_field:
            occupant = other
            break

    if occupant is not None:
        return swap_matches(matches, match.match_number, occupant.match_number)

    if match.scheduled_time == target_time and match.field_number == target_field:
        return []
    match.scheduled_time = target_time
    match.field_number = target_field
    return [match]


def time_slots(matches: Sequence[Any]) -> List[datetime]:
    """Distinct scheduled times in ascending order."""
    return sorted({m.scheduled_time for m in matches if m.scheduled_time is not None})


def shift_time_slot(matches: Sequence[Any], slot_time: datetime, new_time: datetime) -> List[Any]:
    """
    Re-time the row at `slot_time` to `new_time`.

    Every match at or after `slot_time` moves by (new_time - slot_time); earlier
    matches are untouched. All new times are computed before any match is
    modified.

    Raises:
        InputError if no match is scheduled at `slot_time`
    """
    if not any(m.scheduled_time == slot_time for m in matches):
        raise InputError([f"No match scheduled at {slot_time:%Y-%m-%d %H:%M}"])

    delta: timedelta = new_time - slot_time
    if not delta:
        return []

    new_times: Dict[int, datetime] = {}
    for index, match in enumerate(matches):
        if match.scheduled_time is not None and match.scheduled_time >= slot_time:
            new_times[index] = match.scheduled_time + delta

    changed = []
    for index, shifted in new_times.items():
        matches[index].scheduled_time = shifted
        changed.append(matches[index])
    return changed
