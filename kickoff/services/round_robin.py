"""
Round Robin Generator

Single round-robin pairings for one group, using the circle method:

- Odd team count: an explicit BYE seat is appended so the seat count is even.
- The last seat stays fixed, every other seat rotates one step per round.
- Seat i plays seat (total - 1 - i); a pairing with the BYE seat is dropped,
  so its counterpart sits out that round.

Even n: n-1 rounds of n/2 matches. Odd n: n rounds of (n-1)/2 matches, and
every team has exactly one bye.
"""

from enum import Enum
from typing import Hashable, List, Sequence, Tuple, Union

TeamKey = Hashable
Pairing = Tuple[TeamKey, TeamKey]


class Seat(Enum):
    """Synthetic seat used to even out an odd group."""

    BYE = "bye"


SeatValue = Union[TeamKey, Seat]


def rr_round_count(team_count: int) -> int:
    """Even n: n-1 rounds. Odd n: n rounds (with BYE)."""
    if team_count < 2:
        return 0
    if team_count % 2 == 0:
        return team_count - 1
    return team_count


def rr_match_count(team_count: int) -> int:
    """Round robin match count: n * (n-1) / 2"""
    if team_count < 2:
        return 0
    return (team_count * (team_count - 1)) // 2


def round_robin_rounds(team_ids: Sequence[TeamKey]) -> List[List[Pairing]]:
    """
    Build the rounds of a single round robin.

    Args:
        team_ids: Ordered team identifiers of one group

    Returns:
        List of rounds; each round is a list of (home, away) pairs.
        Fewer than two teams returns an empty list; callers report that as
        an input error instead of skipping the group.
    """
    if len(team_ids) < 2:
        return []

    seats: List[SeatValue] = list(team_ids)
    if len(seats) % 2 == 1:
        seats.append(Seat.BYE)

    total = len(seats)
    rotating = total - 1
    half = total // 2

    rounds: List[List[Pairing]] = []
    for round_idx in range(rotating):
        pairings: List[Pairing] = []
        for i in range(half):
            away = seats[(rotating - i + round_idx) % rotating]
            if i == 0:
                # Fixed seat meets the rotating seat at the top of the circle
                home = seats[total - 1]
            else:
                home = seats[(round_idx + i) % rotating]
            if home is Seat.BYE or away is Seat.BYE:
                continue
            pairings.append((home, away))
        rounds.append(pairings)

    return rounds

