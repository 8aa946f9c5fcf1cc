"""
Bracket Builder: single elimination brackets for the knockout phase.

The bracket is built from seed slots only; which concrete team fills a slot
is decided later from group standings (see advancement_service).

Seeding:
    Qualifiers are enumerated by finishing position first, group second, so
    every group winner is seeded ahead of any runner-up:
        1st Group A, 1st Group B, 2nd Group A, 2nd Group B, ...

    Bracket size is the next power of two. Seed positions follow the
    standard recursive layout ([1] -> [1, 2] -> [1, 4, 2, 3] -> ...), which
    pairs 1 vs last, 2 vs second-last and keeps top seeds apart.

Byes:
    Seeds beyond the qualifier count are empty. A slot facing an empty slot
    advances without a match; this repeats in later rounds if needed.
    Rounds without any concrete pairing are omitted.

Forward references:
    Every concrete pairing is keyed by BracketRef(category_id, round_index,
    position). A pairing in a later round that is fed by an earlier match
    holds that key as its side until a match number is known.
"""

import logging
from dataclasses import dataclass, field
from typing import Hashable, List, NamedTuple, Optional, Sequence, Tuple, Union

from kickoff.services.schedule_errors import InputError

logger = logging.getLogger(__name__)

# =============================================================================
# Round naming
# =============================================================================

ROUND_FINAL = "final"
ROUND_SEMIFINAL = "semifinal"
ROUND_QUARTERFINAL = "quarterfinal"
ROUND_OF_16 = "round_of_16"
ROUND_OF_32 = "round_of_32"

ROUND_LABELS = {
    ROUND_FINAL: "Final",
    ROUND_SEMIFINAL: "Semifinal",
    ROUND_QUARTERFINAL: "Quarterfinal",
    ROUND_OF_16: "Round of 16",
    ROUND_OF_32: "Round of 32",
}

MAX_NAMED_SLOTS = 32


def round_label(name: str) -> str:
    """Display name of a knockout round tag."""
    return ROUND_LABELS.get(name, "Knockout")


def round_name(slots_in_round: int) -> str:
    """Round tag for a round entered by `slots_in_round` teams."""
    if slots_in_round == 2:
        return ROUND_FINAL
    if slots_in_round == 4:
        return ROUND_SEMIFINAL
    if slots_in_round == 8:
        return ROUND_QUARTERFINAL
    if slots_in_round == 16:
        return ROUND_OF_16
    if slots_in_round > MAX_NAMED_SLOTS:
        # No names are defined past the round of 32
        logger.warning("No round name for %d slots; using %s", slots_in_round, ROUND_OF_32)
    return ROUND_OF_32


# =============================================================================
# Bracket types
# =============================================================================


class BracketRef(NamedTuple):
    """Forward reference to the winner of a bracket pairing."""

    category_id: Hashable
    round_index: int
    position: int


class SeedSource(NamedTuple):
    """Finishing position in a group (1-based)."""

    group_id: Hashable
    position: int


@dataclass(frozen=True)
class SeedSlot:
    label: str
    source: Optional[SeedSource] = None


Side = Union[SeedSlot, BracketRef]


@dataclass
class BracketPairing:
    key: BracketRef
    home: Side
    away: Side

    def depends_on_round(self, round_index: int) -> bool:
        """True if either side is the winner of a pairing in `round_index`."""
        return any(isinstance(side, BracketRef) and side.round_index == round_index for side in (self.home, self.away))


@dataclass
class BracketRound:
    round_index: int
    name: str
    pairings: List[BracketPairing]


@dataclass
class Bracket:
    category_id: Hashable
    qualifier_count: int
    bracket_size: int
    rounds: List[BracketRound]
    byes: List[SeedSlot] = field(default_factory=list)

    @property
    def match_count(self) -> int:
        return sum(len(r.pairings) for r in self.rounds)


# =============================================================================
# Seeding helpers
# =============================================================================


def ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def next_power_of_two(n: int) -> int:
    size = 1
    while size < n:
        size *= 2
    return size


def seeding_positions(size: int) -> List[int]:
    """
    Standard bracket seed order for a power-of-two `size`.

    Consecutive entries meet in the first round:
        seeding_positions(8) == [1, 8, 4, 5, 2, 7, 3, 6]
    """
    if size < 1 or size & (size - 1):
        raise ValueError(f"bracket size must be a power of two, got {size}")

    positions = [1]
    while len(positions) < size:
        doubled = len(positions) * 2
        positions = [q for p in positions for q in (p, doubled + 1 - p)]
    return positions


def seed_slots(groups: Sequence[Tuple[Hashable, str]], advancing_per_group: int) -> List[SeedSlot]:
    """
    Seed labels for a category: position first, group second.

    Args:
        groups: (group_id, group_name) in bracket order
        advancing_per_group: Teams taken from each group
    """
    slots: List[SeedSlot] = []
    for pos in range(1, advancing_per_group + 1):
        for group_id, group_name in groups:
            slots.append(SeedSlot(label=f"{ordinal(pos)} {group_name}", source=SeedSource(group_id, pos)))
    return slots


# =============================================================================
# Bracket construction
# =============================================================================


def build_bracket(category_id: Hashable, seeds: Sequence[SeedSlot]) -> Bracket:
    """
    Build a single elimination bracket for the given seeds (best first).

    Raises:
        InputError if fewer than two seeds are given
    """
    qualifier_count = len(seeds)
    if qualifier_count < 2:
        raise InputError(
            [f"Category {category_id}: knockout phase needs at least 2 qualifiers, got {qualifier_count}"]
        )

    size = next_power_of_two(qualifier_count)
    slots: List[Optional[Side]] = [
        seeds[p - 1] if p <= qualifier_count else None for p in seeding_positions(size)
    ]

    rounds: List[BracketRound] = []
    byes: List[SeedSlot] = []
    round_index = 0

    while len(slots) > 1:
        name = round_name(len(slots))
        pairings: List[BracketPairing] = []
        next_slots: List[Optional[Side]] = []

        for position in range(len(slots) // 2):
            home, away = slots[2 * position], slots[2 * position + 1]
            if home is None or away is None:
                advancing = home if home is not None else away
                if isinstance(advancing, SeedSlot):
                    byes.append(advancing)
                next_slots.append(advancing)
                continue

            key = BracketRef(category_id, round_index, position)
            pairings.append(BracketPairing(key=key, home=home, away=away))
            next_slots.append(key)

        if pairings:
            rounds.append(BracketRound(round_index=round_index, name=name, pairings=pairings))

        slots = next_slots
        round_index += 1

    bracket = Bracket(
        category_id=category_id,
        qualifier_count=qualifier_count,
        bracket_size=size,
        rounds=rounds,
        byes=byes,
    )
    logger.debug(
        "Bracket for category %s: %d qualifiers, size %d, %d rounds, %d matches, %d byes",
        category_id,
        qualifier_count,
        size,
        len(rounds),
        bracket.match_count,
        len(byes),
    )
    return bracket


def build_category_bracket(
    category_id: Hashable,
    groups: Sequence[Tuple[Hashable, str]],
    advancing_per_group: int,
) -> Bracket:
    """Seed a category's groups and build its bracket."""
    if advancing_per_group < 1:
        raise InputError([f"Category {category_id}: teams advancing per group must be >= 1"])
    return build_bracket(category_id, seed_slots(groups, advancing_per_group))
