"""
Schedule Assembler: merges group-stage round robins and knockout brackets
into one time-ordered, field-allocated match list.

Group stage:
    Round 0 of every group (all categories) is placed before round 1 of any
    group, and so on. Matches fill fields 1..F in encounter order; after
    field F the clock advances by match duration + break duration. A pairing
    whose team already plays in the current row starts the next row.

Knockout phase:
    Starts after the last group match ends plus the pre-knockout break.
    Bracket rounds of all categories are aligned so that every final lands
    in the same synchronized round. Inside a synchronized round, pairings fed
    by the immediately preceding round are placed after the others.

Forward references:
    winner_refs (BracketRef -> match number) is built while matches are
    emitted and returned with the schedule. A side whose reference is not yet
    known falls back to a generic label and produces a ResolutionWarning.

The assembler is pure: it never touches the database. Validation runs before
anything is returned; a failed validation raises and yields no schedule.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple

from kickoff.services.bracket_builder import (
    Bracket,
    BracketPairing,
    BracketRef,
    BracketRound,
    SeedSlot,
    SeedSource,
    Side,
    build_category_bracket,
)
from kickoff.services.round_robin import Pairing, round_robin_rounds
from kickoff.services.schedule_errors import ConflictError, InputError, ResolutionWarning

logger = logging.getLogger(__name__)

MATCH_TYPE_GROUP = "group"
UNRESOLVED_WINNER_LABEL = "Winner of previous round"


def winner_label(match_number: int) -> str:
    return f"Winner Match {match_number}"


# ============================================================================
# Input / output types
# ============================================================================


@dataclass
class GroupRoster:
    group_id: Hashable
    name: str
    team_ids: List[Hashable]


@dataclass
class CategoryRoster:
    category_id: Hashable
    name: str
    groups: List[GroupRoster]


@dataclass
class ScheduleSettings:
    match_duration_minutes: int = 20
    break_duration_minutes: int = 5
    number_of_fields: int = 1
    ko_phase_teams: int = 0
    ko_break_before_minutes: int = 15
    ko_break_between_minutes: int = 10

    @classmethod
    def from_config(cls, config: Any) -> "ScheduleSettings":
        """Copy the timing fields of a ScheduleConfig row (or any object with them)."""
        return cls(
            match_duration_minutes=config.match_duration_minutes,
            break_duration_minutes=config.break_duration_minutes,
            number_of_fields=config.number_of_fields,
            ko_phase_teams=config.ko_phase_teams,
            ko_break_before_minutes=config.ko_break_before_minutes,
            ko_break_between_minutes=config.ko_break_between_minutes,
        )

    def validate(self) -> List[str]:
        issues = []
        if self.match_duration_minutes < 1:
            issues.append("match_duration_minutes must be >= 1")
        if self.number_of_fields < 1:
            issues.append("number_of_fields must be >= 1")
        if self.ko_phase_teams < 0:
            issues.append("ko_phase_teams must be >= 0")
        for name in ("break_duration_minutes", "ko_break_before_minutes", "ko_break_between_minutes"):
            if getattr(self, name) < 0:
                issues.append(f"{name} must be >= 0")
        return issues


@dataclass
class PlannedMatch:
    match_number: int
    match_type: str
    scheduled_time: datetime
    field_number: int
    category_id: Hashable
    group_id: Optional[Hashable] = None
    home_team_id: Optional[Hashable] = None
    away_team_id: Optional[Hashable] = None
    home_placeholder: Optional[str] = None
    away_placeholder: Optional[str] = None
    home_seed: Optional[SeedSource] = None
    away_seed: Optional[SeedSource] = None
    home_from_match: Optional[int] = None
    away_from_match: Optional[int] = None
    bracket_key: Optional[BracketRef] = None

    def __post_init__(self):
        if self.home_team_id is None and self.home_placeholder is None:
            raise ValueError(f"Match {self.match_number}: home side needs a team or a placeholder")
        if self.away_team_id is None and self.away_placeholder is None:
            raise ValueError(f"Match {self.match_number}: away side needs a team or a placeholder")

    @property
    def is_group_match(self) -> bool:
        return self.match_type == MATCH_TYPE_GROUP


@dataclass
class AssembledSchedule:
    matches: List[PlannedMatch]
    winner_refs: Dict[BracketRef, int] = field(default_factory=dict)
    warnings: List[ResolutionWarning] = field(default_factory=list)

    @property
    def group_match_count(self) -> int:
        return sum(1 for m in self.matches if m.is_group_match)

    @property
    def knockout_match_count(self) -> int:
        return len(self.matches) - self.group_match_count


@dataclass
class TeamConflict:
    scheduled_time: datetime
    team_ids: List[Hashable]
    match_numbers: List[int]

    def describe(self) -> str:
        teams = ", ".join(str(t) for t in self.team_ids)
        numbers = ", ".join(str(n) for n in self.match_numbers)
        return (
            f"{self.scheduled_time:%Y-%m-%d %H:%M}: team(s) {teams} booked more than once "
            f"(matches {numbers})"
        )


# ============================================================================
# Timeline
# ============================================================================


class _Timeline:
    """Hands out (time, field) cells; advances the clock after the last field."""

    def __init__(self, start: datetime, fields: int):
        self.current_time = start
        self.current_field = 1
        self.fields = fields

    def take(self, advance_minutes: int) -> Tuple[datetime, int]:
        cell = (self.current_time, self.current_field)
        self.current_field += 1
        if self.current_field > self.fields:
            self.current_field = 1
            self.current_time += timedelta(minutes=advance_minutes)
        return cell

    def next_row(self, advance_minutes: int) -> None:
        """Abandon the rest of a partially filled row."""
        if self.current_field != 1:
            self.current_field = 1
            self.current_time += timedelta(minutes=advance_minutes)

    def close_round(self, match_duration: int, break_minutes: int) -> None:
        """Let a partially filled row finish, then add the break."""
        if self.current_field != 1:
            self.current_field = 1
            self.current_time += timedelta(minutes=match_duration)
        self.current_time += timedelta(minutes=break_minutes)


# ============================================================================
# Validation
# ============================================================================


def find_team_conflicts(matches: Iterable[Any]) -> List[TeamConflict]:
    """
    Find teams booked into more than one match at the same timestamp.

    Works on any objects with scheduled_time, home_team_id, away_team_id and
    match_number. Matches without a time or with unresolved teams are skipped
    for the unresolved sides.
    """
    by_time: Dict[datetime, Dict[Hashable, List[int]]] = defaultdict(lambda: defaultdict(list))
    for match in matches:
        if match.scheduled_time is None:
            continue
        for team_id in (match.home_team_id, match.away_team_id):
            if team_id is not None:
                by_time[match.scheduled_time][team_id].append(match.match_number)

    conflicts: List[TeamConflict] = []
    for scheduled_time in sorted(by_time):
        teams = by_time[scheduled_time]
        doubled = [t for t, numbers in teams.items() if len(numbers) > 1]
        if not doubled:
            continue
        numbers = sorted({n for t in doubled for n in teams[t]})
        conflicts.append(TeamConflict(scheduled_time=scheduled_time, team_ids=doubled, match_numbers=numbers))
    return conflicts


def _validate_rosters(categories: Sequence[CategoryRoster], settings: ScheduleSettings) -> None:
    issues = list(settings.validate())
    seen_in: Dict[Hashable, GroupRoster] = {}

    for category in categories:
        for group in category.groups:
            if len(group.team_ids) < 2:
                issues.append(f"{group.name}: too few teams (at least 2 required)")
            if len(set(group.team_ids)) != len(group.team_ids):
                issues.append(f"{group.name}: a team is listed more than once")
            for team_id in group.team_ids:
                other = seen_in.setdefault(team_id, group)
                if other is not group:
                    issues.append(f"Team {team_id} is assigned to groups {other.name} and {group.name}")

        if settings.ko_phase_teams > 0 and category.groups:
            advancing = advancing_per_group(settings.ko_phase_teams, len(category.groups))
            for group in category.groups:
                if 2 <= len(group.team_ids) < advancing:
                    issues.append(
                        f"{group.name}: {advancing} teams advance but only {len(group.team_ids)} play"
                    )

    if settings.ko_phase_teams > 0 and not any(c.groups for c in categories):
        issues.append("Knockout phase needs at least one group to draw from")

    if issues:
        raise InputError(issues)


def advancing_per_group(ko_phase_teams: int, group_count: int) -> int:
    """Teams taken from each group so the category fills `ko_phase_teams` slots."""
    return math.ceil(ko_phase_teams / group_count)


# ============================================================================
# Group stage
# ============================================================================


def _assemble_group_stage(
    categories: Sequence[CategoryRoster],
    settings: ScheduleSettings,
    timeline: _Timeline,
    matches: List[PlannedMatch],
) -> None:
    per_group: List[Tuple[CategoryRoster, GroupRoster, List[List[Pairing]]]] = []
    for category in categories:
        for group in category.groups:
            per_group.append((category, group, round_robin_rounds(group.team_ids)))

    max_rounds = max((len(rounds) for _, _, rounds in per_group), default=0)
    advance = settings.match_duration_minutes + settings.break_duration_minutes
    row_time = timeline.current_time
    row_teams: set = set()

    for round_idx in range(max_rounds):
        for category, group, rounds in per_group:
            if round_idx >= len(rounds):
                continue
            for home, away in rounds[round_idx]:
                if timeline.current_time != row_time:
                    row_time, row_teams = timeline.current_time, set()
                if home in row_teams or away in row_teams:
                    timeline.next_row(advance)
                    row_time, row_teams = timeline.current_time, set()
                scheduled_time, field_number = timeline.take(advance)
                row_teams.update((home, away))
                matches.append(
                    PlannedMatch(
                        match_number=len(matches) + 1,
                        match_type=MATCH_TYPE_GROUP,
                        scheduled_time=scheduled_time,
                        field_number=field_number,
                        category_id=category.category_id,
                        group_id=group.group_id,
                        home_team_id=home,
                        away_team_id=away,
                    )
                )


# ============================================================================
# Knockout phase
# ============================================================================


def _resolve_side(
    side: Side,
    winner_refs: Dict[BracketRef, int],
    warnings: List[ResolutionWarning],
    match_number: int,
) -> Tuple[str, Optional[SeedSource], Optional[int]]:
    """Return (placeholder, seed source, upstream match number) for one side."""
    if isinstance(side, SeedSlot):
        return side.label, side.source, None

    upstream = winner_refs.get(side)
    if upstream is None:
        message = (
            f"Match {match_number}: winner of bracket round {side.round_index} "
            f"position {side.position} (category {side.category_id}) not scheduled yet"
        )
        logger.warning(message)
        warnings.append(ResolutionWarning("UNRESOLVED_WINNER_REF", message, match_number))
        return UNRESOLVED_WINNER_LABEL, None, None
    return winner_label(upstream), None, upstream


def _synchronized_rounds(
    brackets: Sequence[Tuple[CategoryRoster, Bracket]],
) -> List[List[Tuple[CategoryRoster, BracketRound, BracketPairing]]]:
    """Align bracket rounds so all finals coincide; order dependents last."""
    max_rounds = max((len(b.rounds) for _, b in brackets), default=0)
    synced = []

    for sync_idx in range(max_rounds):
        independent = []
        dependent = []
        for category, bracket in brackets:
            offset = max_rounds - len(bracket.rounds)
            local_idx = sync_idx - offset
            if local_idx < 0:
                continue
            bracket_round = bracket.rounds[local_idx]
            previous_index = bracket.rounds[local_idx - 1].round_index if local_idx > 0 else None
            for pairing in bracket_round.pairings:
                entry = (category, bracket_round, pairing)
                if previous_index is not None and pairing.depends_on_round(previous_index):
                    dependent.append(entry)
                else:
                    independent.append(entry)
        synced.append(independent + dependent)

    return synced


def _assemble_knockout(
    categories: Sequence[CategoryRoster],
    settings: ScheduleSettings,
    ko_start: datetime,
    matches: List[PlannedMatch],
    winner_refs: Dict[BracketRef, int],
    warnings: List[ResolutionWarning],
) -> None:
    brackets: List[Tuple[CategoryRoster, Bracket]] = []
    for category in categories:
        if not category.groups:
            continue
        advancing = advancing_per_group(settings.ko_phase_teams, len(category.groups))
        groups = [(g.group_id, g.name) for g in category.groups]
        brackets.append((category, build_category_bracket(category.category_id, groups, advancing)))

    timeline = _Timeline(ko_start, settings.number_of_fields)
    advance = settings.match_duration_minutes + settings.ko_break_between_minutes

    for sync_idx, entries in enumerate(_synchronized_rounds(brackets)):
        if sync_idx > 0:
            timeline.close_round(settings.match_duration_minutes, settings.ko_break_between_minutes)

        for category, bracket_round, pairing in entries:
            match_number = len(matches) + 1
            home_label, home_seed, home_from = _resolve_side(pairing.home, winner_refs, warnings, match_number)
            away_label, away_seed, away_from = _resolve_side(pairing.away, winner_refs, warnings, match_number)
            scheduled_time, field_number = timeline.take(advance)

            matches.append(
                PlannedMatch(
                    match_number=match_number,
                    match_type=bracket_round.name,
                    scheduled_time=scheduled_time,
                    field_number=field_number,
                    category_id=category.category_id,
                    home_placeholder=home_label,
                    away_placeholder=away_label,
                    home_seed=home_seed,
                    away_seed=away_seed,
                    home_from_match=home_from,
                    away_from_match=away_from,
                    bracket_key=pairing.key,
                )
            )
            winner_refs[pairing.key] = match_number


# ============================================================================
# Entry point
# ============================================================================


def assemble_schedule(
    categories: Sequence[CategoryRoster],
    settings: ScheduleSettings,
    start: datetime,
) -> AssembledSchedule:
    """
    Build the full tournament timeline.

    Args:
        categories: Rosters in scheduling order (groups in bracket order)
        settings: Timing, field and knockout parameters
        start: Time of the first match

    Returns:
        AssembledSchedule with matches numbered 1..M in time order

    Raises:
        InputError: invalid rosters or settings (one issue per entity)
        ConflictError: a team is booked twice at one timestamp
    """
    _validate_rosters(categories, settings)

    matches: List[PlannedMatch] = []
    winner_refs: Dict[BracketRef, int] = {}
    warnings: List[ResolutionWarning] = []

    _assemble_group_stage(categories, settings, _Timeline(start, settings.number_of_fields), matches)

    if settings.ko_phase_teams > 0 and matches:
        last_group_match = matches[-1]
        ko_start = last_group_match.scheduled_time + timedelta(
            minutes=settings.match_duration_minutes + settings.ko_break_before_minutes
        )
        _assemble_knockout(categories, settings, ko_start, matches, winner_refs, warnings)

    conflicts = find_team_conflicts(matches)
    if conflicts:
        raise ConflictError([c.describe() for c in conflicts])

    schedule = AssembledSchedule(matches=matches, winner_refs=winner_refs, warnings=warnings)
    logger.info(
        "Assembled schedule: %d group matches, %d knockout matches, %d warnings",
        schedule.group_match_count,
        schedule.knockout_match_count,
        len(warnings),
    )
    return schedule
