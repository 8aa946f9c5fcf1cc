"""
Schedule Service - Generate, persist and edit a tournament's match schedule

Generation pipeline:
1. Validate (tournament exists, schedule config saved)
2. Load rosters (categories by id, groups by name, teams by id)
3. Assemble (pure; round robin + knockout + conflict validation)
4. Replace all matches of the tournament (single transaction)

Nothing is written if any step fails. A dry run stops after step 3.

Edits (swap / move / shift) load the persisted matches, apply the mutator
in memory and commit once.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from kickoff.models import Category, Group, Match, ScheduleConfig, Team, Tournament
from kickoff.services.schedule_assembler import (
    AssembledSchedule,
    CategoryRoster,
    GroupRoster,
    PlannedMatch,
    ScheduleSettings,
    TeamConflict,
    assemble_schedule,
    find_team_conflicts,
)
from kickoff.services.schedule_errors import InputError, ResolutionWarning
from kickoff.services.schedule_mutator import move_match, shift_time_slot, swap_matches

logger = logging.getLogger(__name__)

STATUS_SCHEDULED = "scheduled"
STATUS_COMPLETED = "completed"


# ============================================================================
# Result Models
# ============================================================================


class ScheduleBuildResult:
    """Complete result of schedule generation"""

    def __init__(self, tournament_id: int, dry_run: bool = False):
        self.tournament_id = tournament_id
        self.dry_run = dry_run
        self.matches: List[PlannedMatch] = []
        self.warnings: List[ResolutionWarning] = []
        self.matches_deleted = 0

    @property
    def group_matches(self) -> int:
        return sum(1 for m in self.matches if m.is_group_match)

    def to_dict(self):
        return {
            "tournament_id": self.tournament_id,
            "dry_run": self.dry_run,
            "summary": {
                "matches_generated": len(self.matches),
                "group_matches": self.group_matches,
                "knockout_matches": len(self.matches) - self.group_matches,
                "matches_deleted": self.matches_deleted,
                "first_match_at": self.matches[0].scheduled_time.isoformat() if self.matches else None,
                "last_match_at": self.matches[-1].scheduled_time.isoformat() if self.matches else None,
            },
            "warnings": [w.to_dict() for w in self.warnings],
        }


class ScheduleEditResult:
    """Matches changed by an edit plus the team conflicts left afterwards"""

    def __init__(self, changed: List[Match], conflicts: List[TeamConflict]):
        self.changed = changed
        self.conflicts = conflicts


# ============================================================================
# Loading
# ============================================================================


def require_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise LookupError(f"Tournament {tournament_id} not found")
    return tournament


def get_schedule_config(session: Session, tournament_id: int) -> Optional[ScheduleConfig]:
    return session.exec(select(ScheduleConfig).where(ScheduleConfig.tournament_id == tournament_id)).first()


def load_category_rosters(session: Session, tournament_id: int) -> List[CategoryRoster]:
    """
    Load rosters in deterministic scheduling order.

    Categories by id, groups by (name, id), teams by id. Group order is also
    the bracket seeding order (1st Group A before 1st Group B).
    """
    categories = session.exec(
        select(Category).where(Category.tournament_id == tournament_id).order_by(Category.id)
    ).all()
    groups = session.exec(
        select(Group).where(Group.tournament_id == tournament_id).order_by(Group.name, Group.id)
    ).all()
    teams = session.exec(
        select(Team).where(Team.tournament_id == tournament_id, Team.group_id.is_not(None)).order_by(Team.id)
    ).all()

    team_ids_by_group: Dict[int, List[int]] = {}
    for team in teams:
        team_ids_by_group.setdefault(team.group_id, []).append(team.id)

    rosters = []
    for category in categories:
        category_groups = [
            GroupRoster(group_id=g.id, name=g.name, team_ids=team_ids_by_group.get(g.id, []))
            for g in groups
            if g.category_id == category.id
        ]
        rosters.append(CategoryRoster(category_id=category.id, name=category.name, groups=category_groups))
    return rosters


def planned_to_match(planned: PlannedMatch, tournament_id: int) -> Match:
    return Match(
        tournament_id=tournament_id,
        category_id=planned.category_id,
        group_id=planned.group_id,
        match_number=planned.match_number,
        match_type=planned.match_type,
        home_team_id=planned.home_team_id,
        away_team_id=planned.away_team_id,
        home_placeholder=planned.home_placeholder,
        away_placeholder=planned.away_placeholder,
        home_seed_group_id=planned.home_seed.group_id if planned.home_seed else None,
        home_seed_position=planned.home_seed.position if planned.home_seed else None,
        away_seed_group_id=planned.away_seed.group_id if planned.away_seed else None,
        away_seed_position=planned.away_seed.position if planned.away_seed else None,
        home_from_match_number=planned.home_from_match,
        away_from_match_number=planned.away_from_match,
        scheduled_time=planned.scheduled_time,
        field_number=planned.field_number,
        status=STATUS_SCHEDULED,
    )


# ============================================================================
# Generation
# ============================================================================


def assemble_for_tournament(session: Session, tournament_id: int) -> AssembledSchedule:
    """Run the assembler against the tournament's current rosters and config (no writes)."""
    tournament = require_tournament(session, tournament_id)
    config = get_schedule_config(session, tournament_id)
    if config is None:
        raise InputError([f"Tournament {tournament_id}: schedule config has not been saved yet"])

    rosters = load_category_rosters(session, tournament_id)
    if not any(c.groups for c in rosters):
        raise InputError([f"Tournament {tournament_id}: no groups to schedule"])

    start = datetime.combine(tournament.start_date, tournament.start_time)
    return assemble_schedule(rosters, ScheduleSettings.from_config(config), start)


def build_schedule(session: Session, tournament_id: int, dry_run: bool = False) -> ScheduleBuildResult:
    """
    Generate the tournament schedule and replace all existing matches.

    Raises:
        LookupError: tournament not found
        InputError / ConflictError: schedule cannot be generated (nothing written)
        SQLAlchemyError: persistence failed (transaction rolled back)
    """
    result = ScheduleBuildResult(tournament_id, dry_run=dry_run)

    schedule = assemble_for_tournament(session, tournament_id)
    result.matches = schedule.matches
    result.warnings = schedule.warnings

    if dry_run:
        return result

    try:
        # Delete + insert in one transaction: no partial schedule is ever visible
        result.matches_deleted = _delete_matches(session, tournament_id)
        # Deletes must reach the DB before inserts reuse the same match numbers
        session.flush()
        session.add_all([planned_to_match(p, tournament_id) for p in schedule.matches])
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Saving schedule for tournament %d failed, transaction rolled back", tournament_id)
        raise

    logger.info(
        "Tournament %d: replaced %d matches with %d generated matches",
        tournament_id,
        result.matches_deleted,
        len(schedule.matches),
    )
    return result


def _delete_matches(session: Session, tournament_id: int) -> int:
    existing = session.exec(select(Match).where(Match.tournament_id == tournament_id)).all()
    for match in existing:
        session.delete(match)
    return len(existing)


def wipe_matches(session: Session, tournament_id: int) -> int:
    require_tournament(session, tournament_id)
    deleted = _delete_matches(session, tournament_id)
    session.commit()
    return deleted


# ============================================================================
# Editing
# ============================================================================


def load_matches(session: Session, tournament_id: int) -> List[Match]:
    return list(
        session.exec(
            select(Match)
            .where(Match.tournament_id == tournament_id)
            .order_by(Match.scheduled_time, Match.field_number, Match.match_number)
        ).all()
    )


def _commit_edit(session: Session, matches: List[Match], changed: List[Match]) -> ScheduleEditResult:
    for match in changed:
        session.add(match)
    session.commit()
    for match in changed:
        session.refresh(match)
    conflicts = find_team_conflicts(matches)
    for conflict in conflicts:
        logger.warning("Schedule edit left a team conflict: %s", conflict.describe())
    return ScheduleEditResult(changed=changed, conflicts=conflicts)


def swap_scheduled_matches(
    session: Session, tournament_id: int, first_number: int, second_number: int
) -> ScheduleEditResult:
    require_tournament(session, tournament_id)
    matches = load_matches(session, tournament_id)
    changed = swap_matches(matches, first_number, second_number)
    return _commit_edit(session, matches, changed)


def move_scheduled_match(
    session: Session, tournament_id: int, match_number: int, target_time: datetime, target_field: int
) -> ScheduleEditResult:
    require_tournament(session, tournament_id)
    matches = load_matches(session, tournament_id)
    changed = move_match(matches, match_number, target_time, target_field)
    return _commit_edit(session, matches, changed)


def shift_scheduled_slot(
    session: Session, tournament_id: int, slot_time: datetime, new_time: datetime
) -> ScheduleEditResult:
    require_tournament(session, tournament_id)
    matches = load_matches(session, tournament_id)
    changed = shift_time_slot(matches, slot_time, new_time)
    return _commit_edit(session, matches, changed)


def team_matches(session: Session, team_id: int) -> Tuple[Team, List[Match]]:
    """All matches of one team (home or away), ordered by time."""
    team = session.get(Team, team_id)
    if not team:
        raise LookupError(f"Team {team_id} not found")
    matches = session.exec(
        select(Match)
        .where(Match.tournament_id == team.tournament_id)
        .where((Match.home_team_id == team_id) | (Match.away_team_id == team_id))
        .order_by(Match.scheduled_time, Match.match_number)
    ).all()
    return team, list(matches)
