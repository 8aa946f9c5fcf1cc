"""
Standings Service: load group rosters and completed results, rank them.

Ranking mode: Category.ranking_mode if set, else ScheduleConfig.ranking_mode,
else the default (points -> goal difference -> goals scored -> head-to-head).
"""

from typing import Dict, List, Optional, Tuple

from sqlmodel import Session, select

from kickoff.models import Category, Group, Match, ScheduleConfig, Team
from kickoff.services.standings import (
    DEFAULT_RANKING_MODE,
    STATUS_COMPLETED,
    Standing,
    calculate_standings,
)


def resolve_ranking_mode(session: Session, category: Category) -> str:
    if category.ranking_mode:
        return category.ranking_mode
    config = session.exec(
        select(ScheduleConfig).where(ScheduleConfig.tournament_id == category.tournament_id)
    ).first()
    if config and config.ranking_mode:
        return config.ranking_mode
    return DEFAULT_RANKING_MODE


def group_roster(session: Session, group_id: int) -> List[Tuple[int, str]]:
    teams = session.exec(select(Team).where(Team.group_id == group_id).order_by(Team.id)).all()
    return [(t.id, t.name) for t in teams]


def completed_group_matches(session: Session, group_id: int) -> List[Match]:
    return list(
        session.exec(
            select(Match)
            .where(Match.group_id == group_id, Match.status == STATUS_COMPLETED)
            .order_by(Match.match_number)
        ).all()
    )


def group_standings(
    session: Session, group: Group, ranking_mode: Optional[str] = None
) -> Tuple[str, List[Standing]]:
    """Return (ranking_mode, standings) for one group."""
    if ranking_mode is None:
        ranking_mode = resolve_ranking_mode(session, session.get(Category, group.category_id))
    standings = calculate_standings(
        group_roster(session, group.id),
        completed_group_matches(session, group.id),
        ranking_mode,
    )
    return ranking_mode, standings


def category_standings(session: Session, category: Category) -> Tuple[str, Dict[int, List[Standing]]]:
    """Standings for every group of a category, keyed by group id (groups by name)."""
    ranking_mode = resolve_ranking_mode(session, category)
    groups = session.exec(
        select(Group).where(Group.category_id == category.id).order_by(Group.name, Group.id)
    ).all()
    return ranking_mode, {g.id: group_standings(session, g, ranking_mode)[1] for g in groups}


def group_is_finished(session: Session, group_id: int) -> bool:
    """True when the group has matches and every one of them is completed."""
    statuses = session.exec(select(Match.status).where(Match.group_id == group_id)).all()
    return bool(statuses) and all(s == STATUS_COMPLETED for s in statuses)
