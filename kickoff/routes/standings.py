"""
Standings API Routes

Group tables are computed on every request from completed group matches.
An optional ?ranking_mode= query parameter overrides the configured mode
(handy for comparing tie-break outcomes before changing the config).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from kickoff.database import get_session
from kickoff.models.category import Category
from kickoff.models.group import Group
from kickoff.services.schedule_errors import InputError
from kickoff.services.standings import parse_ranking_mode
from kickoff.services.standings_service import category_standings, group_standings

router = APIRouter()

METRIC_LABELS = {"goals": "Goal difference", "sets": "Set difference"}


class StandingRow(BaseModel):
    rank: int
    team_id: int
    team_name: str
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int


class GroupStandingsResponse(BaseModel):
    group_id: int
    group_name: str
    ranking_mode: str
    differential_label: str
    head_to_head_first: bool
    rows: List[StandingRow]


class CategoryStandingsResponse(BaseModel):
    category_id: int
    category_name: str
    ranking_mode: str
    groups: List[GroupStandingsResponse]


def _group_payload(group: Group, ranking_mode: str, standings) -> GroupStandingsResponse:
    head_to_head_first, metric = parse_ranking_mode(ranking_mode)
    return GroupStandingsResponse(
        group_id=group.id,
        group_name=group.name,
        ranking_mode=ranking_mode,
        differential_label=METRIC_LABELS[metric],
        head_to_head_first=head_to_head_first,
        rows=[StandingRow(**s.to_dict()) for s in standings],
    )


def _check_mode(ranking_mode: Optional[str]) -> None:
    if ranking_mode is None:
        return
    try:
        parse_ranking_mode(ranking_mode)
    except InputError as exc:
        raise HTTPException(status_code=422, detail={"error": "InputError", "issues": exc.issues})


@router.get("/groups/{group_id}/standings", response_model=GroupStandingsResponse)
def get_group_standings(
    group_id: int,
    ranking_mode: Optional[str] = Query(default=None),
    session: Session = Depends(get_session),
):
    """Ranked table of one group"""
    group = session.get(Group, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    _check_mode(ranking_mode)

    mode, standings = group_standings(session, group, ranking_mode)
    return _group_payload(group, mode, standings)


@router.get("/categories/{category_id}/standings", response_model=CategoryStandingsResponse)
def get_category_standings(category_id: int, session: Session = Depends(get_session)):
    """Ranked tables of every group of a category, groups ordered by name"""
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    mode, tables = category_standings(session, category)
    groups = session.exec(
        select(Group).where(Group.category_id == category_id).order_by(Group.name, Group.id)
    ).all()
    return CategoryStandingsResponse(
        category_id=category.id,
        category_name=category.name,
        ranking_mode=mode,
        groups=[_group_payload(g, mode, tables[g.id]) for g in groups],
    )
