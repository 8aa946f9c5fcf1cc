"""
Team Management API Routes
Provides CRUD operations for teams within categories and group assignment.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from kickoff.database import get_session
from kickoff.models.category import Category
from kickoff.models.group import Group
from kickoff.models.match import Match
from kickoff.models.team import Team

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class TeamCreateRequest(BaseModel):
    name: str
    group_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()


class TeamUpdateRequest(BaseModel):
    name: Optional[str] = None
    group_id: Optional[int] = None  # explicit null removes the team from its group

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and (not v or not v.strip()):
            raise ValueError("name cannot be empty")
        return v.strip() if v else v


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    category_id: int
    name: str
    group_id: Optional[int] = None
    created_at: datetime


def _check_group(session: Session, group_id: Optional[int], category_id: int) -> None:
    if group_id is None:
        return
    group = session.get(Group, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    if group.category_id != category_id:
        raise HTTPException(status_code=422, detail="Group belongs to a different category")


def _check_unique_name(session: Session, category_id: int, name: str, exclude_id: Optional[int] = None) -> None:
    query = select(Team).where(Team.category_id == category_id, Team.name == name)
    if exclude_id is not None:
        query = query.where(Team.id != exclude_id)
    if session.exec(query).first():
        raise HTTPException(status_code=409, detail=f"Team '{name}' already exists in this category")


def _is_referenced(session: Session, team_id: int) -> bool:
    return (
        session.exec(
            select(Match.id).where((Match.home_team_id == team_id) | (Match.away_team_id == team_id))
        ).first()
        is not None
    )


# ============================================================================
# Team CRUD Endpoints
# ============================================================================


@router.get("/categories/{category_id}/teams", response_model=List[TeamResponse])
def get_teams(category_id: int, session: Session = Depends(get_session)):
    """Get all teams of a category, ordered by id (registration order)"""
    if not session.get(Category, category_id):
        raise HTTPException(status_code=404, detail="Category not found")
    return session.exec(select(Team).where(Team.category_id == category_id).order_by(Team.id)).all()


@router.post("/categories/{category_id}/teams", response_model=TeamResponse, status_code=201)
def create_team(category_id: int, request: TeamCreateRequest, session: Session = Depends(get_session)):
    """
    Create a new team for a category.

    Constraints:
    - (category_id, name) must be unique
    - group_id, if given, must belong to the same category
    """
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    _check_unique_name(session, category_id, request.name)
    _check_group(session, request.group_id, category_id)

    team = Team(
        tournament_id=category.tournament_id,
        category_id=category_id,
        name=request.name,
        group_id=request.group_id,
    )
    session.add(team)
    session.commit()
    session.refresh(team)
    return team


@router.put("/teams/{team_id}", response_model=TeamResponse)
def update_team(team_id: int, request: TeamUpdateRequest, session: Session = Depends(get_session)):
    """
    Rename a team or change its group.

    Renaming is always allowed. Changing the group of a team that already
    plays in scheduled matches is rejected; regenerate the schedule instead.
    """
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")

    update_data = request.model_dump(exclude_unset=True)

    if update_data.get("name"):
        _check_unique_name(session, team.category_id, update_data["name"], exclude_id=team_id)
        team.name = update_data["name"]

    if "group_id" in update_data and update_data["group_id"] != team.group_id:
        if _is_referenced(session, team_id):
            raise HTTPException(status_code=409, detail="Team already has scheduled matches")
        _check_group(session, update_data["group_id"], team.category_id)
        team.group_id = update_data["group_id"]

    session.add(team)
    session.commit()
    session.refresh(team)
    return team


@router.delete("/teams/{team_id}", status_code=204)
def delete_team(team_id: int, session: Session = Depends(get_session)):
    """Delete a team that no match references"""
    team = session.get(Team, team_id)
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    if _is_referenced(session, team_id):
        raise HTTPException(status_code=409, detail="Team already has scheduled matches")

    session.delete(team)
    session.commit()
    return None
