"""
Category and Group API Routes

Categories partition a tournament (skill divisions); groups partition a
category's teams for the round-robin stage.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from kickoff.database import get_session
from kickoff.models.category import Category
from kickoff.models.group import Group
from kickoff.models.match import Match
from kickoff.models.team import Team
from kickoff.models.tournament import Tournament
from kickoff.services.standings import RANKING_MODES

router = APIRouter()


def _strip_name(v):
    if v is not None and (not v or not v.strip()):
        raise ValueError("name cannot be empty")
    return v.strip() if v else v


class CategoryCreate(BaseModel):
    name: str
    notes: Optional[str] = None
    ranking_mode: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _strip_name(v)

    @field_validator("ranking_mode")
    @classmethod
    def validate_ranking_mode(cls, v):
        if v is not None and v not in RANKING_MODES:
            raise ValueError(f"ranking_mode must be one of {sorted(RANKING_MODES)}")
        return v


class CategoryUpdate(CategoryCreate):
    name: Optional[str] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    name: str
    notes: Optional[str] = None
    ranking_mode: Optional[str] = None


class GroupCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _strip_name(v)


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    category_id: int
    name: str
    team_ids: List[int] = []


class DistributionResponse(BaseModel):
    assigned: int
    groups: List[GroupResponse]


def _get_category_or_404(session: Session, category_id: int) -> Category:
    category = session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


def _category_groups(session: Session, category_id: int) -> List[Group]:
    return list(
        session.exec(select(Group).where(Group.category_id == category_id).order_by(Group.name, Group.id)).all()
    )


def _group_response(session: Session, group: Group) -> GroupResponse:
    team_ids = session.exec(select(Team.id).where(Team.group_id == group.id).order_by(Team.id)).all()
    return GroupResponse(
        id=group.id,
        tournament_id=group.tournament_id,
        category_id=group.category_id,
        name=group.name,
        team_ids=list(team_ids),
    )


def _has_matches(session: Session, *conditions) -> bool:
    return session.exec(select(Match.id).where(*conditions)).first() is not None


# ============================================================================
# Categories
# ============================================================================


@router.get("/tournaments/{tournament_id}/categories", response_model=List[CategoryResponse])
def get_tournament_categories(tournament_id: int, session: Session = Depends(get_session)):
    """Get all categories for a tournament"""
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return session.exec(
        select(Category).where(Category.tournament_id == tournament_id).order_by(Category.id)
    ).all()


@router.post("/tournaments/{tournament_id}/categories", response_model=CategoryResponse, status_code=201)
def create_category(tournament_id: int, category_data: CategoryCreate, session: Session = Depends(get_session)):
    """Create a new category for a tournament"""
    if not session.get(Tournament, tournament_id):
        raise HTTPException(status_code=404, detail="Tournament not found")

    existing = session.exec(
        select(Category).where(Category.tournament_id == tournament_id, Category.name == category_data.name)
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"Category '{category_data.name}' already exists")

    category = Category(tournament_id=tournament_id, **category_data.model_dump())
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@router.put("/categories/{category_id}", response_model=CategoryResponse)
def update_category(category_id: int, category_data: CategoryUpdate, session: Session = Depends(get_session)):
    """Update a category (name, notes, ranking mode override)"""
    category = _get_category_or_404(session, category_id)
    update_data = category_data.model_dump(exclude_unset=True)

    if update_data.get("name") and update_data["name"] != category.name:
        existing = session.exec(
            select(Category).where(
                Category.tournament_id == category.tournament_id,
                Category.name == update_data["name"],
                Category.id != category_id,
            )
        ).first()
        if existing:
            raise HTTPException(status_code=409, detail=f"Category '{update_data['name']}' already exists")

    for field, value in update_data.items():
        if field == "name" and value is None:
            continue
        setattr(category, field, value)

    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@router.delete("/categories/{category_id}", status_code=204)
def delete_category(category_id: int, session: Session = Depends(get_session)):
    """Delete a category with its groups and teams (only while it has no matches)"""
    category = _get_category_or_404(session, category_id)
    if _has_matches(session, Match.category_id == category_id):
        raise HTTPException(status_code=409, detail="Category has scheduled matches; wipe the schedule first")
    session.delete(category)
    session.commit()
    return None


# ============================================================================
# Groups
# ============================================================================


@router.get("/categories/{category_id}/groups", response_model=List[GroupResponse])
def get_category_groups(category_id: int, session: Session = Depends(get_session)):
    """Get all groups of a category, ordered by name"""
    _get_category_or_404(session, category_id)
    return [_group_response(session, g) for g in _category_groups(session, category_id)]


@router.post("/categories/{category_id}/groups", response_model=GroupResponse, status_code=201)
def create_group(category_id: int, group_data: GroupCreate, session: Session = Depends(get_session)):
    """Create a group in a category"""
    category = _get_category_or_404(session, category_id)

    existing = session.exec(
        select(Group).where(Group.category_id == category_id, Group.name == group_data.name)
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=f"Group '{group_data.name}' already exists")

    group = Group(tournament_id=category.tournament_id, category_id=category_id, name=group_data.name)
    session.add(group)
    session.commit()
    session.refresh(group)
    return _group_response(session, group)


@router.delete("/groups/{group_id}", status_code=204)
def delete_group(group_id: int, session: Session = Depends(get_session)):
    """Delete a group; its teams become unassigned"""
    group = session.get(Group, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    if _has_matches(session, Match.group_id == group_id):
        raise HTTPException(status_code=409, detail="Group has scheduled matches; wipe the schedule first")

    for team in session.exec(select(Team).where(Team.group_id == group_id)).all():
        team.group_id = None
        session.add(team)
    session.delete(group)
    session.commit()
    return None


@router.post("/categories/{category_id}/groups/auto-distribute", response_model=DistributionResponse)
def auto_distribute_teams(category_id: int, session: Session = Depends(get_session)):
    """
    Distribute all teams of the category over its groups.

    Teams ordered by id go to groups ordered by name in turn
    (team i -> group i mod G). Previous assignments are replaced.
    """
    _get_category_or_404(session, category_id)
    groups = _category_groups(session, category_id)
    if not groups:
        raise HTTPException(status_code=422, detail="Category has no groups")
    if _has_matches(session, Match.category_id == category_id):
        raise HTTPException(status_code=409, detail="Category has scheduled matches; wipe the schedule first")

    teams = session.exec(select(Team).where(Team.category_id == category_id).order_by(Team.id)).all()
    for index, team in enumerate(teams):
        team.group_id = groups[index % len(groups)].id
        session.add(team)
    session.commit()

    return DistributionResponse(assigned=len(teams), groups=[_group_response(session, g) for g in groups])
