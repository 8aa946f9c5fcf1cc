from datetime import date, datetime, time
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from kickoff.database import get_session
from kickoff.models.schedule_config import ScheduleConfig
from kickoff.models.tournament import Tournament
from kickoff.services.standings import RANKING_MODES

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    location: Optional[str] = None
    start_date: date
    start_time: time = time(9, 0)
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()


class TournamentUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    start_time: Optional[time] = None
    notes: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and (not v or not v.strip()):
            raise ValueError("name cannot be empty")
        return v.strip() if v else v


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    location: Optional[str] = None
    start_date: date
    start_time: time
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ScheduleConfigUpdate(BaseModel):
    match_duration_minutes: Optional[int] = None
    break_duration_minutes: Optional[int] = None
    number_of_fields: Optional[int] = None
    ko_phase_teams: Optional[int] = None
    ko_break_before_minutes: Optional[int] = None
    ko_break_between_minutes: Optional[int] = None
    ranking_mode: Optional[str] = None

    @field_validator("match_duration_minutes", "number_of_fields")
    @classmethod
    def validate_positive(cls, v):
        if v is not None and v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator(
        "break_duration_minutes", "ko_phase_teams", "ko_break_before_minutes", "ko_break_between_minutes"
    )
    @classmethod
    def validate_non_negative(cls, v):
        if v is not None and v < 0:
            raise ValueError("must be >= 0")
        return v

    @field_validator("ranking_mode")
    @classmethod
    def validate_ranking_mode(cls, v):
        if v is not None and v not in RANKING_MODES:
            raise ValueError(f"ranking_mode must be one of {sorted(RANKING_MODES)}")
        return v


class ScheduleConfigResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    tournament_id: int
    match_duration_minutes: int
    break_duration_minutes: int
    number_of_fields: int
    ko_phase_teams: int
    ko_break_before_minutes: int
    ko_break_between_minutes: int
    ranking_mode: str
    saved: bool = True


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a new tournament"""
    tournament = Tournament(**tournament_data.model_dump())
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    return _get_tournament_or_404(session, tournament_id)


@router.put("/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(tournament_id: int, tournament_data: TournamentUpdate, session: Session = Depends(get_session)):
    """Update a tournament. Existing match times are not moved; regenerate or shift them."""
    tournament = _get_tournament_or_404(session, tournament_id)

    for field, value in tournament_data.model_dump(exclude_unset=True).items():
        setattr(tournament, field, value)

    tournament.updated_at = datetime.utcnow()
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    return tournament


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament with its categories, groups, teams, config and matches"""
    tournament = _get_tournament_or_404(session, tournament_id)
    session.delete(tournament)
    session.commit()
    return None


# ============================================================================
# Schedule Config (one per tournament)
# ============================================================================


@router.get("/tournaments/{tournament_id}/schedule-config", response_model=ScheduleConfigResponse)
def get_schedule_config(tournament_id: int, session: Session = Depends(get_session)):
    """Get the schedule config; unsaved tournaments get the defaults with saved=false"""
    _get_tournament_or_404(session, tournament_id)
    config = session.exec(select(ScheduleConfig).where(ScheduleConfig.tournament_id == tournament_id)).first()
    if config is None:
        defaults = ScheduleConfig(tournament_id=tournament_id)
        return ScheduleConfigResponse(
            **{k: v for k, v in defaults.model_dump().items() if k in ScheduleConfigResponse.model_fields},
            saved=False,
        )
    return config


@router.put("/tournaments/{tournament_id}/schedule-config", response_model=ScheduleConfigResponse)
def upsert_schedule_config(
    tournament_id: int, config_data: ScheduleConfigUpdate, session: Session = Depends(get_session)
):
    """Create the schedule config on first save, update it afterwards"""
    _get_tournament_or_404(session, tournament_id)
    config = session.exec(select(ScheduleConfig).where(ScheduleConfig.tournament_id == tournament_id)).first()
    if config is None:
        config = ScheduleConfig(tournament_id=tournament_id)

    for field, value in config_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(config, field, value)

    config.updated_at = datetime.utcnow()
    session.add(config)
    session.commit()
    session.refresh(config)
    return config
