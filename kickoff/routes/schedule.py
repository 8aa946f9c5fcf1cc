"""
Schedule API Routes

Generation:
- preview: assemble the schedule from current rosters and config, write nothing
- generate: assemble and replace every match of the tournament (atomic)

Editing (grid: time rows x field columns):
- swap: two matches exchange cells
- move: drop a match on a cell (swaps with an occupant)
- shift: re-time a row; that row and every later row move by the same delta

Edits do not block on team conflicts; remaining conflicts are returned as
warnings for the operator.
"""

from datetime import datetime
from typing import Dict, List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session, select

from kickoff.database import get_session
from kickoff.models.team import Team
from kickoff.services.bracket_builder import round_label
from kickoff.services.schedule_assembler import MATCH_TYPE_GROUP, PlannedMatch
from kickoff.services.schedule_errors import ConflictError, ScheduleError
from kickoff.services.schedule_service import (
    ScheduleEditResult,
    build_schedule,
    load_matches,
    move_scheduled_match,
    require_tournament,
    shift_scheduled_slot,
    swap_scheduled_matches,
    team_matches,
    wipe_matches,
)

router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    match_number: int
    match_type: str
    round_label: Optional[str] = None
    category_id: int
    group_id: Optional[int] = None
    home_team_id: Optional[int] = None
    away_team_id: Optional[int] = None
    home_team_name: Optional[str] = None
    away_team_name: Optional[str] = None
    home_placeholder: Optional[str] = None
    away_placeholder: Optional[str] = None
    scheduled_time: Optional[datetime] = None
    field_number: Optional[int] = None
    status: str = "scheduled"
    home_score: Optional[int] = None
    away_score: Optional[int] = None


class ScheduleBuildResponse(BaseModel):
    tournament_id: int
    dry_run: bool
    summary: Dict
    warnings: List[Dict]
    matches: List[MatchResponse]


class SwapRequest(BaseModel):
    first_match_number: int
    second_match_number: int


class MoveRequest(BaseModel):
    match_number: int
    scheduled_time: datetime
    field_number: int


class ShiftRequest(BaseModel):
    slot_time: datetime
    new_time: datetime


class ScheduleEditResponse(BaseModel):
    changed: List[MatchResponse]
    conflicts: List[str]


class WipeResponse(BaseModel):
    matches_deleted: int


# ============================================================================
# Helpers
# ============================================================================


def raise_schedule_error(exc: ScheduleError) -> NoReturn:
    """Map engine errors to HTTP: conflicts 409, invalid input 422."""
    status_code = 409 if isinstance(exc, ConflictError) else 422
    raise HTTPException(status_code=status_code, detail={"error": type(exc).__name__, "issues": exc.issues})


def _display_round(match_type: str) -> str:
    return "Group stage" if match_type == MATCH_TYPE_GROUP else round_label(match_type)


def _team_names(session: Session, tournament_id: int) -> Dict[int, str]:
    teams = session.exec(select(Team).where(Team.tournament_id == tournament_id)).all()
    return {t.id: t.name for t in teams}


def match_response(match, names: Dict[int, str]) -> MatchResponse:
    response = MatchResponse.model_validate(match)
    response.round_label = _display_round(match.match_type)
    response.home_team_name = names.get(match.home_team_id)
    response.away_team_name = names.get(match.away_team_id)
    return response


def _planned_response(planned: PlannedMatch, names: Dict[int, str]) -> MatchResponse:
    return MatchResponse(
        match_number=planned.match_number,
        match_type=planned.match_type,
        round_label=_display_round(planned.match_type),
        category_id=planned.category_id,
        group_id=planned.group_id,
        home_team_id=planned.home_team_id,
        away_team_id=planned.away_team_id,
        home_team_name=names.get(planned.home_team_id),
        away_team_name=names.get(planned.away_team_id),
        home_placeholder=planned.home_placeholder,
        away_placeholder=planned.away_placeholder,
        scheduled_time=planned.scheduled_time,
        field_number=planned.field_number,
    )


def _edit_response(session: Session, tournament_id: int, result: ScheduleEditResult) -> ScheduleEditResponse:
    names = _team_names(session, tournament_id)
    changed = sorted(result.changed, key=lambda m: m.match_number)
    return ScheduleEditResponse(
        changed=[match_response(m, names) for m in changed],
        conflicts=[c.describe() for c in result.conflicts],
    )


def _run_build(session: Session, tournament_id: int, dry_run: bool) -> ScheduleBuildResponse:
    try:
        result = build_schedule(session, tournament_id, dry_run=dry_run)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ScheduleError as exc:
        raise_schedule_error(exc)

    names = _team_names(session, tournament_id)
    payload = result.to_dict()
    return ScheduleBuildResponse(
        tournament_id=payload["tournament_id"],
        dry_run=payload["dry_run"],
        summary=payload["summary"],
        warnings=payload["warnings"],
        matches=[_planned_response(p, names) for p in result.matches],
    )


# ============================================================================
# Generation Endpoints
# ============================================================================


@router.post("/tournaments/{tournament_id}/schedule/preview", response_model=ScheduleBuildResponse)
def preview_schedule(tournament_id: int, session: Session = Depends(get_session)):
    """Assemble the schedule without saving it"""
    return _run_build(session, tournament_id, dry_run=True)


@router.post("/tournaments/{tournament_id}/schedule/generate", response_model=ScheduleBuildResponse)
def generate_schedule(tournament_id: int, session: Session = Depends(get_session)):
    """
    Generate the schedule and replace all existing matches.

    All-or-nothing: on any validation error nothing is deleted or written.
    """
    return _run_build(session, tournament_id, dry_run=False)


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def list_matches(tournament_id: int, session: Session = Depends(get_session)):
    """All matches ordered by time, field, match number"""
    try:
        require_tournament(session, tournament_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    names = _team_names(session, tournament_id)
    return [match_response(m, names) for m in load_matches(session, tournament_id)]


@router.delete("/tournaments/{tournament_id}/matches", response_model=WipeResponse)
def delete_all_matches(tournament_id: int, session: Session = Depends(get_session)):
    """Delete the whole schedule of a tournament"""
    try:
        deleted = wipe_matches(session, tournament_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return WipeResponse(matches_deleted=deleted)


# ============================================================================
# Editing Endpoints
# ============================================================================


@router.post("/tournaments/{tournament_id}/schedule/swap", response_model=ScheduleEditResponse)
def swap_schedule_matches(tournament_id: int, request: SwapRequest, session: Session = Depends(get_session)):
    """Exchange time and field of two matches (no-op if either is unplaced)"""
    try:
        result = swap_scheduled_matches(
            session, tournament_id, request.first_match_number, request.second_match_number
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ScheduleError as exc:
        raise_schedule_error(exc)
    return _edit_response(session, tournament_id, result)


@router.post("/tournaments/{tournament_id}/schedule/move", response_model=ScheduleEditResponse)
def move_schedule_match(tournament_id: int, request: MoveRequest, session: Session = Depends(get_session)):
    """Move a match to a (time, field) cell, swapping with an occupant"""
    try:
        result = move_scheduled_match(
            session, tournament_id, request.match_number, request.scheduled_time, request.field_number
        )
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ScheduleError as exc:
        raise_schedule_error(exc)
    return _edit_response(session, tournament_id, result)


@router.post("/tournaments/{tournament_id}/schedule/shift", response_model=ScheduleEditResponse)
def shift_schedule_slot(tournament_id: int, request: ShiftRequest, session: Session = Depends(get_session)):
    """Re-time one slot; every match at or after it moves by the same delta"""
    try:
        result = shift_scheduled_slot(session, tournament_id, request.slot_time, request.new_time)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ScheduleError as exc:
        raise_schedule_error(exc)
    return _edit_response(session, tournament_id, result)


@router.get("/teams/{team_id}/matches", response_model=List[MatchResponse])
def get_team_matches(team_id: int, session: Session = Depends(get_session)):
    """Matches of one team, ordered by time"""
    try:
        team, matches = team_matches(session, team_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    names = _team_names(session, team.tournament_id)
    return [match_response(m, names) for m in matches]
