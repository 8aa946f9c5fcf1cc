"""
Match runtime: scores and status. No schedule mutation.
Time and field stay untouched; use the schedule editing endpoints for those.
After every result change, advancement refills knockout team slots.
"""
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from kickoff.database import get_session
from kickoff.models.match import Match
from kickoff.models.team import Team
from kickoff.models.tournament import Tournament
from kickoff.routes.schedule import MatchResponse, match_response
from kickoff.services.advancement_service import resolve_knockout_slots
from kickoff.services.schedule_service import STATUS_COMPLETED, STATUS_SCHEDULED

router = APIRouter()

RUNTIME_STATUSES = (STATUS_SCHEDULED, STATUS_COMPLETED)


class MatchResultUpdate(BaseModel):
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("home_score", "away_score")
    @classmethod
    def validate_score(cls, v):
        if v is not None and v < 0:
            raise ValueError("score must be >= 0")
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in RUNTIME_STATUSES:
            raise ValueError(f"status must be one of {list(RUNTIME_STATUSES)}")
        return v


class MatchResultResponse(BaseModel):
    match: MatchResponse
    slots_updated: int = 0
    unknown_after: int = 0


class AdvancementResponse(BaseModel):
    slots_updated: int
    unknown_after: int


def _get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament


@router.patch("/tournaments/{tournament_id}/matches/{match_id}", response_model=MatchResultResponse)
def update_match_result(
    tournament_id: int,
    match_id: int,
    payload: MatchResultUpdate,
    session: Session = Depends(get_session),
) -> MatchResultResponse:
    """
    Record scores and/or status of a match.

    - status "completed" requires both scores (from the payload or already stored)
      and both teams known; a completed match keeps requiring both scores
    - status "scheduled" reopens a match; its scores are kept as entered
    """
    _get_tournament_or_404(session, tournament_id)
    match = session.get(Match, match_id)
    if not match or match.tournament_id != tournament_id:
        raise HTTPException(status_code=404, detail="Match not found")

    update_data = payload.model_dump(exclude_unset=True)
    home_score = update_data.get("home_score", match.home_score)
    away_score = update_data.get("away_score", match.away_score)
    new_status = update_data.get("status") or match.status

    # Checked against the resulting state, so a completed match cannot lose a score
    if new_status == STATUS_COMPLETED:
        if match.home_team_id is None or match.away_team_id is None:
            raise HTTPException(status_code=422, detail="Both teams must be known to complete a match")
        if home_score is None or away_score is None:
            raise HTTPException(status_code=422, detail="home_score and away_score required to complete a match")

    for field in ("home_score", "away_score", "notes"):
        if field in update_data:
            setattr(match, field, update_data[field])
    match.status = new_status

    session.add(match)
    session.commit()
    session.refresh(match)

    advancement = resolve_knockout_slots(session, tournament_id)
    session.refresh(match)

    teams = session.exec(select(Team).where(Team.tournament_id == tournament_id)).all()
    return MatchResultResponse(
        match=match_response(match, {t.id: t.name for t in teams}),
        slots_updated=advancement["slots_updated"],
        unknown_after=advancement["unknown_after"],
    )


@router.post("/tournaments/{tournament_id}/advancement/resolve", response_model=AdvancementResponse)
def resolve_advancement(tournament_id: int, session: Session = Depends(get_session)) -> Dict[str, int]:
    """
    Recompute all knockout team slots (repair after bulk edits).

    Idempotent: a second call reports slots_updated == 0.
    """
    _get_tournament_or_404(session, tournament_id)
    return resolve_knockout_slots(session, tournament_id)
