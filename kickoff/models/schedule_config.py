from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kickoff.models.tournament import Tournament


class ScheduleConfig(SQLModel, table=True):
    """One row per tournament; created on first save, updated afterwards."""

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", unique=True, index=True)
    match_duration_minutes: int = Field(default=20)
    break_duration_minutes: int = Field(default=5)
    number_of_fields: int = Field(default=1)
    ko_phase_teams: int = Field(default=0)  # 0 = group stage only
    ko_break_before_minutes: int = Field(default=15)
    ko_break_between_minutes: int = Field(default=10)
    ranking_mode: str = Field(default="points_goal_diff_direct")
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    tournament: "Tournament" = Relationship(back_populates="schedule_config")
