from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kickoff.models.tournament import Tournament


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "match_number", name="uq_tournament_match_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    category_id: int = Field(foreign_key="category.id")
    group_id: Optional[int] = Field(default=None, foreign_key="tournament_group.id")  # group stage only
    match_number: int
    match_type: str  # "group" | "round_of_32" | "round_of_16" | "quarterfinal" | "semifinal" | "final"

    # Team assignments (null for unresolved knockout slots)
    home_team_id: Optional[int] = Field(default=None, foreign_key="team.id")
    away_team_id: Optional[int] = Field(default=None, foreign_key="team.id")

    # Display labels for unresolved slots ("1st Group A", "Winner Match 7")
    home_placeholder: Optional[str] = Field(default=None)
    away_placeholder: Optional[str] = Field(default=None)

    # Advancement sources: group finishing position, or winner of an earlier match
    home_seed_group_id: Optional[int] = Field(default=None, foreign_key="tournament_group.id")
    home_seed_position: Optional[int] = Field(default=None)
    away_seed_group_id: Optional[int] = Field(default=None, foreign_key="tournament_group.id")
    away_seed_position: Optional[int] = Field(default=None)
    home_from_match_number: Optional[int] = Field(default=None)
    away_from_match_number: Optional[int] = Field(default=None)

    scheduled_time: Optional[datetime] = Field(default=None, index=True)
    field_number: Optional[int] = Field(default=None)

    status: str = Field(default="scheduled")  # "scheduled" | "completed"
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="matches")
