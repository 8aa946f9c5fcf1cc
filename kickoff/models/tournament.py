from datetime import date, datetime, time
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kickoff.models.category import Category
    from kickoff.models.match import Match
    from kickoff.models.schedule_config import ScheduleConfig


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    location: Optional[str] = None
    start_date: date
    start_time: time = Field(default=time(9, 0))  # Kickoff of match #1
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    categories: List["Category"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    matches: List["Match"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    schedule_config: Optional["ScheduleConfig"] = Relationship(
        back_populates="tournament",
        sa_relationship_kwargs={"uselist": False, "cascade": "all, delete-orphan"},
    )
