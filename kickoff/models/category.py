from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kickoff.models.group import Group
    from kickoff.models.team import Team
    from kickoff.models.tournament import Tournament


class Category(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "name", name="uq_tournament_category_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str
    notes: Optional[str] = None
    # Overrides ScheduleConfig.ranking_mode for this category when set
    ranking_mode: Optional[str] = Field(default=None)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="categories")
    groups: List["Group"] = Relationship(
        back_populates="category", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    teams: List["Team"] = Relationship(
        back_populates="category", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
