from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kickoff.models.category import Category
    from kickoff.models.group import Group


class Team(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("category_id", "name", name="uq_category_team_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    category_id: int = Field(foreign_key="category.id", index=True)
    name: str
    # At most one group, always within the team's own category
    group_id: Optional[int] = Field(default=None, foreign_key="tournament_group.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    category: "Category" = Relationship(back_populates="teams")
    group: Optional["Group"] = Relationship(back_populates="teams")
