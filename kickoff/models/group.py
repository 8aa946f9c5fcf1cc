from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from kickoff.models.category import Category
    from kickoff.models.team import Team


class Group(SQLModel, table=True):
    __tablename__ = "tournament_group"
    __table_args__ = (SAUniqueConstraint("category_id", "name", name="uq_category_group_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    category_id: int = Field(foreign_key="category.id", index=True)
    name: str

    # Relationships
    category: "Category" = Relationship(back_populates="groups")
    teams: List["Team"] = Relationship(back_populates="group")
