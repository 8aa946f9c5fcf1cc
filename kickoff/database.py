import os
from pathlib import Path
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./kickoff.db")

_is_sqlite = DATABASE_URL.startswith("sqlite")
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
_echo = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")

if _is_sqlite and ":memory:" not in DATABASE_URL:
    db_path = DATABASE_URL.replace("sqlite:///", "", 1)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

engine: Engine = create_engine(
    DATABASE_URL,
    echo=_echo,
    connect_args=_connect_args,
)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def register_models() -> None:
    """Import all models so they're registered with SQLModel metadata"""
    from kickoff.models.category import Category  # noqa: F401
    from kickoff.models.group import Group  # noqa: F401
    from kickoff.models.match import Match  # noqa: F401
    from kickoff.models.schedule_config import ScheduleConfig  # noqa: F401
    from kickoff.models.team import Team  # noqa: F401
    from kickoff.models.tournament import Tournament  # noqa: F401


def init_db() -> None:
    """Initialize database - create all tables"""
    register_models()
    SQLModel.metadata.create_all(engine)
