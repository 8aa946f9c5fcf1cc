import os
from datetime import date, time

# Keep app startup (init_db) off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from kickoff.database import get_session, register_models  # noqa: E402
from kickoff.main import app  # noqa: E402
from kickoff.models import Category, Group, ScheduleConfig, Team, Tournament  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Models registered before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables dropped and recreated per test
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    register_models()
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def seed_tournament(
    session: Session,
    groups=(("Group A", 4), ("Group B", 4)),
    ko_phase_teams: int = 4,
    number_of_fields: int = 2,
    category_name: str = "Open",
    **config,
):
    """
    Create tournament + config + one category with the given groups.

    Teams are named "<group letter><n>" (A1, A2, ... B1, ...).
    Returns (tournament, category, [groups]).
    """
    tournament = Tournament(name="Spring Cup", start_date=date(2026, 5, 2), start_time=time(9, 0))
    session.add(tournament)
    session.commit()
    session.refresh(tournament)

    session.add(
        ScheduleConfig(
            tournament_id=tournament.id,
            ko_phase_teams=ko_phase_teams,
            number_of_fields=number_of_fields,
            **config,
        )
    )
    category = Category(tournament_id=tournament.id, name=category_name)
    session.add(category)
    session.commit()
    session.refresh(category)

    created = []
    for group_name, size in groups:
        group = Group(tournament_id=tournament.id, category_id=category.id, name=group_name)
        session.add(group)
        session.commit()
        session.refresh(group)
        letter = group_name.split()[-1]
        for n in range(1, size + 1):
            session.add(
                Team(
                    tournament_id=tournament.id,
                    category_id=category.id,
                    group_id=group.id,
                    name=f"{letter}{n}",
                )
            )
        session.commit()
        created.append(group)

    return tournament, category, created
