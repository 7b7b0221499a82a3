import os

# Keep app startup off the on-disk database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import date  # noqa: E402
from typing import Callable, List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from draw_engine.database import get_session  # noqa: E402
from draw_engine.main import app  # noqa: E402
from draw_engine.models import BracketRound, Match, Team, Tournament, TournamentDraw  # noqa: E402,F401

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Models imported above so create_all() sees every table
# 4. Tables dropped after each test so ids and names never leak between tests
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
    SQLModel.metadata.create_all(test_engine)
    with Session(test_engine) as session:
        yield session
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Test client whose requests use the test engine.

    Override is set BEFORE TestClient() and cleared only after it exits.
    """
    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_tournament(session: Session) -> Callable[..., Tournament]:
    """Factory: tournament with *team_count* teams registered in name order."""

    def _make(
        team_count: int,
        fmt: str = "round-robin",
        start_date: date = date(2026, 5, 1),
        end_date: date = date(2026, 5, 2),
        pool_count: Optional[int] = None,
    ) -> Tournament:
        tournament = Tournament(
            name=f"Spring Cup {fmt}",
            start_date=start_date,
            end_date=end_date,
            format=fmt,
            pool_count=pool_count,
        )
        session.add(tournament)
        session.commit()
        session.refresh(tournament)

        teams: List[Team] = [Team(tournament_id=tournament.id, name=f"Team {i:02d}") for i in range(1, team_count + 1)]
        session.add_all(teams)
        session.commit()
        session.refresh(tournament)
        return tournament

    return _make
