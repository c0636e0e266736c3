import os
import tempfile
from datetime import datetime, timezone
from decimal import Decimal

# Point the app at a throwaway SQLite file before anything imports the settings
_db_dir = tempfile.mkdtemp(prefix="cinema-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["AUTO_CREATE_DATABASE"] = "false"
os.environ["SECRET_KEY"] = "test-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.security import create_access_token  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Movie, MovieHall, MovieTheater, Screening  # noqa: E402
from app.services.coordinator import BookingCoordinator, ScreeningCoordinator  # noqa: E402
from tests.fakes import FakeUnitOfWork, InMemoryStore, RecordingStatsNotifier  # noqa: E402

EVENING = datetime(2030, 6, 1, 18, 0, tzinfo=timezone.utc)
HALL_LAYOUT = [["A1", "A2", "A3"], ["B1", 0, "B2"]]


# ---------------------------------------------------------------------------
# In-memory fixtures (service tests)
# ---------------------------------------------------------------------------


@pytest.fixture
def store():
    store = InMemoryStore()
    store.add_movie("movie-1", "Dune", 120)
    store.add_hall("paris-01", "A", HALL_LAYOUT)
    return store


@pytest.fixture
def screening(store):
    return store.add_screening(Screening(
        screening_id="screening-1",
        movie_id="movie-1",
        theater_id="paris-01",
        hall_id="A",
        start_time=EVENING,
        price=Decimal("12.50"),
        quality="2D",
    ))


@pytest.fixture
def uow_factory(store):
    return lambda: FakeUnitOfWork(store)


@pytest.fixture
def stats():
    return RecordingStatsNotifier()


@pytest.fixture
def bookings(uow_factory, stats):
    return BookingCoordinator(uow_factory, stats)


@pytest.fixture
def screenings(uow_factory, stats):
    return ScreeningCoordinator(uow_factory, stats)


# ---------------------------------------------------------------------------
# API fixtures (SQLite)
# ---------------------------------------------------------------------------


@pytest.fixture
def db_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_tables):
    return TestClient(app)


@pytest.fixture
def seeded(db_tables):
    """One movie, one theater with hall A, one screening at 18:00 UTC."""
    db = SessionLocal()
    try:
        db.add(Movie(movie_id="movie-1", title="Dune", duration_minutes=120))
        db.add(Movie(movie_id="movie-2", title="Arrival", duration_minutes=90))
        db.add(MovieTheater(theater_id="paris-01", name="Paris Center", city="Paris"))
        db.flush()
        db.add(MovieHall(theater_id="paris-01", hall_id="A", seats_layout=HALL_LAYOUT))
        db.flush()
        db.add(Screening(
            screening_id="screening-1",
            movie_id="movie-1",
            theater_id="paris-01",
            hall_id="A",
            start_time=EVENING,
            price=Decimal("12.50"),
            quality="2D",
        ))
        db.commit()
    finally:
        db.close()
    return {"movie_id": "movie-1", "theater_id": "paris-01", "hall_id": "A", "screening_id": "screening-1"}


def auth_headers(user_id: str = "user-1", role: str = "user") -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role=role)}"}


@pytest.fixture
def user_headers():
    return auth_headers("user-1")


@pytest.fixture
def other_user_headers():
    return auth_headers("user-2")


@pytest.fixture
def staff_headers():
    return auth_headers("staff-1", role="staff")


@pytest.fixture
def headers_for():
    return auth_headers
