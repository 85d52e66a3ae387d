from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure the project root (which exposes the ``backend`` package) is on ``sys.path``
PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# The test database is built from the models; skip Alembic during app startup.
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "0")

from backend.app import lifecycle, models  # noqa: E402
from backend.app.database import Base, configure_sqlite_connections, get_db  # noqa: E402
from backend.app.main import app  # noqa: E402
from backend.app.services import ReferenceDataService  # noqa: E402


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite_connections(test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    ReferenceDataService.ensure_defaults(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            db_session.expire_all()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def reference(db_session: Session) -> dict:
    """Default categories, priorities and statuses keyed by name."""

    return {
        "categories": {item.name: item for item in ReferenceDataService.list_categories(db_session)},
        "priorities": {item.name: item for item in ReferenceDataService.list_priorities(db_session)},
        "statuses": {item.name: item for item in ReferenceDataService.list_statuses(db_session)},
    }


class FrozenClock:
    """Controllable replacement for :func:`backend.app.lifecycle.utcnow`."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def set(self, *args: int) -> datetime:
        self.current = datetime(*args, tzinfo=timezone.utc)
        return self.current


@pytest.fixture
def clock(monkeypatch) -> FrozenClock:
    frozen = FrozenClock(datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc))
    monkeypatch.setattr(lifecycle, "utcnow", frozen)
    return frozen


@pytest.fixture
def make_ticket(db_session: Session, reference: dict) -> Callable[..., models.Ticket]:
    """Insert a ticket directly through the ORM."""

    def _make_ticket(
        *,
        title: str = "Printer jammed",
        category: str = "IT Support",
        priority: str = "Medium",
        status: str = "Open",
        created_at: datetime | None = None,
        ticket_number: str | None = None,
        **extra,
    ) -> models.Ticket:
        ticket = models.Ticket(
            title=title,
            description=extra.pop("description", ""),
            category=reference["categories"][category],
            priority=reference["priorities"][priority],
            status=reference["statuses"][status],
            requester_name=extra.pop("requester_name", "Ada Lovelace"),
            requester_email=extra.pop("requester_email", "ada@example.com"),
            assigned_to=extra.pop("assigned_to", ""),
            created_at=created_at,
            ticket_number=ticket_number,
        )
        db_session.add(ticket)
        db_session.commit()
        db_session.refresh(ticket)
        return ticket

    return _make_ticket
