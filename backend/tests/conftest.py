"""Shared test fixtures for all test modules."""

import contextlib
import uuid

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import newsletter.models  # noqa: F401  (registers all tables on Base.metadata)
from newsletter.core import database as db_module
from newsletter.core.database import Base
from newsletter.models.newsletter_issue import NewsletterIssue
from newsletter.models.subscriber import Subscriber, SubscriberStatus
from newsletter.repositories.issue_delivery_queue_repository import IssueDeliveryQueueRepository

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct testing."""
    gen = db_module.get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.UUID("00000000-0000-0000-0000-0000000000aa")


@pytest.fixture
def confirmed_subscribers(db_session: Session) -> list[str]:
    """Two confirmed subscribers and one still pending confirmation."""
    emails = ["ursula@example.com", "le.guin@example.com"]
    for email in emails:
        db_session.add(
            Subscriber(
                email=email,
                name=email.split("@")[0],
                status=SubscriberStatus.CONFIRMED.value,
            )
        )
    db_session.add(
        Subscriber(
            email="pending@example.com",
            name="pending",
            status=SubscriberStatus.PENDING_CONFIRMATION.value,
        )
    )
    db_session.commit()
    return emails


@pytest.fixture
def make_issue(db_session: Session):
    """Factory committing an issue with the given recipients queued."""

    def _make(recipients: list[str], title: str = "Issue #1") -> uuid.UUID:
        issue_id = uuid.uuid4()
        db_session.add(
            NewsletterIssue(
                id=issue_id,
                title=title,
                text_content="Plain body",
                html_content="<p>HTML body</p>",
            )
        )
        db_session.flush()
        IssueDeliveryQueueRepository(db_session).enqueue_batch(issue_id, recipients)
        db_session.commit()
        return issue_id

    return _make
