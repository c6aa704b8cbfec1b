import logging
import os
from datetime import datetime

import pytest

# Keep tests off any developer .env / real database
os.environ["SPACED_REVIEW_DATABASE_URL"] = "sqlite://"
os.environ["SPACED_REVIEW_LOG_LEVEL"] = "WARNING"

from spaced_review.config import Settings  # noqa: E402
from spaced_review.database import build_engine, build_session_factory, init_db  # noqa: E402
from spaced_review.engine import ReviewEngine  # noqa: E402
from spaced_review.store import SqlAlchemyItemStore  # noqa: E402

# Fixed clock for every test: Monday morning, UTC
NOW = datetime(2026, 3, 2, 9, 0, 0)


@pytest.fixture(autouse=True)
def _strip_file_handlers():
    """Remove file handlers from root logger so tests never write to logs/."""
    root = logging.getLogger()
    saved = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    for h in saved:
        root.removeHandler(h)
    yield
    for h in list(root.handlers):
        if isinstance(h, logging.FileHandler):
            root.removeHandler(h)
    for h in saved:
        root.addHandler(h)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database per test"""
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine):
    return SqlAlchemyItemStore(build_session_factory(db_engine))


@pytest.fixture
def engine(store, settings):
    return ReviewEngine(store, settings)


@pytest.fixture
def make_item(engine, now):
    """Create an item for user u1, defaulting to a fresh math topic"""
    counter = {"n": 0}

    def _make(confidence=3, difficulty_level=3, created_at=None, user_id="u1",
              subject_id="math", topic_name=None, chapter_reference=None):
        counter["n"] += 1
        return engine.create(
            user_id,
            subject_id,
            topic_name or f"Topic {counter['n']}",
            confidence,
            difficulty_level,
            chapter_reference,
            now=created_at or now,
        )

    return _make
