"""Shared pytest fixtures."""

from datetime import datetime

import pytest

from eventaudit.database import Database


@pytest.fixture
def database():
    """In-memory database with the schema created."""
    db = Database("sqlite://")
    db.init_schema()
    yield db
    db.close()


@pytest.fixture
def db_url(tmp_path):
    """URL of an empty SQLite file."""
    return f"sqlite:///{tmp_path / 'events.db'}"


@pytest.fixture
def file_database(db_url):
    """File-backed database with the schema created."""
    db = Database(db_url)
    db.init_schema()
    yield db
    db.close()


@pytest.fixture
def t0():
    return datetime(2026, 10, 19, 9, 30, 0)
