"""
Pytest configuration and fixtures for sqlweave tests.
"""

import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

# Add the repository root to path for imports
# This allows `from sqlweave.runtime import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

# The sample application lives beside the tests
tests_root = Path(__file__).parent
if str(tests_root) not in sys.path:
    sys.path.insert(0, str(tests_root))

from sqlweave.components import ComponentPool  # noqa: E402
from sqlweave.runtime import ApplicationEnvironment  # noqa: E402

FIXTURE_PACKAGE = "sqlweave_fixtures"
RESOURCE_ROOT = tests_root / "sqlweave_fixtures" / "resources"

SCHEMA = [
    "CREATE TABLE country (id INTEGER PRIMARY KEY, name TEXT NOT NULL)",
    "CREATE TABLE city (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, "
    "state TEXT, country_id INTEGER)",
    "CREATE TABLE region (id INTEGER PRIMARY KEY, name TEXT NOT NULL)",
    "CREATE TABLE mail (id INTEGER PRIMARY KEY, address TEXT NOT NULL)",
    "CREATE TABLE phone (id INTEGER PRIMARY KEY, number TEXT NOT NULL)",
    "INSERT INTO country (id, name) VALUES (1, 'Japan'), (2, 'Germany')",
    "INSERT INTO city (id, name, state, country_id) VALUES "
    "(1, 'San Francisco', 'CA', NULL), (2, 'Osaka', 'OS', 1), (3, 'Berlin', 'BE', 2)",
    "INSERT INTO region (id, name) VALUES (1, 'Kansai'), (2, 'Kanto')",
    "INSERT INTO mail (id, address) VALUES (1, 'a@example.com'), (2, 'b@example.com')",
    "INSERT INTO phone (id, number) VALUES (1, '000-0000'), (2, '111-1111')",
]


def make_engine() -> Engine:
    """In-memory SQLite engine shared across connections, seeded with sample data."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as connection:
        for statement in SCHEMA:
            connection.execute(text(statement))
    return engine


@pytest.fixture
def engine():
    """Seeded in-memory database."""
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def second_engine():
    """A second, independent seeded database."""
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def environment():
    """Application environment over the sample package and resources."""
    return ApplicationEnvironment(packages=[FIXTURE_PACKAGE], resource_root=RESOURCE_ROOT)


@pytest.fixture
def pool(engine):
    """Component pool holding only the "default" data source."""
    return ComponentPool.builder().register(Engine, engine, name="default").build()
