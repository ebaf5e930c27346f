"""Shared fixtures: one file-backed SQLite database per test."""

import pytest
import pytest_asyncio

from core.database import Database
from verticals.bicycle.catalog import seed_bicycle_catalog


@pytest_asyncio.fixture
async def db(tmp_path):
    """Empty database with all tables created."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'configurator.db'}")
    await database.init_db()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def bikes(db):
    """The seeded bicycle catalog."""
    return await seed_bicycle_catalog(db)


@pytest.fixture
def standard_build():
    """Option keys of a complete, valid build without conditional pricing."""
    return ["diamond", "matte", "road-wheels", "black-rim", "single-speed"]
