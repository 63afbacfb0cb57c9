# tests/conftest.py
import os
import sys

import pytest
import pytest_asyncio

sys.path.append(os.path.abspath("."))

from oruma.contacts import ContactStore
from oruma.core import get_settings
from oruma.database import MEMORY, Database
from oruma.notes import NoteStore
from oruma.schemas import ContactCategory, ContactCreate


# Fresh in-memory database per test
@pytest_asyncio.fixture()
async def database():
    db = Database(MEMORY)
    await db.ready()
    try:
        yield db
    finally:
        await db.close()


@pytest.fixture()
def contacts(database):
    return ContactStore(database)


@pytest.fixture()
def notes(database):
    return NoteStore(database)


@pytest.fixture()
def settings_env(monkeypatch):
    """Let a test override settings through environment variables."""
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def contact_data(first_name="Alice", last_name="Alpha", native_id=None, category=None):
    return ContactCreate(
        first_name=first_name,
        last_name=last_name,
        native_id=native_id,
        category=category or ContactCategory.ALL,
    )
