"""
Test configuration and fixtures

Every test gets its own SQLite database file, a resolver bound to it and
an HTTP client whose /identify endpoint uses that resolver.
"""

import os

# Set test environment variables before importing the app
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select

from database import DatabaseManager
from models import Contact
from services import IdentityResolver


@pytest_asyncio.fixture
async def db(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'contacts.db'}")
    await manager.create_tables()
    yield manager
    await manager.dispose()


@pytest.fixture
def resolver(db):
    return IdentityResolver(db)


@pytest_asyncio.fixture
async def client(resolver, db, monkeypatch):
    import main

    monkeypatch.setattr(main, "db_manager", db)
    main.app.dependency_overrides[main.get_identity_resolver] = lambda: resolver
    async with AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test") as ac:
        yield ac
    main.app.dependency_overrides.clear()


async def all_contacts(manager: DatabaseManager):
    """Every stored contact in id order"""
    async with manager.get_session() as session:
        result = await session.execute(select(Contact).order_by(Contact.id))
        return list(result.scalars().all())


async def add_contact(
    manager: DatabaseManager,
    email=None,
    phone=None,
    precedence="primary",
    linked_id=None,
    created_at=None,
    id=None,
) -> Contact:
    """Insert a contact row directly, bypassing the resolver"""
    created_at = created_at or datetime(2023, 4, 1)
    contact = Contact(
        id=id,
        email=email,
        phone_number=phone,
        link_precedence=precedence,
        linked_id=linked_id,
        created_at=created_at,
        updated_at=created_at,
    )
    async with manager.transaction() as session:
        session.add(contact)
    return contact
