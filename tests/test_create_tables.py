from conftest import all_contacts
from create_tables import create_tables
from database import DatabaseManager


async def test_create_tables_on_fresh_database(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}")
    try:
        assert await create_tables(manager) is True
        assert await all_contacts(manager) == []
    finally:
        await manager.dispose()


async def test_create_tables_reports_unreachable_database(tmp_path):
    manager = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'x.db'}")
    try:
        assert await create_tables(manager) is False
    finally:
        await manager.dispose()
