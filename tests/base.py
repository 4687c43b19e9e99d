import json
import os
import sys
import tempfile
import unittest
from decimal import Decimal

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from db import database as db_database  # noqa: E402
from db.models import Product  # noqa: E402
from utils.local_storage import LocalStorage  # noqa: E402

# ids from seed.sql
BOHEME = "prod-painel-boheme"  # 189.90
SUPORTE = "prod-suporte-natural"  # 45.00
PORTA_COPOS = "prod-porta-copos"  # 60.00, legacy single color/size only


def make_product(pid="p1", price="10.00", name=None, **kwargs) -> Product:
    return Product(
        id=pid,
        name=name or f"Product {pid}",
        description="",
        price=Decimal(price),
        stock=10,
        **kwargs,
    )


class DbTestCase(unittest.IsolatedAsyncioTestCase):
    """Fresh seeded database and empty local storage for every test."""

    def setUp(self):
        # Point the DB to a temporary file and force re-initialization
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        db_database.DB_PATH = self.db_path
        db_database._initialized = False
        self.storage = LocalStorage(os.path.join(self.temp_dir.name, "local.json"))

    async def asyncSetUp(self):
        # Touch initialization by opening a connection
        async with db_database.connect() as conn:
            cur = await conn.execute("SELECT name FROM sqlite_master WHERE type='table';")
            await cur.fetchall()
            await cur.close()

    def tearDown(self):
        self.temp_dir.cleanup()

    async def fetch_all(self, sql, params=()):
        async with db_database.connect() as conn:
            cur = await conn.execute(sql, params)
            rows = await cur.fetchall()
            await cur.close()
        return rows

    async def outbox(self, channel=None):
        """Queued notifications, oldest first, with the payload decoded."""
        if channel:
            rows = await self.fetch_all(
                "SELECT * FROM outbox WHERE channel = ? ORDER BY created_at, rowid;", (channel,)
            )
        else:
            rows = await self.fetch_all("SELECT * FROM outbox ORDER BY created_at, rowid;")
        return [{**dict(r), "payload": json.loads(r["payload"])} for r in rows]
