"""
SQLite cart store.
Holds in-progress checkout carts between requests - everything else lives in the backend.
"""

import asyncio
import aiosqlite
from datetime import datetime
from typing import List, Optional
import os


class CartStore:
    """Local SQLite persistence for POS carts, keyed by session cart id."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            if self.db_path != ":memory:":
                os.makedirs(os.path.dirname(self.db_path) or ".", exist_ok=True)
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def initialize(self) -> None:
        """Create database tables."""
        conn = await self._get_connection()

        await conn.executescript("""
            CREATE TABLE IF NOT EXISTS cart_lines (
                cart_id TEXT NOT NULL,
                product_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                name TEXT NOT NULL,
                unit_price TEXT NOT NULL,
                quantity INTEGER NOT NULL,
                stock INTEGER NOT NULL,
                unit TEXT NOT NULL DEFAULT 'pcs',
                barcode TEXT,
                updated_at TEXT NOT NULL,
                PRIMARY KEY (cart_id, product_id)
            );

            CREATE INDEX IF NOT EXISTS idx_cart_lines_updated_at ON cart_lines(updated_at);
        """)
        await conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    # ===== Cart Operations =====

    async def load(self, cart_id: str) -> List[dict]:
        """Return the cart's lines in the order they were added."""
        conn = await self._get_connection()
        cursor = await conn.execute(
            "SELECT * FROM cart_lines WHERE cart_id = ? ORDER BY position",
            (cart_id,)
        )
        rows = await cursor.fetchall()
        return [
            {
                "product_id": row["product_id"],
                "name": row["name"],
                "unit_price": row["unit_price"],
                "quantity": row["quantity"],
                "stock": row["stock"],
                "unit": row["unit"],
                "barcode": row["barcode"],
            }
            for row in rows
        ]

    async def save(self, cart_id: str, lines: List[dict]) -> None:
        """Replace the stored cart with the given lines. The last save wins."""
        now = datetime.utcnow().isoformat()
        rows = [
            (
                cart_id,
                line["product_id"],
                position,
                line["name"],
                str(line["unit_price"]),
                line["quantity"],
                line["stock"],
                line.get("unit") or "pcs",
                line.get("barcode"),
                now
            )
            for position, line in enumerate(lines)
        ]

        # Requests share one connection: the delete, inserts and commit must not interleave
        async with self._write_lock:
            conn = await self._get_connection()
            await conn.execute("DELETE FROM cart_lines WHERE cart_id = ?", (cart_id,))
            await conn.executemany(
                """
                INSERT INTO cart_lines (cart_id, product_id, position, name, unit_price,
                                        quantity, stock, unit, barcode, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows
            )
            await conn.commit()

    async def clear(self, cart_id: str) -> None:
        async with self._write_lock:
            conn = await self._get_connection()
            await conn.execute("DELETE FROM cart_lines WHERE cart_id = ?", (cart_id,))
            await conn.commit()

    async def purge_older_than(self, cutoff: datetime) -> int:
        """Drop carts untouched since the cutoff. Returns the number of lines removed."""
        async with self._write_lock:
            conn = await self._get_connection()
            cursor = await conn.execute(
                "DELETE FROM cart_lines WHERE updated_at < ?",
                (cutoff.isoformat(),)
            )
            await conn.commit()
        return cursor.rowcount
