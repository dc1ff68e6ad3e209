# catalog/storage.py
import datetime
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional, Tuple

import pytz

from .errors import PersistenceError
from .logger import get_logger
from .models import Item, LineItem, LineItemAttrs

logger = get_logger(__name__)

_LINE_ITEM_COLUMNS = """
    li.id, li.item_id, li.identifier, li.short_title, li.title, li.slug,
    li.description, li.value, li.categories, li.notes, li.expiration_notice,
    li.csv_row_hash, li.csv_raw_line, li.inserted_at, li.updated_at,
    i.item_identifier
"""


def now_utc_iso() -> str:
    return datetime.datetime.now(tz=pytz.UTC).isoformat()


def _line_item_from_row(row: tuple) -> LineItem:
    return LineItem(*row)


class Store:
    """sqlite persistence for items and their line items. Single writer."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        con = sqlite3.connect(self.db_path)
        con.execute("PRAGMA foreign_keys = ON")
        try:
            with con:
                yield con
        except sqlite3.IntegrityError as e:
            raise PersistenceError(str(e)) from e
        finally:
            con.close()

    def ensure_db(self):
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    item_identifier INTEGER NOT NULL UNIQUE CHECK (item_identifier > 0),
                    inserted_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS line_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    item_id INTEGER NOT NULL REFERENCES items(id) ON DELETE CASCADE,
                    identifier INTEGER NOT NULL CHECK (identifier > 0),
                    short_title TEXT NOT NULL DEFAULT '',
                    title TEXT NOT NULL DEFAULT '',
                    slug TEXT NOT NULL DEFAULT '',
                    description TEXT NOT NULL DEFAULT '',
                    value INTEGER NOT NULL DEFAULT 0 CHECK (value >= 0),
                    categories TEXT NOT NULL DEFAULT '',
                    notes TEXT NOT NULL DEFAULT '',
                    expiration_notice TEXT NOT NULL DEFAULT '',
                    csv_row_hash TEXT NOT NULL,
                    csv_raw_line TEXT NOT NULL,
                    inserted_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (item_id, identifier)
                )
            """
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS line_items_csv_row_hash ON line_items (csv_row_hash)"
            )

    def find_or_create_item(self, item_identifier: int) -> Tuple[Item, bool]:
        """Return (item, created)."""
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                "SELECT id, item_identifier, inserted_at, updated_at FROM items WHERE item_identifier=?",
                (item_identifier,),
            )
            row = cur.fetchone()
            if row:
                return Item(*row), False

            ts = now_utc_iso()
            cur.execute(
                "INSERT INTO items (item_identifier, inserted_at, updated_at) VALUES (?,?,?)",
                (item_identifier, ts, ts),
            )
            logger.debug("Created item %s", item_identifier)
            return Item(cur.lastrowid, item_identifier, ts, ts), True

    def get_line_item(self, item_id: int, identifier: int) -> Optional[LineItem]:
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                f"""
                SELECT {_LINE_ITEM_COLUMNS}
                FROM line_items li JOIN items i ON i.id = li.item_id
                WHERE li.item_id=? AND li.identifier=?
            """,
                (item_id, identifier),
            )
            row = cur.fetchone()
        return _line_item_from_row(row) if row else None

    def insert_line_item(
        self,
        item_id: int,
        identifier: int,
        attrs: LineItemAttrs,
        row_hash: str,
        raw: str,
    ) -> int:
        ts = now_utc_iso()
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                """
                INSERT INTO line_items (
                    item_id, identifier, short_title, title, slug, description,
                    value, categories, notes, expiration_notice,
                    csv_row_hash, csv_raw_line, inserted_at, updated_at
                )
                VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?)
            """,
                (
                    item_id,
                    identifier,
                    attrs.short_title,
                    attrs.title,
                    attrs.slug,
                    attrs.description,
                    attrs.value,
                    attrs.categories,
                    attrs.notes,
                    attrs.expiration_notice,
                    row_hash,
                    raw,
                    ts,
                    ts,
                ),
            )
            return cur.lastrowid

    def update_line_item(
        self, line_item_id: int, attrs: LineItemAttrs, row_hash: str, raw: str
    ):
        with self._connect() as con:
            con.execute(
                """
                UPDATE line_items SET
                    short_title=?, title=?, slug=?, description=?, value=?,
                    categories=?, notes=?, expiration_notice=?,
                    csv_row_hash=?, csv_raw_line=?, updated_at=?
                WHERE id=?
            """,
                (
                    attrs.short_title,
                    attrs.title,
                    attrs.slug,
                    attrs.description,
                    attrs.value,
                    attrs.categories,
                    attrs.notes,
                    attrs.expiration_notice,
                    row_hash,
                    raw,
                    now_utc_iso(),
                    line_item_id,
                ),
            )

    def line_item_keys(self) -> List[Tuple[int, int, int]]:
        """Return (line_item_id, item_identifier, identifier) for every line item."""
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                """
                SELECT li.id, i.item_identifier, li.identifier
                FROM line_items li JOIN items i ON i.id = li.item_id
            """
            )
            return [tuple(r) for r in cur.fetchall()]

    def delete_line_items(self, line_item_ids: Iterable[int]) -> int:
        ids = [(i,) for i in line_item_ids]
        if not ids:
            return 0
        with self._connect() as con:
            con.executemany("DELETE FROM line_items WHERE id=?", ids)
        return len(ids)

    def delete_empty_items(self) -> int:
        with self._connect() as con:
            cur = con.execute(
                "DELETE FROM items WHERE id NOT IN (SELECT DISTINCT item_id FROM line_items)"
            )
            return cur.rowcount

    def count_line_items(self) -> int:
        with self._connect() as con:
            row = con.execute("SELECT COUNT(*) FROM line_items").fetchone()
        return row[0] if row and row[0] is not None else 0

    def count_items(self) -> int:
        with self._connect() as con:
            row = con.execute("SELECT COUNT(*) FROM items").fetchone()
        return row[0] if row and row[0] is not None else 0

    def count_for_item(self, item_id: int) -> int:
        with self._connect() as con:
            row = con.execute(
                "SELECT COUNT(*) FROM line_items WHERE item_id=?", (item_id,)
            ).fetchone()
        return row[0] if row and row[0] is not None else 0

    def list_line_items(self) -> List[LineItem]:
        """All line items ordered for rendering: by item identifier, then position."""
        with self._connect() as con:
            cur = con.cursor()
            cur.execute(
                f"""
                SELECT {_LINE_ITEM_COLUMNS}
                FROM line_items li JOIN items i ON i.id = li.item_id
                ORDER BY i.item_identifier, li.identifier
            """
            )
            rows = cur.fetchall()
        return [_line_item_from_row(r) for r in rows]
