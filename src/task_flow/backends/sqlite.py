"""SQLite backend for Task Flow."""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Sequence

from task_flow.backends.base import (
    Condition,
    FieldMap,
    RecordBackend,
    Rules,
    coerce_id,
)
from task_flow.errors import NotFound, TransportError, ValidationError
from task_flow.models import CATEGORY_FIELDS, TASK_FIELDS

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 1

TASK_FIELD_MAP = FieldMap(TASK_FIELDS)
# "order" is an SQL keyword, and task_count is derived so it has no column.
CATEGORY_FIELD_MAP = FieldMap(
    [name for name in CATEGORY_FIELDS if name != "task_count"], {"order": "sort_order"}
)


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path) -> None:
        """Initialize database with path."""
        self.db_path = Path(db_path)

    @contextmanager
    def connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections with dict-like row access."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise TransportError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ValidationError(str(e)) from e
        except sqlite3.Error as e:
            conn.rollback()
            raise TransportError(f"Database error: {e}") from e
        finally:
            conn.close()

    def open(self, seed_categories: Sequence[dict[str, Any]] = ()) -> None:
        """Create the schema for a new database or check an existing one."""
        if self.get_schema_version() is None:
            self.initialize_schema(seed_categories)
        else:
            self.check_schema_version()

    def initialize_schema(self, seed_categories: Sequence[dict[str, Any]] = ()) -> None:
        """Create database tables if they don't exist.

        Args:
            seed_categories: Canonical category records inserted when the
                categories table is empty.
        """
        with self.connection() as conn:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    category_id TEXT NOT NULL DEFAULT 'general',
                    priority TEXT NOT NULL DEFAULT 'medium',
                    due_date TEXT DEFAULT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    completed_at TEXT DEFAULT NULL,
                    created_at TEXT NOT NULL DEFAULT (datetime('now')),
                    archived INTEGER NOT NULL DEFAULT 0
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS categories (
                    id INTEGER PRIMARY KEY,
                    name TEXT NOT NULL,
                    key TEXT NOT NULL DEFAULT '',
                    color TEXT NOT NULL DEFAULT '#5B47E0',
                    icon TEXT NOT NULL DEFAULT 'Folder',
                    sort_order INTEGER NOT NULL DEFAULT 0
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
            """)

            cursor.execute(
                "SELECT version FROM schema_version WHERE version = ?",
                (CURRENT_SCHEMA_VERSION,),
            )
            if cursor.fetchone() is None:
                cursor.execute(
                    "INSERT INTO schema_version (version) VALUES (?)",
                    (CURRENT_SCHEMA_VERSION,),
                )

            cursor.execute("SELECT COUNT(*) AS total FROM categories")
            if cursor.fetchone()["total"] == 0:
                for category in seed_categories:
                    cursor.execute(
                        "INSERT INTO categories (name, key, color, icon, sort_order) "
                        "VALUES (?, ?, ?, ?, ?)",
                        (
                            category["name"],
                            category["key"],
                            category["color"],
                            category["icon"],
                            category["order"],
                        ),
                    )

            conn.commit()
        logger.info("Initialized database schema v%d at %s", CURRENT_SCHEMA_VERSION, self.db_path)

    def get_schema_version(self) -> int | None:
        """Get the current schema version, or None if not initialized."""
        with self.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("SELECT MAX(version) as version FROM schema_version")
                row = cursor.fetchone()
                return row["version"] if row else None
            except sqlite3.OperationalError:
                return None

    def verify_connection(self) -> bool:
        """Verify the database connection and schema are valid."""
        try:
            with self.connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT 1 FROM tasks LIMIT 1")
                cursor.execute("SELECT 1 FROM categories LIMIT 1")
                return True
        except TransportError:
            return False

    def check_schema_version(self) -> None:
        """Refuse a database written by a newer schema than this one."""
        current_version = self.get_schema_version()
        if current_version is not None and current_version > CURRENT_SCHEMA_VERSION:
            raise TransportError(
                f"Database {self.db_path} uses schema v{current_version}, "
                f"newer than supported v{CURRENT_SCHEMA_VERSION}"
            )


class SqliteBackend(RecordBackend):
    """One table of a :class:`Database` exposed as a record backend.

    Each write runs inside a single transaction.
    """

    def __init__(
        self,
        database: Database,
        table: str,
        *,
        kind: str = "record",
        field_map: FieldMap,
        rules: Rules | None = None,
    ) -> None:
        self.database = database
        self.table = table
        self.kind = kind
        self.field_map = field_map
        self.rules = rules or Rules()
        self._columns = {field_map.backend_name(name) for name in field_map.fields}

    def _column(self, name: str) -> str:
        if name not in self._columns:
            raise ValidationError(f"Unknown column: {name}", field=name)
        return f'"{name}"'

    def _writable(self, fields: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in fields.items() if k in self._columns and k != self.id_field}

    def _fetch(self, cursor: sqlite3.Cursor, record_id: int) -> dict[str, Any] | None:
        cursor.execute(
            f"SELECT * FROM {self.table} WHERE {self._column(self.id_field)} = ?",
            (record_id,),
        )
        row = cursor.fetchone()
        return dict(row) if row is not None else None

    async def list(self, where: Sequence[Condition] | None = None) -> list[dict[str, Any]]:
        clauses = []
        params: list[Any] = []
        for condition in where or ():
            column = self._column(condition.field)
            if condition.operator == "eq":
                if condition.value is None:
                    clauses.append(f"{column} IS NULL")
                else:
                    clauses.append(f"{column} = ?")
                    params.append(condition.value)
            elif condition.operator == "contains":
                clauses.append(f"instr(lower({column}), lower(?)) > 0")
                params.append(str(condition.value))
            else:
                raise ValidationError(f"Unsupported operator: {condition.operator}")

        sql = f"SELECT * FROM {self.table}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += f" ORDER BY {self._column(self.id_field)} ASC"

        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            return [dict(row) for row in cursor.fetchall()]

    async def get_by_id(self, record_id: Any) -> dict[str, Any]:
        wanted = coerce_id(self.kind, record_id)
        with self.database.connection() as conn:
            record = self._fetch(conn.cursor(), wanted)
        if record is None:
            raise NotFound(self.kind, record_id)
        return record

    async def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        values = self._writable(fields)
        self.rules.check(values)
        columns = ", ".join(self._column(name) for name in values)
        placeholders = ", ".join("?" for _ in values)

        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})",
                tuple(values.values()),
            )
            conn.commit()
            return self._fetch(cursor, cursor.lastrowid)

    async def update(self, record_id: Any, fields: dict[str, Any]) -> dict[str, Any]:
        wanted = coerce_id(self.kind, record_id)
        values = self._writable(fields)

        with self.database.connection() as conn:
            cursor = conn.cursor()
            current = self._fetch(cursor, wanted)
            if current is None:
                raise NotFound(self.kind, record_id)
            self.rules.check({**current, **values})
            if values:
                assignments = ", ".join(f"{self._column(name)} = ?" for name in values)
                cursor.execute(
                    f"UPDATE {self.table} SET {assignments} "
                    f"WHERE {self._column(self.id_field)} = ?",
                    (*values.values(), wanted),
                )
                conn.commit()
            return self._fetch(cursor, wanted)

    async def delete(self, record_id: Any) -> None:
        wanted = coerce_id(self.kind, record_id)
        with self.database.connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"DELETE FROM {self.table} WHERE {self._column(self.id_field)} = ?",
                (wanted,),
            )
            if cursor.rowcount == 0:
                raise NotFound(self.kind, record_id)
            conn.commit()
