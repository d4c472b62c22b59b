"""Zoo persistence for the backend: saved zoos per session and the shared leaderboard

The store is SQLite by default; a `postgresql://` DATABASE_URL switches to
PostgreSQL through psycopg2 (the `postgres` extra).
"""
import logging
import os
from pathlib import Path
from typing import Optional, Any, Protocol, List

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///fantasy_zoo.db"


class DatabaseConnection(Protocol):
    """What the routers need from a DB-API connection (sqlite3 or psycopg2)"""
    def cursor(self) -> Any:
        ...

    def commit(self) -> None:
        ...

    def close(self) -> None:
        ...


def schema_statements(text: str = "TEXT", real: str = "REAL") -> List[str]:
    """DDL shared by both backends; column types differ only in spelling"""
    return [
        f"""
            CREATE TABLE IF NOT EXISTS leaderboard (
                id {text} PRIMARY KEY,
                session_id {text},
                player_name {text} NOT NULL,
                coins {real} NOT NULL,
                max_coins {real} NOT NULL,
                pets_hatched INTEGER NOT NULL,
                highest_rarity {text} NOT NULL,
                prestiges_before INTEGER DEFAULT 0,
                prestiges_after INTEGER DEFAULT 0,
                time_played_ms BIGINT DEFAULT 0,
                score {real} NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """,
        """
            CREATE INDEX IF NOT EXISTS idx_leaderboard_score
            ON leaderboard(score DESC, coins DESC)
        """,
        f"""
            CREATE TABLE IF NOT EXISTS game_states (
                session_id {text} PRIMARY KEY,
                state_data TEXT NOT NULL,
                version INTEGER NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """,
        """
            CREATE INDEX IF NOT EXISTS idx_game_states_updated_at
            ON game_states(updated_at)
        """,
    ]


class DatabaseAdapter:
    """
    One lazily opened connection per adapter.

    Subclasses open the raw connection; the schema is created the first time
    it is opened.
    """
    placeholder = "?"
    text_type = "TEXT"
    real_type = "REAL"

    def __init__(self):
        self.conn: Optional[Any] = None

    def _open(self) -> DatabaseConnection:
        raise NotImplementedError

    def _is_stale(self) -> bool:
        return False

    def connect(self) -> DatabaseConnection:
        if self.conn is not None and self._is_stale():
            logger.warning(f"{type(self).__name__}: connection was closed, reopening")
            self.conn = None

        if self.conn is None:
            self.conn = self._open()
            self.init_schema(self.conn)
        return self.conn

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def get_placeholder(self) -> str:
        return self.placeholder

    def schema(self) -> List[str]:
        return schema_statements(text=self.text_type, real=self.real_type)

    def init_schema(self, conn: DatabaseConnection) -> None:
        cursor = conn.cursor()
        for statement in self.schema():
            cursor.execute(statement)
        conn.commit()


class SQLiteAdapter(DatabaseAdapter):

    def __init__(self, db_path: str):
        super().__init__()
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def _open(self) -> DatabaseConnection:
        import sqlite3
        # FastAPI runs sync dependencies in a threadpool
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn


class PostgreSQLAdapter(DatabaseAdapter):
    placeholder = "%s"
    text_type = "VARCHAR(255)"
    real_type = "DOUBLE PRECISION"

    def __init__(self, db_url: str):
        super().__init__()
        self.db_url = db_url

    def _is_stale(self) -> bool:
        return bool(self.conn.closed)

    def _open(self) -> DatabaseConnection:
        try:
            import psycopg2
            from psycopg2.extras import RealDictCursor
        except ImportError:
            raise ImportError(
                "psycopg2-binary is required for PostgreSQL support. "
                "Install it with: pip install 'fantasy-zoo[postgres]'"
            )

        conn = psycopg2.connect(self.db_url, cursor_factory=RealDictCursor)
        conn.autocommit = True
        return conn


def sqlite_path(db_url: str) -> str:
    """'sqlite:///zoo.db', 'sqlite://zoo.db' and a bare 'zoo.db' all mean zoo.db"""
    for prefix in ("sqlite:///", "sqlite://"):
        if db_url.startswith(prefix):
            return db_url[len(prefix):]
    return db_url


class Database:
    """Picks the adapter from DATABASE_URL (or an explicit URL) and hands out its connection"""

    def __init__(self, db_url: Optional[str] = None):
        db_url = db_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        if db_url.startswith(("postgresql://", "postgres://")):
            self.adapter: DatabaseAdapter = PostgreSQLAdapter(db_url)
            self.db_type = "postgresql"
            self.db_path: Optional[str] = None
        else:
            self.db_path = sqlite_path(db_url)
            self.adapter = SQLiteAdapter(self.db_path)
            self.db_type = "sqlite"

        self.conn: Optional[DatabaseConnection] = None

    def connect(self) -> DatabaseConnection:
        self.conn = self.adapter.connect()
        return self.conn

    def close(self) -> None:
        self.adapter.close()
        self.conn = None

    def get_placeholder(self) -> str:
        return self.adapter.get_placeholder()

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


_db_instance: Optional[Database] = None


def get_db() -> DatabaseConnection:
    """FastAPI dependency: the process-wide connection"""
    global _db_instance
    if _db_instance is None:
        _db_instance = Database()
        logger.info(f"Using {_db_instance.db_type} database")
    return _db_instance.connect()


def execute_query(conn: DatabaseConnection, sql: str, params: tuple = ()) -> Any:
    """
    Run SQL written with '?' placeholders and return the cursor.

    psycopg2 connections get the placeholders rewritten to '%s'.
    """
    if type(conn).__module__.startswith("psycopg2"):
        sql = sql.replace("?", "%s")

    cursor = conn.cursor()
    cursor.execute(sql, params)
    return cursor
