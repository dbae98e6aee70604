"""
SQLite foundation for the fix store.
Connection handling, versioned schema migrations and the fixed embedding dimension.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator, List, Optional, Tuple

from .config import MEMORY_DB, ensure_db_directory, get_db_path, get_embedding_dimension
from .errors import DimensionMismatchError, ValidationError
from ..util.logging import logger

# (version, name, statements) - applied in order, each exactly once
MIGRATIONS: List[Tuple[int, str, Tuple[str, ...]]] = [
    (1, "create_error_fixes", (
        '''
        CREATE TABLE IF NOT EXISTS store_meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        ''',
        '''
        CREATE TABLE IF NOT EXISTS error_fixes (
            id TEXT PRIMARY KEY,
            error_message TEXT NOT NULL,
            fix_code TEXT NOT NULL,
            tech_stack TEXT NOT NULL,
            success_rate REAL NOT NULL CHECK (success_rate >= 0.0 AND success_rate <= 1.0),
            embedding BLOB NOT NULL
        )
        ''',
        'CREATE INDEX IF NOT EXISTS idx_error_fixes_tech_stack ON error_fixes(tech_stack)',
    )),
    (2, "create_patterns", (
        '''
        CREATE TABLE IF NOT EXISTS patterns (
            id TEXT PRIMARY KEY,
            code TEXT NOT NULL,
            tech_stack TEXT NOT NULL,
            success_rate REAL NOT NULL CHECK (success_rate >= 0.0 AND success_rate <= 1.0),
            embedding BLOB NOT NULL
        )
        ''',
        'CREATE INDEX IF NOT EXISTS idx_patterns_tech_stack ON patterns(tech_stack)',
    )),
]

REQUIRED_TABLES = ['store_meta', 'schema_migrations', 'error_fixes', 'patterns']

DIMENSION_KEY = "embedding_dimension"


def connect(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Open a SQLite connection that may be shared across threads behind a lock."""
    path = db_path or get_db_path()
    ensure_db_directory(path)
    conn = sqlite3.connect(path, check_same_thread=False)
    if path != MEMORY_DB:
        conn.execute("PRAGMA journal_mode=WAL")
    return conn


@contextmanager
def get_db(db_path: Optional[str] = None) -> Generator[sqlite3.Connection, None, None]:
    """Get a short-lived SQLite database connection."""
    conn = connect(db_path)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Generator[sqlite3.Cursor, None, None]:
    """Run statements on one cursor, committing on success and rolling back on error."""
    cursor = conn.cursor()
    try:
        yield cursor
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        cursor.close()


def applied_versions(conn: sqlite3.Connection) -> List[int]:
    """List migration versions already recorded in the database."""
    cursor = conn.cursor()
    cursor.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_migrations'"
    )
    if cursor.fetchone() is None:
        return []
    cursor.execute("SELECT version FROM schema_migrations ORDER BY version")
    return [row[0] for row in cursor.fetchall()]


def migrate(conn: sqlite3.Connection) -> List[int]:
    """Apply pending schema migrations and return the versions applied."""
    with transaction(conn) as cursor:
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        ''')

    done = set(applied_versions(conn))
    applied = []
    for version, name, statements in MIGRATIONS:
        if version in done:
            continue
        with transaction(conn) as cursor:
            for statement in statements:
                cursor.execute(statement)
            cursor.execute(
                "INSERT INTO schema_migrations (version, name) VALUES (?, ?)",
                (version, name)
            )
        logger.log_migration(version, name)
        applied.append(version)

    return applied


def get_stored_dimension(conn: sqlite3.Connection) -> Optional[int]:
    """Get the embedding dimension recorded for this database, if any."""
    cursor = conn.cursor()
    cursor.execute("SELECT value FROM store_meta WHERE key = ?", (DIMENSION_KEY,))
    row = cursor.fetchone()
    return int(row[0]) if row else None


def ensure_dimension(conn: sqlite3.Connection, dimension: Optional[int] = None) -> int:
    """Record the embedding dimension on first use, or check it against the stored one.

    Without an explicit dimension an existing store keeps its stored value and a
    new store takes FIXSTORE_EMBEDDING_DIMENSION.
    """
    stored = get_stored_dimension(conn)
    if dimension is None:
        if stored is not None:
            return stored
        try:
            dimension = get_embedding_dimension()
        except ValueError as e:
            raise ValidationError(f"Invalid FIXSTORE_EMBEDDING_DIMENSION: {e}") from e

    if isinstance(dimension, bool) or not isinstance(dimension, int) or dimension < 1:
        raise ValidationError(f"Embedding dimension must be a positive integer, got {dimension!r}")

    if stored is None:
        with transaction(conn) as cursor:
            cursor.execute(
                "INSERT INTO store_meta (key, value) VALUES (?, ?)",
                (DIMENSION_KEY, str(dimension))
            )
        logger.info(f"Fixed embedding dimension at {dimension}")
        return dimension

    if stored != dimension:
        raise DimensionMismatchError(expected=stored, actual=dimension)
    return stored


def init_db(conn: sqlite3.Connection, dimension: Optional[int] = None) -> int:
    """Initialize the database schema and return the store's embedding dimension."""
    migrate(conn)
    return ensure_dimension(conn, dimension)


def health_check(conn: sqlite3.Connection) -> bool:
    """Check database health."""
    try:
        cursor = conn.cursor()
        cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
        table_names = [table[0] for table in cursor.fetchall()]

        if not all(table in table_names for table in REQUIRED_TABLES):
            return False
        return get_stored_dimension(conn) is not None
    except sqlite3.Error as e:
        logger.error(f"Database health check failed: {e}")
        return False
