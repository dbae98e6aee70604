"""
Fix record store - keyed SQLite storage for learned records.
Exact lookup by id and bulk scan by tech stack; ordering belongs to the ranking engine.
"""

import sqlite3
from typing import List, Sequence, Type, TypeVar

import numpy as np

from .db import transaction
from .errors import DuplicateKeyError, NotFoundError
from .schema import LearnedRecord
from ..util.logging import logger

R = TypeVar("R", bound=LearnedRecord)

# Little-endian float64 keeps stored values equal to the values written
EMBEDDING_DTYPE = np.dtype("<f8")


def encode_embedding(embedding: Sequence[float]) -> bytes:
    """Serialize an embedding for BLOB storage."""
    return np.asarray(embedding, dtype=EMBEDDING_DTYPE).tobytes()


def decode_embedding(blob: bytes) -> List[float]:
    """Deserialize a stored embedding."""
    return np.frombuffer(blob, dtype=EMBEDDING_DTYPE).tolist()


def _select_sql(record_type: Type[LearnedRecord], where: str) -> str:
    return f"SELECT {', '.join(record_type.columns())} FROM {record_type.TABLE} WHERE {where}"


def _row_to_record(record_type: Type[R], row: Sequence) -> R:
    fields = dict(zip(record_type.columns(), row))
    fields["embedding"] = decode_embedding(fields["embedding"])
    return record_type(**fields)


def insert_record(conn: sqlite3.Connection, record: LearnedRecord) -> None:
    """Insert a record, failing if its id is already stored."""
    columns = record.columns()
    values = []
    for column in columns:
        value = getattr(record, column)
        values.append(encode_embedding(value) if column == "embedding" else value)

    try:
        with transaction(conn) as cursor:
            cursor.execute(
                f"INSERT INTO {record.TABLE} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
                values
            )
    except sqlite3.IntegrityError as e:
        if "UNIQUE" not in str(e) and "PRIMARY KEY" not in str(e):
            raise
        logger.log_record_operation("insert", record.TABLE, record.id, status="rejected",
                                    details={"reason": "duplicate id"})
        raise DuplicateKeyError(record.id, record.TABLE) from e

    logger.log_record_operation("insert", record.TABLE, record.id, details=record.log_summary())


def get_record(conn: sqlite3.Connection, record_type: Type[R], record_id: str) -> R:
    """Get a record by id."""
    cursor = conn.cursor()
    cursor.execute(_select_sql(record_type, "id = ?"), (record_id,))
    row = cursor.fetchone()
    if row is None:
        raise NotFoundError(record_id, record_type.TABLE)
    return _row_to_record(record_type, row)


def scan_by_tech_stack(conn: sqlite3.Connection, record_type: Type[R], tech_stack: str) -> List[R]:
    """Return every record whose tech stack equals the argument exactly. Order is unspecified."""
    cursor = conn.cursor()
    cursor.execute(_select_sql(record_type, "tech_stack = ?"), (tech_stack,))
    return [_row_to_record(record_type, row) for row in cursor.fetchall()]


def get_success_rate(cursor: sqlite3.Cursor, record_type: Type[LearnedRecord], record_id: str) -> float:
    """Read one record's success rate on an open cursor."""
    cursor.execute(f"SELECT success_rate FROM {record_type.TABLE} WHERE id = ?", (record_id,))
    row = cursor.fetchone()
    if row is None:
        raise NotFoundError(record_id, record_type.TABLE)
    return float(row[0])


def set_success_rate(cursor: sqlite3.Cursor, record_type: Type[LearnedRecord], record_id: str, success_rate: float) -> None:
    """Overwrite one record's success rate on an open cursor; no other column changes."""
    cursor.execute(
        f"UPDATE {record_type.TABLE} SET success_rate = ? WHERE id = ?",
        (success_rate, record_id)
    )
    if cursor.rowcount == 0:
        raise NotFoundError(record_id, record_type.TABLE)


def count_records(conn: sqlite3.Connection, record_type: Type[LearnedRecord]) -> int:
    """Count stored records of one kind."""
    cursor = conn.cursor()
    cursor.execute(f"SELECT COUNT(*) FROM {record_type.TABLE}")
    return cursor.fetchone()[0]
