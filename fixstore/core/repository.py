"""
Repository facade - the only entry point agents use.

A KnowledgeStore owns the SQLite connection, the writer lock and the fixed
embedding dimension. Its repositories expose insert, get_by_id, search and
update_success_rate for error fixes and for code patterns; the store itself
searches and applies feedback across both kinds.
"""

import numbers
import threading
from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar

from . import dao
from .confidence import Outcome, apply_feedback
from .config import get_default_search_limit, get_min_similarity
from .db import connect, health_check, init_db
from .errors import DimensionMismatchError, NotFoundError, StoreClosedError, ValidationError
from .schema import CodePattern, FixRecord, LearnedRecord
from ..util.logging import logger
from ..vector import RankedRecord, as_vector, check_dimension, rank_candidates, rank_key

R = TypeVar("R", bound=LearnedRecord)


def resolve_search_options(limit: Any = None, min_similarity: Any = None) -> Tuple[int, Optional[float]]:
    """Fill search defaults from configuration and validate both options.

    Raises:
        ValidationError: limit is not a positive integer, min_similarity is not
            a number in [-1, 1], or the configured default is malformed
    """
    try:
        if limit is None:
            limit = get_default_search_limit()
        if min_similarity is None:
            min_similarity = get_min_similarity()
    except ValueError as e:
        raise ValidationError(f"Invalid search configuration: {e}") from e

    if isinstance(limit, bool) or not isinstance(limit, numbers.Integral) or limit < 1:
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")

    if min_similarity is not None:
        if isinstance(min_similarity, bool) or not isinstance(min_similarity, numbers.Real):
            raise ValidationError(f"min_similarity must be a number, got {min_similarity!r}")
        min_similarity = float(min_similarity)
        # NaN fails the range check
        if not -1.0 <= min_similarity <= 1.0:
            raise ValidationError(f"min_similarity must be between -1 and 1, got {min_similarity!r}")

    return int(limit), min_similarity


class KnowledgeStore:
    """Owner of one fix store database.

    Every operation runs under a single re-entrant lock and every write commits
    before the lock is released, so readers never see a torn record.
    """

    def __init__(self, db_path: Optional[str] = None, dimension: Optional[int] = None):
        self.db_path = db_path
        self._lock = threading.RLock()
        self._conn = connect(db_path)
        try:
            self.dimension = init_db(self._conn, dimension)
        except Exception:
            self._conn.close()
            raise
        self._closed = False

        self.errors = ErrorFixRepository(self)
        self.patterns = PatternRepository(self)
        logger.log_operation("store.open", "success", {"db_path": db_path or "default", "dimension": self.dimension})

    @classmethod
    def open(cls, db_path: Optional[str] = None, dimension: Optional[int] = None) -> "KnowledgeStore":
        """Open (creating if needed) a store at db_path."""
        return cls(db_path=db_path, dimension=dimension)

    @property
    def closed(self) -> bool:
        return self._closed

    def connection(self):
        """Return the live connection; callers must hold the store lock."""
        if self._closed:
            raise StoreClosedError("Knowledge store is closed")
        return self._conn

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def health_check(self) -> bool:
        """Check that the schema and dimension metadata are in place."""
        with self._lock:
            if self._closed:
                return False
            return health_check(self._conn)

    def search_all(self, query_embedding: Any, tech_stack: str, limit: Optional[int] = None,
                   min_similarity: Optional[float] = None) -> List[RankedRecord]:
        """Ranked search over code patterns and error fixes together.

        Both kinds are ranked under one order and truncated to `limit`; each
        result's `kind` tells them apart.
        """
        try:
            limit, min_similarity = resolve_search_options(limit, min_similarity)
        except ValidationError as e:
            logger.log_validation_error("store.search_all", [e], {"tech_stack": tech_stack})
            raise

        # One lock hold so both kinds come from the same store state
        with self._lock:
            results = self.patterns.search_scored(query_embedding, tech_stack, limit, min_similarity)
            results += self.errors.search_scored(query_embedding, tech_stack, limit, min_similarity)

        # Stable sort keeps patterns ahead of error fixes on a full tie
        results.sort(key=rank_key)
        return results[:limit]

    def update_success_rate(self, record_id: str, outcome: Outcome) -> float:
        """Apply feedback to whichever record kind holds the id, patterns first.

        Raises:
            NotFoundError: Neither patterns nor error fixes hold the id
        """
        with self._lock:
            for repository in (self.patterns, self.errors):
                try:
                    return repository.update_success_rate(record_id, outcome)
                except NotFoundError:
                    continue

        logger.log_operation("store.feedback", "failed", {"record_id": record_id, "reason": "not_found"})
        raise NotFoundError(record_id, f"{self.patterns.table} or {self.errors.table}")

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._conn.close()
            self._closed = True
        logger.log_operation("store.close", "success", {"db_path": self.db_path or "default"})

    def __enter__(self) -> "KnowledgeStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class LearnedRepository(Generic[R]):
    """Insert, lookup, ranked search and feedback for one record kind."""

    record_type: Type[R] = LearnedRecord

    def __init__(self, store: KnowledgeStore):
        self._store = store

    @property
    def table(self) -> str:
        return self.record_type.TABLE

    def _coerce(self, record: Any) -> R:
        if isinstance(record, self.record_type):
            return record
        if isinstance(record, dict):
            return self.record_type.build(**record)
        raise ValidationError(f"Expected {self.record_type.__name__} or dict, got {type(record).__name__}")

    def insert(self, record: Any) -> None:
        """Persist a new record. Raises DuplicateKeyError if the id exists."""
        try:
            record = self._coerce(record)
            check_dimension(as_vector(record.embedding), self._store.dimension)
        except (ValidationError, DimensionMismatchError) as e:
            logger.log_validation_error(f"{self.table}.insert", [e])
            raise

        with self._store.lock:
            dao.insert_record(self._store.connection(), record)

    def get_by_id(self, record_id: str) -> R:
        """Get a copy of a stored record. Raises NotFoundError if absent."""
        with self._store.lock:
            return dao.get_record(self._store.connection(), self.record_type, record_id)

    def search_scored(self, query_embedding: Any, tech_stack: str, limit: Optional[int] = None,
                      min_similarity: Optional[float] = None) -> List[RankedRecord]:
        """Ranked search that also reports each result's similarity.

        Args:
            query_embedding: Pre-computed embedding of the new error
            tech_stack: Exact-match key, e.g. "next.js@14+typescript"
            limit: Maximum results (defaults to FIXSTORE_DEFAULT_SEARCH_LIMIT)
            min_similarity: Similarity pre-filter (defaults to FIXSTORE_MIN_SIMILARITY)

        Returns:
            Ranked records, highest success rate first
        """
        try:
            limit, min_similarity = resolve_search_options(limit, min_similarity)
            if not isinstance(tech_stack, str):
                raise ValidationError(f"tech_stack must be a string, got {type(tech_stack).__name__}")
            query = as_vector(query_embedding)
            check_dimension(query, self._store.dimension)
        except (ValidationError, DimensionMismatchError) as e:
            logger.log_validation_error(f"{self.table}.search", [e], {"tech_stack": tech_stack})
            raise

        with self._store.lock:
            candidates = dao.scan_by_tech_stack(self._store.connection(), self.record_type, tech_stack)

        ranked = rank_candidates(query, candidates, limit, min_similarity)
        logger.log_search(self.table, tech_stack, len(candidates), len(ranked), limit,
                          {"min_similarity": min_similarity})
        return ranked

    def search(self, query_embedding: Any, tech_stack: str, limit: Optional[int] = None) -> List[R]:
        """Return up to `limit` records for the tech stack, best first."""
        return [ranked.record for ranked in self.search_scored(query_embedding, tech_stack, limit)]

    def update_success_rate(self, record_id: str, outcome: Outcome) -> float:
        """Apply one feedback step and return the record's new success rate."""
        with self._store.lock:
            return apply_feedback(self._store.connection(), self.record_type, record_id, outcome)

    def count(self) -> int:
        """Number of stored records."""
        with self._store.lock:
            return dao.count_records(self._store.connection(), self.record_type)


class ErrorFixRepository(LearnedRepository[FixRecord]):
    """Error message to fix mappings."""

    record_type = FixRecord


class PatternRepository(LearnedRepository[CodePattern]):
    """Reusable code patterns."""

    record_type = CodePattern
