"""
Ranking result types.
"""

from dataclasses import dataclass

from ..core.schema import LearnedRecord


@dataclass(frozen=True)
class RankedRecord:
    """A search candidate with its similarity to the query."""

    record: LearnedRecord
    """The stored record (a copy; mutating it never touches the store)"""

    similarity: float
    """Cosine similarity between the query and the record's embedding (-1 to 1)"""

    @property
    def kind(self) -> str:
        """Record kind, 'error_fix' or 'pattern'"""
        return self.record.KIND
