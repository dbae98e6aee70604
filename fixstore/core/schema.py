"""
Record schema for the fix store.
Learned records pair stored text with a tech stack key, a success rate and an embedding.
"""

import math
from typing import Any, ClassVar, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError


class LearnedRecord(BaseModel):
    """Fields shared by every record kind the store learns a success rate for."""

    model_config = ConfigDict(frozen=True)

    # Subclasses bind these to their result kind, table and text columns
    KIND: ClassVar[str] = ""
    TABLE: ClassVar[str] = ""
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ()

    id: str
    tech_stack: str
    success_rate: float
    embedding: List[float]

    @field_validator('id')
    @classmethod
    def id_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('id cannot be empty')
        return v

    @field_validator('success_rate')
    @classmethod
    def success_rate_must_be_unit_interval(cls, v):
        if not math.isfinite(v) or not 0.0 <= v <= 1.0:
            raise ValueError('success_rate must be a finite number between 0 and 1')
        return v

    @field_validator('embedding', mode='before')
    @classmethod
    def embedding_to_list(cls, v):
        # numpy arrays and other sequences arrive here too
        if hasattr(v, 'tolist'):
            return v.tolist()
        if isinstance(v, (str, bytes)):
            raise ValueError('embedding must be a sequence of numbers')
        return list(v) if v is not None else v

    @field_validator('embedding')
    @classmethod
    def embedding_must_be_finite(cls, v):
        if not v:
            raise ValueError('embedding cannot be empty')
        if not all(math.isfinite(x) for x in v):
            raise ValueError('embedding values must be finite')
        return v

    @classmethod
    def columns(cls) -> Tuple[str, ...]:
        """Column order used for every row read and write."""
        return ("id",) + cls.TEXT_FIELDS + ("tech_stack", "success_rate", "embedding")

    @classmethod
    def build(cls, **fields: Any) -> "LearnedRecord":
        """Construct a record, raising the store's ValidationError on bad input."""
        try:
            return cls(**fields)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {cls.__name__}: {e}") from e

    def log_summary(self) -> Dict[str, Any]:
        """Identifiers safe to put in log details."""
        return {
            "record_id": self.id,
            "tech_stack": self.tech_stack,
            "success_rate": self.success_rate,
            "dimension": len(self.embedding),
        }


class FixRecord(LearnedRecord):
    """An error message mapped to the code that fixed it."""

    KIND: ClassVar[str] = "error_fix"
    TABLE: ClassVar[str] = "error_fixes"
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ("error_message", "fix_code")

    error_message: str
    fix_code: str

    def log_summary(self) -> Dict[str, Any]:
        summary = super().log_summary()
        message = self.error_message
        summary["error_message"] = message[:50] + "..." if len(message) > 50 else message
        return summary


class CodePattern(LearnedRecord):
    """A reusable code pattern that worked for a tech stack."""

    KIND: ClassVar[str] = "pattern"
    TABLE: ClassVar[str] = "patterns"
    TEXT_FIELDS: ClassVar[Tuple[str, ...]] = ("code",)

    code: str
