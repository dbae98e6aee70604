"""
Test data builders for fix store tests.
"""

import math
from typing import List

from fixstore.core.schema import CodePattern, FixRecord

DIMENSION = 8
TECH_STACK = "next.js@14+typescript"


def make_embedding(seed: int = 0, dimension: int = DIMENSION) -> List[float]:
    """Deterministic embedding with every component in [0, 1]."""
    return [math.sin(seed + i) * 0.5 + 0.5 for i in range(dimension)]


def unit_vector(index: int, dimension: int = DIMENSION) -> List[float]:
    """Embedding pointing along a single axis."""
    vector = [0.0] * dimension
    vector[index] = 1.0
    return vector


def make_fix(**overrides) -> FixRecord:
    """Create a fix record, overriding any field."""
    fix_id = overrides.pop("id", "error-fix-1")
    fields = {
        "id": fix_id,
        "error_message": f"Test error message for {fix_id}",
        "fix_code": f"// Fix code for {fix_id}",
        "tech_stack": TECH_STACK,
        "success_rate": 0.5,
        "embedding": make_embedding(),
    }
    fields.update(overrides)
    return FixRecord(**fields)


def make_fix_batch(count: int, **overrides) -> List[FixRecord]:
    """Create `count` fix records with ids error-fix-0..N."""
    return [
        make_fix(id=f"error-fix-{i}", error_message=f"Test error {i}", fix_code=f"// Fix code {i}", **overrides)
        for i in range(count)
    ]


def make_pattern(**overrides) -> CodePattern:
    """Create a code pattern, overriding any field."""
    pattern_id = overrides.pop("id", "pattern-1")
    fields = {
        "id": pattern_id,
        "code": f"// Test pattern code for {pattern_id}",
        "tech_stack": TECH_STACK,
        "success_rate": 0.5,
        "embedding": make_embedding(),
    }
    fields.update(overrides)
    return CodePattern(**fields)
