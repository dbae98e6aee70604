"""
Fix store configuration.
Environment-driven settings; accessors read the environment at call time.
"""

import os
from pathlib import Path
from typing import List, Optional

# Database path configuration
DB_PATH = os.getenv("FIXSTORE_DB_PATH", "./data/fixstore.db")
MEMORY_DB = ":memory:"

# Embedding dimension used when a store is created without an explicit one
# (override with FIXSTORE_EMBEDDING_DIMENSION)
EMBEDDING_DIMENSION = 384

# Search configuration (override with FIXSTORE_DEFAULT_SEARCH_LIMIT)
DEFAULT_SEARCH_LIMIT = 5

# Confidence learning - weight kept on history for each feedback step
SUCCESS_RATE_DECAY = 0.9

# Logging
LOG_LEVEL = os.getenv("FIXSTORE_LOG_LEVEL", "INFO").upper()

# Version string
VERSION = "1.0.0"


def get_db_path() -> str:
    """Get the configured SQLite database path."""
    return os.getenv("FIXSTORE_DB_PATH", DB_PATH)


def get_embedding_dimension() -> int:
    """Get the configured embedding dimension."""
    return int(os.getenv("FIXSTORE_EMBEDDING_DIMENSION", str(EMBEDDING_DIMENSION)))


def get_default_search_limit() -> int:
    """Get the limit used by searches that do not pass one."""
    return int(os.getenv("FIXSTORE_DEFAULT_SEARCH_LIMIT", str(DEFAULT_SEARCH_LIMIT)))


def get_min_similarity() -> Optional[float]:
    """Get the similarity pre-filter threshold, or None when disabled."""
    raw = os.getenv("FIXSTORE_MIN_SIMILARITY", "").strip()
    if not raw:
        return None
    return float(raw)


def debug_enabled() -> bool:
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def get_log_level() -> str:
    """Get the configured log level name."""
    return os.getenv("FIXSTORE_LOG_LEVEL", LOG_LEVEL).upper()


def ensure_db_directory(db_path: Optional[str] = None):
    """Ensure the database directory exists."""
    path = db_path or get_db_path()
    if path == MEMORY_DB:
        return
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def validate_config() -> List[str]:
    """Validate fix store configuration and return any issues."""
    issues = []

    try:
        if get_embedding_dimension() < 1:
            issues.append("FIXSTORE_EMBEDDING_DIMENSION must be >= 1")
    except ValueError:
        issues.append(f"Invalid FIXSTORE_EMBEDDING_DIMENSION: {os.getenv('FIXSTORE_EMBEDDING_DIMENSION')}")

    try:
        if get_default_search_limit() < 1:
            issues.append("FIXSTORE_DEFAULT_SEARCH_LIMIT must be >= 1")
    except ValueError:
        issues.append(f"Invalid FIXSTORE_DEFAULT_SEARCH_LIMIT: {os.getenv('FIXSTORE_DEFAULT_SEARCH_LIMIT')}")

    try:
        threshold = get_min_similarity()
        if threshold is not None and not -1.0 <= threshold <= 1.0:
            issues.append("FIXSTORE_MIN_SIMILARITY must be between -1 and 1")
    except ValueError:
        issues.append(f"Invalid FIXSTORE_MIN_SIMILARITY: {os.getenv('FIXSTORE_MIN_SIMILARITY')}")

    if get_log_level() not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        issues.append(f"Invalid FIXSTORE_LOG_LEVEL: {get_log_level()}")

    return issues
