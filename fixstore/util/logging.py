"""
Structured logging for fix store operations.
Record text is truncated in log details and fix code is never logged.
"""

import logging
from typing import Any, Dict, List

from ..core.config import debug_enabled, get_log_level


class StructuredLogger:
    """Structured logger for store, search and feedback operations."""

    def __init__(self, name: str = "fixstore", level: str = None):
        self.logger = logging.getLogger(name)
        level = level or get_log_level()
        try:
            self.logger.setLevel(level)
        except ValueError:
            # validate_config() reports the bad value
            self.logger.setLevel(logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "rejected"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_record_operation(self, operation: str, table: str, record_id: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log an insert or lookup against one of the record tables."""
        log_details = {"table": table, "record_id": record_id}
        if details:
            log_details.update(details)

        self.log_operation(f"{table}.{operation}", status, log_details)

    def log_search(self, table: str, tech_stack: str, candidates: int, returned: int, limit: int, details: Dict[str, Any] = None):
        """Log a ranked search."""
        log_details = {
            "tech_stack": tech_stack,
            "candidates": candidates,
            "returned": returned,
            "limit": limit
        }
        if details:
            log_details.update(details)

        # Searches run on every agent turn; keep them quiet unless debugging
        if debug_enabled():
            self.log_operation(f"{table}.search", "success", log_details)
        else:
            self.logger.debug(f"Operation: {table}.search, Status: success, Details: {log_details}")

    def log_feedback(self, table: str, record_id: str, signal: float, old_rate: float, new_rate: float):
        """Log a success rate update from outcome feedback."""
        log_details = {
            "record_id": record_id,
            "signal": signal,
            "old_rate": round(old_rate, 6),
            "new_rate": round(new_rate, 6)
        }
        self.log_operation(f"{table}.feedback", "applied", log_details)

    def log_migration(self, version: int, name: str, status: str = "applied"):
        """Log a schema migration step."""
        self.log_operation("schema.migration", status, {"version": version, "name": name})

    def log_validation_error(self, operation: str, errors: List[Any], identifiers: Dict[str, Any] = None):
        """Log rejected input with error text capped in length."""
        sanitized_errors = [str(error)[:100] for error in errors]

        log_details = {
            "operation": operation,
            "errors": sanitized_errors,
            "error_count": len(sanitized_errors)
        }
        if identifiers:
            log_details.update(identifiers)

        self.log_operation("validation.error", "rejected", log_details)

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


def get_logger(name: str, level: str = None) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, level)


# Global logger instance
logger = StructuredLogger()
