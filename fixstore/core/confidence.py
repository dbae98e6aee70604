"""
Confidence updater - learns a per-record success rate from outcome feedback.

Each feedback step is a first-order exponential moving average:

    new_rate = decay * old_rate + (1 - decay) * signal

With decay = 0.9 one observation moves the rate 10% of the way toward the
observed outcome, so a single result never saturates the rate to 0 or 1.
"""

import math
import numbers
import sqlite3
from typing import Type, Union

from . import dao
from .config import SUCCESS_RATE_DECAY
from .db import transaction
from .errors import ValidationError
from .schema import LearnedRecord
from ..util.logging import logger

Outcome = Union[bool, float]


def outcome_signal(outcome: Outcome) -> float:
    """Map feedback to a signal in [0, 1].

    True/False map to 1.0/0.0. A real number in [0, 1] is taken as graded feedback.
    """
    if isinstance(outcome, bool):
        return 1.0 if outcome else 0.0
    if isinstance(outcome, numbers.Real):
        signal = float(outcome)
        if math.isfinite(signal) and 0.0 <= signal <= 1.0:
            return signal
    raise ValidationError(f"Outcome must be a bool or a number between 0 and 1, got {outcome!r}")


def ema_update(old_rate: float, signal: float, decay: float = SUCCESS_RATE_DECAY) -> float:
    """Apply one EMA step and keep the result inside [0, 1]."""
    new_rate = decay * old_rate + (1.0 - decay) * signal
    return max(0.0, min(1.0, new_rate))


def apply_feedback(conn: sqlite3.Connection, record_type: Type[LearnedRecord], record_id: str,
                   outcome: Outcome) -> float:
    """Apply one feedback step to a stored record and return its new success rate.

    The read and the write share a single transaction, so a partially applied
    step is never visible. Callers serialize concurrent writers.
    """
    signal = outcome_signal(outcome)

    with transaction(conn) as cursor:
        old_rate = dao.get_success_rate(cursor, record_type, record_id)
        new_rate = ema_update(old_rate, signal)
        dao.set_success_rate(cursor, record_type, record_id, new_rate)

    logger.log_feedback(record_type.TABLE, record_id, signal, old_rate, new_rate)
    return new_rate
