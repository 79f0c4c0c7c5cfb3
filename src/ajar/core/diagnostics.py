"""
Diagnostics for Ajar

Failures swallowed by the try-variants are reported here: one ERROR log record
on the configured logger, plus an entry in an in-memory ring buffer that tests
and tooling can subscribe to.
"""

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from pydantic import BaseModel, Field

from ..config import Config
from .errors import InvocationFailure, ReflectionError

# Log message templates, one per recoverable failure kind
MESSAGES = {
    "member_not_found": "no such member {member}",
    "access_denied": "illegal access to {member}",
    "invocation_failure": "exception thrown {member}",
}


class DiagnosticRecord(BaseModel):
    """A swallowed reflective access failure."""

    timestamp: datetime = Field(default_factory=datetime.now)
    operation: str = Field(..., description="Accessor operation that failed")
    member: str = Field(..., description="Name of the member that was requested")
    kind: str = Field(..., description="Failure kind (ErrorKind value)")
    message: str = Field(..., description="Human readable message")
    error_type: str = Field(..., description="Exception class name")
    cause_type: Optional[str] = Field(None, description="Class of the wrapped exception")


class DiagnosticLog:
    """Ring buffer of diagnostic records with subscriber notification."""

    def __init__(self, buffer_size: int = 100):
        self.buffer = deque(maxlen=buffer_size)
        self.subscribers: Set[Callable] = set()
        self._lock = threading.RLock()

    def add(self, record: DiagnosticRecord):
        """Add a record and notify subscribers."""
        with self._lock:
            self.buffer.append(record)
            subscribers = list(self.subscribers)

        for subscriber in subscribers:
            try:
                subscriber(record)
            except Exception:
                logging.getLogger(__name__).debug("diagnostic subscriber failed", exc_info=True)

    def subscribe(self, callback: Callable[[DiagnosticRecord], Any]):
        """Subscribe to new records."""
        with self._lock:
            self.subscribers.add(callback)

    def unsubscribe(self, callback: Callable[[DiagnosticRecord], Any]):
        """Unsubscribe from new records."""
        with self._lock:
            self.subscribers.discard(callback)

    def get_recent(self, count: int = 100) -> List[DiagnosticRecord]:
        """Get the most recent records, oldest first."""
        if count <= 0:
            return []
        with self._lock:
            return list(self.buffer)[-count:]

    def resize(self, buffer_size: int):
        """Change the buffer capacity, keeping the newest records."""
        with self._lock:
            self.buffer = deque(self.buffer, maxlen=buffer_size)

    def clear(self):
        with self._lock:
            self.buffer.clear()


_diagnostic_log = DiagnosticLog()

# Level last applied to each logger name
_applied_levels: Dict[str, str] = {}
_levels_lock = threading.Lock()


def get_logger() -> logging.Logger:
    """Get the accessor logger named by the current configuration.

    The configured level is applied to a logger without a level of its own
    and again whenever the configured level changes. A level set by the
    application in between is left alone.
    """
    name = Config.get("logger_name", "ajar.accessor")
    level = Config.get("log_level", "ERROR")
    logger = logging.getLogger(name)

    with _levels_lock:
        if logger.level == logging.NOTSET or _applied_levels.get(name) != level:
            logger.setLevel(level)
            _applied_levels[name] = level
    return logger


def get_diagnostic_log() -> DiagnosticLog:
    """Get the process-wide diagnostic log, sized as currently configured."""
    size = Config.get("diagnostic_buffer_size", 100)
    if _diagnostic_log.buffer.maxlen != size:
        _diagnostic_log.resize(size)
    return _diagnostic_log


def report_failure(operation: str, error: ReflectionError) -> DiagnosticRecord:
    """Log a swallowed failure and record it."""
    message = MESSAGES.get(error.kind.value, "{member}").format(member=error.member)
    cause = error.cause if isinstance(error, InvocationFailure) else error.__cause__

    record = DiagnosticRecord(
        operation=operation,
        member=error.member,
        kind=error.kind.value,
        message=message,
        error_type=type(error).__name__,
        cause_type=type(cause).__name__ if cause is not None else None,
    )

    get_logger().error(f"{operation}: {message}", exc_info=error)
    get_diagnostic_log().add(record)
    return record


def to_dict(record: DiagnosticRecord) -> Dict[str, Any]:
    """Convert a record to a JSON-friendly dictionary."""
    return record.model_dump(mode="json")
