"""Ring buffer of recent client log lines, served by /api/logs."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

_BUFFER_SIZE = 200


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    level: str
    levelno: int
    logger: str
    message: str


class BufferHandler(logging.Handler):
    def __init__(self, maxlen: int = _BUFFER_SIZE) -> None:
        super().__init__()
        self._buffer: deque[LogEntry] = deque(maxlen=maxlen)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            created = datetime.fromtimestamp(record.created, tz=timezone.utc)
            self._buffer.append(
                LogEntry(
                    timestamp=created.strftime("%Y-%m-%d %H:%M:%S UTC"),
                    level=record.levelname,
                    levelno=record.levelno,
                    logger=record.name,
                    message=self.format(record),
                )
            )
        except Exception:
            self.handleError(record)

    def entries(self, limit: int = 100, min_level: str | None = None) -> list[dict]:
        """Newest-first entries, optionally only those at or above *min_level*."""
        items = list(self._buffer)
        if min_level:
            threshold = logging.getLevelName(min_level.upper())
            if isinstance(threshold, int):
                items = [entry for entry in items if entry.levelno >= threshold]
        selected = items[-limit:] if limit > 0 else []
        selected.reverse()
        return [asdict(entry) for entry in selected]


_handler: BufferHandler | None = None


def get_buffer_handler() -> BufferHandler:
    global _handler
    if _handler is None:
        _handler = BufferHandler()
        _handler.setFormatter(logging.Formatter("%(message)s"))
        _handler.setLevel(logging.INFO)
    return _handler


def install_buffer_handler() -> BufferHandler:
    """Attach the shared handler to the ``unrivaled`` package logger."""
    handler = get_buffer_handler()
    package_logger = logging.getLogger("unrivaled")
    if handler not in package_logger.handlers:
        package_logger.addHandler(handler)
    package_logger.setLevel(logging.INFO)
    return handler
