"""Structured logging helpers routed through the diagnostic sink.

``init_logging`` puts the sink behind a ``QueueHandler``: callers only enqueue
the record, and a ``QueueListener`` thread does the console and report-file
writing, so coroutines never wait on disk.
"""
from __future__ import annotations
import copy
import json as _json
import logging
import logging.handlers
import queue
from datetime import datetime, timezone
from typing import Any, Optional

from ...errors import IoFailure
from .sink import DiagnosticLogSink, DiagnosticMessage, Severity

VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

_LOGGER_NAME = "kratos"
_LOG_JSON = False
_LISTENER: Optional[logging.handlers.QueueListener] = None


def severity_for_level(levelno: int) -> Severity:
    if levelno >= logging.CRITICAL:
        return Severity.CRITICAL
    if levelno >= logging.ERROR:
        return Severity.ERROR
    if levelno >= logging.WARNING:
        return Severity.WARNING
    if levelno >= logging.INFO:
        return Severity.INFO
    if levelno >= VERBOSE:
        return Severity.VERBOSE
    return Severity.DEBUG


def source_for_logger(name: str) -> str:
    tail = name.rsplit(".", 1)[-1] or name
    return tail[:1].upper() + tail[1:]


class DiagnosticHandler(logging.Handler):
    """Bridges stdlib log records (ours and discord.py's) into the sink."""

    def __init__(self, sink: DiagnosticLogSink, level: int = logging.NOTSET):
        super().__init__(level)
        self.sink = sink

    def to_message(self, record: logging.LogRecord) -> DiagnosticMessage:
        failure = record.exc_info[1] if record.exc_info else None
        source = getattr(record, "source", None) or source_for_logger(record.name)
        return DiagnosticMessage(severity_for_level(record.levelno), source, record.getMessage(), failure)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.to_message(record)
            self.sink.emit(message)
        except IoFailure as e:
            self.sink.report_persist_failure(e)
        except Exception:  # noqa: BLE001
            self.handleError(record)


class DiagnosticQueueHandler(logging.handlers.QueueHandler):
    """Enqueues records with their exception intact for the listener thread."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        # exc_info stays on the record; the listener writes the report from it
        record = copy.copy(record)
        record.msg = record.getMessage()
        record.args = None
        return record


def shutdown_logging() -> None:
    """Drain pending records and detach the sink."""
    global _LISTENER  # noqa: PLW0603
    listener, _LISTENER = _LISTENER, None
    if listener is not None:
        listener.stop()
    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, (DiagnosticHandler, DiagnosticQueueHandler)):
            root.removeHandler(existing)


def init_logging(
    sink: DiagnosticLogSink,
    level: str | int = "INFO",
    *,
    json_mode: bool = False,
    background: bool = True,
) -> logging.Handler:
    """Route root logging into ``sink``; ``background=False`` writes inline."""
    global _LOG_JSON, _LISTENER  # noqa: PLW0603
    shutdown_logging()
    _LOG_JSON = json_mode
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    handler: logging.Handler = DiagnosticHandler(sink)
    if background:
        records: queue.SimpleQueue = queue.SimpleQueue()
        _LISTENER = logging.handlers.QueueListener(records, handler)
        _LISTENER.start()
        handler = DiagnosticQueueHandler(records)
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)
    return handler


def _emit(levelno: int, event: str, source: Optional[str], failure: Optional[BaseException], **fields: Any):
    logger = logging.getLogger(_LOGGER_NAME)
    if not logger.isEnabledFor(levelno):
        return
    if _LOG_JSON:
        record = {"ts": datetime.now(timezone.utc).isoformat(), "level": logging.getLevelName(levelno), "event": event}
        record.update(fields)
        text = _json.dumps(record, ensure_ascii=False, default=str)
    else:
        extras = " ".join(f"{k}={v}" for k, v in fields.items())
        text = f"{event} {extras}".strip()
    exc_info = (type(failure), failure, failure.__traceback__) if failure is not None else None
    logger.log(levelno, text, exc_info=exc_info, extra={"source": source})


def debug(event: str, *, source: str | None = None, failure: BaseException | None = None, **fields: Any):
    _emit(logging.DEBUG, event, source, failure, **fields)

def verbose(event: str, *, source: str | None = None, failure: BaseException | None = None, **fields: Any):
    _emit(VERBOSE, event, source, failure, **fields)

def info(event: str, *, source: str | None = None, failure: BaseException | None = None, **fields: Any):
    _emit(logging.INFO, event, source, failure, **fields)

def warning(event: str, *, source: str | None = None, failure: BaseException | None = None, **fields: Any):
    _emit(logging.WARNING, event, source, failure, **fields)

def error(event: str, *, source: str | None = None, failure: BaseException | None = None, **fields: Any):
    _emit(logging.ERROR, event, source, failure, **fields)

def critical(event: str, *, source: str | None = None, failure: BaseException | None = None, **fields: Any):
    _emit(logging.CRITICAL, event, source, failure, **fields)

__all__ = [
    "VERBOSE", "DiagnosticHandler", "DiagnosticQueueHandler", "init_logging", "shutdown_logging",
    "severity_for_level", "source_for_logger",
    "debug", "verbose", "info", "warning", "error", "critical",
]
