"""Console + failure-report sink for diagnostic messages.

Every message is rendered as one table-aligned console line. When a message
carries a failure (an exception), its full traceback is also persisted to a
file of its own under the log directory, and a second console line points the
operator at that file.

Console output always happens before the disk write, so a failure is visible
even when its detail cannot be saved.
"""
from __future__ import annotations

import sys
import threading
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, TextIO

import colorama
from colorama import Back, Fore, Style

from ...errors import IoFailure

colorama.just_fix_windows_console()

TIMESTAMP_WIDTH = 9
SEVERITY_WIDTH = 11
SOURCE_WIDTH = 12

REPORT_TIME_FORMAT = "%d-%m-%Y %H-%M-%S"


class Severity(Enum):
    CRITICAL = "Critical"
    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    VERBOSE = "Verbose"
    DEBUG = "Debug"


_COLORS = {
    Severity.CRITICAL: Back.RED + Fore.WHITE,
    Severity.ERROR: Fore.RED,
    Severity.WARNING: Fore.YELLOW,
    Severity.INFO: Fore.GREEN,
    Severity.VERBOSE: Fore.CYAN,
    Severity.DEBUG: Fore.MAGENTA,
}
_NEUTRAL = Style.RESET_ALL
_ATTENTION = Style.BRIGHT + Fore.RED


@dataclass(frozen=True)
class DiagnosticMessage:
    severity: Severity
    source: str
    text: str
    failure: Optional[BaseException] = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _column(text: str, width: int) -> str:
    if len(text) >= width:
        text = text[: width - 1]
    return text.ljust(width)


def format_failure(failure: BaseException) -> str:
    return "".join(traceback.format_exception(type(failure), failure, failure.__traceback__))


class DiagnosticLogSink:
    """Single writer for the interactive console plus per-failure report files."""

    def __init__(
        self,
        log_dir: str | Path,
        stream: Optional[TextIO] = None,
        clock: Optional[Callable[[], datetime]] = None,
        color: Optional[bool] = None,
    ):
        self.log_dir = Path(log_dir)
        self._stream = stream
        self._clock = clock or _utcnow
        if color is None:
            isatty = getattr(self.stream, "isatty", None)
            color = bool(isatty and isatty())
        self._color = color
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        # resolved lazily so pytest's capsys swap of sys.stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    # ---- console -------------------------------------------------------
    def _paint(self, text: str, style: str) -> str:
        if not self._color or not style:
            return text
        return f"{style}{text}{_NEUTRAL}"

    def format_line(self, message: DiagnosticMessage, now: Optional[datetime] = None) -> str:
        now = now or self._clock()
        severity = message.severity
        label = severity.value if isinstance(severity, Severity) else str(severity)
        style = _COLORS.get(severity, "") if isinstance(severity, Severity) else ""
        return (
            _column(now.strftime("%H:%M:%S"), TIMESTAMP_WIDTH)
            + self._paint(_column(f"[{label}]", SEVERITY_WIDTH), style)
            + _column(f"{message.source}:", SOURCE_WIDTH)
            + message.text
        )

    def _write(self, *lines: str) -> None:
        with self._lock:
            try:
                stream = self.stream
                for line in lines:
                    stream.write(line + "\n")
                stream.flush()
            except (OSError, ValueError):
                # a closed or broken console has nowhere left to report to
                pass

    # ---- failure reports ----------------------------------------------
    def report_path(self, failure: BaseException, now: Optional[datetime] = None) -> Path:
        now = now or self._clock()
        return self.log_dir / f"{now.strftime(REPORT_TIME_FORMAT)} {type(failure).__name__}.txt"

    def _persist(self, failure: BaseException, now: datetime) -> Path:
        path = self.report_path(failure, now)
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "x", encoding="utf-8") as fh:
                fh.write(format_failure(failure))
                fh.flush()
        except FileExistsError as e:
            raise IoFailure(f"Failure report {path} already exists", path) from e
        except OSError as e:
            raise IoFailure(f"Cannot write failure report {path}: {e}", path) from e
        return path

    def _attention_line(self, failure: BaseException, path: Path) -> str:
        return self._paint(f"^ {type(failure).__name__} occurred. See {path} for details.", _ATTENTION)

    # ---- public API ----------------------------------------------------
    def emit(self, message: DiagnosticMessage) -> Optional[Path]:
        """Render ``message`` and persist its failure, if any.

        Returns the path of the written failure report, or ``None``.
        Raises ``IoFailure`` when the report cannot be written; the console
        line has already been rendered at that point.
        """
        now = self._clock()
        self._write(self.format_line(message, now))
        if message.failure is None:
            return None
        path = self._persist(message.failure, now)
        self._write(self._attention_line(message.failure, path))
        return path

    def report_persist_failure(self, error: BaseException) -> None:
        warning = DiagnosticMessage(Severity.WARNING, "Logger", f"Failure detail not saved: {error}")
        self._write(self.format_line(warning))


__all__ = [
    "Severity",
    "DiagnosticMessage",
    "DiagnosticLogSink",
    "format_failure",
    "TIMESTAMP_WIDTH",
    "SEVERITY_WIDTH",
    "SOURCE_WIDTH",
]
