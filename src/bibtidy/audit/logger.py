"""Structured audit logger for JSONL event logging.

Provides append-only structured event logging to JSONL files with
a persistent file handle. Only the command-line wrapper logs; the tidy
pipeline itself returns warnings instead.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any

from bibtidy.audit.helpers import get_package_version
from bibtidy.audit.models import LogEvent
from bibtidy.models import TidyResult, TidyWarning
from bibtidy.utils import get_iso_timestamp

__all__ = ["AuditLogger"]


class AuditLogger:
    """JSONL audit logger with persistent file handle.

    Writes structured log events to a JSONL file (one JSON object per line).
    Events are append-only and flushed after each write for durability.

    Attributes
    ----------
    run_id : str
        Unique run identifier.
    log_path : Path
        Path to JSONL log file.
    current_source : str | None
        Input currently being processed, attached to events.
    """

    def __init__(self, run_id: str, log_path: Path) -> None:
        """Initialize audit logger and open file handle.

        Parameters
        ----------
        run_id : str
            Unique run identifier.
        log_path : Path
            Path to JSONL log file.
        """
        self.run_id = run_id
        self.log_path = log_path
        self.current_source: str | None = None

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.log_path.open("a", encoding="utf-8")

    def __enter__(self) -> "AuditLogger":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager and close file."""
        self.close()

    def close(self) -> None:
        """Flush and close the log file handle."""
        if not self._file.closed:
            self._file.flush()
            self._file.close()

    def set_source(self, source: str | None) -> None:
        """Set the input the following events refer to."""
        self.current_source = source

    def event(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        level: str = "INFO",
        source: str | None = None,
    ) -> None:
        """Write structured event to log.

        Parameters
        ----------
        event_type : str
            Event type identifier (e.g., "run_started").
        data : dict[str, Any] | None, optional
            Event-specific data payload.
        level : str, optional
            Log level ("DEBUG", "INFO", "WARN", "ERROR").
        source : str | None, optional
            Input identifier, uses current_source if not provided.
        """
        if data is None:
            data = {}

        if source is None:
            source = self.current_source

        log_event = LogEvent(
            ts=get_iso_timestamp(),
            run_id=self.run_id,
            level=level,
            event=event_type,
            data=data,
            source=source,
        )

        self._write_event(log_event)

    def _write_event(self, event: LogEvent) -> None:
        event_dict = asdict(event)
        json.dump(event_dict, self._file, ensure_ascii=False, separators=(",", ":"))
        self._file.write("\n")
        self._file.flush()

    def run_started(self, command: list[str], parameters: dict[str, Any]) -> None:
        """Log run_started event.

        Parameters
        ----------
        command : list[str]
            Command-line arguments.
        parameters : dict[str, Any]
            Tidy options in effect.
        """
        self.event(
            "run_started",
            data={
                "command": command,
                "parameters": parameters,
                "version": get_package_version(),
            },
        )

    def input_tidied(self, sha256: str, result: TidyResult, changed: bool) -> None:
        """Log one processed input.

        Parameters
        ----------
        sha256 : str
            Digest of the input text with "sha256:" prefix.
        result : TidyResult
            Tidy result of the input.
        changed : bool
            Whether the canonical text differs from the input.
        """
        self.event(
            "input_tidied",
            data={
                "sha256": sha256,
                "entries": result.entries.to_dict(),
                "warnings": len(result.warnings),
                "changed": changed,
            },
        )
        for warning in result.warnings:
            self.warning(warning)

    def warning(self, warning: TidyWarning) -> None:
        """Log one pipeline warning at WARN level."""
        self.event("warning", data=warning.to_dict(), level="WARN")

    def run_finished(
        self,
        status: str,
        duration_seconds: float,
        entries_processed: int | None = None,
    ) -> None:
        """Log run_finished event.

        Parameters
        ----------
        status : str
            Run status ("success", "failed", "changed").
        duration_seconds : float
            Total execution time in seconds.
        entries_processed : int | None, optional
            Total entries parsed across inputs.
        """
        data: dict[str, Any] = {
            "status": status,
            "duration_seconds": duration_seconds,
        }
        if entries_processed is not None:
            data["entries_processed"] = entries_processed

        self.event("run_finished", data=data, source=None)

    def error(self, exception_class: str, message: str) -> None:
        """Log error event.

        Parameters
        ----------
        exception_class : str
            Exception class name.
        message : str
            Error message.
        """
        self.event(
            "error",
            data={"exception_class": exception_class, "message": message},
            level="ERROR",
        )
