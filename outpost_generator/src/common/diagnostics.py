from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Dict, List, Optional

from .exceptions import GenerationError

"""Unified diagnostic collection for the whole generation pipeline."""


LOGGER_NAME = "outpost_generator"


class DiagnosticSeverity(Enum):
    """Severity levels for generator diagnostics."""

    DEBUG = "debug"  # Internal generator information
    INFO = "info"  # Statistics and progress for users
    WARNING = "warning"  # Degraded but usable output
    ERROR = "error"  # Output could not be produced


_SEVERITY_ORDER = [
    DiagnosticSeverity.DEBUG,
    DiagnosticSeverity.INFO,
    DiagnosticSeverity.WARNING,
    DiagnosticSeverity.ERROR,
]

_LOGGING_LEVELS = {
    DiagnosticSeverity.DEBUG: logging.DEBUG,
    DiagnosticSeverity.INFO: logging.INFO,
    DiagnosticSeverity.WARNING: logging.WARNING,
    DiagnosticSeverity.ERROR: logging.ERROR,
}


@dataclass
class Diagnostic:
    """A single diagnostic message with context."""

    severity: DiagnosticSeverity
    message: str
    stage: str  # routing, underground, beacons, poles, planning, emission
    details: Optional[Dict[str, Any]] = None


class ProgramDiagnostics:
    """Central diagnostic collection for a generation run.

    Every record is kept for later inspection and forwarded to the
    ``outpost_generator`` logger, so the CLI log level controls what the user
    sees while tests can still query the collected records.

    Usage:
        diagnostics = ProgramDiagnostics()
        diagnostics.warning("2 groups left unconnected", stage="routing")
        if diagnostics.has_errors():
            print(diagnostics.format_for_user())
    """

    def __init__(
        self,
        log_level: str = "warning",
        raise_errors: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.diagnostics: List[Diagnostic] = []
        self.log_level = log_level
        self.raise_errors = raise_errors
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self._error_count = 0
        self._warning_count = 0
        self.default_stage = "unknown"

    def debug(
        self,
        message: str,
        stage: str | None = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add a debug message (only logged)."""
        self._add(DiagnosticSeverity.DEBUG, message, stage, details)

    def info(
        self,
        message: str,
        stage: str | None = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add an informational message."""
        self._add(DiagnosticSeverity.INFO, message, stage, details)

    def warning(
        self,
        message: str,
        stage: str | None = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add a warning (always shown, doesn't stop generation)."""
        self._add(DiagnosticSeverity.WARNING, message, stage, details)
        self._warning_count += 1

    def error(
        self,
        message: str,
        stage: str | None = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add an error (always shown, stops generation)."""
        self._add(DiagnosticSeverity.ERROR, message, stage, details)
        self._error_count += 1
        if self.raise_errors:
            raise GenerationError(message)

    def _add(
        self,
        severity: DiagnosticSeverity,
        message: str,
        stage: str | None,
        details: Optional[Dict[str, Any]],
    ) -> None:
        """Internal method to add a diagnostic."""
        diag = Diagnostic(
            severity=severity,
            message=message,
            stage=stage or self.default_stage,
            details=details,
        )
        self.diagnostics.append(diag)
        self.logger.log(_LOGGING_LEVELS[severity], "[%s] %s", diag.stage, message)

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return self._error_count > 0

    def error_count(self) -> int:
        """Get the number of errors."""
        return self._error_count

    def warning_count(self) -> int:
        """Get the number of warnings."""
        return self._warning_count

    def get_messages(
        self, min_severity: DiagnosticSeverity = DiagnosticSeverity.WARNING
    ) -> List[str]:
        """Get formatted messages at or above the specified severity level."""
        threshold = _SEVERITY_ORDER.index(min_severity)
        return [
            self._format_diagnostic(diag)
            for diag in self.diagnostics
            if _SEVERITY_ORDER.index(diag.severity) >= threshold
        ]

    def _format_diagnostic(self, diag: Diagnostic) -> str:
        # Format: SEVERITY [stage]: message
        return f"{diag.severity.value.upper()} [{diag.stage}]: {diag.message}"

    def format_for_user(self) -> str:
        """Format all diagnostics for user-friendly output."""
        if not self.diagnostics:
            return "No diagnostics."

        try:
            min_severity = DiagnosticSeverity(self.log_level.lower())
        except ValueError:
            min_severity = DiagnosticSeverity.WARNING

        messages = self.get_messages(min_severity)
        summary = f"\nGeneration summary: {self._error_count} error(s), {self._warning_count} warning(s)"

        return "\n".join(messages) + summary

    def merge(self, other: "ProgramDiagnostics") -> None:
        """Merge diagnostics from another collector."""
        self.diagnostics.extend(other.diagnostics)
        self._error_count += other._error_count
        self._warning_count += other._warning_count
