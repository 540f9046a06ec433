"""Structured channel for non-fatal parse problems.

Dropped groups, rejected coordinates and unsupported geometry are recorded
here instead of only being logged, so callers can inspect what was skipped.
Every entry is mirrored to the module logger of the component that raised it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional


logger = logging.getLogger(__name__)


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    context: dict[str, Any] = field(default_factory=dict)


class Diagnostics:
    """Ordered collection of :class:`Diagnostic` entries."""

    def __init__(self) -> None:
        self._entries: list[Diagnostic] = []

    def warn(self, message: str, *, source: Optional[logging.Logger] = None, **context: Any) -> Diagnostic:
        return self._record(Severity.WARNING, message, source, context)

    def info(self, message: str, *, source: Optional[logging.Logger] = None, **context: Any) -> Diagnostic:
        return self._record(Severity.INFO, message, source, context)

    def _record(
        self,
        severity: Severity,
        message: str,
        source: Optional[logging.Logger],
        context: dict[str, Any],
    ) -> Diagnostic:
        entry = Diagnostic(severity=severity, message=message, context=dict(context))
        self._entries.append(entry)
        log = source or logger
        level = logging.WARNING if severity is Severity.WARNING else logging.INFO
        if context:
            log.log(level, "%s %s", message, context)
        else:
            log.log(level, message)
        return entry

    @property
    def entries(self) -> list[Diagnostic]:
        return list(self._entries)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [entry for entry in self._entries if entry.severity is Severity.WARNING]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
