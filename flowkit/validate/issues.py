"""
Validation issues.

An Issue is a structured finding, never an exception. Only the caller
decides whether error-severity issues are fatal (the AtomicStore refuses
to commit when any exists).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List


class Severity(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class Issue:
    """A validation finding.

    Attributes:
        severity: info | warn | error
        code: Machine-readable code (e.g. "text.length.exceeded")
        message: Human readable description
        path: Location (e.g. "routes[3].view.text", "graph.edges[1].to")
    """

    severity: Severity
    code: str
    message: str
    path: str = ""

    @property
    def blocking(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "path": self.path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Issue:
        return cls(
            severity=Severity(data["severity"]),
            code=data["code"],
            message=data.get("message", ""),
            path=data.get("path", ""),
        )

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.code} at {self.path}: {self.message}"


def has_errors(issues: Iterable[Issue]) -> bool:
    return any(i.blocking for i in issues)


def blocking_issues(issues: Iterable[Issue]) -> List[Issue]:
    """The error-severity subset, in original order."""
    return [i for i in issues if i.blocking]
