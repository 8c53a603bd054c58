"""Result values produced by validation and layout.

All of these are ephemeral: computed fresh on every call and never stored
as part of a pipeline.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from stagecraft.contracts.enums import IssueSeverity
from stagecraft.contracts.types import StageID


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single validation finding.

    ``code`` is stable and machine-readable; ``message`` is for operators.
    ``stage_ids`` names the stages the finding is about (empty for
    pipeline-wide findings such as a missing exit point).
    """

    code: str
    severity: IssueSeverity
    message: str
    stage_ids: tuple[StageID, ...] = ()

    @property
    def is_error(self) -> bool:
        return self.severity == IssueSeverity.ERROR


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Structural diagnosis of a stage list.

    ``errors`` and ``warnings`` are the messages of ``issues`` split by
    severity, in the order the checks emitted them. Warnings never affect
    ``is_valid``.
    """

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    issues: tuple[ValidationIssue, ...] = ()

    @classmethod
    def from_issues(cls, issues: Iterable[ValidationIssue]) -> ValidationResult:
        issues = tuple(issues)
        errors = tuple(issue.message for issue in issues if issue.is_error)
        warnings = tuple(issue.message for issue in issues if not issue.is_error)
        return cls(is_valid=not errors, errors=errors, warnings=warnings, issues=issues)

    def issues_for(self, stage_id: str) -> tuple[ValidationIssue, ...]:
        """Findings that name ``stage_id``, in emission order."""
        return tuple(issue for issue in self.issues if stage_id in issue.stage_ids)

    def first_error_for(self, stage_id: str) -> str | None:
        for issue in self.issues_for(stage_id):
            if issue.is_error:
                return issue.message
        return None

    def to_dict(self) -> dict[str, Any]:
        """Editor-shaped mapping (camelCase keys, lists)."""
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Smallest rectangle enclosing every node footprint."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float
    width: float
    height: float

    @classmethod
    def empty(cls) -> BoundingBox:
        return cls(min_x=0.0, min_y=0.0, max_x=0.0, max_y=0.0, width=0.0, height=0.0)

    @property
    def center(self) -> tuple[float, float]:
        return (self.min_x + self.width / 2, self.min_y + self.height / 2)
