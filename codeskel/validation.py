"""Consistency checks between the skeleton and externally written prose."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from codeskel.prose import ProseEnhancements
from codeskel.skeleton import Skeleton


class IssueType(enum.Enum):
    ORPHANED_REFERENCE = "orphaned_reference"
    MISSING_DESCRIPTION = "missing_description"
    INVALID_RELATIONSHIP = "invalid_relationship"


class Severity(enum.Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ConsistencyIssue:
    type: IssueType
    severity: Severity
    message: str


@dataclass(frozen=True)
class ConsistencyReport:
    """Outcome of a consistency check; ``passed`` means no error-level issues."""

    passed: bool
    issues: tuple[ConsistencyIssue, ...] = ()

    @property
    def errors(self) -> tuple[ConsistencyIssue, ...]:
        return tuple(i for i in self.issues if i.severity == Severity.ERROR)

    @property
    def warnings(self) -> tuple[ConsistencyIssue, ...]:
        return tuple(i for i in self.issues if i.severity == Severity.WARNING)


def validate_consistency(skeleton: Skeleton, prose: ProseEnhancements) -> ConsistencyReport:
    """Check prose entity descriptions and relationships against the skeleton.

    A skeleton entity without a (non-empty) description is a warning. A
    description for an entity the skeleton does not have, or a relationship
    endpoint naming one, is an error.

    Args:
        skeleton: The deterministic skeleton.
        prose: Prose produced for that skeleton.

    Returns:
        The report; issues are never raised.
    """
    issues: list[ConsistencyIssue] = []
    names = skeleton.entity_names

    for entity in skeleton.entities:
        if not prose.entity_descriptions.get(entity.name):
            issues.append(
                ConsistencyIssue(
                    type=IssueType.MISSING_DESCRIPTION,
                    severity=Severity.WARNING,
                    message=f'Entity "{entity.name}" is missing a description',
                )
            )

    for name in prose.entity_descriptions:
        if name not in names:
            issues.append(
                ConsistencyIssue(
                    type=IssueType.ORPHANED_REFERENCE,
                    severity=Severity.ERROR,
                    message=f'Description provided for non-existent entity "{name}"',
                )
            )

    for rel in prose.relationships:
        for end, name in (("from", rel.from_entity), ("to", rel.to_entity)):
            if name not in names:
                issues.append(
                    ConsistencyIssue(
                        type=IssueType.INVALID_RELATIONSHIP,
                        severity=Severity.ERROR,
                        message=(
                            f'Relationship "{end}" references non-existent entity "{name}"'
                        ),
                    )
                )

    passed = not any(i.severity == Severity.ERROR for i in issues)
    return ConsistencyReport(passed=passed, issues=tuple(issues))
