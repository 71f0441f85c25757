"""Compatibility data models: immutable rule and verdict types."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class CompatibilityStatus(enum.Enum):
    """ARM64/Graviton readiness verdict."""

    COMPATIBLE = "compatible"
    PARTIAL = "partial"
    NOT_COMPATIBLE = "not_compatible"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class CompatRule:
    """A single compatibility rule.

    ``application`` is a case-insensitive glob against the application key.
    ``version_pattern`` is one of ``>=X.Y.Z``, ``all``, ``none``, ``partial``
    or an exact version string.
    """

    application: str
    version_pattern: str
    notes: str = ""
    upgrade_notes: str = ""


@dataclass(frozen=True)
class RuleSet:
    """An ordered, named collection of compatibility rules."""

    name: str
    rules: tuple[CompatRule, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class Verdict:
    """Result of classifying one application version."""

    status: CompatibilityStatus
    notes: str = ""
    matched_rule: CompatRule | None = None
