"""Compatibility classifier: maps (application, version) to a verdict. First-match-wins."""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass

from armprobe.compat.models import CompatibilityStatus, CompatRule, RuleSet, Verdict
from armprobe.compat.versions import compare_versions, version_tuple

_MIN_PREFIX = ">="


@dataclass
class _CompiledRule:
    """A rule with its application glob pre-compiled."""

    rule: CompatRule
    application_regex: re.Pattern[str]
    minimum: str | None = None


class CompatibilityClassifier:
    """Classifies detected applications against an ordered rule set.

    Rules are checked in order (own rules before inherited). An application
    no rule covers is ``unknown`` with no notes.
    """

    def __init__(self, rules: RuleSet) -> None:
        self.rules = rules
        self._compiled = [_compile_rule(rule) for rule in rules.rules]

    def classify(self, application: str, version: str) -> Verdict:
        for cr in self._compiled:
            if cr.application_regex.match(application):
                return _apply(cr, application, version)
        return Verdict(status=CompatibilityStatus.UNKNOWN)


def _compile_rule(rule: CompatRule) -> _CompiledRule:
    pattern = rule.version_pattern.strip()
    minimum = None
    if pattern.startswith(_MIN_PREFIX):
        minimum = pattern[len(_MIN_PREFIX) :].strip()
        if version_tuple(minimum) is None:
            raise ValueError(
                f"Invalid minimum version in rule for {rule.application}: {pattern!r}"
            )
    return _CompiledRule(
        rule=rule,
        application_regex=re.compile(
            fnmatch.translate(rule.application), re.IGNORECASE
        ),
        minimum=minimum,
    )


def _apply(cr: _CompiledRule, application: str, version: str) -> Verdict:
    rule = cr.rule
    pattern = rule.version_pattern.strip().lower()

    if cr.minimum is not None:
        if version_tuple(version) is None:
            return Verdict(
                status=CompatibilityStatus.UNKNOWN,
                notes=f"Version {version!r} cannot be compared with {cr.minimum}",
                matched_rule=rule,
            )
        if compare_versions(version, cr.minimum) >= 0:
            return Verdict(CompatibilityStatus.COMPATIBLE, rule.notes, rule)
        notes = rule.upgrade_notes or (
            f"{application} {version} is below {cr.minimum}; "
            f"upgrade required for ARM64 support."
        )
        return Verdict(CompatibilityStatus.NOT_COMPATIBLE, notes, rule)

    if pattern == "all":
        return Verdict(CompatibilityStatus.COMPATIBLE, rule.notes, rule)
    if pattern == "none":
        return Verdict(CompatibilityStatus.NOT_COMPATIBLE, rule.notes, rule)
    if pattern == "partial":
        return Verdict(CompatibilityStatus.PARTIAL, rule.notes, rule)

    # Exact version string
    if rule.version_pattern.strip() == version:
        return Verdict(CompatibilityStatus.COMPATIBLE, rule.notes, rule)
    return Verdict(
        CompatibilityStatus.NOT_COMPATIBLE,
        rule.upgrade_notes
        or f"Only {rule.version_pattern.strip()} is known to run on ARM64.",
        rule,
    )
