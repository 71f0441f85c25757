"""Detection data models: records, evidence, errors and run results."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from armprobe.catalog.models import Category
from armprobe.compat.models import CompatibilityStatus

# Application key used for errors that affect the whole run.
RUN_SCOPE = "<run>"


class DetectionMethod(enum.Enum):
    """Which tier confirmed the application."""

    PROCESS = "process"
    PACKAGE = "package"
    CONFIG_FILE = "config_file"


class VersionSource(enum.Enum):
    """Where the resolved version came from."""

    PROBE = "probe"
    CONFIG = "config"
    DEFAULT = "default"


class ErrorKind(enum.Enum):
    """Classification of a recorded failure."""

    TIMED_OUT = "timed_out"
    PARSE = "parse"
    PERSISTENCE = "persistence"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ProbeAttempt:
    """One version probe that was tried."""

    command: str
    output: str
    outcome: str
    yielded_version: bool = False


@dataclass(frozen=True)
class Evidence:
    """Audit trail of how a record was produced.

    ``config_paths`` are the existence checks of the config-file tier;
    ``config_reads`` are the files read while resolving the version.
    """

    matched_signal: str = ""
    probes: tuple[ProbeAttempt, ...] = ()
    config_paths: tuple[tuple[str, bool], ...] = ()
    config_reads: tuple[tuple[str, bool], ...] = ()
    version_source: VersionSource = VersionSource.DEFAULT


@dataclass(frozen=True)
class DetectionRecord:
    """An application confirmed present during one run.

    Holds no timestamps or generated ids: the same environment always
    produces an equal record.
    """

    scan_id: str
    application: str
    category: Category
    version: str
    method: DetectionMethod
    status: CompatibilityStatus
    notes: str = ""
    evidence: Evidence = field(default_factory=Evidence)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scan_id": self.scan_id,
            "application": self.application,
            "category": self.category.value,
            "version": self.version,
            "method": self.method.value,
            "status": self.status.value,
            "notes": self.notes,
            "evidence": {
                "matched_signal": self.evidence.matched_signal,
                "version_source": self.evidence.version_source.value,
                "probes": [
                    {
                        "command": p.command,
                        "output": p.output,
                        "outcome": p.outcome,
                        "yielded_version": p.yielded_version,
                    }
                    for p in self.evidence.probes
                ],
                "config_paths": [
                    {"path": path, "exists": exists}
                    for path, exists in self.evidence.config_paths
                ],
                "config_reads": [
                    {"path": path, "readable": readable}
                    for path, readable in self.evidence.config_reads
                ],
            },
        }


@dataclass(frozen=True)
class DetectionError:
    """A failure tagged with the application it occurred under.

    ``application`` is ``RUN_SCOPE`` for run-wide failures.
    """

    application: str
    kind: ErrorKind
    message: str = ""

    @property
    def is_run_wide(self) -> bool:
        return self.application == RUN_SCOPE

    def to_dict(self) -> dict[str, str]:
        return {
            "application": self.application,
            "kind": self.kind.value,
            "message": self.message,
        }


@dataclass
class RunResult:
    """Aggregate result of one detection run."""

    scan_id: str
    records: list[DetectionRecord] = field(default_factory=list)
    errors: list[DetectionError] = field(default_factory=list)
    saved_ids: dict[str, str] = field(default_factory=dict)
    duration: float = 0.0
    timestamp: float = field(default_factory=time.time)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def errors_for(self, application: str) -> list[DetectionError]:
        return [e for e in self.errors if e.application == application]

    def status_counts(self) -> dict[CompatibilityStatus, int]:
        """Records per compatibility status, every status present (zero included)."""
        counts = {status: 0 for status in CompatibilityStatus}
        for record in self.records:
            counts[record.status] += 1
        return counts

    def category_counts(self) -> dict[Category, int]:
        """Records per category, only categories that were detected, in catalog order."""
        counts: dict[Category, int] = {}
        for record in self.records:
            counts[record.category] = counts.get(record.category, 0) + 1
        return counts

    def summary(self) -> dict[str, Any]:
        total = len(self.records)
        return {
            "total": total,
            "by_status": {
                status.value: {
                    "count": count,
                    "percent": round(100.0 * count / total, 1) if total else 0.0,
                }
                for status, count in self.status_counts().items()
            },
            "by_category": {
                category.value: count for category, count in self.category_counts().items()
            },
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "scan_id": self.scan_id,
            "timestamp": self.timestamp,
            "duration": self.duration,
            "summary": self.summary(),
            "records": [r.to_dict() for r in self.records],
            "errors": [e.to_dict() for e in self.errors],
            "saved_ids": dict(self.saved_ids),
        }


@runtime_checkable
class RecordSink(Protocol):
    """Persistence collaborator that receives each finished record."""

    def save(self, record: DetectionRecord) -> str:
        """Persist a record and return its stored id."""
        ...
