"""Shared test fixtures."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from armprobe.compat.models import CompatRule, RuleSet
from armprobe.detection.corpus import DEB_COMMAND, PROCESS_COMMAND, RPM_COMMAND
from armprobe.probe.base import (
    DEFAULT_TIMEOUT,
    ProbeError,
    ProbeNotFound,
    ProbeOutput,
)


class FakeRunner:
    """Scripted CommandRunner.

    ``script`` maps a command to its stdout, or to a ProbeError instance
    that is raised instead. Unknown commands raise ProbeNotFound.
    """

    def __init__(self, script: dict[str, str | ProbeError] | None = None) -> None:
        self.script = dict(script or {})
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def run(
        self,
        command: str,
        timeout: float = DEFAULT_TIMEOUT,
        cancel: threading.Event | None = None,
    ) -> ProbeOutput:
        with self._lock:
            self.calls.append(command)
        scripted = self.script.get(command)
        if scripted is None:
            raise ProbeNotFound(command)
        if isinstance(scripted, ProbeError):
            raise scripted
        return ProbeOutput(command=command, stdout=scripted)


class FakeFilesystem:
    """In-memory PathInspector: ``files`` maps path to content (None for a directory)."""

    def __init__(self, files: dict[str, str | None] | None = None) -> None:
        self.files = dict(files or {})
        self.exists_calls: list[str] = []
        self.read_calls: list[str] = []

    def exists(self, path: str) -> bool:
        self.exists_calls.append(path)
        return path in self.files

    def read_text(self, path: str) -> str | None:
        self.read_calls.append(path)
        return self.files.get(path)


def corpus_script(
    processes: str = "",
    deb: str = "",
    rpm: str = "",
) -> dict[str, str | ProbeError]:
    """Baseline listing commands scripted with the given output."""
    return {PROCESS_COMMAND: processes, DEB_COMMAND: deb, RPM_COMMAND: rpm}


@pytest.fixture
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def custom_rules_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "custom_rules.yaml"


@pytest.fixture
def simple_rules_path(fixtures_dir: Path) -> Path:
    return fixtures_dir / "simple_rules.yaml"


@pytest.fixture
def simple_rules() -> RuleSet:
    return RuleSet(
        name="test",
        rules=(
            CompatRule(application="redis", version_pattern="all", notes="Redis ok"),
            CompatRule(
                application="aerospike",
                version_pattern=">=6",
                upgrade_notes="Upgrade to 6.0+",
            ),
            CompatRule(application="elasticsearch", version_pattern="partial"),
        ),
    )
