"""Probe protocols and failure types: every command execution backend satisfies these."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class ProbeOutput:
    """Captured result of a command that exited successfully."""

    command: str
    stdout: str
    stderr: str = ""
    returncode: int = 0
    duration: float = 0.0


class ProbeError(Exception):
    """Base class for a command that did not produce usable output."""

    def __init__(self, command: str, message: str = "") -> None:
        self.command = command
        super().__init__(message or command)


class ProbeNotFound(ProbeError):
    """The command or binary does not exist."""


class ProbeNonZeroExit(ProbeError):
    """The process ran but exited with a failing status."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(command, f"{command!r} exited with status {returncode}")


class ProbeTimedOut(ProbeError):
    """The wall-clock timeout elapsed; the process was terminated."""

    def __init__(self, command: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(command, f"{command!r} timed out after {timeout:.1f}s")


class ProbeCancelled(ProbeTimedOut):
    """The caller cancelled the run while the process was in flight."""

    def __init__(self, command: str, elapsed: float = 0.0) -> None:
        self.timeout = elapsed
        ProbeError.__init__(self, command, f"{command!r} cancelled after {elapsed:.1f}s")


@runtime_checkable
class CommandRunner(Protocol):
    """Protocol for command execution backends."""

    def run(
        self,
        command: str,
        timeout: float = DEFAULT_TIMEOUT,
        cancel: threading.Event | None = None,
    ) -> ProbeOutput:
        """Run a shell command and return its captured output.

        Raises ProbeNotFound, ProbeNonZeroExit or ProbeTimedOut.
        """
        ...


@runtime_checkable
class PathInspector(Protocol):
    """Protocol for filesystem existence and content checks."""

    def exists(self, path: str) -> bool:
        """Whether the path exists (file or directory)."""
        ...

    def read_text(self, path: str) -> str | None:
        """Return file content, or None when it cannot be read."""
        ...
