"""Filesystem inspectors used by the config-file tier."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from armprobe.probe.base import (
    DEFAULT_TIMEOUT,
    CommandRunner,
    ProbeNonZeroExit,
    ProbeNotFound,
)

logger = logging.getLogger(__name__)

# Max config file size to read (1 MB)
_MAX_FILE_SIZE = 1_048_576


class LocalFilesystem:
    """Native filesystem checks for the host armprobe runs on."""

    def exists(self, path: str) -> bool:
        try:
            return Path(path).exists()
        except OSError:
            return False

    def read_text(self, path: str) -> str | None:
        p = Path(path)
        try:
            if not p.is_file() or p.stat().st_size > _MAX_FILE_SIZE:
                return None
            return p.read_text(encoding="utf-8", errors="ignore")
        except OSError as e:
            logger.debug("Cannot read %s: %s", path, e)
            return None


class CommandFilesystem:
    """Filesystem checks expressed as shell probes through a CommandRunner.

    Useful when the runner targets another host. Absence signals
    (not found, non-zero exit) read as "missing"; timeouts propagate.
    """

    def __init__(self, runner: CommandRunner, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._runner = runner
        self._timeout = timeout

    def exists(self, path: str) -> bool:
        command = f"test -e {shlex.quote(path)} && echo exists"
        try:
            output = self._runner.run(command, timeout=self._timeout)
        except (ProbeNotFound, ProbeNonZeroExit):
            return False
        return "exists" in output.stdout

    def read_text(self, path: str) -> str | None:
        command = f"cat {shlex.quote(path)}"
        try:
            output = self._runner.run(command, timeout=self._timeout)
        except (ProbeNotFound, ProbeNonZeroExit):
            return None
        return output.stdout
