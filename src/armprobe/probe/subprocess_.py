"""Local command execution backend: runs probes as real OS processes."""

from __future__ import annotations

import logging
import subprocess
import threading
import time

import psutil

from armprobe.probe.base import (
    DEFAULT_TIMEOUT,
    ProbeCancelled,
    ProbeNonZeroExit,
    ProbeNotFound,
    ProbeOutput,
    ProbeTimedOut,
)

logger = logging.getLogger(__name__)

# Exit status the POSIX shell uses for "command not found".
_SHELL_NOT_FOUND = 127

# Seconds to wait for a killed process tree to be reaped.
_REAP_TIMEOUT = 5.0


class SubprocessProbe:
    """Runs shell commands through ``/bin/sh -c`` with a bounded timeout.

    The process is polled rather than waited on so a cancel event can
    interrupt it. On timeout or cancellation the whole process tree is
    killed before the error is raised: pipelines such as
    ``find ... | head`` leave no stragglers behind.
    """

    def __init__(self, shell: str = "/bin/sh", poll_interval: float = 0.05) -> None:
        self._shell = shell
        self._poll_interval = poll_interval

    def run(
        self,
        command: str,
        timeout: float = DEFAULT_TIMEOUT,
        cancel: threading.Event | None = None,
    ) -> ProbeOutput:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        start = time.monotonic()
        try:
            proc = subprocess.Popen(
                [self._shell, "-c", command],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
                start_new_session=True,
            )
        except FileNotFoundError as exc:
            raise ProbeNotFound(command, str(exc)) from exc

        deadline = start + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                _kill_tree(proc)
                logger.warning("Probe timed out after %.1fs: %s", timeout, command)
                raise ProbeTimedOut(command, timeout)
            if cancel is not None and cancel.is_set():
                _kill_tree(proc)
                logger.debug("Probe cancelled: %s", command)
                raise ProbeCancelled(command, time.monotonic() - start)
            try:
                stdout, stderr = proc.communicate(
                    timeout=min(remaining, self._poll_interval)
                )
                break
            except subprocess.TimeoutExpired:
                continue

        duration = time.monotonic() - start
        if proc.returncode == _SHELL_NOT_FOUND:
            logger.debug("Probe command not found: %s", command)
            raise ProbeNotFound(command, stderr.strip())
        if proc.returncode != 0:
            logger.debug("Probe exited %d: %s", proc.returncode, command)
            raise ProbeNonZeroExit(command, proc.returncode, stderr)

        if stderr.strip():
            logger.warning("Probe %r wrote to stderr: %s", command, stderr.strip()[:200])

        return ProbeOutput(
            command=command,
            stdout=stdout,
            stderr=stderr,
            returncode=proc.returncode,
            duration=duration,
        )


def _kill_tree(proc: subprocess.Popen[str]) -> None:
    """Kill a process and all of its descendants, then reap it."""
    try:
        parent = psutil.Process(proc.pid)
        victims = parent.children(recursive=True) + [parent]
    except psutil.NoSuchProcess:
        victims = []

    for victim in victims:
        try:
            victim.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue

    try:
        proc.communicate(timeout=_REAP_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning("Process %d did not exit after kill", proc.pid)
