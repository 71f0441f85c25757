"""Baseline corpora: process and package listings gathered once per run."""

from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from armprobe.detection.models import RUN_SCOPE, DetectionError, ErrorKind
from armprobe.probe.base import (
    CommandRunner,
    ProbeCancelled,
    ProbeNonZeroExit,
    ProbeNotFound,
    ProbeTimedOut,
)

logger = logging.getLogger(__name__)

PROCESS_COMMAND = "ps aux"
DEB_COMMAND = "dpkg-query -W -f='${Package}\\n'"
RPM_COMMAND = "rpm -qa --qf '%{NAME}\\n'"

# dpkg -l status column ("ii", "rc", "hi", ...)
_DPKG_STATUS = re.compile(r"^[a-z]{2,3}$")


@dataclass(frozen=True)
class Corpora:
    """Read-only listings shared by every detection unit."""

    processes: str = ""
    deb_packages: str = ""
    rpm_packages: str = ""
    package_names: frozenset[str] = field(default_factory=frozenset)

    def has_process(self, pattern: str) -> bool:
        return pattern.lower() in self.processes.lower()

    def find_package(self, pattern: str) -> str | None:
        """Return the first package name (sorted) containing the pattern."""
        needle = pattern.lower()
        for name in sorted(self.package_names):
            if needle in name:
                return name
        return None


def package_tokens(listing: str) -> set[str]:
    """Extract lowercase package names from a dpkg or rpm listing.

    Accepts bare one-name-per-line output as well as ``dpkg -l`` style rows,
    where the name is the second column and may carry an ``:arch`` suffix.
    """
    names: set[str] = set()
    for line in listing.splitlines():
        parts = line.split()
        if not parts:
            continue
        token = parts[0]
        if len(parts) >= 2 and _DPKG_STATUS.match(parts[0]):
            token = parts[1]
        token = token.split(":", 1)[0].strip().lower()
        if token and token[0].isalnum():
            names.add(token)
    return names


def gather_corpora(
    runner: CommandRunner,
    timeout: float | Callable[[str], float],
    cancel: threading.Event | None = None,
) -> tuple[Corpora, list[DetectionError]]:
    """Collect the three baseline listings; failures degrade to empty text.

    ``timeout`` may be a callable taking the command, asked again before
    each listing so a run deadline keeps shrinking the budget. It raises
    ``ProbeCancelled`` once the run is cancelled, which skips the listing.
    """
    errors: list[DetectionError] = []

    def _collect(label: str, command: str) -> str:
        try:
            limit = timeout(command) if callable(timeout) else timeout
            return runner.run(command, timeout=limit, cancel=cancel).stdout
        except (ProbeNotFound, ProbeNonZeroExit) as e:
            logger.debug("%s listing unavailable: %s", label, e)
            return ""
        except ProbeCancelled as e:
            logger.debug("%s listing cancelled: %s", label, e)
            return ""
        except ProbeTimedOut as e:
            logger.warning("%s listing timed out: %s", label, e)
            errors.append(
                DetectionError(RUN_SCOPE, ErrorKind.TIMED_OUT, f"{label} listing: {e}")
            )
            return ""
        except Exception as e:  # noqa: BLE001
            logger.warning("%s listing failed: %s", label, e)
            errors.append(
                DetectionError(RUN_SCOPE, ErrorKind.INTERNAL, f"{label} listing: {e}")
            )
            return ""

    processes = _collect("process", PROCESS_COMMAND)
    deb = _collect("dpkg", DEB_COMMAND)
    rpm = _collect("rpm", RPM_COMMAND)

    corpora = Corpora(
        processes=processes,
        deb_packages=deb,
        rpm_packages=rpm,
        package_names=frozenset(package_tokens(deb) | package_tokens(rpm)),
    )
    return corpora, errors
