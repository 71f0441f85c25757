"""Detection engine: orchestrates tiered detection across the application catalog."""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from armprobe.catalog.models import ApplicationSignature
from armprobe.catalog.parsers import parse_version, resolve_version_from_config
from armprobe.catalog.signatures import CATALOG
from armprobe.compat.classifier import CompatibilityClassifier
from armprobe.compat.loader import load_default_rules
from armprobe.detection.corpus import Corpora, gather_corpora
from armprobe.detection.models import (
    RUN_SCOPE,
    DetectionError,
    DetectionMethod,
    DetectionRecord,
    ErrorKind,
    Evidence,
    ProbeAttempt,
    RecordSink,
    RunResult,
    VersionSource,
)
from armprobe.probe.base import (
    DEFAULT_TIMEOUT,
    CommandRunner,
    PathInspector,
    ProbeCancelled,
    ProbeNonZeroExit,
    ProbeNotFound,
    ProbeTimedOut,
)
from armprobe.probe.fs import LocalFilesystem

logger = logging.getLogger(__name__)

# Probe output kept in evidence, per attempt
_MAX_EVIDENCE_OUTPUT = 500

_FALLBACK_WORKERS = 4

_TIMED_OUT = "timed_out"


class VersionParseError(Exception):
    """A version parser raised instead of returning no match."""


@dataclass(frozen=True)
class _TierMatch:
    method: DetectionMethod
    signal: str
    config_paths: tuple[tuple[str, bool], ...] = ()


@dataclass
class _Outcome:
    """What one detection unit produced. Owned by exactly one worker."""

    record: DetectionRecord | None = None
    error: DetectionError | None = None
    skipped: bool = False


@dataclass
class _Resolution:
    version: str
    source: VersionSource
    attempts: list[ProbeAttempt]
    config_reads: list[tuple[str, bool]]

    @property
    def timed_out(self) -> list[str]:
        return [a.command for a in self.attempts if a.outcome == _TIMED_OUT]


class _RunControl:
    """Cancellation and deadline state for one run.

    ``event`` is handed to every probe; it is set when the caller cancels or
    the deadline passes, which terminates in-flight processes.
    """

    def __init__(
        self,
        timeout: float,
        clock: Callable[[], float],
        cancel: threading.Event | None,
        deadline: float | None,
    ) -> None:
        self.event = cancel if cancel is not None else threading.Event()
        self._timeout = timeout
        self._clock = clock
        self._deadline = deadline

    def cancelled(self) -> bool:
        if self.event.is_set():
            return True
        if self._deadline is not None and self._clock() >= self._deadline:
            self.event.set()
            return True
        return False

    def probe_timeout(self, command: str = "") -> float:
        """Per-probe timeout, capped by the time left before the deadline."""
        if self.cancelled():
            raise ProbeCancelled(command)
        if self._deadline is None:
            return self._timeout
        remaining = self._deadline - self._clock()
        if remaining <= 0:
            self.event.set()
            raise ProbeCancelled(command)
        return min(self._timeout, remaining)


class DetectionEngine:
    """Detects known applications on a host and classifies their ARM64 readiness.

    Per run: gather the baseline corpora (a strict barrier), then detect each
    catalog entry on a worker pool, then collect outcomes in catalog order
    and hand every record to the sink. Nothing raised while detecting one
    application escapes its unit; it becomes a ``DetectionError`` instead.
    """

    def __init__(
        self,
        runner: CommandRunner,
        filesystem: PathInspector | None = None,
        catalog: tuple[ApplicationSignature, ...] = CATALOG,
        classifier: CompatibilityClassifier | None = None,
        sink: RecordSink | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_workers: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self._runner = runner
        self._fs = filesystem if filesystem is not None else LocalFilesystem()
        self._catalog = catalog
        self._classifier = classifier or CompatibilityClassifier(load_default_rules())
        self._sink = sink
        self._timeout = timeout
        self._max_workers = max_workers or os.cpu_count() or _FALLBACK_WORKERS
        self._clock = clock

    def detect(
        self,
        scan_id: str,
        cancel: threading.Event | None = None,
        deadline: float | None = None,
    ) -> RunResult:
        """Run one detection pass and return whatever it managed to build.

        ``deadline`` is an absolute time on the engine's clock. When it passes,
        or ``cancel`` is set, in-flight probes are terminated, unstarted
        applications are skipped and a run-wide ``cancelled`` error is added.
        """
        start = self._clock()
        control = _RunControl(self._timeout, self._clock, cancel, deadline)
        result = RunResult(scan_id=scan_id)
        logger.info("Detection run %s starting (%d applications)", scan_id, len(self._catalog))

        corpora = Corpora()
        if not control.cancelled():
            corpora, corpus_errors = gather_corpora(
                self._runner, control.probe_timeout, cancel=control.event
            )
            result.errors.extend(corpus_errors)

        outcomes = self._detect_all(scan_id, corpora, control)

        skipped = 0
        for outcome in outcomes:
            if outcome.skipped:
                skipped += 1
            if outcome.record is not None:
                result.records.append(outcome.record)
            if outcome.error is not None:
                result.errors.append(outcome.error)

        if self._sink is not None:
            self._persist(result)

        if control.event.is_set():
            result.errors.append(
                DetectionError(
                    RUN_SCOPE,
                    ErrorKind.CANCELLED,
                    f"Run cancelled; {skipped} application(s) not checked",
                )
            )

        result.duration = self._clock() - start
        logger.info(
            "Detection run %s finished: %d record(s), %d error(s) in %.2fs",
            scan_id,
            len(result.records),
            len(result.errors),
            result.duration,
        )
        return result

    def _detect_all(
        self, scan_id: str, corpora: Corpora, control: _RunControl
    ) -> list[_Outcome]:
        if not self._catalog:
            return []
        workers = max(1, min(self._max_workers, len(self._catalog)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="armprobe") as pool:
            futures = [
                pool.submit(self._run_unit, scan_id, signature, corpora, control)
                for signature in self._catalog
            ]
            # Collected in catalog order, regardless of completion order
            return [future.result() for future in futures]

    def _run_unit(
        self,
        scan_id: str,
        signature: ApplicationSignature,
        corpora: Corpora,
        control: _RunControl,
    ) -> _Outcome:
        if control.cancelled():
            return _Outcome(skipped=True)
        try:
            return self._detect_one(scan_id, signature, corpora, control)
        except ProbeTimedOut as e:
            logger.warning("Detection of %s timed out: %s", signature.key, e)
            return _Outcome(
                error=DetectionError(signature.key, ErrorKind.TIMED_OUT, str(e))
            )
        except VersionParseError as e:
            logger.warning("Version parsing failed for %s: %s", signature.key, e)
            return _Outcome(error=DetectionError(signature.key, ErrorKind.PARSE, str(e)))
        except Exception as e:  # noqa: BLE001
            logger.exception("Detection of %s failed", signature.key)
            return _Outcome(
                error=DetectionError(
                    signature.key, ErrorKind.INTERNAL, f"{type(e).__name__}: {e}"
                )
            )

    def _detect_one(
        self,
        scan_id: str,
        signature: ApplicationSignature,
        corpora: Corpora,
        control: _RunControl,
    ) -> _Outcome:
        match = self._match_tier(signature, corpora, control)
        if match is None:
            logger.debug("%s not detected", signature.key)
            return _Outcome()

        logger.debug(
            "%s detected via %s (%s)", signature.key, match.method.value, match.signal
        )
        resolution = self._resolve_version(signature, control)
        verdict = self._classifier.classify(signature.key, resolution.version)

        record = DetectionRecord(
            scan_id=scan_id,
            application=signature.key,
            category=signature.category,
            version=resolution.version,
            method=match.method,
            status=verdict.status,
            notes=verdict.notes,
            evidence=Evidence(
                matched_signal=match.signal,
                probes=tuple(resolution.attempts),
                config_paths=match.config_paths,
                config_reads=tuple(resolution.config_reads),
                version_source=resolution.source,
            ),
        )

        # One error per application, however many probes timed out
        error = None
        if resolution.timed_out:
            error = DetectionError(
                signature.key,
                ErrorKind.TIMED_OUT,
                "Version probe(s) timed out: " + ", ".join(resolution.timed_out),
            )
        return _Outcome(record=record, error=error)

    def _match_tier(
        self,
        signature: ApplicationSignature,
        corpora: Corpora,
        control: _RunControl,
    ) -> _TierMatch | None:
        """Process, then package, then config file; the first hit wins."""
        for pattern in signature.process_patterns:
            if corpora.has_process(pattern):
                return _TierMatch(DetectionMethod.PROCESS, pattern)

        for pattern in signature.package_patterns:
            name = corpora.find_package(pattern)
            if name is not None:
                return _TierMatch(DetectionMethod.PACKAGE, name)

        checked: list[tuple[str, bool]] = []
        for path in signature.config_paths:
            if control.cancelled():
                raise ProbeCancelled(f"config check {path}")
            exists = self._fs.exists(path)
            checked.append((path, exists))
            if exists:
                return _TierMatch(DetectionMethod.CONFIG_FILE, path, tuple(checked))

        return None

    def _resolve_version(
        self,
        signature: ApplicationSignature,
        control: _RunControl,
    ) -> _Resolution:
        """Probes in declared order, then config content, then the default.

        A probe that times out is recorded and skipped like any other failed
        probe. Cancellation is not: it aborts the whole unit.
        """
        attempts: list[ProbeAttempt] = []
        config_reads: list[tuple[str, bool]] = []

        for command in signature.version_probes:
            try:
                output = self._runner.run(
                    command,
                    timeout=control.probe_timeout(command),
                    cancel=control.event,
                )
            except ProbeNotFound:
                attempts.append(ProbeAttempt(command, "", "not_found"))
                continue
            except ProbeNonZeroExit as e:
                attempts.append(ProbeAttempt(command, "", f"exit_{e.returncode}"))
                continue
            except ProbeCancelled:
                raise
            except ProbeTimedOut as e:
                logger.warning("Version probe for %s timed out: %s", signature.key, e)
                attempts.append(ProbeAttempt(command, "", _TIMED_OUT))
                continue

            version = self._parse(signature, output.stdout)
            attempts.append(
                ProbeAttempt(
                    command,
                    output.stdout.strip()[:_MAX_EVIDENCE_OUTPUT],
                    "ok",
                    yielded_version=version is not None,
                )
            )
            if version is not None:
                return _Resolution(version, VersionSource.PROBE, attempts, config_reads)

        for path in signature.config_paths:
            if control.cancelled():
                raise ProbeCancelled(f"config read {path}")
            text = self._fs.read_text(path)
            config_reads.append((path, text is not None))
            if not text:
                continue
            version = resolve_version_from_config(text)
            if version is not None:
                logger.debug("%s version %s read from %s", signature.key, version, path)
                return _Resolution(version, VersionSource.CONFIG, attempts, config_reads)

        return _Resolution(
            signature.default_version, VersionSource.DEFAULT, attempts, config_reads
        )

    @staticmethod
    def _parse(signature: ApplicationSignature, output: str) -> str | None:
        try:
            return parse_version(signature, output)
        except Exception as e:  # noqa: BLE001
            raise VersionParseError(f"{signature.parser} parser: {e}") from e

    def _persist(self, result: RunResult) -> None:
        """Hand every record to the sink from the collecting thread. No retries."""
        for record in result.records:
            try:
                result.saved_ids[record.application] = self._sink.save(record)
            except Exception as e:  # noqa: BLE001
                logger.warning("Saving %s failed: %s", record.application, e)
                result.errors.append(
                    DetectionError(record.application, ErrorKind.PERSISTENCE, str(e))
                )
