"""Tests for baseline process and package corpora."""

from __future__ import annotations

from armprobe.detection.corpus import (
    DEB_COMMAND,
    PROCESS_COMMAND,
    RPM_COMMAND,
    Corpora,
    gather_corpora,
    package_tokens,
)
from armprobe.detection.models import RUN_SCOPE, ErrorKind
from armprobe.probe.base import ProbeCancelled, ProbeNonZeroExit, ProbeTimedOut
from conftest import FakeRunner, corpus_script


class TestPackageTokens:
    def test_one_name_per_line(self):
        assert package_tokens("postgresql-server\nredis\n\n") == {"postgresql-server", "redis"}

    def test_dpkg_l_rows(self):
        listing = (
            "||/ Name           Version      Architecture Description\n"
            "+++-==============-============-============-===========\n"
            "ii  redis-server:amd64  5:6.0.16-1  amd64  Persistent key-value database\n"
            "rc  mongodb-org    5.0.9        amd64        MongoDB\n"
        )
        names = package_tokens(listing)
        assert "redis-server" in names
        assert "mongodb-org" in names

    def test_lowercased(self):
        assert package_tokens("Docker-CE\n") == {"docker-ce"}


class TestCorpora:
    def test_process_match_is_case_insensitive(self):
        corpora = Corpora(processes="java -cp /opt/kafka kafka.kafka server.properties")
        assert corpora.has_process("kafka.Kafka")
        assert not corpora.has_process("jenkins")

    def test_find_package_is_deterministic(self):
        corpora = Corpora(package_names=frozenset({"redis-tools", "redis-server", "libc6"}))
        assert corpora.find_package("redis") == "redis-server"
        assert corpora.find_package("nginx") is None


class TestGatherCorpora:
    def test_collects_all_listings(self):
        runner = FakeRunner(
            corpus_script(processes="redis-server *:6379\n", deb="redis-server\n", rpm="mysql\n")
        )
        corpora, errors = gather_corpora(runner, timeout=5)
        assert errors == []
        assert corpora.has_process("redis-server")
        assert corpora.package_names == {"redis-server", "mysql"}
        assert runner.calls == [PROCESS_COMMAND, DEB_COMMAND, RPM_COMMAND]

    def test_missing_package_manager_is_silent(self):
        # Debian hosts have no rpm
        runner = FakeRunner({PROCESS_COMMAND: "", DEB_COMMAND: "redis\n"})
        corpora, errors = gather_corpora(runner, timeout=5)
        assert errors == []
        assert corpora.rpm_packages == ""
        assert corpora.package_names == {"redis"}

    def test_nonzero_exit_is_silent(self):
        script = corpus_script()
        script[RPM_COMMAND] = ProbeNonZeroExit(RPM_COMMAND, 1)
        _, errors = gather_corpora(FakeRunner(script), timeout=5)
        assert errors == []

    def test_timeout_is_a_run_wide_error(self):
        script = corpus_script(deb="redis\n")
        script[PROCESS_COMMAND] = ProbeTimedOut(PROCESS_COMMAND, 5)
        corpora, errors = gather_corpora(FakeRunner(script), timeout=5)
        assert corpora.processes == ""
        assert corpora.package_names == {"redis"}
        assert len(errors) == 1
        assert errors[0].application == RUN_SCOPE
        assert errors[0].kind == ErrorKind.TIMED_OUT

    def test_cancelled_listing_is_not_an_error(self):
        script = corpus_script()
        script[PROCESS_COMMAND] = ProbeCancelled(PROCESS_COMMAND)
        _, errors = gather_corpora(FakeRunner(script), timeout=5)
        assert errors == []

    def test_unexpected_failure_is_internal(self):
        class BrokenRunner(FakeRunner):
            def run(self, command, timeout=5, cancel=None):
                if command == DEB_COMMAND:
                    raise OSError("pipe closed")
                return super().run(command, timeout, cancel)

        corpora, errors = gather_corpora(BrokenRunner(corpus_script(rpm="redis\n")), timeout=5)
        assert corpora.package_names == {"redis"}
        assert [e.kind for e in errors] == [ErrorKind.INTERNAL]
        assert errors[0].is_run_wide

    def test_timeout_recomputed_per_listing(self):
        seen: list[tuple[str, float]] = []

        class RecordingRunner(FakeRunner):
            def run(self, command, timeout=5, cancel=None):
                seen.append((command, timeout))
                return super().run(command, timeout, cancel)

        budgets = {PROCESS_COMMAND: 3.0, DEB_COMMAND: 1.0}

        def remaining(command: str) -> float:
            if command not in budgets:
                raise ProbeCancelled(command)
            return budgets[command]

        runner = RecordingRunner(corpus_script(deb="redis\n", rpm="mysql\n"))
        corpora, errors = gather_corpora(runner, remaining)

        assert seen == [(PROCESS_COMMAND, 3.0), (DEB_COMMAND, 1.0)]
        assert RPM_COMMAND not in runner.calls
        assert corpora.package_names == {"redis"}
        assert errors == []
