"""Tests for environment-driven configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from armprobe.config import ArmProbeConfig
from armprobe.probe.base import DEFAULT_TIMEOUT


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path: Path):
    for var in ("ARMPROBE_PROBE_TIMEOUT", "ARMPROBE_MAX_WORKERS", "ARMPROBE_DB_PATH"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))


def test_defaults(tmp_path: Path):
    config = ArmProbeConfig.load()
    assert config.probe_timeout == DEFAULT_TIMEOUT
    assert config.max_workers is None
    assert config.rules_path is None
    assert config.database == tmp_path / "data" / "armprobe" / "armprobe.db"


def test_env_overrides(monkeypatch, tmp_path: Path):
    monkeypatch.setenv("ARMPROBE_PROBE_TIMEOUT", "2.5")
    monkeypatch.setenv("ARMPROBE_MAX_WORKERS", "3")
    monkeypatch.setenv("ARMPROBE_DB_PATH", str(tmp_path / "custom.db"))
    config = ArmProbeConfig.load()
    assert config.probe_timeout == 2.5
    assert config.max_workers == 3
    assert config.database == tmp_path / "custom.db"


def test_non_positive_timeout_rejected(monkeypatch):
    monkeypatch.setenv("ARMPROBE_PROBE_TIMEOUT", "0")
    with pytest.raises(ValueError):
        ArmProbeConfig.load()


def test_user_rules_picked_up(tmp_path: Path):
    rules_dir = tmp_path / "config" / "armprobe"
    rules_dir.mkdir(parents=True)
    (rules_dir / "rules.yaml").write_text("name: site\ninherit: preset:graviton\n")
    config = ArmProbeConfig.load()
    assert config.rules_path == rules_dir / "rules.yaml"
