"""Global configuration: XDG paths, env vars, defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from armprobe.probe.base import DEFAULT_TIMEOUT


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / "armprobe"
    return Path.home() / ".local" / "share" / "armprobe"


def _default_config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "armprobe"
    return Path.home() / ".config" / "armprobe"


@dataclass
class ArmProbeConfig:
    """Application-wide configuration."""

    data_dir: Path = field(default_factory=_default_data_dir)
    config_dir: Path = field(default_factory=_default_config_dir)
    probe_timeout: float = DEFAULT_TIMEOUT
    max_workers: int | None = None
    db_path: Path | None = None
    rules_path: Path | None = None
    verbose: bool = False

    @property
    def database(self) -> Path:
        return self.db_path or self.data_dir / "armprobe.db"

    @classmethod
    def load(cls) -> ArmProbeConfig:
        """Load config from environment variables with XDG defaults."""
        config = cls()

        env_timeout = os.environ.get("ARMPROBE_PROBE_TIMEOUT")
        if env_timeout:
            config.probe_timeout = float(env_timeout)
            if config.probe_timeout <= 0:
                raise ValueError("ARMPROBE_PROBE_TIMEOUT must be positive")

        env_workers = os.environ.get("ARMPROBE_MAX_WORKERS")
        if env_workers:
            config.max_workers = int(env_workers)

        env_db = os.environ.get("ARMPROBE_DB_PATH")
        if env_db:
            config.db_path = Path(env_db)

        # Pick up user rules from the config dir if present
        rules_file = config.config_dir / "rules.yaml"
        if rules_file.is_file():
            config.rules_path = rules_file

        return config
