"""Catalog data models: static descriptors of how to detect each application."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Category(enum.Enum):
    """Broad class of server application."""

    DATABASE = "database"
    MESSAGE_QUEUE = "message_queue"
    SEARCH_ENGINE = "search_engine"
    CONTAINER_ORCHESTRATION = "container_orchestration"
    CI_CD = "ci_cd"
    OTHER = "other"


@dataclass(frozen=True)
class ApplicationSignature:
    """How to detect and version one known application.

    ``parser`` names an entry in the parser dispatch table
    (see ``armprobe.catalog.parsers.PARSERS``).
    """

    key: str
    category: Category
    parser: str
    default_version: str
    process_patterns: tuple[str, ...] = ()
    package_patterns: tuple[str, ...] = ()
    config_paths: tuple[str, ...] = ()
    version_probes: tuple[str, ...] = ()
    display_name: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.key
