"""Synchronous RecordSink over the async SQLite repositories."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from armprobe.detection.models import DetectionRecord, RunResult
from armprobe.storage.db import get_db
from armprobe.storage.repos import DetectionRepo, RunRepo

logger = logging.getLogger(__name__)


class RepoSink:
    """Persists detection records from synchronous code.

    Owns a private event loop so the engine's collector thread can call
    ``save()`` directly. Must not be used from inside a running loop.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._loop = asyncio.new_event_loop()
        self._db = self._loop.run_until_complete(get_db(db_path))
        self._detections = DetectionRepo(self._db)
        self._runs = RunRepo(self._db)

    def save(self, record: DetectionRecord) -> str:
        return self._loop.run_until_complete(self._detections.create(record))

    def save_run(self, result: RunResult, hostname: str = "") -> None:
        self._loop.run_until_complete(self._runs.save(result, hostname=hostname))

    def get_run(self, scan_id: str) -> dict | None:
        return self._loop.run_until_complete(self._runs.get(scan_id))

    def list_runs(self, limit: int = 50) -> list[dict]:
        return self._loop.run_until_complete(self._runs.list_all(limit=limit))

    def close(self) -> None:
        try:
            self._loop.run_until_complete(self._db.close())
        finally:
            self._loop.close()
            logger.debug("Record sink closed")

    def __enter__(self) -> RepoSink:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
