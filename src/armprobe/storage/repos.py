"""Repository classes for async CRUD operations on SQLite."""

from __future__ import annotations

import json
import time
import uuid

import aiosqlite

from armprobe.detection.models import DetectionRecord, RunResult


class DetectionRepo:
    """CRUD for detection records."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def create(self, record: DetectionRecord) -> str:
        record_id = uuid.uuid4().hex[:12]
        await self._db.execute(
            "INSERT INTO detections "
            "(id, scan_id, application, category, version, method, "
            "status, notes, evidence_json, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record_id,
                record.scan_id,
                record.application,
                record.category.value,
                record.version,
                record.method.value,
                record.status.value,
                record.notes,
                json.dumps(record.to_dict()["evidence"]),
                time.time(),
            ),
        )
        await self._db.commit()
        return record_id

    async def get(self, record_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM detections WHERE id = ?", (record_id,)
        )
        row = await cursor.fetchone()
        return _decode_detection(dict(row)) if row else None

    async def list_by_scan(self, scan_id: str) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM detections WHERE scan_id = ? ORDER BY created_at, rowid",
            (scan_id,),
        )
        return [_decode_detection(dict(row)) async for row in cursor]


class RunRepo:
    """CRUD for detection run summaries."""

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def save(self, result: RunResult, hostname: str = "") -> None:
        await self._db.execute(
            "INSERT OR REPLACE INTO detection_runs "
            "(scan_id, hostname, record_count, error_count, errors_json, "
            "duration, timestamp) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                result.scan_id,
                hostname,
                len(result.records),
                len(result.errors),
                json.dumps([e.to_dict() for e in result.errors]),
                result.duration,
                result.timestamp,
            ),
        )
        await self._db.commit()

    async def get(self, scan_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT * FROM detection_runs WHERE scan_id = ?", (scan_id,)
        )
        row = await cursor.fetchone()
        if not row:
            return None

        result = dict(row)
        result["errors"] = json.loads(result.pop("errors_json") or "[]")
        result["detections"] = await DetectionRepo(self._db).list_by_scan(scan_id)
        return result

    async def list_all(self, limit: int = 50, offset: int = 0) -> list[dict]:
        cursor = await self._db.execute(
            "SELECT * FROM detection_runs ORDER BY timestamp DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )
        return [dict(row) async for row in cursor]


def _decode_detection(row: dict) -> dict:
    row["evidence"] = json.loads(row.pop("evidence_json") or "{}")
    return row
