"""SQLiteStore: local file-based validation history.

Schema:
  runs: one row per validation run; steps and reasons are stored as JSON
         columns since they are only ever read back together with the run.
"""

from __future__ import annotations

import json
import logging
import sqlite3

from thumbs_store.base import BaseStore
from thumbs_store.models import StepRecord, ValidationRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS runs (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    repo            TEXT NOT NULL,
    pr_number       INTEGER NOT NULL,
    head_sha        TEXT,
    base_ref        TEXT,
    validated_at    TEXT,
    eligible        INTEGER DEFAULT 0,
    merged          INTEGER DEFAULT 0,
    merge_message   TEXT DEFAULT '',
    reasons_json    TEXT DEFAULT '[]',
    steps_json      TEXT DEFAULT '[]'
);
CREATE INDEX IF NOT EXISTS idx_runs_repo ON runs (repo);
CREATE INDEX IF NOT EXISTS idx_runs_pr   ON runs (repo, pr_number);
"""


class SQLiteStore(BaseStore):
    """Stores validation runs in a local SQLite database file.

    Configure via .thumbs-bot.yml: ``store: sqlite`` and optionally
    ``store_path: /var/lib/thumbs/history.db``.
    """

    def __init__(self, db_path: str = ".thumbs.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def save(self, record: ValidationRecord) -> None:
        steps_json = json.dumps(
            [
                {
                    "name": s.name,
                    "result": s.result,
                    "message": s.message,
                    "exit_code": s.exit_code,
                    "duration_seconds": s.duration_seconds,
                }
                for s in record.steps
            ]
        )
        self._conn.execute(
            """
            INSERT INTO runs
              (repo, pr_number, head_sha, base_ref, validated_at,
               eligible, merged, merge_message, reasons_json, steps_json)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.repo,
                record.pr_number,
                record.head_sha,
                record.base_ref,
                record.validated_at,
                int(record.eligible),
                int(record.merged),
                record.merge_message,
                json.dumps(record.reasons),
                steps_json,
            ),
        )
        self._conn.commit()
        logger.debug("saved validation run for %s#%s", record.repo, record.pr_number)

    def list_runs(self, repo: str, pr_number: int | None = None) -> list[ValidationRecord]:
        if pr_number is not None:
            rows = self._conn.execute(
                "SELECT * FROM runs WHERE repo=? AND pr_number=? ORDER BY validated_at, id",
                (repo, pr_number),
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT * FROM runs WHERE repo=? ORDER BY validated_at, id",
                (repo,),
            ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ValidationRecord:
        steps = [
            StepRecord(
                name=s.get("name", ""),
                result=s.get("result", ""),
                message=s.get("message", ""),
                exit_code=s.get("exit_code"),
                duration_seconds=s.get("duration_seconds"),
            )
            for s in json.loads(row["steps_json"] or "[]")
        ]
        return ValidationRecord(
            repo=row["repo"],
            pr_number=row["pr_number"],
            head_sha=row["head_sha"] or "",
            base_ref=row["base_ref"] or "",
            validated_at=row["validated_at"] or "",
            eligible=bool(row["eligible"]),
            merged=bool(row["merged"]),
            merge_message=row["merge_message"] or "",
            reasons=json.loads(row["reasons_json"] or "[]"),
            steps=steps,
        )
