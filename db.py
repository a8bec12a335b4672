# SPDX-License-Identifier: Apache-2.0
# This file was created or modified with the assistance of an AI (Large Language Model).
"""SQLite persistence for POP documents: saved revisions, editor drafts, OTDR traces.

Documents are stored whole, as the JSON the editor exchanges; nothing here
looks inside them beyond the POP id and name.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from hashlib import sha256
from pathlib import Path
from typing import Any, Iterator

SCHEMA = """
CREATE TABLE IF NOT EXISTS pop (
  pop_id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS revision (
  revision_id TEXT PRIMARY KEY,
  pop_id TEXT NOT NULL,
  created_at TEXT NOT NULL,
  note TEXT,
  document_hash TEXT NOT NULL,
  document_json TEXT NOT NULL,
  FOREIGN KEY(pop_id) REFERENCES pop(pop_id)
);
CREATE TABLE IF NOT EXISTS draft (
  draft_id TEXT PRIMARY KEY,
  pop_id TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  document_json TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS otdr_trace (
  trace_id INTEGER PRIMARY KEY AUTOINCREMENT,
  draft_id TEXT NOT NULL,
  port_id TEXT NOT NULL,
  distance_m REAL NOT NULL,
  created_at TEXT NOT NULL,
  FOREIGN KEY(draft_id) REFERENCES draft(draft_id)
);
CREATE INDEX IF NOT EXISTS idx_revision_pop ON revision(pop_id);
CREATE INDEX IF NOT EXISTS idx_otdr_draft ON otdr_trace(draft_id);
"""


def document_hash(document: dict[str, Any]) -> str:
    return sha256(json.dumps(document, sort_keys=True).encode("utf-8")).hexdigest()


class Database:
    def __init__(self, path: str = "fiberroom.db"):
        self.path = path

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        with self.connect() as conn:
            conn.executescript(SCHEMA)

    def save_revision(
        self, pop_id: str, name: str, note: str | None, document: dict[str, Any]
    ) -> str:
        now = datetime.now(timezone.utc).isoformat()
        digest = document_hash(document)
        revision_id = f"rev_{sha256((pop_id + now + digest).encode('utf-8')).hexdigest()[:16]}"
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO pop(pop_id,name,created_at,updated_at) VALUES(?,?,?,?) ON CONFLICT(pop_id) DO UPDATE SET updated_at=excluded.updated_at,name=excluded.name",
                (pop_id, name, now, now),
            )
            conn.execute(
                "INSERT INTO revision(revision_id,pop_id,created_at,note,document_hash,document_json) VALUES(?,?,?,?,?,?)",
                (revision_id, pop_id, now, note or "", digest, json.dumps(document, default=str)),
            )
        return revision_id

    def list_pops(self) -> list[sqlite3.Row]:
        with self.connect() as conn:
            return conn.execute("SELECT * FROM pop ORDER BY updated_at DESC").fetchall()

    def list_revisions(self, pop_id: str) -> list[sqlite3.Row]:
        with self.connect() as conn:
            return conn.execute(
                "SELECT * FROM revision WHERE pop_id=? ORDER BY created_at DESC", (pop_id,)
            ).fetchall()

    def get_revision(self, revision_id: str) -> sqlite3.Row | None:
        with self.connect() as conn:
            return conn.execute(
                "SELECT * FROM revision WHERE revision_id=?", (revision_id,)
            ).fetchone()

    def save_draft(self, draft_id: str, pop_id: str, document: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO draft(draft_id,pop_id,created_at,updated_at,document_json) VALUES(?,?,?,?,?) ON CONFLICT(draft_id) DO UPDATE SET updated_at=excluded.updated_at,document_json=excluded.document_json",
                (draft_id, pop_id, now, now, json.dumps(document, default=str)),
            )

    def get_draft(self, draft_id: str) -> sqlite3.Row | None:
        with self.connect() as conn:
            return conn.execute("SELECT * FROM draft WHERE draft_id=?", (draft_id,)).fetchone()

    def delete_draft(self, draft_id: str) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM otdr_trace WHERE draft_id=?", (draft_id,))
            conn.execute("DELETE FROM draft WHERE draft_id=?", (draft_id,))

    def record_otdr(self, draft_id: str, port_id: str, distance_m: float) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO otdr_trace(draft_id,port_id,distance_m,created_at) VALUES(?,?,?,?)",
                (draft_id, port_id, distance_m, now),
            )

    def list_otdr(self, draft_id: str) -> list[sqlite3.Row]:
        with self.connect() as conn:
            return conn.execute(
                "SELECT * FROM otdr_trace WHERE draft_id=? ORDER BY trace_id", (draft_id,)
            ).fetchall()
