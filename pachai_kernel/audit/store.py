"""
Veredict Audit Store: append-only record of governance violations.

Behavioral Contract:
- Append-only. No entry is ever modified or deleted.
- One entry per violation, blocking or advisory.
- Queryable by conversation and by recency.
"""

import json
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pachai_kernel.models.governance import AuditEntry, EnforcementScope, VeredictViolation


class AuditStore:
    """
    Append-only violation audit trail.
    Prototype: SQLite. Production: PostgreSQL.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the audit table if it doesn't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS veredict_audit (
                id TEXT PRIMARY KEY,
                veredict_code TEXT NOT NULL,
                phase TEXT NOT NULL,
                conversation_id TEXT,
                was_blocked INTEGER NOT NULL DEFAULT 0,
                reason TEXT NOT NULL DEFAULT '',
                details_json TEXT NOT NULL DEFAULT '{}',
                created_at TEXT NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_veredict_audit_conversation
            ON veredict_audit(conversation_id)
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_veredict_audit_code
            ON veredict_audit(veredict_code)
        """)
        self._conn.commit()

    def append(
        self,
        violations: List[VeredictViolation],
        phase: EnforcementScope,
        conversation_id: Optional[str] = None,
    ) -> List[AuditEntry]:
        """Append one entry per violation, in a single transaction."""
        entries = [
            AuditEntry(
                id=f"aud_{uuid4().hex[:12]}",
                veredict_code=v.veredict_code,
                phase=phase,
                conversation_id=conversation_id,
                was_blocked=v.was_blocked,
                reason=v.reason,
                details=v.details,
                created_at=datetime.now(timezone.utc),
            )
            for v in violations
        ]
        if not entries:
            return []

        with self._conn:
            self._conn.executemany(
                """
                INSERT INTO veredict_audit (
                    id, veredict_code, phase, conversation_id,
                    was_blocked, reason, details_json, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        e.id,
                        e.veredict_code,
                        e.phase.value,
                        e.conversation_id,
                        int(e.was_blocked),
                        e.reason,
                        json.dumps(e.details, default=str),
                        e.created_at.isoformat(),
                    )
                    for e in entries
                ],
            )
        return entries

    def _deserialize(self, row: sqlite3.Row) -> AuditEntry:
        return AuditEntry(
            id=row["id"],
            veredict_code=row["veredict_code"],
            phase=EnforcementScope(row["phase"]),
            conversation_id=row["conversation_id"],
            was_blocked=bool(row["was_blocked"]),
            reason=row["reason"],
            details=json.loads(row["details_json"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def query_by_conversation(self, conversation_id: str) -> List[AuditEntry]:
        """All violations recorded for a conversation, oldest first."""
        rows = self._conn.execute(
            "SELECT * FROM veredict_audit WHERE conversation_id = ? ORDER BY rowid",
            (conversation_id,),
        ).fetchall()
        return [self._deserialize(r) for r in rows]

    def query_by_code(self, veredict_code: str) -> List[AuditEntry]:
        rows = self._conn.execute(
            "SELECT * FROM veredict_audit WHERE veredict_code = ? ORDER BY rowid",
            (veredict_code,),
        ).fetchall()
        return [self._deserialize(r) for r in rows]

    def query_recent(self, limit: int = 50) -> List[AuditEntry]:
        """Get the most recent audit entries, oldest first."""
        rows = self._conn.execute(
            "SELECT * FROM veredict_audit ORDER BY rowid DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._deserialize(r) for r in reversed(rows)]

    def count(self) -> int:
        """Total number of audit entries."""
        row = self._conn.execute("SELECT COUNT(*) as cnt FROM veredict_audit").fetchone()
        return row["cnt"]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
