"""
Rule Store: persisted Foundational Veredicts.

The engine reads this store only through load_active(). Authoring
(upsert, seed_defaults) is a configuration concern, never invoked from
the per-turn pipeline.
"""

import sqlite3
from typing import List, Optional

from pachai_kernel.governance.defaults import DEFAULT_FOUNDATIONAL_VEREDICTS
from pachai_kernel.models.governance import EnforcementScope, FoundationalVeredict


class RuleStore:
    """
    SQLite-backed Foundational Veredict configuration.
    Prototype: SQLite. Production: any read-only configuration source.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS global_veredicts (
                id TEXT PRIMARY KEY,
                code TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                rule_text TEXT NOT NULL,
                enforcement_scope TEXT NOT NULL,
                priority INTEGER NOT NULL DEFAULT 100,
                is_active INTEGER NOT NULL DEFAULT 1,
                version INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
        """)
        self._conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_global_veredicts_scope
            ON global_veredicts(enforcement_scope, priority)
        """)
        self._conn.commit()

    def _deserialize(self, row: sqlite3.Row) -> FoundationalVeredict:
        return FoundationalVeredict(
            id=row["id"],
            code=row["code"],
            title=row["title"],
            rule_text=row["rule_text"],
            enforcement_scope=EnforcementScope(row["enforcement_scope"]),
            priority=row["priority"],
            is_active=bool(row["is_active"]),
            version=row["version"],
        )

    def load_active(self) -> List[FoundationalVeredict]:
        """Active rules ordered by scope, then priority."""
        rows = self._conn.execute(
            "SELECT * FROM global_veredicts WHERE is_active = 1 "
            "ORDER BY enforcement_scope, priority, rowid"
        ).fetchall()
        return [self._deserialize(r) for r in rows]

    def get_by_code(self, code: str) -> Optional[FoundationalVeredict]:
        row = self._conn.execute(
            "SELECT * FROM global_veredicts WHERE code = ?", (code,)
        ).fetchone()
        return self._deserialize(row) if row else None

    def upsert(self, veredict: FoundationalVeredict) -> FoundationalVeredict:
        """Insert or replace a rule, keyed by its code."""
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO global_veredicts (
                    id, code, title, rule_text, enforcement_scope,
                    priority, is_active, version
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(code) DO UPDATE SET
                    title = excluded.title,
                    rule_text = excluded.rule_text,
                    enforcement_scope = excluded.enforcement_scope,
                    priority = excluded.priority,
                    is_active = excluded.is_active,
                    version = excluded.version
                """,
                (
                    veredict.id,
                    veredict.code,
                    veredict.title,
                    veredict.rule_text,
                    veredict.enforcement_scope.value,
                    veredict.priority,
                    int(veredict.is_active),
                    veredict.version,
                ),
            )
        return veredict

    def seed_defaults(self) -> int:
        """Insert the default rules that are not present yet. Returns the number added."""
        added = 0
        for veredict in DEFAULT_FOUNDATIONAL_VEREDICTS:
            if self.get_by_code(veredict.code) is None:
                self.upsert(veredict)
                added += 1
        return added

    def count(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) as cnt FROM global_veredicts").fetchone()
        return row["cnt"]

    def close(self) -> None:
        self._conn.close()
