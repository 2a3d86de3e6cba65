"""
Conversation Store: products, members, conversations, messages,
veredicts and product contexts.

Behavioral Contract:
- Every lifecycle transition is one committed write
- A message insert and its conversation status update commit together
- Veredict versions are allocated and inserted inside one exclusive
  transaction, so versions stay strictly increasing per product
- Messages are returned oldest first; veredicts most recent first
"""

import sqlite3
import threading
from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pachai_kernel.models.conversation import (
    Conversation,
    ConversationStatus,
    Message,
    MessageRole,
)
from pachai_kernel.models.product import Product, ProductContext, ProductRole
from pachai_kernel.models.veredict import Veredict


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class ConversationStore:
    """
    Reference persistence adapter.
    Prototype: SQLite. Production: any relational store with the same guarantees.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS products (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                owner_id TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            CREATE TABLE IF NOT EXISTS product_members (
                product_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                role TEXT NOT NULL,
                PRIMARY KEY (product_id, user_id)
            );
            CREATE TABLE IF NOT EXISTS conversations (
                id TEXT PRIMARY KEY,
                product_id TEXT NOT NULL,
                title TEXT,
                status TEXT NOT NULL DEFAULT 'ACTIVE',
                last_activity_at TEXT NOT NULL,
                paused_at TEXT,
                reopened_at TEXT,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_conversations_product
                ON conversations(product_id);
            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                conversation_id TEXT NOT NULL,
                role TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_messages_conversation
                ON messages(conversation_id);
            CREATE TABLE IF NOT EXISTS veredicts (
                id TEXT PRIMARY KEY,
                product_id TEXT NOT NULL,
                conversation_id TEXT NOT NULL,
                pain TEXT NOT NULL,
                value TEXT NOT NULL,
                notes TEXT,
                version INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                UNIQUE (product_id, version)
            );
            CREATE TABLE IF NOT EXISTS product_contexts (
                id TEXT PRIMARY KEY,
                product_id TEXT NOT NULL UNIQUE,
                content_text TEXT NOT NULL,
                change_reason TEXT NOT NULL,
                updated_by TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
        """)
        self._conn.commit()

    # --- Products ---

    def create_product(self, name: str, owner_id: str) -> Product:
        """Create a product and register its owner as a member."""
        product = Product(
            id=f"prd_{uuid4().hex[:12]}",
            name=name,
            owner_id=owner_id,
            created_at=_now(),
        )
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO products (id, name, owner_id, created_at) VALUES (?, ?, ?, ?)",
                (product.id, product.name, product.owner_id, _iso(product.created_at)),
            )
            self._conn.execute(
                "INSERT INTO product_members (product_id, user_id, role) VALUES (?, ?, ?)",
                (product.id, owner_id, ProductRole.OWNER.value),
            )
        return product

    def get_product(self, product_id: str) -> Optional[Product]:
        row = self._conn.execute(
            "SELECT * FROM products WHERE id = ?", (product_id,)
        ).fetchone()
        if not row:
            return None
        return Product(
            id=row["id"],
            name=row["name"],
            owner_id=row["owner_id"],
            created_at=_parse(row["created_at"]),
        )

    def list_products_for_user(self, user_id: str) -> List[Product]:
        rows = self._conn.execute(
            "SELECT p.id FROM products p "
            "JOIN product_members m ON m.product_id = p.id "
            "WHERE m.user_id = ? ORDER BY p.created_at",
            (user_id,),
        ).fetchall()
        return [self.get_product(r["id"]) for r in rows]

    def add_member(self, product_id: str, user_id: str, role: ProductRole) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO product_members (product_id, user_id, role) VALUES (?, ?, ?) "
                "ON CONFLICT(product_id, user_id) DO UPDATE SET role = excluded.role",
                (product_id, user_id, ProductRole(role).value),
            )

    def get_member_role(self, product_id: str, user_id: str) -> Optional[ProductRole]:
        row = self._conn.execute(
            "SELECT role FROM product_members WHERE product_id = ? AND user_id = ?",
            (product_id, user_id),
        ).fetchone()
        return ProductRole(row["role"]) if row else None

    # --- Conversations ---

    def _deserialize_conversation(self, row: sqlite3.Row) -> Conversation:
        return Conversation(
            id=row["id"],
            product_id=row["product_id"],
            title=row["title"],
            status=ConversationStatus(row["status"]),
            last_activity_at=_parse(row["last_activity_at"]),
            paused_at=_parse(row["paused_at"]),
            reopened_at=_parse(row["reopened_at"]),
            created_at=_parse(row["created_at"]),
        )

    def create_conversation(self, product_id: str, title: Optional[str] = None) -> Conversation:
        now = _now()
        conversation = Conversation(
            id=f"cnv_{uuid4().hex[:12]}",
            product_id=product_id,
            title=title,
            last_activity_at=now,
            created_at=now,
        )
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO conversations (id, product_id, title, status, "
                "last_activity_at, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    conversation.id,
                    conversation.product_id,
                    conversation.title,
                    conversation.status.value,
                    _iso(conversation.last_activity_at),
                    _iso(conversation.created_at),
                ),
            )
        return conversation

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        row = self._conn.execute(
            "SELECT * FROM conversations WHERE id = ?", (conversation_id,)
        ).fetchone()
        return self._deserialize_conversation(row) if row else None

    def list_conversations(self, product_id: str) -> List[Conversation]:
        """Conversations of a product in creation order."""
        rows = self._conn.execute(
            "SELECT * FROM conversations WHERE product_id = ? ORDER BY created_at, rowid",
            (product_id,),
        ).fetchall()
        return [self._deserialize_conversation(r) for r in rows]

    def _write_conversation(self, conversation: Conversation) -> None:
        self._conn.execute(
            "UPDATE conversations SET title = ?, status = ?, last_activity_at = ?, "
            "paused_at = ?, reopened_at = ? WHERE id = ?",
            (
                conversation.title,
                conversation.status.value,
                _iso(conversation.last_activity_at),
                _iso(conversation.paused_at),
                _iso(conversation.reopened_at),
                conversation.id,
            ),
        )

    def save_conversation(self, conversation: Conversation) -> Conversation:
        """Persist the lifecycle fields of a conversation in one write."""
        with self._lock, self._conn:
            self._write_conversation(conversation)
        return conversation

    # --- Messages ---

    def add_message(
        self,
        conversation: Conversation,
        role: MessageRole,
        content: str,
        created_at: Optional[datetime] = None,
    ) -> Message:
        """Insert a message and persist the conversation's updated fields atomically."""
        message = Message(role=role, content=content, created_at=created_at or _now())
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO messages (id, conversation_id, role, content, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    f"msg_{uuid4().hex[:12]}",
                    conversation.id,
                    message.role.value,
                    message.content,
                    _iso(message.created_at),
                ),
            )
            self._write_conversation(conversation)
        return message

    def list_messages(self, conversation_id: str, limit: Optional[int] = None) -> List[Message]:
        """Messages oldest first; with a limit, the most recent `limit` of them."""
        if limit is not None:
            rows = self._conn.execute(
                "SELECT role, content, created_at FROM messages WHERE conversation_id = ? "
                "ORDER BY rowid DESC LIMIT ?",
                (conversation_id, limit),
            ).fetchall()
            rows = list(reversed(rows))
        else:
            rows = self._conn.execute(
                "SELECT role, content, created_at FROM messages WHERE conversation_id = ? "
                "ORDER BY rowid",
                (conversation_id,),
            ).fetchall()
        return [
            Message(
                role=MessageRole(r["role"]),
                content=r["content"],
                created_at=_parse(r["created_at"]),
            )
            for r in rows
        ]

    # --- Veredicts ---

    def _deserialize_veredict(self, row: sqlite3.Row) -> Veredict:
        return Veredict(
            id=row["id"],
            product_id=row["product_id"],
            conversation_id=row["conversation_id"],
            pain=row["pain"],
            value=row["value"],
            notes=row["notes"],
            version=row["version"],
            created_at=_parse(row["created_at"]),
        )

    def insert_veredict(
        self,
        product_id: str,
        conversation_id: str,
        pain: str,
        value: str,
        notes: Optional[str] = None,
        conversation_title: Optional[str] = None,
    ) -> Veredict:
        """
        Allocate the next per-product version and insert the veredict.

        The latest-version read and the insert share one BEGIN IMMEDIATE
        transaction. The optional conversation title is written in it too.
        """
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
                row = self._conn.execute(
                    "SELECT MAX(version) AS latest FROM veredicts WHERE product_id = ?",
                    (product_id,),
                ).fetchone()
                version = (row["latest"] or 0) + 1
                veredict = Veredict(
                    id=f"ver_{uuid4().hex[:12]}",
                    product_id=product_id,
                    conversation_id=conversation_id,
                    pain=pain,
                    value=value,
                    notes=notes,
                    version=version,
                    created_at=_now(),
                )
                self._conn.execute(
                    "INSERT INTO veredicts (id, product_id, conversation_id, pain, value, "
                    "notes, version, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        veredict.id,
                        veredict.product_id,
                        veredict.conversation_id,
                        veredict.pain,
                        veredict.value,
                        veredict.notes,
                        veredict.version,
                        _iso(veredict.created_at),
                    ),
                )
                if conversation_title:
                    self._conn.execute(
                        "UPDATE conversations SET title = ? WHERE id = ?",
                        (conversation_title, conversation_id),
                    )
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise
        return veredict

    def list_veredicts(self, product_id: str, limit: Optional[int] = None) -> List[Veredict]:
        """Veredicts of a product, most recent version first."""
        query = "SELECT * FROM veredicts WHERE product_id = ? ORDER BY version DESC"
        params: tuple = (product_id,)
        if limit is not None:
            query += " LIMIT ?"
            params = (product_id, limit)
        rows = self._conn.execute(query, params).fetchall()
        return [self._deserialize_veredict(r) for r in rows]

    # --- Product contexts ---

    def _deserialize_context(self, row: sqlite3.Row) -> ProductContext:
        return ProductContext(
            id=row["id"],
            product_id=row["product_id"],
            content_text=row["content_text"],
            change_reason=row["change_reason"],
            updated_by=row["updated_by"],
            updated_at=_parse(row["updated_at"]),
        )

    def get_product_context(self, product_id: str) -> Optional[ProductContext]:
        row = self._conn.execute(
            "SELECT * FROM product_contexts WHERE product_id = ?", (product_id,)
        ).fetchone()
        return self._deserialize_context(row) if row else None

    def insert_product_context(self, context: ProductContext) -> ProductContext:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO product_contexts (id, product_id, content_text, "
                "change_reason, updated_by, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    context.id,
                    context.product_id,
                    context.content_text,
                    context.change_reason,
                    context.updated_by,
                    _iso(context.updated_at),
                ),
            )
        return context

    def update_product_context(self, context: ProductContext) -> ProductContext:
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE product_contexts SET content_text = ?, change_reason = ?, "
                "updated_by = ?, updated_at = ? WHERE product_id = ?",
                (
                    context.content_text,
                    context.change_reason,
                    context.updated_by,
                    _iso(context.updated_at),
                    context.product_id,
                ),
            )
        return context

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
