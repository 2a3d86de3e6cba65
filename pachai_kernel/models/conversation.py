"""Conversation: messages, thematic state tendency and lifecycle status."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    USER = "user"
    AGENT = "agent"


class Message(BaseModel):
    """A single turn in a conversation history (oldest first)."""

    role: MessageRole
    content: str
    created_at: Optional[datetime] = None


class ConversationState(str, Enum):
    """Inferred cognitive phase of the dialogue. Never persisted."""

    EXPLORATION = "exploration"
    CLARIFICATION = "clarification"
    CONVERGENCE = "convergence"
    PAUSE = "pause"
    REOPENING = "reopening"       # Lifecycle-driven only, never inferred


class StateTendency(BaseModel):
    """A non-committed classification: primary state plus confidence."""

    primary: ConversationState
    confidence: float = Field(ge=0.0, le=1.0)
    secondary: Optional[ConversationState] = None


class ConversationStatus(str, Enum):
    """Persisted lifecycle status, mutated only by explicit user signals."""

    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"


class Conversation(BaseModel):
    id: str
    product_id: str
    title: Optional[str] = None
    status: ConversationStatus = ConversationStatus.ACTIVE
    last_activity_at: datetime
    paused_at: Optional[datetime] = None
    reopened_at: Optional[datetime] = None
    created_at: datetime
