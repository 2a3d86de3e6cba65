"""
Conversation Lifecycle Manager: the persisted Active/Paused status.

Behavioral Contract:
- Transitions happen only on explicit signals, never on inferred state
- Every transition checks access first; a failed check writes nothing
- Each transition is a single persisted write
- Saving a message always refreshes last_activity_at and reactivates a
  Paused conversation unless reactivation is suppressed
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pachai_kernel.conversation.access import AccessPolicy
from pachai_kernel.conversation.store import ConversationStore
from pachai_kernel.errors import ValidationError
from pachai_kernel.models.conversation import (
    Conversation,
    ConversationStatus,
    Message,
    MessageRole,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationLifecycleManager:

    def __init__(
        self,
        store: ConversationStore,
        access: AccessPolicy,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.access = access
        self.clock = clock or _utcnow

    def pause_conversation(self, actor_id: Optional[str], conversation_id: str) -> Conversation:
        conversation = self.access.require_conversation_access(actor_id, conversation_id)
        now = self.clock()
        updated = conversation.model_copy(update={
            "status": ConversationStatus.PAUSED,
            "paused_at": now,
            "last_activity_at": now,
        })
        self.store.save_conversation(updated)
        logger.info(f"[Lifecycle] Conversation {conversation_id} paused")
        return updated

    def resume_conversation(self, actor_id: Optional[str], conversation_id: str) -> Conversation:
        """Back to Active. paused_at and reopened_at are left as they were."""
        conversation = self.access.require_conversation_access(actor_id, conversation_id)
        updated = conversation.model_copy(update={
            "status": ConversationStatus.ACTIVE,
            "last_activity_at": self.clock(),
        })
        self.store.save_conversation(updated)
        logger.info(f"[Lifecycle] Conversation {conversation_id} resumed")
        return updated

    def mark_conversation_reopened(self, actor_id: Optional[str], conversation_id: str) -> Conversation:
        conversation = self.access.require_conversation_access(actor_id, conversation_id)
        now = self.clock()
        updated = conversation.model_copy(update={
            "status": ConversationStatus.ACTIVE,
            "reopened_at": now,
            "last_activity_at": now,
        })
        self.store.save_conversation(updated)
        logger.info(f"[Lifecycle] Conversation {conversation_id} reopened")
        return updated

    def save_message(
        self,
        actor_id: Optional[str],
        conversation_id: str,
        role: MessageRole,
        content: str,
        suppress_reactivation: bool = False,
    ) -> Message:
        """
        Persist a message together with the conversation's activity update.

        With suppress_reactivation the status is left untouched, so the
        Reopening flow can still see a Paused conversation.
        """
        if not content or not content.strip():
            raise ValidationError("Message content is required")

        conversation = self.access.require_conversation_access(actor_id, conversation_id)
        now = self.clock()
        update = {"last_activity_at": now}
        if conversation.status == ConversationStatus.PAUSED and not suppress_reactivation:
            update["status"] = ConversationStatus.ACTIVE
            logger.info(f"[Lifecycle] Conversation {conversation_id} reactivated by new message")

        updated = conversation.model_copy(update=update)
        return self.store.add_message(updated, MessageRole(role), content, created_at=now)
