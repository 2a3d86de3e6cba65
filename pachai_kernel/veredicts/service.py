"""
Veredict recording.

A veredict is written only through this explicit user-confirmation path.
The agent never synthesizes one: a detected signal merely leads the
prompt to ask whether the user wants to record it.
"""

import logging
from typing import List, Optional

from pachai_kernel.conversation.access import AccessPolicy
from pachai_kernel.conversation.store import ConversationStore
from pachai_kernel.errors import ValidationError
from pachai_kernel.models.veredict import Veredict

logger = logging.getLogger(__name__)


def _required(value: Optional[str], name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{name} is required")
    return value.strip()


def create_veredict(
    store: ConversationStore,
    access: AccessPolicy,
    actor_id: Optional[str],
    product_id: str,
    conversation_id: str,
    pain: str,
    value: str,
    notes: Optional[str] = None,
    title: Optional[str] = None,
) -> Veredict:
    """
    Record a user-confirmed veredict.

    pain and value are required. Only owners and editors may record. The
    version is the product's latest version plus one. A title, when given,
    becomes the conversation title.
    """
    pain = _required(pain, "pain")
    value = _required(value, "value")
    _required(product_id, "product_id")
    _required(conversation_id, "conversation_id")

    access.require_permission(actor_id, product_id, access.can_create_veredict)
    conversation = access.require_conversation_access(actor_id, conversation_id)
    if conversation.product_id != product_id:
        raise ValidationError(
            f"Conversation {conversation_id} does not belong to product {product_id}"
        )

    veredict = store.insert_veredict(
        product_id=product_id,
        conversation_id=conversation_id,
        pain=pain,
        value=value,
        notes=(notes or "").strip() or None,
        conversation_title=(title or "").strip() or None,
    )
    logger.info(f"[Veredict] Recorded v{veredict.version} for product {product_id}")
    return veredict


def list_veredicts(
    store: ConversationStore,
    access: AccessPolicy,
    actor_id: Optional[str],
    product_id: str,
) -> List[Veredict]:
    """All veredicts of a product, most recent first. Any role may read."""
    access.require_product_role(actor_id, product_id)
    return store.list_veredicts(product_id)


def previous_veredicts(store: ConversationStore, product_id: str, limit: int = 3) -> List[Veredict]:
    """The latest veredicts of a product, used as deliberate memory in the prompt."""
    return store.list_veredicts(product_id, limit=limit)
