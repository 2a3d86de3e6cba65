"""
Product context: the consolidated cognitive context of a product.

Behavioral Contract:
- Any role may read; only owners and editors may write
- Every write carries a non-empty change reason and is logged
- Validation happens before any mutation
- Creation fails if a context exists; update fails if none exists
- Consolidation is only ever suggested, never performed automatically
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pachai_kernel.conversation.access import AccessPolicy
from pachai_kernel.conversation.store import ConversationStore
from pachai_kernel.errors import NotFound, ValidationError
from pachai_kernel.models.config import PachaiConfig
from pachai_kernel.models.conversation import MessageRole
from pachai_kernel.models.product import ProductContext

logger = logging.getLogger(__name__)

EARLY_CONVERSATIONS = 3
MIN_USER_MESSAGES = 2
LONG_MESSAGE_CHARS = 200
MIN_TOTAL_CHARS = 300


def validate_context_update(
    content_text: Optional[str],
    change_reason: Optional[str],
    config: Optional[PachaiConfig] = None,
) -> None:
    """Raise ValidationError unless both fields are present and within limits."""
    config = config or PachaiConfig()

    if not content_text or not content_text.strip():
        raise ValidationError("content_text is required")
    if len(content_text) > config.max_context_chars:
        raise ValidationError(
            f"content_text exceeds {config.max_context_chars} characters"
        )

    if not change_reason or not change_reason.strip():
        raise ValidationError("change_reason is required")
    if len(change_reason) > config.max_change_reason_chars:
        raise ValidationError(
            f"change_reason exceeds {config.max_change_reason_chars} characters"
        )


def get_product_context(
    store: ConversationStore,
    access: AccessPolicy,
    actor_id: Optional[str],
    product_id: str,
) -> Optional[ProductContext]:
    access.require_permission(actor_id, product_id, access.can_view_context)
    return store.get_product_context(product_id)


def has_product_context(store: ConversationStore, product_id: str) -> bool:
    return store.get_product_context(product_id) is not None


def create_product_context(
    store: ConversationStore,
    access: AccessPolicy,
    actor_id: Optional[str],
    product_id: str,
    content_text: str,
    change_reason: str,
    config: Optional[PachaiConfig] = None,
) -> ProductContext:
    validate_context_update(content_text, change_reason, config)
    access.require_permission(actor_id, product_id, access.can_edit_context)

    if has_product_context(store, product_id):
        raise ValidationError(
            f"Product {product_id} already has a context; update it instead"
        )

    context = ProductContext(
        id=f"ctx_{uuid4().hex[:12]}",
        product_id=product_id,
        content_text=content_text.strip(),
        change_reason=change_reason.strip(),
        updated_by=actor_id,
        updated_at=datetime.now(timezone.utc),
    )
    store.insert_product_context(context)
    logger.info(
        f"[CONTEXT_AUDIT] created product={product_id} by={actor_id} "
        f"reason={context.change_reason!r}"
    )
    return context


def update_product_context(
    store: ConversationStore,
    access: AccessPolicy,
    actor_id: Optional[str],
    product_id: str,
    content_text: str,
    change_reason: str,
    config: Optional[PachaiConfig] = None,
) -> ProductContext:
    validate_context_update(content_text, change_reason, config)
    access.require_permission(actor_id, product_id, access.can_edit_context)

    existing = store.get_product_context(product_id)
    if existing is None:
        raise NotFound(f"Product {product_id} has no context yet; create it first")

    context = existing.model_copy(update={
        "content_text": content_text.strip(),
        "change_reason": change_reason.strip(),
        "updated_by": actor_id,
        "updated_at": datetime.now(timezone.utc),
    })
    store.update_product_context(context)
    logger.info(
        f"[CONTEXT_AUDIT] updated product={product_id} by={actor_id} "
        f"reason={context.change_reason!r}"
    )
    return context


def should_suggest_context_consolidation(
    store: ConversationStore,
    product_id: str,
    conversation_id: str,
) -> bool:
    """
    True when the product has no context yet, the conversation is one of
    the product's first three, and the user has said enough: at least two
    messages, one long message, or enough text overall.
    """
    if has_product_context(store, product_id):
        return False

    early_ids = [c.id for c in store.list_conversations(product_id)[:EARLY_CONVERSATIONS]]
    if conversation_id not in early_ids:
        return False

    user_messages = [
        m.content for m in store.list_messages(conversation_id)
        if m.role == MessageRole.USER
    ]
    if not user_messages:
        return False

    return (
        len(user_messages) >= MIN_USER_MESSAGES
        or any(len(m) > LONG_MESSAGE_CHARS for m in user_messages)
        or sum(len(m) for m in user_messages) > MIN_TOTAL_CHARS
    )
