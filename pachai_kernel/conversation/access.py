"""
Access policy: resolves an actor's role over a product.

Any role grants access to a product's conversations. Writing veredicts and
product context requires owner or editor.
"""

from typing import Callable, Iterable, Optional

from pachai_kernel.conversation.store import ConversationStore
from pachai_kernel.errors import Forbidden, NotFound, Unauthorized
from pachai_kernel.models.conversation import Conversation
from pachai_kernel.models.product import Product, ProductRole

WRITER_ROLES = (ProductRole.OWNER, ProductRole.EDITOR)


class AccessPolicy:

    def __init__(self, store: ConversationStore):
        self.store = store

    def get_user_product_role(self, product_id: str, user_id: str) -> Optional[ProductRole]:
        """Membership role, falling back to product ownership. None means no access."""
        role = self.store.get_member_role(product_id, user_id)
        if role is not None:
            return role

        product = self.store.get_product(product_id)
        if product is not None and product.owner_id == user_id:
            return ProductRole.OWNER
        return None

    def require_actor(self, actor_id: Optional[str]) -> str:
        if not actor_id:
            raise Unauthorized("No authenticated actor")
        return actor_id

    def require_product_role(
        self,
        actor_id: Optional[str],
        product_id: str,
        allowed: Optional[Iterable[ProductRole]] = None,
    ) -> Product:
        """Resolve the product, checking the actor holds one of `allowed` roles (any role if None)."""
        actor_id = self.require_actor(actor_id)
        product = self.store.get_product(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")

        role = self.get_user_product_role(product_id, actor_id)
        if role is None:
            raise Forbidden(f"Actor has no access to product {product_id}")
        if allowed is not None and role not in tuple(allowed):
            raise Forbidden(f"Role {role.value} cannot perform this action on product {product_id}")
        return product

    def require_permission(
        self,
        actor_id: Optional[str],
        product_id: str,
        permitted: Callable[[str, str], bool],
    ) -> Product:
        """Resolve the product, checking `permitted(product_id, actor_id)`, e.g. can_edit_context."""
        actor_id = self.require_actor(actor_id)
        product = self.store.get_product(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        if not permitted(product_id, actor_id):
            raise Forbidden(f"Actor cannot perform this action on product {product_id}")
        return product

    def require_conversation_access(
        self,
        actor_id: Optional[str],
        conversation_id: str,
    ) -> Conversation:
        """Unauthorized without an actor, NotFound without a conversation, Forbidden without a role."""
        actor_id = self.require_actor(actor_id)
        conversation = self.store.get_conversation(conversation_id)
        if conversation is None:
            raise NotFound(f"Conversation {conversation_id} not found")

        if self.get_user_product_role(conversation.product_id, actor_id) is None:
            raise Forbidden(f"Actor has no access to conversation {conversation_id}")
        return conversation

    def can_edit_context(self, product_id: str, user_id: str) -> bool:
        return self.get_user_product_role(product_id, user_id) in WRITER_ROLES

    def can_view_context(self, product_id: str, user_id: str) -> bool:
        return self.get_user_product_role(product_id, user_id) is not None

    def can_create_veredict(self, product_id: str, user_id: str) -> bool:
        return self.get_user_product_role(product_id, user_id) in WRITER_ROLES
