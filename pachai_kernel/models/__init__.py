"""Pachai Kernel data models."""

from pachai_kernel.models.config import PachaiConfig
from pachai_kernel.models.conversation import (
    Conversation,
    ConversationState,
    ConversationStatus,
    Message,
    MessageRole,
    StateTendency,
)
from pachai_kernel.models.governance import (
    AuditEntry,
    EnforcementScope,
    FoundationalVeredict,
    GovernanceInput,
    GovernanceResult,
    VeredictViolation,
)
from pachai_kernel.models.product import Product, ProductContext, ProductRole
from pachai_kernel.models.search import SearchContext, SearchIntent, SearchResult
from pachai_kernel.models.veredict import Veredict, VeredictSignal

__all__ = [
    "AuditEntry",
    "Conversation",
    "ConversationState",
    "ConversationStatus",
    "EnforcementScope",
    "FoundationalVeredict",
    "GovernanceInput",
    "GovernanceResult",
    "Message",
    "MessageRole",
    "PachaiConfig",
    "Product",
    "ProductContext",
    "ProductRole",
    "SearchContext",
    "SearchIntent",
    "SearchResult",
    "StateTendency",
    "Veredict",
    "VeredictSignal",
    "VeredictViolation",
]
