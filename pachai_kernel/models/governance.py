"""Foundational Veredicts: governance rules, inputs, violations and results."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from pachai_kernel.models.conversation import ConversationState, Message
from pachai_kernel.models.search import SearchContext


class EnforcementScope(str, Enum):
    """The four fixed checkpoints of the per-turn pipeline."""

    PRE_STATE = "pre_state"
    PRE_PROMPT = "pre_prompt"
    PRE_CONTEXT = "pre_context"
    POST_RESPONSE = "post_response"


class FoundationalVeredict(BaseModel):
    """
    An authored, versioned policy rule.

    Treated as configuration data: the engine loads these read-only and
    never creates or edits them.
    """

    id: str
    code: str                               # Stable identifier, e.g. "REACTIVE_BEHAVIOR"
    title: str
    rule_text: str                          # Injected verbatim into prompts
    enforcement_scope: EnforcementScope
    priority: int = 100                     # Lower evaluates first within a scope
    is_active: bool = True
    version: int = Field(ge=1, default=1)


class GovernanceInput(BaseModel):
    """Per-call context bag. Reconstructed fresh on every pipeline run."""

    conversation_id: Optional[str] = None
    user_message: Optional[str] = None
    messages: List[Message] = []
    state: Optional[ConversationState] = None
    prompt: Optional[str] = None
    search_context: Optional[SearchContext] = None
    product_context: Optional[str] = None
    response: Optional[str] = None


class VeredictViolation(BaseModel):
    veredict_code: str
    phase: EnforcementScope
    was_blocked: bool                       # False = advisory, logged only
    reason: str
    details: dict = {}


class GovernanceResult(BaseModel):
    """Outcome of evaluating one checkpoint."""

    allowed: bool
    violations: List[VeredictViolation] = []
    modified_input: Optional[GovernanceInput] = None    # Only set when blocked
    injected_prompt_section: Optional[str] = None       # Only set at pre_prompt

    def effective_input(self, original: GovernanceInput) -> GovernanceInput:
        """The input the pipeline must continue with."""
        return self.modified_input if self.modified_input is not None else original


class AuditEntry(BaseModel):
    """One append-only row of the violation audit trail."""

    id: str
    veredict_code: str
    phase: EnforcementScope
    conversation_id: Optional[str] = None
    was_blocked: bool
    reason: str = ""
    details: dict = {}
    created_at: datetime
