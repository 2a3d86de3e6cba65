"""
Pachai Runtime: one user turn, end to end.

Pipeline:
  detectors → governance pre_state → state inference → confirmed search →
  governance pre_context → prompt composition → governance pre_prompt →
  context assembly → model call → governance post_response → lifecycle

Behavioral Contract:
- Access is checked before anything else runs
- Nothing is persisted unless the model call succeeds
- Governance blocks remediate and continue; a turn aborts only when the
  remediated prompt is empty (GovernanceBlocked) or the model fails
  (UpstreamFailure)
- A Paused conversation is answered in Reopening mode, its messages are
  saved without reactivation, and it is marked reopened afterwards
"""

import logging
from typing import List, Optional

from pydantic import BaseModel

from pachai_kernel.context.product_context import should_suggest_context_consolidation
from pachai_kernel.conversation.access import AccessPolicy
from pachai_kernel.conversation.store import ConversationStore
from pachai_kernel.detection.search import (
    detect_explicit_search_intent,
    should_suggest_search,
    suggested_search_query,
)
from pachai_kernel.detection.signals import (
    detect_veredict_from_history,
    should_pause_conversation,
)
from pachai_kernel.errors import GovernanceBlocked, ValidationError
from pachai_kernel.governance.engine import FoundationalGovernanceEngine
from pachai_kernel.lifecycle.manager import ConversationLifecycleManager
from pachai_kernel.llm.client import CompletionClient
from pachai_kernel.models.config import PachaiConfig
from pachai_kernel.models.conversation import (
    ConversationState,
    ConversationStatus,
    Message,
    MessageRole,
    StateTendency,
)
from pachai_kernel.models.governance import (
    EnforcementScope,
    GovernanceInput,
    VeredictViolation,
)
from pachai_kernel.models.search import SearchContext
from pachai_kernel.models.veredict import VeredictSignal
from pachai_kernel.prompts.composer import (
    PromptRequest,
    build_context_section,
    compose_prompt,
)
from pachai_kernel.search.execution import SearchProvider, run_confirmed_search
from pachai_kernel.state.inference import infer_state
from pachai_kernel.state.summary import get_conversation_summary
from pachai_kernel.veredicts.service import previous_veredicts

logger = logging.getLogger(__name__)


class TurnResult(BaseModel):
    response: str
    tendency: StateTendency
    mode: ConversationState
    conversation_status: ConversationStatus
    violations: List[VeredictViolation] = []
    suggest_search: Optional[str] = None                # Query to offer, never executed
    search_results: Optional[SearchContext] = None
    veredict_signal: VeredictSignal


class PachaiRuntime:
    """Runs the per-turn pipeline over injected stores, governance and model client."""

    def __init__(
        self,
        store: ConversationStore,
        access: AccessPolicy,
        lifecycle: ConversationLifecycleManager,
        governance: FoundationalGovernanceEngine,
        completion_client: CompletionClient,
        search_provider: Optional[SearchProvider] = None,
        config: Optional[PachaiConfig] = None,
    ):
        self.store = store
        self.access = access
        self.lifecycle = lifecycle
        self.governance = governance
        self.completion_client = completion_client
        self.search_provider = search_provider
        self.config = config or PachaiConfig()

    def run_turn(
        self,
        actor_id: Optional[str],
        conversation_id: str,
        user_message: str,
        pause_requested: Optional[bool] = None,
        confirmed_search_query: Optional[str] = None,
        search_context: Optional[SearchContext] = None,
    ) -> TurnResult:
        if not user_message or not user_message.strip():
            raise ValidationError("user_message is required")

        conversation = self.access.require_conversation_access(actor_id, conversation_id)
        product_id = conversation.product_id
        is_paused = conversation.status == ConversationStatus.PAUSED
        config = self.config

        history = self.store.list_messages(conversation_id)
        messages = history + [Message(role=MessageRole.USER, content=user_message)]

        # 1. Signal detectors
        if pause_requested is None:
            pause_requested = should_pause_conversation(user_message)
        veredict_signal = detect_veredict_from_history(messages)

        violations: List[VeredictViolation] = []

        # 2. pre_state
        governance_input = GovernanceInput(
            conversation_id=conversation_id,
            user_message=user_message,
            messages=messages,
        )
        result = self.governance.apply_foundational_veredicts(
            EnforcementScope.PRE_STATE, governance_input
        )
        violations.extend(result.violations)

        # 3. State inference
        recorded = previous_veredicts(self.store, product_id, limit=config.context_veredict_limit)
        tendency = infer_state(messages, recorded)

        # 4. Search, only on an explicit user request
        if confirmed_search_query:
            search_context = run_confirmed_search(
                self.search_provider, confirmed_search_query, config.search_max_results
            )
        elif search_context is None and not is_paused:
            intent = detect_explicit_search_intent(user_message)
            if intent is not None:
                search_context = run_confirmed_search(
                    self.search_provider, intent.query, config.search_max_results
                )

        # 5. pre_context
        stored_context = self.store.get_product_context(product_id)
        product_context = stored_context.content_text if stored_context else None
        governance_input = governance_input.model_copy(update={
            "state": tendency.primary,
            "search_context": search_context,
            "product_context": product_context,
        })
        result = self.governance.apply_foundational_veredicts(
            EnforcementScope.PRE_CONTEXT, governance_input
        )
        violations.extend(result.violations)
        governance_input = result.effective_input(governance_input)
        search_context = governance_input.search_context

        # 6. Prompt composition
        suggest_query = None
        if (
            not is_paused
            and search_context is None
            and should_suggest_search(
                tendency.primary, "\n".join(m.content for m in history), user_message
            )
        ):
            suggest_query = suggested_search_query(user_message)

        suggest_consolidation = (
            not is_paused
            and tendency.primary == ConversationState.EXPLORATION
            and should_suggest_context_consolidation(self.store, product_id, conversation_id)
        )

        composed = compose_prompt(
            PromptRequest(
                tendency=tendency,
                conversation_status=conversation.status,
                pause_requested=pause_requested,
                conversation_summary=get_conversation_summary(history) if is_paused else None,
                previous_veredicts=recorded,
                has_veredict_signal=veredict_signal.detected,
                search_context=search_context,
                suggest_search_query=suggest_query,
                suggest_consolidation=suggest_consolidation,
            ),
            config,
        )

        # 7. pre_prompt
        governance_input = governance_input.model_copy(update={"prompt": composed.prompt})
        result = self.governance.apply_foundational_veredicts(
            EnforcementScope.PRE_PROMPT, governance_input
        )
        violations.extend(result.violations)
        governance_input = result.effective_input(governance_input)
        if not (governance_input.prompt or "").strip():
            raise GovernanceBlocked(
                "Governance remediation left no usable prompt",
                violations=violations,
                modified_input=result.modified_input,
            )
        search_context = governance_input.search_context

        # 8. Context assembly
        recent = history[-composed.max_history_messages:] if composed.max_history_messages else []
        context = build_context_section(
            product_context=product_context,
            search_context=search_context,
            veredicts=[] if is_paused else recorded,
            messages=recent,
        )
        system_prompt = governance_input.prompt + (result.injected_prompt_section or "")
        if context:
            system_prompt += "\n" + context

        # 9. Model call
        response = self.completion_client.complete(system_prompt, recent, user_message)

        # 10. post_response (advisory)
        result = self.governance.apply_foundational_veredicts(
            EnforcementScope.POST_RESPONSE,
            governance_input.model_copy(update={"response": response}),
        )
        violations.extend(result.violations)

        # 11. Lifecycle
        self.lifecycle.save_message(
            actor_id, conversation_id, MessageRole.USER, user_message,
            suppress_reactivation=is_paused,
        )
        self.lifecycle.save_message(
            actor_id, conversation_id, MessageRole.AGENT, response,
            suppress_reactivation=is_paused,
        )
        if is_paused:
            conversation = self.lifecycle.mark_conversation_reopened(actor_id, conversation_id)
        if pause_requested:
            conversation = self.lifecycle.pause_conversation(actor_id, conversation_id)
        if not is_paused and not pause_requested:
            conversation = self.store.get_conversation(conversation_id)

        if violations:
            logger.info(
                f"[Runtime] Turn on {conversation_id} finished with "
                f"{len(violations)} governance violation(s)"
            )

        return TurnResult(
            response=response,
            tendency=tendency,
            mode=composed.mode,
            conversation_status=conversation.status,
            violations=violations,
            suggest_search=suggest_query,
            search_results=search_context if search_context and search_context.results else None,
            veredict_signal=veredict_signal,
        )
