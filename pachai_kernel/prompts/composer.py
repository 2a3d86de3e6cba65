"""
Prompt Composer: selects and assembles the instruction prompt for a turn.

Behavioral Contract:
- Mode priority: Paused conversation (Reopening) > explicit pause request
  > inferred tendency
- Each mode fixes how many history messages the model sees
- Search results are only described to the model when the SearchContext
  was confirmed by the user
- Context is assembled in a fixed order: product context, external
  references, product veredicts, conversation messages
"""

from typing import List, Optional, Sequence

from pydantic import BaseModel

from pachai_kernel.models.config import PachaiConfig
from pachai_kernel.models.conversation import (
    ConversationState,
    ConversationStatus,
    Message,
    MessageRole,
    StateTendency,
)
from pachai_kernel.models.search import SearchContext
from pachai_kernel.models.veredict import Veredict
from pachai_kernel.prompts import templates


class PromptRequest(BaseModel):
    """Everything the composer needs to pick a mode for one turn."""

    tendency: StateTendency
    conversation_status: ConversationStatus = ConversationStatus.ACTIVE
    pause_requested: bool = False
    conversation_summary: Optional[str] = None
    previous_veredicts: List[Veredict] = []     # Most recent first
    has_veredict_signal: bool = False
    search_context: Optional[SearchContext] = None
    suggest_search_query: Optional[str] = None
    suggest_consolidation: bool = False


class ComposedPrompt(BaseModel):
    prompt: str
    max_history_messages: int
    mode: ConversationState


def get_prompt_for_state(state: ConversationState) -> str:
    """Base instructions plus the block for a single conversation state."""
    return templates.BASE_PROMPT + templates.STATE_INSTRUCTIONS[ConversationState(state)]


def _reopen_prompt(request: PromptRequest) -> str:
    prompt = get_prompt_for_state(ConversationState.REOPENING) + templates.REOPEN_PROMPT

    if request.conversation_summary:
        prompt += templates.CONVERSATION_SUMMARY_TEMPLATE.format(
            summary=request.conversation_summary
        )

    if request.previous_veredicts:
        last = request.previous_veredicts[0]
        prompt += templates.PREVIOUS_VEREDICT_TEMPLATE.format(pain=last.pain, value=last.value)

    return prompt


def compose_prompt(
    request: PromptRequest,
    config: Optional[PachaiConfig] = None,
) -> ComposedPrompt:
    """Pick the prompt mode for the turn and append the applicable blocks."""
    config = config or PachaiConfig()

    if request.conversation_status == ConversationStatus.PAUSED:
        return ComposedPrompt(
            prompt=_reopen_prompt(request),
            max_history_messages=config.reopen_history_messages,
            mode=ConversationState.REOPENING,
        )

    if request.pause_requested:
        return ComposedPrompt(
            prompt=get_prompt_for_state(ConversationState.PAUSE),
            max_history_messages=config.pause_history_messages,
            mode=ConversationState.PAUSE,
        )

    state = request.tendency.primary
    if state == ConversationState.REOPENING:
        # Reopening is lifecycle-driven; a tendency never selects it.
        state = ConversationState.EXPLORATION

    prompt = get_prompt_for_state(state)

    if request.has_veredict_signal:
        prompt += templates.VEREDICT_MODE_PROMPT

    search_context = request.search_context
    if search_context is not None and search_context.confirmed_by_user:
        prompt += templates.SEARCH_RESULTS_PROMPT

    if request.suggest_search_query:
        prompt += templates.SUGGEST_SEARCH_PROMPT.format(query=request.suggest_search_query)

    if request.suggest_consolidation and state == ConversationState.EXPLORATION:
        prompt += templates.CONTEXT_CONSOLIDATION_PROMPT

    return ComposedPrompt(
        prompt=prompt,
        max_history_messages=config.default_history_messages,
        mode=state,
    )


def _speaker(message: Message) -> str:
    return "Usuário" if message.role == MessageRole.USER else "Pachai"


def build_context_section(
    product_context: Optional[str] = None,
    search_context: Optional[SearchContext] = None,
    veredicts: Sequence[Veredict] = (),
    messages: Sequence[Message] = (),
) -> str:
    """
    Assemble the context appended after the governed prompt.

    The product always comes before the outside world: product context,
    then external references, then recorded veredicts, then the messages.
    Empty parts are left out.
    """
    parts = []

    if product_context:
        parts.append(templates.section(templates.PRODUCT_CONTEXT_HEADER) + product_context.strip() + "\n")

    if search_context is not None and search_context.results:
        references = "\n\n".join(
            f"{i}. {r.title}\n   Fonte: {r.source}\n   {r.snippet}\n   URL: {r.url}"
            for i, r in enumerate(search_context.results, start=1)
        )
        parts.append(
            templates.section(templates.SEARCH_CONTEXT_HEADER)
            + f"Busca realizada: \"{search_context.query}\"\n\n"
            + references
            + "\n\n"
            + templates.SEARCH_CONTEXT_FOOTER
        )

    if veredicts:
        recorded = "\n\n".join(
            f"{i}. Dor: {v.pain}\n   Valor: {v.value}"
            for i, v in enumerate(veredicts, start=1)
        )
        parts.append(templates.section(templates.VEREDICTS_CONTEXT_HEADER) + recorded + "\n")

    if messages:
        history = "\n\n".join(f"{_speaker(m)}: {m.content}" for m in messages)
        parts.append(templates.section(templates.MESSAGES_CONTEXT_HEADER) + history + "\n")

    return "\n".join(parts)
