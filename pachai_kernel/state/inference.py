"""
State Inferencer: computes a conversation *tendency*, not a committed label.

Behavioral Contract:
- Recomputed from history every turn; never stored as ground truth
- Never raises; defaults to Exploration
- First matching rule wins (see infer_state)
- Reopening is never inferred from content. It is driven solely by the
  lifecycle status leaving Paused.
"""

import re
from typing import List, Optional, Sequence

from pachai_kernel.models.conversation import (
    ConversationState,
    Message,
    MessageRole,
    StateTendency,
)
from pachai_kernel.models.veredict import Veredict

RECENT_WINDOW = 6
SHORT_MESSAGE_CHARS = 20
PAUSE_WINDOW_MIN_MESSAGES = 4

CONVERGENCE_KEYWORDS = [
    "entendi",
    "resumir",
    "resumindo",
    "concordo",
    "faz sentido",
    "em resumo",
    "conclusão",
    "então o ponto",
    "chegamos",
    "ficou claro",
]

CLARIFICATION_KEYWORDS = [
    "dor",
    "impacto",
    "necessidade",
    "afeta",
    "problema",
    "dificuldade",
    "incomoda",
    "desafio",
    "consequência",
    "precisa",
]


def _keyword_pattern(keywords: List[str]) -> "re.Pattern[str]":
    # Keywords match at the start of a word: "dor" hits "dores", not "vendedor".
    alternatives = "|".join(re.escape(k) for k in keywords)
    return re.compile(rf"(?<!\w)(?:{alternatives})", re.IGNORECASE)


_CONVERGENCE_RE = _keyword_pattern(CONVERGENCE_KEYWORDS)
_CLARIFICATION_RE = _keyword_pattern(CLARIFICATION_KEYWORDS)


def _user_contents(messages: Sequence[Message]) -> List[str]:
    return [m.content for m in messages if m.role == MessageRole.USER]


def infer_state(
    messages: Sequence[Message],
    previous_veredicts: Optional[Sequence[Veredict]] = None,
) -> StateTendency:
    """
    Infer the tendency of a conversation from its message history.

    Rules, in evaluation order:
      1. no user messages          → Exploration 1.0
      2. ≤ 3 user messages         → Exploration 0.8 (→ Clarification)
      3. convergence hits, ≥ 5     → Convergence 0.7 (→ Clarification)
      4. clarification hits, ≥ 3   → Clarification 0.65 (→ Exploration)
      5. short last message        → Pause 0.6 (→ Exploration)
      6. ≥ 5 user messages         → Clarification 0.55 (→ Convergence)
      7. default                   → Exploration 0.7 (→ Clarification)

    `previous_veredicts` do not shift the tendency: recorded decisions
    matter to prompt composition, not to where the dialogue currently sits.
    """
    messages = list(messages or [])
    user_messages = _user_contents(messages)
    user_count = len(user_messages)

    if user_count == 0:
        return StateTendency(primary=ConversationState.EXPLORATION, confidence=1.0)

    if user_count <= 3:
        return StateTendency(
            primary=ConversationState.EXPLORATION,
            confidence=0.8,
            secondary=ConversationState.CLARIFICATION,
        )

    recent = messages[-RECENT_WINDOW:]
    recent_user_text = " ".join(_user_contents(recent)).lower()

    if _CONVERGENCE_RE.search(recent_user_text) and user_count >= 5:
        return StateTendency(
            primary=ConversationState.CONVERGENCE,
            confidence=0.7,
            secondary=ConversationState.CLARIFICATION,
        )

    if _CLARIFICATION_RE.search(recent_user_text) and user_count >= 3:
        return StateTendency(
            primary=ConversationState.CLARIFICATION,
            confidence=0.65,
            secondary=ConversationState.EXPLORATION,
        )

    last_user_message = user_messages[-1].strip()
    if len(recent) >= PAUSE_WINDOW_MIN_MESSAGES and len(last_user_message) < SHORT_MESSAGE_CHARS:
        return StateTendency(
            primary=ConversationState.PAUSE,
            confidence=0.6,
            secondary=ConversationState.EXPLORATION,
        )

    if user_count >= 5:
        return StateTendency(
            primary=ConversationState.CLARIFICATION,
            confidence=0.55,
            secondary=ConversationState.CONVERGENCE,
        )

    return StateTendency(
        primary=ConversationState.EXPLORATION,
        confidence=0.7,
        secondary=ConversationState.CLARIFICATION,
    )
