"""
Signal Detectors: explicit lexical signals in raw user text.

Behavioral Contract:
- Pure and deterministic: no state, no I/O, never calls the model
- Literal phrase tables only; ambiguity resolves to "no signal"
- A veredict signal only suggests asking; it never records anything
"""

import logging
import re
from collections import Counter
from typing import List

from pachai_kernel.models.conversation import Message, MessageRole
from pachai_kernel.models.veredict import VeredictSignal

logger = logging.getLogger(__name__)

VEREDICT_SIGNAL_PHRASES = [
    "é isso",
    "chegamos em um veredito",
    "vamos fechar assim",
    "faz sentido registrar isso",
    "podemos registrar",
    "vamos registrar",
    "chegamos a uma conclusão",
    "fechado",
]

PAUSE_PHRASES = [
    "vamos pausar",
    "pausar por aqui",
    "podemos parar por agora",
    "vamos retomar depois",
    "deixar isso em aberto",
    "pausar essa conversa",
]

# Statements that stabilise a topic ("settled, take it as given").
CLOSURE_PHRASES = [
    "esse é o conceito",
    "esse é o contexto",
    "chegamos ao final",
    "considere isso como base",
    "fechar assim",
    "está decidido",
    "ficou claro",
    "é isso",
]

TITLE_WINDOW = 3
TITLE_WORDS = 3
DEFAULT_VEREDICT_TITLE = "Decisão de produto"


def normalize(text: str) -> str:
    """Lower-case and trim. Every detector works on normalized text."""
    if not text:
        return ""
    return text.lower().strip()


def contains_any(text: str, phrases: List[str]) -> bool:
    """Literal substring containment against a phrase table."""
    normalized = normalize(text)
    if not normalized:
        return False
    return any(phrase in normalized for phrase in phrases)


def _suggest_title(user_messages: List[str]) -> str:
    """Top frequent words (longer than 3 chars) of the last few user messages."""
    recent = " ".join(user_messages[-TITLE_WINDOW:]).lower()
    words = [
        w for w in re.sub(r"[^\w\s]", " ", recent).split()
        if len(w) > 3
    ]
    if not words:
        return DEFAULT_VEREDICT_TITLE
    top = [word for word, _ in Counter(words).most_common(TITLE_WORDS)]
    return f"Decisão sobre {' '.join(top)}"


def detect_veredict_signal(user_messages: List[str]) -> VeredictSignal:
    """
    Check the most recent user message for an explicit veredict phrase.

    No match means no further processing. On a match a title is suggested
    from keyword frequency; the user still has the final word.
    """
    if not user_messages:
        return VeredictSignal(detected=False)

    if not contains_any(user_messages[-1] or "", VEREDICT_SIGNAL_PHRASES):
        return VeredictSignal(detected=False)

    title = _suggest_title([m for m in user_messages if m])
    logger.debug(f"[Signals] Veredict signal detected, suggested title: {title!r}")
    return VeredictSignal(detected=True, suggested_title=title)


def detect_veredict_from_history(messages: List[Message]) -> VeredictSignal:
    """Run the veredict detector over the user side of a message history."""
    user_messages = [
        m.content for m in messages
        if m.role == MessageRole.USER and m.content
    ]
    return detect_veredict_signal(user_messages)


def should_pause_conversation(message: str) -> bool:
    """True iff the message literally contains one of the pause phrases."""
    if not isinstance(message, str):
        return False
    return contains_any(message, PAUSE_PHRASES)


def detect_closure_signal(message: str) -> bool:
    """True iff the message literally contains a closure phrase."""
    if not isinstance(message, str):
        return False
    return contains_any(message, CLOSURE_PHRASES)
