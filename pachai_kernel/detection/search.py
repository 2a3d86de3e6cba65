"""
Search signal detection.

High precision over recall: only clear imperative commands count as an
explicit search intent, and suggesting a search is rare by construction.
"""

import logging
import re
from typing import Optional

from pachai_kernel.detection.signals import normalize
from pachai_kernel.models.conversation import ConversationState
from pachai_kernel.models.search import SearchIntent

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3

# Ordered; the first matching pattern wins.
EXPLICIT_SEARCH_PATTERNS = [
    re.compile(r"pesquise\s+(?:sobre|de|em)?\s*(.+)", re.IGNORECASE),
    re.compile(r"^pesquise\s+(.+)", re.IGNORECASE),
    re.compile(r"busque\s+referências?\s+(?:sobre|de|em)\s+(.+)", re.IGNORECASE),
    re.compile(r"procure\s+exemplos?\s+(?:de|sobre)\s+(.+)", re.IGNORECASE),
    re.compile(r"encontre\s+estudos?\s+(?:sobre|de)\s+(.+)", re.IGNORECASE),
    re.compile(r"pesquise\s+referências?\s+(?:sobre|de|em)\s+(.+)", re.IGNORECASE),
    re.compile(r"busque\s+(?:sobre|de|em)\s+(.+)", re.IGNORECASE),
]

CONVERGENCE_SIGNALS = [
    "então",
    "resumindo",
    "conclusão",
    "fechar",
    "decidir",
    "chegamos",
    "ficou claro",
    "vamos fechar",
    "pra mim está decidido",
]

SEARCH_HELPFUL_PATTERNS = [
    re.compile(
        r"\b(?:como|quais?|onde|quando)\s+(?:outros?|outras?|empresas?|produtos?|times?)\s+",
        re.IGNORECASE,
    ),
    re.compile(r"\b(?:referências?|exemplos?|casos?)\s+(?:de|sobre|em)\s+", re.IGNORECASE),
    re.compile(
        r"\b(?:preciso|queria|gostaria)\s+(?:saber|entender|conhecer)\s+(?:mais|sobre|como)\s+",
        re.IGNORECASE,
    ),
]

SUGGESTABLE_STATES = (ConversationState.EXPLORATION, ConversationState.CLARIFICATION)


def detect_explicit_search_intent(message: str) -> Optional[SearchIntent]:
    """Return the captured query of the first matching imperative pattern."""
    text = normalize(message)
    if not text:
        return None

    for pattern in EXPLICIT_SEARCH_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        query = match.group(1).strip()
        if len(query) >= MIN_QUERY_LENGTH:
            logger.debug(f"[Search] Pattern {pattern.pattern!r} matched, query: {query!r}")
            return SearchIntent(query=query, confidence=1.0)

    return None


def should_suggest_search(
    state: ConversationState,
    context_text: str,
    message: str,
) -> bool:
    """
    Decide whether the agent may offer an external search.

    All four conditions must hold; failing any one yields False.
    """
    if state not in SUGGESTABLE_STATES:
        return False

    if detect_explicit_search_intent(message) is not None:
        return False

    context_lower = normalize(context_text)
    message_lower = normalize(message)
    if any(s in context_lower or s in message_lower for s in CONVERGENCE_SIGNALS):
        return False

    return any(p.search(message_lower) for p in SEARCH_HELPFUL_PATTERNS)


def suggested_search_query(message: str) -> str:
    """Best-effort topic extraction for the search suggestion offer."""
    match = re.search(r"(?:sobre|de|em)\s+(.+)", message or "", re.IGNORECASE)
    return match.group(1).strip() if match else (message or "").strip()
