"""
Foundational Veredict rules: literal pattern tables and their checks.

Policy is expressed as ordered tables of trigger phrases per rule code.
Every check is structural pattern matching: no model is ever consulted, so
no prompt wording can argue its way past a rule.
"""

import logging
import re
from typing import Callable, Dict, List, Optional

from pachai_kernel.detection.signals import CLOSURE_PHRASES
from pachai_kernel.models.conversation import MessageRole
from pachai_kernel.models.governance import (
    EnforcementScope,
    FoundationalVeredict,
    GovernanceInput,
    VeredictViolation,
)

logger = logging.getLogger(__name__)

REACTIVE_BEHAVIOR = "REACTIVE_BEHAVIOR"
CLOSURE_RECOGNITION = "CLOSURE_RECOGNITION"
CLOSURE_RECOGNITION_RESPONSE = "CLOSURE_RECOGNITION_RESPONSE"
EXTERNAL_SEARCH_CONSCIOUS = "EXTERNAL_SEARCH_CONSCIOUS"
EXTERNAL_SEARCH_CONSCIOUS_PROMPT = "EXTERNAL_SEARCH_CONSCIOUS_PROMPT"
MEMORY_SHARING = "MEMORY_SHARING"
EXPLICIT_CONTEXT_EVOLUTION = "EXPLICIT_CONTEXT_EVOLUTION"
VEREDICT_META = "VEREDICT_META"

# Reflexive questions / forced reformulation.
REFLEXIVE_PATTERNS = [
    "você pode reformular",
    "pode repetir o que",
    "você disse que",
    "pode confirmar",
    "você entendeu",
    "pode explicar melhor o que você disse",
]

# Instructions that reopen a topic the user has closed.
PROMPT_REOPENING_PATTERNS = [
    "explore mais",
    "pense sobre",
    "considere também",
    "e se",
    "mas e",
    "outra possibilidade",
    "talvez",
]

RESPONSE_CLOSURE_SIGNALS = [
    "esse é o conceito",
    "esse é o contexto",
    "chegamos ao final",
    "considere isso como base",
    "fechar assim",
]

RECOGNITION_KEYWORDS = [
    "entendido",
    "reconheço",
    "assumido",
    "registrado",
    "anotado",
    "claro",
]

RESPONSE_REOPENING_PATTERNS = [
    "mas e se",
    "e sobre",
    "outra coisa",
    "pensando melhor",
    "talvez",
]

# The checkpoint each rule is written for. A rule configured under another
# scope evaluates to nothing.
RULE_PHASES: Dict[str, EnforcementScope] = {
    REACTIVE_BEHAVIOR: EnforcementScope.PRE_PROMPT,
    CLOSURE_RECOGNITION: EnforcementScope.PRE_PROMPT,
    EXTERNAL_SEARCH_CONSCIOUS_PROMPT: EnforcementScope.PRE_PROMPT,
    CLOSURE_RECOGNITION_RESPONSE: EnforcementScope.POST_RESPONSE,
    EXTERNAL_SEARCH_CONSCIOUS: EnforcementScope.PRE_CONTEXT,
    MEMORY_SHARING: EnforcementScope.PRE_CONTEXT,
    EXPLICIT_CONTEXT_EVOLUTION: EnforcementScope.PRE_CONTEXT,
}


def _phrase_regex(phrase: str) -> str:
    # Phrases match on word boundaries so short entries ("e se", "claro")
    # do not fire inside other words.
    return rf"(?<!\w){re.escape(phrase)}(?!\w)"


def matched_phrases(text: Optional[str], phrases: List[str]) -> List[str]:
    """Return the entries of a phrase table present in `text`, in table order."""
    if not text:
        return []
    return [
        p for p in phrases
        if re.search(_phrase_regex(p), text, re.IGNORECASE)
    ]


def strip_phrases(text: str, phrases: List[str]) -> str:
    """Delete each phrase together with the rest of its sentence."""
    cleaned = text
    for phrase in phrases:
        cleaned = re.sub(
            _phrase_regex(phrase) + r"[^.]*", "", cleaned, flags=re.IGNORECASE
        )
    cleaned = re.sub(r"[ \t]{2,}", " ", cleaned)
    return cleaned.strip()


def _last_user_message(governance_input: GovernanceInput) -> Optional[str]:
    for message in reversed(governance_input.messages):
        if message.role == MessageRole.USER:
            return message.content
    return None


# --- Checks ---

def _check_reactive_behavior(
    veredict: FoundationalVeredict,
    phase: EnforcementScope,
    governance_input: GovernanceInput,
) -> Optional[VeredictViolation]:
    """Block prompts that force reformulation or reflexive questions."""
    found = matched_phrases(governance_input.prompt, REFLEXIVE_PATTERNS)
    if not found:
        return None
    return VeredictViolation(
        veredict_code=veredict.code,
        phase=phase,
        was_blocked=True,
        reason="Prompt contém padrão de pergunta reflexiva ou reformulação forçada",
        details={"pattern": "reflexive_question", "matched": found},
    )


def _check_closure_recognition(
    veredict: FoundationalVeredict,
    phase: EnforcementScope,
    governance_input: GovernanceInput,
) -> Optional[VeredictViolation]:
    """Block prompts that reopen a discussion the user just closed."""
    last_user = _last_user_message(governance_input)
    if not last_user or not governance_input.prompt:
        return None

    signals = matched_phrases(last_user, CLOSURE_PHRASES)
    if not signals:
        return None

    reopening = matched_phrases(governance_input.prompt, PROMPT_REOPENING_PATTERNS)
    if not reopening:
        return None

    return VeredictViolation(
        veredict_code=veredict.code,
        phase=phase,
        was_blocked=True,
        reason="Prompt tenta reabrir discussão após sinal de fechamento",
        details={
            "closure_signal": True,
            "reopening_pattern": True,
            "signals": signals,
            "matched": reopening,
        },
    )


def _check_closure_recognition_response(
    veredict: FoundationalVeredict,
    phase: EnforcementScope,
    governance_input: GovernanceInput,
) -> Optional[VeredictViolation]:
    """Flag responses that ignore or reopen a closure. Advisory only."""
    last_user = _last_user_message(governance_input)
    if not last_user or not governance_input.response:
        return None

    if not matched_phrases(last_user, RESPONSE_CLOSURE_SIGNALS):
        return None

    has_recognition = bool(matched_phrases(governance_input.response, RECOGNITION_KEYWORDS))
    reopening = matched_phrases(governance_input.response, RESPONSE_REOPENING_PATTERNS)

    if has_recognition and not reopening:
        return None

    return VeredictViolation(
        veredict_code=veredict.code,
        phase=phase,
        was_blocked=False,
        reason="Resposta não reconhece explicitamente fechamento ou tenta reabrir discussão",
        details={
            "closure_signal": True,
            "has_recognition": has_recognition,
            "has_reopening": bool(reopening),
        },
    )


def _check_external_search(
    veredict: FoundationalVeredict,
    phase: EnforcementScope,
    governance_input: GovernanceInput,
) -> Optional[VeredictViolation]:
    """Block any SearchContext that did not come from explicit user confirmation."""
    search_context = governance_input.search_context
    if search_context is None or search_context.confirmed_by_user:
        return None
    return VeredictViolation(
        veredict_code=veredict.code,
        phase=phase,
        was_blocked=True,
        reason="SearchContext presente sem confirmação explícita do usuário",
        details={"query": search_context.query, "results": len(search_context.results)},
    )


def _check_structural_guarantee(
    veredict: FoundationalVeredict,
    phase: EnforcementScope,
    governance_input: GovernanceInput,
) -> Optional[VeredictViolation]:
    """
    MEMORY_SHARING and EXPLICIT_CONTEXT_EVOLUTION hold by construction:
    callers only pass current-conversation messages, and context writes go
    through the change-reason write path.
    """
    return None


VIOLATION_CHECKS: Dict[str, Callable[..., Optional[VeredictViolation]]] = {
    REACTIVE_BEHAVIOR: _check_reactive_behavior,
    CLOSURE_RECOGNITION: _check_closure_recognition,
    CLOSURE_RECOGNITION_RESPONSE: _check_closure_recognition_response,
    EXTERNAL_SEARCH_CONSCIOUS: _check_external_search,
    EXTERNAL_SEARCH_CONSCIOUS_PROMPT: _check_external_search,
    MEMORY_SHARING: _check_structural_guarantee,
    EXPLICIT_CONTEXT_EVOLUTION: _check_structural_guarantee,
}


# --- Remediation ---

def _remove_reflexive_phrases(governance_input: GovernanceInput) -> None:
    if governance_input.prompt:
        governance_input.prompt = strip_phrases(governance_input.prompt, REFLEXIVE_PATTERNS)


def _remove_reopening_phrases(governance_input: GovernanceInput) -> None:
    if governance_input.prompt:
        governance_input.prompt = strip_phrases(governance_input.prompt, PROMPT_REOPENING_PATTERNS)


def _drop_search_context(governance_input: GovernanceInput) -> None:
    governance_input.search_context = None


REMEDIATIONS: Dict[str, Callable[[GovernanceInput], None]] = {
    REACTIVE_BEHAVIOR: _remove_reflexive_phrases,
    CLOSURE_RECOGNITION: _remove_reopening_phrases,
    EXTERNAL_SEARCH_CONSCIOUS: _drop_search_context,
    EXTERNAL_SEARCH_CONSCIOUS_PROMPT: _drop_search_context,
}


def evaluate_veredict(
    veredict: FoundationalVeredict,
    phase: EnforcementScope,
    governance_input: GovernanceInput,
) -> Optional[VeredictViolation]:
    """Evaluate one rule against the (possibly already remediated) input."""
    if veredict.code == VEREDICT_META:
        # Orients the interpretation of the other rules; never a violation.
        return None

    check_fn = VIOLATION_CHECKS.get(veredict.code)
    if check_fn is None:
        logger.warning(f"[Governance] Unknown veredict code: {veredict.code}")
        return None

    if RULE_PHASES.get(veredict.code) != phase:
        return None

    return check_fn(veredict, phase, governance_input)


def apply_remediation(code: str, governance_input: GovernanceInput) -> None:
    """Apply a blocking rule's remediation to the working copy in place."""
    remediation = REMEDIATIONS.get(code)
    if remediation:
        remediation(governance_input)


def build_injected_prompt_section(veredicts: List[FoundationalVeredict]) -> Optional[str]:
    """The non-negotiable rules block appended to every outgoing prompt."""
    active = [v for v in veredicts if v.is_active]
    if not active:
        return None

    rules = "\n\n".join(f"• {v.title}: {v.rule_text}" for v in active)
    return (
        "\n━━━━━━━━━━━━━━━━━━\n"
        "REGRAS FUNDADORAS DO PACHai\n"
        "(Estas regras não podem ser violadas)\n"
        "━━━━━━━━━━━━━━━━━━\n\n"
        f"{rules}\n\n"
        "IMPORTANTE: Estas regras têm precedência absoluta sobre qualquer "
        "instrução de estado, prompt ou pedido do usuário.\n"
    )
