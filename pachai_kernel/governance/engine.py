"""
Foundational Governance Engine: deterministic policy layer over the agent.

Evaluates the Foundational Veredicts active for a pipeline checkpoint and
returns allow/block decisions with a remediated copy of the input.

Behavioral Contract:
- Only rules whose enforcement_scope equals the phase are evaluated
- Rules run in ascending priority; each sees the input as already
  remediated by the rules before it
- Never mutates the caller's GovernanceInput
- Evaluation is pattern matching only; nothing in a prompt can flip a block
- Every violation is audited; audit failures never abort the turn
- post_response violations are advisory and never block
"""

import logging
from typing import List, Optional, Union

from pachai_kernel.audit.store import AuditStore
from pachai_kernel.governance.cache import VeredictCache
from pachai_kernel.governance.rules import (
    apply_remediation,
    build_injected_prompt_section,
    evaluate_veredict,
)
from pachai_kernel.models.governance import (
    EnforcementScope,
    FoundationalVeredict,
    GovernanceInput,
    GovernanceResult,
    VeredictViolation,
)

logger = logging.getLogger(__name__)


class FoundationalGovernanceEngine:
    """
    Applies Foundational Veredicts at the four pipeline checkpoints.

    The engine holds no per-turn state: the rule cache and the audit store
    are injected and may be shared between engines.
    """

    def __init__(self, cache: VeredictCache, audit_store: Optional[AuditStore] = None):
        self.cache = cache
        self.audit_store = audit_store

    def active_veredicts(self) -> List[FoundationalVeredict]:
        """All active rules across every scope."""
        return [v for v in self.cache.get() if v.is_active]

    def clear_veredicts_cache(self) -> None:
        """Force the next evaluation to reload rules from the store."""
        self.cache.clear()
        logger.info("[Governance] Foundational veredicts cache cleared")

    def apply_foundational_veredicts(
        self,
        phase: Union[EnforcementScope, str],
        governance_input: GovernanceInput,
    ) -> GovernanceResult:
        """
        Evaluate every active rule scoped to `phase`.

        Returns allowed=False when any violation blocked, with the remediated
        copy in modified_input. At pre_prompt the injected rules section is
        always produced while active rules exist.
        """
        phase = EnforcementScope(phase)
        active = self.active_veredicts()
        scoped = sorted(
            (v for v in active if v.enforcement_scope == phase),
            key=lambda v: v.priority,
        )

        working = governance_input.model_copy(deep=True)
        violations: List[VeredictViolation] = []

        for veredict in scoped:
            violation = evaluate_veredict(veredict, phase, working)
            if violation is None:
                continue

            if phase == EnforcementScope.POST_RESPONSE and violation.was_blocked:
                violation = violation.model_copy(update={"was_blocked": False})

            violations.append(violation)
            if violation.was_blocked:
                apply_remediation(veredict.code, working)
                logger.warning(
                    f"[Governance] {veredict.code} blocked at {phase.value}: {violation.reason}"
                )
            else:
                logger.warning(
                    f"[Governance] {veredict.code} advisory at {phase.value}: {violation.reason}"
                )

        if violations:
            self._audit(violations, phase, governance_input.conversation_id)

        blocked = any(v.was_blocked for v in violations)
        injected = None
        if phase == EnforcementScope.PRE_PROMPT:
            injected = build_injected_prompt_section(active)

        return GovernanceResult(
            allowed=not blocked,
            violations=violations,
            modified_input=working if blocked else None,
            injected_prompt_section=injected,
        )

    def _audit(
        self,
        violations: List[VeredictViolation],
        phase: EnforcementScope,
        conversation_id: Optional[str],
    ) -> None:
        if self.audit_store is None:
            return
        try:
            self.audit_store.append(violations, phase, conversation_id)
        except Exception as e:
            logger.error(f"[Governance] Failed to record veredict audit: {e}")
