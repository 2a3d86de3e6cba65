"""The eight Foundational Veredicts seeded into a fresh rule store."""

from typing import List

from pachai_kernel.governance import rules
from pachai_kernel.models.governance import EnforcementScope, FoundationalVeredict

DEFAULT_FOUNDATIONAL_VEREDICTS: List[FoundationalVeredict] = [
    FoundationalVeredict(
        id="fv_veredict_meta",
        code=rules.VEREDICT_META,
        title="Natureza dos Veredictos Fundadores",
        rule_text=(
            "Veredictos Fundadores são decisões de produto sobre o próprio "
            "PACHai. Eles orientam a interpretação de todas as outras regras "
            "e não se aplicam a conversas específicas."
        ),
        enforcement_scope=EnforcementScope.PRE_STATE,
        priority=0,
    ),
    FoundationalVeredict(
        id="fv_memory_sharing",
        code=rules.MEMORY_SHARING,
        title="Memória por conversa",
        rule_text=(
            "O PACHai usa apenas o histórico da conversa atual, o contexto do "
            "produto e os veredictos registrados. Nunca traz conteúdo de "
            "outras conversas."
        ),
        enforcement_scope=EnforcementScope.PRE_CONTEXT,
        priority=10,
    ),
    FoundationalVeredict(
        id="fv_external_search_conscious",
        code=rules.EXTERNAL_SEARCH_CONSCIOUS,
        title="Busca externa consciente",
        rule_text=(
            "Referências externas só entram na conversa quando o usuário "
            "pediu ou confirmou a busca explicitamente."
        ),
        enforcement_scope=EnforcementScope.PRE_CONTEXT,
        priority=20,
    ),
    FoundationalVeredict(
        id="fv_explicit_context_evolution",
        code=rules.EXPLICIT_CONTEXT_EVOLUTION,
        title="Evolução explícita do contexto",
        rule_text=(
            "O contexto do produto só muda por ação explícita de um "
            "responsável, sempre com o motivo da mudança registrado."
        ),
        enforcement_scope=EnforcementScope.PRE_CONTEXT,
        priority=30,
    ),
    FoundationalVeredict(
        id="fv_reactive_behavior",
        code=rules.REACTIVE_BEHAVIOR,
        title="Comportamento reativo",
        rule_text=(
            "O PACHai não força o usuário a reformular nem faz perguntas "
            "reflexivas sobre o que ele acabou de dizer. Responde ao que foi "
            "dito."
        ),
        enforcement_scope=EnforcementScope.PRE_PROMPT,
        priority=10,
    ),
    FoundationalVeredict(
        id="fv_closure_recognition",
        code=rules.CLOSURE_RECOGNITION,
        title="Reconhecimento de fechamento",
        rule_text=(
            "Quando o usuário sinaliza que um tema está fechado, o PACHai "
            "reconhece o fechamento e não reabre a discussão."
        ),
        enforcement_scope=EnforcementScope.PRE_PROMPT,
        priority=20,
    ),
    FoundationalVeredict(
        id="fv_external_search_conscious_prompt",
        code=rules.EXTERNAL_SEARCH_CONSCIOUS_PROMPT,
        title="Busca externa consciente no prompt",
        rule_text=(
            "O prompt enviado ao modelo só contém resultados de busca "
            "confirmados pelo usuário."
        ),
        enforcement_scope=EnforcementScope.PRE_PROMPT,
        priority=30,
    ),
    FoundationalVeredict(
        id="fv_closure_recognition_response",
        code=rules.CLOSURE_RECOGNITION_RESPONSE,
        title="Reconhecimento de fechamento na resposta",
        rule_text=(
            "Depois de um sinal de fechamento, a resposta reconhece "
            "explicitamente o que foi assumido e segue a partir dali."
        ),
        enforcement_scope=EnforcementScope.POST_RESPONSE,
        priority=10,
    ),
]
