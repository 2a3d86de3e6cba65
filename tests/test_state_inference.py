"""Tests for the State Inferencer and the conversation summary."""

from datetime import datetime, timezone

from pachai_kernel.models.conversation import ConversationState, Message, MessageRole
from pachai_kernel.models.veredict import Veredict
from pachai_kernel.state.inference import infer_state
from pachai_kernel.state.summary import get_conversation_summary


def _make_history(*user_messages: str) -> list:
    """Alternate each user message with a short agent reply."""
    history = []
    for content in user_messages:
        history.append(Message(role=MessageRole.USER, content=content))
        history.append(Message(role=MessageRole.AGENT, content="Certo."))
    return history


def _make_user_only(*user_messages: str) -> list:
    return [Message(role=MessageRole.USER, content=c) for c in user_messages]


class TestInferState:
    def test_empty_history(self):
        tendency = infer_state([])
        assert tendency.primary == ConversationState.EXPLORATION
        assert tendency.confidence == 1.0

    def test_agent_only_history(self):
        tendency = infer_state([Message(role=MessageRole.AGENT, content="Olá")])
        assert tendency.primary == ConversationState.EXPLORATION
        assert tendency.confidence == 1.0

    def test_two_user_messages(self):
        tendency = infer_state(_make_history(
            "Quero discutir o onboarding",
            "Os clientes demoram para ativar",
        ))
        assert tendency.primary == ConversationState.EXPLORATION
        assert tendency.confidence == 0.8
        assert tendency.secondary == ConversationState.CLARIFICATION

    def test_convergence_needs_five_user_messages(self):
        tendency = infer_state(_make_user_only(
            "Quero discutir o onboarding do produto",
            "Os clientes demoram bastante para ativar",
            "O time comercial tem outra visão disso",
            "Vimos números parecidos no último trimestre",
            "Concordo, faz sentido olhar para a ativação",
        ))
        assert tendency.primary == ConversationState.CONVERGENCE
        assert tendency.confidence == 0.7
        assert tendency.secondary == ConversationState.CLARIFICATION

    def test_clarification_keywords(self):
        tendency = infer_state(_make_user_only(
            "Quero discutir o onboarding do produto",
            "Os clientes demoram bastante para ativar",
            "O time comercial tem outra visão disso",
            "O problema é a dificuldade de configuração inicial",
        ))
        assert tendency.primary == ConversationState.CLARIFICATION
        assert tendency.confidence == 0.65
        assert tendency.secondary == ConversationState.EXPLORATION

    def test_short_last_message_is_pause(self):
        tendency = infer_state(_make_user_only(
            "Quero discutir o onboarding do produto",
            "Os clientes reclamam bastante da configuração",
            "O time de vendas tem outra visão",
            "ok",
        ))
        assert tendency.primary == ConversationState.PAUSE
        assert tendency.confidence == 0.6

    def test_many_messages_without_keywords(self):
        tendency = infer_state(_make_user_only(
            "Quero discutir o onboarding do produto",
            "Os clientes demoram bastante para ativar",
            "O time comercial tem outra visão disso",
            "Vimos números parecidos no último trimestre",
            "Vale olhar os dados de uso da primeira semana",
        ))
        assert tendency.primary == ConversationState.CLARIFICATION
        assert tendency.confidence == 0.55
        assert tendency.secondary == ConversationState.CONVERGENCE

    def test_default_exploration(self):
        tendency = infer_state(_make_user_only(
            "Quero discutir o onboarding do produto",
            "Os clientes demoram bastante para ativar",
            "O time comercial tem outra visão disso",
            "Vimos números parecidos no último trimestre",
        ))
        assert tendency.primary == ConversationState.EXPLORATION
        assert tendency.confidence == 0.7

    def test_keywords_match_at_word_start(self):
        # "vendedor" must not count as the clarification keyword "dor".
        tendency = infer_state(_make_user_only(
            "Quero discutir o onboarding do produto",
            "Os clientes demoram bastante para ativar",
            "Cada vendedor configura de um jeito",
            "Vimos números parecidos no último trimestre",
        ))
        assert tendency.primary == ConversationState.EXPLORATION

    def test_previous_veredicts_do_not_shift_tendency(self):
        history = _make_history("Quero discutir o onboarding", "Os clientes demoram")
        veredict = Veredict(
            id="ver_1",
            product_id="prd_1",
            conversation_id="cnv_1",
            pain="Ativação lenta",
            value="Clientes ativos na primeira semana",
            version=1,
            created_at=datetime.now(timezone.utc),
        )
        assert infer_state(history, [veredict]) == infer_state(history)

    def test_never_infers_reopening(self):
        tendency = infer_state(_make_user_only(
            "retomando", "voltei", "vamos retomar", "reabrir", "de novo",
        ))
        assert tendency.primary != ConversationState.REOPENING


class TestConversationSummary:
    def test_no_history(self):
        assert get_conversation_summary([]) == "Conversa sem histórico anterior."

    def test_no_user_messages(self):
        summary = get_conversation_summary([Message(role=MessageRole.AGENT, content="Olá")])
        assert summary == "Conversa iniciada recentemente."

    def test_single_user_message(self):
        summary = get_conversation_summary(_make_history("Quero entender o churn"))
        assert summary == "Na última vez, você estava explorando: Quero entender o churn"

    def test_single_long_message_is_truncated(self):
        summary = get_conversation_summary(_make_history("a" * 200))
        assert summary.endswith("...")

    def test_frequent_words(self):
        summary = get_conversation_summary(_make_history(
            "O onboarding está lento",
            "O onboarding confunde clientes",
            "Clientes desistem no onboarding",
        ))
        assert summary.startswith("Na última vez, estávamos explorando temas relacionados a:")
        assert "onboarding" in summary
