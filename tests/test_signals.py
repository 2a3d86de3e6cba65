"""Tests for the lexical signal detectors."""

from pachai_kernel.detection.signals import (
    DEFAULT_VEREDICT_TITLE,
    detect_closure_signal,
    detect_veredict_from_history,
    detect_veredict_signal,
    should_pause_conversation,
)
from pachai_kernel.models.conversation import Message, MessageRole


def _user(content: str) -> Message:
    return Message(role=MessageRole.USER, content=content)


def _agent(content: str) -> Message:
    return Message(role=MessageRole.AGENT, content=content)


class TestVeredictSignal:
    def test_detects_closure_phrase_in_last_message(self):
        signal = detect_veredict_signal([
            "O onboarding está confuso",
            "Acho que é isso, vamos fechar assim",
        ])
        assert signal.detected is True
        assert signal.suggested_title.startswith("Decisão sobre")

    def test_title_uses_most_frequent_words(self):
        signal = detect_veredict_signal([
            "onboarding lento afeta ativação",
            "onboarding precisa mudar",
            "fechado",
        ])
        assert signal.detected is True
        assert signal.suggested_title == "Decisão sobre onboarding lento afeta"

    def test_no_phrase_no_signal(self):
        signal = detect_veredict_signal(["Ainda estou pensando no assunto"])
        assert signal.detected is False
        assert signal.suggested_title is None

    def test_empty_input(self):
        assert detect_veredict_signal([]).detected is False

    def test_only_the_last_message_counts(self):
        signal = detect_veredict_signal(["é isso", "mas ainda tenho dúvidas"])
        assert signal.detected is False

    def test_case_insensitive(self):
        assert detect_veredict_signal(["PODEMOS REGISTRAR"]).detected is True

    def test_from_history_ignores_agent_messages(self):
        history = [
            _user("O churn aumentou depois da mudança de preço"),
            _agent("Fechado, podemos registrar"),
        ]
        assert detect_veredict_from_history(history).detected is False

        history.append(_user("Chegamos a uma conclusão"))
        assert detect_veredict_from_history(history).detected is True

    def test_default_title_constant(self):
        assert DEFAULT_VEREDICT_TITLE == "Decisão de produto"


class TestPauseDetection:
    def test_explicit_pause_phrase(self):
        assert should_pause_conversation("Acho melhor vamos pausar por aqui") is True
        assert should_pause_conversation("Podemos parar por agora?") is True

    def test_no_vague_inference(self):
        assert should_pause_conversation("Estou cansado") is False
        assert should_pause_conversation("pausa") is False

    def test_non_string_input(self):
        assert should_pause_conversation(None) is False
        assert should_pause_conversation("") is False


class TestClosureSignal:
    def test_closure_phrases(self):
        assert detect_closure_signal("Esse é o conceito.") is True
        assert detect_closure_signal("Considere isso como base") is True

    def test_no_closure(self):
        assert detect_closure_signal("Quero explorar mais o problema") is False
        assert detect_closure_signal(None) is False
