"""Tests for explicit search intent and search suggestion detection."""

from pachai_kernel.detection.search import (
    detect_explicit_search_intent,
    should_suggest_search,
    suggested_search_query,
)
from pachai_kernel.models.conversation import ConversationState


class TestExplicitSearchIntent:
    def test_pesquise_sobre(self):
        intent = detect_explicit_search_intent("Pesquise sobre onboarding em SaaS B2B")
        assert intent is not None
        assert intent.query == "onboarding em saas b2b"
        assert intent.confidence == 1.0

    def test_busque_referencias(self):
        intent = detect_explicit_search_intent("busque referências sobre pricing")
        assert intent.query == "pricing"

    def test_procure_exemplos(self):
        intent = detect_explicit_search_intent("procure exemplos de onboarding")
        assert intent.query == "onboarding"

    def test_encontre_estudos(self):
        intent = detect_explicit_search_intent("encontre estudos sobre retenção")
        assert intent.query == "retenção"

    def test_query_too_short(self):
        assert detect_explicit_search_intent("pesquise ab") is None

    def test_no_imperative(self):
        assert detect_explicit_search_intent("O que você acha do onboarding?") is None
        assert detect_explicit_search_intent("") is None


class TestShouldSuggestSearch:
    def test_suggests_when_reference_would_help(self):
        assert should_suggest_search(
            ConversationState.EXPLORATION,
            "",
            "como outras empresas lidam com churn?",
        ) is True

    def test_never_in_convergence(self):
        assert should_suggest_search(
            ConversationState.CONVERGENCE,
            "",
            "como outras empresas lidam com churn?",
        ) is False

    def test_not_when_explicit_intent(self):
        assert should_suggest_search(
            ConversationState.EXPLORATION,
            "",
            "pesquise como outras empresas fazem onboarding",
        ) is False

    def test_not_when_converging(self):
        assert should_suggest_search(
            ConversationState.CLARIFICATION,
            "resumindo o que vimos",
            "como outros produtos fazem isso?",
        ) is False
        assert should_suggest_search(
            ConversationState.CLARIFICATION,
            "",
            "então como outros produtos fazem isso?",
        ) is False

    def test_not_without_helpful_pattern(self):
        assert should_suggest_search(
            ConversationState.EXPLORATION,
            "",
            "quero melhorar o onboarding",
        ) is False


class TestSuggestedQuery:
    def test_extracts_topic(self):
        assert suggested_search_query("exemplos de onboarding B2B") == "onboarding B2B"

    def test_falls_back_to_message(self):
        assert suggested_search_query("  churn  ") == "churn"
