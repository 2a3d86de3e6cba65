"""Tests for external search execution."""

import json
import logging

import httpx

from pachai_kernel.search.execution import (
    TAVILY_SEARCH_URL,
    TavilySearchProvider,
    execute_external_search,
    run_confirmed_search,
)


def _make_provider(handler) -> TavilySearchProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return TavilySearchProvider(api_key="tvly-test", client=client)


def _ok_handler(requests: list):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={
            "results": [
                {
                    "title": "Onboarding em SaaS",
                    "content": "Ativação guiada reduz churn",
                    "url": "https://blog.example.com/onboarding",
                },
                {
                    "title": "",
                    "content": "Sem título aqui",
                    "url": "https://docs.example.org/guia",
                },
            ]
        })
    return handler


class TestTavilySearchProvider:
    def test_search_maps_results(self):
        requests = []
        provider = _make_provider(_ok_handler(requests))
        results = provider.search("onboarding saas", max_results=3)

        assert len(results) == 2
        assert results[0].title == "Onboarding em SaaS"
        assert results[0].snippet == "Ativação guiada reduz churn"
        assert results[0].source == "blog.example.com"
        assert results[1].title == "Sem título"

        request = requests[0]
        assert str(request.url) == TAVILY_SEARCH_URL
        body = json.loads(request.content)
        assert body["query"] == "onboarding saas"
        assert body["max_results"] == 3
        assert body["api_key"] == "tvly-test"

    def test_results_are_capped(self):
        provider = _make_provider(_ok_handler([]))
        assert len(provider.search("onboarding", max_results=1)) == 1

    def test_from_env_without_key(self, monkeypatch):
        monkeypatch.delenv("TAVILY_API_KEY", raising=False)
        assert TavilySearchProvider.from_env() is None

    def test_from_env_with_key(self, monkeypatch):
        monkeypatch.setenv("TAVILY_API_KEY", "tvly-env")
        provider = TavilySearchProvider.from_env()
        assert isinstance(provider, TavilySearchProvider)
        provider.close()


class TestExecuteExternalSearch:
    def test_http_error_yields_no_results(self):
        provider = _make_provider(lambda request: httpx.Response(500, json={"error": "boom"}))
        assert execute_external_search(provider, "onboarding") == []

    def test_invalid_json_yields_no_results(self):
        provider = _make_provider(lambda request: httpx.Response(200, content=b"not json"))
        assert execute_external_search(provider, "onboarding") == []

    def test_non_object_payload_yields_no_results(self):
        provider = _make_provider(lambda request: httpx.Response(200, json=[{"title": "x"}]))
        assert execute_external_search(provider, "onboarding") == []

    def test_provider_exception_yields_no_results(self, caplog):
        class BrokenProvider:
            def search(self, query, max_results=5):
                raise RuntimeError("provider down")

        with caplog.at_level(logging.ERROR):
            assert execute_external_search(BrokenProvider(), "onboarding") == []
        assert "provider down" in caplog.text

    def test_non_object_items_are_skipped(self):
        provider = _make_provider(lambda request: httpx.Response(200, json={
            "results": ["texto solto", {"title": "Guia", "url": "https://docs.example.org/guia"}],
        }))
        results = provider.search("onboarding")
        assert [r.title for r in results] == ["Guia"]

    def test_empty_query_skips_provider(self):
        requests = []
        provider = _make_provider(_ok_handler(requests))
        assert execute_external_search(provider, "   ") == []
        assert requests == []

    def test_no_provider(self):
        assert execute_external_search(None, "onboarding") == []


class TestRunConfirmedSearch:
    def test_context_is_confirmed(self):
        provider = _make_provider(_ok_handler([]))
        context = run_confirmed_search(provider, "  onboarding saas  ")
        assert context.confirmed_by_user is True
        assert context.query == "onboarding saas"
        assert len(context.results) == 2

    def test_failed_search_still_confirmed_but_empty(self):
        context = run_confirmed_search(None, "onboarding")
        assert context.confirmed_by_user is True
        assert context.results == []
