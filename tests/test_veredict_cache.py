"""Tests for the Foundational Veredict cache and rule store."""

from pachai_kernel.governance import rules
from pachai_kernel.governance.cache import VeredictCache
from pachai_kernel.governance.defaults import DEFAULT_FOUNDATIONAL_VEREDICTS
from pachai_kernel.governance.engine import FoundationalGovernanceEngine
from pachai_kernel.governance.rule_store import RuleStore
from pachai_kernel.models.governance import EnforcementScope


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestVeredictCache:
    def setup_method(self):
        self.clock = FakeClock()
        self.rules = list(DEFAULT_FOUNDATIONAL_VEREDICTS)
        self.cache = VeredictCache(lambda: self.rules, ttl_seconds=60, clock=self.clock)

    def test_lazy_load(self):
        assert self.cache.fetch_count == 0
        assert len(self.cache.get()) == len(DEFAULT_FOUNDATIONAL_VEREDICTS)
        assert self.cache.fetch_count == 1

    def test_served_from_cache_within_ttl(self):
        self.cache.get()
        self.clock.advance(59)
        self.cache.get()
        assert self.cache.fetch_count == 1

    def test_reloads_after_ttl(self):
        self.cache.get()
        self.clock.advance(60)
        self.cache.get()
        assert self.cache.fetch_count == 2

    def test_clear_forces_reload(self):
        self.cache.get()
        self.cache.clear()
        self.cache.get()
        assert self.cache.fetch_count == 2

    def test_returned_list_is_a_copy(self):
        self.cache.get().clear()
        assert len(self.cache.get()) == len(DEFAULT_FOUNDATIONAL_VEREDICTS)

    def test_failed_load_is_not_cached(self):
        calls = []

        def loader():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("store unavailable")
            return self.rules

        cache = VeredictCache(loader, clock=self.clock)
        assert cache.get() == []
        assert len(cache.get()) == len(DEFAULT_FOUNDATIONAL_VEREDICTS)
        assert cache.fetch_count == 2

    def test_engine_clear_refetches(self):
        engine = FoundationalGovernanceEngine(self.cache)
        engine.active_veredicts()
        engine.clear_veredicts_cache()
        engine.active_veredicts()
        assert self.cache.fetch_count == 2


class TestRuleStore:
    def setup_method(self):
        self.store = RuleStore(db_path=":memory:")

    def teardown_method(self):
        self.store.close()

    def test_seed_defaults(self):
        assert self.store.seed_defaults() == len(DEFAULT_FOUNDATIONAL_VEREDICTS)
        assert self.store.count() == len(DEFAULT_FOUNDATIONAL_VEREDICTS)

    def test_seed_is_idempotent(self):
        self.store.seed_defaults()
        assert self.store.seed_defaults() == 0
        assert self.store.count() == len(DEFAULT_FOUNDATIONAL_VEREDICTS)

    def test_load_active_orders_by_scope_then_priority(self):
        self.store.seed_defaults()
        loaded = self.store.load_active()
        keys = [(v.enforcement_scope.value, v.priority) for v in loaded]
        assert keys == sorted(keys)

    def test_upsert_replaces_by_code(self):
        self.store.seed_defaults()
        rule = self.store.get_by_code(rules.REACTIVE_BEHAVIOR)
        self.store.upsert(rule.model_copy(update={"is_active": False, "version": 2}))

        assert self.store.count() == len(DEFAULT_FOUNDATIONAL_VEREDICTS)
        assert self.store.get_by_code(rules.REACTIVE_BEHAVIOR).version == 2
        codes = [v.code for v in self.store.load_active()]
        assert rules.REACTIVE_BEHAVIOR not in codes

    def test_round_trip_fields(self):
        self.store.seed_defaults()
        rule = self.store.get_by_code(rules.CLOSURE_RECOGNITION_RESPONSE)
        assert rule.enforcement_scope == EnforcementScope.POST_RESPONSE
        assert rule.is_active is True
        assert rule.title == "Reconhecimento de fechamento na resposta"

    def test_missing_code(self):
        assert self.store.get_by_code("NOPE") is None
