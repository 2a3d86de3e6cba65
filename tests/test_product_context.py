"""Tests for the product cognitive context."""

import pytest

from pachai_kernel.context.product_context import (
    create_product_context,
    get_product_context,
    has_product_context,
    should_suggest_context_consolidation,
    update_product_context,
    validate_context_update,
)
from pachai_kernel.conversation.access import AccessPolicy
from pachai_kernel.conversation.store import ConversationStore
from pachai_kernel.errors import Forbidden, NotFound, ValidationError
from pachai_kernel.models.config import PachaiConfig
from pachai_kernel.models.conversation import MessageRole
from pachai_kernel.models.product import ProductRole


class TestValidateContextUpdate:
    def test_valid(self):
        validate_context_update("SaaS de faturamento", "Primeira versão")

    def test_missing_fields(self):
        with pytest.raises(ValidationError):
            validate_context_update("", "motivo")
        with pytest.raises(ValidationError):
            validate_context_update("conteúdo", "  ")
        with pytest.raises(ValidationError):
            validate_context_update("conteúdo", None)

    def test_limits(self):
        config = PachaiConfig(max_context_chars=10, max_change_reason_chars=5)
        with pytest.raises(ValidationError):
            validate_context_update("x" * 11, "ok", config)
        with pytest.raises(ValidationError):
            validate_context_update("ok", "x" * 6, config)
        validate_context_update("x" * 10, "x" * 5, config)


class TestProductContextWrites:
    def setup_method(self):
        self.store = ConversationStore()
        self.access = AccessPolicy(self.store)
        self.product = self.store.create_product("Faturamento", "alice")
        self.store.add_member(self.product.id, "erin", ProductRole.EDITOR)
        self.store.add_member(self.product.id, "vic", ProductRole.VIEWER)

    def teardown_method(self):
        self.store.close()

    def test_create_and_read(self):
        created = create_product_context(
            self.store, self.access, "alice", self.product.id,
            "  SaaS de faturamento para PMEs  ", "Consolidação inicial",
        )
        assert created.content_text == "SaaS de faturamento para PMEs"
        assert created.updated_by == "alice"

        read = get_product_context(self.store, self.access, "vic", self.product.id)
        assert read.content_text == created.content_text
        assert has_product_context(self.store, self.product.id) is True

    def test_create_twice_fails(self):
        create_product_context(self.store, self.access, "alice", self.product.id, "A", "inicial")
        with pytest.raises(ValidationError):
            create_product_context(self.store, self.access, "erin", self.product.id, "B", "de novo")

    def test_update(self):
        created = create_product_context(self.store, self.access, "alice", self.product.id, "A", "inicial")
        updated = update_product_context(
            self.store, self.access, "erin", self.product.id, "B", "Novo segmento"
        )
        assert updated.id == created.id
        assert updated.updated_by == "erin"
        assert self.store.get_product_context(self.product.id).change_reason == "Novo segmento"

    def test_update_without_context(self):
        with pytest.raises(NotFound):
            update_product_context(self.store, self.access, "alice", self.product.id, "B", "motivo")

    def test_viewer_cannot_write(self):
        with pytest.raises(Forbidden):
            create_product_context(self.store, self.access, "vic", self.product.id, "A", "motivo")
        assert has_product_context(self.store, self.product.id) is False

    def test_validation_before_access(self):
        with pytest.raises(ValidationError):
            create_product_context(self.store, self.access, "mallory", self.product.id, "A", "")

    def test_missing_context_reads_none(self):
        assert get_product_context(self.store, self.access, "alice", self.product.id) is None

    def test_outsider_cannot_read(self):
        create_product_context(self.store, self.access, "alice", self.product.id, "A", "inicial")
        with pytest.raises(Forbidden):
            get_product_context(self.store, self.access, "mallory", self.product.id)


class TestConsolidationSuggestion:
    def setup_method(self):
        self.store = ConversationStore()
        self.product = self.store.create_product("Faturamento", "alice")
        self.conversation = self.store.create_conversation(self.product.id)

    def teardown_method(self):
        self.store.close()

    def _say(self, conversation, content):
        self.store.add_message(conversation, MessageRole.USER, content)

    def test_no_messages(self):
        assert should_suggest_context_consolidation(self.store, self.product.id, self.conversation.id) is False

    def test_two_user_messages(self):
        self._say(self.conversation, "Oi")
        assert should_suggest_context_consolidation(self.store, self.product.id, self.conversation.id) is False
        self._say(self.conversation, "Somos um SaaS")
        assert should_suggest_context_consolidation(self.store, self.product.id, self.conversation.id) is True

    def test_single_long_message(self):
        self._say(self.conversation, "x" * 201)
        assert should_suggest_context_consolidation(self.store, self.product.id, self.conversation.id) is True

    def test_not_after_third_conversation(self):
        for _ in range(3):
            self.store.create_conversation(self.product.id)
        late = self.store.list_conversations(self.product.id)[3]
        self._say(late, "Oi")
        self._say(late, "Somos um SaaS")
        assert should_suggest_context_consolidation(self.store, self.product.id, late.id) is False

    def test_not_when_context_exists(self):
        access = AccessPolicy(self.store)
        create_product_context(self.store, access, "alice", self.product.id, "A", "inicial")
        self._say(self.conversation, "Oi")
        self._say(self.conversation, "Somos um SaaS")
        assert should_suggest_context_consolidation(self.store, self.product.id, self.conversation.id) is False
