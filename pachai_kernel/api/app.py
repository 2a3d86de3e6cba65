"""
Pachai Kernel API: FastAPI endpoints.

Exposes the kernel's functionality via a REST API for:
- Products and product membership
- Conversations, turns and the pause/resume lifecycle
- Veredict recording
- Product context
- Foundational Veredict governance (rules, cache, audit, evaluation)
- Runtime configuration

The authenticated actor id arrives in the X-User-Id header.
"""

from typing import Optional

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pachai_kernel.audit.store import AuditStore
from pachai_kernel.context import product_context as context_service
from pachai_kernel.conversation.access import AccessPolicy
from pachai_kernel.conversation.store import ConversationStore
from pachai_kernel.errors import (
    Forbidden,
    GovernanceBlocked,
    NotFound,
    PachaiError,
    Unauthorized,
    UpstreamFailure,
    ValidationError,
)
from pachai_kernel.governance.cache import VeredictCache
from pachai_kernel.governance.engine import FoundationalGovernanceEngine
from pachai_kernel.governance.rule_store import RuleStore
from pachai_kernel.lifecycle.manager import ConversationLifecycleManager
from pachai_kernel.llm.client import CompletionClient, OpenAICompletionClient
from pachai_kernel.models.config import PachaiConfig
from pachai_kernel.models.governance import EnforcementScope, GovernanceInput
from pachai_kernel.models.product import ProductRole
from pachai_kernel.runtime.pipeline import PachaiRuntime
from pachai_kernel.search.execution import SearchProvider, TavilySearchProvider
from pachai_kernel.veredicts import service as veredict_service


# --- Request/Response Models ---

class ProductCreateRequest(BaseModel):
    name: str


class MemberAddRequest(BaseModel):
    user_id: str
    role: ProductRole = ProductRole.VIEWER


class ConversationCreateRequest(BaseModel):
    title: Optional[str] = None


class TurnRequest(BaseModel):
    message: str
    pause_requested: Optional[bool] = None
    confirmed_search_query: Optional[str] = None


class VeredictCreateRequest(BaseModel):
    product_id: str
    conversation_id: str
    pain: str
    value: str
    notes: Optional[str] = None
    title: Optional[str] = None


class ProductContextRequest(BaseModel):
    content_text: str
    change_reason: str


class EvaluateRequest(BaseModel):
    phase: EnforcementScope
    input: GovernanceInput


ERROR_STATUS = {
    Unauthorized: 401,
    Forbidden: 403,
    NotFound: 404,
    ValidationError: 400,
    GovernanceBlocked: 409,
    UpstreamFailure: 502,
}


# --- Application Factory ---

def create_app(
    conversation_store: Optional[ConversationStore] = None,
    rule_store: Optional[RuleStore] = None,
    audit_store: Optional[AuditStore] = None,
    completion_client: Optional[CompletionClient] = None,
    search_provider: Optional[SearchProvider] = None,
    config: Optional[PachaiConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Pachai Kernel API",
        description="Pachai: conversational governance for product decisions",
        version="0.1.0-alpha",
    )

    # Initialize components
    cfg = config or PachaiConfig()
    cs = conversation_store or ConversationStore()
    if rule_store is None:
        rule_store = RuleStore()
        rule_store.seed_defaults()
    rs = rule_store
    aus = audit_store or AuditStore()
    access = AccessPolicy(cs)
    lifecycle = ConversationLifecycleManager(cs, access)
    cache = VeredictCache(rs.load_active, ttl_seconds=cfg.veredict_cache_ttl_seconds)
    governance = FoundationalGovernanceEngine(cache, aus)
    llm = completion_client or OpenAICompletionClient(cfg)
    search = search_provider if search_provider is not None else TavilySearchProvider.from_env()

    runtime = PachaiRuntime(
        store=cs,
        access=access,
        lifecycle=lifecycle,
        governance=governance,
        completion_client=llm,
        search_provider=search,
        config=cfg,
    )

    # Store components on app state for access in endpoints
    app.state.conversation_store = cs
    app.state.rule_store = rs
    app.state.audit_store = aus
    app.state.access = access
    app.state.lifecycle = lifecycle
    app.state.governance = governance
    app.state.runtime = runtime

    @app.exception_handler(PachaiError)
    async def handle_pachai_error(request: Request, exc: PachaiError):
        status = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500
        )
        body = {"detail": str(exc)}
        if isinstance(exc, GovernanceBlocked):
            body["violations"] = [v.model_dump(mode="json") for v in exc.violations]
        return JSONResponse(status_code=status, content=body)

    # === PRODUCTS ===

    @app.post("/products")
    def create_product(req: ProductCreateRequest, x_user_id: Optional[str] = Header(default=None)):
        """Create a product owned by the actor."""
        actor = access.require_actor(x_user_id)
        if not req.name.strip():
            raise ValidationError("name is required")
        return cs.create_product(req.name.strip(), actor).model_dump(mode="json")

    @app.get("/products")
    def list_products(x_user_id: Optional[str] = Header(default=None)):
        """Products the actor is a member of."""
        actor = access.require_actor(x_user_id)
        return [p.model_dump(mode="json") for p in cs.list_products_for_user(actor)]

    @app.get("/products/{product_id}")
    def get_product(product_id: str, x_user_id: Optional[str] = Header(default=None)):
        product = access.require_product_role(x_user_id, product_id)
        return product.model_dump(mode="json")

    @app.post("/products/{product_id}/members")
    def add_member(
        product_id: str,
        req: MemberAddRequest,
        x_user_id: Optional[str] = Header(default=None),
    ):
        """Grant a role on the product (owner only)."""
        access.require_product_role(x_user_id, product_id, allowed=[ProductRole.OWNER])
        cs.add_member(product_id, req.user_id, req.role)
        return {"product_id": product_id, "user_id": req.user_id, "role": req.role.value}

    # === CONVERSATIONS ===

    @app.post("/products/{product_id}/conversations")
    def create_conversation(
        product_id: str,
        req: ConversationCreateRequest,
        x_user_id: Optional[str] = Header(default=None),
    ):
        access.require_product_role(x_user_id, product_id)
        return cs.create_conversation(product_id, req.title).model_dump(mode="json")

    @app.get("/products/{product_id}/conversations")
    def list_conversations(product_id: str, x_user_id: Optional[str] = Header(default=None)):
        access.require_product_role(x_user_id, product_id)
        return [c.model_dump(mode="json") for c in cs.list_conversations(product_id)]

    @app.get("/conversations/{conversation_id}")
    def get_conversation(conversation_id: str, x_user_id: Optional[str] = Header(default=None)):
        conversation = access.require_conversation_access(x_user_id, conversation_id)
        return conversation.model_dump(mode="json")

    @app.get("/conversations/{conversation_id}/messages")
    def list_messages(conversation_id: str, x_user_id: Optional[str] = Header(default=None)):
        access.require_conversation_access(x_user_id, conversation_id)
        return [m.model_dump(mode="json") for m in cs.list_messages(conversation_id)]

    @app.post("/conversations/{conversation_id}/turns")
    def run_turn(
        conversation_id: str,
        req: TurnRequest,
        x_user_id: Optional[str] = Header(default=None),
    ):
        """Run one user turn through the governed pipeline."""
        result = runtime.run_turn(
            actor_id=x_user_id,
            conversation_id=conversation_id,
            user_message=req.message,
            pause_requested=req.pause_requested,
            confirmed_search_query=req.confirmed_search_query,
        )
        return result.model_dump(mode="json")

    @app.post("/conversations/{conversation_id}/pause")
    def pause_conversation(conversation_id: str, x_user_id: Optional[str] = Header(default=None)):
        return lifecycle.pause_conversation(x_user_id, conversation_id).model_dump(mode="json")

    @app.post("/conversations/{conversation_id}/resume")
    def resume_conversation(conversation_id: str, x_user_id: Optional[str] = Header(default=None)):
        return lifecycle.resume_conversation(x_user_id, conversation_id).model_dump(mode="json")

    # === VEREDICTS ===

    @app.post("/veredicts")
    def create_veredict(req: VeredictCreateRequest, x_user_id: Optional[str] = Header(default=None)):
        """Record a user-confirmed veredict."""
        veredict = veredict_service.create_veredict(
            cs,
            access,
            x_user_id,
            product_id=req.product_id,
            conversation_id=req.conversation_id,
            pain=req.pain,
            value=req.value,
            notes=req.notes,
            title=req.title,
        )
        return veredict.model_dump(mode="json")

    @app.get("/products/{product_id}/veredicts")
    def list_veredicts(product_id: str, x_user_id: Optional[str] = Header(default=None)):
        veredicts = veredict_service.list_veredicts(cs, access, x_user_id, product_id)
        return [v.model_dump(mode="json") for v in veredicts]

    # === PRODUCT CONTEXT ===

    @app.get("/products/{product_id}/context")
    def get_product_context(product_id: str, x_user_id: Optional[str] = Header(default=None)):
        context = context_service.get_product_context(cs, access, x_user_id, product_id)
        if context is None:
            raise HTTPException(404, "Product context not found")
        return context.model_dump(mode="json")

    @app.put("/products/{product_id}/context")
    def put_product_context(
        product_id: str,
        req: ProductContextRequest,
        x_user_id: Optional[str] = Header(default=None),
    ):
        """Create the product context, or update it when one exists."""
        write = (
            context_service.update_product_context
            if context_service.has_product_context(cs, product_id)
            else context_service.create_product_context
        )
        context = write(
            cs,
            access,
            x_user_id,
            product_id,
            req.content_text,
            req.change_reason,
            runtime.config,
        )
        return context.model_dump(mode="json")

    # === GOVERNANCE ===

    @app.get("/governance/veredicts")
    def get_foundational_veredicts(x_user_id: Optional[str] = Header(default=None)):
        """All active Foundational Veredicts."""
        access.require_actor(x_user_id)
        return [v.model_dump(mode="json") for v in governance.active_veredicts()]

    @app.post("/governance/cache/clear")
    def clear_governance_cache(x_user_id: Optional[str] = Header(default=None)):
        access.require_actor(x_user_id)
        governance.clear_veredicts_cache()
        return {"status": "cleared"}

    @app.get("/governance/audit")
    def get_audit(
        conversation_id: Optional[str] = None,
        limit: int = 50,
        x_user_id: Optional[str] = Header(default=None),
    ):
        """Recent violations, optionally for one conversation."""
        access.require_actor(x_user_id)
        if conversation_id:
            entries = aus.query_by_conversation(conversation_id)
        else:
            entries = aus.query_recent(limit=limit)
        return [e.model_dump(mode="json") for e in entries]

    @app.post("/governance/evaluate")
    def evaluate(req: EvaluateRequest, x_user_id: Optional[str] = Header(default=None)):
        """Manual checkpoint evaluation (for testing)."""
        access.require_actor(x_user_id)
        result = governance.apply_foundational_veredicts(req.phase, req.input)
        return result.model_dump(mode="json")

    # === CONFIG ===

    @app.get("/config")
    def get_config(x_user_id: Optional[str] = Header(default=None)):
        access.require_actor(x_user_id)
        return runtime.config.model_dump()

    @app.put("/config")
    def update_config(new_config: PachaiConfig, x_user_id: Optional[str] = Header(default=None)):
        """Replace the runtime configuration."""
        access.require_actor(x_user_id)
        runtime.config = new_config
        cache.ttl_seconds = new_config.veredict_cache_ttl_seconds
        if isinstance(llm, OpenAICompletionClient):
            llm.config = new_config
        return new_config.model_dump()

    return app


# Default application instance
app = create_app()
