"""Runtime configuration."""

from pydantic import BaseModel, Field


class PachaiConfig(BaseModel):
    """Configuration for the governance cache, model call and prompt assembly."""

    veredict_cache_ttl_seconds: float = 60.0
    model_name: str = "gpt-4o-mini"
    temperature: float = Field(ge=0.0, le=2.0, default=0.4)
    max_tokens: int = 400
    default_history_messages: int = 8
    pause_history_messages: int = 3
    reopen_history_messages: int = 5
    context_veredict_limit: int = 3
    search_max_results: int = 5
    max_context_chars: int = 10000
    max_change_reason_chars: int = 500
