"""Veredict (decision sense): a user-confirmed pain/value record."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Veredict(BaseModel):
    """
    A persisted decision record tied to a product.

    Created only through the explicit confirmation flow, never synthesized
    by the agent. `version` is a strictly increasing per-product sequence.
    """

    id: str
    product_id: str
    conversation_id: str
    pain: str
    value: str
    notes: Optional[str] = None
    version: int = Field(ge=1)
    created_at: datetime


class VeredictSignal(BaseModel):
    """Suggests asking about a veredict. Never records one by itself."""

    detected: bool
    suggested_title: Optional[str] = None
