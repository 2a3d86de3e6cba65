"""Product workspace, membership roles and the product cognitive context."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ProductRole(str, Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"


class Product(BaseModel):
    id: str
    name: str
    owner_id: str
    created_at: datetime


class ProductContext(BaseModel):
    """
    Consolidated product context. Evolves only through explicit writes,
    each carrying a non-empty change reason.
    """

    id: str
    product_id: str
    content_text: str
    change_reason: str
    updated_by: str
    updated_at: datetime
