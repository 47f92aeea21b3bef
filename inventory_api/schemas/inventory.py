from typing import Optional
from uuid import UUID

from pydantic import Field, field_validator

from inventory_api.db.inventory.record import QUANTITY_MAX

from .base import CamelModel


class ItemRequest(CamelModel):
    # blank names are rejected by the ledger, inside the batch transaction
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("description")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class ItemSubtractRequest(CamelModel):
    item_id: UUID
    quantity: int = Field(ge=0, le=QUANTITY_MAX)


class UserInventoryResponse(CamelModel):
    item_id: UUID
    name: str
    quantity: int
