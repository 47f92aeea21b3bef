from typing import List

from fastapi import APIRouter, Body, Depends, HTTPException, status

from inventory_api.core.auth import current_user, get_services
from inventory_api.core.results import Failure
from inventory_api.routers.errors import http_error
from inventory_api.schemas.inventory import ItemRequest, ItemSubtractRequest, UserInventoryResponse
from inventory_api.services import Services
from inventory_api.services.ledger import ItemEntry
from inventory_api.services.session import Identity

router = APIRouter()


@router.post("/item", response_model=ItemRequest)
async def add_item(
    payload: ItemRequest,
    user: Identity = Depends(current_user),
    services: Services = Depends(get_services),
):
    """Adds a single item to the authenticated user's inventory"""
    result = await services.ledger.add_single_item(user.user_id, payload.name, payload.description)
    if isinstance(result, Failure):
        raise http_error(result)
    return payload


@router.post("/items", response_model=List[ItemRequest])
async def add_items(
    payload: List[ItemRequest],
    user: Identity = Depends(current_user),
    services: Services = Depends(get_services),
):
    """Adds multiple items. If one item is invalid, the entire batch is rolled back."""
    result = await services.ledger.add_batch(
        user.user_id, [ItemEntry(name=p.name, description=p.description) for p in payload]
    )
    if isinstance(result, Failure):
        raise http_error(result)
    return payload


@router.get("/items", response_model=List[UserInventoryResponse])
async def get_inventory(
    user: Identity = Depends(current_user),
    services: Services = Depends(get_services),
):
    """Fetches the authenticated user's inventory, zero quantities included"""
    result = await services.ledger.get_user_inventory(user.user_id)
    if isinstance(result, Failure):
        raise http_error(result)
    if not result.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inventory is empty")
    return [UserInventoryResponse.model_validate(entry) for entry in result.value]


@router.delete("/item", response_model=List[UserInventoryResponse])
async def subtract_item(
    payload: ItemSubtractRequest = Body(...),
    user: Identity = Depends(current_user),
    services: Services = Depends(get_services),
):
    """Subtracts an item from the authenticated user's inventory, never below zero"""
    result = await services.ledger.subtract_item(user.user_id, payload.item_id, payload.quantity)
    if isinstance(result, Failure):
        raise http_error(result)
    if not result.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inventory is empty")
    return [UserInventoryResponse.model_validate(entry) for entry in result.value]
