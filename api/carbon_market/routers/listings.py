from fastapi import APIRouter, Depends, status

from carbon_market.dependencies import get_current_user, get_store
from carbon_market.schemas import ListingCreateRequest, ListingRecord, UserRecord
from carbon_market.services import listings as listing_service
from carbon_market.services.policy import Action, authorize
from carbon_market.storage import Store

router = APIRouter(prefix="/listings", tags=["marketplace"])


@router.post("", response_model=ListingRecord, status_code=status.HTTP_201_CREATED)
async def create_listing(
    req: ListingCreateRequest,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    authorize(user, Action.create_listing)
    return await listing_service.create_listing(
        store, user.organization_id, req.credits_amount, req.price_per_credit
    )


@router.get("", response_model=list[ListingRecord])
async def list_active_listings(
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    authorize(user, Action.view_listings)
    return await listing_service.list_active(store)
