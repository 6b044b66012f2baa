from fastapi import APIRouter, Depends

from carbon_market.dependencies import get_current_user, get_store
from carbon_market.schemas import PurchaseResponse, UserRecord
from carbon_market.services.policy import Action, authorize
from carbon_market.services.settlement import settle_trade
from carbon_market.storage import Store

router = APIRouter(prefix="/purchases", tags=["marketplace"])


@router.post("/{listing_id}", response_model=PurchaseResponse)
async def purchase_listing(
    listing_id: int,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    authorize(user, Action.purchase_listing)
    receipt = await settle_trade(store, user.organization_id, listing_id)
    return PurchaseResponse(**receipt.model_dump())
