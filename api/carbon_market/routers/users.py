from fastapi import APIRouter, Depends

from carbon_market.config import get_settings
from carbon_market.dependencies import get_current_user, get_store
from carbon_market.schemas import CommuteDistanceRequest, UserRecord, UserResponse
from carbon_market.services import commutes
from carbon_market.services import users as user_service
from carbon_market.storage import Store

router = APIRouter(prefix="/users", tags=["users"])
settings = get_settings()


@router.get("", response_model=list[UserResponse])
async def list_pending_users(
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    """Employees of the caller's organization still awaiting approval."""
    return await user_service.list_pending_users(store, user)


@router.patch("/{user_id}/approve", response_model=UserResponse)
async def approve_user(
    user_id: int,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return await user_service.approve_user(store, user, user_id)


@router.patch("/{user_id}/commute-distance", response_model=UserResponse)
async def set_commute_distance(
    user_id: int,
    req: CommuteDistanceRequest,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return await commutes.set_commute_distance(
        store, user, user_id, req.commute_distance, settings.MAX_COMMUTE_DISTANCE
    )
