from fastapi import APIRouter, Depends, status

from carbon_market.dependencies import get_current_user, get_store
from carbon_market.schemas import CommuteLogCreateRequest, CommuteLogRecord, UserRecord
from carbon_market.services import commutes
from carbon_market.storage import Store

router = APIRouter(prefix="/commute-logs", tags=["commute-logs"])


@router.post("", response_model=CommuteLogRecord, status_code=status.HTTP_201_CREATED)
async def create_commute_log(
    req: CommuteLogCreateRequest,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return await commutes.log_commute(store, user, req.date, req.method)


@router.get("", response_model=list[CommuteLogRecord])
async def list_commute_logs(
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return await commutes.list_commute_logs(store, user)
