from typing import Optional

from fastapi import APIRouter, Depends, status

from carbon_market.config import get_settings
from carbon_market.dependencies import get_current_user, get_store
from carbon_market.schemas import (
    OrganizationCreateRequest, OrganizationRecord, OrganizationRejectRequest,
    OrganizationStatus, UserRecord,
)
from carbon_market.services import approval
from carbon_market.storage import Store

router = APIRouter(prefix="/organizations", tags=["organizations"])
settings = get_settings()


@router.post("", response_model=OrganizationRecord, status_code=status.HTTP_201_CREATED)
async def register_organization(
    req: OrganizationCreateRequest,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return await approval.register_organization(
        store,
        user,
        name=req.name,
        address=req.address,
        description=req.description,
        starting_balance=settings.STARTING_VIRTUAL_BALANCE,
    )


@router.get("", response_model=list[OrganizationRecord])
async def list_organizations(
    status: Optional[OrganizationStatus] = None,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return await approval.list_organizations(store, user, status)


@router.get("/{org_id}", response_model=OrganizationRecord)
async def get_organization(
    org_id: int,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return await approval.get_organization(store, user, org_id)


@router.patch("/{org_id}/approve", response_model=OrganizationRecord)
async def approve_organization(
    org_id: int,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return await approval.approve_organization(store, user, org_id)


@router.patch("/{org_id}/reject", response_model=OrganizationRecord)
async def reject_organization(
    org_id: int,
    req: OrganizationRejectRequest,
    user: UserRecord = Depends(get_current_user),
    store: Store = Depends(get_store),
):
    return await approval.reject_organization(store, user, org_id, req.reason)
