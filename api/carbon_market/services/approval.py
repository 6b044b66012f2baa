"""Organization onboarding: pending -> approved | rejected, once."""
from decimal import Decimal
from typing import List, Optional

import structlog

from carbon_market.exceptions import (
    InvalidRequestError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
)
from carbon_market.schemas import OrganizationRecord, OrganizationStatus, UserRecord, UserStatus
from carbon_market.services.policy import Action, authorize
from carbon_market.storage import Store

logger = structlog.get_logger()


async def register_organization(
    store: Store,
    actor: UserRecord,
    *,
    name: str,
    address: str,
    starting_balance: Decimal,
    description: Optional[str] = None,
) -> OrganizationRecord:
    """Create the admin's organization and link the admin to it.

    The admin's own account is approved together with the registration; the
    organization itself stays pending until a system admin reviews it.
    """
    authorize(actor, Action.register_organization)
    async with store.transaction() as session:
        admin = await session.get_user(actor.id)
        if admin is None or admin.organization_id is not None:
            raise UnauthorizedError("Organization already registered for this account")
        org = await session.create_organization(
            name=name,
            address=address,
            description=description,
            virtual_balance=starting_balance,
        )
        await session.update_user(
            actor.id, organization_id=org.id, status=UserStatus.approved
        )

    logger.info("organizations: registered", organization_id=org.id, admin_id=actor.id)
    return org


async def _review(
    store: Store,
    org_id: int,
    status: OrganizationStatus,
    reason: Optional[str] = None,
) -> OrganizationRecord:
    async with store.transaction() as session:
        org = await session.get_organization(org_id)
        if org is None:
            raise NotFoundError(f"Organization {org_id} not found")
        if org.status != OrganizationStatus.pending:
            logger.warning(
                "organizations: review rejected",
                organization_id=org_id,
                current_status=org.status.value,
                requested_status=status.value,
            )
            raise InvalidTransitionError(
                f"Organization {org_id} is already {org.status.value}"
            )
        org = await session.update_organization(
            org_id, status=status, rejection_reason=reason
        )

    logger.info("organizations: reviewed", organization_id=org_id, status=status.value)
    return org


async def approve_organization(store: Store, actor: UserRecord, org_id: int) -> OrganizationRecord:
    authorize(actor, Action.review_organizations)
    return await _review(store, org_id, OrganizationStatus.approved)


async def reject_organization(
    store: Store, actor: UserRecord, org_id: int, reason: str
) -> OrganizationRecord:
    authorize(actor, Action.review_organizations)
    reason = (reason or "").strip()
    if not reason:
        raise InvalidRequestError("A rejection reason is required")
    return await _review(store, org_id, OrganizationStatus.rejected, reason)


async def list_organizations(
    store: Store, actor: UserRecord, status: Optional[OrganizationStatus] = None
) -> List[OrganizationRecord]:
    authorize(actor, Action.review_organizations)
    async with store.transaction() as session:
        return await session.list_organizations(status=status)


async def get_organization(store: Store, actor: UserRecord, org_id: int) -> OrganizationRecord:
    authorize(actor, Action.view_organization, org_id)
    async with store.transaction() as session:
        org = await session.get_organization(org_id)
    if org is None:
        raise NotFoundError(f"Organization {org_id} not found")
    return org
