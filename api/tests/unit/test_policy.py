from datetime import datetime, timezone

import pytest

from carbon_market.exceptions import UnauthorizedError
from carbon_market.schemas import UserRecord, UserRole, UserStatus
from carbon_market.services.policy import Action, authorize


def _user(user_id=1, role=UserRole.employee, organization_id=10, status=UserStatus.approved):
    return UserRecord(
        id=user_id,
        username=f"user{user_id}",
        password_hash="x",
        name="User",
        role=role,
        organization_id=organization_id,
        status=status,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


SYSTEM_ADMIN = _user(1, UserRole.system_admin, organization_id=None)
ORG_ADMIN = _user(2, UserRole.org_admin, organization_id=10)
NEW_ORG_ADMIN = _user(3, UserRole.org_admin, organization_id=None)
EMPLOYEE = _user(4, UserRole.employee, organization_id=10)
PENDING_EMPLOYEE = _user(5, UserRole.employee, organization_id=10, status=UserStatus.pending)
OUTSIDER = _user(6, UserRole.employee, organization_id=20)


@pytest.mark.parametrize(
    "actor, action, resource",
    [
        (SYSTEM_ADMIN, Action.review_organizations, None),
        (NEW_ORG_ADMIN, Action.register_organization, None),
        (SYSTEM_ADMIN, Action.view_organization, 10),
        (EMPLOYEE, Action.view_organization, 10),
        (ORG_ADMIN, Action.approve_user, PENDING_EMPLOYEE),
        (ORG_ADMIN, Action.list_pending_users, None),
        (EMPLOYEE, Action.set_commute_distance, EMPLOYEE.id),
        (EMPLOYEE, Action.log_commute, None),
        (PENDING_EMPLOYEE, Action.view_commute_logs, None),
        (OUTSIDER, Action.view_listings, None),
        (ORG_ADMIN, Action.create_listing, None),
        (ORG_ADMIN, Action.purchase_listing, None),
    ],
)
def test_allowed(actor, action, resource):
    authorize(actor, action, resource)


@pytest.mark.parametrize(
    "actor, action, resource",
    [
        (ORG_ADMIN, Action.review_organizations, None),
        (EMPLOYEE, Action.review_organizations, None),
        (ORG_ADMIN, Action.register_organization, None),
        (EMPLOYEE, Action.register_organization, None),
        (OUTSIDER, Action.view_organization, 10),
        (ORG_ADMIN, Action.approve_user, OUTSIDER),
        (ORG_ADMIN, Action.approve_user, NEW_ORG_ADMIN),
        (EMPLOYEE, Action.approve_user, PENDING_EMPLOYEE),
        (NEW_ORG_ADMIN, Action.list_pending_users, None),
        (SYSTEM_ADMIN, Action.set_commute_distance, EMPLOYEE.id),
        (PENDING_EMPLOYEE, Action.log_commute, None),
        (ORG_ADMIN, Action.log_commute, None),
        (EMPLOYEE, Action.create_listing, None),
        (NEW_ORG_ADMIN, Action.create_listing, None),
        (SYSTEM_ADMIN, Action.purchase_listing, None),
    ],
)
def test_denied(actor, action, resource):
    with pytest.raises(UnauthorizedError):
        authorize(actor, action, resource)


def test_anonymous_denied():
    with pytest.raises(UnauthorizedError):
        authorize(None, Action.view_listings)
