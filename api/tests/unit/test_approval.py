from decimal import Decimal

import pytest

from carbon_market.exceptions import (
    InvalidRequestError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
)
from carbon_market.schemas import OrganizationStatus, UserRole, UserStatus
from carbon_market.services import approval, users


@pytest.fixture
def registered_org(store, make_user):
    """An org admin who has just registered a pending organization."""

    async def _registered_org(name="Acme"):
        admin = await make_user(role=UserRole.org_admin, status=UserStatus.pending)
        org = await approval.register_organization(
            store, admin, name=name, address="1 Main St", starting_balance=Decimal("1000")
        )
        return admin, org

    return _registered_org


class TestRegisterOrganization:
    @pytest.mark.asyncio
    async def test_new_organization_is_pending(self, store, registered_org):
        _, org = await registered_org()

        assert org.status == OrganizationStatus.pending
        assert org.virtual_balance == Decimal("1000.00")
        assert org.total_credits == Decimal("0.00")
        assert org.rejection_reason is None

    @pytest.mark.asyncio
    async def test_admin_linked_and_approved(self, store, registered_org):
        admin, org = await registered_org()

        linked = await users.get_user(store, admin.id)

        assert linked.organization_id == org.id
        assert linked.status == UserStatus.approved

    @pytest.mark.asyncio
    async def test_admin_cannot_register_twice(self, store, registered_org):
        admin, _ = await registered_org()
        admin = await users.get_user(store, admin.id)

        with pytest.raises(UnauthorizedError):
            await approval.register_organization(
                store, admin, name="Second", address="2 Main St", starting_balance=Decimal("1")
            )

    @pytest.mark.asyncio
    async def test_employees_cannot_register(self, store, make_user):
        employee = await make_user(role=UserRole.employee)

        with pytest.raises(UnauthorizedError):
            await approval.register_organization(
                store, employee, name="Nope", address="x", starting_balance=Decimal("1")
            )


class TestReview:
    @pytest.mark.asyncio
    async def test_approve(self, store, system_admin, registered_org):
        _, org = await registered_org()

        approved = await approval.approve_organization(store, system_admin, org.id)

        assert approved.status == OrganizationStatus.approved

    @pytest.mark.asyncio
    async def test_reject_records_reason(self, store, system_admin, registered_org):
        _, org = await registered_org()

        rejected = await approval.reject_organization(
            store, system_admin, org.id, "incomplete info"
        )

        assert rejected.status == OrganizationStatus.rejected
        assert rejected.rejection_reason == "incomplete info"

    @pytest.mark.asyncio
    async def test_rejection_does_not_touch_members(self, store, system_admin, registered_org):
        admin, org = await registered_org()

        await approval.reject_organization(store, system_admin, org.id, "incomplete info")

        assert (await users.get_user(store, admin.id)).status == UserStatus.approved

    @pytest.mark.asyncio
    async def test_blank_reason_rejected(self, store, system_admin, registered_org):
        _, org = await registered_org()

        with pytest.raises(InvalidRequestError):
            await approval.reject_organization(store, system_admin, org.id, "   ")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("first", ["approve", "reject"])
    async def test_review_happens_once(self, store, system_admin, registered_org, first):
        _, org = await registered_org()
        if first == "approve":
            await approval.approve_organization(store, system_admin, org.id)
        else:
            await approval.reject_organization(store, system_admin, org.id, "duplicate")

        with pytest.raises(InvalidTransitionError):
            await approval.approve_organization(store, system_admin, org.id)
        with pytest.raises(InvalidTransitionError):
            await approval.reject_organization(store, system_admin, org.id, "again")

    @pytest.mark.asyncio
    async def test_only_system_admin_reviews(self, store, registered_org):
        admin, org = await registered_org()
        admin = await users.get_user(store, admin.id)

        with pytest.raises(UnauthorizedError):
            await approval.approve_organization(store, admin, org.id)
        with pytest.raises(UnauthorizedError):
            await approval.reject_organization(store, admin, org.id, "no")

    @pytest.mark.asyncio
    async def test_unknown_organization(self, store, system_admin):
        with pytest.raises(NotFoundError):
            await approval.approve_organization(store, system_admin, 321)


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, store, system_admin, registered_org):
        _, first = await registered_org("First")
        _, second = await registered_org("Second")
        await approval.approve_organization(store, system_admin, first.id)

        pending = await approval.list_organizations(
            store, system_admin, status=OrganizationStatus.pending
        )
        everything = await approval.list_organizations(store, system_admin)

        assert [org.id for org in pending] == [second.id]
        assert [org.id for org in everything] == [first.id, second.id]

    @pytest.mark.asyncio
    async def test_members_can_view_their_organization(self, store, registered_org, make_user):
        admin, org = await registered_org()
        _, other = await registered_org("Other")
        admin = await users.get_user(store, admin.id)

        assert (await approval.get_organization(store, admin, org.id)).id == org.id
        with pytest.raises(UnauthorizedError):
            await approval.get_organization(store, admin, other.id)

    @pytest.mark.asyncio
    async def test_list_requires_system_admin(self, store, make_user):
        employee = await make_user()

        with pytest.raises(UnauthorizedError):
            await approval.list_organizations(store, employee)
