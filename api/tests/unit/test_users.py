import pytest

from carbon_market.exceptions import (
    DuplicateUsernameError,
    InvalidOrganizationError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
)
from carbon_market.schemas import UserRole, UserStatus
from carbon_market.services import users


class TestRegisterUser:
    @pytest.mark.asyncio
    async def test_employee_joins_existing_org_as_pending(self, store, make_org):
        org = await make_org()

        user = await users.register_user(
            store,
            username="dana",
            password="hunter22",
            name="Dana",
            role=UserRole.employee,
            organization_id=org.id,
        )

        assert user.status == UserStatus.pending
        assert user.organization_id == org.id
        assert user.password_hash != "hunter22"

    @pytest.mark.asyncio
    async def test_unknown_organization(self, store):
        with pytest.raises(InvalidOrganizationError):
            await users.register_user(
                store,
                username="dana",
                password="hunter22",
                name="Dana",
                role=UserRole.employee,
                organization_id=99,
            )

    @pytest.mark.asyncio
    async def test_system_admin_not_self_service(self, store):
        with pytest.raises(UnauthorizedError):
            await users.register_user(
                store, username="boss", password="hunter22", name="Boss", role=UserRole.system_admin
            )

    @pytest.mark.asyncio
    async def test_org_admin_starts_without_organization(self, store, make_org):
        org = await make_org()

        with pytest.raises(InvalidRequestError):
            await users.register_user(
                store,
                username="owner",
                password="hunter22",
                name="Owner",
                role=UserRole.org_admin,
                organization_id=org.id,
            )

        admin = await users.register_user(
            store, username="owner", password="hunter22", name="Owner", role=UserRole.org_admin
        )
        assert admin.organization_id is None

    @pytest.mark.asyncio
    async def test_duplicate_username(self, store):
        await users.register_user(
            store, username="dana", password="hunter22", name="Dana", role=UserRole.employee
        )

        with pytest.raises(DuplicateUsernameError):
            await users.register_user(
                store, username="dana", password="other22", name="Other", role=UserRole.employee
            )


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_valid_and_invalid_credentials(self, store, make_user):
        user = await make_user(username="erin")

        assert (await users.authenticate(store, "erin", "secret123")).id == user.id
        assert await users.authenticate(store, "erin", "wrong") is None
        assert await users.authenticate(store, "nobody", "secret123") is None


class TestApproveUser:
    @pytest.mark.asyncio
    async def test_admin_approves_own_employee(self, store, make_org, make_user):
        org = await make_org()
        admin = await make_user(role=UserRole.org_admin, organization_id=org.id)
        employee = await make_user(organization_id=org.id, status=UserStatus.pending)

        approved = await users.approve_user(store, admin, employee.id)

        assert approved.status == UserStatus.approved

    @pytest.mark.asyncio
    async def test_other_organization_refused(self, store, make_org, make_user):
        mine = await make_org(name="Mine")
        theirs = await make_org(name="Theirs")
        admin = await make_user(role=UserRole.org_admin, organization_id=mine.id)
        employee = await make_user(organization_id=theirs.id, status=UserStatus.pending)

        with pytest.raises(UnauthorizedError):
            await users.approve_user(store, admin, employee.id)

        assert (await users.get_user(store, employee.id)).status == UserStatus.pending

    @pytest.mark.asyncio
    async def test_employees_cannot_approve(self, store, make_org, make_user):
        org = await make_org()
        colleague = await make_user(organization_id=org.id)
        employee = await make_user(organization_id=org.id, status=UserStatus.pending)

        with pytest.raises(UnauthorizedError):
            await users.approve_user(store, colleague, employee.id)

    @pytest.mark.asyncio
    async def test_unknown_user(self, store, make_org, make_user):
        org = await make_org()
        admin = await make_user(role=UserRole.org_admin, organization_id=org.id)

        with pytest.raises(NotFoundError):
            await users.approve_user(store, admin, 500)


class TestPendingUsers:
    @pytest.mark.asyncio
    async def test_only_own_pending_employees(self, store, make_org, make_user):
        org = await make_org(name="Mine")
        other = await make_org(name="Other")
        admin = await make_user(role=UserRole.org_admin, organization_id=org.id)
        waiting = await make_user(organization_id=org.id, status=UserStatus.pending)
        await make_user(organization_id=org.id)
        await make_user(organization_id=other.id, status=UserStatus.pending)

        pending = await users.list_pending_users(store, admin)

        assert [user.id for user in pending] == [waiting.id]

    @pytest.mark.asyncio
    async def test_requires_org_admin(self, store, make_user):
        with pytest.raises(UnauthorizedError):
            await users.list_pending_users(store, await make_user())


class TestBootstrapAdmin:
    @pytest.mark.asyncio
    async def test_created_once(self, store):
        first = await users.ensure_system_admin(store, "admin", "admin123", "Administrator")
        second = await users.ensure_system_admin(store, "admin", "changed", "Someone Else")

        assert first.id == second.id
        assert first.role == UserRole.system_admin
        assert first.status == UserStatus.approved
        assert (await users.authenticate(store, "admin", "admin123")) is not None
