"""Account registration, login and employee approval."""
from typing import List, Optional

import structlog

from carbon_market.dependencies import hash_password, verify_password
from carbon_market.exceptions import (
    InvalidOrganizationError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
)
from carbon_market.schemas import UserRecord, UserRole, UserStatus
from carbon_market.services.policy import Action, authorize
from carbon_market.storage import Store

logger = structlog.get_logger()


async def register_user(
    store: Store,
    *,
    username: str,
    password: str,
    name: str,
    role: UserRole,
    organization_id: Optional[int] = None,
) -> UserRecord:
    role = UserRole(role)
    if role == UserRole.system_admin:
        raise UnauthorizedError("System admin accounts cannot be self-registered")
    if role == UserRole.org_admin and organization_id is not None:
        raise InvalidRequestError(
            "Organization admins register their organization after signing up"
        )

    async with store.transaction() as session:
        if organization_id is not None:
            if await session.get_organization(organization_id) is None:
                raise InvalidOrganizationError(f"Organization {organization_id} does not exist")
        user = await session.create_user(
            username=username,
            password_hash=hash_password(password),
            name=name,
            role=role,
            status=UserStatus.pending,
            organization_id=organization_id,
        )

    logger.info("users: registered", user_id=user.id, role=role.value, organization_id=organization_id)
    return user


async def authenticate(store: Store, username: str, password: str) -> Optional[UserRecord]:
    async with store.transaction() as session:
        user = await session.get_user_by_username(username)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("users: login failed", username=username)
        return None
    return user


async def get_user(store: Store, user_id: int) -> Optional[UserRecord]:
    async with store.transaction() as session:
        return await session.get_user(user_id)


async def approve_user(store: Store, actor: UserRecord, user_id: int) -> UserRecord:
    async with store.transaction() as session:
        user = await session.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        authorize(actor, Action.approve_user, user)
        user = await session.update_user(user_id, status=UserStatus.approved)

    logger.info("users: approved", user_id=user_id, approved_by=actor.id)
    return user


async def list_pending_users(store: Store, actor: UserRecord) -> List[UserRecord]:
    authorize(actor, Action.list_pending_users)
    async with store.transaction() as session:
        return await session.list_users(
            organization_id=actor.organization_id, status=UserStatus.pending
        )


async def ensure_system_admin(store: Store, username: str, password: str, name: str) -> UserRecord:
    """Create the bootstrap system administrator unless it already exists."""
    async with store.transaction() as session:
        admin = await session.get_user_by_username(username)
        if admin is not None:
            return admin
        admin = await session.create_user(
            username=username,
            password_hash=hash_password(password),
            name=name,
            role=UserRole.system_admin,
            status=UserStatus.approved,
        )
    logger.info("users: bootstrap admin created", user_id=admin.id, username=username)
    return admin
