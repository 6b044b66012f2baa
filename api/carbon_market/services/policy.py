"""
Central capability checks.

Routes and services never compare role strings themselves; they call
authorize(actor, action, resource) and let it raise UnauthorizedError.
"""
from enum import Enum

import structlog

from carbon_market.exceptions import UnauthorizedError
from carbon_market.schemas import UserRecord, UserRole, UserStatus

logger = structlog.get_logger()


class Action(str, Enum):
    register_organization = "register_organization"
    review_organizations = "review_organizations"
    view_organization = "view_organization"
    approve_user = "approve_user"
    list_pending_users = "list_pending_users"
    set_commute_distance = "set_commute_distance"
    log_commute = "log_commute"
    view_commute_logs = "view_commute_logs"
    create_listing = "create_listing"
    view_listings = "view_listings"
    purchase_listing = "purchase_listing"


def _org_admin_with_org(actor: UserRecord) -> bool:
    return actor.role == UserRole.org_admin and actor.organization_id is not None


def _is_allowed(actor: UserRecord, action: Action, resource) -> bool:
    if action == Action.review_organizations:
        return actor.role == UserRole.system_admin
    if action == Action.register_organization:
        return actor.role == UserRole.org_admin and actor.organization_id is None
    if action == Action.view_organization:
        # resource: the organization id being viewed
        return actor.role == UserRole.system_admin or actor.organization_id == resource
    if action == Action.approve_user:
        # resource: the user being approved
        return (
            _org_admin_with_org(actor)
            and resource.role == UserRole.employee
            and resource.organization_id == actor.organization_id
        )
    if action == Action.list_pending_users:
        return _org_admin_with_org(actor)
    if action == Action.set_commute_distance:
        # resource: the user id whose distance is set
        return actor.id == resource
    if action == Action.log_commute:
        return actor.role == UserRole.employee and actor.status == UserStatus.approved
    if action in (Action.view_commute_logs, Action.view_listings):
        return True
    if action in (Action.create_listing, Action.purchase_listing):
        return _org_admin_with_org(actor)
    return False


def authorize(actor: UserRecord, action: Action, resource=None) -> None:
    if actor is None or not _is_allowed(actor, action, resource):
        logger.warning(
            "policy: denied",
            user_id=getattr(actor, "id", None),
            role=getattr(actor, "role", None),
            action=action.value,
        )
        raise UnauthorizedError()
