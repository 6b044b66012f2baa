"""Employee commute logging and the organization credit it earns."""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Union

import structlog

from carbon_market.amounts import to_amount
from carbon_market.exceptions import (
    CommuteDistanceLockedError,
    CommuteDistanceRequiredError,
    InvalidRequestError,
    NotFoundError,
)
from carbon_market.schemas import CommuteLogRecord, TransportMethod, UserRecord
from carbon_market.services.points import calculate_points, validate_commute_distance
from carbon_market.services.policy import Action, authorize
from carbon_market.storage import Store

logger = structlog.get_logger()


def calendar_date(when: Union[date, datetime]) -> date:
    """The UTC calendar day a commute belongs to."""
    if isinstance(when, datetime):
        if when.tzinfo is not None:
            when = when.astimezone(timezone.utc)
        return when.date()
    return when


async def set_commute_distance(
    store: Store, actor: UserRecord, user_id: int, distance: Decimal, maximum: Decimal
) -> UserRecord:
    authorize(actor, Action.set_commute_distance, user_id)
    # validated as stored, so a sub-cent distance cannot lock in as 0.00
    distance = to_amount(distance)
    problem = validate_commute_distance(distance, maximum)
    if problem:
        raise InvalidRequestError(problem)

    async with store.transaction() as session:
        user = await session.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        if user.commute_distance is not None:
            raise CommuteDistanceLockedError()
        user = await session.update_user(user_id, commute_distance=distance)

    logger.info("commutes: distance set", user_id=user_id, distance=str(user.commute_distance))
    return user


async def log_commute(
    store: Store, actor: UserRecord, when: Union[date, datetime], method: TransportMethod
) -> CommuteLogRecord:
    """Record one commute and credit the employee's organization in the same session."""
    authorize(actor, Action.log_commute)
    if actor.commute_distance is None:
        raise CommuteDistanceRequiredError()

    log_date = calendar_date(when)
    points = calculate_points(actor.commute_distance, method)

    async with store.transaction() as session:
        log = await session.create_commute_log(
            user_id=actor.id,
            log_date=log_date,
            method=TransportMethod(method),
            points_earned=points,
        )
        if actor.organization_id is not None:
            org = await session.get_organization(actor.organization_id)
            if org is not None:
                await session.credit_commute(org.id, points)

    logger.info(
        "commutes: logged",
        user_id=actor.id,
        organization_id=actor.organization_id,
        date=log_date.isoformat(),
        method=TransportMethod(method).value,
        points=str(points),
    )
    return log


async def list_commute_logs(store: Store, actor: UserRecord) -> List[CommuteLogRecord]:
    authorize(actor, Action.view_commute_logs)
    async with store.transaction() as session:
        logs = await session.list_commute_logs(actor.id)
    return sorted(logs, key=lambda log: (log.date, log.id), reverse=True)
