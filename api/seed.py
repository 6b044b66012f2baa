"""
Demo marketplace seed.
Creates two organizations with admins and employees, logs a week of commutes
for each employee, and puts a listing on the market.

    STORAGE_BACKEND=sqlite python seed.py
"""
import asyncio
from datetime import date, timedelta
from decimal import Decimal

import structlog

from carbon_market.config import get_settings
from carbon_market.schemas import TransportMethod, UserRole
from carbon_market.services import approval, commutes, listings, users
from carbon_market.services.points import calculate_total_points
from carbon_market.storage import Store, build_store

logger = structlog.get_logger()

ORGANIZATIONS = [
    {
        "name": "Greenway Logistics",
        "address": "12 Harbour Road",
        "admin": "greenway_admin",
        "employees": [
            ("alice", Decimal("12.5"), TransportMethod.carpool),
            ("bob", Decimal("8"), TransportMethod.public_transport),
        ],
    },
    {
        "name": "Northwind Analytics",
        "address": "400 Market Street",
        "admin": "northwind_admin",
        "employees": [
            ("carol", Decimal("20"), TransportMethod.work_from_home),
        ],
    },
]

SEED_PASSWORD = "password123"
SEED_DAYS = 5


async def seed(store: Store, start: date = None) -> dict:
    settings = get_settings()
    start = start or date.today() - timedelta(days=SEED_DAYS)
    admin = await users.ensure_system_admin(
        store,
        settings.BOOTSTRAP_ADMIN_USERNAME,
        settings.BOOTSTRAP_ADMIN_PASSWORD,
        settings.BOOTSTRAP_ADMIN_NAME,
    )

    org_ids = []
    credits_earned = {}
    for entry in ORGANIZATIONS:
        org_admin = await users.register_user(
            store,
            username=entry["admin"],
            password=SEED_PASSWORD,
            name=entry["admin"].replace("_", " ").title(),
            role=UserRole.org_admin,
        )
        org = await approval.register_organization(
            store,
            org_admin,
            name=entry["name"],
            address=entry["address"],
            starting_balance=settings.STARTING_VIRTUAL_BALANCE,
        )
        await approval.approve_organization(store, admin, org.id)
        org_admin = await users.get_user(store, org_admin.id)
        org_ids.append(org.id)
        earned = []

        for username, distance, method in entry["employees"]:
            employee = await users.register_user(
                store,
                username=username,
                password=SEED_PASSWORD,
                name=username.title(),
                role=UserRole.employee,
                organization_id=org.id,
            )
            await users.approve_user(store, org_admin, employee.id)
            employee = await commutes.set_commute_distance(
                store, employee, employee.id, distance, settings.MAX_COMMUTE_DISTANCE
            )
            for offset in range(SEED_DAYS):
                log = await commutes.log_commute(
                    store, employee, start + timedelta(days=offset), method
                )
                earned.append(log.points_earned)

        credits_earned[org.id] = calculate_total_points(earned)
        logger.info(
            "seed: organization ready",
            organization_id=org.id,
            name=entry["name"],
            credits_earned=str(credits_earned[org.id]),
        )

    listing = await listings.create_listing(store, org_ids[0], Decimal("50"), Decimal("2.50"))
    logger.info("seed: complete", organizations=len(org_ids), listing_id=listing.id)
    return {
        "organization_ids": org_ids,
        "credits_earned": credits_earned,
        "listing_id": listing.id,
    }


async def main():
    store = build_store(get_settings())
    await store.connect()
    try:
        await seed(store)
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main())
