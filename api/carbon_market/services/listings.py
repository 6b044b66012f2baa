"""Listing registry: sell-side offers of credits at a fixed unit price."""
from decimal import Decimal
from typing import List

import structlog

from carbon_market.amounts import ZERO, to_amount
from carbon_market.exceptions import InsufficientCreditsError, InvalidRequestError, NotFoundError
from carbon_market.schemas import ListingRecord, ListingStatus
from carbon_market.storage import Store

logger = structlog.get_logger()


async def create_listing(
    store: Store, seller_org_id: int, credits_amount: Decimal, price_per_credit: Decimal
) -> ListingRecord:
    """List credits for sale.

    Credits already offered in the seller's other active listings are treated
    as reserved, so the sum of active listings never exceeds the seller's
    credits at listing time.
    """
    credits_amount = to_amount(credits_amount)
    price_per_credit = to_amount(price_per_credit)
    if credits_amount <= ZERO or price_per_credit <= ZERO:
        raise InvalidRequestError("Credits amount and price per credit must be positive")

    async with store.transaction() as session:
        seller = await session.get_organization(seller_org_id)
        if seller is None:
            raise NotFoundError(f"Organization {seller_org_id} not found")
        active = await session.list_listings(
            status=ListingStatus.active, organization_id=seller_org_id
        )
        reserved = sum((listing.credits_amount for listing in active), ZERO)
        available = seller.total_credits - reserved
        if credits_amount > available:
            logger.warning(
                "listings: insufficient credits",
                organization_id=seller_org_id,
                requested=str(credits_amount),
                available=str(available),
            )
            raise InsufficientCreditsError(
                f"Only {available} credits available to list, requested {credits_amount}"
            )
        listing = await session.create_listing(
            organization_id=seller_org_id,
            credits_amount=credits_amount,
            price_per_credit=price_per_credit,
        )

    logger.info(
        "listings: created",
        listing_id=listing.id,
        organization_id=seller_org_id,
        credits_amount=str(credits_amount),
        price_per_credit=str(price_per_credit),
    )
    return listing


async def list_active(store: Store) -> List[ListingRecord]:
    async with store.transaction() as session:
        return await session.list_listings(status=ListingStatus.active)


async def mark_sold(store: Store, listing_id: int) -> ListingRecord:
    async with store.transaction() as session:
        return await session.mark_sold(listing_id)
