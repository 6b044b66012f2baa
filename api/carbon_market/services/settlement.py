"""
Trade settlement: move credits seller -> buyer and currency buyer -> seller.

All three writes (listing status, buyer, seller) happen in one store session.
The listing's active -> sold compare-and-set comes first and anchors the
trade; if any later write fails the whole session is discarded, so no
partial settlement is ever visible and a listing sells at most once.
"""
import structlog

from carbon_market.exceptions import (
    CarbonMarketError,
    InsufficientFundsError,
    InvalidOrganizationError,
    NotFoundError,
    SelfTradeError,
)
from carbon_market.schemas import ListingStatus, TradeReceipt
from carbon_market.storage import Store

logger = structlog.get_logger()


async def settle_trade(store: Store, buyer_org_id: int, listing_id: int) -> TradeReceipt:
    try:
        async with store.transaction() as session:
            listing = await session.get_listing(listing_id)
            if listing is None or listing.status != ListingStatus.active:
                raise NotFoundError("Listing not found")

            buyer = await session.get_organization(buyer_org_id)
            seller = await session.get_organization(listing.organization_id)
            if buyer is None or seller is None:
                raise InvalidOrganizationError()
            if buyer.id == seller.id:
                raise SelfTradeError()

            total_cost = listing.total_cost
            if buyer.virtual_balance < total_cost:
                raise InsufficientFundsError(
                    f"Purchase costs {total_cost}, balance is {buyer.virtual_balance}"
                )

            await session.mark_sold(listing.id)
            buyer = await session.adjust_balances(buyer.id, -total_cost, listing.credits_amount)
            seller = await session.adjust_balances(seller.id, total_cost, -listing.credits_amount)
    except CarbonMarketError as e:
        logger.warning(
            "settlement: rejected",
            listing_id=listing_id,
            buyer_organization_id=buyer_org_id,
            error=e.kind,
        )
        raise

    logger.info(
        "settlement: completed",
        listing_id=listing.id,
        buyer_organization_id=buyer.id,
        seller_organization_id=seller.id,
        credits_amount=str(listing.credits_amount),
        total_cost=str(total_cost),
    )
    return TradeReceipt(
        listing_id=listing.id,
        buyer_organization_id=buyer.id,
        seller_organization_id=seller.id,
        credits_amount=listing.credits_amount,
        price_per_credit=listing.price_per_credit,
        total_cost=total_cost,
        buyer_virtual_balance=buyer.virtual_balance,
        buyer_total_credits=buyer.total_credits,
        seller_virtual_balance=seller.virtual_balance,
        seller_total_credits=seller.total_credits,
    )
