"""
Storage contract shared by the in-memory and SQLite backends.

Every read and write goes through a StoreSession obtained from
``Store.transaction()``. A session's writes become visible together when the
``async with`` block exits cleanly and are discarded if it raises, so a unit
of work such as a trade settlement is all-or-nothing on either backend.
Sessions are serialized store-wide; no reader can observe a half-applied
session.
"""
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from carbon_market.amounts import ZERO, to_amount
from carbon_market.exceptions import (
    AlreadySoldError,
    InsufficientCreditsError,
    InsufficientFundsError,
    NotFoundError,
)
from carbon_market.schemas import (
    CommuteLogRecord,
    ListingRecord,
    ListingStatus,
    OrganizationRecord,
    OrganizationStatus,
    TransportMethod,
    UserRecord,
    UserRole,
    UserStatus,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoreSession(ABC):
    """One atomic unit of work against the ledger."""

    # ─── Users ───
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        name: str,
        role: UserRole,
        status: UserStatus = UserStatus.pending,
        organization_id: Optional[int] = None,
        commute_distance: Optional[Decimal] = None,
    ) -> UserRecord:
        """Raises DuplicateUsernameError when the username is taken."""

    @abstractmethod
    async def update_user(self, user_id: int, **changes) -> UserRecord: ...

    @abstractmethod
    async def list_users(
        self,
        organization_id: Optional[int] = None,
        status: Optional[UserStatus] = None,
    ) -> List[UserRecord]: ...

    # ─── Organizations ───
    @abstractmethod
    async def get_organization(self, org_id: int) -> Optional[OrganizationRecord]: ...

    @abstractmethod
    async def create_organization(
        self,
        *,
        name: str,
        address: str,
        virtual_balance: Decimal,
        description: Optional[str] = None,
        total_credits: Decimal = ZERO,
    ) -> OrganizationRecord: ...

    @abstractmethod
    async def update_organization(self, org_id: int, **changes) -> OrganizationRecord: ...

    @abstractmethod
    async def list_organizations(
        self, status: Optional[OrganizationStatus] = None
    ) -> List[OrganizationRecord]: ...

    async def adjust_balances(
        self, org_id: int, currency_delta: Decimal, credits_delta: Decimal
    ) -> OrganizationRecord:
        """Apply both deltas to one organization or neither.

        Raises InsufficientFundsError / InsufficientCreditsError when a
        result would go negative; the record is left untouched.
        """
        org = await self.get_organization(org_id)
        if org is None:
            raise NotFoundError(f"Organization {org_id} not found")
        new_balance = to_amount(org.virtual_balance + to_amount(currency_delta))
        new_credits = to_amount(org.total_credits + to_amount(credits_delta))
        if new_balance < ZERO:
            raise InsufficientFundsError(
                f"Organization {org_id} has {org.virtual_balance}, needs {-to_amount(currency_delta)}"
            )
        if new_credits < ZERO:
            raise InsufficientCreditsError(
                f"Organization {org_id} has {org.total_credits} credits, needs {-to_amount(credits_delta)}"
            )
        return await self.update_organization(
            org_id, virtual_balance=new_balance, total_credits=new_credits
        )

    async def credit_commute(self, org_id: int, points: Decimal) -> OrganizationRecord:
        return await self.adjust_balances(org_id, ZERO, points)

    # ─── Commute logs ───
    @abstractmethod
    async def create_commute_log(
        self,
        *,
        user_id: int,
        log_date: date,
        method: TransportMethod,
        points_earned: Decimal,
    ) -> CommuteLogRecord:
        """Raises DuplicateLogError if the user already logged that date."""

    @abstractmethod
    async def list_commute_logs(self, user_id: int) -> List[CommuteLogRecord]: ...

    # ─── Listings ───
    @abstractmethod
    async def create_listing(
        self,
        *,
        organization_id: int,
        credits_amount: Decimal,
        price_per_credit: Decimal,
    ) -> ListingRecord: ...

    @abstractmethod
    async def get_listing(self, listing_id: int) -> Optional[ListingRecord]: ...

    @abstractmethod
    async def list_listings(
        self,
        status: Optional[ListingStatus] = None,
        organization_id: Optional[int] = None,
    ) -> List[ListingRecord]: ...

    @abstractmethod
    async def compare_and_set_listing_status(
        self, listing_id: int, expected: ListingStatus, new: ListingStatus
    ) -> bool:
        """Set ``new`` only if the stored status equals ``expected``."""

    async def mark_sold(self, listing_id: int) -> ListingRecord:
        if await self.compare_and_set_listing_status(
            listing_id, ListingStatus.active, ListingStatus.sold
        ):
            return await self.get_listing(listing_id)
        if await self.get_listing(listing_id) is None:
            raise NotFoundError(f"Listing {listing_id} not found")
        raise AlreadySoldError(f"Listing {listing_id} is no longer active")


class Store(ABC):
    """A ledger backend. Pass the instance explicitly; there is no global."""

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[StoreSession]:
        """Open a serialized, all-or-nothing session."""
