"""In-process ledger backend."""
import asyncio
import itertools
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple

from carbon_market.amounts import ZERO, to_amount
from carbon_market.exceptions import DuplicateLogError, DuplicateUsernameError, NotFoundError
from carbon_market.schemas import (
    CommuteLogRecord,
    ListingRecord,
    ListingStatus,
    OrganizationRecord,
    OrganizationStatus,
    UserRecord,
    UserStatus,
)
from carbon_market.storage.base import Store, StoreSession, utcnow

USERS = "users"
ORGANIZATIONS = "organizations"
COMMUTE_LOGS = "commute_logs"
LISTINGS = "listings"


class MemorySession(StoreSession):
    """Reads see committed rows overlaid with this session's staged writes."""

    def __init__(self, store: "MemoryStore"):
        self._store = store
        self._staged: Dict[Tuple[str, int], object] = {}

    # ─── Table plumbing ───
    def _get(self, table: str, row_id: int):
        row = self._staged.get((table, row_id))
        if row is None:
            row = self._store._tables[table].get(row_id)
        return row.model_copy() if row is not None else None

    def _rows(self, table: str) -> list:
        merged = dict(self._store._tables[table])
        for (staged_table, row_id), row in self._staged.items():
            if staged_table == table:
                merged[row_id] = row
        return [merged[row_id].model_copy() for row_id in sorted(merged)]

    def _put(self, table: str, row):
        self._staged[(table, row.id)] = row
        return row.model_copy()

    def _update(self, table: str, row_id: int, label: str, changes: dict):
        row = self._get(table, row_id)
        if row is None:
            raise NotFoundError(f"{label} {row_id} not found")
        return self._put(table, row.model_copy(update=changes))

    def _commit(self) -> None:
        for (table, row_id), row in self._staged.items():
            self._store._tables[table][row_id] = row
        self._staged.clear()

    # ─── Users ───
    async def get_user(self, user_id):
        return self._get(USERS, user_id)

    async def get_user_by_username(self, username):
        for user in self._rows(USERS):
            if user.username == username:
                return user
        return None

    async def create_user(
        self,
        *,
        username,
        password_hash,
        name,
        role,
        status=UserStatus.pending,
        organization_id=None,
        commute_distance=None,
    ):
        if await self.get_user_by_username(username) is not None:
            raise DuplicateUsernameError()
        user = UserRecord(
            id=self._store._next_id(USERS),
            username=username,
            password_hash=password_hash,
            name=name,
            role=role,
            status=status,
            organization_id=organization_id,
            commute_distance=to_amount(commute_distance) if commute_distance is not None else None,
            created_at=utcnow(),
        )
        return self._put(USERS, user)

    async def update_user(self, user_id, **changes):
        return self._update(USERS, user_id, "User", changes)

    async def list_users(self, organization_id=None, status=None):
        return [
            user
            for user in self._rows(USERS)
            if (organization_id is None or user.organization_id == organization_id)
            and (status is None or user.status == status)
        ]

    # ─── Organizations ───
    async def get_organization(self, org_id):
        return self._get(ORGANIZATIONS, org_id)

    async def create_organization(
        self, *, name, address, virtual_balance, description=None, total_credits=ZERO
    ):
        org = OrganizationRecord(
            id=self._store._next_id(ORGANIZATIONS),
            name=name,
            description=description,
            address=address,
            virtual_balance=to_amount(virtual_balance),
            total_credits=to_amount(total_credits),
            status=OrganizationStatus.pending,
            created_at=utcnow(),
        )
        return self._put(ORGANIZATIONS, org)

    async def update_organization(self, org_id, **changes):
        return self._update(ORGANIZATIONS, org_id, "Organization", changes)

    async def list_organizations(self, status=None):
        return [org for org in self._rows(ORGANIZATIONS) if status is None or org.status == status]

    # ─── Commute logs ───
    async def create_commute_log(self, *, user_id, log_date, method, points_earned):
        for log in self._rows(COMMUTE_LOGS):
            if log.user_id == user_id and log.date == log_date:
                raise DuplicateLogError(f"Commute already logged for {log_date.isoformat()}")
        log = CommuteLogRecord(
            id=self._store._next_id(COMMUTE_LOGS),
            user_id=user_id,
            date=log_date,
            method=method,
            points_earned=to_amount(points_earned),
        )
        return self._put(COMMUTE_LOGS, log)

    async def list_commute_logs(self, user_id) -> List[CommuteLogRecord]:
        return [log for log in self._rows(COMMUTE_LOGS) if log.user_id == user_id]

    # ─── Listings ───
    async def create_listing(self, *, organization_id, credits_amount, price_per_credit):
        listing = ListingRecord(
            id=self._store._next_id(LISTINGS),
            organization_id=organization_id,
            credits_amount=to_amount(credits_amount),
            price_per_credit=to_amount(price_per_credit),
            status=ListingStatus.active,
            created_at=utcnow(),
        )
        return self._put(LISTINGS, listing)

    async def get_listing(self, listing_id) -> Optional[ListingRecord]:
        return self._get(LISTINGS, listing_id)

    async def list_listings(self, status=None, organization_id=None):
        return [
            listing
            for listing in self._rows(LISTINGS)
            if (status is None or listing.status == status)
            and (organization_id is None or listing.organization_id == organization_id)
        ]

    async def compare_and_set_listing_status(self, listing_id, expected, new):
        listing = self._get(LISTINGS, listing_id)
        if listing is None or listing.status != expected:
            return False
        self._put(LISTINGS, listing.model_copy(update={"status": new}))
        return True


class MemoryStore(Store):
    """Maps keyed by auto-incrementing ids, guarded by one asyncio.Lock."""

    def __init__(self):
        self._tables: Dict[str, Dict[int, object]] = {
            USERS: {},
            ORGANIZATIONS: {},
            COMMUTE_LOGS: {},
            LISTINGS: {},
        }
        self._ids = {table: itertools.count(1) for table in self._tables}
        self._lock = asyncio.Lock()

    def _next_id(self, table: str) -> int:
        return next(self._ids[table])

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[MemorySession]:
        async with self._lock:
            session = MemorySession(self)
            yield session
            session._commit()
