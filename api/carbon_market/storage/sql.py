"""SQLite ledger backend on the SQLAlchemy async ORM."""
import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from typing import AsyncIterator

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carbon_market.amounts import ZERO, to_amount
from carbon_market.database import Base, make_engine, make_sessionmaker
from carbon_market.exceptions import DuplicateLogError, DuplicateUsernameError, NotFoundError
from carbon_market.models import CommuteLog, Listing, Organization, User
from carbon_market.schemas import (
    CommuteLogRecord,
    ListingRecord,
    ListingStatus,
    OrganizationRecord,
    OrganizationStatus,
    UserRecord,
    UserStatus,
)
from carbon_market.storage.base import Store, StoreSession

logger = structlog.get_logger()


def _column_values(changes: dict) -> dict:
    return {key: value.value if isinstance(value, Enum) else value for key, value in changes.items()}


class SQLSession(StoreSession):
    def __init__(self, session: AsyncSession):
        self._db = session

    async def _one(self, model, row_id: int):
        result = await self._db.execute(
            select(model).where(model.id == row_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _update(self, model, record_cls, row_id: int, label: str, changes: dict):
        row = await self._one(model, row_id)
        if row is None:
            raise NotFoundError(f"{label} {row_id} not found")
        for key, value in _column_values(changes).items():
            setattr(row, key, value)
        await self._db.flush()
        return record_cls.model_validate(row)

    # ─── Users ───
    async def get_user(self, user_id):
        row = await self._one(User, user_id)
        return UserRecord.model_validate(row) if row else None

    async def get_user_by_username(self, username):
        result = await self._db.execute(select(User).where(User.username == username))
        row = result.scalar_one_or_none()
        return UserRecord.model_validate(row) if row else None

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
        row = User(
            **_column_values(
                {
                    "username": username,
                    "password_hash": password_hash,
                    "name": name,
                    "role": role,
                    "status": status,
                    "organization_id": organization_id,
                    "commute_distance": commute_distance,
                }
            )
        )
        self._db.add(row)
        try:
            await self._db.flush()
        except IntegrityError as e:
            raise DuplicateUsernameError() from e
        return UserRecord.model_validate(row)

    async def update_user(self, user_id, **changes):
        return await self._update(User, UserRecord, user_id, "User", changes)

    async def list_users(self, organization_id=None, status=None):
        query = select(User).order_by(User.id)
        if organization_id is not None:
            query = query.where(User.organization_id == organization_id)
        if status is not None:
            query = query.where(User.status == UserStatus(status).value)
        result = await self._db.execute(query)
        return [UserRecord.model_validate(row) for row in result.scalars().all()]

    # ─── Organizations ───
    async def get_organization(self, org_id):
        row = await self._one(Organization, org_id)
        return OrganizationRecord.model_validate(row) if row else None

    async def create_organization(
        self, *, name, address, virtual_balance, description=None, total_credits=ZERO
    ):
        row = Organization(
            name=name,
            description=description,
            address=address,
            virtual_balance=to_amount(virtual_balance),
            total_credits=to_amount(total_credits),
            status=OrganizationStatus.pending.value,
        )
        self._db.add(row)
        await self._db.flush()
        return OrganizationRecord.model_validate(row)

    async def update_organization(self, org_id, **changes):
        return await self._update(Organization, OrganizationRecord, org_id, "Organization", changes)

    async def list_organizations(self, status=None):
        query = select(Organization).order_by(Organization.id)
        if status is not None:
            query = query.where(Organization.status == OrganizationStatus(status).value)
        result = await self._db.execute(query)
        return [OrganizationRecord.model_validate(row) for row in result.scalars().all()]

    # ─── Commute logs ───
    async def create_commute_log(self, *, user_id, log_date, method, points_earned):
        existing = await self._db.execute(
            select(CommuteLog.id).where(CommuteLog.user_id == user_id, CommuteLog.date == log_date)
        )
        if existing.first() is not None:
            raise DuplicateLogError(f"Commute already logged for {log_date.isoformat()}")
        row = CommuteLog(
            user_id=user_id,
            date=log_date,
            method=method.value if isinstance(method, Enum) else method,
            points_earned=to_amount(points_earned),
        )
        self._db.add(row)
        try:
            await self._db.flush()
        except IntegrityError as e:
            raise DuplicateLogError(f"Commute already logged for {log_date.isoformat()}") from e
        return CommuteLogRecord.model_validate(row)

    async def list_commute_logs(self, user_id):
        result = await self._db.execute(
            select(CommuteLog).where(CommuteLog.user_id == user_id).order_by(CommuteLog.id)
        )
        return [CommuteLogRecord.model_validate(row) for row in result.scalars().all()]

    # ─── Listings ───
    async def create_listing(self, *, organization_id, credits_amount, price_per_credit):
        row = Listing(
            organization_id=organization_id,
            credits_amount=to_amount(credits_amount),
            price_per_credit=to_amount(price_per_credit),
            status=ListingStatus.active.value,
        )
        self._db.add(row)
        await self._db.flush()
        return ListingRecord.model_validate(row)

    async def get_listing(self, listing_id):
        row = await self._one(Listing, listing_id)
        return ListingRecord.model_validate(row) if row else None

    async def list_listings(self, status=None, organization_id=None):
        query = select(Listing).order_by(Listing.id)
        if status is not None:
            query = query.where(Listing.status == ListingStatus(status).value)
        if organization_id is not None:
            query = query.where(Listing.organization_id == organization_id)
        result = await self._db.execute(query)
        return [ListingRecord.model_validate(row) for row in result.scalars().all()]

    async def compare_and_set_listing_status(self, listing_id, expected, new):
        result = await self._db.execute(
            update(Listing)
            .where(Listing.id == listing_id, Listing.status == ListingStatus(expected).value)
            .values(status=ListingStatus(new).value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class SQLStore(Store):
    """One database transaction per session, serialized in-process by a lock."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self._engine = make_engine(database_url, echo=echo)
        self._sessionmaker = make_sessionmaker(self._engine)
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("sql_store: schema ready", url=self._engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[SQLSession]:
        async with self._lock:
            async with self._sessionmaker() as session:
                async with session.begin():
                    yield SQLSession(session)
