from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from carbon_market.amounts import to_amount


# ─── Enums ───
class UserRole(str, Enum):
    system_admin = "system_admin"
    org_admin = "org_admin"
    employee = "employee"


class UserStatus(str, Enum):
    pending = "pending"
    approved = "approved"


class OrganizationStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class TransportMethod(str, Enum):
    drove_alone = "drove_alone"
    public_transport = "public_transport"
    carpool = "carpool"
    work_from_home = "work_from_home"


class ListingStatus(str, Enum):
    active = "active"
    sold = "sold"


class CamelModel(BaseModel):
    """Wire format is camelCase; Python attributes stay snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Stored records ───
class OrganizationRecord(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    address: str
    virtual_balance: Decimal
    total_credits: Decimal
    status: OrganizationStatus = OrganizationStatus.pending
    rejection_reason: Optional[str] = None
    created_at: datetime


class UserRecord(CamelModel):
    id: int
    username: str
    password_hash: str
    name: str
    role: UserRole
    organization_id: Optional[int] = None
    commute_distance: Optional[Decimal] = None
    status: UserStatus = UserStatus.pending
    created_at: datetime


class CommuteLogRecord(CamelModel):
    id: int
    user_id: int
    date: date
    method: TransportMethod
    points_earned: Decimal


class ListingRecord(CamelModel):
    id: int
    organization_id: int
    credits_amount: Decimal
    price_per_credit: Decimal
    status: ListingStatus = ListingStatus.active
    created_at: datetime

    @property
    def total_cost(self) -> Decimal:
        return to_amount(self.credits_amount * self.price_per_credit)


# ─── Auth Schemas ───
class SignupRequest(CamelModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    role: UserRole = UserRole.employee
    organization_id: Optional[int] = None

    @field_validator("role")
    @classmethod
    def no_self_service_admins(cls, role: UserRole) -> UserRole:
        if role == UserRole.system_admin:
            raise ValueError("system_admin accounts cannot be self-registered")
        return role


class LoginRequest(CamelModel):
    username: str
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class UserResponse(CamelModel):
    id: int
    username: str
    name: str
    role: UserRole
    organization_id: Optional[int] = None
    commute_distance: Optional[Decimal] = None
    status: UserStatus
    created_at: Optional[datetime] = None


class CommuteDistanceRequest(CamelModel):
    commute_distance: Decimal = Field(gt=0)


# ─── Organization Schemas ───
class OrganizationCreateRequest(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    address: str = Field(min_length=1)
    description: Optional[str] = None


class OrganizationRejectRequest(CamelModel):
    reason: str = Field(min_length=1)


# ─── Commute Schemas ───
class CommuteLogCreateRequest(CamelModel):
    date: datetime
    method: TransportMethod


# ─── Marketplace Schemas ───
class ListingCreateRequest(CamelModel):
    credits_amount: Decimal = Field(gt=0)
    price_per_credit: Decimal = Field(gt=0)


class TradeReceipt(CamelModel):
    listing_id: int
    buyer_organization_id: int
    seller_organization_id: int
    credits_amount: Decimal
    price_per_credit: Decimal
    total_cost: Decimal
    buyer_virtual_balance: Decimal
    buyer_total_credits: Decimal
    seller_virtual_balance: Decimal
    seller_total_credits: Decimal


class PurchaseResponse(TradeReceipt):
    message: str = "Purchase successful"
