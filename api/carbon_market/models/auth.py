"""Organization and User models."""
from carbon_market.models.base import *


class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    address = Column(String, nullable=False)
    virtual_balance = Column(DecimalString, nullable=False, default=Decimal("1000"))
    total_credits = Column(DecimalString, nullable=False, default=Decimal("0"))
    status = Column(String, nullable=False, default="pending")
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="ck_organizations_status"
        ),
    )


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True)
    commute_distance = Column(DecimalString, nullable=True)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('system_admin', 'org_admin', 'employee')", name="ck_users_role"
        ),
        CheckConstraint("status IN ('pending', 'approved')", name="ck_users_status"),
        Index("idx_users_org", "organization_id"),
    )
