"""Commute logs and marketplace listings."""
from carbon_market.models.base import *


class CommuteLog(Base):
    __tablename__ = "commute_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    date = Column("log_date", Date, nullable=False)
    method = Column(String, nullable=False)
    points_earned = Column(DecimalString, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "log_date", name="uq_commute_logs_user_day"),
        CheckConstraint(
            "method IN ('drove_alone', 'public_transport', 'carpool', 'work_from_home')",
            name="ck_commute_logs_method",
        ),
    )


class Listing(Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False)
    credits_amount = Column(DecimalString, nullable=False)
    price_per_credit = Column(DecimalString, nullable=False)
    status = Column(String, nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('active', 'sold')", name="ck_listings_status"),
        Index("idx_listings_status", "status"),
    )
