"""
Carbon market ORM models, re-exported so `from carbon_market.models import X` works.
"""

from carbon_market.models.auth import Organization, User
from carbon_market.models.ledger import CommuteLog, Listing
