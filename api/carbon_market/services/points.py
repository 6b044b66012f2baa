"""Commute points: round-trip distance weighted by how the employee travelled."""
from decimal import Decimal
from typing import Iterable, Optional

from carbon_market.amounts import ZERO, to_amount
from carbon_market.schemas import TransportMethod

MULTIPLIERS = {
    TransportMethod.drove_alone: Decimal("0"),
    TransportMethod.public_transport: Decimal("1"),
    TransportMethod.carpool: Decimal("1.5"),
    TransportMethod.work_from_home: Decimal("2"),
}


def calculate_points(distance, method) -> Decimal:
    """points = one-way distance * 2 * multiplier(method)."""
    if isinstance(distance, float):
        distance = str(distance)
    distance = Decimal(distance)
    if distance <= 0:
        raise ValueError("Commute distance must be positive")
    method = TransportMethod(method)
    # only the result is rounded to cents
    return to_amount(distance * 2 * MULTIPLIERS[method])


def calculate_total_points(points: Iterable[Decimal]) -> Decimal:
    return to_amount(sum(points, ZERO))


def validate_commute_distance(distance, maximum) -> Optional[str]:
    """Return a user-facing problem with the distance, or None if it is acceptable."""
    distance = Decimal(distance)
    if distance < 0:
        return "Distance cannot be negative"
    if distance == 0:
        return "Distance must be greater than 0"
    if distance > Decimal(maximum):
        return f"Distance cannot exceed {maximum} miles"
    return None
