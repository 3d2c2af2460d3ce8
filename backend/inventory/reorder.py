"""
Reorder Recommendation — how much to buy when stock is below reorder point.

Policy: replenish up to REORDER_TARGET_MULTIPLIER × reorder_point.
The multiplier is a business rule, not an optimum; it is configured via
settings and kept separate from the status classifier's thresholds.
"""

from dataclasses import asdict, dataclass

from core.config import get_settings
from inventory.status import CRITICAL_THRESHOLD

_settings = get_settings()
REORDER_TARGET_MULTIPLIER = int(_settings.reorder_target_multiplier)

URGENCY_CRITICAL = "critical"
URGENCY_NORMAL = "normal"


@dataclass(frozen=True)
class Recommendation:
    recommended_quantity: int
    estimated_cost: float
    urgency: str
    target_stock: int

    def to_dict(self) -> dict:
        return asdict(self)


def recommend(current_stock: int, reorder_point: int, unit_cost: float) -> Recommendation | None:
    """Suggest a replenishment order, or None when no action is needed."""
    if current_stock >= reorder_point:
        return None

    target_stock = reorder_point * REORDER_TARGET_MULTIPLIER
    recommended_quantity = target_stock - current_stock
    urgency = URGENCY_CRITICAL if current_stock < reorder_point * CRITICAL_THRESHOLD else URGENCY_NORMAL

    return Recommendation(
        recommended_quantity=recommended_quantity,
        estimated_cost=round(recommended_quantity * float(unit_cost or 0), 2),
        urgency=urgency,
        target_stock=target_stock,
    )
