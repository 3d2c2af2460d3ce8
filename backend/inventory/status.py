"""
Stock Status Classifier — quantity vs. reorder point.

Rule set (ratio = quantity / reorder_point):

  ratio == 0                       → OUT          (severity 4)
  ratio <  CRITICAL_THRESHOLD      → CRITICAL     (severity 3)
  ratio <  1                       → LOW          (severity 2)
  ratio >  OVERSTOCK_THRESHOLD     → OVERSTOCKED  (severity 0)
  otherwise                        → ADEQUATE     (severity 1)

A reorder point of zero means "never needs reordering": any stock is
ADEQUATE and zero stock is OUT. The ratio thresholds only apply when
reorder_point > 0.

Pure functions only, used on every read by the alert tracker and the
dashboard, so a status is never cached.
"""

import enum
from dataclasses import dataclass

from core.config import get_settings

_settings = get_settings()
CRITICAL_THRESHOLD = float(_settings.stock_critical_ratio)
OVERSTOCK_THRESHOLD = float(_settings.stock_overstock_ratio)


class StockStatus(str, enum.Enum):
    """Closed set of statuses, declared from least to most severe."""

    OVERSTOCKED = "overstocked"
    ADEQUATE = "adequate"
    LOW = "low"
    CRITICAL = "critical"
    OUT = "out"

    @property
    def severity(self) -> int:
        return _SEVERITY_ORDER.index(self)

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def priority(self) -> str:
        return _PRIORITIES[self]


_SEVERITY_ORDER = list(StockStatus)

_LABELS = {
    StockStatus.OVERSTOCKED: "Overstocked",
    StockStatus.ADEQUATE: "Adequate",
    StockStatus.LOW: "Low Stock",
    StockStatus.CRITICAL: "Critical",
    StockStatus.OUT: "Out of Stock",
}

_PRIORITIES = {
    StockStatus.OVERSTOCKED: "low",
    StockStatus.ADEQUATE: "none",
    StockStatus.LOW: "medium",
    StockStatus.CRITICAL: "high",
    StockStatus.OUT: "critical",
}

# Statuses that count as "needs attention" (severity >= LOW)
ATTENTION_SEVERITY = StockStatus.LOW.severity


@dataclass(frozen=True)
class StockStatusResult:
    status: StockStatus
    severity: int
    label: str
    priority: str

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "severity": self.severity,
            "label": self.label,
            "priority": self.priority,
        }


def _result(status: StockStatus) -> StockStatusResult:
    return StockStatusResult(
        status=status,
        severity=status.severity,
        label=status.label,
        priority=status.priority,
    )


def classify_status(quantity: int, reorder_point: int) -> StockStatus:
    """Map (quantity, reorder_point) to a StockStatus."""
    if quantity < 0 or reorder_point < 0:
        raise ValueError("quantity and reorder_point must be non-negative")

    if quantity == 0:
        return StockStatus.OUT
    if reorder_point == 0:
        return StockStatus.ADEQUATE

    ratio = quantity / reorder_point
    if ratio < CRITICAL_THRESHOLD:
        return StockStatus.CRITICAL
    if ratio < 1:
        return StockStatus.LOW
    if ratio > OVERSTOCK_THRESHOLD:
        return StockStatus.OVERSTOCKED
    return StockStatus.ADEQUATE


def classify(quantity: int, reorder_point: int) -> StockStatusResult:
    """Classify stock and return status, severity, label and priority."""
    return _result(classify_status(quantity, reorder_point))
