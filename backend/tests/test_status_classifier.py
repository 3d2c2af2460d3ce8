"""
Tests for the stock status classifier and reorder recommendation.
"""

import pytest

from inventory.reorder import REORDER_TARGET_MULTIPLIER, URGENCY_CRITICAL, URGENCY_NORMAL, recommend
from inventory.status import (
    ATTENTION_SEVERITY,
    CRITICAL_THRESHOLD,
    OVERSTOCK_THRESHOLD,
    StockStatus,
    classify,
    classify_status,
)


class TestClassifyStatus:
    def test_zero_stock_is_out(self):
        result = classify(0, 100)
        assert result.status is StockStatus.OUT
        assert result.severity == 4
        assert result.label == "Out of Stock"

    def test_below_critical_ratio_is_critical(self):
        assert classify_status(10, 100) is StockStatus.CRITICAL

    def test_thirty_percent_resolves_to_critical(self):
        """0.3 of the reorder point sits under the configured critical ratio."""
        assert CRITICAL_THRESHOLD == 0.5
        assert classify_status(30, 100) is StockStatus.CRITICAL
        assert classify(30, 100).severity == 3

    def test_exactly_critical_ratio_is_low(self):
        assert classify_status(50, 100) is StockStatus.LOW

    def test_just_below_reorder_point_is_low(self):
        assert classify_status(99, 100) is StockStatus.LOW

    def test_at_reorder_point_is_adequate(self):
        assert classify_status(100, 100) is StockStatus.ADEQUATE

    def test_at_overstock_ratio_is_adequate(self):
        assert classify_status(int(100 * OVERSTOCK_THRESHOLD), 100) is StockStatus.ADEQUATE

    def test_above_overstock_ratio_is_overstocked(self):
        result = classify(301, 100)
        assert result.status is StockStatus.OVERSTOCKED
        assert result.severity == 0

    def test_zero_reorder_point_with_stock_is_adequate(self):
        assert classify_status(5, 0) is StockStatus.ADEQUATE

    def test_zero_reorder_point_without_stock_is_out(self):
        assert classify_status(0, 0) is StockStatus.OUT

    def test_negative_inputs_rejected(self):
        with pytest.raises(ValueError):
            classify_status(-1, 10)
        with pytest.raises(ValueError):
            classify_status(1, -10)

    def test_every_input_classifies(self):
        for reorder_point in range(0, 12):
            for quantity in range(0, 40):
                result = classify(quantity, reorder_point)
                assert result == classify(quantity, reorder_point)
                assert 0 <= result.severity <= 4


class TestSeverityOrder:
    def test_severity_follows_declaration_order(self):
        assert [s.severity for s in StockStatus] == [0, 1, 2, 3, 4]
        assert (
            StockStatus.OUT.severity
            > StockStatus.CRITICAL.severity
            > StockStatus.LOW.severity
            > StockStatus.ADEQUATE.severity
            > StockStatus.OVERSTOCKED.severity
        )

    def test_attention_starts_at_low(self):
        assert ATTENTION_SEVERITY == StockStatus.LOW.severity

    def test_to_dict_uses_wire_values(self):
        assert classify(0, 10).to_dict() == {
            "status": "out",
            "severity": 4,
            "label": "Out of Stock",
            "priority": "critical",
        }


class TestRecommend:
    def test_none_when_at_or_above_reorder_point(self):
        assert recommend(100, 100, 5.0) is None
        assert recommend(150, 100, 5.0) is None

    def test_out_of_stock_recommends_double_reorder_point(self):
        rec = recommend(0, 100, 3.0)
        assert rec.recommended_quantity == 200
        assert rec.urgency == URGENCY_CRITICAL
        assert rec.estimated_cost == 600.0
        assert rec.target_stock == 200

    def test_low_stock_is_normal_urgency(self):
        rec = recommend(70, 100, 1.0)
        assert rec.recommended_quantity == 130
        assert rec.urgency == URGENCY_NORMAL

    def test_urgency_boundary_matches_classifier(self):
        # Exactly at the critical ratio the classifier says LOW
        assert recommend(50, 100, 1.0).urgency == URGENCY_NORMAL
        assert recommend(49, 100, 1.0).urgency == URGENCY_CRITICAL

    def test_cost_rounded_to_cents(self):
        rec = recommend(0, 3, 0.333)
        assert rec.estimated_cost == 2.0

    def test_refill_reaches_target(self):
        for reorder_point in range(1, 30):
            for current in range(0, reorder_point):
                rec = recommend(current, reorder_point, 1.25)
                assert current + rec.recommended_quantity == reorder_point * REORDER_TARGET_MULTIPLIER
