"""
Tests for the alert tracker — lifecycle actions and the derived alert listing.
"""

import asyncio
from datetime import datetime

import pytest

from alerts.tracker import (
    ALERT_ACTIONS,
    DEFAULT_ALERT_STATE,
    _create_alert_record,
    alert_state,
    apply_action,
    apply_alert_action,
    get_product_alert,
    list_alerts,
    parse_status_filter,
)
from core.errors import NotFoundError, ValidationError
from db.models import AlertRecord
from db.store import RecordStore
from inventory.status import StockStatus
from supply_chain.transfers import create_transfer


class TestAlertState:
    def test_absent_record_is_default_state(self):
        state = alert_state(None)
        assert state is DEFAULT_ALERT_STATE
        assert state.acknowledged is False
        assert state.dismissed is False
        assert state.notes == ""

    def test_apply_action_toggles_flags(self):
        record = AlertRecord(product_id=1, acknowledged=False, dismissed=False, notes="")
        now = datetime(2024, 5, 1, 12, 0)

        apply_action(record, "dismiss", None, now)
        assert record.dismissed is True
        assert record.dismissed_at == now

        apply_action(record, "undismiss", None, now)
        assert record.dismissed is False
        assert record.dismissed_at is None
        assert record.updated_at == now

    def test_update_notes_clears_with_none(self):
        record = AlertRecord(product_id=1, notes="old")
        apply_action(record, "update_notes", None, datetime(2024, 5, 1))
        assert record.notes == ""

    def test_status_filter_parses_csv(self):
        assert parse_status_filter("out, critical") == {StockStatus.OUT, StockStatus.CRITICAL}
        assert parse_status_filter("") is None
        assert parse_status_filter(None) is None

    def test_status_filter_rejects_unknown(self):
        with pytest.raises(ValidationError):
            parse_status_filter("out,urgent")


@pytest.mark.asyncio
class TestApplyAlertAction:
    async def test_acknowledge_then_unacknowledge(self, test_db, seeded_db):
        pid = seeded_db["gadget"]
        first = await apply_alert_action(test_db, pid, "acknowledge")
        assert first.acknowledged is True
        assert first.acknowledged_at is not None
        first_update = first.updated_at

        second = await apply_alert_action(test_db, pid, "unacknowledge")
        assert second.id == first.id
        assert second.acknowledged is False
        assert second.acknowledged_at is None
        assert second.updated_at >= first_update

    async def test_acknowledge_is_idempotent(self, test_db, seeded_db):
        pid = seeded_db["gadget"]
        once = await apply_alert_action(test_db, pid, "acknowledge")
        snapshot = (once.acknowledged, once.dismissed, once.notes)

        twice = await apply_alert_action(test_db, pid, "acknowledge")
        assert (twice.acknowledged, twice.dismissed, twice.notes) == snapshot

    async def test_notes_are_stored(self, test_db, seeded_db):
        record = await apply_alert_action(test_db, seeded_db["bolt"], "update_notes", notes="PO sent Tuesday")
        assert record.notes == "PO sent Tuesday"

        alert = await get_product_alert(test_db, seeded_db["bolt"])
        assert alert["notes"] == "PO sent Tuesday"

    async def test_invalid_action(self, test_db, seeded_db):
        with pytest.raises(ValidationError) as exc_info:
            await apply_alert_action(test_db, seeded_db["gadget"], "snooze")
        assert exc_info.value.extra["valid_actions"] == list(ALERT_ACTIONS)

    async def test_invalid_action_checked_before_product(self, test_db, seeded_db):
        with pytest.raises(ValidationError):
            await apply_alert_action(test_db, 9999, "snooze")

    async def test_unknown_product(self, test_db, seeded_db):
        with pytest.raises(NotFoundError):
            await apply_alert_action(test_db, 9999, "acknowledge")


@pytest.mark.asyncio
class TestAlertListing:
    async def test_one_alert_per_product_worst_first(self, test_db, seeded_db):
        listing = await list_alerts(test_db)
        statuses = [(a["product_id"], a["stock_status"]["status"]) for a in listing.alerts]
        assert statuses == [
            (seeded_db["gadget"], "out"),
            (seeded_db["bolt"], "critical"),
            (seeded_db["widget"], "adequate"),
        ]

    async def test_alert_without_record_uses_default_state(self, test_db, seeded_db):
        alert = await get_product_alert(test_db, seeded_db["widget"])
        assert alert["id"] is None
        assert alert["acknowledged"] is False
        assert alert["dismissed"] is False
        assert alert["notes"] == ""
        assert alert["current_stock"] == 120
        assert alert["reorder_recommendation"] is None
        assert {w["warehouse_code"] for w in alert["warehouse_breakdown"]} == {"WH-A", "WH-B"}

    async def test_recommendation_for_out_of_stock(self, test_db, seeded_db):
        alert = await get_product_alert(test_db, seeded_db["gadget"])
        assert alert["stock_status"]["severity"] == 4
        assert alert["reorder_recommendation"]["recommended_quantity"] == 200
        assert alert["reorder_recommendation"]["urgency"] == "critical"
        assert alert["reorder_recommendation"]["estimated_cost"] == 2000.0

    async def test_summary_counts(self, test_db, seeded_db):
        await apply_alert_action(test_db, seeded_db["bolt"], "acknowledge")
        summary = (await list_alerts(test_db)).summary

        assert summary.total == 3
        assert summary.critical == 2
        assert summary.adequate == 1
        assert summary.low == 0
        # gadget (out, unacknowledged) only; bolt is acknowledged
        assert summary.needs_attention == 1
        # gadget 200 × 10.00 + bolt 170 × 0.25
        assert summary.total_reorder_value == 2042.5

    async def test_filters_do_not_change_summary(self, test_db, seeded_db):
        listing = await list_alerts(test_db, status="out")
        assert [a["product_id"] for a in listing.alerts] == [seeded_db["gadget"]]
        assert listing.summary.total == 3

    async def test_category_and_acknowledged_filters(self, test_db, seeded_db):
        await apply_alert_action(test_db, seeded_db["bolt"], "acknowledge")

        hardware = await list_alerts(test_db, category="Hardware")
        assert {a["product_id"] for a in hardware.alerts} == {seeded_db["bolt"], seeded_db["widget"]}

        acked = await list_alerts(test_db, acknowledged=True)
        assert [a["product_id"] for a in acked.alerts] == [seeded_db["bolt"]]

    async def test_severity_tracks_live_stock(self, test_db, seeded_db):
        await apply_alert_action(test_db, seeded_db["bolt"], "acknowledge")
        await create_transfer(test_db, seeded_db["widget"], seeded_db["wh_a"], seeded_db["wh_b"], 1)

        # Stock moved between warehouses; widget total is unchanged
        alert = await get_product_alert(test_db, seeded_db["widget"])
        assert alert["current_stock"] == 120

        bolt = await get_product_alert(test_db, seeded_db["bolt"])
        assert bolt["stock_status"]["status"] == "critical"
        assert bolt["acknowledged"] is True

    async def test_unknown_product_alert(self, test_db, seeded_db):
        with pytest.raises(NotFoundError):
            await get_product_alert(test_db, 9999)


@pytest.mark.asyncio
class TestConcurrentAlertActions:
    async def test_simultaneous_first_actions_both_succeed(self, file_session_factory, file_seeded_db):
        pid = file_seeded_db["gadget"]

        async def acknowledge():
            async with file_session_factory() as db:
                record = await apply_alert_action(db, pid, "acknowledge")
                return record.id, record.acknowledged

        results = await asyncio.gather(acknowledge(), acknowledge())

        assert results[0] == results[1]
        assert results[0][1] is True
        async with file_session_factory() as db:
            rows = await RecordStore(db, AlertRecord).find_by(product_id=pid)
            assert len(rows) == 1

    async def test_mixed_first_actions_share_one_record(self, file_session_factory, file_seeded_db):
        pid = file_seeded_db["bolt"]

        async def act(action, notes=None):
            async with file_session_factory() as db:
                await apply_alert_action(db, pid, action, notes=notes)

        await asyncio.gather(act("dismiss"), act("update_notes", "call supplier"), act("acknowledge"))

        async with file_session_factory() as db:
            alert = await get_product_alert(db, pid)
        assert alert["dismissed"] is True
        assert alert["acknowledged"] is True
        assert alert["notes"] == "call supplier"

    async def test_record_created_elsewhere_is_picked_up(self, file_session_factory, file_seeded_db):
        pid = file_seeded_db["widget"]
        async with file_session_factory() as other:
            await RecordStore(other, AlertRecord).insert(product_id=pid, notes="from another worker")
            await other.commit()

        async with file_session_factory() as db:
            record = await _create_alert_record(RecordStore(db, AlertRecord, resource="alert"), pid, datetime.utcnow())
            assert record.notes == "from another worker"
