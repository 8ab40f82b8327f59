from decimal import Decimal

import pytest

from cashier.exceptions import (
    DuplicateShiftError,
    InvalidBalanceError,
    NoActiveShiftError,
    PendingTransactionsError,
    StorageError,
)
from cashier.services.notifications import NotificationResult
from cashier.services.shift_service import ShiftLifecycleManager, parse_money
from tests.conftest import OPERATOR, RecordingNotifier
from tests.fakes import BrokenAuditLog, FakeAuditLog, FakeShiftStore, StaleReadShiftStore


def _three_cash_sales(ledger, clock):
    for total in ("10000", "15000", "25000"):
        ledger.add(OPERATOR, total, clock.advance(minutes=5), quantities=(1,))


class TestOpenShift:
    def test_open_shift(self, manager, clock):
        shift = manager.open_shift(OPERATOR, "100000")
        assert shift.status == "OPEN"
        assert shift.opening_balance == Decimal("100000")
        assert shift.started_at == clock.now
        assert shift.closing_balance is None and shift.ended_at is None

    def test_open_writes_audit_entry(self, manager):
        shift = manager.open_shift(OPERATOR, Decimal("100000"), note="pagi")
        logs = manager.shift_logs(shift.id)
        assert [e.action for e in logs] == ["OPEN_SHIFT"]
        assert logs[0].details == {"openingBalance": "100000.00"}
        assert shift.note == "pagi"

    def test_cannot_open_two_shifts(self, manager):
        manager.open_shift(OPERATOR, "100000")
        with pytest.raises(DuplicateShiftError):
            manager.open_shift(OPERATOR, "50000")
        assert len(manager.list_shifts(OPERATOR)) == 1

    def test_other_operator_can_open(self, manager):
        manager.open_shift(OPERATOR, "100000")
        other = manager.open_shift(OPERATOR + 1, "0")
        assert other.is_open

    @pytest.mark.parametrize("value", [None, "", "abc", "-1", -5, "NaN", "Infinity", True])
    def test_rejects_invalid_opening_balance(self, manager, value):
        with pytest.raises(InvalidBalanceError):
            manager.open_shift(OPERATOR, value)
        assert manager.get_current_shift(OPERATOR) is None

    def test_audit_failure_rolls_back_open(self, memdb, ledger, clock):
        manager = ShiftLifecycleManager(
            store=FakeShiftStore(memdb),
            audit_log=BrokenAuditLog(memdb),
            ledger=ledger,
            clock=clock,
        )
        with pytest.raises(StorageError):
            manager.open_shift(OPERATOR, "100000")
        assert manager.get_current_shift(OPERATOR) is None


class TestCloseShift:
    def test_close_without_open_shift(self, manager):
        with pytest.raises(NoActiveShiftError):
            manager.close_shift(OPERATOR, "0")

    def test_close_blocked_by_pending(self, manager, ledger, clock):
        manager.open_shift(OPERATOR, "100000")
        ledger.add(OPERATOR, "5000", clock.advance(minutes=1), status="PENDING")
        ledger.add(OPERATOR, "7000", clock.advance(minutes=1), status="PENDING")

        with pytest.raises(PendingTransactionsError) as exc:
            manager.close_shift(OPERATOR, "100000")

        assert exc.value.count == 2
        assert exc.value.as_payload()["count"] == 2
        assert manager.get_current_shift(OPERATOR).is_open

    def test_pending_of_other_operator_does_not_block(self, manager, ledger, clock):
        manager.open_shift(OPERATOR, "0")
        ledger.add(OPERATOR + 1, "5000", clock.advance(minutes=1), status="PENDING")
        report = manager.close_shift(OPERATOR, "0")
        assert report.shift.status == "CLOSED"

    def test_close_overage(self, manager, ledger, clock):
        manager.open_shift(OPERATOR, "100000")
        _three_cash_sales(ledger, clock)
        clock.advance(hours=1)

        report = manager.close_shift(OPERATOR, "150500")

        assert report.system_expected_cash == Decimal("150000")
        assert report.physical_cash == Decimal("150500")
        assert report.difference == Decimal("500")
        assert report.reconciliation.cash_sales == Decimal("50000")
        assert report.reconciliation.items_sold == 3
        assert report.shift.status == "CLOSED"
        assert report.shift.ended_at == clock.now
        assert manager.get_current_shift(OPERATOR) is None

    def test_card_sales_stay_out_of_expected_cash(self, manager, ledger, clock):
        manager.open_shift(OPERATOR, "100000")
        _three_cash_sales(ledger, clock)
        ledger.add(OPERATOR, "20000", clock.advance(minutes=5), payment_method="CARD")

        report = manager.close_shift(OPERATOR, "150500")
        recon = report.reconciliation

        assert recon.gross_revenue == Decimal("70000")
        assert report.system_expected_cash == Decimal("150000")
        assert report.difference == Decimal("500")
        assert recon.payment_breakdown["CARD"].sum == Decimal("20000")
        assert recon.payment_breakdown["CARD"].count == 1

    def test_shortage_is_negative(self, manager, ledger, clock):
        manager.open_shift(OPERATOR, "100000")
        ledger.add(OPERATOR, "50000", clock.advance(minutes=5))
        report = manager.close_shift(OPERATOR, "140000")
        assert report.difference == Decimal("-10000")

    def test_close_writes_audit_entry(self, manager, ledger, clock):
        shift = manager.open_shift(OPERATOR, "100000")
        _three_cash_sales(ledger, clock)
        ledger.add(OPERATOR, "20000", clock.advance(minutes=5), payment_method="QRIS")

        report = manager.close_shift(OPERATOR, "150500", note="setor bank")

        assert [e.action for e in report.logs] == ["OPEN_SHIFT", "CLOSE_SHIFT"]
        assert report.logs[-1].details == {
            "closingBalance": "150500.00",
            "systemTotal": "150000.00",
            "difference": "500.00",
            "totalTransactions": "70000.00",
            "cashTotal": "50000.00",
        }
        assert manager.get_shift(shift.id).note == "setor bank"

    def test_closed_shift_cannot_close_again(self, manager):
        manager.open_shift(OPERATOR, "0")
        manager.close_shift(OPERATOR, "0")
        with pytest.raises(NoActiveShiftError):
            manager.close_shift(OPERATOR, "0")

    def test_lost_race_on_conditional_close(self, memdb, ledger, clock):
        store = StaleReadShiftStore(memdb)
        manager = ShiftLifecycleManager(store=store, audit_log=FakeAuditLog(memdb), ledger=ledger, clock=clock)
        manager.open_shift(OPERATOR, "0")
        store.seen.clear()
        manager.close_shift(OPERATOR, "0")

        # the stale read still reports OPEN; the conditional write must refuse
        with pytest.raises(NoActiveShiftError):
            manager.close_shift(OPERATOR, "0")
        closes = [e for e in memdb.logs if e.action == "CLOSE_SHIFT"]
        assert len(closes) == 1

    def test_reopen_after_close(self, manager):
        first = manager.open_shift(OPERATOR, "0")
        manager.close_shift(OPERATOR, "0")
        second = manager.open_shift(OPERATOR, "50000")
        assert second.id != first.id
        assert manager.get_current_shift(OPERATOR) == second

    def test_invalid_physical_cash(self, manager):
        manager.open_shift(OPERATOR, "0")
        with pytest.raises(InvalidBalanceError):
            manager.close_shift(OPERATOR, "-1")
        assert manager.get_current_shift(OPERATOR).is_open

    @pytest.mark.parametrize("value", ["1e30", "12345678901234567", "10.005"])
    def test_physical_cash_out_of_range(self, manager, value):
        manager.open_shift(OPERATOR, "0")
        with pytest.raises(InvalidBalanceError):
            manager.close_shift(OPERATOR, value)
        assert manager.get_current_shift(OPERATOR).is_open

    def test_audit_failure_rolls_back_close(self, memdb, ledger, clock):
        manager = ShiftLifecycleManager(
            store=FakeShiftStore(memdb),
            audit_log=BrokenAuditLog(memdb, fail_on="CLOSE_SHIFT"),
            ledger=ledger,
            clock=clock,
        )
        shift = manager.open_shift(OPERATOR, "100000")
        ledger.add(OPERATOR, "50000", clock.advance(minutes=5))

        with pytest.raises(StorageError):
            manager.close_shift(OPERATOR, "150500")

        current = manager.get_current_shift(OPERATOR)
        assert current.id == shift.id
        assert current.system_total is None and current.ended_at is None
        assert [e.action for e in manager.shift_logs(shift.id)] == ["OPEN_SHIFT"]


class TestReconciliation:
    def test_window_bounds(self, manager, ledger, clock):
        ledger.add(OPERATOR, "99999", clock.now)  # before open
        clock.advance(minutes=1)
        shift = manager.open_shift(OPERATOR, "0")
        ledger.add(OPERATOR, "10000", shift.started_at)
        clock.advance(hours=2)

        report = manager.close_shift(OPERATOR, "10000")

        assert report.reconciliation.cash_sales == Decimal("10000")
        assert report.reconciliation.window_start == shift.started_at
        assert report.reconciliation.window_end == report.shift.ended_at

    def test_breakdown_sums_to_gross(self, manager, ledger, clock):
        manager.open_shift(OPERATOR, "0")
        for method, total in [("CASH", "10000.10"), ("CARD", "2500.55"), ("QRIS", "3300"), ("BANK_TRANSFER", "120.35")]:
            ledger.add(OPERATOR, total, clock.advance(minutes=1), payment_method=method)
        ledger.add(OPERATOR, "999", clock.advance(minutes=1), status="CANCELLED")

        recon = manager.close_shift(OPERATOR, "0").reconciliation

        total = sum(agg.sum for agg in recon.payment_breakdown.values())
        assert abs(total - recon.gross_revenue) <= Decimal("0.01")
        assert recon.gross_revenue == Decimal("15921.00")

    def test_status_counts_discounts_and_points(self, manager, ledger, clock):
        manager.open_shift(OPERATOR, "0")
        ledger.add(
            OPERATOR, "45000", clock.advance(minutes=1),
            discount=Decimal("1000"), voucher_discount=Decimal("2000"),
            promo_discount=Decimal("500"), tax=Decimal("4500"),
            points_earned=45, points_used=10, quantities=(2, 3),
        )
        ledger.add(OPERATOR, "5000", clock.advance(minutes=1), status="CANCELLED", points_earned=5)
        ledger.add(OPERATOR, "8000", clock.advance(minutes=1), status="REFUNDED")

        recon = manager.close_shift(OPERATOR, "45000").reconciliation

        assert recon.status_counts == {"COMPLETED": 1, "PENDING": 0, "CANCELLED": 1, "REFUNDED": 1}
        assert recon.discount_totals == {
            "discount": Decimal("1000"),
            "voucherDiscount": Decimal("2000"),
            "promoDiscount": Decimal("500"),
            "tax": Decimal("4500"),
        }
        assert recon.points_totals == {"earned": 45, "used": 10}
        assert recon.items_sold == 5

    def test_sums_are_not_rounded(self, manager, ledger, clock):
        manager.open_shift(OPERATOR, "0")
        ledger.add(OPERATOR, "0.005", clock.advance(minutes=1))
        ledger.add(OPERATOR, "0.005", clock.advance(minutes=1))
        recon = manager.close_shift(OPERATOR, "0.01").reconciliation
        assert recon.cash_sales == Decimal("0.010")

    def test_open_shift_report_is_a_preview(self, manager, ledger, clock):
        shift = manager.open_shift(OPERATOR, "100000")
        ledger.add(OPERATOR, "25000", clock.advance(minutes=10))
        clock.advance(minutes=1)

        report = manager.shift_report(shift)

        assert report.reconciliation.window_end == clock.now
        assert report.system_expected_cash == Decimal("125000")
        assert report.difference is None
        assert manager.get_current_shift(OPERATOR).is_open

    def test_closed_shift_report_keeps_snapshot(self, manager, ledger, clock):
        manager.open_shift(OPERATOR, "100000")
        ledger.add(OPERATOR, "50000", clock.advance(minutes=10))
        closed = manager.close_shift(OPERATOR, "150500").shift

        # a late row backdated into the window does not move the stored snapshot
        ledger.add(OPERATOR, "1000", closed.ended_at)
        report = manager.shift_report(manager.get_shift(closed.id))

        assert report.system_expected_cash == Decimal("150000")
        assert report.difference == Decimal("500")
        assert report.reconciliation.window_end == closed.ended_at


class TestQueries:
    def test_current_shift_is_idempotent(self, manager):
        manager.open_shift(OPERATOR, "100000")
        first = manager.get_current_shift(OPERATOR)
        assert all(manager.get_current_shift(OPERATOR) == first for _ in range(5))

    def test_no_current_shift(self, manager):
        assert manager.get_current_shift(OPERATOR) is None

    def test_list_newest_first(self, manager, clock):
        ids = []
        for _ in range(3):
            ids.append(manager.open_shift(OPERATOR, "0").id)
            clock.advance(hours=1)
            manager.close_shift(OPERATOR, "0")
            clock.advance(hours=1)
        listed = manager.list_shifts(OPERATOR)
        assert [s.id for s in listed] == list(reversed(ids))
        assert len(manager.list_shifts(OPERATOR, limit=2)) == 2


class TestClosingSummary:
    def _closed_report(self, manager):
        manager.open_shift(OPERATOR, "0")
        return manager.close_shift(OPERATOR, "0")

    def test_without_notifier(self, manager):
        result = manager.send_closing_summary(self._closed_report(manager))
        assert not result.success
        assert result.error

    def test_sends_once(self, manager):
        notifier = RecordingNotifier()
        manager.notifier = notifier
        report = self._closed_report(manager)

        result = manager.send_closing_summary(report, "08123456789")

        assert result.success
        assert notifier.calls == [(report, "08123456789")]

    def test_notifier_crash_is_reported_not_raised(self, manager):
        class Exploding:
            def send(self, report, recipient=None):
                raise RuntimeError("gateway down")

        manager.notifier = Exploding()
        report = self._closed_report(manager)

        result = manager.send_closing_summary(report)

        assert result == NotificationResult(success=False, error="gateway down")
        assert manager.get_shift(report.shift.id).status == "CLOSED"


class TestParseMoney:
    def test_accepts_common_inputs(self):
        assert parse_money(100000) == Decimal("100000")
        assert parse_money("150500.50") == Decimal("150500.50")
        assert parse_money(0.1) == Decimal("0.1")
        assert parse_money(Decimal("0")) == Decimal("0")

    @pytest.mark.parametrize("value", [
        "1e30",
        "10000000000000000",
        Decimal("99999999999999999.99"),
        "0.001",
        "150500.555",
    ])
    def test_rejects_what_the_columns_cannot_hold(self, value):
        with pytest.raises(InvalidBalanceError):
            parse_money(value)

    @pytest.mark.parametrize("value", ["9999999999999999.99", "1.500", "1E+2", "0.00"])
    def test_accepts_values_at_the_column_limits(self, value):
        assert parse_money(value) == Decimal(value)

    def test_huge_opening_balance(self, manager):
        with pytest.raises(InvalidBalanceError):
            manager.open_shift(OPERATOR, "1e30")
        assert manager.get_current_shift(OPERATOR) is None

    def test_message_names_the_field(self):
        with pytest.raises(InvalidBalanceError) as exc:
            parse_money("x", "Saldo pembukaan")
        assert "Saldo pembukaan" in exc.value.detail
