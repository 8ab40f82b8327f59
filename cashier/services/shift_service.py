import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from django.utils import timezone

from cashier.exceptions import (
    InvalidBalanceError,
    NoActiveShiftError,
    PendingTransactionsError,
)
from cashier.services.contracts import AuditLog, LedgerReader, ShiftStore
from cashier.services.notifications import NotificationResult, build_notifier
from cashier.services.reconciliation import ReconciliationEngine
from cashier.services.types import (
    ClosingReport,
    ShiftLogEntry,
    ShiftState,
    present_money,
)

logger = logging.getLogger(__name__)

OPEN_SHIFT = "OPEN_SHIFT"
CLOSE_SHIFT = "CLOSE_SHIFT"

# DECIMAL(18, 2)
MONEY_INTEGER_DIGITS = 16
MONEY_DECIMAL_PLACES = 2


def parse_money(value, label: str = "saldo") -> Decimal:
    """
    Accept int/str/Decimal cash amounts. Floats go through str() so 0.1
    stays 0.1. Rejects bools, NaN/Infinity, negatives and anything the
    DECIMAL(18, 2) columns cannot hold.
    """
    if value is None or isinstance(value, bool):
        raise InvalidBalanceError(f"{label} tidak valid.")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidBalanceError(f"{label} tidak valid.")
    if not amount.is_finite() or amount < 0:
        raise InvalidBalanceError(f"{label} tidak valid.")
    if amount.normalize().as_tuple().exponent < -MONEY_DECIMAL_PLACES or amount.adjusted() >= MONEY_INTEGER_DIGITS:
        raise InvalidBalanceError(f"{label} di luar batas.")
    return amount


class ShiftLifecycleManager:
    """
    Open / close state machine of a cashier shift.

    OPEN -> CLOSED is the only transition and CLOSED is terminal. Each
    transition and its audit entry commit in one store transaction.
    """

    def __init__(
        self,
        store: ShiftStore,
        audit_log: AuditLog,
        ledger: LedgerReader,
        engine: Optional[ReconciliationEngine] = None,
        notifier=None,
        clock=timezone.now,
    ):
        self.store = store
        self.audit_log = audit_log
        self.ledger = ledger
        self.engine = engine or ReconciliationEngine(ledger)
        self.notifier = notifier
        self.clock = clock

    # ------------------------------------------------------------------
    # commands
    # ------------------------------------------------------------------
    def open_shift(self, operator_id, opening_balance, note: str = "") -> ShiftState:
        opening_balance = parse_money(opening_balance, "Saldo pembukaan")

        with self.store.atomic():
            # the store's open-shift constraint decides races; DuplicateShiftError
            # comes from insert_open, not from a read beforehand
            shift = self.store.insert_open(
                operator_id,
                opening_balance=opening_balance,
                started_at=self.clock(),
                note=note,
            )
            self.audit_log.append(
                shift.id, OPEN_SHIFT, {"openingBalance": present_money(opening_balance)}
            )

        logger.info("Shift %s opened by operator %s (opening %s)", shift.id, operator_id, opening_balance)
        return shift

    def close_shift(self, operator_id, physical_cash, note: str = "") -> ClosingReport:
        physical_cash = parse_money(physical_cash, "Saldo penutupan")

        with self.store.atomic():
            shift = self.store.get_open(operator_id, for_update=True)
            if shift is None:
                raise NoActiveShiftError()

            pending = self.ledger.count_pending(operator_id)
            if pending > 0:
                logger.info("Close of shift %s blocked by %s pending transactions", shift.id, pending)
                raise PendingTransactionsError(pending)

            ended_at = self.clock()
            recon = self.engine.reconcile(operator_id, shift.started_at, ended_at, shift.opening_balance)
            system_total = recon.expected_cash
            difference = recon.difference(physical_cash)

            closed = self.store.close_if_open(
                shift.id,
                closing_balance=physical_cash,
                system_total=system_total,
                difference=difference,
                ended_at=ended_at,
                note=note,
            )
            if closed is None:
                # another request closed it between our read and the update
                raise NoActiveShiftError()

            self.audit_log.append(shift.id, CLOSE_SHIFT, {
                "closingBalance": present_money(physical_cash),
                "systemTotal": present_money(system_total),
                "difference": present_money(difference),
                "totalTransactions": present_money(recon.gross_revenue),
                "cashTotal": present_money(recon.cash_sales),
            })
            logs = self.audit_log.list_for_shift(shift.id)

        logger.info(
            "Shift %s closed by operator %s: expected %s, counted %s, difference %s",
            closed.id, operator_id, system_total, physical_cash, difference,
        )
        return ClosingReport(shift=closed, reconciliation=recon, logs=logs)

    def send_closing_summary(self, report: ClosingReport, recipient: Optional[str] = None):
        """
        Hand the report to the notifier exactly once. Retries belong to the
        notifier; a failure here never touches the closed shift.
        """
        if self.notifier is None:
            return NotificationResult(success=False, error="Notifier tidak dikonfigurasi.")
        try:
            result = self.notifier.send(report, recipient)
        except Exception as exc:
            logger.exception("Closing summary for shift %s could not be sent", report.shift.id)
            return NotificationResult(success=False, error=str(exc))

        if not result.success:
            logger.warning("Closing summary for shift %s not delivered: %s", report.shift.id, result.error)
        return result

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def get_current_shift(self, operator_id) -> Optional[ShiftState]:
        return self.store.get_open(operator_id)

    def get_shift(self, shift_id) -> Optional[ShiftState]:
        return self.store.get(shift_id)

    def list_shifts(self, operator_id=None, limit: int = 200) -> List[ShiftState]:
        return self.store.list_shifts(operator_id=operator_id, limit=limit)

    def shift_logs(self, shift_id) -> List[ShiftLogEntry]:
        return self.audit_log.list_for_shift(shift_id)

    def shift_report(self, shift: ShiftState) -> ClosingReport:
        """
        Recompute the report of any shift. A CLOSED shift keeps its stored
        window and snapshot; an OPEN one is previewed up to now and nothing
        is written.
        """
        window_end = shift.ended_at or self.clock()
        recon = self.engine.reconcile(shift.operator_id, shift.started_at, window_end, shift.opening_balance)
        return ClosingReport(shift=shift, reconciliation=recon, logs=self.audit_log.list_for_shift(shift.id))


def build_shift_manager(notifier=None) -> ShiftLifecycleManager:
    # lazy import: keeps this module free of ORM imports for unit tests
    from cashier.services.stores import DjangoAuditLog, DjangoLedgerReader, DjangoShiftStore

    ledger = DjangoLedgerReader()
    return ShiftLifecycleManager(
        store=DjangoShiftStore(),
        audit_log=DjangoAuditLog(),
        ledger=ledger,
        notifier=notifier if notifier is not None else build_notifier(),
    )
