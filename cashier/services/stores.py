"""
Django implementations of the shift store contracts.

Atomicity: open/close run inside `ShiftStore.atomic()`. The open-shift
invariant is held by the partial unique index on (cashier) WHERE
status='OPEN', and close goes through a conditional UPDATE that only
matches a row that is still OPEN.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from functools import wraps
from typing import List, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, DecimalField, IntegerField, Sum, Value
from django.db.models.functions import Coalesce

from cashier.exceptions import DuplicateShiftError, StorageError
from cashier.models import Transaction, TransactionItem, TransactionStatus
from cashier.models_shift import Shift, ShiftLog, ShiftStatus
from cashier.services.types import Aggregate, ShiftLogEntry, ShiftState, ZERO

logger = logging.getLogger(__name__)

DEC0 = Value(Decimal("0.00"), output_field=DecimalField(max_digits=18, decimal_places=2))
INT0 = Value(0, output_field=IntegerField())

OPEN_SHIFT_CONSTRAINT = "uniq_open_shift_per_cashier"


def storage_guard(fn):
    """Surface database failures as StorageError, keep domain errors as-is."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except DatabaseError as exc:
            logger.exception("Shift storage failure in %s", fn.__name__)
            raise StorageError() from exc

    return wrapper


class DjangoShiftStore:
    def atomic(self):
        return _atomic()

    def _qs(self):
        return Shift.objects.all()

    @storage_guard
    def get_open(self, operator_id, for_update: bool = False) -> Optional[ShiftState]:
        qs = self._qs().filter(cashier_id=operator_id, status=ShiftStatus.OPEN)
        if for_update:
            qs = qs.select_for_update()
        shift = qs.order_by("-started_at", "-id").first()
        return shift.to_state() if shift else None

    @storage_guard
    def get(self, shift_id) -> Optional[ShiftState]:
        shift = self._qs().filter(pk=shift_id).first()
        return shift.to_state() if shift else None

    @storage_guard
    def list_shifts(self, operator_id=None, limit: int = 200) -> List[ShiftState]:
        qs = self._qs()
        if operator_id is not None:
            qs = qs.filter(cashier_id=operator_id)
        return [s.to_state() for s in qs.order_by("-started_at", "-id")[:limit]]

    @storage_guard
    def insert_open(self, operator_id, opening_balance: Decimal, started_at: datetime, note: str = "") -> ShiftState:
        try:
            # savepoint so a constraint hit leaves the outer transaction usable
            with transaction.atomic():
                shift = Shift.objects.create(
                    cashier_id=operator_id,
                    status=ShiftStatus.OPEN,
                    opening_balance=opening_balance,
                    started_at=started_at,
                    note=note or "",
                )
        except IntegrityError as exc:
            if _is_open_shift_conflict(exc):
                raise DuplicateShiftError() from exc
            raise
        return shift.to_state()

    @storage_guard
    def close_if_open(
        self,
        shift_id,
        *,
        closing_balance: Decimal,
        system_total: Decimal,
        difference: Decimal,
        ended_at: datetime,
        note: Optional[str] = None,
    ) -> Optional[ShiftState]:
        changes = dict(
            status=ShiftStatus.CLOSED,
            closing_balance=closing_balance,
            physical_cash=closing_balance,
            system_total=system_total,
            difference=difference,
            ended_at=ended_at,
        )
        if note:
            changes["note"] = note

        updated = self._qs().filter(pk=shift_id, status=ShiftStatus.OPEN).update(**changes)
        if updated != 1:
            return None
        return self._qs().get(pk=shift_id).to_state()


def _is_open_shift_conflict(exc: IntegrityError) -> bool:
    diag = getattr(exc.__cause__, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return constraint == OPEN_SHIFT_CONSTRAINT
    # sqlite carries no constraint name, only the columns in the message
    msg = str(exc)
    return OPEN_SHIFT_CONSTRAINT in msg or "cashier_shift.cashier_id" in msg


@contextmanager
def _atomic():
    try:
        with transaction.atomic():
            yield
    except DatabaseError as exc:
        # commit-time failures (e.g. serialization) surface here
        logger.exception("Shift transaction failed to commit")
        raise StorageError() from exc


class DjangoAuditLog:
    @storage_guard
    def append(self, shift_id, action: str, details: dict) -> ShiftLogEntry:
        entry = ShiftLog.objects.create(
            shift_id=shift_id,
            action=action,
            details=details or {},
        )
        return entry.to_entry()

    @storage_guard
    def list_for_shift(self, shift_id) -> List[ShiftLogEntry]:
        qs = ShiftLog.objects.filter(shift_id=shift_id)
        return [e.to_entry() for e in qs.order_by("created_at", "id")]


class DjangoLedgerReader:
    """
    Read-only view over cashier.Transaction / TransactionItem.

    Window bounds are inclusive on both ends.
    """

    def _transactions(self, operator_id, start, end):
        return Transaction.objects.filter(
            cashier_id=operator_id,
            created_at__gte=start,
            created_at__lte=end,
        )

    @storage_guard
    def aggregate(self, operator_id, start, end, field="final_total", status=None, payment_method=None) -> Aggregate:
        qs = self._transactions(operator_id, start, end)
        if status:
            qs = qs.filter(status=status)
        if payment_method:
            qs = qs.filter(payment_method=payment_method)

        zero = INT0 if field.startswith("points_") else DEC0
        agg = qs.aggregate(s=Coalesce(Sum(field), zero), c=Count("id"))
        total = agg["s"]
        if zero is DEC0:
            total = Decimal(total or ZERO)
        return Aggregate(total or 0, int(agg["c"] or 0))

    @storage_guard
    def count(self, operator_id, start, end, status=None) -> int:
        qs = self._transactions(operator_id, start, end)
        if status:
            qs = qs.filter(status=status)
        return qs.count()

    @storage_guard
    def sum_line_item_quantity(self, operator_id, start, end, status) -> int:
        qs = TransactionItem.objects.filter(
            transaction__cashier_id=operator_id,
            transaction__created_at__gte=start,
            transaction__created_at__lte=end,
            transaction__status=status,
        )
        return int(qs.aggregate(q=Coalesce(Sum("quantity"), INT0))["q"] or 0)

    @storage_guard
    def count_pending(self, operator_id) -> int:
        return Transaction.objects.filter(
            cashier_id=operator_id,
            status=TransactionStatus.PENDING,
        ).count()
