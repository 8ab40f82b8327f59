from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, NamedTuple, Optional

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

PAYMENT_METHODS = ("CASH", "CARD", "QRIS", "BANK_TRANSFER")
TRANSACTION_STATUSES = ("COMPLETED", "PENDING", "CANCELLED", "REFUNDED")

OPEN = "OPEN"
CLOSED = "CLOSED"


def present_money(v) -> Optional[str]:
    """2dp string for JSON payloads; only called on final figures."""
    if v is None:
        return None
    return str(Decimal(v).quantize(CENT, rounding=ROUND_HALF_UP))


class Aggregate(NamedTuple):
    sum: Decimal
    count: int


@dataclass(frozen=True)
class ShiftState:
    id: Any
    operator_id: Any
    status: str
    opening_balance: Decimal
    started_at: datetime
    closing_balance: Optional[Decimal] = None
    physical_cash: Optional[Decimal] = None
    system_total: Optional[Decimal] = None
    difference: Optional[Decimal] = None
    ended_at: Optional[datetime] = None
    note: str = ""

    @property
    def is_open(self) -> bool:
        return self.status == OPEN


@dataclass(frozen=True)
class ShiftLogEntry:
    id: Any
    shift_id: Any
    action: str
    details: Dict[str, Any]
    created_at: datetime


@dataclass(frozen=True)
class Reconciliation:
    window_start: datetime
    window_end: datetime
    opening_balance: Decimal
    cash_sales: Decimal
    gross_revenue: Decimal
    payment_breakdown: Dict[str, Aggregate]
    status_counts: Dict[str, int]
    discount_totals: Dict[str, Decimal]
    points_totals: Dict[str, int]
    items_sold: int

    @property
    def expected_cash(self) -> Decimal:
        return self.opening_balance + self.cash_sales

    def difference(self, physical_cash: Decimal) -> Decimal:
        # shortage is negative, overage positive; never clamped
        return physical_cash - self.expected_cash


@dataclass(frozen=True)
class ClosingReport:
    shift: ShiftState
    reconciliation: Reconciliation
    logs: List[ShiftLogEntry] = field(default_factory=list)

    @property
    def physical_cash(self) -> Optional[Decimal]:
        return self.shift.physical_cash

    @property
    def system_expected_cash(self) -> Decimal:
        # the snapshot written at close wins over a later recomputation
        if self.shift.system_total is not None:
            return self.shift.system_total
        return self.reconciliation.expected_cash

    @property
    def difference(self) -> Optional[Decimal]:
        if self.shift.difference is not None:
            return self.shift.difference
        if self.shift.physical_cash is None:
            return None
        return self.shift.physical_cash - self.system_expected_cash
