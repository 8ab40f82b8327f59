"""
Persistence seams of the shift core.

`ShiftStore`, `AuditLog` and `LedgerReader` are the only ways the lifecycle
manager and the reconciliation engine touch storage. Production uses the
Django classes in `cashier.services.stores`; tests use in-memory ones.
"""
from datetime import datetime
from decimal import Decimal
from typing import ContextManager, List, Optional, Protocol

from cashier.services.types import Aggregate, ShiftLogEntry, ShiftState


class ShiftStore(Protocol):
    def atomic(self) -> ContextManager: ...

    def get_open(self, operator_id, for_update: bool = False) -> Optional[ShiftState]: ...

    def get(self, shift_id) -> Optional[ShiftState]: ...

    def list_shifts(self, operator_id=None, limit: int = 200) -> List[ShiftState]: ...

    def insert_open(self, operator_id, opening_balance: Decimal, started_at: datetime, note: str = "") -> ShiftState: ...

    def close_if_open(
        self,
        shift_id,
        *,
        closing_balance: Decimal,
        system_total: Decimal,
        difference: Decimal,
        ended_at: datetime,
        note: Optional[str] = None,
    ) -> Optional[ShiftState]: ...


class AuditLog(Protocol):
    def append(self, shift_id, action: str, details: dict) -> ShiftLogEntry: ...

    def list_for_shift(self, shift_id) -> List[ShiftLogEntry]: ...


class LedgerReader(Protocol):
    def aggregate(
        self,
        operator_id,
        start: datetime,
        end: datetime,
        field: str = "final_total",
        status: Optional[str] = None,
        payment_method: Optional[str] = None,
    ) -> Aggregate: ...

    def count(self, operator_id, start: datetime, end: datetime, status: Optional[str] = None) -> int: ...

    def sum_line_item_quantity(self, operator_id, start: datetime, end: datetime, status: str) -> int: ...

    def count_pending(self, operator_id) -> int: ...
