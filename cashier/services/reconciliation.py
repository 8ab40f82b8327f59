from datetime import datetime
from decimal import Decimal

from cashier.services.contracts import LedgerReader
from cashier.services.types import (
    PAYMENT_METHODS,
    TRANSACTION_STATUSES,
    Reconciliation,
)

COMPLETED = "COMPLETED"
CASH = "CASH"

# report key -> ledger column, summed over COMPLETED sales
DISCOUNT_FIELDS = {
    "discount": "discount",
    "voucherDiscount": "voucher_discount",
    "promoDiscount": "promo_discount",
    "tax": "tax",
}
POINT_FIELDS = {
    "earned": "points_earned",
    "used": "points_used",
}


class ReconciliationEngine:
    """
    Expected-vs-actual cash for one operator over a time window.

    Two totals are kept apart on purpose:
    - cash_sales: COMPLETED + CASH only, the basis of expected cash
    - gross_revenue: COMPLETED across every payment method

    Sums stay exact Decimals; rounding happens when a report is rendered.
    The caller runs this inside the close transaction and passes a fixed
    window_end, so every sub-query sees the same bounds.
    """

    def __init__(self, ledger: LedgerReader):
        self.ledger = ledger

    def reconcile(
        self,
        operator_id,
        window_start: datetime,
        window_end: datetime,
        opening_balance: Decimal,
    ) -> Reconciliation:
        ledger = self.ledger

        payment_breakdown = {
            method: ledger.aggregate(
                operator_id, window_start, window_end,
                status=COMPLETED, payment_method=method,
            )
            for method in PAYMENT_METHODS
        }

        gross = ledger.aggregate(operator_id, window_start, window_end, status=COMPLETED)

        status_counts = {
            status: ledger.count(operator_id, window_start, window_end, status=status)
            for status in TRANSACTION_STATUSES
        }

        discount_totals = {
            key: Decimal(ledger.aggregate(
                operator_id, window_start, window_end,
                field=column, status=COMPLETED,
            ).sum)
            for key, column in DISCOUNT_FIELDS.items()
        }

        points_totals = {
            key: int(ledger.aggregate(
                operator_id, window_start, window_end,
                field=column, status=COMPLETED,
            ).sum)
            for key, column in POINT_FIELDS.items()
        }

        items_sold = ledger.sum_line_item_quantity(operator_id, window_start, window_end, COMPLETED)

        return Reconciliation(
            window_start=window_start,
            window_end=window_end,
            opening_balance=Decimal(opening_balance),
            cash_sales=Decimal(payment_breakdown[CASH].sum),
            gross_revenue=Decimal(gross.sum),
            payment_breakdown=payment_breakdown,
            status_counts=status_counts,
            discount_totals=discount_totals,
            points_totals=points_totals,
            items_sold=int(items_sold),
        )
