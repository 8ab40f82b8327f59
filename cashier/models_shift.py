from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from cashier.services.types import ShiftLogEntry, ShiftState


class ShiftStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    CLOSED = "CLOSED", "Closed"


class ShiftAction(models.TextChoices):
    OPEN_SHIFT = "OPEN_SHIFT", "Open shift"
    CLOSE_SHIFT = "CLOSE_SHIFT", "Close shift"
    UPDATE_SHIFT = "UPDATE_SHIFT", "Update shift"


# closing columns are written together by close, never one at a time
CLOSING_FIELDS = ("closing_balance", "physical_cash", "system_total", "difference", "ended_at")


def _money(**kwargs):
    return models.DecimalField(max_digits=18, decimal_places=2, **kwargs)


class Shift(models.Model):
    cashier = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="shifts")

    status = models.CharField(max_length=10, choices=ShiftStatus.choices, default=ShiftStatus.OPEN)

    started_at = models.DateTimeField(default=timezone.now)
    ended_at = models.DateTimeField(null=True, blank=True)

    opening_balance = _money(default=Decimal("0.00"))
    closing_balance = _money(null=True, blank=True)
    physical_cash = _money(null=True, blank=True)

    # snapshot written once at close
    system_total = _money(null=True, blank=True)
    difference = _money(null=True, blank=True)

    note = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["-started_at", "-id"]
        indexes = [
            models.Index(fields=["cashier", "status", "started_at"], name="cashier_shi_cashier_4c7d1a_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["cashier"],
                condition=Q(status=ShiftStatus.OPEN),
                name="uniq_open_shift_per_cashier",
            ),
            models.CheckConstraint(
                condition=(
                    Q(status=ShiftStatus.OPEN, **{f"{f}__isnull": True for f in CLOSING_FIELDS})
                    | Q(status=ShiftStatus.CLOSED, **{f"{f}__isnull": False for f in CLOSING_FIELDS})
                ),
                name="shift_closing_fields_all_or_none",
            ),
            models.CheckConstraint(
                condition=Q(opening_balance__gte=0),
                name="shift_opening_balance_non_negative",
            ),
        ]

    def __str__(self):
        return f"Shift#{self.id} {self.cashier_id} {self.status}"

    def to_state(self) -> ShiftState:
        return ShiftState(
            id=self.id,
            operator_id=self.cashier_id,
            status=self.status,
            opening_balance=self.opening_balance,
            closing_balance=self.closing_balance,
            physical_cash=self.physical_cash,
            system_total=self.system_total,
            difference=self.difference,
            started_at=self.started_at,
            ended_at=self.ended_at,
            note=self.note,
        )


class ShiftLog(models.Model):
    """Append-only audit trail of a shift."""

    shift = models.ForeignKey(Shift, on_delete=models.CASCADE, related_name="logs")
    action = models.CharField(max_length=20, choices=ShiftAction.choices, db_index=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.action} shift#{self.shift_id}"

    def to_entry(self) -> ShiftLogEntry:
        return ShiftLogEntry(
            id=self.id,
            shift_id=self.shift_id,
            action=self.action,
            details=self.details,
            created_at=self.created_at,
        )
