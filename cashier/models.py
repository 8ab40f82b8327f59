from decimal import Decimal

from django.db import models
from django.conf import settings
from django.utils import timezone
from django.contrib.auth.models import AbstractUser


# ========== CUSTOM USER ==========
class CustomUser(AbstractUser):
    ROLE_ADMIN = "admin"
    ROLE_MANAGER = "manager"
    ROLE_CASHIER = "cashier"

    ROLE_CHOICES = (
        (ROLE_ADMIN, "Admin"),
        (ROLE_MANAGER, "Manager"),
        (ROLE_CASHIER, "Cashier"),
    )

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CASHIER, db_index=True)

    @property
    def role_label(self):
        if self.is_superuser:
            return self.ROLE_ADMIN
        return self.role or self.ROLE_CASHIER

    def save(self, *args, **kwargs):
        """
        HARD POLICY:
        - ADMIN => is_superuser=True and is_staff=True
        - MANAGER => is_staff=True (back office reports), not superuser
        - CASHIER => neither
        """
        r = (self.role or self.ROLE_CASHIER).lower().strip()

        if r == self.ROLE_ADMIN:
            self.is_superuser = True
            self.is_staff = True
        elif r == self.ROLE_MANAGER:
            self.is_superuser = False
            self.is_staff = True
        else:
            self.is_superuser = False
            self.is_staff = False

        super().save(*args, **kwargs)


# ==========================================================
# SALES LEDGER
# Written by checkout / payment flows. The shift core only reads it.
# ==========================================================
class TransactionStatus(models.TextChoices):
    COMPLETED = "COMPLETED", "Completed"
    PENDING = "PENDING", "Pending"
    CANCELLED = "CANCELLED", "Cancelled"
    REFUNDED = "REFUNDED", "Refunded"


class PaymentMethod(models.TextChoices):
    CASH = "CASH", "Cash"
    CARD = "CARD", "Card"
    QRIS = "QRIS", "QRIS"
    BANK_TRANSFER = "BANK_TRANSFER", "Bank Transfer"


def _money(**kwargs):
    return models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"), **kwargs)


class Transaction(models.Model):
    cashier = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="transactions",
    )
    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING,
        db_index=True,
    )
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
        db_index=True,
    )

    subtotal = _money()
    discount = _money()
    voucher_discount = _money()
    promo_discount = _money()
    tax = _money()
    final_total = _money()

    points_earned = models.IntegerField(default=0)
    points_used = models.IntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ("-created_at", "-id")
        indexes = [
            models.Index(fields=["cashier", "status", "created_at"], name="cashier_tra_cashier_9b1f2e_idx"),
        ]

    def __str__(self):
        return f"TRX#{self.id} {self.status} {self.final_total}"


class TransactionItem(models.Model):
    transaction = models.ForeignKey(Transaction, related_name="items", on_delete=models.CASCADE)
    product_name = models.CharField(max_length=150)
    quantity = models.PositiveIntegerField(default=1)
    price = _money()

    def __str__(self):
        return f"{self.product_name} x{self.quantity}"
