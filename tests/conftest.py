from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from cashier.models import CustomUser, Transaction, TransactionItem
from cashier.services.notifications import NotificationResult
from cashier.services.shift_service import ShiftLifecycleManager
from tests.fakes import FakeAuditLog, FakeClock, FakeLedger, FakeShiftStore, InMemoryDB

OPERATOR = 7


# =========================================================
# in-memory wiring
# =========================================================
@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 8, 0, tzinfo=dt_timezone.utc))


@pytest.fixture
def memdb(clock):
    return InMemoryDB(clock=clock)


@pytest.fixture
def ledger(memdb):
    return FakeLedger(memdb)


@pytest.fixture
def manager(memdb, ledger, clock):
    return ShiftLifecycleManager(
        store=FakeShiftStore(memdb),
        audit_log=FakeAuditLog(memdb),
        ledger=ledger,
        clock=clock,
    )


class RecordingNotifier:
    def __init__(self, result=None):
        self.result = result or NotificationResult(success=True, message_id="wa-1", recipient="628123456789", attempts=1)
        self.calls = []

    def send(self, report, recipient=None):
        self.calls.append((report, recipient))
        return self.result


@pytest.fixture
def notifier():
    return RecordingNotifier()


# =========================================================
# database wiring
# =========================================================
@pytest.fixture(autouse=True)
def _no_gateway(settings):
    settings.WHATSAPP_GATEWAY_URL = ""


@pytest.fixture
def cashier_user(db):
    return CustomUser.objects.create_user(username="kasir1", password="rahasia123", role="cashier")


@pytest.fixture
def other_cashier(db):
    return CustomUser.objects.create_user(username="kasir2", password="rahasia123", role="cashier")


@pytest.fixture
def manager_user(db):
    return CustomUser.objects.create_user(username="manajer", password="rahasia123", role="manager")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def cashier_client(api_client, cashier_user):
    api_client.force_authenticate(user=cashier_user)
    return api_client


@pytest.fixture
def make_sale(db):
    def _make(cashier, total, method="CASH", status="COMPLETED", created_at=None, quantities=(), **extra):
        trx = Transaction.objects.create(
            cashier=cashier,
            status=status,
            payment_method=method,
            subtotal=Decimal(total),
            final_total=Decimal(total),
            created_at=created_at or timezone.now(),
            **extra,
        )
        for qty in quantities:
            TransactionItem.objects.create(
                transaction=trx, product_name="Kopi Susu", quantity=qty, price=Decimal("10000")
            )
        return trx
    return _make
