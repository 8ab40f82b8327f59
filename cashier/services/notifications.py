"""
Closing-summary delivery over a WhatsApp HTTP gateway.

The shift core calls `send()` once per close; the dispatcher owns the
retry policy (connection errors and 5xx only, fixed delay between tries).
"""
import logging
import re
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import requests
from django.conf import settings

from cashier.exceptions import InvalidPhoneNumberError

logger = logging.getLogger(__name__)

VALID_PREFIX = "628"


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    error: str = ""
    message_id: Optional[str] = None
    recipient: Optional[str] = None
    attempts: int = 0

    def as_dict(self) -> dict:
        return {
            "success": self.success,
            "error": self.error or None,
            "messageId": self.message_id,
            "recipient": self.recipient,
        }


# =========================================================
# FORMATTING
# =========================================================
def normalize_phone_number(raw: str) -> str:
    """
    08123456789 / +62 812-3456-789 / 8123456789 -> 628123456789
    """
    cleaned = re.sub(r"\D", "", raw or "")

    if cleaned.startswith("0"):
        cleaned = "62" + cleaned[1:]
    elif cleaned.startswith("62"):
        pass
    elif 9 <= len(cleaned) <= 12:
        cleaned = "62" + cleaned
    else:
        raise InvalidPhoneNumberError("Format nomor tidak valid")

    if len(cleaned) < 10 or len(cleaned) > 15:
        raise InvalidPhoneNumberError("Panjang nomor tidak valid")
    if not cleaned.startswith(VALID_PREFIX):
        raise InvalidPhoneNumberError("Prefix nomor tidak valid untuk Indonesia")
    return cleaned


def format_idr(v) -> str:
    amount = Decimal(v or 0).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp {abs(int(amount)):,}".replace(",", ".")


def _fmt_time(dt) -> str:
    return dt.strftime("%d/%m/%Y %H:%M") if dt else "-"


def format_closure_summary(report) -> str:
    """Plain-text closing summary (WhatsApp markdown)."""
    r = report.reconciliation
    shift = report.shift
    pb = r.payment_breakdown
    sc = r.status_counts
    dt = r.discount_totals
    pt = r.points_totals

    lines = [
        "*Ringkasan Penutupan Shift*",
        f"Shift: {shift.id}",
        f"Mulai: {_fmt_time(shift.started_at)}",
        f"Selesai: {_fmt_time(shift.ended_at)}",
        "",
        f"Saldo Awal: {format_idr(r.opening_balance)}",
        f"Penjualan CASH: {format_idr(r.cash_sales)}",
        f"Total Transaksi: {format_idr(r.gross_revenue)}",
        f"Kas Sistem (Expected): {format_idr(report.system_expected_cash)}",
        f"Kas Fisik: {format_idr(report.physical_cash)}",
        f"Selisih: {format_idr(report.difference)}",
        "",
        "*Pembayaran*",
    ]
    labels = {"CASH": "CASH", "CARD": "CARD", "QRIS": "QRIS", "BANK_TRANSFER": "Transfer"}
    for method, label in labels.items():
        agg = pb.get(method)
        total, count = (agg.sum, agg.count) if agg else (0, 0)
        lines.append(f"- {label}: {format_idr(total)} ({count} trx)")

    lines += [
        "",
        "*Status Transaksi*",
        f"- Selesai: {sc.get('COMPLETED', 0)}",
        f"- Menunggu: {sc.get('PENDING', 0)}",
        f"- Dibatalkan: {sc.get('CANCELLED', 0)}",
        f"- Dikembalikan: {sc.get('REFUNDED', 0)}",
        "",
        "*Diskon & Pajak*",
        f"- Diskon Manual: {format_idr(dt.get('discount'))}",
        f"- Diskon Voucher: {format_idr(dt.get('voucherDiscount'))}",
        f"- Diskon Promo: {format_idr(dt.get('promoDiscount'))}",
        f"- Pajak: {format_idr(dt.get('tax'))}",
        "",
        "*Poin & Item*",
        f"- Poin Diperoleh: {pt.get('earned', 0)}",
        f"- Poin Digunakan: {pt.get('used', 0)}",
        f"- Item Terjual: {r.items_sold}",
    ]

    if report.logs:
        lines += ["", "*Log Shift (3 terbaru)*"]
        for entry in report.logs[-3:]:
            lines.append(f"- {entry.action} • {_fmt_time(entry.created_at)}")

    lines += ["", "_Dikirim otomatis oleh sistem kasir._"]
    return "\n".join(lines)


# =========================================================
# DISPATCHER
# =========================================================
class WhatsAppDispatcher:
    def __init__(
        self,
        gateway_url: str,
        token: str = "",
        default_recipient: str = "",
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timeout: float = 15,
        session: Optional[requests.Session] = None,
        sleep=time.sleep,
    ):
        self.gateway_url = gateway_url
        self.token = token
        self.default_recipient = default_recipient
        self.max_retries = max(1, int(max_retries))
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.session = session or requests.Session()
        self.sleep = sleep

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def send(self, report, recipient: Optional[str] = None) -> NotificationResult:
        try:
            phone = normalize_phone_number(recipient or self.default_recipient)
        except InvalidPhoneNumberError as exc:
            return NotificationResult(success=False, error=str(exc))

        payload = {"phone": phone, "message": format_closure_summary(report)}
        last_error = ""

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = self.session.post(
                    self.gateway_url,
                    json=payload,
                    headers=self._headers(),
                    timeout=self.timeout,
                )
            except (requests.ConnectionError, requests.Timeout) as exc:
                last_error = f"connection: {exc}"
                logger.warning("WhatsApp gateway unreachable (attempt %s/%s): %s", attempt, self.max_retries, exc)
            else:
                if resp.status_code < 400:
                    data = _json_or_empty(resp)
                    return NotificationResult(
                        success=True,
                        message_id=data.get("id") or data.get("messageId"),
                        recipient=phone,
                        attempts=attempt,
                    )
                last_error = f"HTTP {resp.status_code}: {resp.text[:200]}"
                if resp.status_code < 500:
                    # client errors will not fix themselves
                    return NotificationResult(success=False, error=last_error, recipient=phone, attempts=attempt)
                logger.warning("WhatsApp gateway error (attempt %s/%s): %s", attempt, self.max_retries, last_error)

            if attempt < self.max_retries:
                self.sleep(self.retry_delay)

        return NotificationResult(success=False, error=last_error, recipient=phone, attempts=self.max_retries)


def _json_or_empty(resp) -> dict:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def build_notifier() -> Optional[WhatsAppDispatcher]:
    url = getattr(settings, "WHATSAPP_GATEWAY_URL", "")
    if not url:
        return None
    return WhatsAppDispatcher(
        gateway_url=url,
        token=getattr(settings, "WHATSAPP_GATEWAY_TOKEN", ""),
        default_recipient=getattr(settings, "WHATSAPP_DEFAULT_RECIPIENT", ""),
        max_retries=getattr(settings, "WHATSAPP_MAX_RETRIES", 3),
        retry_delay=getattr(settings, "WHATSAPP_RETRY_DELAY", 2.0),
        timeout=getattr(settings, "WHATSAPP_TIMEOUT", 15),
    )
