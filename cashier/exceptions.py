"""
Shift lifecycle errors.

Every error carries the HTTP status the API answers with and a stable
`code` so the cashier apps can branch on it without parsing the message.
"""


class ShiftError(Exception):
    status_code = 400
    code = "shift_error"
    default_detail = "Shift operation failed."

    def __init__(self, detail=None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def as_payload(self) -> dict:
        return {"detail": self.detail, "code": self.code}


class InvalidBalanceError(ShiftError):
    code = "invalid_balance"
    default_detail = "Saldo tidak valid."


class DuplicateShiftError(ShiftError):
    code = "duplicate_shift"
    default_detail = "Shift kasir sudah dibuka."


class NoActiveShiftError(ShiftError):
    code = "no_active_shift"
    default_detail = "Tidak ada shift aktif."


class PendingTransactionsError(ShiftError):
    code = "pending_transactions"

    def __init__(self, count: int):
        self.count = count
        super().__init__(
            f"Terdapat {count} transaksi PENDING. Selesaikan atau batalkan terlebih dahulu."
        )

    def as_payload(self) -> dict:
        payload = super().as_payload()
        payload["count"] = self.count
        return payload


class StorageError(ShiftError):
    """
    Persistence failed. Not retried automatically: the caller must re-read
    the current shift before trying again.
    """
    status_code = 500
    code = "storage_error"
    default_detail = "Gagal menyimpan data shift."


class InvalidPhoneNumberError(ValueError):
    pass
