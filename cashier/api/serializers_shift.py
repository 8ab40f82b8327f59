from decimal import ROUND_HALF_UP

from rest_framework import serializers

# output only: no digit cap, rounded once here
MONEY_OUT = dict(max_digits=None, decimal_places=2, rounding=ROUND_HALF_UP, read_only=True)
MONEY_IN = dict(max_digits=18, decimal_places=2, min_value=0)


# =========================================================
# INPUT
# =========================================================
class ShiftOpenSerializer(serializers.Serializer):
    openingBalance = serializers.DecimalField(**MONEY_IN)
    note = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


class ShiftCloseSerializer(serializers.Serializer):
    physicalCash = serializers.DecimalField(required=False, **MONEY_IN)
    # older cashier apps still post closingBalance
    closingBalance = serializers.DecimalField(required=False, write_only=True, **MONEY_IN)
    note = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    phoneNumber = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        cash = attrs.get("physicalCash", attrs.get("closingBalance"))
        if cash is None:
            raise serializers.ValidationError({"physicalCash": "physicalCash wajib."})
        attrs["physicalCash"] = cash
        return attrs


class SendSummarySerializer(serializers.Serializer):
    phoneNumber = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")


class ShiftListQuerySerializer(serializers.Serializer):
    cashier = serializers.IntegerField(required=False, min_value=1)


# =========================================================
# OUTPUT
# =========================================================
class ShiftSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    cashierId = serializers.IntegerField(source="operator_id", read_only=True)
    status = serializers.CharField(read_only=True)
    openingBalance = serializers.DecimalField(source="opening_balance", **MONEY_OUT)
    closingBalance = serializers.DecimalField(source="closing_balance", **MONEY_OUT)
    physicalCash = serializers.DecimalField(source="physical_cash", **MONEY_OUT)
    systemTotal = serializers.DecimalField(source="system_total", **MONEY_OUT)
    difference = serializers.DecimalField(**MONEY_OUT)
    startedAt = serializers.DateTimeField(source="started_at", read_only=True)
    endedAt = serializers.DateTimeField(source="ended_at", read_only=True)
    note = serializers.CharField(read_only=True)


class ShiftLogSerializer(serializers.Serializer):
    id = serializers.IntegerField(read_only=True)
    action = serializers.CharField(read_only=True)
    details = serializers.JSONField(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)


class PaymentBreakdownSerializer(serializers.Serializer):
    total = serializers.DecimalField(source="sum", **MONEY_OUT)
    count = serializers.IntegerField(read_only=True)


class ClosingReportSerializer(serializers.Serializer):
    shiftId = serializers.IntegerField(source="shift.id", read_only=True)
    cashierId = serializers.IntegerField(source="shift.operator_id", read_only=True)
    status = serializers.CharField(source="shift.status", read_only=True)
    startTime = serializers.DateTimeField(source="shift.started_at", read_only=True)
    endTime = serializers.DateTimeField(source="shift.ended_at", read_only=True)
    windowEnd = serializers.DateTimeField(source="reconciliation.window_end", read_only=True)

    openingBalance = serializers.DecimalField(source="reconciliation.opening_balance", **MONEY_OUT)
    cashSales = serializers.DecimalField(source="reconciliation.cash_sales", **MONEY_OUT)
    totalTransactions = serializers.DecimalField(source="reconciliation.gross_revenue", **MONEY_OUT)
    systemExpectedCash = serializers.DecimalField(source="system_expected_cash", **MONEY_OUT)
    physicalCash = serializers.DecimalField(source="physical_cash", **MONEY_OUT)
    difference = serializers.DecimalField(**MONEY_OUT)

    paymentBreakdown = serializers.SerializerMethodField()
    statusCounts = serializers.DictField(
        source="reconciliation.status_counts", child=serializers.IntegerField(), read_only=True
    )
    discountTotals = serializers.DictField(
        source="reconciliation.discount_totals",
        child=serializers.DecimalField(**MONEY_OUT),
        read_only=True,
    )
    pointsTotals = serializers.DictField(
        source="reconciliation.points_totals", child=serializers.IntegerField(), read_only=True
    )
    itemsSold = serializers.IntegerField(source="reconciliation.items_sold", read_only=True)
    logs = ShiftLogSerializer(many=True, read_only=True)

    def get_paymentBreakdown(self, obj):
        return {
            method: PaymentBreakdownSerializer(agg).data
            for method, agg in obj.reconciliation.payment_breakdown.items()
        }
