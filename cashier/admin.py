from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from django.urls import reverse
from django.utils.html import format_html

from .models import CustomUser, Transaction, TransactionItem
from .models_shift import Shift, ShiftLog


class ReadOnlyAdminMixin:
    """Shift history is written by the shift service only."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ShiftLogInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = ShiftLog
    extra = 0
    fields = ("action", "details", "created_at")
    readonly_fields = fields


@admin.register(Shift)
class ShiftAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id", "cashier", "status", "started_at", "ended_at",
        "opening_balance", "system_total", "physical_cash", "difference", "pdf_link",
    )
    list_filter = ("status",)
    search_fields = ("cashier__username", "note")
    ordering = ("-started_at",)
    list_select_related = ("cashier",)
    inlines = [ShiftLogInline]

    def pdf_link(self, obj):
        url = reverse("shift_report_pdf", args=[obj.id])
        return format_html('<a class="button" href="{}" target="_blank">PDF</a>', url)
    pdf_link.short_description = "Report"


@admin.register(ShiftLog)
class ShiftLogAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "shift", "action", "created_at")
    list_filter = ("action",)
    ordering = ("-created_at",)


class TransactionItemInline(admin.TabularInline):
    model = TransactionItem
    extra = 0


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "cashier", "status", "payment_method", "final_total", "created_at")
    list_filter = ("status", "payment_method")
    search_fields = ("cashier__username", "id")
    ordering = ("-created_at",)
    inlines = [TransactionItemInline]


class CustomUserAdmin(UserAdmin):
    model = CustomUser
    list_display = ["username", "email", "role", "is_active", "is_staff"]
    fieldsets = UserAdmin.fieldsets + (
        (None, {"fields": ("role",)}),
    )


admin.site.register(CustomUser, CustomUserAdmin)
