from django.urls import path
from . import report_views

urlpatterns = [
    path("shifts/export/", report_views.shifts_export_view, name="shifts_export"),
    path("shifts/<int:shift_id>/pdf/", report_views.shift_report_pdf_view, name="shift_report_pdf"),
]
