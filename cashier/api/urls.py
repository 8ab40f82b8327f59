from django.urls import path

from cashier.api.views_shift import (
    ShiftCurrentView, ShiftOpenView, ShiftCloseView,
    ShiftListView, ShiftReportView, ShiftLogListView, ShiftSendSummaryView,
)

urlpatterns = [
    path("shift/current/", ShiftCurrentView.as_view(), name="shift-current"),
    path("shift/open/", ShiftOpenView.as_view(), name="shift-open"),
    path("shift/close/", ShiftCloseView.as_view(), name="shift-close"),
    path("shift/", ShiftListView.as_view(), name="shift-list"),
    path("shift/<int:pk>/report/", ShiftReportView.as_view(), name="shift-report"),
    path("shift/<int:pk>/logs/", ShiftLogListView.as_view(), name="shift-logs"),
    path("shift/<int:pk>/send-summary/", ShiftSendSummaryView.as_view(), name="shift-send-summary"),
]
