import io

import openpyxl
from django.http import Http404, HttpResponse
from django.template.loader import render_to_string
from django.utils.timezone import localtime
from xhtml2pdf import pisa

from .decorators import role_required
from .models_shift import Shift
from .services.notifications import format_idr
from .services.shift_service import build_shift_manager


def _fmt(dt):
    return localtime(dt).strftime("%Y-%m-%d %H:%M") if dt else ""


# back-office session only; cashiers read reports through the token API
@role_required(["admin", "manager"])
def shift_report_pdf_view(request, shift_id):
    manager = build_shift_manager()
    shift = manager.get_shift(shift_id)
    if shift is None:
        raise Http404("Shift tidak ditemukan.")

    report = manager.shift_report(shift)
    r = report.reconciliation
    context = {
        "report": report,
        "shift": shift,
        "started_at": _fmt(shift.started_at),
        "ended_at": _fmt(shift.ended_at) or "-",
        "money": {
            "opening": format_idr(r.opening_balance),
            "cash_sales": format_idr(r.cash_sales),
            "gross": format_idr(r.gross_revenue),
            "expected": format_idr(report.system_expected_cash),
            "physical": format_idr(report.physical_cash) if report.physical_cash is not None else "-",
            "difference": format_idr(report.difference) if report.difference is not None else "-",
        },
        "payments": [
            {"method": method, "total": format_idr(agg.sum), "count": agg.count}
            for method, agg in r.payment_breakdown.items()
        ],
        "statuses": list(r.status_counts.items()),
        "discounts": [(k, format_idr(v)) for k, v in r.discount_totals.items()],
        "logs": [{"action": e.action, "at": _fmt(e.created_at)} for e in report.logs],
    }

    html = render_to_string("cashier/shift_report.html", context)
    result = io.BytesIO()
    pdf = pisa.CreatePDF(io.BytesIO(html.encode("UTF-8")), dest=result)

    if pdf.err:
        return HttpResponse("PDF generation error", status=500)

    response = HttpResponse(result.getvalue(), content_type="application/pdf")
    response["Content-Disposition"] = f"inline; filename=shift_{shift.id}.pdf"
    return response


@role_required(["admin", "manager"])
def shifts_export_view(request):
    shifts = Shift.objects.select_related("cashier").order_by("-started_at", "-id")

    month = request.GET.get("month")
    if month:
        try:
            year, month_number = map(int, month.split("-"))
            shifts = shifts.filter(started_at__year=year, started_at__month=month_number)
        except ValueError:
            pass  # salah format, abaikan filter

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Shift Report"

    headers = [
        "Shift ID", "Cashier", "Status", "Started", "Ended",
        "Opening Balance", "System Total", "Physical Cash", "Difference", "Note",
    ]
    ws.append(headers)

    for s in shifts:
        ws.append([
            s.id,
            s.cashier.username,
            s.status,
            _fmt(s.started_at),
            _fmt(s.ended_at),
            s.opening_balance,
            s.system_total,
            s.physical_cash,
            s.difference,
            s.note,
        ])

    response = HttpResponse(
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    response["Content-Disposition"] = "attachment; filename=shift_report.xlsx"
    wb.save(response)
    return response
