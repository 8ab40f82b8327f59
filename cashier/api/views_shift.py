# cashier/api/views_shift.py
import logging

from django.conf import settings
from django.http import Http404

from rest_framework import status
from rest_framework.authentication import SessionAuthentication, TokenAuthentication
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from cashier.api.serializers_shift import (
    ClosingReportSerializer,
    SendSummarySerializer,
    ShiftCloseSerializer,
    ShiftListQuerySerializer,
    ShiftLogSerializer,
    ShiftOpenSerializer,
    ShiftSerializer,
)
from cashier.exceptions import InvalidBalanceError, InvalidPhoneNumberError, ShiftError, StorageError
from cashier.permissions import IsShiftOwnerOrManager, is_admin_or_manager
from cashier.services.notifications import normalize_phone_number
from cashier.services.shift_service import build_shift_manager

logger = logging.getLogger(__name__)


def shift_error_response(exc: ShiftError) -> Response:
    if isinstance(exc, StorageError):
        logger.error("Shift request failed: %s", exc.detail)
    return Response(exc.as_payload(), status=exc.status_code)


def invalid_input_response(errors) -> Response:
    payload = InvalidBalanceError().as_payload()
    payload["errors"] = errors
    return Response(payload, status=status.HTTP_400_BAD_REQUEST)


class ShiftAPIView(APIView):
    authentication_classes = [TokenAuthentication, SessionAuthentication]
    permission_classes = [IsAuthenticated]

    # tests and wiring swap this for a manager over fakes
    manager_factory = staticmethod(build_shift_manager)

    def get_manager(self):
        return self.manager_factory()

    def get_shift_or_404(self, manager, pk):
        shift = manager.get_shift(pk)
        if shift is None:
            raise Http404("Shift tidak ditemukan.")
        self.check_object_permissions(self.request, shift)
        return shift


class ShiftCurrentView(ShiftAPIView):
    def get(self, request):
        try:
            shift = self.get_manager().get_current_shift(request.user.id)
        except ShiftError as e:
            return shift_error_response(e)
        data = ShiftSerializer(shift).data if shift else None
        return Response({"shift": data}, status=200)


class ShiftOpenView(ShiftAPIView):
    def post(self, request):
        ser = ShiftOpenSerializer(data=request.data)
        if not ser.is_valid():
            return invalid_input_response(ser.errors)

        try:
            shift = self.get_manager().open_shift(
                request.user.id,
                ser.validated_data["openingBalance"],
                note=ser.validated_data.get("note", "").strip(),
            )
        except ShiftError as e:
            return shift_error_response(e)

        return Response({"detail": "Shift opened.", "shift": ShiftSerializer(shift).data}, status=200)


class ShiftCloseView(ShiftAPIView):
    def post(self, request):
        ser = ShiftCloseSerializer(data=request.data)
        if not ser.is_valid():
            return invalid_input_response(ser.errors)

        manager = self.get_manager()
        try:
            report = manager.close_shift(
                request.user.id,
                ser.validated_data["physicalCash"],
                note=ser.validated_data.get("note", "").strip(),
            )
        except ShiftError as e:
            return shift_error_response(e)

        body = {"detail": "Shift closed.", "report": ClosingReportSerializer(report).data}

        phone = (ser.validated_data.get("phoneNumber") or "").strip()
        if phone:
            # close is already committed; the send outcome is reported beside it
            body["notification"] = manager.send_closing_summary(report, phone).as_dict()

        return Response(body, status=200)


class ShiftListView(ShiftAPIView):
    def get(self, request):
        operator_id = request.user.id
        if is_admin_or_manager(request.user):
            query = ShiftListQuerySerializer(data=request.query_params)
            if not query.is_valid():
                return Response(
                    {"detail": "Parameter cashier tidak valid.", "code": "invalid_query", "errors": query.errors},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            operator_id = query.validated_data.get("cashier")

        limit = getattr(settings, "SHIFT_LIST_LIMIT", 200)
        try:
            shifts = self.get_manager().list_shifts(operator_id=operator_id, limit=limit)
        except ShiftError as e:
            return shift_error_response(e)
        return Response(ShiftSerializer(shifts, many=True).data, status=200)


class ShiftReportView(ShiftAPIView):
    permission_classes = [IsAuthenticated, IsShiftOwnerOrManager]

    def get(self, request, pk):
        manager = self.get_manager()
        try:
            shift = self.get_shift_or_404(manager, pk)
            report = manager.shift_report(shift)
        except ShiftError as e:
            return shift_error_response(e)
        return Response({"report": ClosingReportSerializer(report).data}, status=200)


class ShiftLogListView(ShiftAPIView):
    permission_classes = [IsAuthenticated, IsShiftOwnerOrManager]

    def get(self, request, pk):
        manager = self.get_manager()
        try:
            shift = self.get_shift_or_404(manager, pk)
            logs = manager.shift_logs(shift.id)
        except ShiftError as e:
            return shift_error_response(e)
        return Response(ShiftLogSerializer(logs, many=True).data, status=200)


class ShiftSendSummaryView(ShiftAPIView):
    permission_classes = [IsAuthenticated, IsShiftOwnerOrManager]

    def post(self, request, pk):
        ser = SendSummarySerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        phone = (ser.validated_data.get("phoneNumber") or "").strip() or None
        if phone:
            try:
                phone = normalize_phone_number(phone)
            except InvalidPhoneNumberError as e:
                return Response({"detail": str(e), "code": "invalid_phone"}, status=status.HTTP_400_BAD_REQUEST)

        manager = self.get_manager()
        try:
            shift = self.get_shift_or_404(manager, pk)
            if shift.is_open:
                return Response(
                    {"detail": "Shift masih OPEN.", "code": "shift_open"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            report = manager.shift_report(shift)
        except ShiftError as e:
            return shift_error_response(e)

        result = manager.send_closing_summary(report, phone)
        if not result.success:
            return Response(
                {"detail": "Gagal mengirim ringkasan shift.", "notification": result.as_dict()},
                status=status.HTTP_502_BAD_GATEWAY,
            )
        return Response({"detail": "Ringkasan shift terkirim.", "notification": result.as_dict()}, status=200)
