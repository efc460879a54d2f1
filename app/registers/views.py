"""
ViewSets for the registers API.

This module provides REST API endpoints for the cash register:
- RegisterSessionViewSet: open/close/current/list/detail/summaries
- LedgerEntryViewSet: record payments and cancellations
- DashboardView: today/yesterday/weekly sales snapshot

URL Structure:
    /api/v1/registers/sessions/                    GET
    /api/v1/registers/sessions/open/               POST
    /api/v1/registers/sessions/current/            GET
    /api/v1/registers/sessions/summary/daily/      GET
    /api/v1/registers/sessions/{id}/               GET
    /api/v1/registers/sessions/{id}/close/         POST
    /api/v1/registers/sessions/{id}/summary/       GET
    /api/v1/registers/entries/                     POST
    /api/v1/registers/entries/{id}/                GET
    /api/v1/registers/entries/{id}/cancel/         POST
    /api/v1/registers/dashboard/                   GET

Design Decisions:
    - Views only parse input and render output; every rule lives in the
      services, which raise typed errors rendered by
      core.exception_handler.application_exception_handler
    - The client never decides whether a register is open; it renders
      whatever state the server returns
    - Mutating endpoints require registers.operate_register, and the
      services check the actor again
"""

from __future__ import annotations

from django.utils import timezone
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from registers.ledger.services import PaymentRecorder
from registers.models import RegisterSession
from registers.permissions import IsRegisterOperator
from registers.serializers import (
    CancelEntrySerializer,
    CloseRegisterSerializer,
    CurrentRegisterSerializer,
    DailySummaryQuerySerializer,
    DailySummarySerializer,
    DashboardQuerySerializer,
    DashboardSerializer,
    LedgerEntrySerializer,
    OpenRegisterSerializer,
    ReconciliationResultSerializer,
    RecordPaymentSerializer,
    RegisterSessionDetailSerializer,
    RegisterSessionSerializer,
    SessionFilterSerializer,
    SessionSummarySerializer,
)
from registers.services import RegisterLifecycleService, RegisterSummaryService
from registers.services.dashboard import build_dashboard

UUID_LOOKUP_REGEX = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"


@extend_schema_view(
    list=extend_schema(
        operation_id="list_register_sessions",
        summary="List register sessions",
        tags=["Registers - Sessions"],
        parameters=[SessionFilterSerializer],
    ),
    retrieve=extend_schema(
        operation_id="get_register_session",
        summary="Get register session with entries",
        tags=["Registers - Sessions"],
        responses={
            200: RegisterSessionDetailSerializer,
            404: OpenApiResponse(description="Session not found"),
        },
    ),
)
class RegisterSessionViewSet(viewsets.GenericViewSet):
    """
    ViewSet for register session operations.

    list:
        Sessions newest first, filterable by status and open date.

    retrieve:
        Session with entries in sequence order and, if closed, the stored
        reconciliation result.

    open:
        Open the register. 409 if one is already open.

    close:
        Close the register and return the reconciliation result.

    current:
        The open session with its live balance, if any.

    summary / daily_summary:
        Totals by kind and method for one session or one day.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = RegisterSessionSerializer
    lookup_value_regex = UUID_LOOKUP_REGEX

    def get_queryset(self):
        return RegisterSession.objects.select_related("opened_by", "closed_by")

    def get_permissions(self):
        """Mutating actions require register operators."""
        if self.action in ("open", "close"):
            return [IsAuthenticated(), IsRegisterOperator()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.action == "open":
            return OpenRegisterSerializer
        if self.action == "close":
            return CloseRegisterSerializer
        return RegisterSessionSerializer

    def list(self, request):
        """List sessions with optional filters."""
        filters = SessionFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        queryset = RegisterLifecycleService.list_sessions(**filters.validated_data)
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(RegisterSessionSerializer(page, many=True).data)
        return Response(RegisterSessionSerializer(queryset, many=True).data)

    def retrieve(self, request, pk=None):
        session = RegisterLifecycleService.get_by_id(pk)
        return Response(RegisterSessionDetailSerializer(session).data)

    @extend_schema(
        operation_id="open_register",
        summary="Open the register",
        tags=["Registers - Sessions"],
        request=OpenRegisterSerializer,
        responses={
            201: RegisterSessionSerializer,
            400: OpenApiResponse(description="Invalid opening balance"),
            409: OpenApiResponse(description="A register is already open"),
        },
    )
    @action(detail=False, methods=["post"])
    def open(self, request):
        serializer = OpenRegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        session = RegisterLifecycleService.open(
            opening_balance_cents=serializer.validated_data["opening_balance"],
            observations=serializer.validated_data["observations"],
            actor=request.user,
        )
        return Response(RegisterSessionSerializer(session).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="close_register",
        summary="Close the register and reconcile",
        tags=["Registers - Sessions"],
        request=CloseRegisterSerializer,
        responses={
            200: ReconciliationResultSerializer,
            400: OpenApiResponse(description="Invalid declared balance"),
            404: OpenApiResponse(description="Session not found"),
            409: OpenApiResponse(description="Session already closed"),
        },
    )
    @action(detail=True, methods=["post"])
    def close(self, request, pk=None):
        serializer = CloseRegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = RegisterLifecycleService.close(
            session_id=pk,
            declared_closing_balance_cents=serializer.validated_data["declared_closing_balance"],
            observations=serializer.validated_data["observations"],
            actor=request.user,
        )
        return Response(ReconciliationResultSerializer(result).data)

    @extend_schema(
        operation_id="get_current_register",
        summary="Get the open register",
        tags=["Registers - Sessions"],
        responses={200: CurrentRegisterSerializer},
    )
    @action(detail=False, methods=["get"])
    def current(self, request):
        current = RegisterLifecycleService.get_current()
        payload = {
            "is_open": current is not None,
            "session": current.session if current else None,
        }
        serializer = CurrentRegisterSerializer(payload, context={"current_register": current})
        return Response(serializer.data)

    @extend_schema(
        operation_id="get_register_session_summary",
        summary="Summarize a register session",
        tags=["Registers - Reports"],
        responses={
            200: SessionSummarySerializer,
            404: OpenApiResponse(description="Session not found"),
        },
    )
    @action(detail=True, methods=["get"])
    def summary(self, request, pk=None):
        summary = RegisterSummaryService.session_summary(pk)
        return Response(SessionSummarySerializer(summary).data)

    @extend_schema(
        operation_id="get_daily_register_summary",
        summary="Summarize sessions opened on a day",
        tags=["Registers - Reports"],
        parameters=[
            OpenApiParameter(
                "date",
                OpenApiTypes.DATE,
                description="Day to summarize (defaults to today)",
            )
        ],
        responses={
            200: DailySummarySerializer,
            404: OpenApiResponse(description="No sessions opened that day"),
        },
    )
    @action(detail=False, methods=["get"], url_path="summary/daily")
    def daily_summary(self, request):
        query = DailySummaryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        day = query.validated_data.get("date") or timezone.localdate()
        summary = RegisterSummaryService.daily_summary(day)
        return Response(DailySummarySerializer(summary).data)


@extend_schema_view(
    create=extend_schema(
        operation_id="record_payment",
        summary="Record a payment in the open register",
        tags=["Registers - Entries"],
        request=RecordPaymentSerializer,
        responses={
            201: LedgerEntrySerializer,
            400: OpenApiResponse(description="Invalid kind, method, amount or details"),
            404: OpenApiResponse(description="Session not found"),
            409: OpenApiResponse(description="No open register, or session closed"),
        },
    ),
    retrieve=extend_schema(
        operation_id="get_ledger_entry",
        summary="Get ledger entry",
        tags=["Registers - Entries"],
    ),
)
class LedgerEntryViewSet(viewsets.GenericViewSet):
    """
    ViewSet for ledger entries.

    create:
        Append a sale, expense or debt payment to the open register.

    retrieve:
        Get a single entry.

    cancel:
        Append a cancellation offsetting the entry.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = LedgerEntrySerializer
    lookup_value_regex = UUID_LOOKUP_REGEX

    def get_permissions(self):
        if self.action in ("create", "cancel"):
            return [IsAuthenticated(), IsRegisterOperator()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.action == "create":
            return RecordPaymentSerializer
        if self.action == "cancel":
            return CancelEntrySerializer
        return LedgerEntrySerializer

    def create(self, request):
        serializer = RecordPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        entry = PaymentRecorder.record_payment(
            kind=data["kind"],
            amount_cents=data["amount"],
            method=data["method"],
            reference_id=data["reference_id"] or None,
            details=data["details"],
            description=data["description"],
            session_id=data["session_id"],
            actor=request.user,
        )
        return Response(LedgerEntrySerializer(entry).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        entry = PaymentRecorder.get_entry(pk)
        return Response(LedgerEntrySerializer(entry).data)

    @extend_schema(
        operation_id="cancel_ledger_entry",
        summary="Cancel a ledger entry",
        tags=["Registers - Entries"],
        request=CancelEntrySerializer,
        responses={
            201: LedgerEntrySerializer,
            400: OpenApiResponse(description="Entry is itself a cancellation"),
            404: OpenApiResponse(description="Entry not found or not in an open session"),
            409: OpenApiResponse(description="Entry already cancelled"),
        },
    )
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        serializer = CancelEntrySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        entry = PaymentRecorder.record_cancellation(
            original_entry_id=pk,
            description=serializer.validated_data["description"],
            actor=request.user,
        )
        return Response(LedgerEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


class DashboardView(APIView):
    """Sales snapshot for the back-office dashboard."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_register_dashboard",
        summary="Get sales dashboard",
        tags=["Registers - Reports"],
        parameters=[DashboardQuerySerializer],
        responses={200: DashboardSerializer},
    )
    def get(self, request):
        query = DashboardQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        snapshot = build_dashboard(period_days=query.validated_data["period"])
        return Response(DashboardSerializer(snapshot).data)
