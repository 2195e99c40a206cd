# apps/inquiries/api.py
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from drf_spectacular.utils import (
    extend_schema,
    extend_schema_view,
    OpenApiParameter,
)
from drf_spectacular.types import OpenApiTypes

from apps.audit.utils import log_event
from apps.core.pagination import apply_sorting
from apps.rbac.permissions import roles_required
from apps.rbac.roles import Role, current_user

from . import services
from .models import Inquiry
from .serializers import (
    InquiryAssignSerializer,
    InquiryDetailSerializer,
    InquiryListQuerySerializer,
    InquirySerializer,
    InquiryStatisticsSerializer,
    InquiryStatusSerializer,
    InquiryUpdateSerializer,
)

SORTABLE_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "subject": "subject",
    "status": "status",
    "priority": "priority",
    "category": "category",
}


@extend_schema_view(
    list=extend_schema(
        summary="List inquiries (paginated)",
        description=(
            "CSOs only see inquiries assigned to them. Without `sortBy` the list is "
            "smart-sorted: actionable rows first, then priority, then newest."
        ),
        parameters=[
            OpenApiParameter(name="status", description="One or more statuses, comma separated", required=False, type=OpenApiTypes.STR),
            OpenApiParameter(name="priority", required=False, type=OpenApiTypes.STR),
            OpenApiParameter(name="category", required=False, type=OpenApiTypes.STR),
            OpenApiParameter(name="customerId", required=False, type=OpenApiTypes.UUID),
            OpenApiParameter(name="assignedTo", required=False, type=OpenApiTypes.UUID),
            OpenApiParameter(name="assignedToMe", required=False, type=OpenApiTypes.BOOL),
            OpenApiParameter(name="sortBy", description=", ".join(SORTABLE_FIELDS), required=False, type=OpenApiTypes.STR),
            OpenApiParameter(name="sortOrder", description="ASC or DESC", required=False, type=OpenApiTypes.STR),
            OpenApiParameter(name="page", required=False, type=OpenApiTypes.INT),
            OpenApiParameter(name="limit", required=False, type=OpenApiTypes.INT),
        ],
    ),
    retrieve=extend_schema(summary="Get inquiry with its responses", responses={200: InquiryDetailSerializer}),
    create=extend_schema(summary="Create inquiry", responses={201: InquirySerializer}),
    partial_update=extend_schema(
        summary="Update inquiry",
        description="Admins, managers, or the CSO the inquiry is assigned to.",
        request=InquiryUpdateSerializer,
        responses={200: InquirySerializer},
    ),
    destroy=extend_schema(summary="Delete inquiry (Admin)"),
)
class InquiryViewSet(viewsets.ModelViewSet):
    schema_tags = ["Inquiries"]
    queryset = Inquiry.objects.none()
    serializer_class = InquirySerializer
    permission_classes = [IsAuthenticated, roles_required(Role.ADMIN, Role.MANAGER, Role.CSO)]
    # ids are UUIDs; anything else never reaches the services
    lookup_value_regex = "[0-9a-fA-F-]{36}"
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_permissions(self):
        if self.action == "destroy":
            return [IsAuthenticated(), roles_required(Role.ADMIN)()]
        if self.action in ("assign", "set_status", "statistics"):
            return [IsAuthenticated(), roles_required(Role.ADMIN, Role.MANAGER)()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == "retrieve":
            return InquiryDetailSerializer
        if self.action == "partial_update":
            return InquiryUpdateSerializer
        return InquirySerializer

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Inquiry.objects.none()
        return services.visible_inquiries(current_user(self.request))

    # ---- List ----------------------------------------------------------------

    def list(self, request, *args, **kwargs):
        user = current_user(request)
        params = request.query_params
        raw = {k: params.get(k) for k in params if k != "status"}
        if "status" in params:
            raw["status"] = ",".join(params.getlist("status"))
        query = InquiryListQuerySerializer(data=raw)
        query.is_valid(raise_exception=True)
        f = query.validated_data

        qs = services.filter_inquiries(
            self.get_queryset(),
            statuses=f.get("status", []),
            priority=f.get("priority", ""),
            category=f.get("category", ""),
            customer_id=f.get("customerId"),
            assigned_to=f.get("assignedTo"),
            assigned_to_me=f.get("assignedToMe", False),
            user=user,
        )
        if params.get("sortBy") in SORTABLE_FIELDS:
            qs = apply_sorting(qs, params, SORTABLE_FIELDS)
        else:
            qs = services.smart_order(qs, user)

        page = self.paginate_queryset(qs)
        return self.get_paginated_response(InquirySerializer(page, many=True).data)

    # ---- Single record -------------------------------------------------------

    def retrieve(self, request, pk=None, *args, **kwargs):
        inquiry = services.find_one(pk)
        return Response(InquiryDetailSerializer(inquiry).data)

    def create(self, request, *args, **kwargs):
        ser = InquirySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        inquiry = services.create_inquiry(ser.validated_data)
        log_event(request, "inquiry.create", "Inquiry", inquiry.id)
        return Response(InquirySerializer(inquiry).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None, *args, **kwargs):
        ser = InquiryUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        inquiry = services.update_inquiry(pk, ser.validated_data, current_user(request))
        log_event(request, "inquiry.update", "Inquiry", inquiry.id, fields=sorted(ser.validated_data))
        return Response(InquirySerializer(inquiry).data)

    def destroy(self, request, pk=None, *args, **kwargs):
        services.remove_inquiry(pk)
        log_event(request, "inquiry.delete", "Inquiry", pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ---- Actions -------------------------------------------------------------

    @extend_schema(
        methods=["POST"],
        summary="Assign inquiry to a CSO (Admin/Manager)",
        description="Sets the assignee and moves the inquiry to `in_progress`.",
        request=InquiryAssignSerializer,
        responses={200: InquirySerializer},
    )
    @action(detail=True, methods=["post"], url_path="assign")
    def assign(self, request, pk=None):
        ser = InquiryAssignSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        inquiry = services.assign_to_cso(pk, ser.validated_data["csoId"])
        log_event(request, "inquiry.assign", "Inquiry", inquiry.id, cso_id=ser.validated_data["csoId"])
        return Response(InquirySerializer(inquiry).data)

    @extend_schema(
        methods=["PATCH"],
        summary="Set inquiry status (Admin/Manager)",
        request=InquiryStatusSerializer,
        responses={200: InquirySerializer},
    )
    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        ser = InquiryStatusSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        inquiry = services.update_status(pk, ser.validated_data["status"])
        log_event(request, "inquiry.status", "Inquiry", inquiry.id, status=inquiry.status)
        return Response(InquirySerializer(inquiry).data)

    @extend_schema(
        summary="Inquiry statistics (Admin/Manager)",
        responses={200: InquiryStatisticsSerializer},
    )
    @action(detail=False, methods=["get"], url_path="statistics")
    def statistics(self, request):
        return Response(services.inquiry_statistics())
