# apps/responses/api.py
from django.db import transaction
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
from .models import InquiryResponse
from .schemas import (
    ApproveResponseExample,
    CreateResponseExample,
    RejectResponseExample,
    UpdateResponseExample,
)
from .serializers import (
    ApproveResponseSerializer,
    RejectResponseSerializer,
    ResponseCreateSerializer,
    ResponseDetailSerializer,
    ResponseListQuerySerializer,
    ResponseSerializer,
    ResponseStatisticsQuerySerializer,
    ResponseStatisticsSerializer,
    ResponseUpdateSerializer,
)
from .stores import default_workflow
from .tasks import deliver_response_email

SORTABLE_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "status": "status",
    "approvedAt": "approved_at",
    "sentAt": "sent_at",
}


@extend_schema_view(
    list=extend_schema(
        summary="List responses (paginated)",
        description="CSOs see their own responses and those on inquiries assigned to them.",
        parameters=[
            OpenApiParameter(name="status", required=False, type=OpenApiTypes.STR),
            OpenApiParameter(name="inquiryId", required=False, type=OpenApiTypes.UUID),
            OpenApiParameter(name="responderId", required=False, type=OpenApiTypes.UUID),
            OpenApiParameter(name="approvedById", required=False, type=OpenApiTypes.UUID),
            OpenApiParameter(name="sortBy", description=", ".join(SORTABLE_FIELDS), required=False, type=OpenApiTypes.STR),
            OpenApiParameter(name="sortOrder", description="ASC or DESC", required=False, type=OpenApiTypes.STR),
            OpenApiParameter(name="page", required=False, type=OpenApiTypes.INT),
            OpenApiParameter(name="limit", required=False, type=OpenApiTypes.INT),
        ],
    ),
    retrieve=extend_schema(summary="Get response", responses={200: ResponseDetailSerializer}),
    create=extend_schema(
        summary="Create a draft response",
        description="CSOs may only respond to inquiries assigned to them.",
        request=ResponseCreateSerializer,
        examples=[CreateResponseExample],
        responses={201: ResponseSerializer},
    ),
    partial_update=extend_schema(
        summary="Edit a draft response",
        request=ResponseUpdateSerializer,
        examples=[UpdateResponseExample],
        responses={200: ResponseSerializer},
    ),
    destroy=extend_schema(summary="Delete a draft response (author or Admin)"),
)
class ResponseViewSet(viewsets.ModelViewSet):
    """
    Inquiry responses and their approval workflow.
    Role and state rules are enforced by apps.responses.workflow; errors surface as 403/400/404.
    """
    schema_tags = ["Responses"]
    queryset = InquiryResponse.objects.none()
    serializer_class = ResponseSerializer
    permission_classes = [IsAuthenticated, roles_required(Role.ADMIN, Role.MANAGER, Role.CSO)]
    # ids are UUIDs; anything else never reaches the services
    lookup_value_regex = "[0-9a-fA-F-]{36}"
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    # ---- Helpers -------------------------------------------------------------

    @property
    def workflow(self):
        return default_workflow()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return InquiryResponse.objects.none()
        return services.visible_responses(current_user(self.request))

    def _validated(self, serializer_cls, request):
        ser = serializer_cls(data=request.data)
        ser.is_valid(raise_exception=True)
        return ser.validated_data

    # ---- Reads ---------------------------------------------------------------

    def list(self, request, *args, **kwargs):
        params = request.query_params
        query = ResponseListQuerySerializer(data={k: params.get(k) for k in params})
        query.is_valid(raise_exception=True)
        f = query.validated_data

        qs = services.filter_responses(
            self.get_queryset(),
            status=f.get("status", ""),
            inquiry_id=f.get("inquiryId"),
            responder_id=f.get("responderId"),
            approved_by_id=f.get("approvedById"),
        )
        qs = apply_sorting(qs, params, SORTABLE_FIELDS)
        page = self.paginate_queryset(qs)
        return self.get_paginated_response(ResponseSerializer(page, many=True).data)

    def retrieve(self, request, pk=None, *args, **kwargs):
        response = services.get_response(pk, current_user(request))
        return Response(ResponseDetailSerializer(response).data)

    @extend_schema(
        summary="Response statistics",
        description="Counts by status and approval rate. CSOs always get their own numbers.",
        parameters=[OpenApiParameter(name="userId", required=False, type=OpenApiTypes.UUID)],
        responses={200: ResponseStatisticsSerializer},
    )
    @action(detail=False, methods=["get"], url_path="statistics")
    def statistics(self, request):
        user = current_user(request)
        query = ResponseStatisticsQuerySerializer(data={"userId": request.query_params.get("userId") or None})
        query.is_valid(raise_exception=True)
        user_id = user.id if user.is_cso else query.validated_data.get("userId")
        return Response(services.response_statistics(user_id))

    # ---- Authoring -----------------------------------------------------------

    def create(self, request, *args, **kwargs):
        data = self._validated(ResponseCreateSerializer, request)
        with transaction.atomic():
            response = self.workflow.create(
                data["inquiryId"],
                data.get("responseText"),
                current_user(request),
                metadata=data.get("metadata"),
            )
            log_event(request, "response.create", "Response", response.id, inquiry_id=response.inquiry_id)
        return Response(ResponseSerializer(response).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None, *args, **kwargs):
        data = self._validated(ResponseUpdateSerializer, request)
        with transaction.atomic():
            response = self.workflow.update(pk, data, current_user(request))
            log_event(request, "response.update", "Response", response.id, fields=sorted(data))
        return Response(ResponseSerializer(response).data)

    def destroy(self, request, pk=None, *args, **kwargs):
        with transaction.atomic():
            self.workflow.remove(pk, current_user(request))
            log_event(request, "response.delete", "Response", pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ---- Workflow transitions ------------------------------------------------

    @extend_schema(
        methods=["POST"],
        summary="Submit a draft for approval (author or Admin)",
        request=None,
        responses={200: ResponseSerializer},
    )
    @action(detail=True, methods=["post"], url_path="submit")
    def submit(self, request, pk=None):
        with transaction.atomic():
            response = self.workflow.submit_for_approval(pk, current_user(request))
            log_event(request, "response.submit", "Response", response.id)
        return Response(ResponseSerializer(response).data)

    @extend_schema(
        methods=["POST"],
        summary="Approve a pending response (Manager/Admin)",
        description="Also moves the inquiry to `responded`.",
        request=ApproveResponseSerializer,
        examples=[ApproveResponseExample],
        responses={200: ResponseSerializer},
    )
    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        data = self._validated(ApproveResponseSerializer, request)
        with transaction.atomic():
            response = self.workflow.approve(pk, data.get("approvalNotes"), current_user(request))
            log_event(request, "response.approve", "Response", response.id, inquiry_id=response.inquiry_id)
        return Response(ResponseSerializer(response).data)

    @extend_schema(
        methods=["POST"],
        summary="Reject a pending response (Manager/Admin)",
        description="Records the reason and returns the response to `draft`.",
        request=RejectResponseSerializer,
        examples=[RejectResponseExample],
        responses={200: ResponseSerializer},
    )
    @action(detail=True, methods=["post"], url_path="reject")
    def reject(self, request, pk=None):
        data = self._validated(RejectResponseSerializer, request)
        with transaction.atomic():
            response = self.workflow.reject(pk, data["rejectionReason"], current_user(request))
            log_event(request, "response.reject", "Response", response.id, reason=data["rejectionReason"])
        return Response(ResponseSerializer(response).data)

    @extend_schema(
        methods=["POST"],
        summary="Send an approved response to the customer",
        description=(
            "Marks the response `sent`, closes the inquiry and emails the customer. "
            "Allowed roles come from the RESPONSES_SEND_ROLES setting."
        ),
        request=None,
        responses={200: ResponseSerializer},
    )
    @action(detail=True, methods=["post"], url_path="send")
    def send(self, request, pk=None):
        with transaction.atomic():
            response = self.workflow.send_response(pk, current_user(request))
            log_event(request, "response.send", "Response", response.id, inquiry_id=response.inquiry_id)
            response_id = str(response.id)
            # the send is committed either way; a mail failure is logged, not returned
            transaction.on_commit(lambda: deliver_response_email.delay(response_id), robust=True)
        return Response(ResponseSerializer(response).data)
