# apps/customers/api.py
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
from apps.rbac.permissions import roles_required
from apps.rbac.roles import Role, current_user

from . import services
from .models import Customer
from .serializers import CustomerAssignSerializer, CustomerSerializer


@extend_schema_view(
    list=extend_schema(
        summary="List customers (paginated)",
        description="CSOs only see customers assigned to them. Supports `q` search on name/email/company.",
        parameters=[
            OpenApiParameter(name="q", description="Search term", required=False, type=OpenApiTypes.STR),
            OpenApiParameter(name="page", required=False, type=OpenApiTypes.INT),
            OpenApiParameter(name="limit", required=False, type=OpenApiTypes.INT),
        ],
    ),
    retrieve=extend_schema(summary="Get customer", responses={200: CustomerSerializer}),
    create=extend_schema(summary="Create customer", responses={201: CustomerSerializer}),
    update=extend_schema(summary="Update customer", responses={200: CustomerSerializer}),
    partial_update=extend_schema(summary="Update customer (partial)", responses={200: CustomerSerializer}),
    destroy=extend_schema(summary="Delete customer (Admin/Manager)"),
)
class CustomerViewSet(viewsets.ModelViewSet):
    """
    Customer records. Visibility and write rules live in services.py.
    """
    schema_tags = ["Customers"]
    queryset = Customer.objects.none()
    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated, roles_required(Role.ADMIN, Role.MANAGER, Role.CSO)]
    # ids are UUIDs; anything else never reaches the services
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Customer.objects.none()
        return services.visible_customers(current_user(self.request))

    def list(self, request, *args, **kwargs):
        qs = services.search_customers(self.get_queryset(), request.query_params.get("q", ""))
        page = self.paginate_queryset(qs.order_by("-created_at"))
        return self.get_paginated_response(self.get_serializer(page, many=True).data)

    def retrieve(self, request, pk=None, *args, **kwargs):
        customer = services.get_customer(pk, current_user(request))
        return Response(self.get_serializer(customer).data)

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        customer = services.create_customer(ser.validated_data, current_user(request))
        log_event(request, "customer.create", "Customer", customer.id)
        return Response(self.get_serializer(customer).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        user = current_user(request)
        instance = services.get_customer(pk, user)
        ser = self.get_serializer(instance, data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        customer = services.update_customer(pk, ser.validated_data, user)
        log_event(request, "customer.update", "Customer", customer.id, fields=sorted(ser.validated_data))
        return Response(self.get_serializer(customer).data)

    def destroy(self, request, pk=None, *args, **kwargs):
        services.remove_customer(pk, current_user(request))
        log_event(request, "customer.delete", "Customer", pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        methods=["POST"],
        summary="Assign customer to a user (Admin/Manager)",
        request=CustomerAssignSerializer,
        responses={200: CustomerSerializer},
    )
    @action(detail=True, methods=["post"], url_path="assign")
    def assign(self, request, pk=None):
        ser = CustomerAssignSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        customer = services.assign_customer(pk, ser.validated_data["userId"], current_user(request))
        log_event(request, "customer.assign", "Customer", customer.id, assigned_to=ser.validated_data["userId"])
        return Response(self.get_serializer(customer).data)
