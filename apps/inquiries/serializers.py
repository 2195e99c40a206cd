# apps/inquiries/serializers.py
from rest_framework import serializers

from apps.accounts.serializers import UserSummarySerializer
from apps.customers.serializers import CustomerSummarySerializer
from apps.responses.models import InquiryResponse
from .models import Inquiry


class InquiryResponseSummarySerializer(serializers.ModelSerializer):
    responseText = serializers.CharField(source="response_text", read_only=True)
    responder = UserSummarySerializer(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = InquiryResponse
        fields = ("id", "status", "responseText", "responder", "createdAt")
        read_only_fields = fields


class InquirySerializer(serializers.ModelSerializer):
    customerId = serializers.UUIDField(source="customer_id")
    customer = CustomerSummarySerializer(read_only=True)
    assignedTo = UserSummarySerializer(source="assigned_to", read_only=True)
    tags = serializers.ListField(child=serializers.CharField(max_length=64), required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Inquiry
        fields = [
            "id", "subject", "message", "status", "priority", "category", "tags", "metadata",
            "customerId", "customer", "assignedTo", "createdAt", "updatedAt",
        ]
        read_only_fields = ["id", "status"]


class InquiryDetailSerializer(InquirySerializer):
    responses = InquiryResponseSummarySerializer(many=True, read_only=True)

    class Meta(InquirySerializer.Meta):
        fields = InquirySerializer.Meta.fields + ["responses"]


class InquiryUpdateSerializer(serializers.ModelSerializer):
    tags = serializers.ListField(child=serializers.CharField(max_length=64), required=False)
    assignedToId = serializers.UUIDField(source="assigned_to_id", required=False, allow_null=True)

    class Meta:
        model = Inquiry
        fields = ["subject", "message", "status", "priority", "category", "tags", "metadata", "assignedToId"]
        extra_kwargs = {f: {"required": False} for f in fields}


class InquiryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Inquiry.Status.choices)


class InquiryAssignSerializer(serializers.Serializer):
    csoId = serializers.UUIDField()


class InquiryListQuerySerializer(serializers.Serializer):
    """Validates the list filters before they reach the ORM."""
    status = serializers.CharField(required=False, allow_blank=True)
    priority = serializers.ChoiceField(choices=Inquiry.Priority.choices, required=False)
    category = serializers.ChoiceField(choices=Inquiry.Category.choices, required=False)
    customerId = serializers.UUIDField(required=False)
    assignedTo = serializers.UUIDField(required=False)
    assignedToMe = serializers.BooleanField(required=False, default=False)

    def validate_status(self, value: str):
        statuses = [s.strip() for s in (value or "").split(",") if s.strip()]
        unknown = [s for s in statuses if s not in Inquiry.Status.values]
        if unknown:
            raise serializers.ValidationError(f"Unknown status: {', '.join(unknown)}")
        return statuses


class InquiryStatisticsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    byStatus = serializers.DictField(child=serializers.IntegerField())
    urgent = serializers.IntegerField()
    averageResponseTime = serializers.FloatField(help_text="Hours from creation to first sent response")
