# apps/responses/serializers.py
from rest_framework import serializers

from apps.accounts.serializers import UserSummarySerializer
from apps.customers.serializers import CustomerSummarySerializer
from apps.inquiries.models import Inquiry
from .models import InquiryResponse


class InquirySummarySerializer(serializers.ModelSerializer):
    customer = CustomerSummarySerializer(read_only=True)

    class Meta:
        model = Inquiry
        fields = ("id", "subject", "status", "priority", "customer")
        read_only_fields = fields


class ResponseSerializer(serializers.ModelSerializer):
    inquiryId = serializers.UUIDField(source="inquiry_id", read_only=True)
    responderId = serializers.UUIDField(source="responder_id", read_only=True)
    responder = UserSummarySerializer(read_only=True)
    approvedBy = UserSummarySerializer(source="approved_by", read_only=True)
    responseText = serializers.CharField(source="response_text", read_only=True)
    approvalNotes = serializers.CharField(source="approval_notes", read_only=True)
    rejectionReason = serializers.CharField(source="rejection_reason", read_only=True)
    approvedAt = serializers.DateTimeField(source="approved_at", read_only=True)
    rejectedAt = serializers.DateTimeField(source="rejected_at", read_only=True)
    sentAt = serializers.DateTimeField(source="sent_at", read_only=True)
    emailSentAt = serializers.DateTimeField(source="email_sent_at", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = InquiryResponse
        fields = [
            "id", "inquiryId", "responderId", "responder", "approvedBy", "status",
            "responseText", "approvalNotes", "rejectionReason", "metadata",
            "approvedAt", "rejectedAt", "sentAt", "emailSentAt", "createdAt", "updatedAt",
        ]
        read_only_fields = fields


class ResponseDetailSerializer(ResponseSerializer):
    inquiry = InquirySummarySerializer(read_only=True)

    class Meta(ResponseSerializer.Meta):
        fields = ResponseSerializer.Meta.fields + ["inquiry"]
        read_only_fields = fields


# ---- Requests -----------------------------------------------------------------

class ResponseCreateSerializer(serializers.Serializer):
    inquiryId = serializers.UUIDField()
    responseText = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=False)
    metadata = serializers.JSONField(required=False)

    def validate_metadata(self, value):
        if value is not None and not isinstance(value, dict):
            raise serializers.ValidationError("metadata must be an object")
        return value


class ResponseUpdateSerializer(serializers.Serializer):
    responseText = serializers.CharField(
        source="response_text", required=False, allow_blank=True, trim_whitespace=False
    )
    metadata = serializers.JSONField(required=False)

    def validate_metadata(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("metadata must be an object")
        return value


class ApproveResponseSerializer(serializers.Serializer):
    approvalNotes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class RejectResponseSerializer(serializers.Serializer):
    rejectionReason = serializers.CharField()


class ResponseListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=InquiryResponse.Status.choices, required=False, allow_blank=True)
    inquiryId = serializers.UUIDField(required=False)
    responderId = serializers.UUIDField(required=False)
    approvedById = serializers.UUIDField(required=False)


class ResponseStatisticsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    byStatus = serializers.DictField(child=serializers.IntegerField())
    approvalRate = serializers.FloatField()


class ResponseStatisticsQuerySerializer(serializers.Serializer):
    userId = serializers.UUIDField(required=False, allow_null=True)
