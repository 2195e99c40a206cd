# apps/customers/serializers.py
from rest_framework import serializers

from apps.accounts.serializers import UserSummarySerializer
from .models import Customer


class CustomerSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name", max_length=120)
    lastName = serializers.CharField(source="last_name", max_length=120)
    fullName = serializers.CharField(source="full_name", read_only=True)
    createdBy = UserSummarySerializer(source="created_by", read_only=True)
    assignedTo = UserSummarySerializer(source="assigned_to", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Customer
        fields = [
            "id", "firstName", "lastName", "fullName", "email", "phone", "company",
            "address", "city", "country", "notes", "status", "metadata",
            "createdBy", "assignedTo", "createdAt", "updatedAt",
        ]
        read_only_fields = ["id"]

    def validate_email(self, value: str) -> str:
        return value.strip().lower()


class CustomerAssignSerializer(serializers.Serializer):
    userId = serializers.UUIDField()


class CustomerSummarySerializer(serializers.ModelSerializer):
    fullName = serializers.CharField(source="full_name", read_only=True)

    class Meta:
        model = Customer
        fields = ("id", "fullName", "email", "company")
        read_only_fields = fields
