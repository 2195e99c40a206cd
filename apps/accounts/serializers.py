from rest_framework import serializers
from .models import User


class CurrentUserSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name", read_only=True)
    lastName = serializers.CharField(source="last_name", read_only=True)
    fullName = serializers.CharField(source="full_name", read_only=True)

    class Meta:
        model = User
        fields = ("id", "email", "firstName", "lastName", "fullName", "role")
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    # I'm the compact shape embedded in customers/inquiries/responses.
    fullName = serializers.CharField(source="full_name", read_only=True)

    class Meta:
        model = User
        fields = ("id", "email", "fullName", "role")
        read_only_fields = fields


class LoginRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False)


class RefreshRequestSerializer(serializers.Serializer):
    refreshToken = serializers.CharField()


class AuthResponseSerializer(serializers.Serializer):
    accessToken = serializers.CharField()
    refreshToken = serializers.CharField()
    user = CurrentUserSerializer()
