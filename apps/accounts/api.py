# apps/accounts/api.py
import logging

from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.signals import user_logged_in, user_logged_out

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError

from drf_spectacular.utils import extend_schema, OpenApiExample
from drf_spectacular.types import OpenApiTypes

from .serializers import (
    AuthResponseSerializer,
    CurrentUserSerializer,
    LoginRequestSerializer,
    RefreshRequestSerializer,
)
from .tokens import CrmRefreshToken, issue_token_pair

logger = logging.getLogger("crm.auth")


def _auth_payload(user) -> dict:
    payload = issue_token_pair(user)
    payload["user"] = CurrentUserSerializer(user).data
    return payload


@extend_schema(
    summary="Login",
    description="Exchange email + password for an access/refresh token pair.",
    request=LoginRequestSerializer,
    responses={200: AuthResponseSerializer, 401: OpenApiTypes.OBJECT},
    examples=[
        OpenApiExample("Login body", value={"email": "admin@nexus.local", "password": "adminpass"}),
    ],
)
class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"

    def post(self, request):
        serializer = LoginRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"].lower()
        password = serializer.validated_data["password"]

        # authenticate() rejects inactive users and fires user_login_failed itself.
        user = authenticate(request, email=email, password=password)
        if user is None:
            return Response({"detail": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED)

        user_logged_in.send(sender=user.__class__, request=request, user=user)
        logger.info("login_succeeded", extra={"user_id": str(user.pk)})
        return Response(_auth_payload(user))


@extend_schema(
    summary="Refresh tokens",
    description="Trade a refresh token for a fresh token pair. Access tokens are rejected.",
    request=RefreshRequestSerializer,
    responses={200: AuthResponseSerializer, 401: OpenApiTypes.OBJECT},
)
class RefreshView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"

    def post(self, request):
        serializer = RefreshRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invalid = Response({"detail": "Invalid refresh token"}, status=status.HTTP_401_UNAUTHORIZED)

        try:
            # validates signature, expiry and type == "refresh"
            token = CrmRefreshToken(serializer.validated_data["refreshToken"])
        except TokenError:
            return invalid

        User = get_user_model()
        user = User.objects.filter(pk=token.get("sub"), is_active=True).first()
        if user is None:
            return invalid

        return Response(_auth_payload(user))


@extend_schema(
    summary="Logout",
    description="Stateless logout; the client drops its tokens. Recorded in the audit trail.",
    request=None,
    responses={200: OpenApiTypes.OBJECT},
)
class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        user_logged_out.send(sender=request.user.__class__, request=request, user=request.user)
        logger.info("logout", extra={"user_id": str(request.user.pk)})
        return Response({"message": "Successfully logged out"})


@extend_schema(
    summary="Who am I",
    description="Return the authenticated user's profile.",
    responses={200: CurrentUserSerializer},
)
class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(CurrentUserSerializer(request.user).data)
