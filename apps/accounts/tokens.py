# apps/accounts/tokens.py
from rest_framework_simplejwt.tokens import RefreshToken


class CrmRefreshToken(RefreshToken):
    """
    Refresh token carrying the payload contract {sub, email, role, type}.

    simplejwt copies every non-reserved claim into the derived access token,
    so email and role end up in both tokens.
    """

    @classmethod
    def for_user(cls, user):
        token = super().for_user(user)
        token["email"] = user.email
        token["role"] = user.role
        return token


def issue_token_pair(user) -> dict:
    refresh = CrmRefreshToken.for_user(user)
    return {
        "accessToken": str(refresh.access_token),
        "refreshToken": str(refresh),
    }
