# apps/rbac/roles.py
from __future__ import annotations

import uuid
from dataclasses import dataclass

from django.db import models


class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    MANAGER = "manager", "Manager"
    CSO = "cso", "Customer Support Officer"


def _norm(s: str) -> str:
    """I normalize role names for reliable comparisons."""
    return (s or "").strip().lower()


def parse_role(value: str) -> Role:
    try:
        return Role(_norm(value))
    except ValueError:
        raise ValueError(f"Unknown role: {value!r}") from None


@dataclass(frozen=True)
class CurrentUser:
    """
    The resolved caller identity handed to services.

    Built once from the authenticated user at the HTTP boundary; services
    trust it as-is and never look the user up again.
    """
    id: uuid.UUID
    role: Role

    @classmethod
    def from_user(cls, user) -> "CurrentUser":
        return cls(id=user.pk, role=parse_role(user.role))

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role == Role.MANAGER

    @property
    def is_cso(self) -> bool:
        return self.role == Role.CSO

    def has_role(self, *roles: str) -> bool:
        return self.role in {parse_role(r) for r in roles}


def current_user(request) -> CurrentUser:
    return CurrentUser.from_user(request.user)
