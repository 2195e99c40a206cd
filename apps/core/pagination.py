# apps/core/pagination.py
from __future__ import annotations

import math
from typing import Iterable, Mapping

from django.db.models import QuerySet
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class PagePagination(PageNumberPagination):
    """
    page/limit pagination. Body shape: {items, total, page, limit, totalPages}.
    """
    page_query_param = "page"
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        limit = self.page.paginator.per_page
        return Response(
            {
                "items": data,
                "total": total,
                "page": self.page.number,
                "limit": limit,
                "totalPages": math.ceil(total / limit) if limit else 0,
            }
        )

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "required": ["items", "total", "page", "limit", "totalPages"],
            "properties": {
                "items": schema,
                "total": {"type": "integer", "example": 42},
                "page": {"type": "integer", "example": 1},
                "limit": {"type": "integer", "example": 10},
                "totalPages": {"type": "integer", "example": 5},
            },
        }


def apply_sorting(
    qs: QuerySet,
    params: Mapping[str, str],
    allowed: Mapping[str, str],
    default: Iterable[str] = ("-created_at",),
) -> QuerySet:
    """
    Order `qs` by `sortBy` / `sortOrder` query params.

    `allowed` maps wire names (camelCase) to model fields; anything else
    falls back to `default`. sortOrder is ASC or DESC (default DESC).
    """
    field = allowed.get((params.get("sortBy") or "").strip())
    if not field:
        return qs.order_by(*default)
    order = (params.get("sortOrder") or "DESC").strip().upper()
    prefix = "" if order == "ASC" else "-"
    return qs.order_by(f"{prefix}{field}", "id")
