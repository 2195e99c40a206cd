# config/urls.py
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path

from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),

    # Healthcheck
    path("health/", lambda r: JsonResponse({"ok": True}, status=200), name="health"),

    # OpenAPI schema + Swagger UI
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),

    # ---------- v1 APIs ----------
    path("api/v1/", include(("apps.accounts.api_urls", "accounts_api"), namespace="accounts_api")),
    path("api/v1/", include(("apps.customers.api_urls", "customers_api"), namespace="customers_api")),
    path("api/v1/", include(("apps.inquiries.api_urls", "inquiries_api"), namespace="inquiries_api")),
    path("api/v1/", include(("apps.responses.api_urls", "responses_api"), namespace="responses_api")),
]
