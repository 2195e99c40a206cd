from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .api import ResponseViewSet

app_name = "responses_api"

router = DefaultRouter()
router.register(r"responses", ResponseViewSet, basename="response")

urlpatterns = [path("", include(router.urls))]
