from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .api import CustomerViewSet

app_name = "customers_api"

router = DefaultRouter()
router.register(r"customers", CustomerViewSet, basename="customer")

urlpatterns = [path("", include(router.urls))]
