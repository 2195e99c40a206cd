from django.contrib import admin
from .models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("email", "first_name", "last_name", "company", "status", "assigned_to", "created_at")
    list_filter = ("status", "country")
    search_fields = ("email", "first_name", "last_name", "company")
    readonly_fields = ("created_at", "updated_at")
