from django.contrib import admin
from .models import MasterProfile


@admin.register(MasterProfile)
class MasterProfileAdmin(admin.ModelAdmin):
    """Admin interface for MasterProfile."""

    list_display = ['user', 'created_at', 'updated_at']
    list_filter = ['created_at', 'updated_at']
    search_fields = ['user__email', 'user__full_name']
    readonly_fields = ['created_at', 'updated_at']
