from django.contrib import admin
from .models import Application


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    """Admin interface for Application."""

    list_display = [
        'id',
        'user',
        'job_title',
        'company',
        'match_score',
        'status',
        'created_at',
    ]
    list_filter = ['status', 'created_at', 'updated_at']
    search_fields = [
        'user__email',
        'job_title',
        'company',
    ]
    readonly_fields = ['created_at', 'updated_at']

    fieldsets = (
        ('Application', {
            'fields': ('user', 'job_title', 'company', 'status', 'match_score', 'notes')
        }),
        ('Job Description', {
            'fields': ('original_description',),
            'classes': ('collapse',)
        }),
        ('Generated Output', {
            'fields': ('tailored_resume', 'cover_letter', 'interview_questions'),
            'classes': ('collapse',)
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at')
        }),
    )
