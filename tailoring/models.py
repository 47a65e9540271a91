"""
Tailoring app models

Application model: one job the user applied to, with the tailored CV snapshot
and any AI-generated cover letter or interview questions.
"""
import uuid

from django.conf import settings
from django.db import models


class Application(models.Model):
    """
    Track one job application.

    ``tailored_resume`` is the CV document as it was sent; it is never
    regenerated. ``cover_letter`` and ``interview_questions`` act as a cache
    for the matching AI endpoints.
    """

    class Status(models.TextChoices):
        APPLIED = 'APPLIED', 'Applied'
        INTERVIEWING = 'INTERVIEWING', 'Interviewing'
        OFFER = 'OFFER', 'Offer'
        REJECTED = 'REJECTED', 'Rejected'
        ACCEPTED = 'ACCEPTED', 'Accepted'
        ARCHIVED = 'ARCHIVED', 'Archived'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='applications',
    )

    job_title = models.CharField(max_length=255)
    company = models.CharField(max_length=255)
    original_description = models.TextField(blank=True)

    # Snapshot of the tailored CV document
    tailored_resume = models.JSONField(default=dict, blank=True)
    match_score = models.PositiveSmallIntegerField(default=0)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.APPLIED,
    )

    cover_letter = models.TextField(null=True, blank=True)
    interview_questions = models.JSONField(null=True, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.job_title} at {self.company} ({self.status})"

    class Meta:
        verbose_name = 'Application'
        verbose_name_plural = 'Applications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'created_at'], name='tailoring_app_user_created_idx'),
        ]
