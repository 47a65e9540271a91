"""
Profiles app models

MasterProfile stores the user's complete CV as one JSON document that the
client replaces wholesale on every save.
"""
from django.conf import settings
from django.db import models


class MasterProfile(models.Model):
    """
    The single source profile every tailored résumé is derived from.

    ``data`` follows the CV document shape: a ``personal`` section plus list
    sections (experience, education, projects, ...) and a flat ``skills`` list.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='master_profile',
    )
    data = models.JSONField(default=dict)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Master profile for {self.user.email}"

    class Meta:
        verbose_name = 'Master Profile'
        verbose_name_plural = 'Master Profiles'
