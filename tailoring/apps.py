from django.apps import AppConfig


class TailoringConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tailoring'
