"""
WSGI config for tailoredresume project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'tailoredresume.settings')

application = get_wsgi_application()
