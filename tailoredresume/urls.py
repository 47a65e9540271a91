"""
URL configuration for tailoredresume project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/4.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include

from tailoredresume.views import health

urlpatterns = [
    path('health', health, name='health'),
    path('admin/', admin.site.urls),

    # API views
    path('api/auth/', include('accounts.urls')),
    path('api/profile', include('profiles.urls')),
    path('api/cv/', include('tailoring.urls')),
    path('api/', include('billing.urls')),
]

handler404 = 'tailoredresume.views.not_found'
handler500 = 'tailoredresume.views.server_error'
