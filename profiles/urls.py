from django.urls import path

from .views import MasterProfileView

urlpatterns = [
    path('', MasterProfileView.as_view(), name='master-profile'),
]
