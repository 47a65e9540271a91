from django.urls import path

from .views import (
    ApplicationDetailView,
    ApplicationExportView,
    ApplicationListView,
    ATSScoreView,
    CoverLetterView,
    GenerateCVView,
    InterviewPrepView,
    ParseCVView,
    RenderCVView,
)

urlpatterns = [
    path('generate', GenerateCVView.as_view(), name='cv-generate'),
    path('parse', ParseCVView.as_view(), name='cv-parse'),
    path('cover-letter', CoverLetterView.as_view(), name='cv-cover-letter'),
    path('interview-prep', InterviewPrepView.as_view(), name='cv-interview-prep'),
    path('applications', ApplicationListView.as_view(), name='cv-applications'),
    path('applications/<uuid:pk>', ApplicationDetailView.as_view(), name='cv-application-detail'),
    path('applications/<uuid:pk>/export', ApplicationExportView.as_view(), name='cv-application-export'),
    path('ats-score', ATSScoreView.as_view(), name='cv-ats-score'),
    path('render', RenderCVView.as_view(), name='cv-render'),
]
