"""
Tailoring app views

CV API: AI generation endpoints, the application tracker, ATS scoring and
CV rendering.
"""
import logging
import uuid

from django.http import HttpResponse
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import HasGenerationQuota
from accounts.quota import generation_slot
from tailoredresume.exceptions import APIError

from .ats import ResumeOptimizer
from .exceptions import AIConfigurationError, AIQuotaExceeded, TailoringPipelineError
from .models import Application
from .rendering import render_cv_html
from .serializers import (
    ApplicationCreateSerializer,
    ApplicationSerializer,
    ApplicationUpdateSerializer,
    ATSScoreSerializer,
    RenderSerializer,
)
from .services import CVTailoringService

logger = logging.getLogger(__name__)

AI_UNAVAILABLE_MESSAGE = 'AI service temporarily unavailable. Please try again later.'

NO_STORE_HEADERS = {
    'Cache-Control': 'no-store, no-cache, must-revalidate, proxy-revalidate',
    'Pragma': 'no-cache',
    'Expires': '0',
}


def ai_error(exc: TailoringPipelineError, fallback: str) -> APIError:
    """Map a pipeline failure onto the HTTP error the client sees."""
    if isinstance(exc, AIQuotaExceeded):
        return APIError(AI_UNAVAILABLE_MESSAGE, code='ai_unavailable', status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    code = 'ai_not_configured' if isinstance(exc, AIConfigurationError) else 'ai_failed'
    return APIError(str(exc) or fallback, code=code, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _owned_application(user, application_id):
    """Return the user's application or None; malformed ids count as missing."""
    if not application_id:
        return None
    try:
        pk = uuid.UUID(str(application_id))
    except ValueError:
        return None
    return Application.objects.filter(pk=pk, user=user).first()


class AIGenerationView(APIView):
    """Endpoint that calls the AI provider and is gated by the monthly quota."""

    permission_classes = [IsAuthenticated, HasGenerationQuota]


class GenerateCVView(AIGenerationView):
    """
    Tailor the posted profile to a job description.

    POST /api/cv/generate
    Consumes one unit of quota, returned if generation fails.
    """

    def post(self, request):
        profile = request.data.get('profile')
        job_description = request.data.get('jobDescription')
        options = request.data.get('options') or {}

        if not profile or not job_description:
            return Response(
                {'error': 'Missing required fields: profile and jobDescription'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if not isinstance(job_description, str) or not job_description.strip():
            return Response({'error': 'Job description cannot be empty'}, status=status.HTTP_400_BAD_REQUEST)
        if not isinstance(profile, dict) or not isinstance(profile.get('personal'), dict):
            return Response(
                {'error': 'Profile must include a personal section'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        if not isinstance(options, dict):
            options = {}

        try:
            service = CVTailoringService()
            with generation_slot(request.user):
                result = service.analyze_and_tailor(profile, job_description, options)
        except TailoringPipelineError as exc:
            logger.error('CV generation failed for user %s: %s', request.user.pk, exc)
            raise ai_error(exc, 'CV generation failed. Please try again.') from exc

        logger.info('CV generated for user %s (match score %s)', request.user.pk, result['matchScore'])
        payload = {
            'tailoredProfile': result['tailoredProfile'],
            'layoutStrategy': result['layoutStrategy'],
            'matchScore': result['matchScore'],
            'suggestions': result['suggestions'],
            'originalDescription': job_description,
            'jobTitle': result['jobTitle'],
            'companyName': result['companyName'],
        }
        return Response(payload, headers=NO_STORE_HEADERS)


class ParseCVView(AIGenerationView):
    """
    Extract a profile from pasted CV text (PDF or LinkedIn export).

    POST /api/cv/parse
    Gated by the quota but does not consume it.
    """

    def post(self, request):
        raw_text = request.data.get('rawText')
        if not isinstance(raw_text, str) or not raw_text.strip():
            return Response({'error': 'No text content provided for parsing'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            profile = CVTailoringService().parse_profile_from_text(raw_text)
        except TailoringPipelineError as exc:
            raise ai_error(exc, 'Failed to parse CV content') from exc

        return Response({'profile': profile})


class CoverLetterView(AIGenerationView):
    """
    Write a cover letter, or return the one stored on the application.

    POST /api/cv/cover-letter
    """

    def post(self, request):
        profile = request.data.get('profile')
        job_description = request.data.get('jobDescription')
        options = request.data.get('options') or {}

        if not isinstance(profile, dict) or not profile or not isinstance(job_description, str) or not job_description:
            return Response({'error': 'Profile and job description are required'}, status=status.HTTP_400_BAD_REQUEST)
        if not isinstance(options, dict):
            options = {}

        application = _owned_application(request.user, request.data.get('applicationId'))
        if application and application.cover_letter:
            return Response({'coverLetter': application.cover_letter, 'fromCache': True})

        try:
            service = CVTailoringService()
            with generation_slot(request.user):
                cover_letter = service.generate_cover_letter(
                    profile,
                    job_description,
                    tone=options.get('tone'),
                    company_name=options.get('companyName'),
                    job_title=options.get('jobTitle'),
                )
        except TailoringPipelineError as exc:
            logger.error('Cover letter generation failed for user %s: %s', request.user.pk, exc)
            raise ai_error(exc, 'Failed to generate cover letter') from exc

        if application:
            Application.objects.filter(pk=application.pk, user=request.user).update(cover_letter=cover_letter)

        return Response({'coverLetter': cover_letter})


class InterviewPrepView(AIGenerationView):
    """
    Generate likely interview questions, or return the stored set.

    POST /api/cv/interview-prep
    """

    def post(self, request):
        profile = request.data.get('profile')
        job_description = request.data.get('jobDescription')

        application = _owned_application(request.user, request.data.get('applicationId'))
        if application and application.interview_questions:
            return Response({'questions': application.interview_questions, 'fromCache': True})

        if not isinstance(job_description, str) or not job_description:
            return Response({'error': 'Job description is required'}, status=status.HTTP_400_BAD_REQUEST)

        try:
            service = CVTailoringService()
            with generation_slot(request.user):
                questions = service.generate_interview_questions(
                    profile if isinstance(profile, dict) else None,
                    job_description,
                    request.data.get('questionType') or 'all',
                )
        except TailoringPipelineError as exc:
            logger.error('Interview prep generation failed for user %s: %s', request.user.pk, exc)
            raise ai_error(exc, 'Failed to generate questions') from exc

        if application:
            Application.objects.filter(pk=application.pk, user=request.user).update(interview_questions=questions)

        return Response({'questions': questions})


class ApplicationListView(APIView):
    """
    GET /api/cv/applications
    POST /api/cv/applications
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        applications = Application.objects.filter(user=request.user)
        return Response({'applications': ApplicationSerializer(applications, many=True).data})

    def post(self, request):
        serializer = ApplicationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        application = Application.objects.create(
            user=request.user,
            job_title=data['jobTitle'],
            company=data['companyName'],
            original_description=data.get('jobDescription') or '',
            tailored_resume=data.get('tailoredProfile') or {},
            match_score=data.get('matchScore') or 0,
            status=Application.Status.APPLIED,
        )
        logger.info('Application %s created for user %s', application.pk, request.user.pk)

        return Response(
            {'application': {'id': str(application.pk), 'createdAt': application.created_at.isoformat()}},
            status=status.HTTP_201_CREATED,
        )


class ApplicationDetailView(APIView):
    """
    PATCH /api/cv/applications/<id>
    DELETE /api/cv/applications/<id>

    Both act only on the caller's own applications; anything else is a 404.
    """

    permission_classes = [IsAuthenticated]

    def patch(self, request, pk):
        serializer = ApplicationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        changes = {'status': serializer.validated_data['status']}
        if 'notes' in serializer.validated_data:
            changes['notes'] = serializer.validated_data['notes']

        # .update() skips auto_now
        application = Application.objects.filter(pk=pk, user=request.user).first()
        if application is None:
            raise NotFound('Application not found')
        for field, value in changes.items():
            setattr(application, field, value)
        application.save(update_fields=[*changes, 'updated_at'])

        return Response({'success': True})

    def delete(self, request, pk):
        deleted, _ = Application.objects.filter(pk=pk, user=request.user).delete()
        if not deleted:
            raise NotFound('Application not found')
        return Response({'success': True})


class ApplicationExportView(APIView):
    """
    Render the stored CV snapshot of an application as printable HTML.

    GET /api/cv/applications/<id>/export?template=harvard
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        application = Application.objects.filter(pk=pk, user=request.user).first()
        if application is None:
            raise NotFound('Application not found')

        html = render_cv_html(application.tailored_resume, style=request.query_params.get('template', 'harvard'))
        return HttpResponse(html, content_type='text/html; charset=utf-8')


class ATSScoreView(APIView):
    """
    Score a profile for ATS compatibility without calling the AI provider.

    POST /api/cv/ats-score
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ATSScoreSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = ResumeOptimizer.calculate_ats_score(
            serializer.validated_data['profile'],
            serializer.validated_data.get('jobDescription'),
        )
        return Response(result)


class RenderCVView(APIView):
    """
    Render a CV document with one of the presentation templates.

    POST /api/cv/render
    """

    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = RenderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        html = render_cv_html(data['profile'], data.get('layoutStrategy'), data.get('templateStyle') or 'harvard')
        return HttpResponse(html, content_type='text/html; charset=utf-8')
