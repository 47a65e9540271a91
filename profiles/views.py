"""
Profiles app views

Fetch and replace the authenticated user's master profile.
"""
import logging

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import MasterProfileUpdateSerializer
from .services import get_profile_data, save_profile_data

logger = logging.getLogger(__name__)


class MasterProfileView(APIView):
    """
    GET /api/profile -> {"profile": <document> | null}
    PUT /api/profile -> {"success": true, "profile": <document>}
    """

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response({'profile': get_profile_data(request.user)})

    def put(self, request):
        serializer = MasterProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = save_profile_data(request.user, serializer.validated_data['profile'])
        logger.info('Saved master profile for user %s', request.user.pk)
        return Response({'success': True, 'profile': profile})
