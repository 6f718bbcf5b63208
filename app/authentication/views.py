"""
Authentication views.

This module provides API views for:
- The current user's identity (including role)
- Privacy settings management

Related files:
    - serializers.py: Request/response serialization
    - services.py: PrivacySettingsService
    - urls.py: URL routing

Note:
    JWT login and refresh are served by simplejwt views wired in urls.py:
    - Obtain: /api/v1/auth/token/
    - Refresh: /api/v1/auth/token/refresh/
"""

from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import PrivacySettingsSerializer, UserSerializer
from authentication.services import PrivacySettingsService


class CurrentUserView(APIView):
    """
    Return the authenticated user.

    URL: /api/v1/auth/me/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get current user",
        description="Return the authenticated user including their platform role.",
        tags=["Auth"],
        responses={200: UserSerializer},
    )
    def get(self, request):
        return Response(UserSerializer(request.user).data)


class PrivacySettingsView(APIView):
    """
    API view for the current user's privacy settings.

    GET: Retrieve settings (defaults are created on first access)
    PATCH: Update any subset of the settings

    URL: /api/v1/auth/privacy/

    Setting allow_messages to false makes the messaging privacy gate refuse
    new participant messages. Admin messages are still delivered.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get privacy settings",
        tags=["Auth - Privacy"],
        responses={200: PrivacySettingsSerializer},
    )
    def get(self, request):
        settings_obj = PrivacySettingsService.get_settings(request.user)
        return Response(PrivacySettingsSerializer(settings_obj).data)

    @extend_schema(
        summary="Update privacy settings",
        description="Partial update of profile visibility, activity and messaging flags.",
        tags=["Auth - Privacy"],
        request=PrivacySettingsSerializer,
        responses={200: PrivacySettingsSerializer},
    )
    def patch(self, request):
        """
        Partially update privacy settings.

        Request body:
            {
                "allow_messages": false,       // Optional
                "show_activity": true,         // Optional
                "profile_visibility": "private" // Optional
            }
        """
        serializer = PrivacySettingsSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        settings_obj = PrivacySettingsService.update_settings(
            request.user, **serializer.validated_data
        )
        return Response(PrivacySettingsSerializer(settings_obj).data)
