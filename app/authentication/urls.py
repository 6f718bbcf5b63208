"""
URL configuration for authentication app.

URL structure:
    /api/v1/auth/token/           - Obtain JWT pair (simplejwt)
    /api/v1/auth/token/refresh/   - Refresh access token (simplejwt)
    /api/v1/auth/me/              - Current user with role
    /api/v1/auth/privacy/         - Privacy settings (GET/PATCH)
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from authentication.views import CurrentUserView, PrivacySettingsView

app_name = "authentication"

urlpatterns = [
    # JWT
    path("token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    # Identity and privacy
    path("me/", CurrentUserView.as_view(), name="me"),
    path("privacy/", PrivacySettingsView.as_view(), name="privacy"),
]
