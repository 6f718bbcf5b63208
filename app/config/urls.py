"""
URL configuration for the messaging backend.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Token and privacy endpoints
        token/                     - Obtain JWT pair
        token/refresh/             - Refresh access token
        privacy/                   - Caller's privacy settings (GET/PATCH)
    /api/v1/messaging/             - Messaging endpoints
        conversations/             - Conversation list/get-or-create
        conversations/{id}/        - Conversation detail
        conversations/{id}/read/   - Mark every message as read
        conversations/{id}/messages/ - Message list/send
        conversations/{id}/messages/{pk}/ - Message soft delete
        messages/{pk}/delivered|read|failed/ - Delivery transitions
        messages/{pk}/reactions/   - Reaction summary / toggle
        unread/                    - Unread summary
        admin/...                  - Admin bypass gateway
    /api/v1/notifications/         - In-app notifications and preferences

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("messaging/", include("messaging.urls")),
    path("notifications/", include("notifications.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Messaging Admin"
admin.site.site_title = "Messaging Admin Portal"
admin.site.index_title = "Conversations, messages and notifications"
