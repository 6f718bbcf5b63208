"""
URL configuration for notifications API.

Routes:
    Notifications:
        /                     - List notifications (GET)
        /{id}/                - Notification detail (GET)
        /unread-count/        - Get unread count (GET)
        /{id}/read/           - Mark single as read (POST)
        /read-all/            - Mark all as read (POST)

    Preferences:
        /preferences/             - List all preferences (GET)
        /preferences/global/      - Update global mute (PATCH)
        /preferences/type/        - Update type preference (PATCH)
        /preferences/reset/       - Reset preferences (POST)

    Types:
        /types/               - List notification types (GET)
        /types/{key}/         - Get notification type detail (GET)
"""

from rest_framework.routers import DefaultRouter

from notifications.views import (
    NotificationTypeViewSet,
    NotificationViewSet,
    PreferenceViewSet,
)

router = DefaultRouter()
router.register(r"preferences", PreferenceViewSet, basename="preference")
router.register(r"types", NotificationTypeViewSet, basename="notification-type")
router.register(r"", NotificationViewSet, basename="notification")

app_name = "notifications"
urlpatterns = router.urls
