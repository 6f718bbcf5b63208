"""
Views for notification API.

ViewSets:
    NotificationViewSet: Inbox listing with custom actions for read status
    PreferenceViewSet: ViewSet for managing user notification preferences
    NotificationTypeViewSet: ReadOnlyModelViewSet for listing notification types

Endpoints:
    Notifications:
        GET /api/v1/notifications/ - List user's notifications (paginated, filtered)
        GET /api/v1/notifications/{id}/ - Get notification detail
        GET /api/v1/notifications/unread-count/ - Get unread count
        POST /api/v1/notifications/{id}/read/ - Mark single notification as read
        POST /api/v1/notifications/read-all/ - Mark all notifications as read

    Preferences:
        GET /api/v1/notifications/preferences/ - List all preferences
        PATCH /api/v1/notifications/preferences/global/ - Update global mute
        PATCH /api/v1/notifications/preferences/type/ - Update type preference
        POST /api/v1/notifications/preferences/reset/ - Reset to defaults

    Types:
        GET /api/v1/notifications/types/ - List available notification types
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import NotFoundError
from notifications.models import Notification, NotificationType
from notifications.serializers import (
    GlobalPreferenceSerializer,
    MarkAllReadResponseSerializer,
    NotificationSerializer,
    NotificationTypeSerializer,
    ResetPreferencesResponseSerializer,
    TypePreferenceResponseSerializer,
    TypePreferenceSerializer,
    UnreadCountSerializer,
    UserPreferencesResponseSerializer,
)
from notifications.services import NotificationService, PreferenceService


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notifications",
        summary="List notifications",
        description=(
            "Get paginated list of notifications for the authenticated user. "
            "Supports filtering by read status and notification type."
        ),
        parameters=[
            OpenApiParameter(
                name="is_read",
                type=bool,
                location=OpenApiParameter.QUERY,
                description="Filter by read status (true/false)",
                required=False,
            ),
            OpenApiParameter(
                name="type",
                type=str,
                location=OpenApiParameter.QUERY,
                description="Filter by notification type key",
                required=False,
            ),
        ],
        tags=["Notifications - Inbox"],
    ),
    retrieve=extend_schema(
        operation_id="get_notification",
        summary="Get notification",
        description="Get details of a specific notification.",
        tags=["Notifications - Inbox"],
    ),
)
class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for notification operations.

    Provides:
    - list: GET / - List user's notifications with filtering
    - retrieve: GET /{id}/ - Get notification detail
    - unread_count: GET /unread-count/ - Get badge count
    - read: POST /{id}/read/ - Mark single as read
    - read_all: POST /read-all/ - Mark all as read

    Users can only access their own notifications.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        user = self.request.user
        queryset = Notification.objects.filter(recipient=user).select_related(
            "notification_type", "actor", "actor__profile"
        )

        is_read = self.request.query_params.get("is_read")
        if is_read is not None:
            queryset = queryset.filter(is_read=is_read.lower() == "true")

        type_key = self.request.query_params.get("type")
        if type_key:
            queryset = queryset.filter(notification_type__key=type_key)

        return queryset

    @extend_schema(
        operation_id="get_unread_notification_count",
        summary="Get unread notification count",
        description="Get the count of unread notifications for badge display.",
        responses={200: UnreadCountSerializer},
        tags=["Notifications - Inbox"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request):
        count = Notification.objects.filter(
            recipient=request.user,
            is_read=False,
        ).count()

        serializer = UnreadCountSerializer({"unread_count": count})
        return Response(serializer.data)

    @extend_schema(
        operation_id="mark_notification_read",
        summary="Mark notification as read",
        description=(
            "Mark a single notification as read. "
            "This operation is idempotent - already-read notifications return success."
        ),
        request=None,
        responses={
            200: NotificationSerializer,
            404: OpenApiResponse(description="Notification not found"),
        },
        tags=["Notifications - Inbox"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        """
        Mark single notification as read.

        Returns 404 if notification doesn't exist or belongs to another user.
        """
        notification = Notification.objects.filter(
            pk=pk, recipient=request.user
        ).first()
        if notification is None:
            raise NotFoundError("Notification not found", error_code="NOTIFICATION_NOT_FOUND")

        notification = NotificationService.mark_as_read(notification, request.user).unwrap()
        serializer = self.get_serializer(notification)
        return Response(serializer.data)

    @extend_schema(
        operation_id="mark_all_notifications_read",
        summary="Mark all notifications as read",
        description="Mark all unread notifications for the authenticated user as read.",
        request=None,
        responses={200: MarkAllReadResponseSerializer},
        tags=["Notifications - Inbox"],
    )
    @action(detail=False, methods=["post"], url_path="read-all")
    def read_all(self, request):
        count = NotificationService.mark_all_as_read(request.user).unwrap()
        serializer = MarkAllReadResponseSerializer({"marked_count": count})
        return Response(serializer.data)


def _type_preference_data(pref) -> dict:
    return {
        "type_key": pref.notification_type.key,
        "type_name": pref.notification_type.display_name,
        "disabled": pref.disabled,
        "websocket_enabled": pref.websocket_enabled,
    }


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notification_preferences",
        summary="List notification preferences",
        description="Get all notification preferences for the current user.",
        responses={200: UserPreferencesResponseSerializer},
        tags=["Notifications - Preferences"],
    ),
)
class PreferenceViewSet(viewsets.ViewSet):
    """
    ViewSet for managing user notification preferences.

    Provides:
    - list: GET / - Get all preferences
    - global_preference: PATCH /global/ - Update global mute setting
    - type_preference: PATCH /type/ - Update type preference
    - reset: POST /reset/ - Reset all preferences to defaults
    """

    permission_classes = [IsAuthenticated]

    def list(self, request):
        preferences = PreferenceService.get_user_preferences(request.user).unwrap()
        serializer = UserPreferencesResponseSerializer(preferences)
        return Response(serializer.data)

    @extend_schema(
        operation_id="update_global_notification_preference",
        summary="Update global notification preference",
        description=(
            "Enable or disable all notifications globally. "
            "Muting globally also silences admin messages."
        ),
        request=GlobalPreferenceSerializer,
        responses={200: GlobalPreferenceSerializer},
        tags=["Notifications - Preferences"],
    )
    @action(detail=False, methods=["patch"], url_path="global")
    def global_preference(self, request):
        serializer = GlobalPreferenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        pref = PreferenceService.set_global_preference(
            user=request.user,
            all_disabled=serializer.validated_data["all_disabled"],
        ).unwrap()

        return Response({"all_disabled": pref.all_disabled}, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="update_type_notification_preference",
        summary="Update type notification preference",
        description=(
            "Update notification preferences for a specific notification type. "
            "Disabling admin_message has no effect on delivery."
        ),
        request=TypePreferenceSerializer,
        responses={200: TypePreferenceResponseSerializer},
        tags=["Notifications - Preferences"],
    )
    @action(detail=False, methods=["patch"], url_path="type")
    def type_preference(self, request):
        """
        Update type-level preference.

        A websocket_enabled of null means "inherit from type defaults".
        """
        serializer = TypePreferenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        validated = serializer.validated_data
        pref = PreferenceService.set_type_preference(
            user=request.user,
            type_key=validated["type_key"],
            disabled=validated.get("disabled"),
            websocket_enabled=validated.get("websocket_enabled"),
        ).unwrap()

        return Response(_type_preference_data(pref), status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="reset_notification_preferences",
        summary="Reset all preferences",
        description="Reset all notification preferences to their default values.",
        request=None,
        responses={200: ResetPreferencesResponseSerializer},
        tags=["Notifications - Preferences"],
    )
    @action(detail=False, methods=["post"], url_path="reset")
    def reset(self, request):
        deleted = PreferenceService.reset_preferences(request.user).unwrap()
        serializer = ResetPreferencesResponseSerializer({"deleted_count": deleted})
        return Response(serializer.data, status=status.HTTP_200_OK)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_notification_types",
        summary="List notification types",
        description="Get all available notification types.",
        tags=["Notifications - Types"],
    ),
    retrieve=extend_schema(
        operation_id="get_notification_type",
        summary="Get notification type",
        description="Get details of a specific notification type.",
        tags=["Notifications - Types"],
    ),
)
class NotificationTypeViewSet(viewsets.ReadOnlyModelViewSet):
    """Lists active notification types so clients can configure preferences."""

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationTypeSerializer
    pagination_class = None
    lookup_field = "key"

    def get_queryset(self):
        return NotificationType.objects.filter(is_active=True).order_by("category", "key")
