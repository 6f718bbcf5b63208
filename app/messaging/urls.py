"""
URL configuration for messaging API.

URL Structure:
    Conversations:
        /conversations/                          GET, POST
        /conversations/{id}/                     GET
        /conversations/{id}/read/                POST

    Messages:
        /conversations/{id}/messages/            GET, POST
        /conversations/{id}/messages/{pk}/       DELETE

    Delivery and reactions:
        /messages/{pk}/delivered/                POST
        /messages/{pk}/read/                     POST
        /messages/{pk}/failed/                   POST
        /messages/{pk}/reactions/                GET
        /messages/{pk}/reactions/toggle/         POST

    Unread:
        /unread/                                 GET

    Admin:
        /admin/messages/                         POST
        /admin/conversations/                    GET
        /admin/users/                            GET

All URLs are prefixed with /api/v1/messaging/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from messaging.views import (
    AdminConversationListView,
    AdminMessageView,
    AdminUserSearchView,
    ConversationViewSet,
    MessageActionViewSet,
    MessageViewSet,
    UnreadSummaryView,
)

router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")
router.register(r"messages", MessageActionViewSet, basename="message")

app_name = "messaging"

urlpatterns = [
    path("", include(router.urls)),
    # Nested routes for messages
    path(
        "conversations/<int:conversation_pk>/messages/",
        MessageViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-message-list",
    ),
    path(
        "conversations/<int:conversation_pk>/messages/<int:pk>/",
        MessageViewSet.as_view({"delete": "destroy"}),
        name="conversation-message-detail",
    ),
    path("unread/", UnreadSummaryView.as_view(), name="unread-summary"),
    # Admin messaging path
    path("admin/messages/", AdminMessageView.as_view(), name="admin-message"),
    path(
        "admin/conversations/",
        AdminConversationListView.as_view(),
        name="admin-conversation-list",
    ),
    path("admin/users/", AdminUserSearchView.as_view(), name="admin-user-search"),
]
