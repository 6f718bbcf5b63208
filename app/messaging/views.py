"""
ViewSets and views for messaging API.

This module provides REST API endpoints for the messaging system:
- ConversationViewSet: Conversation listing, get-or-create and batch read
- MessageViewSet: Message list, send and delete (nested under conversation)
- MessageActionViewSet: Delivery transitions and reactions on one message
- UnreadSummaryView: Unread totals for the badge
- Admin views: Admin send, admin inbox and user search

URL Structure:
    /api/v1/messaging/conversations/                          GET, POST
    /api/v1/messaging/conversations/{id}/                     GET
    /api/v1/messaging/conversations/{id}/read/                POST
    /api/v1/messaging/conversations/{id}/messages/            GET, POST
    /api/v1/messaging/conversations/{id}/messages/{pk}/       DELETE
    /api/v1/messaging/messages/{pk}/delivered/                POST
    /api/v1/messaging/messages/{pk}/read/                     POST
    /api/v1/messaging/messages/{pk}/failed/                   POST
    /api/v1/messaging/messages/{pk}/reactions/                GET
    /api/v1/messaging/messages/{pk}/reactions/toggle/         POST
    /api/v1/messaging/unread/                                 GET
    /api/v1/messaging/admin/messages/                         POST
    /api/v1/messaging/admin/conversations/                    GET
    /api/v1/messaging/admin/users/                            GET

Design Decisions:
    - Views only parse input and render output; every rule is enforced
      in messaging.services
    - Failed ServiceResults are unwrapped into core.exceptions and rendered
      by core.exception_handler with the mapped HTTP status
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from drf_spectacular.types import OpenApiTypes
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
from rest_framework.views import APIView

from authentication.serializers import UserSerializer
from core.exceptions import NotFoundError
from messaging.models import Conversation
from messaging.pagination import ConversationCursorPagination, MessageCursorPagination
from messaging.permissions import IsAdminRole
from messaging.serializers import (
    AdminConversationSerializer,
    AdminMessageCreateSerializer,
    ConversationCreateSerializer,
    ConversationSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    ReactionSummarySerializer,
    ReactionToggleResultSerializer,
    ReactionToggleSerializer,
    UnreadSummarySerializer,
)
from messaging.services import (
    AdminMessagingService,
    Attachment,
    ConversationService,
    MessageDispatcher,
    MessageService,
    ReactionService,
)

User = get_user_model()


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        description=(
            "Conversations of the current user, most recent activity first. "
            "Optionally filtered by the other participant's name or message text."
        ),
        parameters=[
            OpenApiParameter(
                name="q",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Matches the other participant's name or username, or message text",
            ),
        ],
        responses={200: ConversationSerializer(many=True)},
        tags=["Messaging - Conversations"],
    ),
    create=extend_schema(
        operation_id="get_or_create_conversation",
        summary="Open conversation",
        description=(
            "Return the conversation with another user, creating it if needed. "
            "Responds 201 when created and 200 when it already existed."
        ),
        request=ConversationCreateSerializer,
        responses={
            200: ConversationSerializer,
            201: ConversationSerializer,
            400: OpenApiResponse(description="Invalid participant"),
            404: OpenApiResponse(description="User not found"),
        },
        tags=["Messaging - Conversations"],
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        responses={
            200: ConversationSerializer,
            403: OpenApiResponse(description="Not a participant"),
            404: OpenApiResponse(description="Conversation not found"),
        },
        tags=["Messaging - Conversations"],
    ),
)
class ConversationViewSet(viewsets.GenericViewSet):
    """
    ViewSet for conversation operations.

    list:
        Conversations for the current user with unread counts and last
        message preview. Cursor paginated. ?q= filters by the other
        participant's name or by message text.

    create:
        Get-or-create the conversation with another user.

    retrieve:
        One conversation (participants and admins).

    read:
        Mark every message addressed to the current user as read.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = ConversationCursorPagination
    lookup_value_regex = r"\d+"
    serializer_class = ConversationSerializer

    def get_queryset(self):
        if not self.request.user.is_authenticated:
            return Conversation.objects.none()
        return ConversationService.search_conversations(
            self.request.user, self.request.query_params.get("q", "")
        )

    def list(self, request):
        queryset = self.get_queryset()
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    def create(self, request):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        participant_id = serializer.validated_data["participant_id"]
        other = User.objects.filter(pk=participant_id, is_active=True).first()
        if other is None:
            raise NotFoundError(
                f"User {participant_id} not found",
                error_code="USER_NOT_FOUND",
            )

        conversation, created = ConversationService.get_or_create_conversation(
            request.user, other
        ).unwrap()

        output = self.get_serializer(conversation)
        return Response(
            output.data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def retrieve(self, request, pk=None):
        conversation = ConversationService.get_conversation(int(pk), request.user).unwrap()
        return Response(self.get_serializer(conversation).data)

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        description=(
            "Transition every sent or delivered message addressed to the "
            "current user to read and reset their unread count to zero."
        ),
        request=None,
        responses={
            200: OpenApiResponse(description="Messages marked as read"),
            403: OpenApiResponse(description="Not a participant"),
            404: OpenApiResponse(description="Conversation not found"),
        },
        tags=["Messaging - Conversations"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        marked = MessageService.mark_all_as_read(int(pk), request.user).unwrap()
        return Response({"status": "read", "marked": marked})


@extend_schema_view(
    list=extend_schema(
        operation_id="list_messages",
        summary="List messages",
        description="Messages in a conversation, oldest first. Cursor paginated.",
        responses={200: MessageSerializer(many=True)},
        tags=["Messaging - Messages"],
    ),
    create=extend_schema(
        operation_id="send_message",
        summary="Send message",
        description=(
            "Send a message to the other participant. Refused with "
            "MESSAGING_NOT_ALLOWED if the receiver does not accept messages."
        ),
        request=MessageCreateSerializer,
        responses={
            201: MessageSerializer,
            400: OpenApiResponse(description="Invalid message"),
            403: OpenApiResponse(description="Not a participant or messaging not allowed"),
            404: OpenApiResponse(description="Conversation not found"),
        },
        tags=["Messaging - Messages"],
    ),
    destroy=extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        description="Soft delete one of your own messages.",
        responses={
            204: OpenApiResponse(description="Message deleted"),
            403: OpenApiResponse(description="Not the sender"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Messaging - Messages"],
    ),
)
class MessageViewSet(viewsets.GenericViewSet):
    """
    ViewSet for messages within a conversation.

    list:
        Messages of the conversation (participants and admins).

    create:
        Send a message on the normal path (privacy gate applies).

    destroy:
        Soft delete a message. Only the sender can delete.
    """

    permission_classes = [IsAuthenticated]
    pagination_class = MessageCursorPagination
    serializer_class = MessageSerializer

    def list(self, request, conversation_pk=None):
        queryset = MessageService.list_messages(conversation_pk, request.user).unwrap()
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    def create(self, request, conversation_pk=None):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        attachment = None
        if data.get("file_url"):
            attachment = Attachment(
                url=data["file_url"],
                name=data.get("file_name", ""),
                size=data.get("file_size"),
                mime_type=data.get("file_mime_type", ""),
                thumbnail_url=data.get("thumbnail_url", ""),
            )

        message = MessageDispatcher.send_as_participant(
            sender=request.user,
            conversation_id=conversation_pk,
            content=data.get("content", ""),
            message_type=data["message_type"],
            attachment=attachment,
            reply_to_id=data.get("reply_to_id"),
        ).unwrap()

        return Response(self.get_serializer(message).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, conversation_pk=None, pk=None):
        MessageService.delete_message(
            int(pk), request.user, conversation_id=int(conversation_pk)
        ).unwrap()
        return Response(status=status.HTTP_204_NO_CONTENT)


class MessageActionViewSet(viewsets.GenericViewSet):
    """
    Delivery transitions and reactions on a single message.

    delivered / read:
        Receiver acknowledgements. Repeating one, or asking for an earlier
        state, is a no-op that returns the current message.

    failed:
        Sender marks the message undeliverable.

    reactions / toggle_reaction:
        Reaction summary and toggle.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = MessageSerializer
    lookup_value_regex = r"\d+"

    @extend_schema(
        operation_id="mark_message_delivered",
        summary="Mark message delivered",
        request=None,
        responses={200: MessageSerializer},
        tags=["Messaging - Delivery"],
    )
    @action(detail=True, methods=["post"])
    def delivered(self, request, pk=None):
        message = MessageService.mark_delivered(int(pk), request.user).unwrap()
        return Response(self.get_serializer(message).data)

    @extend_schema(
        operation_id="mark_message_read",
        summary="Mark message read",
        request=None,
        responses={200: MessageSerializer},
        tags=["Messaging - Delivery"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        message = MessageService.mark_read(int(pk), request.user).unwrap()
        return Response(self.get_serializer(message).data)

    @extend_schema(
        operation_id="mark_message_failed",
        summary="Mark message failed",
        request=None,
        responses={200: MessageSerializer},
        tags=["Messaging - Delivery"],
    )
    @action(detail=True, methods=["post"])
    def failed(self, request, pk=None):
        message = MessageService.mark_failed(int(pk), request.user).unwrap()
        return Response(self.get_serializer(message).data)

    @extend_schema(
        operation_id="get_message_reactions",
        summary="Get message reactions",
        description="Reactions grouped by glyph, most used first.",
        responses={200: ReactionSummarySerializer(many=True)},
        tags=["Messaging - Reactions"],
    )
    @action(detail=True, methods=["get"])
    def reactions(self, request, pk=None):
        summary = ReactionService.get_reactions_summary(int(pk), request.user).unwrap()
        return Response(ReactionSummarySerializer(summary, many=True).data)

    @extend_schema(
        operation_id="toggle_message_reaction",
        summary="Toggle reaction",
        description="Add the reaction if absent, remove it if present.",
        request=ReactionToggleSerializer,
        responses={200: ReactionToggleResultSerializer},
        tags=["Messaging - Reactions"],
    )
    @action(detail=True, methods=["post"], url_path="reactions/toggle")
    def toggle_reaction(self, request, pk=None):
        serializer = ReactionToggleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reaction = serializer.validated_data["reaction"]

        outcome = ReactionService.toggle_reaction(int(pk), request.user, reaction).unwrap()
        return Response({"reaction": reaction, "outcome": outcome})


class UnreadSummaryView(APIView):
    """Unread totals for the current user."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_unread_summary",
        summary="Get unread summary",
        responses={200: UnreadSummarySerializer},
        tags=["Messaging - Conversations"],
    )
    def get(self, request):
        summary = MessageService.get_unread_summary(request.user).unwrap()
        return Response(UnreadSummarySerializer(summary).data)


# =============================================================================
# Admin views
# =============================================================================


class AdminMessageView(APIView):
    """Send a message as an admin, bypassing the receiver's privacy settings."""

    permission_classes = [IsAuthenticated, IsAdminRole]

    @extend_schema(
        operation_id="send_admin_message",
        summary="Send admin message",
        request=AdminMessageCreateSerializer,
        responses={
            201: MessageSerializer,
            403: OpenApiResponse(description="Admin role required"),
            404: OpenApiResponse(description="Receiver not found"),
        },
        tags=["Messaging - Admin"],
    )
    def post(self, request):
        serializer = AdminMessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        message = MessageDispatcher.send_as_admin(
            admin=request.user,
            receiver_id=data["receiver_id"],
            content=data["content"],
            conversation_id=data.get("conversation_id"),
        ).unwrap()
        return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


class AdminConversationListView(APIView):
    """Admin inbox: every conversation the admin is part of."""

    permission_classes = [IsAuthenticated, IsAdminRole]

    @extend_schema(
        operation_id="list_admin_conversations",
        summary="List admin conversations",
        responses={200: AdminConversationSerializer(many=True)},
        tags=["Messaging - Admin"],
    )
    def get(self, request):
        rows = AdminMessagingService.get_admin_conversations(request.user).unwrap()
        return Response(AdminConversationSerializer(rows, many=True).data)


class AdminUserSearchView(APIView):
    """List or search non-admin users an admin can message."""

    permission_classes = [IsAuthenticated, IsAdminRole]

    @extend_schema(
        operation_id="search_users_for_admin",
        summary="Search users",
        parameters=[
            OpenApiParameter(
                name="q",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Matches first name, last name, username or email",
            ),
        ],
        responses={200: UserSerializer(many=True)},
        tags=["Messaging - Admin"],
    )
    def get(self, request):
        users = AdminMessagingService.search_users(
            request.user, request.query_params.get("q", "")
        ).unwrap()
        return Response(UserSerializer(users, many=True).data)
