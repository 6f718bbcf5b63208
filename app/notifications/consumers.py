"""
WebSocket consumer for live notifications.

Consumers:
    NotificationConsumer: Streams a user's notifications as they are created

Authentication:
    Users are authenticated via JWT (see notifications.middleware).
    Unauthenticated sockets are closed with code 4001.

Channel Groups:
    Each user has a group named "notifications_user_{user_id}". The
    broadcast_websocket_notification task sends to it.

Message Types (to client):
    - notification: A new notification payload
"""

from __future__ import annotations

import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.contrib.auth.models import AnonymousUser

from notifications.tasks import user_group_name

logger = logging.getLogger(__name__)


class NotificationConsumer(AsyncJsonWebsocketConsumer):
    """Joins the user's notification group and relays broadcasts."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.group_name: str | None = None

    async def connect(self):
        user = self.scope.get("user")
        if not user or isinstance(user, AnonymousUser):
            logger.warning("Rejected unauthenticated notification socket")
            await self.close(code=4001)
            return

        self.group_name = user_group_name(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.info(f"User {user.id} connected to notification stream")

    async def disconnect(self, close_code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
            logger.info(f"Notification socket left {self.group_name} ({close_code})")

    async def receive_json(self, content, **kwargs):
        # The stream is server-to-client only
        await self.send_json({"type": "error", "error": "This socket is read-only"})

    async def notification_message(self, event):
        """Handler for group_send type "notification.message"."""
        await self.send_json({"type": "notification", "notification": event["notification"]})
