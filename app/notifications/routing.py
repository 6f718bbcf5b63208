"""
WebSocket URL routing for notifications.

URL Patterns:
    ws/notifications/ - Live notification stream of the authenticated user

Authentication:
    JWT token passed as query parameter: ?token=<jwt_access_token>
"""

from django.urls import path

from notifications import consumers

websocket_urlpatterns = [
    path("ws/notifications/", consumers.NotificationConsumer.as_asgi()),
]
