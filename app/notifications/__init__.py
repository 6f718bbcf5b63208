"""
Notifications app for in-app notification delivery.

This app provides:
- NotificationType model for configuring notification templates
- Notification model for storing user notifications
- NotificationEmitter, the sink for messaging events
- Celery task broadcasting notifications over WebSocket (Django Channels)
- REST API for listing notifications and managing preferences

Usage:
    from notifications.services import NotificationService

    result = NotificationService.create_notification(
        recipient=user,
        type_key="new_message",
        data={"sender_name": sender.get_full_name(), "message_preview": "..."},
        actor=sender,
    )

    if result.success:
        notification = result.data
"""
