import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="NotificationType",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "key",
                    models.CharField(
                        db_index=True,
                        help_text="Unique programmatic identifier (e.g., 'new_message')",
                        max_length=100,
                        unique=True,
                    ),
                ),
                ("display_name", models.CharField(help_text="Human-readable name for display", max_length=200)),
                (
                    "title_template",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Python format string template for title (e.g., 'New message from {sender_name}')",
                        max_length=500,
                    ),
                ),
                (
                    "body_template",
                    models.TextField(blank=True, default="", help_text="Python format string template for body"),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        db_index=True, default=True, help_text="Whether this notification type is currently enabled"
                    ),
                ),
                ("supports_websocket", models.BooleanField(default=True, help_text="Can be broadcast via WebSocket")),
                (
                    "category",
                    models.CharField(
                        choices=[("transactional", "Transactional"), ("social", "Social"), ("system", "System")],
                        db_index=True,
                        default="transactional",
                        help_text="Category for preference grouping",
                        max_length=20,
                    ),
                ),
            ],
            options={
                "verbose_name": "notification type",
                "verbose_name_plural": "notification types",
                "db_table": "notifications_notification_type",
                "ordering": ["key"],
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                ("title", models.CharField(help_text="Fully rendered notification title", max_length=500)),
                ("body", models.TextField(blank=True, default="", help_text="Fully rendered notification body")),
                (
                    "data",
                    models.JSONField(
                        blank=True, default=dict, help_text="Arbitrary context data (deep links, metadata)"
                    ),
                ),
                (
                    "is_read",
                    models.BooleanField(
                        db_index=True, default=False, help_text="Whether recipient has read this notification"
                    ),
                ),
                (
                    "idempotency_key",
                    models.CharField(
                        blank=True,
                        help_text="Idempotency key to prevent duplicate notifications",
                        max_length=255,
                        null=True,
                    ),
                ),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who triggered this notification (optional)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="triggered_notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "notification_type",
                    models.ForeignKey(
                        help_text="Type of this notification",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="notifications",
                        to="notifications.notificationtype",
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        help_text="User receiving this notification",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "notifications_notification",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["recipient", "is_read", "-created_at"], name="notif_recipient_unread_idx"),
                    models.Index(fields=["recipient", "notification_type"], name="notif_recipient_type_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("idempotency_key__isnull", False)),
                        fields=("idempotency_key",),
                        name="notif_idempotency_key_unique",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="UserGlobalPreference",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="notification_global_preference",
                        serialize=False,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "all_disabled",
                    models.BooleanField(default=False, help_text="Master switch to disable all notifications"),
                ),
            ],
            options={
                "verbose_name": "user global preference",
                "verbose_name_plural": "user global preferences",
                "db_table": "notifications_user_global_preference",
            },
        ),
        migrations.CreateModel(
            name="UserNotificationPreference",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                (
                    "disabled",
                    models.BooleanField(default=False, help_text="Disable all channels for this notification type"),
                ),
                (
                    "websocket_enabled",
                    models.BooleanField(
                        blank=True,
                        default=None,
                        help_text="Override websocket preference (null = use type default)",
                        null=True,
                    ),
                ),
                (
                    "notification_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="user_preferences",
                        to="notifications.notificationtype",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notification_type_preferences",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "user notification preference",
                "verbose_name_plural": "user notification preferences",
                "db_table": "notifications_user_notification_preference",
                "constraints": [
                    models.UniqueConstraint(fields=("user", "notification_type"), name="unique_user_notif_type_pref"),
                ],
            },
        ),
        migrations.CreateModel(
            name="NotificationDelivery",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, help_text="Timestamp when this record was created"
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified"),
                ),
                (
                    "channel",
                    models.CharField(
                        choices=[("websocket", "WebSocket")], help_text="Delivery channel", max_length=20
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("delivered", "Delivered"),
                            ("failed", "Failed"),
                            ("skipped", "Skipped"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current delivery status",
                        max_length=20,
                    ),
                ),
                (
                    "delivered_at",
                    models.DateTimeField(
                        blank=True, help_text="When the payload reached the channel layer", null=True
                    ),
                ),
                ("failed_at", models.DateTimeField(blank=True, help_text="When delivery failed", null=True)),
                ("failure_reason", models.TextField(blank=True, default="", help_text="Detailed failure message")),
                ("attempt_count", models.PositiveSmallIntegerField(default=0, help_text="Number of delivery attempts")),
                (
                    "skipped_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("global_disabled", "Global notifications disabled"),
                            ("type_disabled", "Type disabled"),
                            ("channel_disabled", "Channel disabled by user"),
                        ],
                        default="",
                        help_text="Reason if status=SKIPPED",
                        max_length=30,
                    ),
                ),
                (
                    "notification",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="deliveries",
                        to="notifications.notification",
                    ),
                ),
            ],
            options={
                "verbose_name": "notification delivery",
                "verbose_name_plural": "notification deliveries",
                "db_table": "notifications_notification_delivery",
                "indexes": [
                    models.Index(fields=["status", "channel", "-created_at"], name="notif_delivery_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("notification", "channel"), name="unique_notification_channel"),
                ],
            },
        ),
    ]
