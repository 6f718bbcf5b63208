import django.db.models.deletion
import django.utils.timezone
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("authentication", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Conversation",
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
                    "participant_one_kind",
                    models.CharField(
                        choices=[("user", "User"), ("trainer", "Trainer"), ("admin", "Admin")],
                        default="user",
                        help_text="Kind of the slot one participant at creation time",
                        max_length=10,
                    ),
                ),
                (
                    "participant_two_kind",
                    models.CharField(
                        choices=[("user", "User"), ("trainer", "Trainer"), ("admin", "Admin")],
                        default="user",
                        help_text="Kind of the slot two participant at creation time",
                        max_length=10,
                    ),
                ),
                (
                    "last_message_at",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        help_text="Timestamp of most recent message (for sorting conversation lists)",
                    ),
                ),
                (
                    "unread_count_one",
                    models.PositiveIntegerField(default=0, help_text="Unread messages addressed to participant_one"),
                ),
                (
                    "unread_count_two",
                    models.PositiveIntegerField(default=0, help_text="Unread messages addressed to participant_two"),
                ),
                (
                    "participant_one",
                    models.ForeignKey(
                        help_text="Participant with the lower user id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="conversations_as_one",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "participant_two",
                    models.ForeignKey(
                        help_text="Participant with the higher user id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="conversations_as_two",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "messaging_conversation",
                "ordering": ["-last_message_at", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "is_deleted",
                    models.BooleanField(
                        db_index=True, default=False, help_text="Whether this record has been soft deleted"
                    ),
                ),
                (
                    "deleted_at",
                    models.DateTimeField(
                        blank=True, null=True, help_text="Timestamp when this record was soft deleted"
                    ),
                ),
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
                    "content",
                    models.TextField(
                        blank=True, default="", help_text="Message text (optional caption for attachments)"
                    ),
                ),
                (
                    "message_type",
                    models.CharField(
                        choices=[
                            ("text", "Text"),
                            ("image", "Image"),
                            ("file", "File"),
                            ("system", "System"),
                            ("admin", "Admin"),
                        ],
                        db_index=True,
                        default="text",
                        help_text="Type of message",
                        max_length=10,
                    ),
                ),
                (
                    "is_admin_message",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Whether this message was sent through the admin messaging path",
                    ),
                ),
                (
                    "file_url",
                    models.URLField(
                        blank=True,
                        default="",
                        help_text="Attachment URL (required for image and file messages)",
                        max_length=500,
                    ),
                ),
                (
                    "file_name",
                    models.CharField(
                        blank=True, default="", help_text="Original attachment file name", max_length=255
                    ),
                ),
                (
                    "file_size",
                    models.PositiveBigIntegerField(blank=True, null=True, help_text="Attachment size in bytes"),
                ),
                (
                    "file_mime_type",
                    models.CharField(blank=True, default="", help_text="Attachment MIME type", max_length=100),
                ),
                (
                    "thumbnail_url",
                    models.URLField(
                        blank=True, default="", help_text="Thumbnail URL for image attachments", max_length=500
                    ),
                ),
                (
                    "delivery_status",
                    django_fsm.FSMField(
                        choices=[
                            ("sent", "Sent"),
                            ("delivered", "Delivered"),
                            ("read", "Read"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="sent",
                        help_text="Delivery state of the message (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "delivered_at",
                    models.DateTimeField(
                        blank=True, null=True, help_text="When the receiver's client acknowledged the message"
                    ),
                ),
                (
                    "is_read",
                    models.BooleanField(default=False, help_text="Whether the receiver has read the message"),
                ),
                (
                    "read_at",
                    models.DateTimeField(blank=True, null=True, help_text="When the receiver read the message"),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this message belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="messaging.conversation",
                    ),
                ),
                (
                    "receiver",
                    models.ForeignKey(
                        help_text="User this message is addressed to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="received_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reply_to",
                    models.ForeignKey(
                        blank=True,
                        help_text="Message this one replies to (same conversation)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="replies",
                        to="messaging.message",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        help_text="User who sent this message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "messaging_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["conversation", "created_at", "id"], name="msg_conv_cursor_idx"),
                    models.Index(
                        fields=["conversation", "receiver", "delivery_status"],
                        name="msg_conv_receiver_status_idx",
                    ),
                    models.Index(fields=["sender", "-created_at"], name="msg_sender_idx"),
                ],
            },
        ),
        migrations.AddField(
            model_name="conversation",
            name="last_message",
            field=models.ForeignKey(
                blank=True,
                help_text="Most recent live message in this conversation",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="messaging.message",
            ),
        ),
        migrations.AddIndex(
            model_name="conversation",
            index=models.Index(fields=["participant_one", "-last_message_at"], name="msg_conv_one_activity_idx"),
        ),
        migrations.AddIndex(
            model_name="conversation",
            index=models.Index(fields=["participant_two", "-last_message_at"], name="msg_conv_two_activity_idx"),
        ),
        migrations.AddConstraint(
            model_name="conversation",
            constraint=models.UniqueConstraint(
                fields=("participant_one", "participant_two"), name="unique_conversation_pair"
            ),
        ),
        migrations.AddConstraint(
            model_name="conversation",
            constraint=models.CheckConstraint(
                condition=models.Q(("participant_one_id__lt", models.F("participant_two_id"))),
                name="participant_one_less_than_two",
            ),
        ),
        migrations.CreateModel(
            name="MessageReaction",
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
                    "reaction",
                    models.CharField(
                        help_text="Reaction glyph code (see REACTION_CONFIG.ALLOWED_REACTIONS)", max_length=20
                    ),
                ),
                (
                    "message",
                    models.ForeignKey(
                        help_text="Message this reaction is attached to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reactions",
                        to="messaging.message",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User who reacted",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="message_reactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "messaging_message_reaction",
                "ordering": ["created_at", "id"],
                "indexes": [models.Index(fields=["message", "reaction"], name="msg_reaction_glyph_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("message", "user", "reaction"), name="unique_message_user_reaction"
                    )
                ],
            },
        ),
    ]
