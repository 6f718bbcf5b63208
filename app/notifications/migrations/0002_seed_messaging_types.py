"""
Data migration seeding the notification types emitted by messaging.

Templates are str.format strings rendered with the data built by
notifications.emitter.NotificationEmitter.
"""

from django.db import migrations

MESSAGING_TYPES = [
    {
        "key": "new_message",
        "display_name": "New Message",
        "category": "social",
        "title_template": "New message from {sender_name}",
        "body_template": "{message_preview}",
    },
    {
        "key": "message_reaction",
        "display_name": "Message Reaction",
        "category": "social",
        "title_template": "{sender_name} reacted to your message",
        "body_template": "{reaction}",
    },
    {
        "key": "admin_message",
        "display_name": "Admin Message",
        "category": "system",
        "title_template": "Admin Message",
        "body_template": "You have received an important message from admin: {preview_excerpt}",
    },
]


def seed_types(apps, schema_editor):
    """Create or refresh the messaging notification types. Safe to re-run."""
    NotificationType = apps.get_model("notifications", "NotificationType")

    for definition in MESSAGING_TYPES:
        values = dict(definition)
        key = values.pop("key")
        NotificationType.objects.update_or_create(key=key, defaults=values)


def remove_types(apps, schema_editor):
    NotificationType = apps.get_model("notifications", "NotificationType")
    NotificationType.objects.filter(
        key__in=[definition["key"] for definition in MESSAGING_TYPES]
    ).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("notifications", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_types, remove_types),
    ]
