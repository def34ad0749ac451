"""
Initial schema for chat: conversations, participants, messages, read
receipts, reactions and typing indicators.
"""

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


def timestamp_fields():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


def id_field():
    return (
        "id",
        models.BigAutoField(
            auto_created=True,
            primary_key=True,
            serialize=False,
            verbose_name="ID",
        ),
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Conversation",
            fields=[
                id_field(),
                *timestamp_fields(),
                (
                    "conversation_type",
                    models.CharField(
                        choices=[("direct", "Direct Message"), ("group", "Group")],
                        db_index=True,
                        default="group",
                        help_text="Type of conversation (direct or group)",
                        max_length=10,
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Name for group conversations (empty for direct)",
                        max_length=100,
                    ),
                ),
                (
                    "avatar_url",
                    models.URLField(
                        blank=True,
                        default="",
                        help_text="Avatar image URL for group conversations",
                        max_length=500,
                    ),
                ),
                (
                    "last_message_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="Timestamp of most recent message (for sorting conversation lists)",
                        null=True,
                    ),
                ),
                (
                    "last_message_preview",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Preview of the most recent message",
                        max_length=200,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who created this conversation",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_conversations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_conversation",
                "ordering": ["-last_message_at", "-created_at"],
                "indexes": [
                    models.Index(
                        fields=["-last_message_at"],
                        name="chat_conv_last_msg_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DirectConversationPair",
            fields=[
                (
                    "conversation",
                    models.OneToOneField(
                        help_text="The direct conversation this pair represents",
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="direct_pair",
                        serialize=False,
                        to="chat.conversation",
                    ),
                ),
                (
                    "user_lower",
                    models.ForeignKey(
                        help_text="User with lower ID in this conversation pair",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user_higher",
                    models.ForeignKey(
                        help_text="User with higher ID in this conversation pair",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_direct_conversation_pair",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user_lower", "user_higher"),
                        name="unique_direct_conversation_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("user_lower_id__lt", models.F("user_higher_id"))
                        ),
                        name="direct_pair_lower_less_than_higher",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Participant",
            fields=[
                id_field(),
                *timestamp_fields(),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this participation belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="chat.conversation",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User participating in the conversation",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="conversation_participations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_participant",
                "ordering": ["id"],
                "indexes": [
                    models.Index(
                        fields=["user", "conversation"],
                        name="chat_part_user_conv_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("conversation", "user"),
                        name="unique_conversation_participant",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                id_field(),
                (
                    "is_deleted",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Whether this record has been soft deleted",
                    ),
                ),
                (
                    "deleted_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Timestamp when this record was soft deleted",
                        null=True,
                    ),
                ),
                *timestamp_fields(),
                (
                    "message_type",
                    models.CharField(
                        choices=[
                            ("text", "Text"),
                            ("image", "Image"),
                            ("file", "File"),
                            ("voice", "Voice"),
                            ("system", "System"),
                        ],
                        db_index=True,
                        default="text",
                        help_text="Type of message",
                        max_length=10,
                    ),
                ),
                (
                    "content",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Message text (caption for attachments)",
                    ),
                ),
                (
                    "attachment_ref",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Object store reference of the attachment",
                        max_length=255,
                    ),
                ),
                (
                    "attachment_url",
                    models.URLField(
                        blank=True,
                        default="",
                        help_text="Resolved URL of the attachment",
                        max_length=2048,
                    ),
                ),
                (
                    "attachment_name",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Original file name of the attachment",
                        max_length=255,
                    ),
                ),
                (
                    "attachment_size",
                    models.PositiveBigIntegerField(
                        blank=True,
                        help_text="Attachment size in bytes",
                        null=True,
                    ),
                ),
                (
                    "edited_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the content was last edited",
                        null=True,
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this message belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.conversation",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who sent this message",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sent_messages",
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
                        to="chat.message",
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["conversation", "created_at", "id"],
                        name="chat_msg_conv_cursor_idx",
                    ),
                    models.Index(
                        fields=["conversation", "sender"],
                        name="chat_msg_conv_sender_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MessageReceipt",
            fields=[
                id_field(),
                ("read_at", models.DateTimeField(auto_now_add=True)),
                (
                    "message",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="receipts",
                        to="chat.message",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="message_receipts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_message_receipt",
                "indexes": [
                    models.Index(
                        fields=["user", "message"],
                        name="chat_receipt_user_msg_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("message", "user"),
                        name="unique_message_receipt",
                    ),
                ],
            },
        ),
        migrations.AddField(
            model_name="message",
            name="read_by",
            field=models.ManyToManyField(
                blank=True,
                related_name="read_messages",
                through="chat.MessageReceipt",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
        migrations.CreateModel(
            name="MessageReaction",
            fields=[
                id_field(),
                *timestamp_fields(),
                (
                    "emoji",
                    models.CharField(
                        help_text="Emoji character(s) for the reaction",
                        max_length=16,
                    ),
                ),
                (
                    "message",
                    models.ForeignKey(
                        help_text="Message being reacted to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reactions",
                        to="chat.message",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="User who added the reaction",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="message_reactions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_message_reaction",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["message", "emoji"],
                        name="chat_reaction_msg_emoji_idx",
                    ),
                    models.Index(
                        fields=["user", "-created_at"],
                        name="chat_reaction_user_recent_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("message", "user", "emoji"),
                        name="unique_user_message_emoji_reaction",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="TypingIndicator",
            fields=[
                id_field(),
                *timestamp_fields(),
                ("expires_at", models.DateTimeField(db_index=True)),
                (
                    "conversation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="typing_indicators",
                        to="chat.conversation",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="typing_indicators",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_typing_indicator",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("conversation", "user"),
                        name="unique_typing_indicator",
                    ),
                ],
            },
        ),
    ]
