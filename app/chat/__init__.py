"""
Chat app for messaging.

This app handles:
- Direct (deduplicated per user pair) and group conversations
- Message sending, history, editing and soft deletion
- Read receipts, unread counts and typing indicators
- Emoji reactions

Related apps:
    - authentication: User model and public profiles
    - core: Service layer, object store for attachments

Usage:
    from chat.services import ConversationService, MessageService

    conversation = ConversationService.create_direct(user, other_user).data

    message = MessageService.send_message(
        conversation=conversation,
        sender=user,
        content="Hello!",
    ).data
"""
