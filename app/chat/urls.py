"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                          GET, POST
        /conversations/{id}/                     GET, PATCH
        /conversations/{id}/read/                POST
        /conversations/{id}/leave/               POST
        /conversations/{id}/participants/        POST
        /conversations/{id}/typing/              GET, POST

    Messages:
        /conversations/{id}/messages/            GET, POST
        /conversations/{id}/messages/{pk}/       DELETE
        /conversations/{id}/messages/{pk}/edit/  PATCH

    Reactions:
        /conversations/{id}/messages/reactions/  POST (batch lookup)
        /conversations/{id}/messages/{pk}/reactions/ GET, POST
        /conversations/{id}/messages/{pk}/reactions/{emoji}/ DELETE

    Other:
        /unread-count/                           GET
        /uploads/                                POST
        /uploads/{token}/                        PUT

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import (
    ConversationViewSet,
    MessageViewSet,
    UnreadCountView,
    UploadContentView,
    UploadView,
)

# Main router for conversations
router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    path("unread-count/", UnreadCountView.as_view(), name="unread-count"),
    path("uploads/", UploadView.as_view(), name="upload"),
    path("uploads/<str:token>/", UploadContentView.as_view(), name="upload-content"),
    # Nested routes for messages
    path(
        "conversations/<int:conversation_pk>/messages/",
        MessageViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-message-list",
    ),
    path(
        "conversations/<int:conversation_pk>/messages/reactions/",
        MessageViewSet.as_view({"post": "batch_reactions"}),
        name="conversation-message-batch-reactions",
    ),
    path(
        "conversations/<int:conversation_pk>/messages/<int:pk>/",
        MessageViewSet.as_view({"delete": "destroy"}),
        name="conversation-message-detail",
    ),
    path(
        "conversations/<int:conversation_pk>/messages/<int:pk>/edit/",
        MessageViewSet.as_view({"patch": "edit"}),
        name="conversation-message-edit",
    ),
    # Reaction routes
    path(
        "conversations/<int:conversation_pk>/messages/<int:pk>/reactions/",
        MessageViewSet.as_view({"get": "reactions", "post": "reactions"}),
        name="conversation-message-reactions",
    ),
    path(
        "conversations/<int:conversation_pk>/messages/<int:pk>/reactions/<str:emoji>/",
        MessageViewSet.as_view({"delete": "remove_reaction"}),
        name="conversation-message-reaction-detail",
    ),
]
