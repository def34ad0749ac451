"""
URL configuration for the social graph API.

All URLs are prefixed with /api/v1/social/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from social.views import ConnectionListView, InvitationViewSet, SuggestionListView

router = DefaultRouter()
router.register(r"invitations", InvitationViewSet, basename="invitation")

app_name = "social"

urlpatterns = [
    path("", include(router.urls)),
    path("connections/", ConnectionListView.as_view(), name="connection-list"),
    path("suggestions/", SuggestionListView.as_view(), name="suggestion-list"),
]
