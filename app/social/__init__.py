"""
Social graph app.

This app handles:
- Invitations between users (with auto-accept of crossed invitations)
- Connections (accepted invitations)
- Suggestions of people to invite
"""
