"""
Tests for the chat app.

- test_models.py: constraints and soft delete
- test_services.py: conversation, message, typing and reaction services
- test_views.py: REST endpoints
- test_tasks.py: typing indicator housekeeping
"""
