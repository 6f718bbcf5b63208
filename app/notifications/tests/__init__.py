"""
Tests for notifications app.

This package contains test modules for:
- test_models.py: Notification type seeds, model constraints
- test_preferences.py: Preference resolution and caching
- test_services.py: NotificationService and PreferenceService tests
- test_emitter.py: Messaging event to notification mapping
- test_tasks.py: WebSocket broadcast task tests
- test_consumers.py: WebSocket consumer and JWT middleware tests
- test_views.py: API endpoint tests

Usage:
    pytest notifications/tests/
    pytest notifications/tests/test_services.py
"""
