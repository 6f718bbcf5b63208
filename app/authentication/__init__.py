"""
Authentication application.

Identity for the messaging platform: email-based users with a platform
role, display profiles and privacy settings.

Key components:
    - User model: Email login plus role (user, trainer, admin)
    - Profile model: Names and username shown next to messages
    - PrivacySettings model: allow_messages and visibility flags
    - RoleResolver / PrivacyGate: Capabilities consumed by messaging

Usage:
    from authentication.models import User, PrivacySettings
    from authentication.services import RoleResolver, PrivacyGate
"""
