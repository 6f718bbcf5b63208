"""
Messaging application.

Direct conversations between two participants (users, trainers, admins),
the delivery state machine that keeps unread counters consistent, message
reactions and the admin messaging path.

Usage:
    from messaging.services import (
        AdminMessagingService,
        ConversationService,
        MessageDispatcher,
        MessageService,
        ReactionService,
    )
"""
