"""
Tests for ReactionService: toggle law, validation and summary ordering.
"""

import pytest

from messaging.constants import REACTION_CONFIG
from messaging.models import MessageReaction, ReactionOutcome
from messaging.services import MessageService, ReactionService
from messaging.tests.factories import MessageReactionFactory


@pytest.fixture
def message(conversation, user):
    return MessageService.send_message(conversation.pk, user, content="PR today!").unwrap()


class TestToggleReaction:
    def test_toggle_twice_adds_then_removes(self, message, trainer):
        first = ReactionService.toggle_reaction(message.pk, trainer, "like").unwrap()
        summary_after_add = ReactionService.get_reactions_summary(message.pk, trainer).unwrap()
        second = ReactionService.toggle_reaction(message.pk, trainer, "like").unwrap()
        summary_after_remove = ReactionService.get_reactions_summary(message.pk, trainer).unwrap()

        assert first == ReactionOutcome.ADDED
        assert [(r.reaction, r.count, r.user_ids) for r in summary_after_add] == [
            ("like", 1, [trainer.id])
        ]
        assert second == ReactionOutcome.REMOVED
        assert summary_after_remove == []

    def test_glyph_is_normalized(self, message, trainer):
        ReactionService.toggle_reaction(message.pk, trainer, "  FIRE ").unwrap()

        assert MessageReaction.objects.get(message=message).reaction == "fire"

    def test_user_may_hold_several_glyphs(self, message, trainer):
        ReactionService.toggle_reaction(message.pk, trainer, "like").unwrap()
        ReactionService.toggle_reaction(message.pk, trainer, "fire").unwrap()

        assert MessageReaction.objects.filter(message=message, user=trainer).count() == 2

    def test_sender_may_react_to_own_message(self, message, user):
        assert ReactionService.toggle_reaction(message.pk, user, "clap").unwrap() == "added"

    @pytest.mark.parametrize("glyph", ["", "thumbs", "👍"])
    def test_unknown_glyph_rejected(self, message, trainer, glyph):
        result = ReactionService.toggle_reaction(message.pk, trainer, glyph)

        assert result.error_code == "INVALID_REACTION"
        assert result.exception.details["allowed"] == list(REACTION_CONFIG.ALLOWED_REACTIONS)

    def test_outsider_rejected(self, message, outsider):
        result = ReactionService.toggle_reaction(message.pk, outsider, "like")

        assert result.error_code == "NOT_PARTICIPANT"

    def test_admin_may_react(self, message, admin_user):
        assert ReactionService.toggle_reaction(message.pk, admin_user, "like").success

    def test_deleted_message_not_found(self, message, user, trainer):
        MessageService.delete_message(message.pk, user).unwrap()

        result = ReactionService.toggle_reaction(message.pk, trainer, "like")

        assert result.error_code == "MESSAGE_NOT_FOUND"


class TestReactionsSummary:
    def test_ordered_by_count_then_glyph(self, message, user, trainer, admin_user):
        MessageReactionFactory(message=message, user=user, reaction="wow")
        MessageReactionFactory(message=message, user=trainer, reaction="wow")
        MessageReactionFactory(message=message, user=trainer, reaction="sad")
        MessageReactionFactory(message=message, user=admin_user, reaction="clap")

        summary = ReactionService.get_reactions_summary(message.pk, user).unwrap()

        assert [(row.reaction, row.count) for row in summary] == [
            ("wow", 2),
            ("clap", 1),
            ("sad", 1),
        ]

    def test_reactor_ids_in_reaction_order(self, message, user, trainer):
        MessageReactionFactory(message=message, user=trainer, reaction="love")
        MessageReactionFactory(message=message, user=user, reaction="love")

        summary = ReactionService.get_reactions_summary(message.pk, user).unwrap()

        assert summary[0].user_ids == [trainer.id, user.id]

    def test_outsider_cannot_read_summary(self, message, outsider):
        result = ReactionService.get_reactions_summary(message.pk, outsider)

        assert result.error_code == "NOT_PARTICIPANT"
