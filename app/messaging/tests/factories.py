"""
Factory Boy factories for messaging models.

Provides test data generation for:
- Conversation: Canonically ordered pair with participant kinds
- Message: Text messages addressed to the other participant
- MessageReaction: A glyph on a message

Usage:
    from messaging.tests.factories import ConversationFactory, MessageFactory

    conversation = ConversationFactory(participant_one=alice, participant_two=bob)
    message = MessageFactory(conversation=conversation, sender=alice)

Note:
    Factories write rows directly and do not touch unread counters. Tests
    that care about counters go through MessageService.
"""

import factory

from authentication.tests.factories import UserFactory
from messaging.models import (
    Conversation,
    DeliveryStatus,
    Message,
    MessageReaction,
    MessageType,
)


class ConversationFactory(factory.django.DjangoModelFactory):
    """
    Factory for Conversation.

    The two participants are swapped into canonical order (lower id in
    slot one), together with their kinds.

    Examples:
        conversation = ConversationFactory()
        conversation = ConversationFactory(participant_one=bob, participant_two=alice)
    """

    class Meta:
        model = Conversation

    participant_one = factory.SubFactory(UserFactory)
    participant_two = factory.SubFactory(UserFactory)
    participant_one_kind = factory.LazyAttribute(lambda o: o.participant_one.role)
    participant_two_kind = factory.LazyAttribute(lambda o: o.participant_two.role)

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        one, two = kwargs["participant_one"], kwargs["participant_two"]
        if one.id > two.id:
            kwargs["participant_one"], kwargs["participant_two"] = two, one
            kwargs["participant_one_kind"], kwargs["participant_two_kind"] = (
                kwargs["participant_two_kind"],
                kwargs["participant_one_kind"],
            )
        return super()._create(model_class, *args, **kwargs)


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message.

    Defaults to a text message from participant one to participant two.

    Examples:
        message = MessageFactory(conversation=conversation, sender=bob)
        read = MessageFactory(conversation=conversation, delivery_status="read")
    """

    class Meta:
        model = Message

    conversation = factory.SubFactory(ConversationFactory)
    sender = factory.LazyAttribute(lambda o: o.conversation.participant_one)
    receiver = factory.LazyAttribute(
        lambda o: o.conversation.participant_two
        if o.sender.id == o.conversation.participant_one_id
        else o.conversation.participant_one
    )
    content = factory.Faker("sentence")
    message_type = MessageType.TEXT
    delivery_status = DeliveryStatus.SENT


class MessageReactionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = MessageReaction

    message = factory.SubFactory(MessageFactory)
    user = factory.LazyAttribute(lambda o: o.message.receiver)
    reaction = "like"
