"""
Concurrency tests for the conversation registry and unread counters.

These tests need real transactions and PostgreSQL row locks; they are
skipped on SQLite (see the ``postgres`` marker in app/conftest.py).
"""

from concurrent.futures import ThreadPoolExecutor, as_completed

import pytest
from django.db import connection

from authentication.tests.factories import TrainerFactory, UserFactory
from messaging.models import Conversation, DeliveryStatus, Message
from messaging.services import ConversationService, MessageService, ReactionService


def _run_concurrently(func, args_list, max_workers=10):
    def target(*args):
        connection.close()  # Force new connection for thread
        try:
            return func(*args)
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(target, *args) for args in args_list]
        return [future.result() for future in as_completed(futures)]


@pytest.mark.postgres
@pytest.mark.django_db(transaction=True)
class TestConcurrentRegistry:
    def test_concurrent_get_or_create_yields_one_conversation(self):
        user = UserFactory()
        trainer = TrainerFactory()

        def open_conversation(a, b):
            conversation, created = ConversationService.get_or_create_conversation(
                a, b
            ).unwrap()
            return conversation.pk, created

        pairs = [(user, trainer) if i % 2 else (trainer, user) for i in range(10)]
        results = _run_concurrently(open_conversation, pairs)

        assert Conversation.objects.count() == 1
        assert len({pk for pk, _ in results}) == 1
        assert sum(created for _, created in results) == 1


@pytest.mark.postgres
@pytest.mark.django_db(transaction=True)
class TestConcurrentCounters:
    @pytest.fixture
    def pair(self):
        user = UserFactory()
        trainer = TrainerFactory()
        conversation, _ = ConversationService.get_or_create_conversation(
            user, trainer
        ).unwrap()
        return conversation, user, trainer

    def test_concurrent_sends_count_every_message(self, pair):
        conversation, user, trainer = pair

        def send(index):
            return MessageService.send_message(
                conversation.pk, user, content=f"set {index}"
            ).unwrap()

        _run_concurrently(send, [(i,) for i in range(20)])

        conversation.refresh_from_db()
        assert conversation.unread_count_for(trainer.id) == 20
        assert conversation.last_message_id == (
            Message.objects.filter(conversation=conversation)
            .order_by("-created_at", "-id")
            .values_list("pk", flat=True)
            .first()
        )

    def test_concurrent_reads_drain_counter_to_zero(self, pair):
        conversation, user, trainer = pair
        messages = [
            MessageService.send_message(conversation.pk, user, content=f"m{i}").unwrap()
            for i in range(10)
        ]

        def read(message_id):
            return MessageService.mark_read(message_id, trainer).unwrap()

        # Every message read twice to race duplicate acknowledgements
        _run_concurrently(read, [(m.pk,) for m in messages] * 2)

        conversation.refresh_from_db()
        assert conversation.unread_count_for(trainer.id) == 0
        assert Message.objects.filter(delivery_status=DeliveryStatus.READ).count() == 10

    def test_reads_racing_mark_all(self, pair):
        conversation, user, trainer = pair
        messages = [
            MessageService.send_message(conversation.pk, user, content=f"m{i}").unwrap()
            for i in range(6)
        ]

        def work(kind, target_id):
            if kind == "all":
                return MessageService.mark_all_as_read(target_id, trainer).unwrap()
            return MessageService.mark_read(target_id, trainer).unwrap()

        jobs = [("one", m.pk) for m in messages] + [("all", conversation.pk)] * 3
        _run_concurrently(work, jobs)

        conversation.refresh_from_db()
        assert conversation.unread_count_for(trainer.id) == 0
        assert not Message.objects.exclude(delivery_status=DeliveryStatus.READ).exists()

    def test_concurrent_toggles_leave_consistent_state(self, pair):
        conversation, user, trainer = pair
        message = MessageService.send_message(conversation.pk, user, content="PR").unwrap()

        def toggle():
            return ReactionService.toggle_reaction(message.pk, trainer, "fire").unwrap()

        outcomes = _run_concurrently(toggle, [()] * 6)

        assert outcomes.count("added") == 3
        assert outcomes.count("removed") == 3
        assert not message.reactions.exists()
