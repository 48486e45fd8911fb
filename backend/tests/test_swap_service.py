"""Tests for swap request orchestration with in-memory collaborators."""
import asyncio
from datetime import datetime, timedelta, timezone

from skillswap.domain.entities import SkillDirection, SkillLevel, SkillListing, SwapEvent, SwapStatus
from skillswap.domain.errors import InvalidInput, InvalidTransition, NotFound, Unauthorized
from skillswap.services.swaps.badges import pending_requests_count, unread_notifications_count
from skillswap.services.swaps.capacity import allocated_hours
from skillswap.services.swaps.memory import (
    InMemoryConversationService,
    InMemoryNotificationSink,
    InMemorySkillStore,
    InMemorySwapRequestStore,
)
from skillswap.services.swaps.service import SwapRequestService


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


class FailingNotifier:
    async def notify(self, user_id, event, request):
        raise RuntimeError("sink down")


def _skill(id, owner, title, direction, category="Technology & Programming", hours=0.0):
    return SkillListing(
        id=id,
        owner_id=owner,
        title=title,
        category=category,
        level=SkillLevel.INTERMEDIATE,
        direction=direction,
        weekly_hours=hours,
    )


def _service(notifier=None, alice_hours=0.0, bob_hours=0.0):
    skills = InMemorySkillStore(
        [
            _skill("a-py", "alice", "Python", SkillDirection.OFFERED, hours=alice_hours),
            _skill("a-es", "alice", "Spanish", SkillDirection.WANTED, "Languages"),
            _skill("b-es", "bob", "Spanish", SkillDirection.OFFERED, "Languages", hours=bob_hours),
            _skill("b-py", "bob", "Python", SkillDirection.WANTED),
        ]
    )
    clock = Clock(datetime(2025, 3, 1, tzinfo=timezone.utc))
    service = SwapRequestService(
        store=InMemorySwapRequestStore(),
        skills=skills,
        notifier=notifier or InMemoryNotificationSink(),
        conversations=InMemoryConversationService(),
        ttl=timedelta(days=14),
        clock=clock,
    )
    return service, clock


async def _create(service, **kwargs):
    return await service.create("alice", "bob", "a-py", "b-es", **kwargs)


def test_create_persists_and_notifies():
    async def scenario():
        service, _ = _service()
        outcome = await _create(service, message="Let's swap")
        assert outcome.ok
        stored = await service.store.get(outcome.request.id)
        assert stored.status is SwapStatus.PENDING
        [note] = service.notifier.notifications
        assert note.user_id == "bob"
        assert note.event is SwapEvent.REQUEST_CREATED

    asyncio.run(scenario())


def test_create_unknown_skill_is_not_found():
    async def scenario():
        service, _ = _service()
        outcome = await service.create("alice", "bob", "missing", "b-es")
        assert isinstance(outcome.error, NotFound)
        assert service.notifier.notifications == []

    asyncio.run(scenario())


def test_duplicate_pending_request_rejected():
    async def scenario():
        service, _ = _service()
        assert (await _create(service)).ok
        duplicate = await _create(service)
        assert isinstance(duplicate.error, InvalidInput)
        assert len(await service.store.list_for_user("alice")) == 1

    asyncio.run(scenario())


def test_new_request_allowed_after_previous_one_finished():
    async def scenario():
        service, _ = _service()
        first = await _create(service)
        await service.decline(first.request.id, "bob")
        assert (await _create(service)).ok

    asyncio.run(scenario())


def test_accept_opens_one_conversation():
    async def scenario():
        service, _ = _service()
        created = await _create(service)
        accepted = await service.accept(created.request.id, "bob")
        assert accepted.ok
        assert accepted.request.status is SwapStatus.ACCEPTED
        assert accepted.conversation_id is not None
        assert service.conversations.open_calls == 1

        again = await service.accept(created.request.id, "bob")
        assert isinstance(again.error, InvalidTransition)
        assert service.conversations.open_calls == 1

        # A second accepted swap between the same pair reuses the conversation
        service.skills.put(_skill("a-go", "alice", "Go", SkillDirection.OFFERED))
        second = await service.create("alice", "bob", "a-go", "b-es")
        second_accept = await service.accept(second.request.id, "bob")
        assert second_accept.conversation_id == accepted.conversation_id
        assert len(service.conversations.conversations) == 1

    asyncio.run(scenario())


def test_concurrent_accept_and_decline_exactly_one_wins():
    async def scenario():
        service, _ = _service()
        created = await _create(service)
        accept, decline = await asyncio.gather(
            service.accept(created.request.id, "bob"),
            service.decline(created.request.id, "bob"),
        )
        assert [accept.ok, decline.ok].count(True) == 1
        loser = decline if accept.ok else accept
        assert isinstance(loser.error, InvalidTransition)

        stored = await service.store.get(created.request.id)
        winner = accept if accept.ok else decline
        assert stored.status is winner.request.status
        assert stored.version == 2
        expected_conversations = 1 if accept.ok else 0
        assert service.conversations.open_calls == expected_conversations

    asyncio.run(scenario())


def test_concurrent_accept_and_cancel_exactly_one_wins():
    async def scenario():
        service, _ = _service()
        created = await _create(service)
        results = await asyncio.gather(
            service.accept(created.request.id, "bob"),
            service.cancel(created.request.id, "alice"),
        )
        assert sum(1 for r in results if r.ok) == 1
        assert all(isinstance(r.error, InvalidTransition) for r in results if not r.ok)

    asyncio.run(scenario())


def test_actor_checks():
    async def scenario():
        service, _ = _service()
        created = await _create(service)
        assert isinstance((await service.accept(created.request.id, "alice")).error, Unauthorized)
        assert isinstance((await service.cancel(created.request.id, "bob")).error, Unauthorized)
        assert isinstance((await service.decline(created.request.id, "mallory")).error, Unauthorized)
        assert isinstance((await service.accept("nope", "bob")).error, NotFound)

    asyncio.run(scenario())


def test_expiry_sweep_is_idempotent():
    async def scenario():
        service, clock = _service()
        created = await _create(service)
        clock.now += timedelta(days=14)
        assert await service.sweep_expired() == 0

        clock.now += timedelta(seconds=1)
        assert await service.sweep_expired() == 1
        assert await service.sweep_expired() == 0

        stored = await service.store.get(created.request.id)
        assert stored.status is SwapStatus.EXPIRED
        expired_notes = [n for n in service.notifier.notifications if n.event is SwapEvent.REQUEST_EXPIRED]
        assert sorted(n.user_id for n in expired_notes) == ["alice", "bob"]

        late_accept = await service.accept(created.request.id, "bob")
        assert isinstance(late_accept.error, InvalidTransition)

    asyncio.run(scenario())


def test_expire_does_not_touch_answered_request():
    async def scenario():
        service, clock = _service()
        created = await _create(service)
        await service.accept(created.request.id, "bob")
        clock.now += timedelta(days=30)
        outcome = await service.expire(created.request.id)
        assert outcome.ok
        assert not outcome.changed
        assert outcome.request.status is SwapStatus.ACCEPTED

    asyncio.run(scenario())


def test_archive_after_decline():
    async def scenario():
        service, _ = _service()
        created = await _create(service)
        assert isinstance((await service.archive(created.request.id, "alice")).error, InvalidTransition)
        await service.decline(created.request.id, "bob")
        archived = await service.archive(created.request.id, "alice")
        assert archived.ok
        assert archived.request.archived_at is not None
        assert archived.request.status is SwapStatus.DECLINED

    asyncio.run(scenario())


def test_notification_failure_does_not_undo_transition():
    async def scenario():
        service, _ = _service(notifier=FailingNotifier())
        created = await _create(service)
        assert created.ok
        accepted = await service.accept(created.request.id, "bob")
        assert accepted.ok
        stored = await service.store.get(created.request.id)
        assert stored.status is SwapStatus.ACCEPTED

    asyncio.run(scenario())


def test_capacity_limits_proposed_hours():
    async def scenario():
        service, _ = _service(alice_hours=5, bob_hours=3)
        too_many = await _create(service, hours_per_week=4)
        assert isinstance(too_many.error, InvalidInput)
        assert "3h/week" in too_many.error.message
        assert (await _create(service, hours_per_week=3)).ok

    asyncio.run(scenario())


def test_capacity_counts_accepted_swaps():
    async def scenario():
        service, _ = _service(alice_hours=5, bob_hours=5)
        first = await _create(service, hours_per_week=4)
        await service.accept(first.request.id, "bob")
        second = await _create(service, hours_per_week=2)
        assert isinstance(second.error, InvalidInput)

    asyncio.run(scenario())


def test_accept_rechecks_capacity_against_accepted_swaps():
    async def scenario():
        service, _ = _service(bob_hours=5)
        service.skills.put(_skill("c-py", "carol", "Python", SkillDirection.OFFERED))
        from_alice = await _create(service, hours_per_week=4)
        from_carol = await service.create("carol", "bob", "c-py", "b-es", hours_per_week=4)
        assert from_alice.ok and from_carol.ok

        assert (await service.accept(from_alice.request.id, "bob")).ok
        overbooked = await service.accept(from_carol.request.id, "bob")
        assert isinstance(overbooked.error, InvalidInput)
        assert overbooked.request.status is SwapStatus.PENDING

        stored = await service.store.get(from_carol.request.id)
        assert stored.status is SwapStatus.PENDING
        assert allocated_hours(await service.store.list_for_user("bob"), "b-es") == 4
        # Declining is still possible
        assert (await service.decline(from_carol.request.id, "bob")).ok

    asyncio.run(scenario())


def test_concurrent_identical_creates_store_one_request():
    async def scenario():
        service, _ = _service()
        results = await asyncio.gather(_create(service), _create(service))
        assert sorted(r.ok for r in results) == [False, True]
        [failed] = [r for r in results if not r.ok]
        assert isinstance(failed.error, InvalidInput)
        assert len(await service.store.list_for_user("alice")) == 1

    asyncio.run(scenario())


def test_badge_counts_follow_store():
    async def scenario():
        service, _ = _service()
        created = await _create(service)
        requests = await service.store.list_for_user("bob")
        assert pending_requests_count(requests, "bob") == 1
        assert pending_requests_count(requests, "alice") == 0
        assert unread_notifications_count(service.notifier.notifications, "bob") == 1

        await service.decline(created.request.id, "bob")
        requests = await service.store.list_for_user("bob")
        assert pending_requests_count(requests, "bob") == 0
        assert unread_notifications_count(service.notifier.notifications, "alice") == 1

    asyncio.run(scenario())
