"""Unit tests for the swap request state machine."""
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from skillswap.domain.entities import SkillDirection, SkillLevel, SkillListing, SwapEvent, SwapStatus
from skillswap.domain.errors import InvalidInput, InvalidTransition, Unauthorized
from skillswap.services.swaps import lifecycle
from skillswap.services.swaps.lifecycle import Notify, OpenConversation, SwapAction

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
TERMINAL = [SwapStatus.ACCEPTED, SwapStatus.DECLINED, SwapStatus.CANCELLED, SwapStatus.EXPIRED]


def _skill(id, owner, title, direction, category="Technology & Programming"):
    return SkillListing(
        id=id,
        owner_id=owner,
        title=title,
        category=category,
        level=SkillLevel.INTERMEDIATE,
        direction=direction,
    )


ALICE_OFFERS = _skill("a-py", "alice", "Python", SkillDirection.OFFERED)
BOB_OFFERS = _skill("b-es", "bob", "Spanish", SkillDirection.OFFERED, "Languages")
BOB_WANTS = _skill("b-py", "bob", "Python", SkillDirection.WANTED)


def _create(**overrides):
    kwargs = dict(
        request_id="r1",
        sender_id="alice",
        recipient_id="bob",
        offered_skill=ALICE_OFFERS,
        requested_skill=BOB_OFFERS,
        recipient_wanted=[BOB_WANTS],
        now=NOW,
    )
    kwargs.update(overrides)
    return lifecycle.create(**kwargs)


def _pending():
    return _create().request


def test_create_builds_pending_request_and_notifies_recipient():
    outcome = _create(message="Hi!", hours_per_week=2)
    assert outcome.ok
    assert outcome.changed
    req = outcome.request
    assert req.status is SwapStatus.PENDING
    assert req.from_user_id == "alice"
    assert req.to_user_id == "bob"
    assert req.version == 1
    assert req.hours_per_week == 2
    assert outcome.effects == (Notify("bob", SwapEvent.REQUEST_CREATED),)


def test_create_rejects_self_request():
    outcome = _create(recipient_id="alice")
    assert isinstance(outcome.error, InvalidInput)
    assert outcome.request is None


def test_create_rejects_skill_not_owned_by_sender():
    outcome = _create(offered_skill=replace(ALICE_OFFERS, owner_id="carol"))
    assert isinstance(outcome.error, Unauthorized)


def test_create_rejects_wanted_listing_as_offer():
    outcome = _create(offered_skill=replace(ALICE_OFFERS, direction=SkillDirection.WANTED))
    assert isinstance(outcome.error, InvalidInput)


def test_create_requires_recipient_to_want_a_compatible_skill():
    outcome = _create(recipient_wanted=[_skill("b-gt", "bob", "Guitar", SkillDirection.WANTED, "Music & Audio")])
    assert isinstance(outcome.error, InvalidInput)
    outcome = _create(recipient_wanted=[])
    assert isinstance(outcome.error, InvalidInput)


def test_create_rejects_requested_skill_of_someone_else():
    outcome = _create(requested_skill=replace(BOB_OFFERS, owner_id="carol"))
    assert isinstance(outcome.error, InvalidInput)


@pytest.mark.parametrize("hours", [0, -1, 169])
def test_create_rejects_out_of_range_hours(hours):
    assert isinstance(_create(hours_per_week=hours).error, InvalidInput)


def test_create_rejects_long_message():
    assert isinstance(_create(message="x" * 1001).error, InvalidInput)


def test_create_reports_missing_category_as_value():
    outcome = _create(recipient_wanted=[_skill("b-x", "bob", "Thing", SkillDirection.WANTED, None)])
    assert isinstance(outcome.error, InvalidInput)


def test_accept_by_recipient_opens_conversation_and_notifies_sender():
    outcome = lifecycle.apply(_pending(), SwapAction.ACCEPT, "bob", NOW)
    assert outcome.ok
    assert outcome.request.status is SwapStatus.ACCEPTED
    assert outcome.request.responded_at == NOW
    assert outcome.request.version == 2
    assert outcome.effects == (
        OpenConversation("alice", "bob"),
        Notify("alice", SwapEvent.REQUEST_ACCEPTED),
    )


def test_decline_by_recipient_notifies_sender():
    outcome = lifecycle.apply(_pending(), SwapAction.DECLINE, "bob", NOW)
    assert outcome.request.status is SwapStatus.DECLINED
    assert outcome.effects == (Notify("alice", SwapEvent.REQUEST_DECLINED),)


def test_cancel_by_sender_notifies_recipient():
    outcome = lifecycle.apply(_pending(), SwapAction.CANCEL, "alice", NOW)
    assert outcome.request.status is SwapStatus.CANCELLED
    assert outcome.effects == (Notify("bob", SwapEvent.REQUEST_CANCELLED),)


@pytest.mark.parametrize(
    "action,actor",
    [
        (SwapAction.ACCEPT, "alice"),
        (SwapAction.DECLINE, "alice"),
        (SwapAction.CANCEL, "bob"),
    ],
)
def test_wrong_role_is_unauthorized(action, actor):
    request = _pending()
    outcome = lifecycle.apply(request, action, actor, NOW)
    assert isinstance(outcome.error, Unauthorized)
    assert outcome.request == request
    assert outcome.effects == ()


@pytest.mark.parametrize("action", list(SwapAction))
def test_non_participant_is_unauthorized(action):
    outcome = lifecycle.apply(_pending(), action, "mallory", NOW)
    assert isinstance(outcome.error, Unauthorized)


@pytest.mark.parametrize("status", TERMINAL)
@pytest.mark.parametrize("action,actor", [(SwapAction.ACCEPT, "bob"), (SwapAction.DECLINE, "bob"), (SwapAction.CANCEL, "alice"), (SwapAction.ACCEPT, "alice")])
def test_terminal_requests_never_transition(status, action, actor):
    request = replace(_pending(), status=status)
    outcome = lifecycle.apply(request, action, actor, NOW)
    assert isinstance(outcome.error, InvalidTransition)
    assert outcome.request.status is status


def test_only_terminal_states_reachable_from_pending():
    assert lifecycle.valid_transitions(SwapStatus.PENDING) == frozenset(TERMINAL)
    for status in TERMINAL:
        assert lifecycle.valid_transitions(status) == frozenset()


def test_expire_after_ttl_notifies_both():
    request = _pending()
    outcome = lifecycle.expire(request, NOW + timedelta(days=15), timedelta(days=14))
    assert outcome.request.status is SwapStatus.EXPIRED
    assert outcome.changed
    assert set(outcome.effects) == {
        Notify("alice", SwapEvent.REQUEST_EXPIRED),
        Notify("bob", SwapEvent.REQUEST_EXPIRED),
    }


def test_expire_is_noop_before_ttl():
    request = _pending()
    exactly_due = lifecycle.expire(request, NOW + timedelta(days=14), timedelta(days=14))
    assert exactly_due.ok
    assert not exactly_due.changed
    assert exactly_due.request == request


@pytest.mark.parametrize("status", TERMINAL)
def test_expire_is_idempotent_on_terminal(status):
    request = replace(_pending(), status=status)
    outcome = lifecycle.expire(request, NOW + timedelta(days=60))
    assert outcome.ok
    assert not outcome.changed
    assert outcome.request.status is status


def test_archive_terminal_request():
    declined = lifecycle.apply(_pending(), SwapAction.DECLINE, "bob", NOW).request
    later = NOW + timedelta(hours=1)
    outcome = lifecycle.archive(declined, "alice", later)
    assert outcome.request.archived_at == later
    assert outcome.request.status is SwapStatus.DECLINED
    again = lifecycle.archive(outcome.request, "bob", later + timedelta(hours=1))
    assert not again.changed
    assert again.request.archived_at == later


def test_archive_rejects_pending_and_outsiders():
    assert isinstance(lifecycle.archive(_pending(), "alice", NOW).error, InvalidTransition)
    declined = replace(_pending(), status=SwapStatus.DECLINED)
    assert isinstance(lifecycle.archive(declined, "mallory", NOW).error, Unauthorized)
