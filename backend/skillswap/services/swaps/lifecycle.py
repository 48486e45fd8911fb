"""Swap request state machine.

Lifecycle:
    pending → accepted | declined | cancelled | expired

- accepted / declined: recipient only.
- cancelled: sender only.
- expired: system clock, once the request has been pending longer than the TTL.

Every non-pending state is terminal. A terminal request never reopens; only
``archived_at`` may still change. Pure computation: functions return a
TransitionOutcome carrying the new request value and the side effects the
host must dispatch. Expected failures are returned, not raised.
"""
from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from skillswap.domain.entities import (
    SkillDirection,
    SkillListing,
    SwapEvent,
    SwapRequest,
    SwapStatus,
)
from skillswap.domain.errors import InvalidInput, InvalidTransition, SwapDomainError, Unauthorized
from skillswap.services.matching import compatibility
from skillswap.services.matching.compatibility import CategoryAffinity

DEFAULT_TTL = timedelta(days=14)
MESSAGE_MAX_LENGTH = 1000
MAX_HOURS_PER_WEEK = 168


class SwapAction(str, Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
    CANCEL = "cancel"


class Role(str, Enum):
    SENDER = "sender"
    RECIPIENT = "recipient"


# action -> (target status, role allowed to perform it, event for the counterparty)
_TRANSITIONS: dict[SwapAction, tuple[SwapStatus, Role, SwapEvent]] = {
    SwapAction.ACCEPT: (SwapStatus.ACCEPTED, Role.RECIPIENT, SwapEvent.REQUEST_ACCEPTED),
    SwapAction.DECLINE: (SwapStatus.DECLINED, Role.RECIPIENT, SwapEvent.REQUEST_DECLINED),
    SwapAction.CANCEL: (SwapStatus.CANCELLED, Role.SENDER, SwapEvent.REQUEST_CANCELLED),
}

# Valid transitions: {from_status: {allowed_to_statuses}}
VALID_TRANSITIONS: dict[SwapStatus, frozenset[SwapStatus]] = {
    SwapStatus.PENDING: frozenset(
        {SwapStatus.ACCEPTED, SwapStatus.DECLINED, SwapStatus.CANCELLED, SwapStatus.EXPIRED}
    ),
    SwapStatus.ACCEPTED: frozenset(),
    SwapStatus.DECLINED: frozenset(),
    SwapStatus.CANCELLED: frozenset(),
    SwapStatus.EXPIRED: frozenset(),
}


@dataclass(frozen=True)
class Notify:
    user_id: str
    event: SwapEvent


@dataclass(frozen=True)
class OpenConversation:
    user_a_id: str
    user_b_id: str


Effect = Notify | OpenConversation


@dataclass(frozen=True)
class TransitionOutcome:
    request: SwapRequest | None
    error: SwapDomainError | None = None
    effects: tuple[Effect, ...] = ()
    changed: bool = False
    conversation_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, error: SwapDomainError, request: SwapRequest | None = None) -> "TransitionOutcome":
        return cls(request=request, error=error)

    @classmethod
    def unchanged(cls, request: SwapRequest) -> "TransitionOutcome":
        return cls(request=request)


def valid_transitions(status: SwapStatus) -> frozenset[SwapStatus]:
    return VALID_TRANSITIONS.get(status, frozenset())


def role_of(request: SwapRequest, user_id: str) -> Role | None:
    if user_id == request.from_user_id:
        return Role.SENDER
    if user_id == request.to_user_id:
        return Role.RECIPIENT
    return None


def create(
    request_id: str,
    sender_id: str,
    recipient_id: str,
    offered_skill: SkillListing,
    requested_skill: SkillListing,
    recipient_wanted: Sequence[SkillListing],
    now: datetime,
    message: str | None = None,
    hours_per_week: float | None = None,
    affinity: CategoryAffinity | None = None,
) -> TransitionOutcome:
    """Validate and build a new pending request. Notifies the recipient."""
    if sender_id == recipient_id:
        return TransitionOutcome.failure(InvalidInput("Cannot send a swap request to yourself"))
    if offered_skill.owner_id != sender_id:
        return TransitionOutcome.failure(Unauthorized("Offered skill does not belong to the sender"))
    if offered_skill.direction is not SkillDirection.OFFERED:
        return TransitionOutcome.failure(InvalidInput("Offered skill must be an Offered listing"))
    if requested_skill.owner_id != recipient_id or requested_skill.direction is not SkillDirection.OFFERED:
        return TransitionOutcome.failure(
            InvalidInput("Requested skill must be an Offered listing of the recipient")
        )
    if message is not None and len(message) > MESSAGE_MAX_LENGTH:
        return TransitionOutcome.failure(InvalidInput(f"Message exceeds {MESSAGE_MAX_LENGTH} characters"))
    if hours_per_week is not None and not 0 < hours_per_week <= MAX_HOURS_PER_WEEK:
        return TransitionOutcome.failure(InvalidInput("Hours per week must be between 0 and 168"))

    try:
        wants_it = any(
            compatibility.score(offered_skill, wanted, affinity).compatible
            for wanted in recipient_wanted
            if wanted.owner_id == recipient_id and wanted.direction is SkillDirection.WANTED
        )
    except InvalidInput as e:
        return TransitionOutcome.failure(e)
    if not wants_it:
        return TransitionOutcome.failure(
            InvalidInput("Recipient does not want a skill compatible with the offered skill")
        )

    request = SwapRequest(
        id=request_id,
        from_user_id=sender_id,
        to_user_id=recipient_id,
        offered_skill_id=offered_skill.id,
        requested_skill_id=requested_skill.id,
        created_at=now,
        message=message or None,
        hours_per_week=hours_per_week,
    )
    return TransitionOutcome(
        request=request,
        effects=(Notify(recipient_id, SwapEvent.REQUEST_CREATED),),
        changed=True,
    )


def apply(
    request: SwapRequest,
    action: SwapAction,
    actor_id: str,
    now: datetime,
) -> TransitionOutcome:
    """Apply a participant action (accept, decline, cancel) to a pending request."""
    target, allowed_role, event = _TRANSITIONS[action]
    role = role_of(request, actor_id)
    if role is None:
        return TransitionOutcome.failure(Unauthorized("Only participants may act on a swap request"), request)
    if target not in valid_transitions(request.status):
        return TransitionOutcome.failure(
            InvalidTransition(f"Cannot {action.value} a request that is {request.status.value}"), request
        )
    if role is not allowed_role:
        return TransitionOutcome.failure(
            Unauthorized(f"Only the {allowed_role.value} may {action.value} this request"), request
        )

    updated = replace(request, status=target, responded_at=now, version=request.version + 1)
    counterparty = request.from_user_id if role is Role.RECIPIENT else request.to_user_id
    effects: list[Effect] = []
    if target is SwapStatus.ACCEPTED:
        effects.append(OpenConversation(request.from_user_id, request.to_user_id))
    effects.append(Notify(counterparty, event))
    return TransitionOutcome(request=updated, effects=tuple(effects), changed=True)


def is_due(request: SwapRequest, now: datetime, ttl: timedelta = DEFAULT_TTL) -> bool:
    return request.status is SwapStatus.PENDING and now - request.created_at > ttl


def expire(request: SwapRequest, now: datetime, ttl: timedelta = DEFAULT_TTL) -> TransitionOutcome:
    """System-driven expiry. Idempotent: terminal or not-yet-due requests are returned unchanged."""
    if not is_due(request, now, ttl):
        return TransitionOutcome.unchanged(request)
    updated = replace(request, status=SwapStatus.EXPIRED, responded_at=now, version=request.version + 1)
    return TransitionOutcome(
        request=updated,
        effects=(
            Notify(request.from_user_id, SwapEvent.REQUEST_EXPIRED),
            Notify(request.to_user_id, SwapEvent.REQUEST_EXPIRED),
        ),
        changed=True,
    )


def archive(request: SwapRequest, actor_id: str, now: datetime) -> TransitionOutcome:
    """Stamp archival metadata on a terminal request. Status never changes."""
    if role_of(request, actor_id) is None:
        return TransitionOutcome.failure(Unauthorized("Only participants may archive a swap request"), request)
    if not request.status.is_terminal:
        return TransitionOutcome.failure(InvalidTransition("Only finished requests can be archived"), request)
    if request.archived_at is not None:
        return TransitionOutcome.unchanged(request)
    updated = replace(request, archived_at=now, version=request.version + 1)
    return TransitionOutcome(request=updated, changed=True)
