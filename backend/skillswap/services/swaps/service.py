"""
Swap request orchestration: load, apply the lifecycle, commit with compare-and-set, dispatch effects.

Commits are optimistic: a transition is written only if the stored version is still the one it was
computed from, so exactly one of several concurrent transitions on a request wins and the others
observe InvalidTransition. Notifications and conversation opening run after the commit; a failing
collaborator is logged and never undoes the transition.
"""
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Protocol

from skillswap.domain.entities import (
    CandidateProfile,
    SkillListing,
    SwapEvent,
    SwapRequest,
    SwapStatus,
)
from skillswap.domain.errors import InvalidInput, InvalidTransition, NotFound, SwapDomainError
from skillswap.services.matching.compatibility import CategoryAffinity
from skillswap.services.swaps import lifecycle
from skillswap.services.swaps.capacity import Capacity, allocated_hours, validate_proposed_hours
from skillswap.services.swaps.lifecycle import (
    DEFAULT_TTL,
    Notify,
    OpenConversation,
    SwapAction,
    TransitionOutcome,
)
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)


class SwapRequestStore(Protocol):
    async def get(self, request_id: str) -> SwapRequest | None: ...

    async def add(self, request: SwapRequest) -> None: ...

    async def compare_and_set(self, request: SwapRequest, expected_version: int) -> bool:
        """Persist `request` only if the stored version equals `expected_version`."""
        ...

    async def list_for_user(self, user_id: str) -> list[SwapRequest]: ...

    async def list_pending(self) -> list[SwapRequest]: ...


class SkillStore(Protocol):
    async def get_skill_listing(self, skill_id: str) -> SkillListing:
        """Raises NotFound when the id is unknown."""
        ...

    async def list_wanted(self, user_id: str) -> list[SkillListing]: ...

    async def get_profile(self, user_id: str) -> CandidateProfile: ...

    async def list_candidate_pool(self, exclude_user_id: str | None = None) -> list[CandidateProfile]: ...


class NotificationSink(Protocol):
    async def notify(self, user_id: str, event: SwapEvent, request: SwapRequest) -> None: ...


class ConversationService(Protocol):
    async def open_conversation(self, user_a_id: str, user_b_id: str) -> str:
        """Idempotent by unordered pair; returns the conversation id."""
        ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SwapRequestService:
    def __init__(
        self,
        store: SwapRequestStore,
        skills: SkillStore,
        notifier: NotificationSink,
        conversations: ConversationService,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
        affinity: CategoryAffinity | None = None,
    ):
        self.store = store
        self.skills = skills
        self.notifier = notifier
        self.conversations = conversations
        self.ttl = ttl
        self.clock = clock
        self.affinity = affinity

    async def create(
        self,
        sender_id: str,
        recipient_id: str,
        offered_skill_id: str,
        requested_skill_id: str,
        message: str | None = None,
        hours_per_week: float | None = None,
    ) -> TransitionOutcome:
        try:
            offered = await self.skills.get_skill_listing(offered_skill_id)
            requested = await self.skills.get_skill_listing(requested_skill_id)
            recipient_wanted = await self.skills.list_wanted(recipient_id)
        except SwapDomainError as e:
            return TransitionOutcome.failure(e)

        outcome = lifecycle.create(
            request_id=str(uuid.uuid4()),
            sender_id=sender_id,
            recipient_id=recipient_id,
            offered_skill=offered,
            requested_skill=requested,
            recipient_wanted=recipient_wanted,
            now=self.clock(),
            message=message,
            hours_per_week=hours_per_week,
            affinity=self.affinity,
        )
        if not outcome.ok:
            return outcome

        sender_requests = await self.store.list_for_user(sender_id)
        if any(
            r.status is SwapStatus.PENDING
            and r.to_user_id == recipient_id
            and r.offered_skill_id == offered.id
            and r.requested_skill_id == requested.id
            for r in sender_requests
        ):
            return TransitionOutcome.failure(InvalidInput("An identical swap request is already pending"))

        if hours_per_week is not None:
            error = await self._capacity_error(outcome.request, offered, requested)
            if error is not None:
                return TransitionOutcome.failure(error)

        try:
            # The store rejects a second identical pending request that raced past the check above
            await self.store.add(outcome.request)
        except InvalidInput as e:
            return TransitionOutcome.failure(e)
        logger.info(
            "Swap request created",
            extra={"swap_request_id": outcome.request.id, "from_user": sender_id[:8], "to_user": recipient_id[:8]},
        )
        return await self._dispatch(outcome)

    async def accept(self, request_id: str, actor_id: str) -> TransitionOutcome:
        return await self._act(request_id, SwapAction.ACCEPT, actor_id)

    async def decline(self, request_id: str, actor_id: str) -> TransitionOutcome:
        return await self._act(request_id, SwapAction.DECLINE, actor_id)

    async def cancel(self, request_id: str, actor_id: str) -> TransitionOutcome:
        return await self._act(request_id, SwapAction.CANCEL, actor_id)

    async def archive(self, request_id: str, actor_id: str) -> TransitionOutcome:
        request = await self.store.get(request_id)
        if request is None:
            return TransitionOutcome.failure(NotFound(f"Swap request {request_id} not found"))
        return await self._commit(request, lifecycle.archive(request, actor_id, self.clock()))

    async def expire(self, request_id: str) -> TransitionOutcome:
        """Expiry check for one request. A no-op for terminal or not-yet-due requests."""
        request = await self.store.get(request_id)
        if request is None:
            return TransitionOutcome.failure(NotFound(f"Swap request {request_id} not found"))
        outcome = await self._commit(request, lifecycle.expire(request, self.clock(), self.ttl))
        if isinstance(outcome.error, InvalidTransition):
            # Lost the race to a participant; the request is terminal either way.
            return TransitionOutcome.unchanged(await self.store.get(request_id) or request)
        return outcome

    async def sweep_expired(self) -> int:
        """Expire every due pending request. Returns how many were expired."""
        expired = 0
        now = self.clock()
        for request in await self.store.list_pending():
            if not lifecycle.is_due(request, now, self.ttl):
                continue
            outcome = await self.expire(request.id)
            if outcome.changed:
                expired += 1
        if expired:
            logger.info("Expired stale swap requests", extra={"expired": expired})
        return expired

    async def _act(self, request_id: str, action: SwapAction, actor_id: str) -> TransitionOutcome:
        request = await self.store.get(request_id)
        if request is None:
            return TransitionOutcome.failure(NotFound(f"Swap request {request_id} not found"))
        outcome = lifecycle.apply(request, action, actor_id, self.clock())
        if outcome.ok and action is SwapAction.ACCEPT and request.hours_per_week is not None:
            # Pending requests do not hold hours, so capacity may have been used up since creation
            try:
                offered = await self.skills.get_skill_listing(request.offered_skill_id)
                requested = await self.skills.get_skill_listing(request.requested_skill_id)
            except SwapDomainError as e:
                return TransitionOutcome.failure(e, request)
            error = await self._capacity_error(request, offered, requested)
            if error is not None:
                return TransitionOutcome.failure(error, request)
        return await self._commit(request, outcome)

    async def _capacity_error(
        self, request: SwapRequest, offered: SkillListing, requested: SkillListing
    ) -> InvalidInput | None:
        """Check the request's weekly hours against both skills' accepted allocations."""
        sender_requests = await self.store.list_for_user(request.from_user_id)
        recipient_requests = await self.store.list_for_user(request.to_user_id)
        check = validate_proposed_hours(
            Capacity(offered.weekly_hours, allocated_hours(sender_requests, offered.id)),
            Capacity(requested.weekly_hours, allocated_hours(recipient_requests, requested.id)),
            request.hours_per_week,
        )
        if check.is_valid:
            return None
        return InvalidInput(" ".join(check.warnings) or "Not enough capacity")

    async def _commit(self, current: SwapRequest, outcome: TransitionOutcome) -> TransitionOutcome:
        if not outcome.ok or not outcome.changed:
            return outcome
        if not await self.store.compare_and_set(outcome.request, expected_version=current.version):
            logger.info(
                "Swap request transition lost a concurrent update",
                extra={"swap_request_id": current.id},
            )
            latest = await self.store.get(current.id)
            return TransitionOutcome.failure(
                InvalidTransition("The request was changed by another action"), latest
            )
        logger.info(
            "Swap request transitioned",
            extra={"swap_request_id": current.id, "status": outcome.request.status.value},
        )
        return await self._dispatch(outcome)

    async def _dispatch(self, outcome: TransitionOutcome) -> TransitionOutcome:
        """Run side effects after commit. Failures are logged, the outcome stands."""
        conversation_id = None
        for effect in outcome.effects:
            try:
                if isinstance(effect, OpenConversation):
                    conversation_id = await self.conversations.open_conversation(
                        effect.user_a_id, effect.user_b_id
                    )
                elif isinstance(effect, Notify):
                    await self.notifier.notify(effect.user_id, effect.event, outcome.request)
            except Exception:
                logger.exception(
                    "Swap request side effect failed",
                    extra={"swap_request_id": outcome.request.id, "effect": type(effect).__name__},
                )
        if conversation_id is not None:
            return replace(outcome, conversation_id=conversation_id)
        return outcome
