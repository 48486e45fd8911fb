"""
In-process implementations of the swap collaborators. Single-writer: every store mutation
happens under one asyncio lock, so compare-and-set is atomic within the event loop.
"""
import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from skillswap.domain.entities import (
    CandidateProfile,
    Notification,
    SkillDirection,
    SkillListing,
    SwapEvent,
    SwapRequest,
    SwapStatus,
)
from skillswap.domain.errors import InvalidInput, NotFound


class InMemorySwapRequestStore:
    def __init__(self) -> None:
        self._requests: dict[str, SwapRequest] = {}
        self._lock = asyncio.Lock()

    async def get(self, request_id: str) -> SwapRequest | None:
        await asyncio.sleep(0)
        return self._requests.get(request_id)

    async def add(self, request: SwapRequest) -> None:
        async with self._lock:
            if request.id in self._requests:
                raise InvalidInput(f"Swap request {request.id} already exists")
            if any(_same_pending_pair(r, request) for r in self._requests.values()):
                raise InvalidInput("An identical swap request is already pending")
            self._requests[request.id] = request

    async def compare_and_set(self, request: SwapRequest, expected_version: int) -> bool:
        async with self._lock:
            current = self._requests.get(request.id)
            if current is None or current.version != expected_version:
                return False
            self._requests[request.id] = request
            return True

    async def list_for_user(self, user_id: str) -> list[SwapRequest]:
        return [r for r in self._requests.values() if r.is_participant(user_id)]

    async def list_pending(self) -> list[SwapRequest]:
        return [r for r in self._requests.values() if r.status is SwapStatus.PENDING]


def _same_pending_pair(a: SwapRequest, b: SwapRequest) -> bool:
    return (
        a.status is SwapStatus.PENDING
        and b.status is SwapStatus.PENDING
        and (a.from_user_id, a.to_user_id, a.offered_skill_id, a.requested_skill_id)
        == (b.from_user_id, b.to_user_id, b.offered_skill_id, b.requested_skill_id)
    )


class InMemorySkillStore:
    def __init__(self, listings: list[SkillListing] | None = None) -> None:
        self._listings: dict[str, SkillListing] = {s.id: s for s in listings or []}

    def put(self, listing: SkillListing) -> None:
        self._listings[listing.id] = listing

    async def get_skill_listing(self, skill_id: str) -> SkillListing:
        try:
            return self._listings[skill_id]
        except KeyError:
            raise NotFound(f"Skill {skill_id} not found") from None

    async def list_wanted(self, user_id: str) -> list[SkillListing]:
        return [
            s for s in self._listings.values()
            if s.owner_id == user_id and s.direction is SkillDirection.WANTED
        ]

    async def get_profile(self, user_id: str) -> CandidateProfile:
        owned = [s for s in self._listings.values() if s.owner_id == user_id]
        return CandidateProfile(
            user_id=user_id,
            offered=tuple(s for s in owned if s.direction is SkillDirection.OFFERED),
            wanted=tuple(s for s in owned if s.direction is SkillDirection.WANTED),
        )

    async def list_candidate_pool(self, exclude_user_id: str | None = None) -> list[CandidateProfile]:
        owners = sorted({s.owner_id for s in self._listings.values()} - {exclude_user_id})
        return [await self.get_profile(owner) for owner in owners]


@dataclass
class InMemoryNotificationSink:
    notifications: list[Notification] = field(default_factory=list)

    async def notify(self, user_id: str, event: SwapEvent, request: SwapRequest) -> None:
        self.notifications.append(
            Notification(
                user_id=user_id,
                event=event,
                swap_request_id=request.id,
                created_at=datetime.now(timezone.utc),
            )
        )


@dataclass
class InMemoryConversationService:
    conversations: dict[frozenset[str], str] = field(default_factory=dict)
    open_calls: int = 0

    async def open_conversation(self, user_a_id: str, user_b_id: str) -> str:
        self.open_calls += 1
        key = frozenset((user_a_id, user_b_id))
        if key not in self.conversations:
            self.conversations[key] = str(uuid.uuid4())
        return self.conversations[key]
