"""
SQLAlchemy-backed implementations of the swap collaborators (request store, skill store,
notification sink, conversation service), sharing one AsyncSession per unit of work.
"""
import uuid
from datetime import timedelta

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.config import Settings, get_settings
from skillswap.domain.entities import (
    CandidateProfile,
    SkillDirection,
    SkillListing,
    SwapEvent,
    SwapRequest,
    SwapStatus,
)
from skillswap.domain.errors import InvalidInput, NotFound
from skillswap.models.conversation import Conversation
from skillswap.models.notification import NotificationRow
from skillswap.models.skill import SkillListingRow
from skillswap.models.swap import PENDING_PAIR_INDEX, SwapRequestRow
from skillswap.services.matching.compatibility import CategoryAffinity
from skillswap.services.swaps.service import SwapRequestService
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)


def parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        return None


async def commit_or_rollback(db: AsyncSession) -> None:
    """Commit, rolling back on failure so the shared session stays usable."""
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise


class SqlSwapRequestStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, request_id: str) -> SwapRequest | None:
        rid = parse_uuid(request_id)
        if rid is None:
            return None
        result = await self.db.execute(
            select(SwapRequestRow)
            .where(SwapRequestRow.id == rid)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return row.to_domain() if row else None

    async def add(self, request: SwapRequest) -> None:
        self.db.add(SwapRequestRow.from_domain(request))
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if PENDING_PAIR_INDEX in str(e.orig):
                raise InvalidInput("An identical swap request is already pending") from e
            raise
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def compare_and_set(self, request: SwapRequest, expected_version: int) -> bool:
        result = await self.db.execute(
            update(SwapRequestRow)
            .where(
                SwapRequestRow.id == uuid.UUID(request.id),
                SwapRequestRow.version == expected_version,
            )
            .values(
                status=request.status.value,
                responded_at=request.responded_at,
                archived_at=request.archived_at,
                version=request.version,
            )
            .execution_options(synchronize_session=False)
        )
        await commit_or_rollback(self.db)
        return result.rowcount == 1

    async def list_for_user(self, user_id: str) -> list[SwapRequest]:
        uid = parse_uuid(user_id)
        if uid is None:
            return []
        result = await self.db.execute(
            select(SwapRequestRow)
            .where(or_(SwapRequestRow.from_user_id == uid, SwapRequestRow.to_user_id == uid))
            .order_by(SwapRequestRow.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [row.to_domain() for row in result.scalars().all()]

    async def list_pending(self) -> list[SwapRequest]:
        result = await self.db.execute(
            select(SwapRequestRow)
            .where(SwapRequestRow.status == SwapStatus.PENDING.value)
            .order_by(SwapRequestRow.created_at)
        )
        return [row.to_domain() for row in result.scalars().all()]


class SqlSkillStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_skill_listing(self, skill_id: str) -> SkillListing:
        sid = parse_uuid(skill_id)
        row = await self.db.get(SkillListingRow, sid) if sid else None
        if row is None:
            raise NotFound(f"Skill {skill_id} not found")
        return row.to_domain()

    async def list_wanted(self, user_id: str) -> list[SkillListing]:
        uid = parse_uuid(user_id)
        if uid is None:
            return []
        result = await self.db.execute(
            select(SkillListingRow).where(
                SkillListingRow.owner_id == uid,
                SkillListingRow.direction == SkillDirection.WANTED.value,
            )
        )
        return [row.to_domain() for row in result.scalars().all()]

    async def get_profile(self, user_id: str) -> CandidateProfile:
        uid = parse_uuid(user_id)
        if uid is None:
            raise NotFound(f"User {user_id} not found")
        result = await self.db.execute(
            select(SkillListingRow).where(SkillListingRow.owner_id == uid)
        )
        return _profile(user_id, [row.to_domain() for row in result.scalars().all()])

    async def list_candidate_pool(self, exclude_user_id: str | None = None) -> list[CandidateProfile]:
        """Every user with at least one Offered and one Wanted listing."""
        query = select(SkillListingRow).order_by(SkillListingRow.owner_id, SkillListingRow.created_at)
        exclude = parse_uuid(exclude_user_id) if exclude_user_id else None
        if exclude is not None:
            query = query.where(SkillListingRow.owner_id != exclude)
        result = await self.db.execute(query)

        by_owner: dict[str, list[SkillListing]] = {}
        for row in result.scalars().all():
            listing = row.to_domain()
            by_owner.setdefault(listing.owner_id, []).append(listing)
        profiles = [_profile(owner, listings) for owner, listings in by_owner.items()]
        return [p for p in profiles if p.offered and p.wanted]


def _profile(user_id: str, listings: list[SkillListing]) -> CandidateProfile:
    return CandidateProfile(
        user_id=user_id,
        offered=tuple(s for s in listings if s.direction is SkillDirection.OFFERED),
        wanted=tuple(s for s in listings if s.direction is SkillDirection.WANTED),
    )


class SqlNotificationSink:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def notify(self, user_id: str, event: SwapEvent, request: SwapRequest) -> None:
        self.db.add(
            NotificationRow(
                user_id=uuid.UUID(user_id),
                event=event.value,
                swap_request_id=uuid.UUID(request.id),
            )
        )
        await commit_or_rollback(self.db)


class SqlConversationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find(self, user_a: uuid.UUID, user_b: uuid.UUID) -> Conversation | None:
        result = await self.db.execute(
            select(Conversation).where(
                and_(Conversation.user_a_id == user_a, Conversation.user_b_id == user_b)
            )
        )
        return result.scalar_one_or_none()

    async def open_conversation(self, user_a_id: str, user_b_id: str) -> str:
        user_a, user_b = sorted((uuid.UUID(user_a_id), uuid.UUID(user_b_id)), key=str)
        existing = await self._find(user_a, user_b)
        if existing:
            return str(existing.id)
        conversation = Conversation(user_a_id=user_a, user_b_id=user_b)
        self.db.add(conversation)
        try:
            await self.db.commit()
        except IntegrityError:
            # Opened concurrently for the same pair
            await self.db.rollback()
            existing = await self._find(user_a, user_b)
            if existing is None:
                raise
            return str(existing.id)
        logger.info("Conversation opened", extra={"conversation_id": str(conversation.id)})
        return str(conversation.id)


def swap_service_for(db: AsyncSession, settings: Settings | None = None) -> SwapRequestService:
    """Wire a SwapRequestService to the SQL collaborators on one session."""
    settings = settings or get_settings()
    return SwapRequestService(
        store=SqlSwapRequestStore(db),
        skills=SqlSkillStore(db),
        notifier=SqlNotificationSink(db),
        conversations=SqlConversationService(db),
        ttl=timedelta(days=settings.swap_request_ttl_days),
        affinity=CategoryAffinity.from_settings(settings),
    )
