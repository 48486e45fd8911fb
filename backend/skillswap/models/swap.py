"""
Swap request model. `version` backs optimistic compare-and-set on every transition.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String, Text, ForeignKey, CheckConstraint, Index, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from skillswap.database.connection import Base
from skillswap.domain.entities import SwapRequest, SwapStatus

PENDING_PAIR_INDEX = "uq_swap_requests_pending_pair"


class SwapRequestRow(Base):
    __tablename__ = "swap_requests"
    __table_args__ = (
        CheckConstraint("from_user_id <> to_user_id", name="ck_swap_requests_distinct_users"),
        # At most one pending request per sender, recipient and skill pair
        Index(
            PENDING_PAIR_INDEX,
            "from_user_id",
            "to_user_id",
            "offered_skill_id",
            "requested_skill_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    from_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    to_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    offered_skill_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("skill_listings.id", ondelete="CASCADE"), nullable=False
    )
    requested_skill_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("skill_listings.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=SwapStatus.PENDING.value, nullable=False, index=True
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    hours_per_week: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def to_domain(self) -> SwapRequest:
        return SwapRequest(
            id=str(self.id),
            from_user_id=str(self.from_user_id),
            to_user_id=str(self.to_user_id),
            offered_skill_id=str(self.offered_skill_id),
            requested_skill_id=str(self.requested_skill_id),
            created_at=self.created_at,
            status=SwapStatus(self.status),
            message=self.message,
            responded_at=self.responded_at,
            hours_per_week=float(self.hours_per_week) if self.hours_per_week is not None else None,
            archived_at=self.archived_at,
            version=self.version,
        )

    @classmethod
    def from_domain(cls, request: SwapRequest) -> "SwapRequestRow":
        return cls(
            id=uuid.UUID(request.id),
            from_user_id=uuid.UUID(request.from_user_id),
            to_user_id=uuid.UUID(request.to_user_id),
            offered_skill_id=uuid.UUID(request.offered_skill_id),
            requested_skill_id=uuid.UUID(request.requested_skill_id),
            status=request.status.value,
            message=request.message,
            hours_per_week=Decimal(str(request.hours_per_week)) if request.hours_per_week is not None else None,
            created_at=request.created_at,
            responded_at=request.responded_at,
            archived_at=request.archived_at,
            version=request.version,
        )
