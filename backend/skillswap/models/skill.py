"""
Skill listing model. The latest assessment is stored inline as JSONB and replaced on re-submission.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skillswap.database.connection import Base
from skillswap.domain.entities import (
    LevelMatch,
    MarketDemand,
    SkillAssessment,
    SkillDirection,
    SkillLevel,
    SkillListing,
)


def assessment_to_json(assessment: SkillAssessment) -> dict:
    return {
        "is_valid": assessment.is_valid,
        "score": assessment.score,
        "claimed_level": assessment.claimed_level.value,
        "level_match": assessment.level_match.value,
        "feedback": list(assessment.feedback),
        "strengths": sorted(assessment.strengths),
        "concerns": sorted(assessment.concerns),
    }


def assessment_from_json(data: dict | None) -> SkillAssessment | None:
    if not data:
        return None
    return SkillAssessment(
        is_valid=bool(data.get("is_valid")),
        score=int(data.get("score", 0)),
        claimed_level=SkillLevel(data["claimed_level"]),
        level_match=LevelMatch(data["level_match"]),
        feedback=tuple(data.get("feedback") or ()),
        strengths=frozenset(data.get("strengths") or ()),
        concerns=frozenset(data.get("concerns") or ()),
    )


class SkillListingRow(Base):
    __tablename__ = "skill_listings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    level: Mapped[str] = mapped_column(String(20), nullable=False)
    direction: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    weekly_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, nullable=False)
    market_demand: Mapped[str] = mapped_column(
        String(20), default=MarketDemand.MEDIUM.value, nullable=False
    )
    assessment: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    owner = relationship("User", back_populates="skills")

    def to_domain(self) -> SkillListing:
        return SkillListing(
            id=str(self.id),
            owner_id=str(self.owner_id),
            title=self.title,
            category=self.category,
            level=SkillLevel(self.level),
            direction=SkillDirection(self.direction),
            description=self.description or "",
            assessment=assessment_from_json(self.assessment),
            weekly_hours=float(self.weekly_hours or 0),
            market_demand=MarketDemand(self.market_demand),
        )
