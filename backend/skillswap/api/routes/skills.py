"""
Skill listings: list, create, update, delete the current user's skills and submit an assessment.
"""
import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.middleware.auth import CurrentUserId
from skillswap.api.middleware.rate_limit import check_api_rate_limit
from skillswap.database.connection import get_db
from skillswap.domain.entities import AssessmentAnswer, MarketDemand, SkillDirection, SkillLevel
from skillswap.models.skill import SkillListingRow, assessment_to_json
from skillswap.services.assessment.validator import SkillAssessmentValidator
from skillswap.services.llm.answer_scorer import get_answer_scorer
from skillswap.utils.logger import get_logger
from skillswap.utils.validators import (
    DESCRIPTION_MAX_LENGTH,
    SKILL_TITLE_MAX_LENGTH,
    WEEKLY_HOURS_MAX,
    sanitize_string,
    validate_category,
    validate_skill_title,
)

logger = get_logger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class AssessmentResponse(BaseModel):
    is_valid: bool
    score: int
    claimed_level: SkillLevel
    level_match: str
    feedback: list[str]
    strengths: list[str]
    concerns: list[str]


class SkillResponse(BaseModel):
    id: str
    title: str
    category: str
    level: SkillLevel
    direction: SkillDirection
    description: str
    weekly_hours: float
    market_demand: MarketDemand
    is_validated: bool
    assessment: AssessmentResponse | None = None


class SkillCreateRequest(BaseModel):
    title: str = Field(..., max_length=SKILL_TITLE_MAX_LENGTH)
    category: str
    level: SkillLevel
    direction: SkillDirection
    description: str = Field("", max_length=DESCRIPTION_MAX_LENGTH)
    weekly_hours: float = Field(0, ge=0, le=WEEKLY_HOURS_MAX)
    market_demand: MarketDemand = MarketDemand.MEDIUM


class SkillUpdateRequest(BaseModel):
    title: str | None = Field(None, max_length=SKILL_TITLE_MAX_LENGTH)
    category: str | None = None
    level: SkillLevel | None = None
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    weekly_hours: float | None = Field(None, ge=0, le=WEEKLY_HOURS_MAX)
    market_demand: MarketDemand | None = None


class AnswerIn(BaseModel):
    question: str = Field(..., max_length=2000)
    answer: str = Field(..., max_length=5000)


class AssessmentSubmitRequest(BaseModel):
    answers: list[AnswerIn] = Field(default_factory=list, max_length=20)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _skill_response(row: SkillListingRow) -> SkillResponse:
    listing = row.to_domain()
    assessment = None
    if listing.assessment is not None:
        a = listing.assessment
        assessment = AssessmentResponse(
            is_valid=a.is_valid,
            score=a.score,
            claimed_level=a.claimed_level,
            level_match=a.level_match.value,
            feedback=list(a.feedback),
            strengths=sorted(a.strengths),
            concerns=sorted(a.concerns),
        )
    return SkillResponse(
        id=listing.id,
        title=listing.title,
        category=listing.category,
        level=listing.level,
        direction=listing.direction,
        description=listing.description,
        weekly_hours=listing.weekly_hours,
        market_demand=listing.market_demand,
        is_validated=listing.is_validated,
        assessment=assessment,
    )


def _check_title_and_category(title: str | None, category: str | None) -> None:
    if title is not None:
        ok, msg = validate_skill_title(title)
        if not ok:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg)
    if category is not None:
        ok, msg = validate_category(category)
        if not ok:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg)


async def _own_skill(db: AsyncSession, skill_id: uuid.UUID, user_id: str) -> SkillListingRow:
    row = await db.get(SkillListingRow, skill_id)
    if not row or row.owner_id != uuid.UUID(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Skill not found")
    return row


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=list[SkillResponse])
async def list_my_skills(
    user_id: CurrentUserId,
    request: Request,
    direction: SkillDirection | None = None,
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    query = select(SkillListingRow).where(SkillListingRow.owner_id == uuid.UUID(user_id))
    if direction is not None:
        query = query.where(SkillListingRow.direction == direction.value)
    result = await db.execute(query.order_by(SkillListingRow.created_at))
    return [_skill_response(row) for row in result.scalars().all()]


@router.post("", response_model=SkillResponse, status_code=status.HTTP_201_CREATED)
async def create_skill(
    user_id: CurrentUserId,
    request: Request,
    body: SkillCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Add an Offered or Wanted skill listing for the current user."""
    check_api_rate_limit(request, user_id)
    _check_title_and_category(body.title, body.category)
    row = SkillListingRow(
        owner_id=uuid.UUID(user_id),
        title=body.title.strip(),
        category=body.category.strip(),
        level=body.level.value,
        direction=body.direction.value,
        description=sanitize_string(body.description, DESCRIPTION_MAX_LENGTH),
        weekly_hours=Decimal(str(body.weekly_hours)),
        market_demand=body.market_demand.value,
    )
    db.add(row)
    await db.commit()
    await db.refresh(row)
    logger.info("Skill listing created", extra={"skill_id": str(row.id), "direction": row.direction})
    return _skill_response(row)


@router.put("/{skill_id}", response_model=SkillResponse)
async def update_skill(
    skill_id: uuid.UUID,
    user_id: CurrentUserId,
    request: Request,
    body: SkillUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Update a listing. Changing the title, category or level clears the stored assessment,
    since it was made against the old claim.
    """
    check_api_rate_limit(request, user_id)
    row = await _own_skill(db, skill_id, user_id)
    _check_title_and_category(body.title, body.category)

    claim_changed = False
    if body.title is not None and body.title.strip() != row.title:
        row.title = body.title.strip()
        claim_changed = True
    if body.category is not None and body.category.strip() != row.category:
        row.category = body.category.strip()
        claim_changed = True
    if body.level is not None and body.level.value != row.level:
        row.level = body.level.value
        claim_changed = True
    if body.description is not None:
        row.description = sanitize_string(body.description, DESCRIPTION_MAX_LENGTH)
    if body.weekly_hours is not None:
        row.weekly_hours = Decimal(str(body.weekly_hours))
    if body.market_demand is not None:
        row.market_demand = body.market_demand.value
    if claim_changed:
        row.assessment = None

    await db.commit()
    await db.refresh(row)
    return _skill_response(row)


@router.delete("/{skill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_skill(
    skill_id: uuid.UUID,
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    row = await _own_skill(db, skill_id, user_id)
    await db.delete(row)
    await db.commit()


@router.post("/{skill_id}/assessment", response_model=SkillResponse)
async def submit_assessment(
    skill_id: uuid.UUID,
    user_id: CurrentUserId,
    request: Request,
    body: AssessmentSubmitRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Score the answers against the listing's claimed level and store the result,
    replacing any earlier assessment. Uses the LLM scorer when an OpenAI key is configured,
    the heuristic scorer otherwise. No answers → 422.
    """
    check_api_rate_limit(request, user_id)
    row = await _own_skill(db, skill_id, user_id)

    answers = [AssessmentAnswer(question=a.question, answer=a.answer) for a in body.answers]
    validator = SkillAssessmentValidator(scorer=get_answer_scorer(row.title))
    # Scoring may block on the LLM
    assessment = await run_in_threadpool(validator.validate, SkillLevel(row.level), answers)

    row.assessment = assessment_to_json(assessment)
    await db.commit()
    await db.refresh(row)
    logger.info(
        "Skill assessment stored",
        extra={"skill_id": str(row.id), "score": assessment.score, "is_valid": assessment.is_valid},
    )
    return _skill_response(row)
