"""
Skill swap matches: rank other users whose offered skills fit what the current user wants,
and who want what the current user offers.
"""
from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.middleware.auth import CurrentUserId
from skillswap.api.middleware.rate_limit import check_api_rate_limit
from skillswap.config import get_settings
from skillswap.database.connection import get_db
from skillswap.database.stores import SqlSkillStore
from skillswap.domain.entities import MatchCandidate, MarketDemand, SkillLevel
from skillswap.services.matching import ranker
from skillswap.services.matching.compatibility import CategoryAffinity
from skillswap.services.matching.fairness import ScoringWeights
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


class MatchSkill(BaseModel):
    id: str
    title: str
    category: str
    level: SkillLevel
    is_validated: bool


class MatchResponse(BaseModel):
    candidate_user_id: str
    offered_skill: MatchSkill
    wanted_skill: MatchSkill
    your_offered_skill: MatchSkill
    their_wanted_skill: MatchSkill
    match_score: float
    fairness_score: float
    is_fair_match: bool
    label: str
    match_logic: str
    time_commitment_hours: float
    market_demand: MarketDemand


class MatchListResponse(BaseModel):
    matches: list[MatchResponse]
    total: int


def _skill(listing) -> MatchSkill:
    return MatchSkill(
        id=listing.id,
        title=listing.title,
        category=listing.category,
        level=listing.level,
        is_validated=listing.is_validated,
    )


def _match_response(match: MatchCandidate) -> MatchResponse:
    return MatchResponse(
        candidate_user_id=match.candidate_user_id,
        offered_skill=_skill(match.offered_skill),
        wanted_skill=_skill(match.wanted_skill_of_requester),
        your_offered_skill=_skill(match.requester_offered_skill),
        their_wanted_skill=_skill(match.candidate_wanted_skill),
        match_score=match.match_score,
        fairness_score=match.fairness_score,
        is_fair_match=match.is_fair_match,
        label=match.label,
        match_logic=match.match_logic,
        time_commitment_hours=match.time_commitment_hours,
        market_demand=match.market_demand,
    )


@router.get("", response_model=MatchListResponse)
async def get_my_matches(
    user_id: CurrentUserId,
    request: Request,
    limit: int | None = Query(None, ge=0, le=100),
    fair_only: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """
    Ranked matches for the current user, fairest first.
    Defaults to the configured top N; pass ?fair_only=true to keep only fair matches.
    """
    check_api_rate_limit(request, user_id)
    settings = get_settings()
    skills = SqlSkillStore(db)

    requester = await skills.get_profile(user_id)
    if not requester.offered or not requester.wanted:
        return MatchListResponse(matches=[], total=0)

    pool = await skills.list_candidate_pool(exclude_user_id=user_id)
    ranked = ranker.rank(
        requester,
        pool,
        weights=ScoringWeights.from_settings(settings),
        affinity=CategoryAffinity.from_settings(settings),
        require_validated=settings.match_require_validated_skills,
    )
    if fair_only:
        ranked = [m for m in ranked if m.is_fair_match]
    ranked = ranked[: limit if limit is not None else settings.match_top_n]

    logger.info(
        "Matches computed",
        extra={"user_id": user_id[:8], "pool_size": len(pool), "returned": len(ranked)},
    )
    out = [_match_response(m) for m in ranked]
    return MatchListResponse(matches=out, total=len(out))
