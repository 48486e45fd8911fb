"""
Match ranking: score every mutual (offered, wanted) pairing in a candidate pool and order by fairness.
"""
from collections.abc import Iterable, Sequence

from skillswap.domain.entities import CandidateProfile, MatchCandidate, UserSkillProfile
from skillswap.services.matching import compatibility, fairness
from skillswap.services.matching.compatibility import DEFAULT_AFFINITY, CategoryAffinity
from skillswap.services.matching.fairness import ScoringWeights
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)


def _sort_key(candidate: MatchCandidate) -> tuple:
    return (
        -candidate.fairness_score,
        -candidate.match_score,
        candidate.candidate_user_id,
        candidate.offered_skill.id,
        candidate.requester_offered_skill.id,
    )


def _pairings(
    requester: UserSkillProfile,
    candidate: CandidateProfile,
    affinity: CategoryAffinity,
    require_validated: bool,
) -> Iterable[tuple]:
    """Yield (their_offered, my_wanted, my_offered, their_wanted) where both directions are compatible."""
    for their_offered in candidate.offered:
        if require_validated and not their_offered.is_validated:
            continue
        for my_wanted in requester.wanted:
            for my_offered in requester.offered:
                for their_wanted in candidate.wanted:
                    if compatibility.score(my_offered, their_wanted, affinity).compatible:
                        yield their_offered, my_wanted, my_offered, their_wanted


def rank(
    requester: UserSkillProfile,
    pool: Sequence[CandidateProfile],
    limit: int | None = None,
    weights: ScoringWeights | None = None,
    affinity: CategoryAffinity | None = None,
    require_validated: bool = False,
) -> list[MatchCandidate]:
    """
    Rank candidates for a requester. Keeps pairs whose match score clears the compatibility floor,
    sorted by fairness desc, match desc, candidate id asc. Empty pool or no match returns [].
    """
    if limit is not None and limit < 0:
        limit = 0
    table = affinity or DEFAULT_AFFINITY
    results: list[MatchCandidate] = []

    for candidate in pool:
        if candidate.user_id == requester.user_id:
            continue
        for their_offered, my_wanted, my_offered, their_wanted in _pairings(
            requester, candidate, table, require_validated
        ):
            scored = fairness.evaluate(
                mine=my_wanted,
                theirs=their_offered,
                my_time=my_offered.weekly_hours,
                their_time=their_offered.weekly_hours,
                my_demand=my_offered.market_demand,
                their_demand=their_offered.market_demand,
                weights=weights,
                affinity=table,
            )
            if scored.match_score < table.floor:
                continue
            results.append(
                MatchCandidate(
                    candidate_user_id=candidate.user_id,
                    offered_skill=their_offered,
                    wanted_skill_of_requester=my_wanted,
                    requester_offered_skill=my_offered,
                    candidate_wanted_skill=their_wanted,
                    match_score=scored.match_score,
                    fairness_score=scored.fairness_score,
                    is_fair_match=scored.is_fair_match,
                    match_logic=scored.match_logic,
                    time_commitment_hours=their_offered.weekly_hours,
                    market_demand=their_offered.market_demand,
                )
            )

    results.sort(key=_sort_key)
    logger.debug(
        "Ranked match candidates",
        extra={"pool_size": len(pool), "matches": len(results)},
    )
    if limit is not None:
        return results[:limit]
    return results
