"""Unit tests for match ranking."""
from skillswap.domain.entities import (
    LevelMatch,
    MarketDemand,
    SkillAssessment,
    SkillDirection,
    SkillLevel,
    SkillListing,
    UserSkillProfile,
)
from skillswap.services.matching import ranker

TECH = "Technology & Programming"
LANG = "Languages"


def _skill(id, owner, title, category, direction, hours=5.0, demand=MarketDemand.MEDIUM, assessment=None):
    return SkillListing(
        id=id,
        owner_id=owner,
        title=title,
        category=category,
        level=SkillLevel.INTERMEDIATE,
        direction=direction,
        weekly_hours=hours,
        market_demand=demand,
        assessment=assessment,
    )


def _requester():
    return UserSkillProfile(
        user_id="me",
        offered=(_skill("me-spanish", "me", "Spanish", LANG, SkillDirection.OFFERED),),
        wanted=(_skill("me-python", "me", "Python", TECH, SkillDirection.WANTED),),
    )


def _candidate(user_id, offered_title, hours=5.0, demand=MarketDemand.MEDIUM, wants="Spanish", assessment=None):
    return UserSkillProfile(
        user_id=user_id,
        offered=(
            _skill(f"{user_id}-offer", user_id, offered_title, TECH, SkillDirection.OFFERED, hours, demand, assessment),
        ),
        wanted=(_skill(f"{user_id}-want", user_id, wants, LANG, SkillDirection.WANTED),),
    )


def test_empty_pool_returns_empty_list():
    assert ranker.rank(_requester(), []) == []


def test_requester_is_skipped():
    me = _requester()
    clone = UserSkillProfile(user_id="me", offered=me.offered, wanted=me.wanted)
    assert ranker.rank(me, [clone]) == []


def test_sorted_by_fairness_then_match():
    pool = [
        _candidate("c-related", "JavaScript"),  # 80 match, no penalty
        _candidate("c-exact-far", "Python", hours=10),  # 100 match, time penalty 15
        _candidate("c-exact", "Python"),  # 100 match, no penalty
    ]
    ranked = ranker.rank(_requester(), pool)
    assert [m.candidate_user_id for m in ranked] == ["c-exact", "c-exact-far", "c-related"]
    assert [m.fairness_score for m in ranked] == [100, 85, 80]
    for a, b in zip(ranked, ranked[1:]):
        assert a.fairness_score >= b.fairness_score
        if a.fairness_score == b.fairness_score:
            assert a.match_score >= b.match_score


def test_ties_broken_by_match_then_candidate_id():
    pool = [
        _candidate("c-b", "Python"),
        _candidate("c-a", "Python"),
        # 100 - 20 (time) = 80, same fairness as the related-skill candidate
        _candidate("c-z", "Python", hours=15),
        _candidate("c-y", "JavaScript"),
    ]
    ranked = ranker.rank(_requester(), pool)
    assert [m.candidate_user_id for m in ranked] == ["c-a", "c-b", "c-z", "c-y"]


def test_candidate_must_want_what_requester_offers():
    pool = [_candidate("c1", "Python", wants="Mandarin")]
    # Mandarin vs Spanish is same-category (80), still compatible
    assert len(ranker.rank(_requester(), pool)) == 1
    unrelated = UserSkillProfile(
        user_id="c2",
        offered=(_skill("c2-offer", "c2", "Python", TECH, SkillDirection.OFFERED),),
        wanted=(_skill("c2-want", "c2", "Guitar", "Music & Audio", SkillDirection.WANTED),),
    )
    assert ranker.rank(_requester(), [unrelated]) == []


def test_pairs_below_floor_are_dropped():
    pool = [
        UserSkillProfile(
            user_id="c1",
            offered=(_skill("c1-offer", "c1", "Guitar", "Music & Audio", SkillDirection.OFFERED),),
            wanted=(_skill("c1-want", "c1", "Spanish", LANG, SkillDirection.WANTED),),
        )
    ]
    assert ranker.rank(_requester(), pool) == []


def test_limit_truncates():
    pool = [_candidate(f"c{i}", "Python") for i in range(5)]
    assert len(ranker.rank(_requester(), pool, limit=2)) == 2
    assert ranker.rank(_requester(), pool, limit=0) == []


def test_match_candidate_carries_both_sides():
    [match] = ranker.rank(_requester(), [_candidate("c1", "Python", demand=MarketDemand.HIGH)])
    assert match.offered_skill.id == "c1-offer"
    assert match.wanted_skill_of_requester.id == "me-python"
    assert match.requester_offered_skill.id == "me-spanish"
    assert match.candidate_wanted_skill.id == "c1-want"
    assert match.market_demand is MarketDemand.HIGH
    # Medium vs High is two steps
    assert match.fairness_score == 86


def test_require_validated_drops_unassessed_offers():
    valid = SkillAssessment(
        is_valid=True, score=60, claimed_level=SkillLevel.INTERMEDIATE, level_match=LevelMatch.MATCHES
    )
    pool = [_candidate("c1", "Python"), _candidate("c2", "Python", assessment=valid)]
    ranked = ranker.rank(_requester(), pool, require_validated=True)
    assert [m.candidate_user_id for m in ranked] == ["c2"]
    assert len(ranker.rank(_requester(), pool)) == 2
