"""
Core domain values: skill listings, assessments, match candidates and swap requests.
All values are frozen; state changes go through dataclasses.replace.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from skillswap.domain.labels import fairness_label


class SkillLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)


_LEVEL_ORDER = (
    SkillLevel.BEGINNER,
    SkillLevel.INTERMEDIATE,
    SkillLevel.ADVANCED,
    SkillLevel.EXPERT,
)


class SkillDirection(str, Enum):
    OFFERED = "Offered"
    WANTED = "Wanted"


class MarketDemand(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    MEDIUM_HIGH = "Medium-High"
    HIGH = "High"

    @property
    def rank(self) -> int:
        return _DEMAND_ORDER.index(self)


_DEMAND_ORDER = (
    MarketDemand.LOW,
    MarketDemand.MEDIUM,
    MarketDemand.MEDIUM_HIGH,
    MarketDemand.HIGH,
)


class LevelMatch(str, Enum):
    EXCEEDS = "exceeds"
    MATCHES = "matches"
    MAY_NOT_MATCH = "may-not-match"


class SwapStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self is not SwapStatus.PENDING


class SwapEvent(str, Enum):
    REQUEST_CREATED = "RequestCreated"
    REQUEST_ACCEPTED = "RequestAccepted"
    REQUEST_DECLINED = "RequestDeclined"
    REQUEST_CANCELLED = "RequestCancelled"
    REQUEST_EXPIRED = "RequestExpired"


@dataclass(frozen=True)
class AssessmentAnswer:
    question: str
    answer: str


@dataclass(frozen=True)
class SkillAssessment:
    is_valid: bool
    score: int
    claimed_level: SkillLevel
    level_match: LevelMatch
    feedback: tuple[str, ...] = ()
    strengths: frozenset[str] = frozenset()
    concerns: frozenset[str] = frozenset()


@dataclass(frozen=True)
class SkillListing:
    id: str
    owner_id: str
    title: str
    category: str | None
    level: SkillLevel
    direction: SkillDirection
    description: str = ""
    assessment: SkillAssessment | None = None
    weekly_hours: float = 0.0
    market_demand: MarketDemand = MarketDemand.MEDIUM

    @property
    def is_validated(self) -> bool:
        return self.assessment is not None and self.assessment.is_valid


@dataclass(frozen=True)
class UserSkillProfile:
    """A user's offered and wanted listings. Candidate pools use the same shape."""

    user_id: str
    offered: tuple[SkillListing, ...] = ()
    wanted: tuple[SkillListing, ...] = ()


CandidateProfile = UserSkillProfile


@dataclass(frozen=True)
class MatchCandidate:
    candidate_user_id: str
    offered_skill: SkillListing
    wanted_skill_of_requester: SkillListing
    requester_offered_skill: SkillListing
    candidate_wanted_skill: SkillListing
    match_score: float
    fairness_score: float
    is_fair_match: bool
    match_logic: str
    time_commitment_hours: float
    market_demand: MarketDemand

    @property
    def label(self) -> str:
        return fairness_label(self.fairness_score)


@dataclass(frozen=True)
class SwapRequest:
    id: str
    from_user_id: str
    to_user_id: str
    offered_skill_id: str
    requested_skill_id: str
    created_at: datetime
    status: SwapStatus = SwapStatus.PENDING
    message: str | None = None
    responded_at: datetime | None = None
    hours_per_week: float | None = None
    archived_at: datetime | None = None
    version: int = 1

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.from_user_id, self.to_user_id)


@dataclass(frozen=True)
class Notification:
    user_id: str
    event: SwapEvent
    swap_request_id: str | None = None
    is_read: bool = False
    created_at: datetime | None = None
