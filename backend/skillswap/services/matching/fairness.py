"""
Fairness scoring: skill compatibility minus time-commitment and market-demand parity penalties.
Defaults: time penalty up to 30 points, demand 7 points per rank step (capped at 25), fair at 80+.
"""
from dataclasses import dataclass

from skillswap.config import Settings
from skillswap.domain.entities import MarketDemand, SkillListing
from skillswap.domain.errors import InvalidInput
from skillswap.services.matching import compatibility
from skillswap.services.matching.compatibility import CategoryAffinity
from skillswap.domain.labels import fairness_label

__all__ = ["FairnessResult", "ScoringWeights", "evaluate", "fairness_label"]


@dataclass(frozen=True)
class ScoringWeights:
    time_penalty_max: float = 30.0
    demand_penalty_step: float = 7.0
    demand_penalty_cap: float = 25.0
    fair_match_threshold: float = 80.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringWeights":
        return cls(
            time_penalty_max=settings.time_penalty_max,
            demand_penalty_step=settings.demand_penalty_step,
            demand_penalty_cap=settings.demand_penalty_cap,
            fair_match_threshold=settings.fair_match_threshold,
        )


@dataclass(frozen=True)
class FairnessResult:
    match_score: float
    fairness_score: float
    is_fair_match: bool
    match_logic: str
    time_penalty: float
    demand_penalty: float

    @property
    def label(self) -> str:
        return fairness_label(self.fairness_score)


def time_penalty(my_time: float, their_time: float, weights: ScoringWeights) -> float:
    if my_time < 0 or their_time < 0:
        raise InvalidInput("Time commitment cannot be negative")
    longest = max(my_time, their_time)
    if longest == 0:
        return 0.0
    return min(1.0, abs(my_time - their_time) / longest) * weights.time_penalty_max


def demand_penalty(my_demand: MarketDemand, their_demand: MarketDemand, weights: ScoringWeights) -> float:
    try:
        gap = abs(MarketDemand(my_demand).rank - MarketDemand(their_demand).rank)
    except ValueError as e:
        raise InvalidInput(f"Unknown market demand: {e}") from e
    return min(weights.demand_penalty_cap, gap * weights.demand_penalty_step)


def _hours(value: float) -> str:
    return f"{value:g}"


def _match_logic(
    match_score: float,
    my_time: float,
    their_time: float,
    my_demand: MarketDemand,
    their_demand: MarketDemand,
    t_penalty: float,
    d_penalty: float,
) -> str:
    """Explain the score by its dominant penalty. Deterministic for the same inputs."""
    if match_score >= 100:
        skill_part = "Skills align exactly."
    elif match_score >= 70:
        skill_part = "Skills are closely related within the same category."
    else:
        skill_part = "Skills come from related categories."

    if t_penalty == 0 and d_penalty == 0:
        return (
            f"{skill_part} Both skills require ~{_hours(my_time)} hours/week "
            f"with identical market demand ({MarketDemand(my_demand).value})."
        )
    if t_penalty >= d_penalty:
        return (
            f"{skill_part} Time commitment differs "
            f"(~{_hours(their_time)} vs {_hours(my_time)} hours/week), "
            f"costing {t_penalty:.1f} points."
        )
    return (
        f"{skill_part} Market demand differs "
        f"({MarketDemand(their_demand).value} vs {MarketDemand(my_demand).value}), "
        f"costing {d_penalty:.1f} points."
    )


def evaluate(
    mine: SkillListing,
    theirs: SkillListing,
    my_time: float,
    their_time: float,
    my_demand: MarketDemand,
    their_demand: MarketDemand,
    weights: ScoringWeights | None = None,
    affinity: CategoryAffinity | None = None,
) -> FairnessResult:
    """
    Score a swap from the requester's side.
    `mine` is the requester's wanted skill, `theirs` the candidate's offered skill.
    Penalty terms are symmetric in (my_time, their_time) and (my_demand, their_demand).
    """
    weights = weights or ScoringWeights()
    match_score = compatibility.score(theirs, mine, affinity).base_score

    t_penalty = time_penalty(my_time, their_time, weights)
    d_penalty = demand_penalty(my_demand, their_demand, weights)

    fairness = match_score - t_penalty - d_penalty
    fairness = round(min(100.0, max(0.0, fairness)), 2)

    return FairnessResult(
        match_score=match_score,
        fairness_score=fairness,
        is_fair_match=fairness >= weights.fair_match_threshold,
        match_logic=_match_logic(
            match_score, my_time, their_time, my_demand, their_demand, t_penalty, d_penalty
        ),
        time_penalty=round(t_penalty, 2),
        demand_penalty=round(d_penalty, 2),
    )
