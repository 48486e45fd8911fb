"""
Skill assessment: classify a claimed level against scored self-assessment answers.
Per-answer scoring and feedback wording are injected collaborators; this module owns the bands.
"""
from collections.abc import Sequence
from statistics import mean
from typing import Protocol

from skillswap.domain.entities import AssessmentAnswer, LevelMatch, SkillAssessment, SkillLevel
from skillswap.domain.errors import InsufficientAnswers, InvalidInput
from skillswap.services.assessment.feedback import FeedbackWriter, TemplateFeedbackWriter
from skillswap.services.assessment.heuristic import HeuristicAnswerScorer
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)

# Lower bound of each band; a band runs up to the next bound (Expert includes 100).
LEVEL_BANDS: tuple[tuple[SkillLevel, int], ...] = (
    (SkillLevel.BEGINNER, 0),
    (SkillLevel.INTERMEDIATE, 40),
    (SkillLevel.ADVANCED, 65),
    (SkillLevel.EXPERT, 85),
)


class AnswerScorer(Protocol):
    def score_answers(self, answers: Sequence[AssessmentAnswer]) -> list[int]:
        """Return one 0-100 depth/specificity score per answer, in order."""
        ...


def band_for(score: int) -> SkillLevel:
    if not 0 <= score <= 100:
        raise InvalidInput(f"Score out of range: {score}")
    level = SkillLevel.BEGINNER
    for candidate, lower in LEVEL_BANDS:
        if score >= lower:
            level = candidate
    return level


def classify(claimed_level: SkillLevel, score: int) -> LevelMatch:
    achieved = band_for(score)
    if achieved.rank > claimed_level.rank:
        return LevelMatch.EXCEEDS
    if achieved.rank == claimed_level.rank:
        return LevelMatch.MATCHES
    return LevelMatch.MAY_NOT_MATCH


class SkillAssessmentValidator:
    """Produces a fresh SkillAssessment per submission; re-submission replaces, never merges."""

    def __init__(
        self,
        scorer: AnswerScorer | None = None,
        feedback_writer: FeedbackWriter | None = None,
    ):
        self.scorer = scorer or HeuristicAnswerScorer()
        self.feedback_writer = feedback_writer or TemplateFeedbackWriter()

    def validate(
        self,
        claimed_level: SkillLevel | str,
        answers: Sequence[AssessmentAnswer],
    ) -> SkillAssessment:
        if not answers:
            raise InsufficientAnswers("At least one answer is required")
        try:
            level = SkillLevel(claimed_level)
        except ValueError as e:
            raise InvalidInput(f"Unknown skill level: {claimed_level!r}") from e

        per_answer = self.scorer.score_answers(answers)
        if len(per_answer) != len(answers):
            raise InvalidInput("Scorer returned a different number of scores than answers")
        per_answer = [min(100, max(0, int(s))) for s in per_answer]

        score = int(round(mean(per_answer)))
        level_match = classify(level, score)
        feedback = self.feedback_writer.write(level, score, band_for(score), level_match, answers, per_answer)

        logger.info(
            "Skill assessment classified",
            extra={"claimed_level": level.value, "score": score, "level_match": level_match.value},
        )
        return SkillAssessment(
            is_valid=level_match in (LevelMatch.MATCHES, LevelMatch.EXCEEDS),
            score=score,
            claimed_level=level,
            level_match=level_match,
            feedback=tuple(feedback.feedback),
            strengths=frozenset(feedback.strengths),
            concerns=frozenset(feedback.concerns),
        )
