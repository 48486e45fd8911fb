"""
Feedback text for skill assessments, keyed off which level thresholds the score crossed.
"""
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from skillswap.domain.entities import AssessmentAnswer, LevelMatch, SkillLevel

STRONG_ANSWER = 70
WEAK_ANSWER = 35


@dataclass
class AssessmentFeedback:
    feedback: list[str] = field(default_factory=list)
    strengths: set[str] = field(default_factory=set)
    concerns: set[str] = field(default_factory=set)


class FeedbackWriter(Protocol):
    def write(
        self,
        claimed_level: SkillLevel,
        score: int,
        achieved_level: SkillLevel,
        level_match: LevelMatch,
        answers: Sequence[AssessmentAnswer],
        answer_scores: Sequence[int],
    ) -> AssessmentFeedback: ...


class TemplateFeedbackWriter:
    """Deterministic template feedback."""

    def write(
        self,
        claimed_level: SkillLevel,
        score: int,
        achieved_level: SkillLevel,
        level_match: LevelMatch,
        answers: Sequence[AssessmentAnswer],
        answer_scores: Sequence[int],
    ) -> AssessmentFeedback:
        out = AssessmentFeedback()
        out.feedback.append(
            f"Your answers scored {score}/100, which corresponds to the {achieved_level.value} band."
        )
        if level_match is LevelMatch.EXCEEDS:
            out.feedback.append(
                f"Your responses suggest a level above the claimed {claimed_level.value}; "
                f"consider listing this skill as {achieved_level.value}."
            )
        elif level_match is LevelMatch.MATCHES:
            out.feedback.append(f"Your responses are consistent with the claimed {claimed_level.value} level.")
        else:
            out.feedback.append(
                f"Your responses may not support the claimed {claimed_level.value} level; "
                "add concrete examples of projects and decisions to strengthen the listing."
            )

        for answer, answer_score in zip(answers, answer_scores):
            if answer_score >= STRONG_ANSWER:
                out.strengths.add(f"Detailed answer: {answer.question}")
            elif answer_score < WEAK_ANSWER:
                out.concerns.add(f"Brief or non-specific answer: {answer.question}")

        if level_match is LevelMatch.MAY_NOT_MATCH:
            out.concerns.add(f"Score below the {claimed_level.value} band")
        return out
