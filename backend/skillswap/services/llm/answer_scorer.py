"""
LLM-powered per-answer scoring for skill self-assessments.
"""
import json
from collections.abc import Sequence
from typing import Any

from openai import OpenAI

from skillswap.config import get_settings
from skillswap.domain.entities import AssessmentAnswer
from skillswap.services.assessment.heuristic import HeuristicAnswerScorer
from skillswap.services.llm.base import LLMServiceError, chat_completion_json, get_openai_client
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are a strict skill assessor. You receive a skill name and a list of
self-assessment questions with the user's free-text answers.
Score each answer for depth and specificity, 0-100:
- 0-39: vague, generic, or self-reported experience without substance
- 40-64: correct but shallow, few concrete details
- 65-84: specific, shows practical experience and reasoning about trade-offs
- 85-100: expert-level precision, edge cases, architectural judgment

Respond with a single JSON object: {"scores": [int, ...]} with exactly one score per answer,
in the same order. Do not include any other keys."""


class LLMAnswerScorer:
    """Scores answers with an OpenAI JSON completion."""

    def __init__(self, skill_title: str, client: OpenAI | None = None):
        self.skill_title = skill_title
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    def score_answers(self, answers: Sequence[AssessmentAnswer]) -> list[int]:
        payload = {
            "skill": self.skill_title,
            "answers": [{"question": a.question, "answer": a.answer[:4000]} for a in answers],
        }
        data = chat_completion_json(
            self.client,
            system_prompt=SYSTEM_PROMPT,
            user_content=json.dumps(payload),
            max_tokens=300,
        )
        return _normalize_scores(data, len(answers))


def _normalize_scores(data: dict[str, Any], expected: int) -> list[int]:
    raw = data.get("scores")
    if not isinstance(raw, list) or len(raw) != expected:
        raise LLMServiceError("Model returned an unexpected number of scores")
    scores: list[int] = []
    for value in raw:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise LLMServiceError("Model returned a non-numeric score")
        scores.append(max(0, min(100, int(round(value)))))
    return scores


def get_answer_scorer(skill_title: str) -> LLMAnswerScorer | HeuristicAnswerScorer:
    """LLM scorer when an API key is configured, rule-based scorer otherwise."""
    if get_settings().openai_api_key:
        return LLMAnswerScorer(skill_title)
    logger.debug("OPENAI_API_KEY not set; using heuristic answer scorer")
    return HeuristicAnswerScorer()
