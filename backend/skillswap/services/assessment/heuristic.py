"""
Rule-based answer scorer used when no LLM is configured.
Depth from length, specificity from concrete markers (numbers, examples, reasoning, jargon-like tokens).
"""
import re
from collections.abc import Sequence

from skillswap.domain.entities import AssessmentAnswer

WORD_PATTERN = re.compile(r"[A-Za-z0-9_+#.\-/]+")
NUMBER_PATTERN = re.compile(r"\d")
EXAMPLE_MARKERS = ("for example", "e.g.", "such as", "for instance", "i built", "i used", "we used")
REASONING_MARKERS = ("because", "trade-off", "tradeoff", "instead of", "so that", "which means", "therefore")

# (min word count, depth points), checked highest-first
DEPTH_STEPS = ((120, 55), (80, 48), (50, 40), (30, 30), (15, 20), (5, 10))


def _depth_points(word_count: int) -> int:
    for minimum, points in DEPTH_STEPS:
        if word_count >= minimum:
            return points
    return 0


def score_answer(answer: str) -> int:
    """Score one free-text answer 0-100."""
    text = (answer or "").strip()
    if not text:
        return 0
    words = WORD_PATTERN.findall(text)
    lowered = text.lower()

    points = _depth_points(len(words))
    if NUMBER_PATTERN.search(text):
        points += 10
    if any(marker in lowered for marker in EXAMPLE_MARKERS):
        points += 12
    if any(marker in lowered for marker in REASONING_MARKERS):
        points += 12

    # Mixed-case or symbol-bearing tokens (APIs, libraries, acronyms)
    technical = {w for w in words if len(w) > 2 and (any(c.isupper() for c in w[1:]) or any(c in w for c in "_.#+/"))}
    points += min(11, len(technical) * 3)

    if words:
        distinct_ratio = len({w.lower() for w in words}) / len(words)
        if distinct_ratio < 0.4:
            points -= 10
    return max(0, min(100, points))


class HeuristicAnswerScorer:
    def score_answers(self, answers: Sequence[AssessmentAnswer]) -> list[int]:
        return [score_answer(a.answer) for a in answers]
