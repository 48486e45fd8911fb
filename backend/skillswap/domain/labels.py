"""Qualitative labels for fairness scores. Checked highest-first."""

FAIRNESS_LABELS: tuple[tuple[float, str], ...] = (
    (95.0, "Perfect Match"),
    (90.0, "Excellent Match"),
    (85.0, "Great Match"),
    (80.0, "Good Match"),
)
FALLBACK_LABEL = "Fair Match"


def fairness_label(score: float) -> str:
    for threshold, label in FAIRNESS_LABELS:
        if score >= threshold:
            return label
    return FALLBACK_LABEL
