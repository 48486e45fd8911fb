"""
Weekly hours capacity for skills committed to accepted swaps.
A skill without weekly hours set (None or 0) has unlimited capacity.
"""
import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from skillswap.domain.entities import SwapRequest, SwapStatus


@dataclass(frozen=True)
class Capacity:
    total: float | None
    allocated: float = 0.0

    @property
    def is_unlimited(self) -> bool:
        return not self.total

    @property
    def remaining(self) -> float:
        if self.is_unlimited:
            return math.inf
        return max(0.0, self.total - self.allocated)

    @property
    def is_fully_booked(self) -> bool:
        return self.remaining == 0

    @property
    def is_partially_booked(self) -> bool:
        return self.allocated > 0 and self.remaining > 0


@dataclass
class CapacityCheck:
    is_valid: bool
    max_available: float
    can_proceed: bool
    warnings: list[str] = field(default_factory=list)


def allocated_hours(requests: Iterable[SwapRequest], skill_id: str) -> float:
    """Hours already committed to a skill through accepted swaps."""
    return sum(
        r.hours_per_week or 0.0
        for r in requests
        if r.status is SwapStatus.ACCEPTED and skill_id in (r.offered_skill_id, r.requested_skill_id)
    )


def validate_proposed_hours(sender: Capacity, recipient: Capacity, proposed: float) -> CapacityCheck:
    """Check proposed weekly hours against both parties' remaining capacity."""
    max_available = min(sender.remaining, recipient.remaining)
    warnings: list[str] = []

    if proposed > max_available:
        warnings.append(f"Maximum available is {max_available:g}h/week based on both schedules.")
    if not sender.is_unlimited and sender.remaining > 0 and proposed == sender.remaining:
        warnings.append("This uses all remaining hours of the sender's skill.")
    if not recipient.is_unlimited and recipient.remaining > 0 and proposed == recipient.remaining:
        warnings.append("This uses all remaining hours of the recipient's skill.")
    if max_available == 0:
        warnings.append("No capacity available. One or both parties are fully booked.")

    return CapacityCheck(
        is_valid=0 < proposed <= max_available,
        max_available=max_available,
        can_proceed=max_available > 0,
        warnings=warnings,
    )
