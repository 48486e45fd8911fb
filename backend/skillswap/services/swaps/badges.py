"""Navigation badge counts, derived from requests and notifications on every call."""
from collections.abc import Iterable

from skillswap.domain.entities import Notification, SwapRequest, SwapStatus


def pending_requests_count(requests: Iterable[SwapRequest], user_id: str) -> int:
    return sum(1 for r in requests if r.status is SwapStatus.PENDING and r.to_user_id == user_id)


def unread_notifications_count(notifications: Iterable[Notification], user_id: str) -> int:
    return sum(1 for n in notifications if n.user_id == user_id and not n.is_read)
