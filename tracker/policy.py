"""When to look up a part's shipment automatically."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Set

from .carrier import classify
from .part import Part

# Cached tracking younger than this is shown as-is when a part is viewed
STALE_AFTER = timedelta(hours=24)


class ViewSession:
    """
    Parts already checked while viewing.

    Scoped to one part-viewing session: the viewer clears it when it closes
    and when it moves to a different part, so revisiting a part later checks
    it once more.
    """

    def __init__(self):
        self.checked_ids: Set[int] = set()

    def __contains__(self, part_id) -> bool:
        return part_id in self.checked_ids

    def mark(self, part_id) -> None:
        self.checked_ids.add(part_id)

    def clear(self) -> None:
        self.checked_ids.clear()


def is_stale(updated_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Check whether cached tracking is old enough to look up again."""
    if updated_at is None:
        return True
    now = now or datetime.now(timezone.utc)
    return now - updated_at >= STALE_AFTER


def should_auto_refresh(
    part: Part, session: ViewSession, now: Optional[datetime] = None
) -> bool:
    """
    Decide whether viewing a part should trigger a tracking lookup.

    Skips parts without a trackable value, delivered parts, parts already
    checked in this session and parts synced within STALE_AFTER. A True
    answer marks the part as checked before the caller fetches.
    """
    if not part.has_tracking:
        return False
    if not classify(part.tracking).trackable:
        return False
    if part.delivered:
        return False
    if part.id in session:
        return False
    if not is_stale(part.tracking_updated_at, now):
        return False

    session.mark(part.id)
    return True


def should_refresh_after_edit(old_tracking: Optional[str], new_tracking: Optional[str]) -> bool:
    """An edit to a new trackable value is looked up right away."""
    new_tracking = (new_tracking or "").strip()
    if not new_tracking:
        return False
    if new_tracking == (old_tracking or "").strip():
        return False
    return classify(new_tracking).trackable
