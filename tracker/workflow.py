"""Status changes and tracking edits for a stored part."""

from dataclasses import dataclass
from typing import Callable, Optional

from .loader import PartStore
from .part import Part
from .policy import should_refresh_after_edit
from .status import Status

# Asks the user for a tracking number; None (or blank) means skip
Capture = Callable[[Part], Optional[str]]


@dataclass
class PartChange:
    """A saved change, and whether the caller should look up tracking now."""

    part: Part
    refresh: bool = False
    captured: bool = False


def _reset_tracking(part: Part) -> None:
    part.tracking_status = None
    part.tracking_substatus = None
    part.tracking_location = None
    part.tracking_eta = None
    part.tracking_checkpoints = []
    part.tracking_updated_at = None


def edit_tracking(store: PartStore, part_id: int, tracking: Optional[str]) -> PartChange:
    """
    Save a new tracking value for a part.

    Cached carrier data belongs to the old value, so it is dropped when the
    value changes. refresh is set when the new value can be looked up.
    """
    part = store.get(part_id)
    old_tracking = part.tracking
    new_tracking = (tracking or "").strip()
    if new_tracking == old_tracking.strip():
        return PartChange(part)

    part.tracking = new_tracking
    _reset_tracking(part)
    store.update(part)
    return PartChange(part, refresh=should_refresh_after_edit(old_tracking, new_tracking))


def change_status(
    store: PartStore,
    part_id: int,
    status: Status,
    capture: Optional[Capture] = None,
) -> PartChange:
    """
    Move a part to a new status.

    Marking a part shipped while it has no tracking value first asks
    capture for one. Nothing is saved until capture has answered; a skip
    still marks the part shipped.
    """
    part = store.get(part_id)
    old_tracking = part.tracking
    captured = False

    if status is Status.SHIPPED and not part.has_tracking:
        if capture is None:
            raise ValueError(
                f"Part {part_id} has no tracking; a tracking prompt is needed to mark it shipped"
            )
        captured = True
        entered = (capture(part) or "").strip()
        if entered:
            part.tracking = entered
            _reset_tracking(part)

    part.status = status
    store.update(part)
    return PartChange(
        part,
        refresh=should_refresh_after_edit(old_tracking, part.tracking),
        captured=captured,
    )
