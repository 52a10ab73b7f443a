"""PartViewer - one part-viewing session and its tracking lookups."""

import logging
from datetime import datetime
from typing import Optional

from .carrier import Classification, classify
from .loader import PartStore
from .part import Part
from .policy import ViewSession, should_auto_refresh
from .status import Status
from .sync import SyncResult, TrackingSnapshot, TrackingSyncClient
from .timeline import DEFAULT_MAX_VISIBLE, Timeline, build_timeline
from .workflow import Capture, PartChange, change_status, edit_tracking

logger = logging.getLogger(__name__)


class PartViewer:
    """
    The part currently being viewed, with its tracking state.

    Every lookup is tagged with the id of the part it was issued for; a
    result that comes back after the viewer has moved on to another part
    is not applied to the view.
    """

    def __init__(self, store: PartStore, client: TrackingSyncClient):
        self.store = store
        self.client = client
        self.session = ViewSession()
        self.part_id: Optional[int] = None
        self.part: Optional[Part] = None
        self.notice: Optional[str] = None
        self.expanded = False

    @property
    def classification(self) -> Classification:
        return classify(self.part.tracking if self.part else None)

    @property
    def is_refreshing(self) -> bool:
        return self.part_id is not None and self.client.is_refreshing(self.part_id)

    async def open(
        self, part_id: int, now: Optional[datetime] = None, auto_refresh: bool = True
    ) -> Optional[SyncResult]:
        """
        View a part, looking up its tracking if the refresh policy says so.

        auto_refresh=False shows cached tracking only (the part still counts
        as checked for this session).

        Raises KeyError if the part doesn't exist.
        """
        if part_id != self.part_id:
            self.session.clear()
            self.expanded = False
        self.part_id = part_id
        self.part = self.store.get(part_id)
        self.notice = None

        if not auto_refresh:
            self.session.mark(part_id)
        elif should_auto_refresh(self.part, self.session, now):
            return await self._refresh(part_id)
        return None

    def close(self) -> None:
        self.session.clear()
        self.part_id = None
        self.part = None
        self.notice = None
        self.expanded = False

    async def refresh(self) -> Optional[SyncResult]:
        """Manual refresh of the viewed part; ignored while one is running."""
        if self.part is None or self.is_refreshing:
            return None
        if not self.classification.trackable:
            self.notice = "This tracking value can't be looked up automatically."
            return None
        return await self._refresh(self.part_id)

    async def edit_tracking(self, tracking: Optional[str]) -> PartChange:
        """
        Save a new tracking value for the viewed part.

        A lookup still running for the old value is dropped and repeated for
        the new value once it returns.
        """
        self._require_part()
        change = edit_tracking(self.store, self.part_id, tracking)
        self.part = change.part
        self.notice = None
        if change.refresh:
            await self._refresh(change.part.id, requeue=True)
        return change

    async def change_status(self, status: Status, capture: Optional[Capture] = None) -> PartChange:
        self._require_part()
        change = change_status(self.store, self.part_id, status, capture)
        self.part = change.part
        if change.refresh:
            await self._refresh(change.part.id, requeue=True)
        return change

    def timeline(self, max_visible: int = DEFAULT_MAX_VISIBLE) -> Timeline:
        if self.part is None:
            return build_timeline([], None, max_visible=max_visible)
        return build_timeline(
            self.part.tracking_checkpoints,
            self.part.tracking_status,
            max_visible=max_visible,
            expanded=self.expanded,
        )

    def toggle_expanded(self) -> None:
        self.expanded = not self.expanded

    def _require_part(self) -> None:
        if self.part is None:
            raise ValueError("No part is open")

    async def _refresh(self, part_id: int, requeue: bool = False) -> Optional[SyncResult]:
        result = await self.client.refresh(part_id, requeue=requeue)
        if result is None:
            return None

        if part_id != self.part_id:
            logger.debug(f"Discarding tracking result for part {part_id}, now viewing {self.part_id}")
            return result

        if isinstance(result, TrackingSnapshot):
            self.part = self.store.get(part_id)
            self.notice = None
        else:
            self.notice = result.message
        return result
