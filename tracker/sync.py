"""
Shipment tracking sync against the tracking service.

The tracking service answers GET /tracking/{part_id} with the carrier's
current phase and full checkpoint history for the part. A successful
lookup replaces the part's cached tracking fields; failures leave them
alone and come back as RateLimited or SyncError results for the caller to
show inline.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Union

import httpx
import yaml

from .carrier import classify
from .errors import NetworkError, ProviderError, RateLimitError, TrackingError
from .loader import PartStore, parse_timestamp
from .part import Checkpoint, Part
from .status import Status

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3000/api"
REQUEST_TIMEOUT = 30.0
RATE_LIMIT_MESSAGE = "API rate limit reached. Please try again later."
DELIVERED = "Delivered"


@dataclass
class TrackingSnapshot:
    """Carrier tracking state for a part as of one successful lookup."""

    status: Optional[str]
    checkpoints: List[Checkpoint] = field(default_factory=list)
    updated_at: Optional[datetime] = None
    substatus: Optional[str] = None
    location: Optional[str] = None
    eta: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.status == DELIVERED


@dataclass
class RateLimited:
    """The lookup was refused for now; cached tracking is still valid."""

    message: str


@dataclass
class SyncError:
    """The lookup failed; nothing was changed."""

    message: str


SyncResult = Union[TrackingSnapshot, RateLimited, SyncError]


def parse_checkpoint(dct: Dict[str, Any]) -> Checkpoint:
    """Build a Checkpoint from the tracking service's checkpoint format."""
    return Checkpoint(
        tag=dct.get("tag"),
        subtag_message=dct.get("subtag_message") or dct.get("message"),
        location=dct.get("location") or dct.get("city"),
        checkpoint_time=parse_timestamp(
            dct.get("checkpoint_time") or dct.get("created_at")
        ),
    )


def parse_tracking(tracking: Dict[str, Any]) -> TrackingSnapshot:
    """Build a TrackingSnapshot from the 'tracking' object of a response."""
    updated_at = parse_timestamp(tracking.get("tracking_updated_at"))
    return TrackingSnapshot(
        status=tracking.get("tracking_status"),
        checkpoints=[
            parse_checkpoint(c) for c in tracking.get("tracking_checkpoints") or []
        ],
        updated_at=updated_at or datetime.now(timezone.utc),
        substatus=tracking.get("tracking_substatus"),
        location=tracking.get("tracking_location"),
        eta=tracking.get("tracking_eta"),
    )


def apply_snapshot(part: Part, snapshot: TrackingSnapshot) -> Part:
    """
    Overwrite a part's tracking fields with a lookup result.

    Checkpoints are replaced wholesale. A Delivered phase also marks the
    part delivered; this is the only automatic status change.
    """
    part.tracking_status = snapshot.status
    part.tracking_substatus = snapshot.substatus
    part.tracking_location = snapshot.location
    part.tracking_eta = snapshot.eta
    part.tracking_checkpoints = list(snapshot.checkpoints)
    part.tracking_updated_at = snapshot.updated_at
    if snapshot.delivered and not part.delivered:
        part.status = Status.DELIVERED
    return part


class TrackingSyncClient:
    """
    Looks up shipment tracking for parts and merges the results.

    At most one lookup per part is in flight. A second refresh for the same
    part is ignored, unless it asks to be requeued, in which case the
    running lookup is repeated once it finishes. Each lookup remembers the
    tracking value it was issued for and is dropped if that value changed
    before it returned.
    """

    def __init__(
        self,
        store: PartStore,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store
        self.api_url = (
            api_url or os.environ.get("TRACKING_API_URL") or DEFAULT_API_URL
        ).rstrip("/")
        self.token = token if token is not None else os.environ.get("TRACKING_API_TOKEN")
        self.transport = transport
        self._in_flight: Set[int] = set()
        self._requeued: Set[int] = set()

    def is_refreshing(self, part_id: int) -> bool:
        return part_id in self._in_flight

    async def refresh(self, part_id: int, requeue: bool = False) -> Optional[SyncResult]:
        """
        Look up tracking for a part and store the result.

        If a lookup for the part is already in flight this returns None
        without a request; with requeue=True the running lookup is repeated
        once it finishes. Also returns None if the part's tracking value
        changed while the lookup was running.
        """
        if part_id in self._in_flight:
            if requeue:
                logger.debug(f"Tracking refresh for part {part_id} queued behind running lookup")
                self._requeued.add(part_id)
            else:
                logger.debug(f"Tracking refresh for part {part_id} already in flight, ignoring")
            return None

        self._in_flight.add(part_id)
        try:
            while True:
                self._requeued.discard(part_id)
                result = await self._lookup(part_id)
                if part_id not in self._requeued:
                    return result
        finally:
            self._in_flight.discard(part_id)
            self._requeued.discard(part_id)

    async def _lookup(self, part_id: int) -> Optional[SyncResult]:
        try:
            issued_for = self._load(part_id).tracking
            snapshot = await self._fetch(part_id)
            if not self._merge(part_id, issued_for, snapshot):
                return None
            return snapshot
        except RateLimitError as e:
            logger.warning(f"Tracking lookup for part {part_id} rate limited: {e.message}")
            return RateLimited(e.message)
        except TrackingError as e:
            logger.error(f"Tracking lookup for part {part_id} failed: {e.message}")
            return SyncError(e.message)

    async def refresh_all(self, parts: List[Part]) -> Dict[int, Optional[SyncResult]]:
        """
        Refresh every shipped part with a trackable value, one at a time.

        Failures are logged and skipped; the result for each part is
        returned keyed by part id.
        """
        results: Dict[int, Optional[SyncResult]] = {}
        for part in parts:
            if part.status is not Status.SHIPPED or not classify(part.tracking).trackable:
                continue
            results[part.id] = await self.refresh(part.id)
        logger.info(f"Refreshed tracking for {len(results)} shipped parts")
        return results

    def _load(self, part_id: int) -> Part:
        try:
            return self.store.get(part_id)
        except KeyError as e:
            raise ProviderError(f"Part {part_id} not found") from e
        except (OSError, yaml.YAMLError) as e:
            raise TrackingError(f"Could not read part {part_id}: {e}") from e

    async def _fetch(self, part_id: int) -> TrackingSnapshot:
        url = f"{self.api_url}/tracking/{part_id}"
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.info(f"Refreshing tracking for part {part_id}")
        try:
            async with httpx.AsyncClient(
                transport=self.transport, timeout=REQUEST_TIMEOUT
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise NetworkError(f"Unable to reach the tracking service: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code == 429 or data.get("rateLimited"):
            raise RateLimitError(
                data.get("rateLimitMessage") or data.get("error") or RATE_LIMIT_MESSAGE
            )
        if response.is_error or not data.get("success"):
            raise ProviderError(
                data.get("error")
                or f"Tracking lookup failed (HTTP {response.status_code})",
                response.status_code,
            )

        tracking = data.get("tracking")
        if not tracking:
            raise ProviderError("Tracking response had no tracking data", response.status_code)
        try:
            return parse_tracking(tracking)
        except (ValueError, TypeError, AttributeError) as e:
            raise ProviderError(
                f"Malformed tracking response: {e}", response.status_code
            ) from e

    def _merge(self, part_id: int, issued_for: str, snapshot: TrackingSnapshot) -> bool:
        """Store a lookup result; False if it belongs to an old tracking value."""
        part = self._load(part_id)
        if part.tracking.strip() != issued_for.strip():
            logger.debug(
                f"Dropping tracking result for part {part_id}: "
                f"tracking changed from {issued_for!r} to {part.tracking!r}"
            )
            return False

        was_delivered = part.delivered
        try:
            self.store.update(apply_snapshot(part, snapshot))
        except KeyError as e:
            raise ProviderError(f"Part {part_id} not found") from e
        except (OSError, yaml.YAMLError) as e:
            raise TrackingError(f"Could not save tracking for part {part_id}: {e}") from e
        if part.delivered and not was_delivered:
            logger.info(f"Part {part_id} marked delivered by carrier tracking")
        return True
