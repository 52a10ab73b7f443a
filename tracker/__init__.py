"""
Parts and shipment tracking models.

This package provides the pieces for tracking purchased parts:
- Status: Order lifecycle (PENDING, PURCHASED, SHIPPED, DELIVERED)
- Part / Checkpoint: Parts and carrier tracking events
- classify: Carrier and tracking link from a typed tracking value
- should_auto_refresh: When viewing a part looks up its tracking
- TrackingSyncClient: Tracking lookups merged into stored parts
- build_timeline: Checkpoint ordering and shipment progress
- PartStore: YAML-backed part records
- PartViewer: One part-viewing session
"""

from .status import Status, StatusFlags, derive_label, apply_label
from .part import Part, Checkpoint
from .carrier import Classification, classify, is_trackable, carrier_name, tracking_url
from .errors import TrackingError, NetworkError, RateLimitError, ProviderError
from .policy import ViewSession, should_auto_refresh, should_refresh_after_edit, STALE_AFTER
from .timeline import Timeline, build_timeline, phase_info, tracking_progress, format_relative_time
from .loader import PartStore, load_parts, create_parts_file
from .sync import (
    TrackingSyncClient,
    TrackingSnapshot,
    RateLimited,
    SyncError,
    apply_snapshot,
)
from .workflow import PartChange, change_status, edit_tracking
from .viewer import PartViewer

__all__ = [
    "Status",
    "StatusFlags",
    "derive_label",
    "apply_label",
    "Part",
    "Checkpoint",
    "Classification",
    "classify",
    "is_trackable",
    "carrier_name",
    "tracking_url",
    "TrackingError",
    "NetworkError",
    "RateLimitError",
    "ProviderError",
    "ViewSession",
    "should_auto_refresh",
    "should_refresh_after_edit",
    "STALE_AFTER",
    "Timeline",
    "build_timeline",
    "phase_info",
    "tracking_progress",
    "format_relative_time",
    "PartStore",
    "load_parts",
    "create_parts_file",
    "TrackingSyncClient",
    "TrackingSnapshot",
    "RateLimited",
    "SyncError",
    "apply_snapshot",
    "PartChange",
    "change_status",
    "edit_tracking",
    "PartViewer",
]
