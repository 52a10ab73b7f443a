"""Checkpoint timeline and shipment progress for display."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .part import Checkpoint

DEFAULT_MAX_VISIBLE = 3

# Carrier phase tag -> (label, description)
PHASES = {
    "Pending": ("Pending", "Tracking created, waiting for carrier update"),
    "InfoReceived": ("Label Created", "Carrier received shipment information"),
    "InTransit": ("In Transit", "Package is on its way"),
    "OutForDelivery": ("Out for Delivery", "Package is out for delivery today"),
    "AttemptFail": ("Delivery Failed", "Delivery attempt was unsuccessful"),
    "Delivered": ("Delivered", "Package has been delivered"),
    "AvailableForPickup": ("Ready for Pickup", "Package is available for pickup"),
    "Exception": ("Exception", "There is an issue with the shipment"),
    "Expired": ("Expired", "No updates for extended period"),
}

PROGRESS = {
    "Pending": 10,
    "InfoReceived": 20,
    "InTransit": 50,
    "OutForDelivery": 80,
    "AttemptFail": 70,
    "AvailableForPickup": 90,
    "Delivered": 100,
    "Exception": 50,
    "Expired": 0,
}


@dataclass(frozen=True)
class PhaseInfo:
    tag: str
    label: str
    description: str


@dataclass
class Timeline:
    """Checkpoints ordered newest first, split into visible and hidden."""

    checkpoints: List[Checkpoint]
    visible: List[Checkpoint]
    remaining_count: int
    progress: int
    phase: PhaseInfo

    @property
    def has_more(self) -> bool:
        return self.remaining_count > 0


def phase_info(tag: Optional[str]) -> PhaseInfo:
    """Display label for a carrier phase; unknown tags read as Pending."""
    if tag not in PHASES:
        tag = "Pending"
    label, description = PHASES[tag]
    return PhaseInfo(tag, label, description)


def tracking_progress(tag: Optional[str]) -> int:
    """Progress percentage (0-100) for a carrier phase."""
    return PROGRESS.get(tag, 0)


def sort_checkpoints(checkpoints: Iterable[Checkpoint]) -> List[Checkpoint]:
    """Newest first; checkpoints without a time go last, in original order."""
    dated = [c for c in checkpoints if c.checkpoint_time is not None]
    undated = [c for c in checkpoints if c.checkpoint_time is None]
    return sorted(dated, key=lambda c: c.checkpoint_time, reverse=True) + undated


def build_timeline(
    checkpoints: Iterable[Checkpoint],
    status: Optional[str],
    max_visible: int = DEFAULT_MAX_VISIBLE,
    expanded: bool = False,
) -> Timeline:
    """
    Organize a part's checkpoints for display.

    Only the first max_visible checkpoints are visible until the caller
    asks for the expanded view; remaining_count is what "show more" reveals.
    """
    ordered = sort_checkpoints(list(checkpoints))
    visible = ordered if expanded else ordered[:max_visible]
    return Timeline(
        checkpoints=ordered,
        visible=visible,
        remaining_count=len(ordered) - len(visible),
        progress=tracking_progress(status),
        phase=phase_info(status),
    )


def format_relative_time(moment: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Format a past timestamp as '5m ago', 'yesterday', etc."""
    if moment is None:
        return "-"
    now = now or datetime.now(timezone.utc)
    seconds = (now - moment).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days == 1:
        return "yesterday"
    if days < 7:
        return f"{days}d ago"
    return moment.date().isoformat()
