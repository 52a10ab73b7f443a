"""Part and Checkpoint classes for purchased parts and their shipments."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .status import Status


@dataclass(frozen=True)
class Checkpoint:
    """One timestamped tracking event reported by the carrier."""

    tag: Optional[str] = None
    subtag_message: Optional[str] = None
    location: Optional[str] = None
    checkpoint_time: Optional[datetime] = None


class Part:
    """A part bought for a vehicle or project, and where its shipment is."""

    def __init__(
            self,
            id: Optional[int],
            name: str,
            status: Status = Status.PENDING,
            tracking: str = "",
            vendor: Optional[str] = None,
            price: Optional[float] = None,
            tracking_status: Optional[str] = None,
            tracking_substatus: Optional[str] = None,
            tracking_location: Optional[str] = None,
            tracking_eta: Optional[str] = None,
            tracking_checkpoints: Optional[List[Checkpoint]] = None,
            tracking_updated_at: Optional[datetime] = None,
    ):
        self.id = id
        self.name = name
        self.status = status
        self.tracking = tracking or ""
        self.vendor = vendor
        self.price = price
        self.tracking_status = tracking_status
        self.tracking_substatus = tracking_substatus
        self.tracking_location = tracking_location
        self.tracking_eta = tracking_eta
        self.tracking_checkpoints = tracking_checkpoints or []
        self.tracking_updated_at = tracking_updated_at

    @property
    def delivered(self) -> bool:
        return self.status is Status.DELIVERED

    @property
    def has_tracking(self) -> bool:
        return bool(self.tracking.strip())

    @property
    def latest_checkpoint(self) -> Optional[Checkpoint]:
        """Most recent checkpoint by time, if any are dated."""
        dated = [c for c in self.tracking_checkpoints if c.checkpoint_time]
        if not dated:
            return None
        return max(dated, key=lambda c: c.checkpoint_time)
