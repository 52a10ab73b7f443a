"""Status enum and flag encoding for the part order lifecycle."""

from dataclasses import dataclass
from enum import Enum


class Status(Enum):
    """Order lifecycle of a part. Higher value = further along."""

    PENDING = 1
    PURCHASED = 2
    SHIPPED = 3
    DELIVERED = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, label: str) -> "Status":
        """Look up a status by its lowercase label (case-insensitive)."""
        try:
            return cls[label.strip().upper()]
        except KeyError:
            valid = ", ".join(s.label for s in cls)
            raise ValueError(f"Unknown status '{label}' (expected one of: {valid})")


@dataclass(frozen=True)
class StatusFlags:
    """Legacy boolean encoding of a Status, as stored in the parts file."""

    purchased: bool
    shipped: bool
    delivered: bool


_FLAGS = {
    Status.DELIVERED: StatusFlags(purchased=True, shipped=True, delivered=True),
    Status.SHIPPED: StatusFlags(purchased=True, shipped=True, delivered=False),
    Status.PURCHASED: StatusFlags(purchased=True, shipped=False, delivered=False),
    Status.PENDING: StatusFlags(purchased=False, shipped=False, delivered=False),
}


def derive_label(purchased: bool, shipped: bool, delivered: bool) -> Status:
    """
    Derive a Status from the legacy flags.

    Precedence is delivered > shipped > purchased > pending, so inconsistent
    combinations (e.g. delivered without purchased) still map to one status.
    """
    if delivered:
        return Status.DELIVERED
    if shipped:
        return Status.SHIPPED
    if purchased:
        return Status.PURCHASED
    return Status.PENDING


def apply_label(status: Status) -> StatusFlags:
    """Encode a Status as the canonical flag triple."""
    return _FLAGS[status]
