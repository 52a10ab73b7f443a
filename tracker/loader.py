"""YAML loading and saving utilities for parts data."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dateutil import parser as date_parser

from .part import Checkpoint, Part
from .status import apply_label, derive_label


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp into an aware datetime.

    Values without an offset are taken as UTC. PyYAML already turns
    unquoted timestamps into datetimes, so those are accepted too.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        moment = value
    else:
        moment = date_parser.isoparse(str(value))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def format_timestamp(moment: Optional[datetime]) -> Optional[str]:
    return moment.isoformat() if moment is not None else None


def _parse_checkpoint(dct: Dict[str, Any]) -> Checkpoint:
    return Checkpoint(
        tag=dct.get("tag"),
        subtag_message=dct.get("subtagMessage"),
        location=dct.get("location"),
        checkpoint_time=parse_timestamp(dct.get("checkpointTime")),
    )


def _checkpoint_to_dict(checkpoint: Checkpoint) -> Dict[str, Any]:
    d: Dict[str, Any] = {}
    if checkpoint.tag is not None:
        d["tag"] = checkpoint.tag
    if checkpoint.subtag_message is not None:
        d["subtagMessage"] = checkpoint.subtag_message
    if checkpoint.location is not None:
        d["location"] = checkpoint.location
    if checkpoint.checkpoint_time is not None:
        d["checkpointTime"] = format_timestamp(checkpoint.checkpoint_time)
    return d


def _parse_part(dct: Dict[str, Any]) -> Part:
    """Parse a part record; the status flags are normalized on the way in."""
    status = derive_label(
        bool(dct.get("purchased")),
        bool(dct.get("shipped")),
        bool(dct.get("delivered")),
    )
    return Part(
        dct["id"],
        dct["name"],
        status=status,
        tracking=str(dct.get("tracking") or ""),
        vendor=dct.get("vendor"),
        price=dct.get("price"),
        tracking_status=dct.get("trackingStatus"),
        tracking_substatus=dct.get("trackingSubstatus"),
        tracking_location=dct.get("trackingLocation"),
        tracking_eta=dct.get("trackingEta"),
        tracking_checkpoints=[
            _parse_checkpoint(c) for c in dct.get("trackingCheckpoints") or []
        ],
        tracking_updated_at=parse_timestamp(dct.get("trackingUpdatedAt")),
    )


def _part_to_dict(part: Part) -> Dict[str, Any]:
    """Serialize a Part to the YAML dict format (camelCase keys)."""
    flags = apply_label(part.status)
    d: Dict[str, Any] = {
        "id": part.id,
        "name": part.name,
        "purchased": flags.purchased,
        "shipped": flags.shipped,
        "delivered": flags.delivered,
    }
    if part.vendor is not None:
        d["vendor"] = part.vendor
    if part.price is not None:
        d["price"] = part.price
    if part.tracking:
        d["tracking"] = part.tracking
    if part.tracking_status is not None:
        d["trackingStatus"] = part.tracking_status
    if part.tracking_substatus is not None:
        d["trackingSubstatus"] = part.tracking_substatus
    if part.tracking_location is not None:
        d["trackingLocation"] = part.tracking_location
    if part.tracking_eta is not None:
        d["trackingEta"] = part.tracking_eta
    if part.tracking_checkpoints:
        d["trackingCheckpoints"] = [
            _checkpoint_to_dict(c) for c in part.tracking_checkpoints
        ]
    if part.tracking_updated_at is not None:
        d["trackingUpdatedAt"] = format_timestamp(part.tracking_updated_at)
    return d


def _read(filename: Union[str, Path]) -> Dict[str, Any]:
    with open(filename, "r") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
    if data.get("parts") is None:
        data["parts"] = []
    return data


def _write(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    with open(filename, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def create_parts_file(filename: Union[str, Path]) -> None:
    """Create an empty parts YAML file."""
    _write(filename, {"parts": []})


def load_parts(filename: Union[str, Path]) -> List[Part]:
    """Load all parts from a YAML file."""
    return [_parse_part(p) for p in _read(filename)["parts"]]


class PartStore:
    """
    Keyed record store for parts, backed by one YAML file.

    Every call re-reads the file, so the last write for an id wins.
    """

    def __init__(self, filename: Union[str, Path]):
        self.filename = Path(filename)

    def all(self) -> List[Part]:
        return load_parts(self.filename)

    def get(self, part_id: int) -> Part:
        """Load one part. Raises KeyError if there is no part with that id."""
        for record in _read(self.filename)["parts"]:
            if record.get("id") == part_id:
                return _parse_part(record)
        raise KeyError(f"Part {part_id} not found")

    def update(self, part: Part) -> None:
        """
        Replace the stored record for part.id.

        Loads the raw YAML, swaps in the serialized part,
        and writes back to the file.
        """
        data = _read(self.filename)
        for index, record in enumerate(data["parts"]):
            if record.get("id") == part.id:
                data["parts"][index] = _part_to_dict(part)
                break
        else:
            raise KeyError(f"Part {part.id} not found")
        _write(self.filename, data)

    def add(self, part: Part) -> Part:
        """Append a new part, assigning the next free id."""
        data = _read(self.filename)
        ids = [record.get("id") or 0 for record in data["parts"]]
        part.id = max(ids, default=0) + 1
        data["parts"].append(_part_to_dict(part))
        _write(self.filename, data)
        return part

