#!/usr/bin/env python3
"""Tests for YAML loading and saving utilities."""

from datetime import datetime, timezone

import pytest
import yaml

from tracker import Checkpoint, Part, PartStore, Status, create_parts_file, load_parts
from tracker.loader import parse_timestamp

# =============================================================================
# load_parts tests
# =============================================================================


class TestLoadParts:
    """Tests for load_parts function."""

    def test_loads_parts(self, parts_file):
        parts = load_parts(parts_file)

        assert len(parts) == 4
        assert isinstance(parts[0], Part)
        assert parts[0].name == "FJ40 door seal kit"
        assert parts[0].vendor == "Cruiser Corps"
        assert parts[0].price == 89.95
        assert parts[0].tracking == "1Z48537W0440715302"
        assert parts[1].tracking == ""

    def test_flags_become_status(self, parts_file):
        statuses = [p.status for p in load_parts(parts_file)]
        assert statuses == [Status.SHIPPED, Status.PURCHASED, Status.DELIVERED, Status.SHIPPED]

    def test_inconsistent_flags_normalized(self, tmp_path):
        """delivered without purchased/shipped still reads as delivered."""
        path = tmp_path / "parts.yaml"
        path.write_text("""
parts:
  - id: 1
    name: Grille
    purchased: false
    shipped: false
    delivered: true
""")
        assert load_parts(path)[0].status is Status.DELIVERED

    def test_missing_flags_is_pending(self, tmp_path):
        path = tmp_path / "parts.yaml"
        path.write_text("parts:\n  - id: 1\n    name: Grille\n")
        assert load_parts(path)[0].status is Status.PENDING

    def test_loads_tracking_fields(self, tmp_path):
        path = tmp_path / "parts.yaml"
        path.write_text("""
parts:
  - id: 5
    name: Steering box
    purchased: true
    shipped: true
    tracking: '885304602390'
    trackingStatus: InTransit
    trackingLocation: Memphis, TN
    trackingUpdatedAt: '2025-03-02T12:00:00+00:00'
    trackingCheckpoints:
      - tag: InTransit
        subtagMessage: Departed FedEx hub
        location: Memphis, TN
        checkpointTime: '2025-03-02T08:15:00+00:00'
""")
        part = load_parts(path)[0]

        assert part.tracking_status == "InTransit"
        assert part.tracking_location == "Memphis, TN"
        assert part.tracking_updated_at == datetime(2025, 3, 2, 12, tzinfo=timezone.utc)
        assert part.tracking_checkpoints == [
            Checkpoint(
                "InTransit",
                "Departed FedEx hub",
                "Memphis, TN",
                datetime(2025, 3, 2, 8, 15, tzinfo=timezone.utc),
            )
        ]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "parts.yaml"
        path.write_text("")
        assert load_parts(path) == []

    def test_create_parts_file(self, tmp_path):
        path = tmp_path / "parts.yaml"
        create_parts_file(path)
        assert load_parts(path) == []


class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_z_suffix(self):
        assert parse_timestamp("2025-03-02T12:00:00Z") == datetime(2025, 3, 2, 12, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_timestamp("2025-03-02T12:00:00").tzinfo is not None

    def test_datetime_passthrough(self):
        moment = datetime(2025, 3, 2, 12)
        assert parse_timestamp(moment) == datetime(2025, 3, 2, 12, tzinfo=timezone.utc)

    def test_empty(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None


# =============================================================================
# PartStore tests
# =============================================================================


class TestPartStore:
    """Tests for PartStore get/update/add."""

    def test_get(self, store):
        part = store.get(3)
        assert part.name == "Tailgate hinge"
        assert part.status is Status.DELIVERED

    def test_get_unknown_raises(self, store):
        with pytest.raises(KeyError):
            store.get(99)

    def test_update_replaces_record(self, store):
        part = store.get(2)
        part.status = Status.SHIPPED
        part.tracking = "885304602390"
        store.update(part)

        reloaded = store.get(2)
        assert reloaded.status is Status.SHIPPED
        assert reloaded.tracking == "885304602390"

    def test_update_writes_canonical_flags(self, store, parts_file):
        part = store.get(2)
        part.status = Status.DELIVERED
        store.update(part)

        with open(parts_file) as fp:
            record = yaml.safe_load(fp)["parts"][1]
        assert record["purchased"] is True
        assert record["shipped"] is True
        assert record["delivered"] is True

    def test_update_leaves_other_parts(self, store):
        part = store.get(2)
        part.name = "Carb kit"
        store.update(part)
        assert store.get(1).name == "FJ40 door seal kit"
        assert [p.id for p in store.all()] == [1, 2, 3, 4]

    def test_last_write_wins(self, store):
        first = store.get(1)
        second = store.get(1)
        first.vendor = "Vendor A"
        second.vendor = "Vendor B"
        store.update(first)
        store.update(second)
        assert store.get(1).vendor == "Vendor B"

    def test_update_unknown_raises(self, store):
        with pytest.raises(KeyError):
            store.update(Part(99, "Ghost"))

    def test_tracking_round_trip(self, store, parts_file):
        part = store.get(1)
        part.tracking_status = "OutForDelivery"
        part.tracking_checkpoints = [
            Checkpoint("OutForDelivery", "Out for delivery", "Reno, NV",
                       datetime(2025, 3, 4, 8, tzinfo=timezone.utc)),
        ]
        part.tracking_updated_at = datetime(2025, 3, 4, 9, tzinfo=timezone.utc)
        store.update(part)

        reloaded = store.get(1)
        assert reloaded.tracking_status == "OutForDelivery"
        assert reloaded.tracking_checkpoints == part.tracking_checkpoints
        assert reloaded.tracking_updated_at == part.tracking_updated_at

        # Timestamps are written as quoted strings
        with open(parts_file) as fp:
            record = yaml.safe_load(fp)["parts"][0]
        assert isinstance(record["trackingUpdatedAt"], str)

    def test_omits_empty_fields(self, store, parts_file):
        part = store.get(2)
        store.update(part)
        with open(parts_file) as fp:
            record = yaml.safe_load(fp)["parts"][1]
        assert "tracking" not in record
        assert "trackingCheckpoints" not in record

    def test_add_assigns_next_id(self, store):
        part = store.add(Part(None, "Wiper motor", status=Status.PURCHASED))
        assert part.id == 5
        assert store.get(5).status is Status.PURCHASED

    def test_add_to_empty_file(self, tmp_path):
        path = tmp_path / "parts.yaml"
        create_parts_file(path)
        store = PartStore(path)
        assert store.add(Part(None, "Wiper motor")).id == 1
