#!/usr/bin/env python3
"""Tests for Status enum and its flag encoding."""

import pytest

from tracker import Status, StatusFlags, apply_label, derive_label


class TestStatus:
    """Tests for Status enum ordering and labels."""

    def test_lifecycle_ordering(self):
        """Higher value = further along."""
        assert Status.PENDING.value < Status.PURCHASED.value
        assert Status.PURCHASED.value < Status.SHIPPED.value
        assert Status.SHIPPED.value < Status.DELIVERED.value

    def test_labels_are_lowercase_names(self):
        assert [s.label for s in Status] == ["pending", "purchased", "shipped", "delivered"]

    def test_parse_is_case_insensitive(self):
        assert Status.parse("Shipped") is Status.SHIPPED
        assert Status.parse(" delivered ") is Status.DELIVERED

    def test_parse_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown status"):
            Status.parse("lost")


class TestDeriveLabel:
    """Tests for derive_label precedence."""

    def test_all_flags_is_delivered(self):
        assert derive_label(purchased=True, shipped=True, delivered=True) is Status.DELIVERED

    def test_purchased_only(self):
        assert derive_label(purchased=True, shipped=False, delivered=False) is Status.PURCHASED

    def test_no_flags_is_pending(self):
        assert derive_label(False, False, False) is Status.PENDING

    def test_shipped_without_purchased(self):
        """Inconsistent legacy data still derives one status."""
        assert derive_label(purchased=False, shipped=True, delivered=False) is Status.SHIPPED

    def test_delivered_wins_over_everything(self):
        assert derive_label(purchased=False, shipped=False, delivered=True) is Status.DELIVERED


class TestApplyLabel:
    """Tests for apply_label flag table."""

    def test_delivered(self):
        assert apply_label(Status.DELIVERED) == StatusFlags(True, True, True)

    def test_shipped(self):
        assert apply_label(Status.SHIPPED) == StatusFlags(
            purchased=True, shipped=True, delivered=False
        )

    def test_purchased(self):
        assert apply_label(Status.PURCHASED) == StatusFlags(
            purchased=True, shipped=False, delivered=False
        )

    def test_pending(self):
        assert apply_label(Status.PENDING) == StatusFlags(False, False, False)

    @pytest.mark.parametrize("status", list(Status))
    def test_flags_derive_back_to_same_status(self, status):
        flags = apply_label(status)
        assert derive_label(flags.purchased, flags.shipped, flags.delivered) is status

    @pytest.mark.parametrize("status", list(Status))
    def test_flags_are_consistent(self, status):
        """delivered implies shipped implies purchased."""
        flags = apply_label(status)
        assert not flags.delivered or flags.shipped
        assert not flags.shipped or flags.purchased
