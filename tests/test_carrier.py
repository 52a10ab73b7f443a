#!/usr/bin/env python3
"""Tests for carrier detection."""

import pytest

from tracker import Classification, carrier_name, classify, is_trackable, tracking_url
from tracker.carrier import CARRIER_RULES


class TestClassifyTrackingNumbers:
    """Tracking numbers with a known format."""

    def test_ups(self):
        info = classify("1Z48537W0440715302")
        assert info.carrier == "UPS"
        assert "ups.com" in info.url
        assert "1Z48537W0440715302" in info.url
        assert info.trackable is True

    def test_fedex_twelve_digits(self):
        info = classify("885304602390")
        assert info.carrier == "FedEx"
        assert info.url == "https://www.fedex.com/fedextrack/?trknbr=885304602390"
        assert info.trackable is True

    def test_fedex_fourteen_digits(self):
        assert classify("12345678901234").carrier == "FedEx"

    def test_usps_twenty_two_digits(self):
        info = classify("9400111899223817334985")
        assert info.carrier == "USPS"
        assert "tools.usps.com" in info.url
        assert info.trackable is True

    def test_usps_twenty_digits(self):
        assert classify("12345678901234567890").carrier == "USPS"

    def test_dhl_ten_digits(self):
        info = classify("1234567890")
        assert info.carrier == "DHL"
        assert info.url.endswith("tracking-id=1234567890")
        assert info.trackable is True

    def test_orange_connex(self):
        info = classify("EX1234567890US")
        assert info.carrier == "Orange Connex"
        assert "orangeconnex.com" in info.url
        assert info.trackable is True

    def test_ecms_before_other_rules(self):
        info = classify("ECSDT0012345678")
        assert info.carrier == "ECMS"
        assert "orderNumber=ECSDT0012345678" in info.url
        assert info.trackable is True

    def test_digit_counts_outside_ranges_are_opaque(self):
        """15-19 digits match no carrier pattern."""
        info = classify("123456789012345")
        assert info == Classification("123456789012345", None, False)


class TestClassifyLinks:
    """Pasted tracking links."""

    def test_amazon_link(self):
        link = "https://www.amazon.com/progress-tracker/package/?orderId=1"
        info = classify(link)
        assert info.carrier == "Amazon"
        assert info.url == link
        assert info.trackable is False

    def test_amzn_short_link(self):
        assert classify("https://amzn.to/3abc").carrier == "Amazon"

    def test_fedex_link(self):
        info = classify("https://www.fedex.com/fedextrack/?trknbr=885304602390")
        assert info.carrier == "FedEx"
        assert info.trackable is False

    def test_other_link(self):
        info = classify("https://shop.example.com/orders/55")
        assert info == Classification(None, "https://shop.example.com/orders/55", False)

    def test_amazon_logistics_number(self):
        info = classify("TBA123456789000")
        assert info.carrier == "Amazon"
        assert "trackingId=TBA123456789000" in info.url
        assert info.trackable is False


class TestClassifyCarrierNames:
    """Carrier names typed without a number."""

    @pytest.mark.parametrize(
        "raw, carrier",
        [
            ("ups", "UPS"),
            ("Fedex ground", "FedEx"),
            ("USPS", "USPS"),
            ("dhl", "DHL"),
            ("ecms", "ECMS"),
            ("local pickup", "Local"),
        ],
    )
    def test_keyword(self, raw, carrier):
        assert classify(raw) == Classification(carrier, None, False)

    def test_unknown_text_is_its_own_label(self):
        assert classify("Bob's garage") == Classification("Bob's garage", None, False)


class TestClassifyEdgeCases:
    """Empty input, purity and the trackability gate."""

    def test_empty(self):
        info = classify("")
        assert info.trackable is False
        assert info.url is None
        assert info.carrier is None

    def test_none(self):
        assert classify(None) == Classification(None, None, False)

    def test_pure(self):
        """Same input, same output."""
        assert classify("1Z48537W0440715302") == classify("1Z48537W0440715302")
        assert classify("local") == classify("local")

    def test_letter_only_prefix_match_not_trackable(self):
        """'EXPRESS' starts with EX but is just a word."""
        info = classify("EXPRESS")
        assert info.carrier == "Orange Connex"
        assert info.trackable is False

    def test_first_rule_wins(self):
        """A URL containing a tracking number is still a link."""
        info = classify("http://example.com/1Z48537W0440715302")
        assert info.carrier is None
        assert info.trackable is False

    def test_rules_end_with_catch_all(self):
        matches, _ = CARRIER_RULES[-1]
        assert matches("anything")


class TestIsTrackable:
    """Tests for the trackability gate."""

    @pytest.mark.parametrize(
        "raw",
        [None, "", "   ", "https://ups.com/x", "TBA123456789000", "USPS", "Local pickup"],
    )
    def test_not_trackable(self, raw):
        assert is_trackable(raw) is False

    @pytest.mark.parametrize("raw", ["1Z48537W0440715302", "885304602390", "EX1234567890US"])
    def test_trackable(self, raw):
        assert is_trackable(raw) is True

    def test_agrees_with_classify(self):
        for raw in ["1Z48537W0440715302", "EXPRESS", "USPS", "", "https://amzn.to/x"]:
            if classify(raw).trackable:
                assert is_trackable(raw)


class TestShortcuts:
    """Tests for carrier_name and tracking_url."""

    def test_carrier_name(self):
        assert carrier_name("1Z48537W0440715302") == "UPS"
        assert carrier_name(None) is None

    def test_tracking_url(self):
        assert tracking_url("885304602390").startswith("https://www.fedex.com/")
        assert tracking_url("Local") is None
