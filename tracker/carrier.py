"""
Carrier detection based on tracking string format.

A tracking value is whatever the user typed into the part's tracking field:
a carrier tracking number, a pasted tracking link, or just a carrier name
like "USPS" or "Local". CARRIER_RULES is evaluated strictly in order and
the first matching rule wins.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple


@dataclass(frozen=True)
class Classification:
    """Result of classifying a raw tracking string."""

    carrier: Optional[str]
    url: Optional[str]
    trackable: bool


_FEDEX_DIGITS = re.compile(r"^\d{12,14}$")
_USPS_DIGITS = re.compile(r"^\d{20,22}$")
_USPS_PREFIXED = re.compile(r"^(94|92|93)\d{20}$")
_DHL_DIGITS = re.compile(r"^\d{10,11}$")
_LETTERS_ONLY = re.compile(r"^[a-zA-Z\s]+$")

# Carrier names typed without a number, checked against the uppercased value
CARRIER_KEYWORDS = [
    ("UPS", "UPS"),
    ("FEDEX", "FedEx"),
    ("USPS", "USPS"),
    ("DHL", "DHL"),
    ("ECMS", "ECMS"),
    ("LOCAL", "Local"),
]


def _is_amazon_reference(raw: str) -> bool:
    lowered = raw.lower()
    return (
        "amazon.com" in lowered
        or "amzn" in lowered
        or raw.upper().startswith("TBA")
    )


def _resolve_link(raw: str) -> Classification:
    lowered = raw.lower()
    if "amazon.com" in lowered or "amzn" in lowered:
        carrier = "Amazon"
    elif "fedex.com" in lowered:
        carrier = "FedEx"
    else:
        carrier = None
    return Classification(carrier, raw, False)


def _tracked(carrier: str, template: str) -> Callable[[str], Classification]:
    def resolve(raw: str) -> Classification:
        return Classification(carrier, template.format(raw=raw), True)

    return resolve


def _resolve_keyword(raw: str) -> Classification:
    upper = raw.upper()
    for keyword, label in CARRIER_KEYWORDS:
        if keyword in upper:
            return Classification(label, None, False)
    return Classification(raw, None, False)


Rule = Tuple[Callable[[str], bool], Callable[[str], Classification]]

CARRIER_RULES: List[Rule] = [
    (lambda raw: raw.startswith("http"), _resolve_link),
    (
        lambda raw: raw.upper().startswith("TBA"),
        lambda raw: Classification(
            "Amazon",
            "https://www.amazon.com/progress-tracker/package/"
            f"?itemId=&orderId=&trackingId={raw}",
            False,
        ),
    ),
    (
        lambda raw: raw.startswith("EX"),
        _tracked(
            "Orange Connex",
            "https://www.orangeconnex.com/tracking?language=en&trackingnumber={raw}",
        ),
    ),
    (
        lambda raw: raw.startswith("ECSDT"),
        _tracked(
            "ECMS",
            "https://www.ecmsglobal.com/en-us/tracking.html?orderNumber={raw}",
        ),
    ),
    (
        lambda raw: raw.startswith("1Z"),
        _tracked(
            "UPS",
            "https://www.ups.com/track?tracknum={raw}&loc=en_US&requester=ST/trackdetails",
        ),
    ),
    (
        lambda raw: bool(_FEDEX_DIGITS.match(raw)),
        _tracked("FedEx", "https://www.fedex.com/fedextrack/?trknbr={raw}"),
    ),
    (
        lambda raw: bool(_USPS_DIGITS.match(raw) or _USPS_PREFIXED.match(raw)),
        _tracked("USPS", "https://tools.usps.com/go/TrackConfirmAction?tLabels={raw}"),
    ),
    (
        lambda raw: bool(_DHL_DIGITS.match(raw)),
        _tracked(
            "DHL",
            "https://www.dhl.com/us-en/home/tracking/tracking-express.html"
            "?submit=1&tracking-id={raw}",
        ),
    ),
    # Fallback: carrier keyword, else the raw text as an opaque label
    (lambda raw: True, _resolve_keyword),
]


def is_trackable(raw: Optional[str]) -> bool:
    """
    Check whether an external tracking lookup makes sense for a value.

    Literal links, Amazon references and letter-only text (carrier names
    like "USPS" or "Local") can't be looked up.
    """
    if raw is None or not raw.strip():
        return False
    if raw.startswith("http"):
        return False
    if _is_amazon_reference(raw):
        return False
    if _LETTERS_ONLY.match(raw.strip()):
        return False
    return True


def classify(raw: Optional[str]) -> Classification:
    """Classify a raw tracking string into carrier, link and trackability."""
    if not raw:
        return Classification(None, None, False)

    for matches, resolve in CARRIER_RULES:
        if matches(raw):
            result = resolve(raw)
            break

    if result.trackable and not is_trackable(raw):
        return Classification(result.carrier, result.url, False)
    return result


def carrier_name(raw: Optional[str]) -> Optional[str]:
    """Human-readable carrier for a tracking value."""
    return classify(raw).carrier


def tracking_url(raw: Optional[str]) -> Optional[str]:
    """Link to the carrier's tracking page, if one can be built."""
    return classify(raw).url
