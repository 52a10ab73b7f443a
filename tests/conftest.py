"""Shared fixtures: a parts file on disk and a fake tracking service."""

import httpx
import pytest

from tracker import PartStore

PARTS_YAML = """
parts:
  - id: 1
    name: FJ40 door seal kit
    vendor: Cruiser Corps
    price: 89.95
    purchased: true
    shipped: true
    delivered: false
    tracking: 1Z48537W0440715302
  - id: 2
    name: Carburetor rebuild kit
    purchased: true
    shipped: false
    delivered: false
  - id: 3
    name: Tailgate hinge
    purchased: true
    shipped: true
    delivered: true
    tracking: '885304602390'
  - id: 4
    name: Seat cover
    purchased: true
    shipped: true
    delivered: false
    tracking: Local
"""


@pytest.fixture
def parts_file(tmp_path):
    path = tmp_path / "parts.yaml"
    path.write_text(PARTS_YAML)
    return path


@pytest.fixture
def store(parts_file):
    return PartStore(parts_file)


def tracking_response(status="InTransit", checkpoints=None, updated_at="2025-03-02T12:00:00Z", **extra):
    """Body of a successful GET /tracking/{id} response."""
    body = {
        "success": True,
        "tracking": {
            "tracking_status": status,
            "tracking_checkpoints": checkpoints or [],
            "tracking_updated_at": updated_at,
        },
    }
    body.update(extra)
    return body


class FakeTrackingService:
    """
    httpx transport answering GET /tracking/{id} from canned bodies.

    responses maps part id -> (status_code, body) or an exception to raise.
    """

    def __init__(self, responses=None, delay=None):
        self.responses = responses or {}
        self.delay = delay
        self.requests = []

    async def handler(self, request):
        self.requests.append(request)
        if self.delay is not None:
            await self.delay(request)
        part_id = int(request.url.path.rstrip("/").split("/")[-1])
        response = self.responses.get(part_id, (404, {"success": False, "error": "Part not found"}))
        if isinstance(response, Exception):
            raise response
        status_code, body = response
        if isinstance(body, str):
            return httpx.Response(status_code, text=body)
        return httpx.Response(status_code, json=body)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

    @property
    def call_count(self):
        return len(self.requests)


@pytest.fixture
def service():
    return FakeTrackingService()
