"""Flask web application for parts and shipment tracking."""

import os
from pathlib import Path

from flask import Flask, jsonify, request

from tracker import (
    Part,
    PartStore,
    PartViewer,
    RateLimited,
    Status,
    SyncError,
    TrackingSnapshot,
    TrackingSyncClient,
    classify,
    format_relative_time,
)

app = Flask(__name__)
app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")

# Path to parts file (relative to project root)
app.config["PARTS_FILE"] = Path(
    os.environ.get("PARTS_FILE", Path(__file__).parent.parent / "parts.yaml")
)
app.config["TRACKING_API_URL"] = os.environ.get("TRACKING_API_URL")
# Set by tests to an httpx transport
app.config["TRACKING_TRANSPORT"] = None


def get_viewer() -> PartViewer:
    """The single part viewer for this (local, single-user) app."""
    viewer = app.extensions.get("part_viewer")
    if viewer is None:
        store = PartStore(app.config["PARTS_FILE"])
        client = TrackingSyncClient(
            store,
            api_url=app.config["TRACKING_API_URL"],
            transport=app.config["TRACKING_TRANSPORT"],
        )
        viewer = PartViewer(store, client)
        app.extensions["part_viewer"] = viewer
    return viewer


def checkpoint_json(checkpoint):
    return {
        "tag": checkpoint.tag,
        "subtagMessage": checkpoint.subtag_message,
        "location": checkpoint.location,
        "checkpointTime": checkpoint.checkpoint_time.isoformat()
        if checkpoint.checkpoint_time
        else None,
    }


def part_json(part: Part):
    """Summary of a part for list views."""
    info = classify(part.tracking)
    return {
        "id": part.id,
        "name": part.name,
        "vendor": part.vendor,
        "price": part.price,
        "status": part.status.label,
        "tracking": part.tracking,
        "carrier": info.carrier,
        "trackingUrl": info.url,
        "trackable": info.trackable,
        "trackingStatus": part.tracking_status,
        "trackingUpdatedAt": part.tracking_updated_at.isoformat()
        if part.tracking_updated_at
        else None,
        "trackingUpdatedAgo": format_relative_time(part.tracking_updated_at),
    }


def viewer_json(viewer: PartViewer, max_visible: int = 3):
    """Everything the part detail view shows, including the timeline."""
    part = viewer.part
    timeline = viewer.timeline(max_visible=max_visible)
    data = part_json(part)
    data.update(
        {
            "trackingSubstatus": part.tracking_substatus,
            "trackingLocation": part.tracking_location,
            "trackingEta": part.tracking_eta,
            "phase": {
                "tag": timeline.phase.tag,
                "label": timeline.phase.label,
                "description": timeline.phase.description,
            },
            "progress": timeline.progress,
            "checkpoints": [checkpoint_json(c) for c in timeline.visible],
            "remainingCount": timeline.remaining_count,
            "expanded": viewer.expanded,
            "refreshing": viewer.is_refreshing,
            "notice": viewer.notice,
        }
    )
    return data


def sync_json(result):
    """Outcome of a tracking lookup for the inline message."""
    if result is None:
        return None
    if isinstance(result, TrackingSnapshot):
        return {"outcome": "updated", "trackingStatus": result.status}
    if isinstance(result, RateLimited):
        return {"outcome": "rateLimited", "message": result.message}
    if isinstance(result, SyncError):
        return {"outcome": "error", "message": result.message}
    return None


def not_found(part_id: int):
    return jsonify({"error": f"Part {part_id} not found"}), 404


@app.route("/parts")
def list_parts():
    """All parts, optionally filtered by status."""
    parts = PartStore(app.config["PARTS_FILE"]).all()
    status_filter = request.args.get("status", "").lower() or None

    status_counts = {s.label: sum(1 for p in parts if p.status is s) for s in Status}

    if status_filter:
        try:
            wanted = Status.parse(status_filter)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        parts = [p for p in parts if p.status is wanted]

    return jsonify({
        "parts": [part_json(p) for p in parts],
        "statusCounts": status_counts,
    })


@app.route("/parts/<int:part_id>")
async def part_detail(part_id: int):
    """Open a part in the viewer, looking up its tracking if stale."""
    viewer = get_viewer()
    try:
        result = await viewer.open(part_id)
    except KeyError:
        return not_found(part_id)

    expanded = request.args.get("all", "").lower() == "true"
    if expanded != viewer.expanded:
        viewer.toggle_expanded()

    data = viewer_json(viewer)
    data["sync"] = sync_json(result)
    return jsonify(data)


@app.route("/parts/refresh", methods=["POST"])
async def refresh_all_tracking():
    """Refresh every shipped part with a trackable number."""
    viewer = get_viewer()
    results = await viewer.client.refresh_all(viewer.store.all())
    if viewer.part_id in results:
        viewer.part = viewer.store.get(viewer.part_id)
    return jsonify({
        "refreshed": len(results),
        "results": {str(part_id): sync_json(result) for part_id, result in results.items()},
    })


@app.route("/parts/<int:part_id>/refresh", methods=["POST"])
async def refresh_tracking(part_id: int):
    """Manual tracking refresh for the viewed part."""
    viewer = get_viewer()
    if viewer.part_id != part_id:
        try:
            await viewer.open(part_id, auto_refresh=False)
        except KeyError:
            return not_found(part_id)

    if viewer.is_refreshing:
        return jsonify({"error": "Refresh already in progress"}), 409

    result = await viewer.refresh()
    data = viewer_json(viewer)
    data["sync"] = sync_json(result)
    return jsonify(data)


@app.route("/parts/<int:part_id>/tracking", methods=["POST"])
async def update_tracking(part_id: int):
    """Save a new tracking value; trackable values are looked up right away."""
    viewer = get_viewer()
    payload = request.get_json(silent=True) or request.form
    tracking = payload.get("tracking") or ""

    try:
        if viewer.part_id != part_id:
            await viewer.open(part_id, auto_refresh=False)
        change = await viewer.edit_tracking(tracking)
    except KeyError:
        return not_found(part_id)

    data = viewer_json(viewer)
    data["refreshed"] = change.refresh
    return jsonify(data)


@app.route("/parts/<int:part_id>/status", methods=["POST"])
async def update_status(part_id: int):
    """
    Change a part's status.

    Marking a part shipped without tracking needs a "tracking" field in the
    request (blank to skip); without one nothing is saved and the response
    asks for it.
    """
    viewer = get_viewer()
    payload = request.get_json(silent=True) or request.form

    try:
        status = Status.parse(payload.get("status") or "")
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        if viewer.part_id != part_id:
            await viewer.open(part_id, auto_refresh=False)
    except KeyError:
        return not_found(part_id)

    part = viewer.store.get(part_id)
    if status is Status.SHIPPED and not part.has_tracking and "tracking" not in payload:
        return jsonify({
            "needsTracking": True,
            "message": "Enter the tracking number for this shipment (optional)",
        }), 409

    change = await viewer.change_status(status, lambda part: payload.get("tracking"))
    data = viewer_json(viewer)
    data["captured"] = change.captured
    return jsonify(data)


@app.route("/viewer/close", methods=["POST"])
def close_viewer():
    """Close the part viewer; the next view re-checks tracking."""
    get_viewer().close()
    return jsonify({"closed": True})


@app.route("/classify")
def classify_tracking():
    """Carrier, link and trackability for a tracking value."""
    info = classify(request.args.get("tracking", ""))
    return jsonify({
        "carrier": info.carrier,
        "url": info.url,
        "trackable": info.trackable,
    })


if __name__ == "__main__":
    # Run with debug mode for development
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
