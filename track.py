#!/usr/bin/env python3
"""
Unified CLI for parts and shipment tracking.

Commands:
  list         - Show parts with their status and carrier
  show         - Show one part, looking up its tracking when stale
  add          - Add a new part
  status       - Move a part through pending/purchased/shipped/delivered
  set-tracking - Change a part's tracking value
  refresh      - Look up tracking now for one part or every shipped part
  classify     - Show which carrier a tracking value belongs to
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from tracker import (
    Checkpoint,
    Part,
    create_parts_file,
    PartStore,
    PartViewer,
    RateLimited,
    Status,
    SyncError,
    Timeline,
    TrackingSnapshot,
    TrackingSyncClient,
    classify,
    format_relative_time,
)

# =============================================================================
# Formatting helpers
# =============================================================================


def format_price(price: Optional[float]) -> str:
    """Format price for display."""
    return f"${price:,.2f}" if price is not None else "-"


def format_checkpoint_time(moment: Optional[datetime]) -> str:
    """Format checkpoint time for display (e.g., 'Jan 15 3:04 PM')."""
    if moment is None:
        return "-"
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{moment:%b} {moment.day} {hour}:{moment.minute:02d} {suffix}"


def format_progress(progress: int, width: int = 20) -> str:
    """Render a progress percentage as a text bar (e.g., '[#####-----] 50%')."""
    filled = round(width * progress / 100)
    return f"[{'#' * filled}{'-' * (width - filled)}] {progress}%"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def print_sync_result(result) -> None:
    """Print the inline message for a tracking lookup."""
    if result is None:
        return
    if isinstance(result, TrackingSnapshot):
        print(f"Tracking updated: {result.status or 'Pending'}")
    elif isinstance(result, RateLimited):
        print(f"Warning: {result.message}")
    elif isinstance(result, SyncError):
        print(f"Tracking lookup failed: {result.message}")


def make_viewer(args) -> PartViewer:
    store = PartStore(args.parts_file)
    return PartViewer(store, TrackingSyncClient(store, api_url=args.api_url))


# =============================================================================
# List command
# =============================================================================


def make_parts_table(parts: List[Part]) -> List[List[str]]:
    """Convert parts to table rows."""
    rows = []
    for part in parts:
        carrier = classify(part.tracking).carrier
        rows.append(
            [
                str(part.id),
                truncate(part.name),
                part.status.label,
                carrier or "-",
                truncate(part.tracking, 24),
                part.tracking_status or "-",
                format_relative_time(part.tracking_updated_at)
                if part.tracking_updated_at
                else "-",
            ]
        )
    return rows


def cmd_list(args):
    """Show parts with their status and carrier."""
    parts = PartStore(args.parts_file).all()
    counts = {s: sum(1 for p in parts if p.status is s) for s in Status}

    if args.status:
        try:
            wanted = Status.parse(args.status)
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        parts = [p for p in parts if p.status is wanted]
    print(f"Parts: {len(parts)}")
    print(
        "  ".join(f"{s.label.capitalize()}: {counts[s]}" for s in Status)
    )
    print()

    if not parts:
        print("No parts found.")
        return 0

    headers = ["ID", "Part", "Status", "Carrier", "Tracking", "Phase", "Updated"]
    print(tabulate(make_parts_table(parts), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Show command
# =============================================================================


def make_timeline_table(checkpoints: List[Checkpoint]) -> List[List[str]]:
    """Convert checkpoints to table rows."""
    return [
        [
            format_checkpoint_time(c.checkpoint_time),
            c.tag or "-",
            c.subtag_message or "-",
            c.location or "-",
        ]
        for c in checkpoints
    ]


def print_part(viewer: PartViewer, timeline: Timeline) -> None:
    part = viewer.part
    info = viewer.classification

    print(f"Part: {part.name} (#{part.id})")
    print(f"Status: {part.status.label}")
    if part.vendor:
        print(f"Vendor: {part.vendor}")
    if part.price is not None:
        print(f"Price: {format_price(part.price)}")

    if not part.has_tracking:
        print("Tracking: -")
        return

    print(f"Tracking: {part.tracking}")
    if info.carrier:
        print(f"Carrier: {info.carrier}")
    if info.url:
        print(f"Link: {info.url}")
    if viewer.notice:
        print(f"Note: {viewer.notice}")
    if part.tracking_status is None:
        return

    print(f"Phase: {timeline.phase.label} - {timeline.phase.description}")
    if part.tracking_location:
        print(f"Location: {part.tracking_location}")
    if part.tracking_eta:
        print(f"ETA: {part.tracking_eta}")
    print(f"Updated: {format_relative_time(part.tracking_updated_at)}")
    print(f"Progress: {format_progress(timeline.progress)}")
    print()

    if not timeline.checkpoints:
        print("No tracking updates yet")
        return

    headers = ["Time", "Phase", "Update", "Location"]
    print(tabulate(make_timeline_table(timeline.visible), headers=headers, tablefmt="simple"))
    if timeline.has_more:
        print(f"({timeline.remaining_count} more updates, use --all to show)")


async def _show(args) -> int:
    viewer = make_viewer(args)
    try:
        await viewer.open(args.part_id, auto_refresh=not args.no_refresh)
    except KeyError:
        print(f"Error: Unknown part {args.part_id}")
        return 1

    if args.all:
        viewer.toggle_expanded()
    print_part(viewer, viewer.timeline(max_visible=args.max_visible))
    viewer.close()
    return 0


def cmd_show(args):
    """Show one part, looking up its tracking when stale."""
    return asyncio.run(_show(args))


# =============================================================================
# Add command
# =============================================================================


def cmd_add(args):
    """Add a new part."""
    try:
        status = Status.parse(args.status)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    part = Part(
        None,
        args.name,
        status=status,
        tracking=args.tracking or "",
        vendor=args.vendor,
        price=args.price,
    )

    print(f"Adding part to {args.parts_file}:")
    print(f"  Part:     {part.name}")
    print(f"  Status:   {part.status.label}")
    if part.vendor:
        print(f"  Vendor:   {part.vendor}")
    if part.price is not None:
        print(f"  Price:    {format_price(part.price)}")
    if part.tracking:
        print(f"  Tracking: {part.tracking}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    PartStore(args.parts_file).add(part)
    print(f"Part saved as #{part.id}.")
    return 0


# =============================================================================
# Status command
# =============================================================================


def prompt_tracking(part: Part) -> Optional[str]:
    """Ask for a tracking number on the terminal; blank skips."""
    print(f"{part.name} has no tracking number.")
    try:
        return input("Tracking number (leave blank to skip): ")
    except EOFError:
        return None


async def _status(args) -> int:
    try:
        status = Status.parse(args.status)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    if args.tracking is not None:
        capture = lambda part: args.tracking  # noqa: E731
    elif args.skip_tracking:
        capture = lambda part: None  # noqa: E731
    else:
        capture = prompt_tracking

    viewer = make_viewer(args)
    try:
        await viewer.open(args.part_id, auto_refresh=False)
    except KeyError:
        print(f"Error: Unknown part {args.part_id}")
        return 1

    old_status = viewer.part.status
    change = await viewer.change_status(status, capture)
    print(f"{change.part.name}: {old_status.label} -> {change.part.status.label}")
    if change.captured:
        print(f"Tracking: {change.part.tracking or '(skipped)'}")
    if viewer.notice:
        print(f"Note: {viewer.notice}")
    viewer.close()
    return 0


def cmd_status(args):
    """Move a part to a new status."""
    return asyncio.run(_status(args))


# =============================================================================
# Set tracking / refresh commands
# =============================================================================


async def _set_tracking(args) -> int:
    viewer = make_viewer(args)
    try:
        await viewer.open(args.part_id, auto_refresh=False)
    except KeyError:
        print(f"Error: Unknown part {args.part_id}")
        return 1

    old_tracking = viewer.part.tracking
    change = await viewer.edit_tracking(args.tracking)
    print(f"{change.part.name}: tracking {old_tracking or '-'} -> {change.part.tracking or '-'}")
    info = viewer.classification
    if info.carrier:
        print(f"Carrier: {info.carrier}")
    if change.refresh:
        print(f"Phase: {viewer.part.tracking_status or '-'}")
    if viewer.notice:
        print(f"Note: {viewer.notice}")
    viewer.close()
    return 0


def cmd_set_tracking(args):
    """Change a part's tracking value."""
    return asyncio.run(_set_tracking(args))


async def _refresh_all(args) -> int:
    store = PartStore(args.parts_file)
    client = TrackingSyncClient(store, api_url=args.api_url)
    results = await client.refresh_all(store.all())
    if not results:
        print("No shipped parts with trackable numbers.")
        return 0

    names = {p.id: p.name for p in store.all()}
    rows = []
    for part_id, result in results.items():
        if isinstance(result, TrackingSnapshot):
            outcome = result.status or "Pending"
        elif result is None:
            outcome = "skipped"
        else:
            outcome = result.message
        rows.append([str(part_id), truncate(names.get(part_id)), truncate(outcome, 50)])
    print(tabulate(rows, headers=["ID", "Part", "Result"], tablefmt="simple"))
    failed = sum(1 for r in results.values() if isinstance(r, SyncError))
    return 1 if failed else 0


async def _refresh(args) -> int:
    if args.all:
        return await _refresh_all(args)
    if args.part_id is None:
        print("Error: Give a part ID or --all")
        return 1

    viewer = make_viewer(args)
    try:
        await viewer.open(args.part_id, auto_refresh=False)
    except KeyError:
        print(f"Error: Unknown part {args.part_id}")
        return 1

    result = await viewer.refresh()
    if result is None and viewer.notice:
        print(f"Note: {viewer.notice}")
        viewer.close()
        return 1
    print_sync_result(result)
    viewer.close()
    return 0 if isinstance(result, (TrackingSnapshot, RateLimited)) else 1


def cmd_refresh(args):
    """Look up a part's tracking now."""
    return asyncio.run(_refresh(args))


# =============================================================================
# Classify command
# =============================================================================


def cmd_classify(args):
    """Show which carrier a tracking value belongs to."""
    info = classify(args.tracking)
    rows = [
        ["Carrier", info.carrier or "-"],
        ["Link", info.url or "-"],
        ["Trackable", "yes" if info.trackable else "no"],
    ]
    print(tabulate(rows, tablefmt="plain"))
    return 0


# =============================================================================
# Main
# =============================================================================


def main():
    parser = argparse.ArgumentParser(
        description="Parts and shipment tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s parts.yaml list
  %(prog)s parts.yaml list --status shipped
  %(prog)s parts.yaml show 12 --all
  %(prog)s parts.yaml add "FJ40 door seal kit" --vendor "Cruiser Corps" --price 89.95
  %(prog)s parts.yaml status 12 shipped --tracking 1Z48537W0440715302
  %(prog)s parts.yaml set-tracking 12 885304602390
  %(prog)s parts.yaml refresh 12
  %(prog)s parts.yaml refresh --all
  %(prog)s parts.yaml classify 9400111899223817334985
""",
    )
    parser.add_argument(
        "parts_file",
        type=Path,
        help="Path to parts YAML file",
    )
    parser.add_argument(
        "--api-url",
        type=str,
        help="Tracking service base URL (default: $TRACKING_API_URL)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log tracking lookups",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # List subcommand
    list_parser = subparsers.add_parser("list", help="Show parts with their status")
    list_parser.add_argument(
        "--status",
        type=str,
        help="Only show parts with this status (pending, purchased, shipped, delivered)",
    )

    # Show subcommand
    show_parser = subparsers.add_parser("show", help="Show one part and its tracking")
    show_parser.add_argument("part_id", type=int, help="Part ID")
    show_parser.add_argument(
        "--all",
        action="store_true",
        help="Show every tracking update instead of the latest few",
    )
    show_parser.add_argument(
        "--max-visible",
        type=int,
        default=3,
        help="Tracking updates shown before '--all' (default: 3)",
    )
    show_parser.add_argument(
        "--no-refresh",
        action="store_true",
        help="Show cached tracking without looking it up",
    )

    # Add subcommand
    add_parser = subparsers.add_parser("add", help="Add a new part")
    add_parser.add_argument("name", type=str, help="Part name")
    add_parser.add_argument("--vendor", type=str, help="Where the part was bought")
    add_parser.add_argument("--price", type=float, help="Price paid")
    add_parser.add_argument("--tracking", type=str, help="Tracking number or link")
    add_parser.add_argument(
        "--status",
        type=str,
        default="pending",
        help="Initial status (default: pending)",
    )
    add_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    # Status subcommand
    status_parser = subparsers.add_parser("status", help="Change a part's status")
    status_parser.add_argument("part_id", type=int, help="Part ID")
    status_parser.add_argument(
        "status",
        type=str,
        help="New status (pending, purchased, shipped, delivered)",
    )
    tracking_group = status_parser.add_mutually_exclusive_group()
    tracking_group.add_argument(
        "--tracking",
        type=str,
        help="Tracking number to use if the part has none (skips the prompt)",
    )
    tracking_group.add_argument(
        "--skip-tracking",
        action="store_true",
        help="Mark shipped without asking for a tracking number",
    )

    # Set tracking subcommand
    set_tracking_parser = subparsers.add_parser(
        "set-tracking", help="Change a part's tracking value"
    )
    set_tracking_parser.add_argument("part_id", type=int, help="Part ID")
    set_tracking_parser.add_argument(
        "tracking",
        type=str,
        help="Tracking number, tracking link, or carrier name ('' to clear)",
    )

    # Refresh subcommand
    refresh_parser = subparsers.add_parser("refresh", help="Look up tracking now")
    refresh_parser.add_argument("part_id", type=int, nargs="?", help="Part ID")
    refresh_parser.add_argument(
        "--all",
        action="store_true",
        help="Refresh every shipped part with a trackable number",
    )

    # Classify subcommand
    classify_parser = subparsers.add_parser(
        "classify", help="Show the carrier for a tracking value"
    )
    classify_parser.add_argument("tracking", type=str, help="Tracking value")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "classify":
        return cmd_classify(args)

    # Validate parts file exists
    if not args.parts_file.exists():
        if args.command != "add":
            print(f"Error: File not found: {args.parts_file}")
            return 1
        if not args.dry_run:
            create_parts_file(args.parts_file)

    # Dispatch to command handler
    if args.command == "list":
        return cmd_list(args)
    elif args.command == "show":
        return cmd_show(args)
    elif args.command == "add":
        return cmd_add(args)
    elif args.command == "status":
        return cmd_status(args)
    elif args.command == "set-tracking":
        return cmd_set_tracking(args)
    elif args.command == "refresh":
        return cmd_refresh(args)

    return 0


if __name__ == "__main__":
    sys.exit(main() or 0)
