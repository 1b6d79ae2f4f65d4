#!/usr/bin/env python3
"""
Drive Gallery - browse, search and export a Google Drive folder tree.

Command-line front end over drivegallery.sync.Gallery. Reads GOOGLE_API_KEY
and ROOT_FOLDER_ID from the environment.
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from drivegallery import __version__
from drivegallery.config import GalleryConfig
from drivegallery.core.cancel import CancelToken, OperationCancelled
from drivegallery.core.formatting import format_size
from drivegallery.core.logging import debug_log, open_session_log
from drivegallery.core.paths import get_logs_dir, get_settings_path
from drivegallery.drive.errors import DriveApiError, ErrorKind, classify_error
from drivegallery.drive.probe import validate_folder
from drivegallery.drive.urls import preview_url
from drivegallery.sync import Gallery, GalleryNotConfigured, filter_by_name, sort_items


ERROR_TITLES = {
    ErrorKind.RATE_LIMITED: "API quota exceeded - try again in a little while",
    ErrorKind.PERMISSION_DENIED: "Access denied - is the folder shared with anyone who has the link, "
                                 "and does the API key allow this client?",
    ErrorKind.NOT_FOUND: "Not found - check the folder id and its sharing settings",
    ErrorKind.BAD_REQUEST: "The Drive API rejected the request - check the folder id",
    ErrorKind.NETWORK: "Network error - check your connection",
    ErrorKind.UNKNOWN: "Drive API error",
}


def describe_error(exc: Exception) -> str:
    """User-facing one-line description of a core error."""
    return f"{ERROR_TITLES.get(classify_error(exc), 'Error')}: {exc}"


# ============================================================================
# Commands
# ============================================================================


def cmd_check(config: GalleryConfig, args) -> int:
    missing = config.missing()
    if missing:
        print(f"Not configured. Set: {', '.join(missing)}")
        return 1
    ok, name, error = validate_folder(config.api_key, config.root_folder_id)
    if error:
        print(describe_error(error))
        return 1
    if not ok:
        print(f"{config.root_folder_id} is not a folder")
        return 1
    print(f"Root folder OK: {name}")
    return 0


async def cmd_albums(gallery: Gallery, args) -> int:
    albums = await gallery.load_albums(force=args.refresh)
    if args.query:
        albums = filter_by_name(albums, args.query)
    albums = sort_items(albums, by=args.sort, direction="desc" if args.desc else "asc")
    if args.covers:
        await gallery.resolve_covers([a.id for a in albums])
    for album in albums:
        cover = gallery.cover_url(album.id) if args.covers else None
        suffix = f"  {cover}" if cover else ""
        print(f"  {album.id}  {album.name}{suffix}")
    print(f"{len(albums)} albums")
    return 0


async def cmd_items(gallery: Gallery, args) -> int:
    items = await gallery.load_album_items(args.folder_id, force=args.refresh)
    images = [i for i in items if not i.is_folder]
    if args.query:
        images = filter_by_name(images, args.query)
    for item in sort_items(images, by=args.sort, direction="desc" if args.desc else "asc"):
        size = format_size(item.size) if item.size else ""
        print(f"  {item.id}  {item.name}  {size}")
    print(f"{len(images)} items")
    return 0


async def cmd_covers(gallery: Gallery, args) -> int:
    albums = await gallery.load_albums()
    resolved = await gallery.resolve_covers([a.id for a in albums])
    print(f"Resolved {resolved} covers ({len(gallery.covers.covers())} cached)")
    return 0


def _print_progress(label: str):
    def report(progress):
        print(f"\r  {label} {progress.done}/{progress.total}", end="", flush=True)
        if progress.finished:
            print()
    return report


async def cmd_search(gallery: Gallery, args) -> int:
    report = await gallery.build_index(force=args.rebuild, on_progress=_print_progress("Indexing"))
    if report and report.partial_failure:
        print(f"  Index incomplete: {len(report.skipped)} album(s) skipped")
        for skipped in report.skipped:
            debug_log(f"  skipped {skipped.name}: {skipped.error}")

    results = gallery.search(args.query, limit=args.limit)
    for item in results:
        print(f"  {item.album_name} / {item.name}  {preview_url(item.id)}")
    print(f"{len(results)} results ({len(gallery.index.items)} indexed)")
    return 0


async def _select_items(gallery: Gallery, args) -> list:
    """Resolve the export selection: a whole album and/or explicit file ids."""
    selection = []
    if args.album:
        items = await gallery.load_album_items(args.album)
        selection.extend(i for i in items if not i.is_folder)
    for file_id in args.file_ids:
        selection.append(await gallery.client.get(file_id))
    return selection


async def cmd_export(gallery: Gallery, args) -> int:
    selection = await _select_items(gallery, args)
    if not selection:
        print("Nothing selected")
        return 1

    cancel = CancelToken()

    def handle_interrupt(signum, frame):
        if not cancel.cancelled:
            print("\n  Cancelling export...")
        cancel.cancel()

    original_handler = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        result = await gallery.export(
            selection,
            Path(args.out),
            filename=args.name,
            cancel=cancel,
            on_file_progress=_print_progress("Fetching"),
            on_archive_progress=lambda pct: print(f"\r  Compressing {pct:.0f}%", end="", flush=True),
        )
    finally:
        signal.signal(signal.SIGINT, original_handler)

    print()
    print(f"Saved {result.path} ({result.file_count} files, {format_size(result.archive_size)}, "
          f"{result.elapsed:.1f}s)")
    return 0


async def cmd_links(gallery: Gallery, args) -> int:
    selection = await _select_items(gallery, args)
    path = gallery.export_links(selection, Path(args.out) if args.out else None)
    print(f"Wrote {len(selection)} links to {path}")
    return 0


ASYNC_COMMANDS = {
    "albums": cmd_albums,
    "items": cmd_items,
    "covers": cmd_covers,
    "search": cmd_search,
    "export": cmd_export,
    "links": cmd_links,
}


async def run_command(config: GalleryConfig, args) -> int:
    async with Gallery(config) as gallery:
        try:
            return await ASYNC_COMMANDS[args.command](gallery, args)
        except OperationCancelled:
            print("\nCancelled.")
            return 130
        except GalleryNotConfigured as e:
            print(f"{e}. Set the environment variables and try again.")
            return 1
        except DriveApiError as e:
            print(f"\n{describe_error(e)}")
            return 1


# ============================================================================
# Argument parsing
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Drive Gallery - browse, search and export a Google Drive folder tree"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("check", help="Validate the API key and root folder")

    def add_listing_options(p):
        p.add_argument("--refresh", action="store_true", help="Refetch instead of using the cache")
        p.add_argument("--query", "-q", default="", help="Filter by name")
        p.add_argument("--sort", choices=("name", "date"), default="name")
        p.add_argument("--desc", action="store_true", help="Sort descending")

    p = sub.add_parser("albums", help="List albums under the root folder")
    add_listing_options(p)
    p.add_argument("--covers", action="store_true", help="Resolve and show cover thumbnails")

    p = sub.add_parser("items", help="List the images in an album")
    p.add_argument("folder_id")
    add_listing_options(p)

    sub.add_parser("covers", help="Resolve cover thumbnails for every album")

    p = sub.add_parser("search", help="Search every album")
    p.add_argument("query")
    p.add_argument("--rebuild", action="store_true", help="Rebuild the index from scratch")
    p.add_argument("--limit", type=int, default=240)

    for name, help_text in (("export", "Download a selection as a ZIP archive"),
                            ("links", "Write download links for a selection")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("file_ids", nargs="*", help="File ids to include")
        p.add_argument("--album", help="Include every image in this album")
        if name == "export":
            p.add_argument("--out", default=".", help="Directory to save the archive in")
            p.add_argument("--name", help="Archive file name")
        else:
            p.add_argument("--out", help="Output file (default gallery-download-links.txt)")

    return parser


def main() -> int:
    """Entry point."""
    args = build_parser().parse_args()

    # Always log to <data dir>/logs/YYYY-MM-DD.log
    with open_session_log(get_logs_dir(), version=__version__):
        config = GalleryConfig.from_env(get_settings_path())
        for warning in config.warnings:
            print(f"Warning: {warning}")

        if args.command == "check":
            return cmd_check(config, args)
        return asyncio.run(run_command(config, args))


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nCancelled by user.")
        sys.exit(0)
