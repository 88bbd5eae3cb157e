from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

from song_log.core.config import configure_logging, load_settings
from song_log.core.identity import DuplicateStatus, check_duplicate
from song_log.core.resolver import ResolveFailure, TrackResolver
from song_log.core.store import JsonLogStore, known_entries, new_entry


def _describe_failure(failure: ResolveFailure) -> str:
    if failure.status is not None:
        return f"{failure.message}\n(error: {failure.code}, upstream status {failure.status})"
    return f"{failure.message}\n(error: {failure.code})"


def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(description="Resolve an Apple Music share link into title / artist / track id.")
    parser.add_argument("url", help="Share link, e.g. https://music.apple.com/jp/album/...?i=1234567890")
    parser.add_argument("--log", default=None, help="Append the song to this JSON log file unless it is already there")
    parser.add_argument("--note", default="", help="Free-text note stored with the log entry")
    parser.add_argument("--tags", default="", help='Comma separated tags, e.g. "夜, 作業用"')
    parser.add_argument("--rating", type=int, default=3, help="Rating 0-5 (default: 3)")
    parser.add_argument("--env-file", default=None, help="Read settings from this .env file")
    parser.add_argument("--dry-run", action="store_true", help="Resolve and check for duplicates but don't write the log")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    args = parser.parse_args(argv)

    settings = load_settings(Path(args.env_file).expanduser() if args.env_file else None)
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    result = TrackResolver(settings).resolve(args.url)
    if isinstance(result, ResolveFailure):
        raise RuntimeError(_describe_failure(result))

    print(json.dumps(result.to_json(), ensure_ascii=False, indent=2))

    if not args.log:
        return 0

    store = JsonLogStore(Path(args.log).expanduser())
    entries = store.load()
    status = check_duplicate(result, known_entries(entries))
    if status is DuplicateStatus.DUPLICATE:
        print(f"Already logged: {result.title}", file=sys.stderr)
        return 1
    if status is DuplicateStatus.UNCERTAIN:
        print("Title and artist couldn't be read; it may already be logged.", file=sys.stderr)

    if args.dry_run:
        print(f"[dry-run] Would add to {store.path}")
        return 0

    entry = new_entry(
        title=result.title,
        artist=result.artist,
        note=args.note,
        tags=args.tags,
        rating=args.rating,
        source_url=result.source_url,
        track_id=result.track_id,
    )
    store.save([entry, *entries])
    print(f"Added to {store.path} ({len(entries) + 1} songs)")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        raise SystemExit(130)
    except Exception as exc:
        msg = str(exc).rstrip() or repr(exc)
        if "\n" in msg:
            first, rest = msg.split("\n", 1)
            print(f"ERROR: {first}", file=sys.stderr)
            print(rest, file=sys.stderr)
        else:
            print(f"ERROR: {msg}", file=sys.stderr)
        raise SystemExit(2)
