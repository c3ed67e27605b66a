"""Command line entry point for debrief.

Usage:
    debrief new --title "Weekly sync" --transcript sync.txt [--notes notes.md] [--template Stand-up]
    debrief list [--status failed]
    debrief process <meeting_id>
    debrief show <meeting_id>
    debrief export <meeting_id> [--output-dir ./output/] [--format markdown|text]
    debrief resume
    debrief run-deferred [--budget 30]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from debrief.app import App, build_app
from debrief.config import load_config
from debrief.errors import DebriefError
from debrief.models import MeetingRecord, ProcessingStatus, read_insights
from debrief.output import EXPORT_FORMATS, append_processing_log, write_meeting_export
from debrief.session import LifecycleEvent

logger = logging.getLogger("debrief")


def _read_text(path: str | None) -> str | None:
    if not path:
        return None
    return Path(path).expanduser().read_text(encoding="utf-8")


def cmd_new(app: App, args: argparse.Namespace) -> int:
    if args.template and args.template not in app.templates:
        print(f"Unknown template: {args.template} (have: {', '.join(app.templates)})", file=sys.stderr)
        return 1
    try:
        transcript = _read_text(args.transcript)
        notes = _read_text(args.notes)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    record = MeetingRecord(
        title=args.title or "",
        transcript=transcript,
        raw_notes=notes,
        template_used=args.template,
    )
    app.store.save(record)
    print(record.id)
    return 0


def cmd_list(app: App, args: argparse.Namespace) -> int:
    status = ProcessingStatus(args.status) if args.status else None
    for record in app.store.list_records(status):
        created = record.created_at.strftime("%Y-%m-%d %H:%M")
        print(f"{record.id}\t{created}\t{record.processing_status.value}\t{record.title}")
    return 0


def cmd_process(app: App, args: argparse.Namespace) -> int:
    app.sessions.session_started()
    try:
        record = app.processor.process_by_id(args.meeting_id)
    finally:
        app.events.emit(LifecycleEvent.SESSION_ENDED)
        try:
            append_processing_log(app.config.output_dir, app.store.load(args.meeting_id))
        except DebriefError as e:
            logger.debug("Not logging processing attempt: %s", e)
    print(f"✓ {record.id} {record.processing_status.value}")
    return 0


def cmd_show(app: App, args: argparse.Namespace) -> int:
    record = app.store.load(args.meeting_id)
    print(f"{record.title or 'Untitled meeting'} [{record.processing_status.value}]")
    insights = read_insights(record)
    if insights is not None and insights.executive_summary:
        print()
        print(insights.executive_summary)
    if record.processing_status == ProcessingStatus.COMPLETED and record.enhanced_notes:
        print()
        print(record.enhanced_notes)
    elif record.processing_status == ProcessingStatus.FAILED:
        print("\nProcessing failed; run `debrief process` to retry.")
    return 0


def cmd_export(app: App, args: argparse.Namespace) -> int:
    record = app.store.load(args.meeting_id)
    path = write_meeting_export(record, args.output_dir or app.config.output_dir, args.format)
    print(f"✓ Wrote {path}")
    return 0


def cmd_resume(app: App, args: argparse.Namespace) -> int:
    swept = app.sessions.on_resume()
    for record_id in swept:
        print(f"Recovered {record_id} -> {app.sessions.resume_policy.value}")
    return 0


def cmd_run_deferred(app: App, args: argparse.Namespace) -> int:
    completed = app.sessions.run_deferred(args.budget)
    print(f"✓ {completed} meeting(s) processed")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="debrief", description="Turn meeting transcripts into notes")
    parser.add_argument("--verbose", "-v", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("new", help="Create a meeting from a transcript and/or notes")
    p.add_argument("--title", default="")
    p.add_argument("--transcript", help="Path to transcript text file")
    p.add_argument("--notes", help="Path to user notes file")
    p.add_argument("--template", help="Note template name")
    p.set_defaults(func=cmd_new)

    p = sub.add_parser("list", help="List meetings")
    p.add_argument("--status", choices=[s.value for s in ProcessingStatus])
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("process", help="Extract notes for a meeting")
    p.add_argument("meeting_id")
    p.set_defaults(func=cmd_process)

    p = sub.add_parser("show", help="Print a meeting's notes")
    p.add_argument("meeting_id")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("export", help="Write a meeting to markdown")
    p.add_argument("meeting_id")
    p.add_argument("--output-dir")
    p.add_argument("--format", choices=EXPORT_FORMATS, default="markdown")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("resume", help="Recover meetings left processing by a previous run")
    p.set_defaults(func=cmd_resume)

    p = sub.add_parser("run-deferred", help="Process pending meetings within a time budget")
    p.add_argument("--budget", type=float, default=None, help="Seconds (default: DEFERRED_BUDGET)")
    p.set_defaults(func=cmd_run_deferred)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config()

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or config.verbose) else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    app = build_app(config)
    try:
        return args.func(app, args)
    except DebriefError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
