# src/canvas_a11y/app.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from tqdm.auto import tqdm

from canvas_a11y.core.loop_runner import ensure_background_loop, run_on_main_loop, shutdown_background_loop
from canvas_a11y.core.managers.config_manager import config_manager
from canvas_a11y.core.utils.configure_logging import configure_from_config
from canvas_a11y.core.utils.path_utils import PathUtils
from canvas_a11y.host.json_host import DocumentLoadError, JsonDocumentHost
from detector.controllers.report_controller import SUPPORTED_FORMATS, ReportController
from detector.controllers.scan_controller import ScanSession
from detector.messages import FontSizeEditRequested, ScanMode, ScanRequested, ScanResponse
from detector.model import DetectionSettings, IssueType

logger = logging.getLogger(__name__)


def _print_summary(response: ScanResponse, reports: ReportController) -> None:
    counts = reports.count_by_type(response.issues)

    print("\n" + "=" * 60)
    print("📊 ACCESSIBILITY SUMMARY")
    print("=" * 60)
    print(f"Total Issues Found:  {sum(counts.values())}")
    print("-" * 60)
    print(f"{'ISSUE TYPE':<25} | {'SEVERITY':<10} | {'COUNT':>5}")
    print("-" * 60)
    for issue_type in IssueType:
        count = counts.get(issue_type, 0)
        if count:
            severity = reports.group_by_type(response.issues, issue_type)[0].severity.value
            print(f"{issue_type.value:<25} | {severity:<10} | {count:>5}")

    if response.undetermined:
        print("-" * 60)
        print(f"⚠️  {len(response.undetermined)} node(s) could not be fully checked:")
        for item in response.undetermined:
            print(f"  - {item.node_id}: {item.reason.value}")
    print("=" * 60 + "\n")


def _handle_scan(args: argparse.Namespace) -> int:
    try:
        host = JsonDocumentHost.from_file(args.document)
    except DocumentLoadError as e:
        print(f"❌ {e}")
        return 1

    settings = DetectionSettings.from_config()
    reports = ReportController(settings)

    pbar = None
    progress = None
    if args.progress:
        pbar = tqdm(total=len(host.document.nodes), desc="Scanning", unit="node")

        def progress(done: int, total: int) -> None:
            pbar.total = total
            pbar.n = done
            pbar.refresh()

    session = ScanSession(host.document, host, settings, progress=progress)
    print(f"🚀 Scanning '{host.document.name or args.document}' ({len(host.document.nodes)} nodes)...")
    try:
        response = run_on_main_loop(session.dispatch(ScanRequested(mode=ScanMode(args.mode))))
    finally:
        if pbar is not None:
            pbar.close()

    _print_summary(response, reports)

    if args.output or args.format:
        fmt = args.format
        if not fmt and args.output:
            fmt = Path(args.output).suffix.lstrip(".").lower() or None
        fmt = fmt or config_manager.get_nested("report.default_format", "csv")
        default_name = config_manager.get_nested("report.default_name", "accessibility-issues-report")
        target = PathUtils.resolve_output_path(args.output, f"{default_name}.{fmt}")
        try:
            written = reports.export(response.issues, target, fmt)
            print(f"✅ Report exported to: {written}")
        except (OSError, ValueError) as e:
            logger.error(f"Report export failed: {e}", exc_info=True)
            print(f"❌ Error exporting: {e}")
            return 1
    return 0


def _handle_fix_font(args: argparse.Namespace) -> int:
    try:
        host = JsonDocumentHost.from_file(args.document)
    except DocumentLoadError as e:
        print(f"❌ {e}")
        return 1

    try:
        event = FontSizeEditRequested(node_id=args.node_id, font_size=args.size)
    except ValueError as e:
        print(f"❌ Invalid font size {args.size}: {e}")
        return 1

    session = ScanSession(host.document, host, DetectionSettings.from_config())
    run_on_main_loop(session.dispatch(event))

    if not any(name == "font-size" for name, _ in host.commands):
        print(f"❌ Node '{args.node_id}' is not a text node in this document.")
        return 1

    saved = host.save(args.output)
    print(f"✅ Font size of '{args.node_id}' set to {args.size:g}px, saved to: {saved}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="canvas-a11y", description="Accessibility checks for design documents.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    subparsers = parser.add_subparsers(dest="command")

    scan_parser = subparsers.add_parser("scan", help="Scan a document export for accessibility issues")
    scan_parser.add_argument("document", help="Path to the JSON document export.")
    scan_parser.add_argument("--mode", choices=[m.value for m in ScanMode], default=ScanMode.FULL.value)
    scan_parser.add_argument("--format", choices=list(SUPPORTED_FORMATS), default=None, help="Report format.")
    scan_parser.add_argument("-o", "--output", default=None, help="Report path (relative paths land in Documents).")
    scan_parser.add_argument("--progress", action="store_true", help="Show a progress bar.")
    scan_parser.set_defaults(func=_handle_scan)

    fix_parser = subparsers.add_parser("fix-font", help="Change the font size of a text node")
    fix_parser.add_argument("document", help="Path to the JSON document export.")
    fix_parser.add_argument("node_id")
    fix_parser.add_argument("size", type=float)
    fix_parser.add_argument("-o", "--output", default=None, help="Save to this path instead of in place.")
    fix_parser.set_defaults(func=_handle_fix_font)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_from_config(verbose=args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    ensure_background_loop()
    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\n🛑 Interrupted by user.")
        return 1
    finally:
        shutdown_background_loop()


if __name__ == "__main__":
    sys.exit(main())
