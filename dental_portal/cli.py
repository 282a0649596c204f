#!/usr/bin/env python3
"""
Dental Portal command-line client.

Drives the same services as any front end: sign in, upload a scan, list the
reconciled scan table, send a scan to AI analysis, and poll an analysis.

Usage:
    dental-portal login patient@example.com
    dental-portal upload scan.dcm --destination orthanc
    dental-portal studies
    dental-portal send 12
    dental-portal refresh 9
    dental-portal show 9
"""

import argparse
import asyncio
import getpass
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dental_portal.core.config import Settings, get_settings
from dental_portal.core.dependencies import get_api_client, get_session
from dental_portal.dashboard import PatientDashboard
from dental_portal.schemas.results import Outcome
from dental_portal.schemas.upload import UploadDestination
from dental_portal.services.auth_service import AuthService
from dental_portal.utils.file_utils import format_file_size
from dental_portal.viewmodels.analysis_detail import AnalysisSummary
from dental_portal.viewmodels.reconciliation import DashboardRow, RowActionKind

RULE = "━" * 60

ACTION_LABELS = {
    RowActionKind.NONE: "-",
    RowActionKind.SEND_TO_AI: "send to AI",
    RowActionKind.REFRESH: "refresh",
    RowActionKind.VIEW_RESULTS: "view results",
}


def _print_outcome(outcome: Outcome) -> int:
    if outcome.success:
        print(f"✅ {outcome.message or 'Done'}")
        return 0
    if outcome.ignored:
        print(f"⏳ {outcome.message}")
        return 1
    print(f"❌ {outcome.message}")
    return 1


def _print_rows(rows: List[DashboardRow], settings: Settings) -> None:
    print(f"🦷 My studies ({len(rows)})")
    print(RULE)
    if not rows:
        print("  No studies yet. Upload your first CT scan.")
    for row in rows:
        study = row.study
        label, _ = study.status.badge()
        action = ACTION_LABELS[row.action.kind]
        if row.action.analysis_id is not None:
            action = f"{action} #{row.action.analysis_id}"
        created = study.created_at.strftime("%Y-%m-%d %H:%M") if study.created_at else "-"
        print(
            f"  #{study.id:<5} {study.display_name[:28]:<28} {label:<11} "
            f"{format_file_size(study.file_size):>10}  {created}  [{action}]"
        )
        viewer = study.viewer_url(settings.archive_viewer_url)
        if viewer:
            print(f"         viewer: {viewer}")
        if row.has_anomaly:
            print(f"         ⚠️  extra analyses ignored: {row.duplicate_analysis_ids}")
    print(RULE)


def _print_summary(summary: AnalysisSummary) -> None:
    print(f"📊 Analysis #{summary.analysis_id} ({summary.analysis_type or 'unknown type'})")
    print(RULE)
    print(f"  Affected teeth:      {summary.affected_tooth_count}")
    print(f"  Pathologies found:   {summary.total_pathology_count}")
    print(f"  Periodontal data:    {summary.periodontal_data_count}")
    print(f"  With comments:       {summary.commented_count}")
    for tooth in summary.teeth:
        print(f"\n  Tooth {tooth.tooth_number}")
        for finding in tooth.findings:
            model = "positive" if finding.model_positive else "negative"
            print(
                f"    attribute {finding.attribute_id}: model {model}, "
                f"{finding.decision.value.replace('_', ' ')}"
            )
        if tooth.text_comment:
            print(f"    💬 {tooth.text_comment}")
    for name, url in summary.report_links.items():
        print(f"\n  🔗 {name}: {url}")
    print(RULE)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    session = get_session(
        settings, on_unauthorized=lambda: print("🔒 Session expired. Run `dental-portal login`.")
    )

    if args.command == "logout":
        session.logout()
        print("👋 Signed out")
        return 0

    async with get_api_client(session, settings) as api:
        auth = AuthService(api, session)

        if args.command == "login":
            password = args.password or getpass.getpass("Password: ")
            outcome = await auth.login(args.email, password)
            if outcome.success:
                print(f"✅ Signed in as {outcome.value.email}")
                return 0
            return _print_outcome(outcome)

        if args.command == "me":
            outcome = await auth.me()
            if outcome.success:
                user = outcome.value
                print(f"👤 {user.first_name or ''} {user.last_name or ''} <{user.email}> ({user.role})")
                return 0
            return _print_outcome(outcome)

        dashboard = PatientDashboard(api, settings)
        try:
            if args.command == "upload":
                def show_progress(percent: int) -> None:
                    print(f"\r📤 Uploading... {percent:3d}%", end="", flush=True)

                outcome = await dashboard.upload(args.file, args.destination, show_progress)
                print()
                code = _print_outcome(outcome)
                if outcome.success and dashboard.loaded:
                    _print_rows(dashboard.rows, settings)
                return code

            outcomes = await dashboard.load()
            failed = [o for o in outcomes if not o.success]
            if failed:
                return _print_outcome(failed[0])

            if args.command == "studies":
                _print_rows(dashboard.rows, settings)
                return 0

            if args.command == "send":
                return _print_outcome(await dashboard.send_to_ai(args.study_id))

            if args.command == "refresh":
                outcome = await dashboard.refresh(args.analysis_id)
                code = _print_outcome(outcome)
                if outcome.success:
                    analysis = outcome.value
                    label, _ = analysis.status.badge()
                    print(f"  Status: {label}")
                    if analysis.error:
                        print(f"  ❌ Error: {analysis.error}")
                return code

            if args.command == "show":
                summary = dashboard.summary(args.analysis_id)
                if summary is None:
                    print(f"⏳ Analysis #{args.analysis_id} is not available or not complete yet")
                    return 1
                _print_summary(summary)
                return 0
        finally:
            dashboard.close()

    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dental-portal",
        description="Upload dental CT scans and follow their AI analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Sign in and store the session")
    login.add_argument("email")
    login.add_argument("--password", help="Prompted for when omitted")

    sub.add_parser("logout", help="Forget the stored session")
    sub.add_parser("me", help="Show the signed-in user")
    sub.add_parser("studies", help="List scans with their analysis state")

    upload = sub.add_parser("upload", help="Upload a DICOM (.dcm) file")
    upload.add_argument("file", type=Path)
    upload.add_argument(
        "--destination",
        choices=[d.value for d in UploadDestination],
        default=UploadDestination.DIAGNOCAT.value,
        help="Backend to route the scan to (default: diagnocat)",
    )

    send = sub.add_parser("send", help="Send an archived scan to AI analysis")
    send.add_argument("study_id", type=int)

    refresh = sub.add_parser("refresh", help="Poll an analysis for new results")
    refresh.add_argument("analysis_id", type=int)

    show = sub.add_parser("show", help="Summarize a completed analysis")
    show.add_argument("analysis_id", type=int)

    return parser


def log_level(verbose: bool, settings: Settings):
    """DEBUG when asked for on the command line or in settings."""
    if verbose or settings.debug:
        return logging.DEBUG
    return settings.log_level.upper()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=log_level(args.verbose, settings),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
