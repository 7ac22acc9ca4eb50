"""Command-line entry point for pastoral care casework."""

from __future__ import annotations

import argparse
from contextlib import closing
from pathlib import Path

from pastoral_care.casework import CaseworkService, classify_due
from pastoral_care.casework.messaging import render_template
from pastoral_care.casework.reasons import reason_label
from pastoral_care.core import AppSettings, configure_logging, load_app_settings
from pastoral_care.core.interfaces import CaseworkError
from pastoral_care.core.models import CaseView, QueueItem
from pastoral_care.storage import build_repository, bundled_seed_path


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Pastoral care casework")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="info",
        choices=["info", "queue", "case", "note", "close", "intake", "forward", "seed"],
        help="Operation to execute.",
    )
    parser.add_argument(
        "--filter",
        dest="queue_filter",
        choices=["all", "today", "overdue"],
        default=None,
        help="Queue filter (default: the configured default filter).",
    )
    parser.add_argument(
        "--advisor",
        default=None,
        help="Show the queue for this advisor id instead of the triage queue.",
    )
    parser.add_argument("--case-id", dest="case_id", default=None, help="Case id.")
    parser.add_argument("--author", default=None, help="Author id for a note.")
    parser.add_argument("--content", default=None, help="Note text.")
    parser.add_argument(
        "--follow-up",
        dest="follow_up",
        default=None,
        help="Follow-up date (YYYY-MM-DD) to set with a note.",
    )
    parser.add_argument(
        "--student-email", dest="student_email", default=None, help="Intake student email."
    )
    parser.add_argument(
        "--lecturer", default=None, help="Lecturer raising an intake concern."
    )
    parser.add_argument("--summary", default=None, help="Intake concern summary.")
    parser.add_argument(
        "--seed-from",
        dest="seed_from",
        type=Path,
        default=None,
        help="Seed document for the seed command (default: bundled sample).",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> None:
    """Execute the requested CLI command."""
    command = args.command
    if command == "info":
        print("Pastoral care casework is ready.")
        print(f"Storage backend: {settings.storage.backend}")
        location = (
            settings.storage.db_path
            if settings.storage.backend == "sqlite"
            else settings.storage.json_path
        )
        print(f"Document store: {location}")
        return
    if command == "seed":
        _run_seed(settings, args.seed_from)
        return

    with closing(build_repository(settings.storage)) as repository:
        service = CaseworkService(repository, coordinator=settings.coordinator)
        if command == "queue":
            _run_queue(
                service,
                mode=args.queue_filter or settings.queue.default_filter,
                advisor_id=args.advisor,
            )
        elif command == "case":
            _print_case(service.get_case(_require(args.case_id, "--case-id")))
        elif command == "note":
            view = service.add_note(
                _require(args.case_id, "--case-id"),
                author_id=args.author,
                content=args.content,
                follow_up_date=args.follow_up,
            )
            print(f"Added note to {view.id}.")
            _print_case(view)
        elif command == "close":
            view = service.close_case(_require(args.case_id, "--case-id"))
            print(f"Closed case {view.id}.")
        elif command == "intake":
            record = service.submit_intake(
                student_email=args.student_email,
                summary=args.summary,
                lecturer_name=args.lecturer,
            )
            print(f"Recorded intake {record.id} for {record.student_email}.")
        elif command == "forward":
            template = service.build_forward_template(_require(args.case_id, "--case-id"))
            print(f"To: {template.to}")
            if template.cc:
                print(f"Cc: {', '.join(template.cc)}")
            print(render_template(template))


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    try:
        execute(args, settings)
    except CaseworkError as exc:
        print(f"Error: {exc}")
        raise SystemExit(1) from exc


def _require(value: str | None, flag: str) -> str:
    if not value:
        raise SystemExit(f"{flag} is required for this command")
    return value


def _run_seed(settings: AppSettings, seed_from: Path | None) -> None:
    """Store the seed document when the store is still empty."""
    storage = settings.storage.model_copy(
        update={"seed_path": seed_from or settings.storage.seed_path or bundled_seed_path()}
    )
    with closing(build_repository(storage)) as repository:
        document = repository.load()
        if document.revision > 0:
            print(f"Store already holds a document (revision {document.revision}).")
            return
        repository.save(document)
    print(f"Seeded {len(document.cases)} case(s) from {storage.seed_path}.")


def _run_queue(service: CaseworkService, *, mode: str, advisor_id: str | None) -> None:
    """Print a triage or advisor queue."""
    if advisor_id:
        dashboard = service.get_advisor_queue(advisor_id, mode)
        queue: tuple[QueueItem, ...] = dashboard.queue
        summary = dashboard.summary
        title = f"Queue for {advisor_id}"
    else:
        triage = service.get_triage_queue(mode)
        queue = triage.queue
        summary = triage.summary
        title = "Triage queue"

    print(
        f"{title} [{mode}]: {len(queue)} shown, "
        f"{summary.due_today} due today, {summary.overdue} overdue"
    )
    if not queue:
        print("Nothing in this queue.")
        return
    header = f"{'Case':<10}  {'Due':<22}  {'Status':<11}  {'Student':<20}  Reasons"
    print(header)
    print("-" * len(header))
    for item in queue:
        reasons = ", ".join(reason_label(code) for code in item.reasons) or "-"
        print(
            f"{item.id:<10}  {item.next_action_due or '-':<22}  "
            f"{classify_due(item.next_action_due).value:<11}  "
            f"{item.student_name or '(unknown)':<20}  {reasons}"
        )


def _print_case(view: CaseView) -> None:
    student = view.student.name if view.student else "(unknown student)"
    advisor = view.advisor.name if view.advisor else "(no advisor)"
    print(f"{view.id} [{view.status}] {student} - advisor {advisor}")
    print(f"Next action due: {view.next_action_due or 'Not set'}")
    print(f"Case alias: {view.email_alias or 'Not set'}")
    for entry in view.timeline:
        print(f"  {entry.timestamp}  {entry.title:<16}  {entry.author_name}: {entry.summary}")


if __name__ == "__main__":
    main()
