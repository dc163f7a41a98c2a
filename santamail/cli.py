from __future__ import annotations

import argparse
import random
from typing import List, Optional

from loguru import logger

from santamail import __version__
from santamail.core.config import Settings, load_mail_settings, load_settings
from santamail.core.logging import setup_logging
from santamail.services.dispatch import DispatchReport, dispatch
from santamail.services.matching import generate_matches
from santamail.services.participants import DEFAULT_INPUT_PATH, InputError, load_participants
from santamail.services.templates import TemplateError, load_template
from santamail.services.transport import (
    MailTransport,
    PreviewTransport,
    SmtpTransport,
    TransportUnavailableError,
)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="santamail",
        description="Generates secret santa matches and notifies the participants by email.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="draw matches and email every giver")
    run.add_argument("path", nargs="?", help=f"participants JSON file (default: {DEFAULT_INPUT_PATH})")
    run.add_argument("--file", dest="file", help="participants JSON file, same as the positional path")
    run.add_argument("--template", help="email template (.html, .j2 or .txt)")
    run.add_argument("--subject", help="email subject line")
    run.add_argument("--seed", type=int, help="seed the shuffle for a reproducible draw")
    run.add_argument(
        "--dry-run",
        action="store_true",
        help="print the emails instead of sending them",
    )
    return parser


def _resolve_input_path(args: argparse.Namespace) -> str:
    if args.path and args.file and args.path != args.file:
        raise InputError("Pass the participants file either as a path or with --file, not both.")
    return args.file or args.path or DEFAULT_INPUT_PATH


def _build_transport(args: argparse.Namespace) -> MailTransport:
    if args.dry_run:
        return PreviewTransport()
    return SmtpTransport(load_mail_settings())


def _log_report(report: DispatchReport) -> None:
    if report.ok:
        logger.info("All {count} participants notified", count=report.succeeded)
        return
    logger.warning(
        "{failed} of {total} notifications failed",
        failed=len(report.failed),
        total=report.attempted,
    )
    for failure in report.failed:
        logger.bind(giver=failure.assignment.giver.email).warning(
            "{name}: {reason}", name=failure.assignment.giver.name, reason=failure.reason
        )


def run_command(args: argparse.Namespace, settings: Settings) -> int:
    try:
        participants = load_participants(_resolve_input_path(args))
        template = load_template(args.template)
        transport = _build_transport(args)
    except (InputError, TemplateError) as exc:
        logger.error("{error}", error=str(exc))
        return EXIT_FATAL
    except ValueError as exc:
        logger.error("Invalid configuration: {error}", error=str(exc))
        return EXIT_FATAL

    if len(participants) == 1:
        logger.warning("Only one participant; they will be matched with themselves.")

    shuffle = random.Random(args.seed).shuffle if args.seed is not None else None
    assignments = generate_matches(participants, shuffle=shuffle)

    try:
        report = dispatch(
            assignments,
            template,
            transport,
            subject=args.subject or settings.email_subject,
        )
    except TransportUnavailableError as exc:
        logger.error("Mail transport unavailable: {error}", error=str(exc))
        return EXIT_FATAL

    _log_report(report)
    return EXIT_OK if report.ok else EXIT_PARTIAL


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = load_settings()
    setup_logging(settings.log_level, settings.log_path)

    return run_command(args, settings)
