#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
Ticket Scanner - Command line front end

Reads decoded QR payloads from stdin (one per line), runs them through the
scan pipeline for the given event and prints every outcome. Hand-offs are
recorded against the backend straight away; notices are acknowledged
automatically.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import AsyncIterator, List, Optional, Sequence, TextIO

from . import __version__
from .app.scanner_app import ScannerApp
from .config.io import load_settings
from .core.models import GroupTicket, Purchaser, ScanMode, ScanNotice
from .exceptions import BaseError, ConfigurationError
from .logging_config import cleanup_logging, setup_logging
from .utils.async_utils import run_blocking

logger = logging.getLogger(__name__)


class ConsoleSink:
    """Prints outcomes and drives the hand-off flow without an operator."""

    def __init__(self, out: Optional[TextIO] = None) -> None:
        self.out = out
        self.app: Optional[ScannerApp] = None

    def _print(self, text: str) -> None:
        print(text, file=self.out or sys.stdout, flush=True)

    def on_single_resolved(self, ticket: GroupTicket, mode: ScanMode) -> None:
        self._print(f"[{mode.value}] {ticket.name} ({ticket.ticket_type}) {ticket.qr_code}")
        if self.app is not None:
            self.app.spawn_record([ticket], mode)

    def on_group_resolved(self, relevant_tickets: Sequence[GroupTicket], purchaser: Purchaser, scanned_id: Optional[str]) -> None:
        label = purchaser.name or purchaser.email or purchaser.booking_id or "Group"
        self._print(f"[group] {label}: {len(relevant_tickets)} ticket(s) (scanned {scanned_id})")
        for ticket in relevant_tickets:
            self._print(f"  - {ticket.name} ({ticket.ticket_type}) {ticket.qr_code}")
        if self.app is not None:
            self.app.spawn_record(list(relevant_tickets), self.app.orchestrator.mode)

    def on_info(self, notice: ScanNotice) -> None:
        self._show(notice)

    def on_blocking_error(self, notice: ScanNotice) -> None:
        self._show(notice)

    def _show(self, notice: ScanNotice) -> None:
        self._print(self._format(notice))
        if notice.blocking and self.app is not None:
            orchestrator = self.app.orchestrator
            asyncio.get_running_loop().call_soon(orchestrator.acknowledge, orchestrator.generation)

    @staticmethod
    def _format(notice: ScanNotice) -> str:
        parts = [f"[{notice.kind.value}] {notice.title}: {notice.message}"]
        if notice.guest_name:
            parts.append(f"guest={notice.guest_name}")
        if notice.ticket_type:
            parts.append(f"type={notice.ticket_type}")
        if notice.checked_in_date:
            parts.append(f"at={notice.checked_in_date}")
        return " ".join(parts)


async def _read_lines(stream: TextIO) -> AsyncIterator[str]:
    while True:
        line = await run_blocking(stream.readline)
        if not line:
            return
        line = line.strip()
        if line:
            yield line


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ticket-scanner", description="Ticket Scanner - QR check-in / check-out")
    parser.add_argument("--event-id", required=True, help="Event to scan tickets for")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ScanMode],
        default=ScanMode.CHECK_IN.value,
        help="Scan mode (default: check-in)",
    )
    parser.add_argument("--config", help="Path to a JSON or YAML settings file")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


async def run_scanner(app: ScannerApp, event_id: str, stream: TextIO) -> int:
    try:
        name = await app.start(event_id)
        logger.info("Scanning for %s", name)
        accepted = await app.consume(_read_lines(stream))
        logger.info("Processed %d scan(s)", accepted)
        return 0
    finally:
        app.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)

    try:
        settings = load_settings(args.config)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    setup_logging(
        log_level=args.log_level or settings.logging.level,
        log_dir=settings.logging.log_dir,
        enable_file_logging=settings.logging.file_logging,
        structured_json=True if args.json_logs else settings.logging.json_output,
    )

    sink = ConsoleSink()
    app = ScannerApp(sink, settings=settings, mode=ScanMode(args.mode))
    sink.app = app
    try:
        return asyncio.run(run_scanner(app, args.event_id, sys.stdin))
    except BaseError as exc:
        logger.error("Scanner stopped: %s", exc, extra={"details": exc.to_dict()})
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    finally:
        cleanup_logging()


if __name__ == "__main__":
    sys.exit(main())
