from __future__ import annotations

import asyncio
import io
import json
from types import SimpleNamespace

import pytest

from ticket_scanner import cli
from ticket_scanner.app.dependencies import ScannerDependencies
from ticket_scanner.app.scanner_app import ScannerApp
from ticket_scanner.config.models import ScannerSettings, TimingSettings
from ticket_scanner.core.models import ErrorKind, ScanMode, ScanNotice
from ticket_scanner.exceptions import ScanSessionError

from scan_payloads import ticket_response


class FakeBackend:
    def __init__(self) -> None:
        self.validated = []
        self.checked_in = []
        self.checked_out = []
        self.closed = False

    async def validate_code(self, event_id, code):
        self.validated.append(code)
        if code == "BAD":
            return {"error": True, "status": 404, "msg": "QR code not found in the system"}
        return ticket_response(ticket_identifier=code, fullname="Sam Guest", checkedin=1)

    async def fetch_group_booking(self, event_id, code, info):
        return {"error": True, "msg": "Cannot identify purchaser for group scan"}

    async def record_check_in(self, event_id, code):
        self.checked_in.append((event_id, code))
        return {"error": False, "msg": {"message": "1 Admit(s) checked In"}, "status": 200}

    async def record_check_out(self, event_id, code):
        self.checked_out.append((event_id, code))
        return {"error": False, "msg": "1 Admit(s) checked Out", "status": 200}

    async def fetch_events(self):
        return [{"id": "E1", "title": "Spring Gala"}]

    def close(self) -> None:
        self.closed = True

    def deps(self) -> ScannerDependencies:
        return ScannerDependencies(
            validate_code=self.validate_code,
            fetch_group_booking=self.fetch_group_booking,
            record_check_in=self.record_check_in,
            record_check_out=self.record_check_out,
            fetch_events=self.fetch_events,
            close=self.close,
        )


def _settings() -> ScannerSettings:
    return ScannerSettings(
        timings=TimingSettings(validation_timeout_ms=500, emergency_resume_ms=1000, auto_resume_ms=50)
    )


async def _frames(*codes):
    for code in codes:
        yield code


def test_start_requires_event_id() -> None:
    backend = FakeBackend()
    app = ScannerApp(cli.ConsoleSink(io.StringIO()), settings=_settings(), deps=backend.deps())

    with pytest.raises(ScanSessionError):
        asyncio.run(app.start(""))


def test_start_resolves_event_name_and_marks_ready() -> None:
    backend = FakeBackend()
    app = ScannerApp(cli.ConsoleSink(io.StringIO()), settings=_settings(), deps=backend.deps())

    name = asyncio.run(app.start("E1"))

    assert name == "Spring Gala"
    assert app.orchestrator.session.is_ready is True
    assert app.orchestrator.session.event_name == "Spring Gala"


def test_console_flow_records_handoffs_and_acknowledges_errors(feedback) -> None:
    backend = FakeBackend()
    out = io.StringIO()
    sink = cli.ConsoleSink(out)
    app = ScannerApp(sink, settings=_settings(), deps=backend.deps(), feedback=feedback, mode=ScanMode.CHECK_IN)
    sink.app = app

    async def scenario():
        await app.start("E1")
        accepted = await app.consume(_frames("ABC123", "ABC123", "BAD", "XYZ"))
        app.close()
        return accepted

    accepted = asyncio.run(scenario())

    assert accepted == 3
    assert backend.validated == ["ABC123", "BAD", "XYZ"]
    assert backend.checked_in == [("E1", "ABC123"), ("E1", "XYZ")]
    assert backend.closed is True
    assert feedback.cues == ["success", "check_in_error", "success"]
    text = out.getvalue()
    assert "[check-in] Sam Guest" in text
    assert "[invalid-ticket] Invalid QR Code: QR code not found in the system" in text


def test_console_sink_acknowledges_blocking_notices_with_current_token() -> None:
    acks = []

    class _Orchestrator:
        generation = 7

        def acknowledge(self, generation=None):
            acks.append(generation)

    out = io.StringIO()
    sink = cli.ConsoleSink(out)
    sink.app = SimpleNamespace(orchestrator=_Orchestrator())

    async def scenario():
        sink.on_info(ScanNotice(kind=ErrorKind.ALREADY_SCANNED, title="Already Scanned Ticket", message="Ticket is already checked in."))
        sink.on_blocking_error(ScanNotice(kind=ErrorKind.INVALID_TICKET, title="Invalid QR Code", message="nope"))
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert acks == [7]
    assert "[already-scanned] Already Scanned Ticket" in out.getvalue()


def test_cli_main_runs_stdin_codes(tmp_path, monkeypatch, capsys) -> None:
    backend = FakeBackend()
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"timings": {"auto_resume_ms": 50}}), encoding="utf-8")

    def _app(sink, **kwargs):
        return ScannerApp(sink, deps=backend.deps(), **kwargs)

    monkeypatch.setattr(cli, "ScannerApp", _app)
    monkeypatch.setattr("sys.stdin", io.StringIO("ABC123\n\nXYZ\n"))

    code = cli.main(["--event-id", "E1", "--mode", "check-out", "--config", str(config_path), "--log-level", "WARNING"])

    assert code == 0
    assert backend.checked_out == [("E1", "ABC123"), ("E1", "XYZ")]
    assert "[check-out] Sam Guest" in capsys.readouterr().out


def test_cli_reports_configuration_errors(tmp_path, capsys) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"api": {"request_timeout_sec": -1}}), encoding="utf-8")

    assert cli.main(["--event-id", "E1", "--config", str(config_path)]) == 2
    assert "Configuration error" in capsys.readouterr().err
