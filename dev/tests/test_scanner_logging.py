import json
import logging
import sys

from ticket_scanner.logging_config import (
    FastFormatter,
    JsonFormatter,
    _parse_size_string,
    cleanup_logging,
    get_logger,
    setup_logging,
)


def _record(level=logging.INFO, msg="hello", exc_info=None):
    return logging.LogRecord(
        name="ticket_scanner.test",
        level=level,
        pathname=__file__,
        lineno=123,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


def test_json_formatter_outputs_expected_fields():
    payload = json.loads(JsonFormatter().format(_record()))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "ticket_scanner.test"
    assert payload["message"] == "hello"
    assert payload["pathname"] == __file__
    assert payload["lineno"] == 123
    assert "timestamp" in payload
    assert "thread" in payload
    assert "process" in payload


def test_json_formatter_includes_exc_info():
    try:
        raise ValueError("boom")
    except Exception:
        record = _record(logging.ERROR, "failed", sys.exc_info())

    payload = json.loads(JsonFormatter().format(record))
    assert "ValueError" in payload["exc_info"]


def test_fast_formatter_colors_only_when_enabled():
    plain = FastFormatter().format(_record(logging.WARNING, "careful"))
    colored = FastFormatter(enable_colors=True).format(_record(logging.WARNING, "careful"))

    assert "WARNING" in plain and "careful" in plain
    assert "\033[" not in plain
    assert colored.startswith("\033[93m")


def test_setup_logging_writes_rotating_files(tmp_path):
    try:
        info = setup_logging(
            log_level="DEBUG",
            log_dir=str(tmp_path),
            enable_file_logging=True,
            enable_console_logging=False,
            structured_json=True,
        )
        get_logger("tests").warning("scanner warning")
        for handler in info["handlers"].values():
            handler.flush()
    finally:
        cleanup_logging()

    assert set(info["handlers"]) == {"main_file", "error_file"}
    lines = (tmp_path / "errors.log").read_text(encoding="utf-8").splitlines()
    assert json.loads(lines[-1])["message"] == "scanner warning"
    assert (tmp_path / "scanner.log").exists()


def test_parse_size_string():
    assert _parse_size_string("10MB") == 10 * 1024 * 1024
    assert _parse_size_string("512kb") == 512 * 1024
    assert _parse_size_string("2048") == 2048
    assert _parse_size_string("lots") == 10 * 1024 * 1024
