import pytest

from ticket_scanner.core.error_classifier import classify, rules_for
from ticket_scanner.core.models import ErrorKind, Rejected, ScanMode


def _rejected(status: int, message: str) -> Rejected:
    return Rejected(status_code=status, raw_message=message)


@pytest.mark.parametrize(
    "status,message",
    [
        (409, "Ticket already checked in"),
        (400, "Bad request"),
        (200, "Already Scanned Ticket, Cannot check in."),
    ],
)
def test_check_in_already_scanned(status, message):
    verdict = classify(ScanMode.CHECK_IN, _rejected(status, message))
    assert verdict.kind is ErrorKind.ALREADY_SCANNED
    assert verdict.rule == "already-checked-in"


def test_check_in_invalid_ticket():
    assert classify(ScanMode.CHECK_IN, _rejected(404, "QR code not found in the system")).kind is ErrorKind.INVALID_TICKET
    assert classify(ScanMode.CHECK_IN, _rejected(422, "Ticket EXPIRED")).kind is ErrorKind.INVALID_TICKET


def test_check_in_unmatched_rejection_proceeds():
    verdict = classify(ScanMode.CHECK_IN, _rejected(500, "Server hiccup"))
    assert verdict.proceed is True
    assert verdict.rule == "check-in-fallback"


def test_check_out_not_checked_in_wins_over_status():
    verdict = classify(ScanMode.CHECK_OUT, _rejected(409, "Ticket not checked in"))
    assert verdict.kind is ErrorKind.NOT_CHECKED_IN


def test_check_out_already_checked_in_proceeds():
    verdict = classify(ScanMode.CHECK_OUT, _rejected(409, "Ticket already checked in"))
    assert verdict.proceed is True
    assert verdict.rule == "checked-in-as-expected"


def test_check_out_unmatched_rejection_is_invalid():
    verdict = classify(ScanMode.CHECK_OUT, _rejected(404, "This ticket has not been used yet."))
    assert verdict.kind is ErrorKind.INVALID_TICKET
    assert verdict.rule == "check-out-fallback"


def test_classification_is_deterministic():
    rejected = _rejected(409, "Ticket already checked in")
    verdicts = {classify(ScanMode.CHECK_IN, rejected) for _ in range(5)}
    assert len(verdicts) == 1


def test_rules_are_ordered_per_mode():
    assert [rule.name for rule in rules_for(ScanMode.CHECK_IN)] == ["already-checked-in", "invalid-ticket"]
    assert [rule.name for rule in rules_for(ScanMode.CHECK_OUT)] == ["not-checked-in", "checked-in-as-expected"]
