from ticket_scanner.core.state_machine import ScanState, ScanStateMachine


def test_scan_state_machine_happy_path():
    fsm = ScanStateMachine()
    assert fsm.state == ScanState.IDLE
    assert fsm.transition(ScanState.GATED) is True
    assert fsm.transition(ScanState.VALIDATING) is True
    assert fsm.transition(ScanState.RESOLVED) is True
    assert fsm.transition(ScanState.IDLE) is True


def test_scan_state_machine_rejects_skipped_steps():
    fsm = ScanStateMachine()
    assert fsm.transition(ScanState.VALIDATING) is False
    assert fsm.state == ScanState.IDLE

    fsm.transition(ScanState.GATED)
    fsm.transition(ScanState.VALIDATING)
    fsm.transition(ScanState.GROUP_PENDING)
    assert fsm.can_transition(ScanState.RESOLVED) is False


def test_scan_state_machine_reset_forces_idle():
    fsm = ScanStateMachine(state=ScanState.GROUP_PENDING)
    fsm.reset()
    assert fsm.state == ScanState.IDLE
