"""Scan pipeline core: gate, validation, classification, group lookup, orchestration."""

from .error_classifier import Classification, classify
from .group_resolver import GroupResolver, partition
from .models import ErrorKind, ScanMode, ScanNotice
from .orchestrator import ScanOrchestrator
from .scan_gate import ScanGate
from .sinks import FeedbackSink, OutcomeSink, SilentFeedback
from .state_machine import ScanState, ScanStateMachine
from .validation_client import ValidationClient

__all__ = [
    "Classification",
    "ErrorKind",
    "FeedbackSink",
    "GroupResolver",
    "OutcomeSink",
    "ScanGate",
    "ScanMode",
    "ScanNotice",
    "ScanOrchestrator",
    "ScanState",
    "ScanStateMachine",
    "SilentFeedback",
    "ValidationClient",
    "classify",
    "partition",
]
