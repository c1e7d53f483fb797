"""Identification domain: streamed requests, event reconciliation and result mapping."""

from birdscope.identification.client import IdentificationClient
from birdscope.identification.errors import (
    FailureKind,
    IdentificationError,
    classify_failure,
    describe_failure,
)
from birdscope.identification.models import BirdMedia, CandidateRecord, StreamEvent
from birdscope.identification.reconciler import (
    IdentificationState,
    StreamOutcome,
    StreamReconciler,
)

__all__ = [
    "BirdMedia",
    "CandidateRecord",
    "FailureKind",
    "IdentificationClient",
    "IdentificationError",
    "IdentificationState",
    "StreamEvent",
    "StreamOutcome",
    "StreamReconciler",
    "classify_failure",
    "describe_failure",
]
