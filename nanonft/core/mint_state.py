"""
Mint workflow state.

The mint flow is a small finite-state machine. `MintState` is immutable and
`transition(state, event)` returns the next state or raises
InvalidTransitionError, so the orchestrator never juggles loose flags.

    Idle -> ImageReady -> Uploading -> Minting -> Submitted
                              \\            \\
                               +-> Failed <-+
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Union

from nanonft.core.models import GenerationResult, TransactionRecord
from nanonft.exceptions import Failure, InvalidTransitionError


class MintPhase(str, Enum):
    IDLE = "idle"
    IMAGE_READY = "image_ready"
    UPLOADING = "uploading"
    MINTING = "minting"
    SUBMITTED = "submitted"
    FAILED = "failed"


@dataclass(frozen=True)
class MintState:
    phase: MintPhase = MintPhase.IDLE
    generation: Optional[GenerationResult] = None
    image_uri: Optional[str] = None
    token_uri: Optional[str] = None
    is_free: Optional[bool] = None
    transaction: Optional[TransactionRecord] = None
    failure: Optional[Failure] = None

    @property
    def in_flight(self) -> bool:
        return self.phase in (MintPhase.UPLOADING, MintPhase.MINTING)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "prompt": self.generation.prompt if self.generation else None,
            "imageUri": self.image_uri,
            "tokenUri": self.token_uri,
            "isFree": self.is_free,
            "txHash": self.transaction.hash if self.transaction else None,
            "error": self.failure.to_dict() if self.failure else None,
        }


@dataclass(frozen=True)
class ImageGenerated:
    result: GenerationResult


@dataclass(frozen=True)
class MintRequested:
    pass


@dataclass(frozen=True)
class UploadsCompleted:
    image_uri: str
    token_uri: str


@dataclass(frozen=True)
class QuotaResolved:
    is_free: bool


@dataclass(frozen=True)
class TransactionConfirmed:
    record: TransactionRecord


@dataclass(frozen=True)
class MintFailed:
    failure: Failure


@dataclass(frozen=True)
class Reset:
    pass


MintEvent = Union[
    ImageGenerated, MintRequested, UploadsCompleted, QuotaResolved, TransactionConfirmed, MintFailed, Reset
]


def transition(state: MintState, event: MintEvent) -> MintState:
    """Apply one event to a mint state."""
    phase = state.phase

    if isinstance(event, Reset):
        if state.in_flight:
            raise _invalid(state, event)
        return MintState()

    if isinstance(event, ImageGenerated):
        if state.in_flight:
            raise _invalid(state, event)
        return MintState(phase=MintPhase.IMAGE_READY, generation=event.result)

    if isinstance(event, MintRequested):
        # Re-initiating from Failed is the user's retry; nothing retries on its own
        if phase in (MintPhase.IMAGE_READY, MintPhase.FAILED) and state.generation is not None:
            return MintState(phase=MintPhase.UPLOADING, generation=state.generation)
        raise _invalid(state, event)

    if isinstance(event, UploadsCompleted):
        if phase is MintPhase.UPLOADING:
            return replace(state, phase=MintPhase.MINTING, image_uri=event.image_uri, token_uri=event.token_uri)
        raise _invalid(state, event)

    if isinstance(event, QuotaResolved):
        if phase is MintPhase.MINTING:
            return replace(state, is_free=event.is_free)
        raise _invalid(state, event)

    if isinstance(event, TransactionConfirmed):
        if phase is MintPhase.MINTING:
            return replace(state, phase=MintPhase.SUBMITTED, transaction=event.record)
        raise _invalid(state, event)

    if isinstance(event, MintFailed):
        if state.in_flight:
            return replace(state, phase=MintPhase.FAILED, failure=event.failure)
        raise _invalid(state, event)

    raise TypeError(f"Unknown mint event: {event!r}")


def _invalid(state: MintState, event: MintEvent) -> InvalidTransitionError:
    return InvalidTransitionError(state.phase.value, type(event).__name__)
