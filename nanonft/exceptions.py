"""
Custom Exception Classes

This module defines the failure taxonomy shared by the generation, storage,
contract and mint components, and the exceptions that carry it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class FailureKind(str, Enum):
    """Failure categories surfaced to callers and HTTP clients."""

    INVALID_INPUT = "invalid_input"
    AUTH = "auth"
    QUOTA_EXCEEDED = "quota_exceeded"
    SAFETY_REJECTED = "safety_rejected"
    UPSTREAM_ERROR = "upstream_error"
    NO_CANDIDATES = "no_candidates"
    MALFORMED_RESPONSE = "malformed_response"
    NO_IMAGE = "no_image"
    FETCH_ERROR = "fetch_error"
    PARSE_ERROR = "parse_error"
    INVALID_LOCATOR = "invalid_locator"
    UPLOAD_ERROR = "upload_error"
    TIMEOUT = "timeout"
    TRANSACTION_ERROR = "transaction_error"
    MISSING_HASH = "missing_hash"
    CONFIGURATION = "configuration"


@dataclass(frozen=True)
class Failure:
    """A reported failure: what went wrong and a user-facing message."""

    kind: FailureKind
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.details}


class NanoNFTBaseException(Exception):
    """Base exception for the NanoNFT application."""

    pass


class NanoNFTError(NanoNFTBaseException):
    """An error that belongs to the failure taxonomy."""

    default_kind = FailureKind.UPSTREAM_ERROR

    def __init__(
        self,
        message: str,
        kind: Optional[FailureKind] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.details = details or {}

    @property
    def failure(self) -> Failure:
        return Failure(kind=self.kind, message=self.message, details=dict(self.details))


class GenerationError(NanoNFTError):
    """Raised when an image cannot be generated from a prompt."""

    pass


class UploadError(NanoNFTError):
    """Raised for failures at the content-addressed storage boundary."""

    default_kind = FailureKind.UPLOAD_ERROR


class MintError(NanoNFTError):
    """Raised when the mint transaction cannot be completed."""

    default_kind = FailureKind.TRANSACTION_ERROR


class ConfigurationError(NanoNFTError):
    """Raised for configuration problems."""

    default_kind = FailureKind.CONFIGURATION


class InvalidTransitionError(NanoNFTBaseException):
    """Raised when a mint state receives an event it cannot accept."""

    def __init__(self, phase: str, event: str):
        self.phase = phase
        self.event = event
        super().__init__(f"Cannot apply {event} while in {phase} state")


class MintInProgressError(NanoNFTBaseException):
    """Raised when a mint is requested while another one is in flight."""

    pass
