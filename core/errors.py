# =============================================================================
# core/errors.py  -  Error Taxonomy
# =============================================================================
#
# Adapters RAISE these.  The Dispatcher and Resource Reader are the only
# places that catch them; they collapse every one into a Failure outcome.
#
#   NotConfiguredError     credential absent        never retried
#   TransientError         network / timeout / 5xx  retried, then surfaced
#   UpstreamLogicalError   "not found", API error   never retried
#   MalformedPayloadError  unexpected shape         never retried
#
# None of them is ever cached.
# =============================================================================

from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable failure category carried on every Failure."""

    NOT_CONFIGURED = "not_configured"
    TRANSIENT = "transient"
    UPSTREAM_LOGICAL = "upstream_logical"
    MALFORMED = "malformed"

    # Raised by the dispatch/resource layer itself, not by adapters.
    NOT_CACHED = "not_cached"
    UNKNOWN_OPERATION = "unknown_operation"
    UNKNOWN_RESOURCE = "unknown_resource"
    INVALID_ARGUMENT = "invalid_argument"
    INTERNAL = "internal"


class ConfigError(Exception):
    """Startup configuration is malformed."""


class ProviderError(Exception):
    """Base class for every failure an upstream adapter can report."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, provider: str = "unknown"):
        super().__init__(message)
        self.message = message
        self.provider = provider

    def __str__(self) -> str:
        return self.message


class NotConfiguredError(ProviderError):
    kind = ErrorKind.NOT_CONFIGURED


class TransientError(ProviderError):
    kind = ErrorKind.TRANSIENT


class UpstreamLogicalError(ProviderError):
    kind = ErrorKind.UPSTREAM_LOGICAL


class MalformedPayloadError(ProviderError):
    kind = ErrorKind.MALFORMED
