"""
Domain-specific errors for the market data gateway.

All errors raised from the domain layer must be defined here.
These are mapped to HTTP responses at the interface layer, or recovered
locally by best-effort callers (fan-out branches, cache refreshes,
candidate models).
No framework imports allowed.
"""

from typing import Any


class GatewayDomainError(Exception):
    """Base error for all gateway domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class MissingParameterError(GatewayDomainError):
    """Raised when a required request parameter is absent or blank."""

    def __init__(self, parameter: str, hint: str | None = None) -> None:
        super().__init__(hint or f"Missing ?{parameter}")
        self.parameter = parameter


class UnknownResourceError(GatewayDomainError):
    """Raised when a data resource is not in the forwarding catalogue."""

    def __init__(self, resource: str) -> None:
        super().__init__(f"Unknown data resource: {resource}")
        self.resource = resource


class ProviderNotConfiguredError(GatewayDomainError):
    """Raised when an upstream provider has no API key configured."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Server missing {provider} API key")
        self.provider = provider


class UpstreamError(GatewayDomainError):
    """Base error for transport-level failures talking to an upstream."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class UpstreamTimeoutError(UpstreamError):
    """Raised when an outbound call exceeds its deadline."""

    def __init__(self, url: str, deadline: float) -> None:
        super().__init__(f"Upstream request timed out after {deadline:g}s", url)
        self.deadline = deadline


class UpstreamTransportError(UpstreamError):
    """Raised on DNS, connection, TLS or protocol failures."""

    def __init__(self, url: str, detail: str) -> None:
        super().__init__(f"Upstream transport failure: {detail}", url)
        self.detail = detail


class UpstreamUnavailableError(GatewayDomainError):
    """Raised when an upstream answered, but not with a usable payload.

    Carries the response envelope that would have been sent to the
    caller so that a cache with no previous entry can relay it as-is.
    """

    def __init__(self, envelope: Any) -> None:
        super().__init__("Upstream did not return a usable payload")
        self.envelope = envelope


class CompletionError(GatewayDomainError):
    """Base error for the completion client."""

    def __init__(self, message: str, attempts: tuple = ()) -> None:
        super().__init__(message)
        self.attempts = attempts


class CompletionExhaustedError(CompletionError):
    """Raised when every candidate model failed or was rejected."""

    def __init__(self, attempts: tuple) -> None:
        super().__init__(
            f"No candidate model succeeded after {len(attempts)} attempt(s)",
            attempts,
        )


class CompletionRejectedError(CompletionError):
    """Raised on a non-model-specific failure (auth, quota, 5xx)."""

    def __init__(self, status: int, detail: str, attempts: tuple) -> None:
        super().__init__(f"Completion provider rejected request ({status})", attempts)
        self.status = status
        self.detail = detail


class ExtractionError(GatewayDomainError):
    """Raised when model output cannot be coerced into the expected JSON shape."""

    def __init__(self, expected: str) -> None:
        super().__init__(f"Could not extract a JSON {expected} from model output")
        self.expected = expected
