"""Custom exception hierarchy for trackhub."""

from __future__ import annotations


class TrackHubError(Exception):
    """Base exception for all trackhub errors."""


class ConfigError(TrackHubError):
    """Invalid or missing configuration."""


class TransportError(TrackHubError):
    """HTTP-level failure (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        service: str = "",
    ) -> None:
        self.status_code = status_code
        self.service = service
        super().__init__(message)


class DecodeError(TrackHubError):
    """Response body could not be decoded or parsed.

    Raised independently of the record store's own status code, e.g. when
    the payload is not valid text in the configured encoding, is not JSON,
    or a query row does not match its column list.
    """

    def __init__(self, message: str, *, service: str = "") -> None:
        self.service = service
        super().__init__(message)


class RemoteServiceError(TrackHubError):
    """The record store answered with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status: str = "",
        service: str = "",
    ) -> None:
        self.status = status
        self.service = service
        super().__init__(message)


class AuthenticationError(RemoteServiceError):
    """Login rejected, or no session token after login."""


class SessionExpiredError(AuthenticationError):
    """Session token rejected by the record store.

    The gateway recovers from one of these per call by logging in again
    and repeating the request.  A second rejection escalates to the caller.
    """


class ProviderError(TrackHubError):
    """A telemetry provider could not be queried."""

    def __init__(
        self,
        message: str,
        *,
        provider: str = "",
        status_code: int | None = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        super().__init__(message)
