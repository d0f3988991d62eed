"""Custom exception hierarchy for zeusbridge."""

from __future__ import annotations


class BridgeError(Exception):
    """Base exception for all zeusbridge errors."""


class BridgeConfigError(BridgeError):
    """Invalid or missing configuration."""


class BridgeTransportError(BridgeError):
    """Socket-level failure (connect refused, handshake, read/write error)."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class ReconnectExhaustedError(BridgeTransportError):
    """All reconnection attempts failed.

    Never raised to callers.  :class:`~zeusbridge.connection.BusConnection`
    stores it as ``last_error`` when it settles in the terminal error state,
    so status observers can tell exhaustion apart from a transient failure.
    """

    def __init__(self, message: str, *, url: str = "", attempts: int = 0) -> None:
        self.attempts = attempts
        super().__init__(message, url=url)


class BridgeNotConnectedError(BridgeError):
    """A request/response call was made while the bus is not connected.

    Fire-and-forget publishing never raises this; it is silently dropped.
    """


class BridgeServiceError(BridgeError):
    """A rosbridge service call failed, timed out or was interrupted."""

    def __init__(self, message: str, *, service: str = "") -> None:
        self.service = service
        super().__init__(message)


class BridgeTopicError(BridgeError):
    """Invalid topic usage (empty name, publishing on a subscribe channel)."""


class MalformedPayloadError(BridgeError):
    """An inbound frame or message payload could not be decoded.

    Logged and dropped by the connection and channels; it never changes
    the connection state.
    """

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)


class InvalidQrCodeError(BridgeError, ValueError):
    """Navigation target QR code is empty or not part of the known graph."""
