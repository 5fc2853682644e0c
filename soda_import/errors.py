from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from soda_import.api.base import AsyncTicket


class SodaError(Exception):
    """Base class for everything the client raises on purpose."""


class ServiceError(SodaError):
    """The service answered with a non-2xx status."""

    def __init__(self, status: int, code: str | None, message: str) -> None:
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"{status} {code or 'error'}: {message}")


class TransportFault(SodaError):
    """The request never produced an HTTP response (timeout, refused, DNS)."""

    def __init__(self, method: str, url: str, reason: str) -> None:
        self.method = method
        self.url = url
        self.reason = reason
        super().__init__(f"{method} {url} failed: {reason}")


class PollingExhausted(SodaError):
    """The service still reported the operation as pending after every attempt."""

    def __init__(self, ticket: "AsyncTicket", attempts: int) -> None:
        self.ticket = ticket
        self.attempts = attempts
        super().__init__(f"operation at {ticket.poll_location} still pending after {attempts} attempts")


class ConfigError(SodaError):
    pass
