from __future__ import annotations

import sys
import time
from typing import Callable

from loguru import logger

from soda_import.config import DEFAULT_MAX_RETRIES
from soda_import.errors import PollingExhausted

from .base import AsyncTicket, Failed, Outcome, Pending, Ready, ResponseDecoder, T
from .transport import TransportClient

# Budget for callers that are prepared to wait for as long as the service keeps working.
UNBOUNDED_ATTEMPTS = sys.maxsize


class LongRunningResolver:
    """Polls a deferred operation until it completes, fails or runs out of attempts.

    Attempts, not wall-clock time, bound the loop: the delay between polls is
    whatever the service suggested in its latest ticket.
    """

    def __init__(
        self,
        transport: TransportClient,
        default_attempts: int = DEFAULT_MAX_RETRIES,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if default_attempts < 1:
            raise ValueError("default_attempts must be at least 1")
        self.transport = transport
        self.default_attempts = default_attempts
        self._sleep = sleep

    def resolve(self, ticket: AsyncTicket, max_attempts: int, decode: ResponseDecoder[T]) -> T:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        attempts = 0
        while attempts < max_attempts:
            self._sleep(ticket.retry_delay)
            outcome = self.transport.get(ticket.poll_location, decode)
            attempts += 1

            if isinstance(outcome, Ready):
                logger.debug("Deferred operation finished", location=ticket.poll_location, attempts=attempts)
                return outcome.value
            if isinstance(outcome, Failed):
                raise outcome.error
            if isinstance(outcome, Pending):
                ticket = outcome.ticket
                logger.debug(
                    "Operation still pending",
                    location=ticket.poll_location,
                    retryDelay=ticket.retry_delay,
                    attempt=attempts,
                )
                continue
            raise TypeError(f"unexpected transport outcome: {outcome!r}")

        logger.warning("Gave up polling deferred operation", location=ticket.poll_location, attempts=attempts)
        raise PollingExhausted(ticket, attempts)

    def settle(self, outcome: Outcome[T], decode: ResponseDecoder[T], max_attempts: int | None = None) -> T:
        """Unwrap the outcome of a first call, polling only if the service deferred it."""
        if isinstance(outcome, Ready):
            return outcome.value
        if isinstance(outcome, Failed):
            raise outcome.error
        if isinstance(outcome, Pending):
            logger.info(
                "Service deferred the request, polling",
                location=outcome.ticket.poll_location,
                retryDelay=outcome.ticket.retry_delay,
            )
            return self.resolve(outcome.ticket, max_attempts or self.default_attempts, decode)
        raise TypeError(f"unexpected transport outcome: {outcome!r}")
