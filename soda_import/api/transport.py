from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import requests
from loguru import logger

from soda_import.config import USER_AGENT, Settings
from soda_import.errors import ServiceError, TransportFault

from .base import AsyncTicket, Failed, Outcome, Pending, Ready, ResponseDecoder, T

JSON_TYPE = "application/json"
CSV_TYPE = "text/csv"
FORM_TYPE = "application/x-www-form-urlencoded"


def with_params(url: str, **params: Any) -> str:
    """Set query parameters on ``url``.

    Parameters already on the URL are kept unless they are being set again,
    in which case the new value replaces them.
    """
    parsed = urlparse(url)
    query = [(key, value) for key, value in parse_qsl(parsed.query, keep_blank_values=True) if key not in params]
    query.extend((key, str(value)) for key, value in params.items() if value is not None)
    return urlunparse(parsed._replace(query=urlencode(query)))


class TransportClient:
    """Issues HTTP calls and classifies every answer as Ready, Pending or Failed.

    Each call goes through ``requests.request`` directly; there is no shared
    session, so independent operations never share connection state.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def get(self, url: str, decode: ResponseDecoder[T], params: Optional[Dict[str, Any]] = None) -> Outcome[T]:
        return self._send("GET", url, decode, params=params)

    def post_json(self, url: str, payload: Any, decode: ResponseDecoder[T]) -> Outcome[T]:
        return self._send("POST", url, decode, json=payload, headers={"Content-Type": JSON_TYPE})

    def put_json(self, url: str, payload: Any, decode: ResponseDecoder[T]) -> Outcome[T]:
        return self._send("PUT", url, decode, json=payload, headers={"Content-Type": JSON_TYPE})

    def delete(self, url: str, decode: ResponseDecoder[T]) -> Outcome[T]:
        return self._send("DELETE", url, decode)

    def post_form(self, url: str, fields: Dict[str, str], decode: ResponseDecoder[T]) -> Outcome[T]:
        return self._send("POST", url, decode, data=fields, headers={"Content-Type": FORM_TYPE})

    def post_file(self, url: str, path: Path, decode: ResponseDecoder[T], content_type: str = CSV_TYPE) -> Outcome[T]:
        with path.open("rb") as fh:
            files = {"file": (path.name, fh, content_type)}
            return self._send("POST", url, decode, files=files)

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Accept": JSON_TYPE, "User-Agent": USER_AGENT}
        if self.settings.app_token:
            headers["X-App-Token"] = self.settings.app_token
        if extra:
            headers.update(extra)
        return headers

    def _auth(self) -> tuple[str, str] | None:
        if self.settings.username and self.settings.password:
            return (self.settings.username, self.settings.password)
        return None

    def _send(
        self,
        method: str,
        url: str,
        decode: ResponseDecoder[T],
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> Outcome[T]:
        logger.debug("Sending request", method=method, url=url)
        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(headers),
                auth=self._auth(),
                timeout=self.settings.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            fault = TransportFault(method, url, f"{exc.__class__.__name__}: {exc}")
            fault.__cause__ = exc
            return Failed(fault)
        return self._classify(url, response, decode)

    def _classify(self, url: str, response: requests.Response, decode: ResponseDecoder[T]) -> Outcome[T]:
        if response.status_code == 202:
            return Pending(self._ticket(url, response))
        if 200 <= response.status_code < 300:
            return self._decode(response, decode)
        return Failed(self._service_error(response))

    def _decode(self, response: requests.Response, decode: ResponseDecoder[T]) -> Outcome[T]:
        try:
            return Ready(decode(self._body(response)))
        except (KeyError, TypeError, ValueError) as exc:
            logger.debug("Could not decode response body", status=response.status_code, error=str(exc))
            error = ServiceError(response.status_code, "invalid_response", f"unexpected response body: {exc}")
            error.__cause__ = exc
            return Failed(error)

    def _ticket(self, url: str, response: requests.Response) -> AsyncTicket:
        location = response.headers.get("Location")
        if not location:
            body = self._body(response) or {}
            ticket = body.get("ticket") if isinstance(body, dict) else None
            location = with_params(url, ticket=ticket) if ticket else url
        return AsyncTicket(poll_location=location, retry_delay=self._retry_after(response))

    def _retry_after(self, response: requests.Response) -> float:
        raw = response.headers.get("Retry-After")
        try:
            delay = float(raw) if raw is not None else self.settings.retry_delay
        except ValueError:
            delay = self.settings.retry_delay
        return max(0.0, delay)

    @staticmethod
    def _body(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    def _service_error(self, response: requests.Response) -> ServiceError:
        body = self._body(response)
        code = None
        message = response.text or response.reason or ""
        if isinstance(body, dict):
            code = body.get("code")
            message = body.get("message") or message
        logger.debug("Service rejected request", status=response.status_code, code=code)
        return ServiceError(response.status_code, code, message)
