from __future__ import annotations

from unittest import mock

import pytest
import requests

from soda_import.api.base import Dataset, Failed, Pending, Ready, ScanResult
from soda_import.api.resolver import UNBOUNDED_ATTEMPTS, LongRunningResolver
from soda_import.api.transport import TransportClient, with_params
from soda_import.errors import ServiceError, TransportFault

from .conftest import BASE


def make_response(status: int, body: bytes = b"", headers: dict | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = body
    response.headers.update(headers or {})
    response.reason = "Reason"
    return response


@pytest.fixture
def client(settings):
    return TransportClient(settings)


@mock.patch("soda_import.api.transport.requests.request")
def test_success_is_decoded(request_mock, client):
    request_mock.return_value = make_response(200, b'{"id": "abcd-1234", "name": "Crimes"}')

    outcome = client.get(f"{BASE}/views/abcd-1234", Dataset.from_json)

    assert isinstance(outcome, Ready)
    assert outcome.value.id == "abcd-1234"
    args, kwargs = request_mock.call_args
    assert args == ("GET", f"{BASE}/views/abcd-1234")
    assert kwargs["headers"]["X-App-Token"] == "token"
    assert kwargs["headers"]["Accept"] == "application/json"
    assert kwargs["auth"] == ("user", "secret")
    assert kwargs["timeout"] == client.settings.timeout


@mock.patch("soda_import.api.transport.requests.request")
def test_empty_body_decodes_none(request_mock, client):
    request_mock.return_value = make_response(200)

    outcome = client.delete(f"{BASE}/views/abcd-1234", lambda body: body)

    assert outcome == Ready(None)


@mock.patch("soda_import.api.transport.requests.request")
def test_accepted_with_location_is_pending(request_mock, client):
    request_mock.return_value = make_response(
        202, b"{}", {"Location": f"{BASE}/jobs/77", "Retry-After": "12"}
    )

    outcome = client.post_json(f"{BASE}/views/abcd-1234/publication", {}, Dataset.from_json)

    assert isinstance(outcome, Pending)
    assert outcome.ticket.poll_location == f"{BASE}/jobs/77"
    assert outcome.ticket.retry_delay == 12.0


@mock.patch("soda_import.api.transport.requests.request")
def test_accepted_with_ticket_body_polls_same_url(request_mock, client):
    request_mock.return_value = make_response(202, b'{"ticket": "t-99"}')

    outcome = client.post_form(f"{BASE}/imports2", {"fileId": "f1"}, Dataset.from_json)

    assert isinstance(outcome, Pending)
    assert outcome.ticket.poll_location == f"{BASE}/imports2?ticket=t-99"
    assert outcome.ticket.retry_delay == client.settings.retry_delay
    assert request_mock.call_args.kwargs["data"] == {"fileId": "f1"}
    assert request_mock.call_args.kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"


@mock.patch("soda_import.api.transport.requests.request")
def test_unparseable_retry_after_falls_back(request_mock, client):
    request_mock.return_value = make_response(202, b"", {"Location": f"{BASE}/jobs/1", "Retry-After": "soon"})

    outcome = client.get(f"{BASE}/imports2", Dataset.from_json)

    assert outcome.ticket.retry_delay == client.settings.retry_delay


@mock.patch("soda_import.api.transport.requests.request")
def test_error_status_is_service_error(request_mock, client):
    request_mock.return_value = make_response(
        400, b'{"code": "invalid_request", "error": true, "message": "Blueprint is invalid"}'
    )

    outcome = client.post_form(f"{BASE}/imports2", {}, Dataset.from_json)

    assert isinstance(outcome, Failed)
    assert isinstance(outcome.error, ServiceError)
    assert outcome.error.status == 400
    assert outcome.error.code == "invalid_request"
    assert outcome.error.message == "Blueprint is invalid"


@mock.patch("soda_import.api.transport.requests.request")
def test_error_without_json_uses_text(request_mock, client):
    request_mock.return_value = make_response(503, b"Service Unavailable")

    outcome = client.get(f"{BASE}/views/x", Dataset.from_json)

    assert outcome.error.status == 503
    assert outcome.error.code is None
    assert outcome.error.message == "Service Unavailable"


@mock.patch("soda_import.api.transport.requests.request")
def test_network_failure_is_transport_fault(request_mock, client):
    request_mock.side_effect = requests.ConnectionError("connection refused")

    outcome = client.get(f"{BASE}/views/x", Dataset.from_json)

    assert isinstance(outcome, Failed)
    assert isinstance(outcome.error, TransportFault)
    assert isinstance(outcome.error.__cause__, requests.ConnectionError)
    assert request_mock.call_count == 1


@mock.patch("soda_import.api.transport.requests.request")
def test_post_file_uploads_csv(request_mock, client, crimes_csv):
    request_mock.return_value = make_response(200, b'{"fileId": "f1"}')

    client.post_file(f"{BASE}/imports2?method=scan", crimes_csv, lambda body: body)

    name, _, content_type = request_mock.call_args.kwargs["files"]["file"]
    assert name == "crimes.csv"
    assert content_type == "text/csv"


def test_anonymous_requests_skip_auth(settings):
    client = TransportClient(type(settings)(domain=settings.domain))

    assert client._auth() is None
    assert "X-App-Token" not in client._headers()


def test_with_params_keeps_existing_query():
    assert with_params("https://x/api/imports2?method=scan", ticket="t1") == "https://x/api/imports2?method=scan&ticket=t1"
    assert with_params("https://x/api/geocoding/abcd", method="pending") == "https://x/api/geocoding/abcd?method=pending"


def test_with_params_replaces_existing_value():
    assert with_params("https://x/api/imports2?ticket=t1", ticket="t2") == "https://x/api/imports2?ticket=t2"
    assert (
        with_params("https://x/api/imports2?method=scan&ticket=t1", ticket="t1")
        == "https://x/api/imports2?method=scan&ticket=t1"
    )


@mock.patch("soda_import.api.transport.requests.request")
def test_repeated_body_tickets_keep_one_ticket_param(request_mock, client):
    request_mock.side_effect = [
        make_response(202, b'{"ticket": "t1"}', {"Retry-After": "0"}),
        make_response(202, b'{"ticket": "t1"}', {"Retry-After": "0"}),
        make_response(202, b'{"ticket": "t2"}', {"Retry-After": "0"}),
        make_response(202, b'{"ticket": "t2"}', {"Retry-After": "0"}),
        make_response(200, b'{"id": "crim-e001", "name": "Crimes"}'),
    ]
    resolver = LongRunningResolver(client, sleep=lambda seconds: None)

    outcome = client.post_form(f"{BASE}/imports2", {"fileId": "f1"}, Dataset.from_json)
    dataset = resolver.settle(outcome, Dataset.from_json, max_attempts=UNBOUNDED_ATTEMPTS)

    assert dataset.id == "crim-e001"
    urls = [call.args[1] for call in request_mock.call_args_list]
    assert urls == [
        f"{BASE}/imports2",
        f"{BASE}/imports2?ticket=t1",
        f"{BASE}/imports2?ticket=t1",
        f"{BASE}/imports2?ticket=t2",
        f"{BASE}/imports2?ticket=t2",
    ]


@pytest.mark.parametrize("body", [b"", b"<html>gateway</html>", b"[1, 2]"])
@mock.patch("soda_import.api.transport.requests.request")
def test_unusable_success_body_is_service_error(request_mock, client, body):
    request_mock.return_value = make_response(200, body)

    outcome = client.post_json(f"{BASE}/views/crim-e001/publication", {}, Dataset.from_json)

    assert isinstance(outcome, Failed)
    assert isinstance(outcome.error, ServiceError)
    assert outcome.error.status == 200
    assert outcome.error.code == "invalid_response"


@mock.patch("soda_import.api.transport.requests.request")
def test_scan_without_file_id_is_service_error(request_mock, client):
    request_mock.return_value = make_response(200, b'{"summary": {"columns": []}}')

    outcome = client.get(f"{BASE}/imports2?method=scan", ScanResult.from_json)

    assert outcome.error.code == "invalid_response"
    assert isinstance(outcome.error.__cause__, KeyError)


@mock.patch("soda_import.api.transport.requests.request")
def test_unusable_body_while_polling_stops_resolution(request_mock, client):
    request_mock.side_effect = [
        make_response(202, b'{"ticket": "t1"}', {"Retry-After": "0"}),
        make_response(200, b""),
    ]
    resolver = LongRunningResolver(client, sleep=lambda seconds: None)

    outcome = client.post_form(f"{BASE}/imports2", {}, Dataset.from_json)
    with pytest.raises(ServiceError) as excinfo:
        resolver.settle(outcome, Dataset.from_json)

    assert excinfo.value.code == "invalid_response"
