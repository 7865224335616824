"""Unit tests for the Dyn API session client and its redirect-retry loop."""

import httpx
import pytest

from dyn_qps.errors import (
    AuthenticationError,
    BadResponseError,
    RetryExhaustedError,
    SessionTerminationError,
    TransportError,
)
from dyn_qps.models import TimeWindow
from dyn_qps.session import DynSession

from .fakes import API_URL, TOKEN, FakeDynAPI, redirect, report_body

WINDOW = TimeWindow(start_ts=1760600000, end_ts=1760686400)


def _session(api: FakeDynAPI, sleep=None, retry_delay: float = 5.0) -> DynSession:
    kwargs = {"transport": api.transport, "retry_delay": retry_delay}
    if sleep is not None:
        kwargs["sleep"] = sleep
    return DynSession(API_URL, **kwargs)


def _refused(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


class TestAuthenticate:
    def test_returns_token(self):
        api = FakeDynAPI()
        with _session(api) as session:
            assert session.authenticate("acme", "monitor", "s3cret") == TOKEN

    def test_login_request_on_the_wire(self):
        api = FakeDynAPI()
        with _session(api) as session:
            session.authenticate("acme", "monitor", "s3cret")

        request = api.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api2.dynect.net/REST/Session/"
        assert request.headers["Content-Type"] == "application/json"
        assert request.content == (
            b'{"customer_name":"acme","user_name":"monitor","password":"s3cret"}'
        )

    def test_missing_token_carries_api_messages(self):
        api = FakeDynAPI(
            login_response=httpx.Response(
                400,
                json={
                    "status": "failure",
                    "data": {},
                    "msgs": [
                        {"INFO": "login: Credentials you entered did not match", "LVL": "ERROR"},
                        {"INFO": "login: Login failed", "LVL": "ERROR"},
                    ],
                },
            )
        )
        with _session(api) as session, pytest.raises(AuthenticationError) as exc_info:
            session.authenticate("acme", "monitor", "wrong")

        assert exc_info.value.api_messages == [
            "login: Credentials you entered did not match",
            "login: Login failed",
        ]
        assert "HTTP 400" in str(exc_info.value)

    def test_non_json_body(self):
        api = FakeDynAPI(login_response=httpx.Response(503, text="Service Unavailable"))
        with _session(api) as session, pytest.raises(AuthenticationError, match="non-JSON"):
            session.authenticate("acme", "monitor", "s3cret")

    def test_connection_failure_is_transport_error(self):
        session = DynSession(API_URL, transport=httpx.MockTransport(_refused))
        with session, pytest.raises(TransportError, match="Connection refused"):
            session.authenticate("acme", "monitor", "s3cret")


class TestFetchReport:
    def test_immediate_success(self, recording_sleep):
        body = report_body([300, 600])
        api = FakeDynAPI(report_responses=[httpx.Response(200, text=body)])
        with _session(api, recording_sleep) as session:
            assert session.fetch_report(TOKEN, WINDOW, max_retries=5) == body
        assert recording_sleep.calls == []

    def test_report_request_on_the_wire(self):
        api = FakeDynAPI(report_responses=[httpx.Response(200, text=report_body([300]))])
        with _session(api) as session:
            session.fetch_report(TOKEN, WINDOW, max_retries=5)

        request = api.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api2.dynect.net/REST/QPSReport/"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Auth-Token"] == TOKEN
        assert request.content == b'{"start_ts":1760600000,"end_ts":1760686400}'

    def test_follows_redirects_until_200(self, recording_sleep):
        body = report_body([300, 600, 900])
        api = FakeDynAPI(
            report_responses=[
                redirect(302),
                redirect(302),
                redirect(302),
                httpx.Response(200, text=body),
            ]
        )
        with _session(api, recording_sleep) as session:
            assert session.fetch_report(TOKEN, WINDOW, max_retries=5) == body

        assert api.methods() == ["POST", "GET", "GET", "GET"]
        assert recording_sleep.calls == [5.0, 5.0, 5.0]
        for request in api.requests[1:]:
            assert str(request.url) == "https://api2.dynect.net/REST/Job/4242/"
            assert request.headers["Auth-Token"] == TOKEN

    @pytest.mark.parametrize("status", [301, 302, 307])
    def test_all_redirect_codes_are_followed(self, status, recording_sleep):
        api = FakeDynAPI(report_responses=[redirect(status), httpx.Response(200, text="{}")])
        with _session(api, recording_sleep) as session:
            session.fetch_report(TOKEN, WINDOW, max_retries=1)
        assert api.methods() == ["POST", "GET"]

    def test_absolute_location_used_as_is(self, recording_sleep):
        api = FakeDynAPI(
            report_responses=[
                redirect(location="https://api2.dynect.net/REST/Job/77/"),
                httpx.Response(200, text="{}"),
            ]
        )
        with _session(api, recording_sleep) as session:
            session.fetch_report(TOKEN, WINDOW, max_retries=3)
        assert str(api.requests[1].url) == "https://api2.dynect.net/REST/Job/77/"

    def test_retries_exhausted(self, recording_sleep):
        api = FakeDynAPI(report_responses=[redirect() for _ in range(10)])
        with _session(api, recording_sleep) as session, pytest.raises(RetryExhaustedError) as exc:
            session.fetch_report(TOKEN, WINDOW, max_retries=4)

        assert exc.value.attempts == 4
        assert api.methods() == ["POST", "GET", "GET", "GET", "GET"]
        assert len(recording_sleep.calls) == 4

    def test_zero_retries_fails_on_first_redirect(self, recording_sleep):
        api = FakeDynAPI(report_responses=[redirect()])
        with _session(api, recording_sleep) as session, pytest.raises(RetryExhaustedError) as exc:
            session.fetch_report(TOKEN, WINDOW, max_retries=0)
        assert exc.value.attempts == 0
        assert api.methods() == ["POST"]

    def test_retry_counter_does_not_leak_between_calls(self, recording_sleep):
        api = FakeDynAPI(
            report_responses=[
                redirect(),
                redirect(),
                httpx.Response(200, text="{}"),
                redirect(),
                redirect(),
                httpx.Response(200, text="{}"),
            ]
        )
        with _session(api, recording_sleep) as session:
            session.fetch_report(TOKEN, WINDOW, max_retries=2)
            session.fetch_report(TOKEN, WINDOW, max_retries=2)
        assert len(recording_sleep.calls) == 4

    def test_configured_delay(self, recording_sleep):
        api = FakeDynAPI(report_responses=[redirect(), httpx.Response(200, text="{}")])
        with _session(api, recording_sleep, retry_delay=0.5) as session:
            session.fetch_report(TOKEN, WINDOW, max_retries=3)
        assert recording_sleep.calls == [0.5]

    @pytest.mark.parametrize("status", [400, 403, 404, 500, 503])
    def test_bad_status(self, status):
        api = FakeDynAPI(report_responses=[httpx.Response(status)])
        with _session(api) as session, pytest.raises(BadResponseError) as exc_info:
            session.fetch_report(TOKEN, WINDOW, max_retries=5)
        assert exc_info.value.status_code == status

    def test_bad_status_after_redirect(self, recording_sleep):
        api = FakeDynAPI(report_responses=[redirect(), httpx.Response(500)])
        with _session(api, recording_sleep) as session, pytest.raises(BadResponseError):
            session.fetch_report(TOKEN, WINDOW, max_retries=5)

    def test_redirect_without_location(self):
        api = FakeDynAPI(report_responses=[httpx.Response(307)])
        with _session(api) as session, pytest.raises(BadResponseError, match="Location"):
            session.fetch_report(TOKEN, WINDOW, max_retries=5)

    def test_timeout_is_transport_error(self):
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        session = DynSession(API_URL, transport=httpx.MockTransport(timeout))
        with session, pytest.raises(TransportError, match="timed out"):
            session.fetch_report(TOKEN, WINDOW, max_retries=5)


class TestTerminate:
    def test_sends_delete_with_token(self):
        api = FakeDynAPI()
        with _session(api) as session:
            session.terminate(TOKEN)

        request = api.requests[0]
        assert request.method == "DELETE"
        assert str(request.url) == "https://api2.dynect.net/REST/Session/"
        assert request.headers["Auth-Token"] == TOKEN

    def test_error_status(self):
        api = FakeDynAPI(logout_status=500)
        with _session(api) as session, pytest.raises(SessionTerminationError, match="500"):
            session.terminate(TOKEN)

    def test_transport_failure(self):
        session = DynSession(API_URL, transport=httpx.MockTransport(_refused))
        with session, pytest.raises(SessionTerminationError, match="Connection refused"):
            session.terminate(TOKEN)
