"""
Test suite for the Google Calendar API client.
Covers retry classification of HTTP, SSL and network errors, the circuit
breaker and the events.list request parameters.
"""
import ssl
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import httplib2
import pytest
from google.auth.exceptions import RefreshError, TransportError
from googleapiclient.errors import HttpError

from fetcher.google_api import GoogleCalendarClient, format_time_min, retry_api_call
from utils.error_handling import AuthorizationError, ErrorTracker, ProviderError


def http_error(status):
    return HttpError(httplib2.Response({"status": status}), b"")


class FlakyCall:
    """Raises the queued errors in order, then returns the result."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    def __call__(self, *args, **kwargs):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


@pytest.fixture
def tracker():
    return ErrorTracker("test-calendar", threshold=5, reset_after_seconds=60)


@pytest.fixture
def sleeps():
    return []


def call(func, tracker, sleeps, **kwargs):
    return retry_api_call(func, tracker=tracker, sleep=sleeps.append, **kwargs)


# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ RETRY CLASSIFICATION                                                       ║
# ╚════════════════════════════════════════════════════════════════════════════╝

@pytest.mark.parametrize("status", [429, 500, 503])
def test_retryable_http_errors_are_retried(tracker, sleeps, status):
    func = FlakyCall([http_error(status), http_error(status)])

    assert call(func, tracker, sleeps) == "ok"
    assert func.calls == 3
    assert len(sleeps) == 2
    assert tracker.error_count == 0


def test_backoff_grows_and_is_capped(tracker, sleeps):
    func = FlakyCall([http_error(503)] * 5)

    call(func, tracker, sleeps, max_retries=6)

    assert 1 <= sleeps[0] <= 2
    assert 2 <= sleeps[1] <= 3
    assert 16 <= sleeps[4] <= 17
    func = FlakyCall([http_error(503)] * 6)
    sleeps.clear()
    call(func, tracker, sleeps, max_retries=7)
    assert sleeps[-1] == 30.0


@pytest.mark.parametrize("status", [400, 403, 404])
def test_client_errors_fail_fast(tracker, sleeps, status):
    func = FlakyCall([http_error(status)])

    with pytest.raises(ProviderError) as excinfo:
        call(func, tracker, sleeps)

    assert func.calls == 1
    assert sleeps == []
    assert isinstance(excinfo.value.__cause__, HttpError)
    assert tracker.error_count == 1


def test_exhausted_retries_raise_provider_error(tracker, sleeps):
    func = FlakyCall([http_error(429)] * 3)

    with pytest.raises(ProviderError, match="after 3 attempts"):
        call(func, tracker, sleeps)

    assert func.calls == 3
    assert len(sleeps) == 2
    assert tracker.error_count == 1


@pytest.mark.parametrize("error", [
    ssl.SSLError("WRONG_VERSION_NUMBER"),
    OSError("[SSL: DECRYPTION_FAILED_OR_BAD_RECORD_MAC] decryption failed"),
    TimeoutError("timed out"),
    httplib2.ServerNotFoundError("Unable to find the server at www.googleapis.com"),
    TransportError("connection aborted"),
])
def test_transient_network_errors_are_retried(tracker, sleeps, error):
    func = FlakyCall([error])

    assert call(func, tracker, sleeps) == "ok"
    assert func.calls == 2


def test_other_os_errors_fail_fast(tracker, sleeps):
    func = FlakyCall([ConnectionRefusedError("Connection refused")])

    with pytest.raises(ProviderError):
        call(func, tracker, sleeps)
    assert func.calls == 1


def test_refresh_rejection_is_an_authorization_error(tracker, sleeps):
    func = FlakyCall([RefreshError("invalid_grant")])

    with pytest.raises(AuthorizationError):
        call(func, tracker, sleeps)
    assert func.calls == 1


# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CIRCUIT BREAKER                                                            ║
# ╚════════════════════════════════════════════════════════════════════════════╝

def test_open_circuit_skips_the_call(sleeps):
    tracker = ErrorTracker("test-calendar", threshold=1, reset_after_seconds=60)
    with pytest.raises(ProviderError):
        call(FlakyCall([http_error(404)]), tracker, sleeps)

    func = FlakyCall([])
    with pytest.raises(ProviderError, match="backing off"):
        call(func, tracker, sleeps)
    assert func.calls == 0


def test_circuit_closes_after_cool_down():
    now = [1000.0]
    tracker = ErrorTracker("clocked", threshold=2, reset_after_seconds=60, clock=lambda: now[0])

    assert tracker.record_error(ValueError("one")) is False
    assert tracker.record_error(ValueError("two")) is True
    assert not tracker.is_available()

    now[0] += 61
    assert tracker.is_available()
    assert tracker.error_count == 0
    assert not tracker.circuit_open


def test_success_clears_the_error_count():
    tracker = ErrorTracker("counted", threshold=3)
    tracker.record_error(ValueError("one"))
    tracker.record_error(ValueError("two"))

    tracker.record_success()

    assert tracker.error_count == 0
    assert tracker.record_error(ValueError("three")) is False


# ╔════════════════════════════════════════════════════════════════════════════╗
# ║ CALENDAR CLIENT                                                            ║
# ╚════════════════════════════════════════════════════════════════════════════╝

def test_time_min_is_utc_with_milliseconds():
    oslo = timezone(timedelta(hours=2))
    assert format_time_min(datetime(2026, 10, 19, 14, 0, 5, 123456, tzinfo=oslo)) == "2026-10-19T12:00:05.123Z"


def test_list_events_requests_expanded_events_in_start_order(tracker, sleeps):
    service = MagicMock()
    service.events.return_value.list.return_value.execute.return_value = {
        "kind": "calendar#events",
        "items": [{"id": "a"}, {"id": "b"}],
    }
    client = GoogleCalendarClient(None, calendar_id="family@group.calendar.google.com",
                                  service=service, sleep=sleeps.append, tracker=tracker)

    items = client.list_events(datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc), max_results=10)

    assert items == [{"id": "a"}, {"id": "b"}]
    service.events.return_value.list.assert_called_once_with(
        calendarId="family@group.calendar.google.com",
        timeMin="2026-10-19T12:00:00.000Z",
        maxResults=10,
        singleEvents=True,
        orderBy="startTime",
    )


def test_list_events_without_items_is_empty(tracker, sleeps):
    service = MagicMock()
    service.events.return_value.list.return_value.execute.return_value = {"kind": "calendar#events"}
    client = GoogleCalendarClient(None, service=service, sleep=sleeps.append, tracker=tracker)

    assert client.list_events(datetime(2026, 10, 19, tzinfo=timezone.utc), max_results=5) == []


def test_list_events_retries_server_errors(tracker, sleeps):
    service = MagicMock()
    service.events.return_value.list.return_value.execute.side_effect = [
        http_error(502),
        {"items": [{"id": "late"}]},
    ]
    client = GoogleCalendarClient(None, service=service, sleep=sleeps.append, tracker=tracker)

    assert client.list_events(datetime(2026, 10, 19, tzinfo=timezone.utc), max_results=5) == [{"id": "late"}]
    assert len(sleeps) == 1
