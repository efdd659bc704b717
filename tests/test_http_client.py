"""Unit tests for commit_titles.retrieval.http_client covering retries and headers.

Execute with coverage to validate networking helpers:
    pytest tests/test_http_client.py --maxfail=1 -v --cov=commit_titles.retrieval.http_client --cov-report=term-missing
"""

import datetime as dt
import socket
from typing import Any, Dict, Optional
from unittest.mock import MagicMock, patch

import pytest
import requests

from commit_titles.retrieval import http_client
from commit_titles.retrieval.config import FetchSettings
from commit_titles.retrieval.errors import NetworkOther, NetworkTimeout, NetworkUnreachable


def _make_resp(status: int = 200, payload: Any = None, headers: Optional[Dict[str, str]] = None):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    if payload is None:
        payload = {}
    resp.json.return_value = payload
    resp.text = str(payload)
    return resp


def test_build_session_sets_headers_and_token():
    session = http_client.build_session("abc")
    assert session.headers["Authorization"] == "Bearer abc"
    assert session.headers["Accept"] == "application/vnd.github+json"

    anonymous = http_client.build_session()
    assert "Authorization" not in anonymous.headers


def test_backoff_delay_doubles_and_caps():
    assert [http_client.backoff_delay(n) for n in range(1, 7)] == [1, 2, 4, 8, 10, 10]


def test_request_success_passes_timeout():
    session = MagicMock()
    session.get.return_value = _make_resp(200, [])
    resp = http_client.request_with_backoff(session, "url", FetchSettings(timeout=5, retries=3))
    assert resp.status_code == 200
    session.get.assert_called_once_with("url", timeout=5)


@patch("commit_titles.retrieval.http_client.sleep_backoff")
def test_request_retry_on_exception(mock_sleep):
    session = MagicMock()
    session.get.side_effect = [requests.ConnectionError("boom"), _make_resp(200, [])]
    resp = http_client.request_with_backoff(session, "url", FetchSettings(retries=3))
    assert resp.status_code == 200
    mock_sleep.assert_called_once_with(1)


@patch("commit_titles.retrieval.http_client.sleep_backoff")
def test_request_http_errors_are_not_retried(mock_sleep):
    session = MagicMock()
    session.get.return_value = _make_resp(500, {"message": "oops"})
    resp = http_client.request_with_backoff(session, "url", FetchSettings(retries=3))
    assert resp.status_code == 500
    assert session.get.call_count == 1
    mock_sleep.assert_not_called()


@patch("commit_titles.retrieval.http_client.sleep_backoff")
def test_request_timeout_fails_without_retry(mock_sleep):
    session = MagicMock()
    session.get.side_effect = requests.Timeout("slow")
    with pytest.raises(NetworkTimeout) as excinfo:
        http_client.request_with_backoff(session, "url", FetchSettings(timeout=2, retries=3))
    assert session.get.call_count == 1
    mock_sleep.assert_not_called()
    assert "2s" in str(excinfo.value)


@patch("commit_titles.retrieval.http_client.sleep_backoff")
def test_request_connection_errors_exhaust_retries(mock_sleep):
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("reset by peer")
    with pytest.raises(NetworkOther):
        http_client.request_with_backoff(session, "url", FetchSettings(retries=3))
    assert session.get.call_count == 3
    assert [call.args[0] for call in mock_sleep.call_args_list] == [1, 2]


@patch("commit_titles.retrieval.http_client.sleep_backoff", lambda *_: None)
def test_request_verbose_logs_retries(capsys):
    session = MagicMock()
    session.get.side_effect = [requests.ConnectionError("boom"), _make_resp(200, [])]
    http_client.request_with_backoff(session, "url", FetchSettings(retries=2, verbose=True))
    assert "[retry 1/2]" in capsys.readouterr().err


def test_classify_dns_failure():
    exc = requests.ConnectionError(socket.gaierror(-2, "Name or service not known"))
    err = http_client.classify_network_error(exc, "url", 30)
    assert isinstance(err, NetworkUnreachable)
    assert err.reason == "dns"


def test_classify_connection_refused():
    exc = requests.ConnectionError(ConnectionRefusedError(111, "Connection refused"))
    err = http_client.classify_network_error(exc, "url", 30)
    assert isinstance(err, NetworkUnreachable)
    assert err.reason == "refused"


def test_classify_by_message_and_fallback():
    dns = http_client.classify_network_error(
        requests.ConnectionError("Failed to resolve 'api.github.com'"), "url", 30
    )
    assert isinstance(dns, NetworkUnreachable) and dns.reason == "dns"

    other = http_client.classify_network_error(requests.RequestException("weird"), "url", 30)
    assert isinstance(other, NetworkOther)
    assert "weird" in str(other)


def test_check_rate_limit_reports_low_quota(capsys):
    headers = {"X-RateLimit-Remaining": "5", "X-RateLimit-Reset": "1640995200"}
    status = http_client.check_rate_limit(headers, verbose=True)
    assert status.remaining == 5
    assert status.reset == dt.datetime(2022, 1, 1, tzinfo=dt.timezone.utc)
    err = capsys.readouterr().err
    assert "5 requests remaining" in err
    assert "running low" in err


def test_check_rate_limit_is_quiet_unless_verbose(capsys):
    status = http_client.check_rate_limit({"X-RateLimit-Remaining": "4999"})
    assert status.remaining == 4999
    assert capsys.readouterr().err == ""

    empty = http_client.check_rate_limit({}, verbose=True)
    assert empty.remaining is None and empty.reset is None
    assert capsys.readouterr().err == ""


def test_parse_link_header():
    link = (
        '<https://api.github.com/repos/o/r/commits?page=2>; rel="next", '
        '<https://api.github.com/repos/o/r/commits?page=5>; rel="last"'
    )
    links = http_client.parse_link_header(link)
    assert links == {
        "next": "https://api.github.com/repos/o/r/commits?page=2",
        "last": "https://api.github.com/repos/o/r/commits?page=5",
    }
    assert http_client.parse_link_header(None) == {}
    assert http_client.parse_link_header("garbage") == {}


def test_response_message_handles_json_and_text():
    assert http_client.response_message(_make_resp(403, {"message": "bad"})) == "bad"

    resp = _make_resp(502)
    resp.json.side_effect = ValueError()
    resp.text = "plain"
    assert http_client.response_message(resp) == "plain"
