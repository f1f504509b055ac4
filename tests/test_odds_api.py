"""Tests for the Odds API scores client."""

from unittest.mock import MagicMock, patch

import requests

from pickem.utils.odds_api import OddsApiClient


def response(status_code=200, payload=None, json_error=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.headers = {}
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload
    return resp


def make_client(*responses, api_key="secret"):
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = list(responses)
    return OddsApiClient(api_key=api_key, session=session, min_request_interval=0), session


def test_missing_api_key_returns_empty_without_request():
    client, session = make_client(api_key=None)
    assert client.list_scores("americanfootball_ncaaf", days_from=3) == []
    session.get.assert_not_called()


def test_list_scores_builds_request():
    client, session = make_client(response(payload=[{"id": "abc"}]))

    assert client.list_scores("americanfootball_ncaaf", days_from=3, event_ids=["abc", "def"]) == [{"id": "abc"}]

    url = session.get.call_args.args[0]
    params = session.get.call_args.kwargs["params"]
    assert url == "https://api.the-odds-api.com/v4/sports/americanfootball_ncaaf/scores"
    assert params == {
        "apiKey": "secret",
        "dateFormat": "iso",
        "daysFrom": 3,
        "eventIds": ["abc", "def"],
    }
    assert session.get.call_args.kwargs["timeout"] == 30


def test_422_with_event_ids_retries_without_days_from():
    client, session = make_client(response(422), response(payload=[{"id": "abc"}]))

    assert client.list_scores("americanfootball_ncaaf", days_from=3, event_ids=["abc"]) == [{"id": "abc"}]
    assert session.get.call_count == 2
    assert "daysFrom" not in session.get.call_args_list[1].kwargs["params"]


def test_422_without_event_ids_is_not_retried():
    client, session = make_client(response(422))

    assert client.list_scores("americanfootball_ncaaf", days_from=3) == []
    assert session.get.call_count == 1


def test_client_error_returns_empty():
    client, _ = make_client(response(401))
    assert client.list_scores("americanfootball_ncaaf", days_from=3) == []


def test_invalid_json_returns_empty():
    client, _ = make_client(response(json_error=ValueError("bad json")))
    assert client.list_scores("americanfootball_ncaaf") == []


def test_non_list_payload_returns_empty():
    client, _ = make_client(response(payload={"message": "quota"}))
    assert client.list_scores("americanfootball_ncaaf") == []


@patch("pickem.utils.odds_api.time.sleep")
def test_server_errors_are_retried_then_give_up(mock_sleep):
    client, session = make_client(response(503), response(502), response(500))

    assert client.list_scores("americanfootball_ncaaf", days_from=3) == []
    assert session.get.call_count == 3
    assert mock_sleep.called


@patch("pickem.utils.odds_api.time.sleep")
def test_server_error_then_success(mock_sleep):
    client, _ = make_client(response(500), response(payload=[{"id": "x"}]))
    assert client.list_scores("americanfootball_ncaaf") == [{"id": "x"}]


@patch("pickem.utils.odds_api.time.sleep")
def test_connection_errors_return_empty(mock_sleep):
    error = requests.exceptions.ConnectionError("down")
    client, session = make_client(error, error, error)

    assert client.list_scores("americanfootball_ncaaf") == []
    assert session.get.call_count == 3


def test_from_config_reads_settings():
    client = OddsApiClient.from_config(
        {"ODDS_API_KEY": "k", "ODDS_API_BASE_URL": "http://example.test/v4/", "ODDS_API_TIMEOUT": 5}
    )
    assert client.api_key == "k"
    assert client.base_url == "http://example.test/v4"
    assert client.timeout == 5


def test_rate_limit_status_counts_requests():
    client, _ = make_client(response(payload=[]))
    client.list_scores("americanfootball_ncaaf")

    status = client.get_rate_limit_status()
    assert status["total_requests"] == 1
    assert status["requests_last_minute"] == 1


def rate_limited(retry_after):
    resp = response(429)
    resp.headers = {"Retry-After": retry_after}
    return resp


@patch("pickem.utils.odds_api.time.sleep")
def test_http_date_retry_after_falls_back_to_backoff(mock_sleep):
    date = "Wed, 21 Oct 2026 07:28:00 GMT"
    client, session = make_client(rate_limited(date), rate_limited(date), rate_limited(date))

    assert client.list_scores("americanfootball_ncaaf", days_from=3) == []
    assert session.get.call_count == 3
    # Exponential backoff from the 2s base delay
    assert [c.args[0] for c in mock_sleep.call_args_list] == [2.0, 4.0]


@patch("pickem.utils.odds_api.time.sleep")
def test_numeric_retry_after_is_capped(mock_sleep):
    client, _ = make_client(rate_limited("3600"), response(payload=[{"id": "x"}]))

    assert client.list_scores("americanfootball_ncaaf") == [{"id": "x"}]
    assert mock_sleep.call_args_list[0].args[0] == 60.0


@patch("pickem.utils.odds_api.time.sleep")
def test_short_numeric_retry_after_is_honoured(mock_sleep):
    client, _ = make_client(rate_limited("5"), response(payload=[]))

    client.list_scores("americanfootball_ncaaf")
    assert mock_sleep.call_args_list[0].args[0] == 5.0


def test_unexpected_request_failure_returns_empty():
    client, _ = make_client(RuntimeError("adapter blew up"))
    assert client.list_scores("americanfootball_ncaaf") == []
