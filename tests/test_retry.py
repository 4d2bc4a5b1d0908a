import pytest
import requests
from requests import Response

from erp_modules.retry import is_transient_error, with_retries


def _http_error(status: int) -> requests.HTTPError:
    response = Response()
    response.status_code = status
    return requests.HTTPError(response=response)


def test_with_retries_retries_transient_then_succeeds():
    calls = {"n": 0}
    slept: list[float] = []

    def func():
        calls["n"] += 1
        if calls["n"] < 3:
            raise requests.Timeout("timeout")
        return "ok"

    result = with_retries(
        func,
        max_attempts=5,
        base_delay_seconds=0.01,
        max_delay_seconds=0.02,
        sleep=slept.append,
    )
    assert result == "ok"
    assert calls["n"] == 3
    assert len(slept) == 2


def test_with_retries_gives_up_on_permanent_error():
    calls = {"n": 0}

    def func():
        calls["n"] += 1
        raise _http_error(404)

    with pytest.raises(requests.HTTPError):
        with_retries(func, max_attempts=3, base_delay_seconds=0, max_delay_seconds=0, sleep=lambda s: None)
    assert calls["n"] == 1


def test_with_retries_stops_after_max_attempts():
    calls = {"n": 0}

    def func():
        calls["n"] += 1
        raise requests.ConnectionError("down")

    with pytest.raises(requests.ConnectionError):
        with_retries(func, max_attempts=3, base_delay_seconds=0, max_delay_seconds=0, sleep=lambda s: None)
    assert calls["n"] == 3


def test_is_transient_error_status_codes():
    assert is_transient_error(_http_error(429))
    assert is_transient_error(_http_error(500))
    assert not is_transient_error(_http_error(400))
    assert not is_transient_error(ValueError("nope"))
