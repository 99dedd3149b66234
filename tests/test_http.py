"""Tests for the shared retrying HTTP session."""

from urllib3.util.retry import Retry

from catchlog.services.http import DEFAULT_RETRY, create_session


def test_session_mounts_retry_adapter():
    session = create_session()
    retry = session.get_adapter("https://api.openweathermap.org").max_retries
    assert retry.total == DEFAULT_RETRY.total
    assert 503 in retry.status_forcelist


def test_custom_retry_used():
    session = create_session(retry=Retry(total=0))
    assert session.get_adapter("http://example.com").max_retries.total == 0


def test_default_timeout_applied(monkeypatch):
    seen = {}

    def fake_send(self, request, **kwargs):
        seen.update(kwargs)
        raise RuntimeError("stop")

    monkeypatch.setattr("requests.adapters.HTTPAdapter.send", fake_send)
    session = create_session(timeout=7)
    try:
        session.get("https://api.openweathermap.org/data/2.5/weather")
    except RuntimeError:
        pass
    assert seen["timeout"] == 7
