"""
Shared HTTP session with automatic retry and backoff.

Used for the weather API. Retries transient errors (timeouts, connection
resets, 429/502/503/504) with exponential backoff and applies a default
timeout to every request.
"""

from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .. import config

#: Default retry strategy for flaky mobile connections
DEFAULT_RETRY = Retry(
    total=3,
    backoff_factor=1,  # 0s, 1s, 2s between retries
    status_forcelist=[429, 502, 503, 504],
    allowed_methods=["GET", "HEAD", "OPTIONS"],
    raise_on_status=False,  # let resp.raise_for_status() handle it
)


def create_session(
    retry: Optional[Retry] = None,
    timeout: float = config.HTTP_TIMEOUT_S,
) -> requests.Session:
    """
    Build a ``requests.Session`` with retry adapter mounted.

    Args:
        retry: Custom retry strategy (defaults to ``DEFAULT_RETRY``).
        timeout: Default timeout applied to every request.
    """
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or DEFAULT_RETRY)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers["User-Agent"] = "catchlog/0.1"

    _original_send = s.send

    def _send_with_timeout(prepared: requests.PreparedRequest, **kwargs) -> requests.Response:
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = timeout
        return _original_send(prepared, **kwargs)

    s.send = _send_with_timeout
    return s
