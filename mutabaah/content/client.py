from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from mutabaah.errors import NotFound, UpstreamFailure

logger = logging.getLogger(__name__)

_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "mutabaah/1.0 (+content proxy)",
}


class UpstreamClient:
    """
    Blocking JSON GET with timeout and bounded retries.

    Retries network errors and 5xx responses with exponential backoff
    (``backoff_seconds * 2**attempt``). Client errors are never retried.
    Once retries are exhausted an ``UpstreamFailure`` (503) is raised.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 15.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._timeout = timeout_seconds
        self._max_retries = max(1, max_retries)
        self._backoff = backoff_seconds
        self._sleep = sleep

    def get_json(self, url: str) -> Any:
        for attempt in range(self._max_retries):
            last_attempt = attempt == self._max_retries - 1
            try:
                resp = requests.get(url, headers=_HEADERS, timeout=self._timeout)
            except requests.RequestException as e:
                logger.warning("Upstream request failed url=%s attempt=%s error=%s", url, attempt + 1, type(e).__name__)
                if last_attempt:
                    raise UpstreamFailure(code="upstream_unreachable", status_code=503) from e
                self._backoff_sleep(attempt)
                continue

            if resp.status_code >= 500:
                logger.warning("Upstream server error url=%s attempt=%s status=%s", url, attempt + 1, resp.status_code)
                if last_attempt:
                    raise UpstreamFailure(code="upstream_unavailable", status_code=503)
                self._backoff_sleep(attempt)
                continue

            if resp.status_code == 404:
                raise NotFound("Content not found")
            if resp.status_code >= 400:
                logger.warning("Upstream client error url=%s status=%s", url, resp.status_code)
                raise UpstreamFailure(code="upstream_rejected")

            try:
                return resp.json()
            except ValueError as e:
                logger.warning("Upstream returned non-JSON body url=%s", url)
                raise UpstreamFailure("Invalid API response", code="upstream_invalid") from e

        # max_retries >= 1, so the loop always returns or raises.
        raise UpstreamFailure(status_code=503)

    def _backoff_sleep(self, attempt: int) -> None:
        self._sleep(self._backoff * (2**attempt))
