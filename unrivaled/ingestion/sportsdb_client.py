"""HTTP transport for TheSportsDB and the league website.

Raw fetches only: JSON or HTML comes back untouched, decoding into records
happens in ``sources`` and ``scraper``.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

logger = logging.getLogger(__name__)

MAX_ERROR_SNIPPET = 300
DEFAULT_CONNECT_TIMEOUT_SECONDS = 5
DEFAULT_READ_TIMEOUT_SECONDS = 12
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_USER_AGENT = "unrivaled-scores/1.0 (+https://example.local)"


class SportsDBClientError(RuntimeError):
    pass


REDACTED = "***"


def redact(text: str, secret: str | None) -> str:
    """Mask every occurrence of *secret* (the v1 API key rides in the URL path)."""
    if not secret:
        return text
    return text.replace(secret, REDACTED)


def _truncate(value: str, limit: int = MAX_ERROR_SNIPPET) -> str:
    if len(value) <= limit:
        return value
    return value[:limit] + "...<truncated>"


class SportsDBClient:
    def __init__(
        self,
        *,
        read_timeout: float = DEFAULT_READ_TIMEOUT_SECONDS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._timeout = (connect_timeout, read_timeout)
        self._max_attempts = max(1, max_attempts)

    def _get(
        self, url: str, headers: dict[str, str], secret: str | None = None
    ) -> requests.Response:
        last_exception: requests.RequestException | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                return requests.get(url, headers=headers, timeout=self._timeout)
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_exception = exc
                logger.warning(
                    "GET %s failed (attempt %d/%d): %s",
                    redact(url, secret),
                    attempt,
                    self._max_attempts,
                    redact(str(exc), secret),
                )
                if attempt == self._max_attempts:
                    break
                time.sleep(attempt)
            except requests.RequestException as exc:
                raise SportsDBClientError(
                    f"Request failed: {redact(str(exc), secret)}"
                ) from exc

        assert last_exception is not None
        raise SportsDBClientError(
            f"Request failed after {self._max_attempts} attempts: "
            f"{redact(str(last_exception), secret)}"
        ) from last_exception

    def get_json(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        secret: str | None = None,
    ) -> Any:
        """GET JSON. *secret* is masked in every log line and error message."""
        request_headers = {
            "User-Agent": DEFAULT_USER_AGENT,
            "Accept": "application/json",
        }
        if headers:
            request_headers.update(headers)

        response = self._get(url, request_headers, secret)
        if response.status_code >= 400:
            body_snippet = redact(_truncate(response.text or ""), secret)
            logger.error(
                "TheSportsDB non-success status=%s url=%s body=%s",
                response.status_code,
                redact(url, secret),
                body_snippet,
            )
            raise SportsDBClientError(
                f"TheSportsDB error {response.status_code}: {body_snippet}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise SportsDBClientError(
                "TheSportsDB returned non-JSON response: "
                + redact(_truncate(response.text or ""), secret)
            ) from exc

    def get_text(self, url: str) -> str:
        headers = {
            "User-Agent": DEFAULT_USER_AGENT,
            "Accept": "text/html",
        }
        response = self._get(url, headers)
        if response.status_code >= 400:
            raise SportsDBClientError(f"GET {url} returned {response.status_code}")
        return response.text
