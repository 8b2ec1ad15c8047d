"""HTTP client for the Sentry web API with retry and concurrency limits."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping
from urllib.parse import urljoin, urlsplit

import requests

from .errors import APIError, SentryError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://sentry.io/api/"
RETRY_WAIT_MIN = 1.0
RETRY_WAIT_MAX = 30.0
RETRY_MAX = 4

_CONCURRENT_LIMIT_HEADER = "X-Sentry-Rate-Limit-ConcurrentLimit"
_RESET_HEADER = "X-Sentry-Rate-Limit-Reset"


@dataclass(frozen=True)
class Response:
    """Metadata of an API response."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    cursor: str = ""


@dataclass(frozen=True)
class _Rate:
    concurrent_limit: int = 0
    reset: float | None = None


def _parse_rate(headers: Mapping[str, str]) -> _Rate:
    try:
        limit = int(headers.get(_CONCURRENT_LIMIT_HEADER, "0") or 0)
    except ValueError:
        limit = 0
    try:
        raw_reset = headers.get(_RESET_HEADER)
        reset = float(raw_reset) if raw_reset else None
    except ValueError:
        reset = None
    return _Rate(concurrent_limit=limit, reset=reset)


def _next_cursor(response: requests.Response) -> str:
    link = response.links.get("next")
    if link and link.get("results") == "true":
        return link.get("cursor", "")
    return ""


def _should_retry(response: requests.Response | None) -> bool:
    if response is None:
        return True
    status = response.status_code
    return status == 0 or status == 429 or (status >= 500 and status != 501)


def _backoff(attempt: int, response: requests.Response | None) -> float:
    if response is not None and response.status_code == 429:
        reset = _parse_rate(response.headers).reset
        if reset is not None:
            return max(0.0, reset - time.time())
    if response is not None and response.status_code in (429, 503):
        retry_after = response.headers.get("Retry-After", "")
        if retry_after.isdigit():
            return float(retry_after)
    return min(RETRY_WAIT_MIN * 2**attempt, RETRY_WAIT_MAX)


class Client:
    """Authenticated client for the Sentry API.

    Requests that fail with a rate limit or a server error are retried; once
    the server announces a concurrency limit, requests in flight are capped.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = "",
        retry_max: int = RETRY_MAX,
        sleep: Callable[[float], None] = time.sleep,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.user_agent = user_agent
        self.retry_max = retry_max
        self._sleep = sleep
        self._session = session or requests.Session()
        self._session.headers["Authorization"] = f"Bearer {token}"
        if user_agent:
            self._session.headers["User-Agent"] = user_agent
        self._probe_lock = threading.Lock()
        self._limiter: threading.BoundedSemaphore | None = None

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the underlying HTTP connections."""
        self._session.close()

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> tuple[Any, Response]:
        """Send a request and return the decoded JSON body and response metadata.

        Raises APIError when the server answers with a non-2xx status.
        """
        url = urljoin(self.base_url, path)
        query = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        request = requests.Request(
            method.upper(),
            url,
            json=body,
            params=query,
            headers={"Accept": "application/json"},
        )
        prepared = self._session.prepare_request(request)
        raw = self._send(prepared)

        meta = Response(
            status_code=raw.status_code,
            headers=dict(raw.headers),
            cursor=_next_cursor(raw),
        )
        if not 200 <= raw.status_code < 300:
            error = APIError.from_json(raw.content)
            error.status_code = raw.status_code
            error.response = meta
            raise error
        if not raw.content:
            return None, meta
        try:
            return raw.json(), meta
        except ValueError as exc:
            raise SentryError(f"invalid JSON in response from {url}") from exc

    def _send(self, prepared: requests.PreparedRequest) -> requests.Response:
        limiter = self._limiter
        if limiter is None:
            with self._probe_lock:
                if self._limiter is None:
                    response = self._send_with_retries(prepared)
                    limit = _parse_rate(response.headers).concurrent_limit
                    if limit > 0:
                        self._limiter = threading.BoundedSemaphore(limit)
                    return response
            limiter = self._limiter
        with limiter:
            return self._send_with_retries(prepared)

    def _send_with_retries(self, prepared: requests.PreparedRequest) -> requests.Response:
        response: requests.Response | None = None
        last_exc: Exception | None = None
        for attempt in range(self.retry_max + 1):
            try:
                response = self._session.send(prepared.copy())
                last_exc = None
            except requests.RequestException as exc:
                response, last_exc = None, exc
            if not _should_retry(response):
                break
            if attempt == self.retry_max:
                break
            self._sleep(_backoff(attempt, response))
        if response is None:
            raise SentryError(f"request to {prepared.url} failed") from last_exc
        return response


@dataclass
class Config:
    """Settings used to build a Client."""

    user_agent: str = ""
    token: str = ""
    base_url: str = ""

    def client(self) -> Client:
        """Create a client for sentry.io or for the configured on-premise server."""
        logger.info("Instantiating Sentry client...")
        if not self.base_url:
            return Client(self.token, user_agent=self.user_agent)
        parts = urlsplit(self.base_url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"invalid base URL: {self.base_url!r}")
        return Client(self.token, base_url=self.base_url, user_agent=self.user_agent)