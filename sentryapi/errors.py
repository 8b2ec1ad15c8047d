"""Exceptions raised by the Sentry API client."""

from __future__ import annotations

import json
from typing import Any


class SentryError(Exception):
    """Base class for every error raised by this package."""


def _go_format(value: Any) -> str:
    """Render a decoded JSON value the way Sentry error details are shown."""
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, dict):
        items = " ".join(f"{key}:{_go_format(value[key])}" for key in sorted(value))
        return f"map[{items}]"
    if isinstance(value, list):
        return "[" + " ".join(_go_format(item) for item in value) + "]"
    return str(value)


class APIError(SentryError):
    """An error response returned by the Sentry API.

    The payload is whatever the server sent: usually an object with a single
    ``detail`` key, but any JSON value, or the raw text if it was not JSON.
    """

    def __init__(self, payload: Any = None, status_code: int | None = None) -> None:
        super().__init__(payload)
        self.payload = payload
        self.status_code = status_code
        self.response: Any = None

    @classmethod
    def from_json(cls, raw: str | bytes) -> "APIError":
        """Build an error from a response body, keeping it as text if it is not JSON."""
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        try:
            payload = json.loads(text)
        except ValueError:
            payload = text
        return cls(payload)

    def detail(self) -> str:
        """The human readable description of the error."""
        payload = self.payload
        if isinstance(payload, dict) and len(payload) == 1:
            detail = payload.get("detail")
            if isinstance(detail, str):
                return detail
        return _go_format(payload)

    def is_empty(self) -> bool:
        """True when the server sent no error payload at all."""
        return self.payload is None

    def __str__(self) -> str:
        return f"sentry: {self.detail()}"


class TaskError(SentryError):
    """An asynchronous creation task on the server failed or never finished."""