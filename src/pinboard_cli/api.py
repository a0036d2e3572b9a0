"""HTTP access to the Pinboard v1 API."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional
from urllib.parse import urlencode

import httpx

from .logging import get_logger, redact_url


DEFAULT_BASE_URL = "https://api.pinboard.in/v1"
HANDSHAKE_TIMEOUT = 60.0


class PinboardError(Exception):
    """Base class for failures talking to the Pinboard API."""


class TransportError(PinboardError):
    """Raised when the API server cannot be reached."""


class RateLimitedError(PinboardError):
    """Raised when the API answers 429 Too Many Requests."""


class UnexpectedStatusError(PinboardError):
    """Raised for any non-200 status other than 429."""

    def __init__(self, status_code: int) -> None:
        super().__init__(
            f"Unexpected status code: {status_code}. Expecting: {httpx.codes.OK.value}"
        )
        self.status_code = status_code


class DecodeError(PinboardError):
    """Raised when a response body does not match the expected record shape."""


def encode_params(params: Mapping[str, Optional[str]], required: Iterable[str] = ()) -> str:
    """URL-encode query parameters, skipping unset and empty values.

    Keys listed in `required` are always sent, even when empty. Keys are
    emitted in sorted order so the same mapping always produces the same
    string.
    """

    keep = set(required)
    present = {
        key: value or ""
        for key, value in params.items()
        if key in keep or (value is not None and value != "")
    }
    return urlencode(sorted(present.items()))


def build_url(
    resource: str,
    params: Mapping[str, Optional[str]],
    username: str,
    token: str,
    base_url: str = DEFAULT_BASE_URL,
    required: Iterable[str] = (),
) -> str:
    """Return the authenticated request URL for `resource`."""

    query = encode_params(params, required)
    return f"{base_url.rstrip('/')}/{resource}?auth_token={username}:{token}&format=json&{query}"


def build_client(
    timeout: float = HANDSHAKE_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create the HTTP client used for a single invocation.

    Only connection setup (TCP connect and TLS handshake) is bounded; reading
    the response body has no deadline.
    """

    return httpx.Client(
        timeout=httpx.Timeout(None, connect=timeout),
        transport=transport,
        follow_redirects=True,
    )


def fetch(client: httpx.Client, url: str) -> bytes:
    """Issue one GET for `url` and return the response body.

    Raises:
        TransportError: the server could not be reached or the URL is invalid.
        RateLimitedError: the API answered 429.
        UnexpectedStatusError: the API answered anything else but 200.
    """

    logger = get_logger("pinboard.api")
    logger.debug("API request", extra={"method": "GET", "url": redact_url(url)})
    try:
        response = client.get(url)
    except httpx.RequestError as exc:
        logger.debug("API request failed", extra={"url": redact_url(url), "error": str(exc)})
        raise TransportError("Can't access Pinboard API server") from exc
    except httpx.InvalidURL as exc:
        raise TransportError(f"Invalid request URL: {exc}") from exc

    logger.debug(
        "API response",
        extra={
            "url": redact_url(url),
            "status_code": response.status_code,
            "bytes": len(response.content),
        },
    )
    if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
        raise RateLimitedError("Too many requests to Pinboard API. Come back later")
    if response.status_code != httpx.codes.OK:
        raise UnexpectedStatusError(response.status_code)
    return response.content
