"""
REST API Client.

Thin wrapper around ``httpx.Client`` for the household-registry API.
Every request is credentialed by the client's cookie jar: the server
sets the session cookie on login and clears it on logout.  No token is
held or sent explicitly.

Non-2xx responses are raised as ``ApiError`` subclasses carrying the
status code, the server's human-readable message and, when the server
sends one, a structured ``kind`` with its details.

Usage::

    api = ApiClient(
        base_url=config.API_BASE_URL,
        timeout_s=config.REQUEST_TIMEOUT_S,
        logger=StructuredLogger(name="api"),
    )
    identity_payload = api.get_json("/api/user")
"""

from __future__ import annotations

from typing import Any, Optional, Union

import httpx

from familyaid.logger import StructuredLogger

JsonBody = Union[dict[str, Any], list[Any], None]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ApiError(Exception):
    """A request that did not produce a 2xx response.

    Attributes
    ----------
    message:
        Human-readable text taken from the response body.
    status_code:
        HTTP status, ``None`` for transport-level failures.
    kind:
        Structured error kind when the server provides one.
    details:
        Remaining fields of a structured error body.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        kind: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.status_code: Optional[int] = status_code
        self.kind: Optional[str] = kind
        self.details: dict[str, Any] = details or {}


class ApiUnauthorizedError(ApiError):
    """HTTP 401: no valid session."""


class ApiNotFoundError(ApiError):
    """HTTP 404."""


class ApiTimeoutError(ApiError):
    """The request exceeded the configured timeout."""


class ApiTransportError(ApiError):
    """The server could not be reached."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ApiClient:
    """Synchronous JSON client bound to one base URL and one cookie jar.

    Parameters
    ----------
    base_url:
        API root, e.g. ``https://aid.example.org``.
    timeout_s:
        Applied to connect, read, write and pool acquisition.
    logger:
        Structured logger for request failures.
    transport:
        Optional ``httpx`` transport; tests pass an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float,
        logger: StructuredLogger,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._logger = logger
        self._client = httpx.Client(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_s),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            transport=transport,
        )

    @property
    def cookies(self) -> httpx.Cookies:
        """The ambient session cookie jar."""
        return self._client.cookies

    def get_json(self, path: str) -> JsonBody:
        """``GET`` *path* and return the decoded body (``None`` when empty)."""
        return self._request("GET", path)

    def post_json(self, path: str, payload: JsonBody = None) -> JsonBody:
        """``POST`` *payload* to *path* and return the decoded body."""
        return self._request("POST", path, payload)

    def close(self) -> None:
        """Close the underlying connection pool.  Safe to call twice."""
        self._client.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, payload: JsonBody = None) -> JsonBody:
        try:
            if payload is None:
                response = self._client.request(method, path)
            else:
                response = self._client.request(method, path, json=payload)
        except httpx.TimeoutException as exc:
            self._logger.warning("%s %s timed out: %s", method, path, exc)
            raise ApiTimeoutError(f"Request to {path} timed out.") from exc
        except httpx.TransportError as exc:
            self._logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiTransportError(f"Cannot reach the server: {exc}") from exc
        except httpx.HTTPError as exc:
            # Undecodable bodies, redirect loops and the like.
            self._logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiTransportError(f"The server response could not be read: {exc}") from exc

        if response.is_success:
            return self._decode(response)

        raise self._to_error(response)

    @staticmethod
    def _decode(response: httpx.Response) -> JsonBody:
        if not response.content or not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                "The server returned a response that is not JSON.",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _to_error(response: httpx.Response) -> ApiError:
        """Build the ``ApiError`` subclass matching *response*."""
        status = response.status_code
        message = response.text.strip() or response.reason_phrase
        kind: Optional[str] = None
        details: dict[str, Any] = {}

        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            # Either {"message": ..., "kind": ...} or {"error": {...}}.
            error_obj = body.get("error") if isinstance(body.get("error"), dict) else body
            text = error_obj.get("message") or body.get("message")
            if isinstance(body.get("error"), str) and not text:
                text = body["error"]
            if isinstance(text, str) and text:
                message = text
            if isinstance(error_obj.get("kind"), str):
                kind = error_obj["kind"]
            details = {
                key: value
                for key, value in error_obj.items()
                if key not in {"message", "kind"}
            }

        error_cls: type[ApiError] = ApiError
        if status == 401:
            error_cls = ApiUnauthorizedError
        elif status == 404:
            error_cls = ApiNotFoundError

        return error_cls(message, status_code=status, kind=kind, details=details)
