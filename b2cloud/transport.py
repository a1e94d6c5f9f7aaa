"""Transport envelope: one HTTP exchange, decoded or turned into an error.

Every Session operation goes through :class:`Transport`, so the
success/error branching lives in one place. A response with the single
success status is decoded as JSON; anything else is decoded into an
:class:`~b2cloud.base.exceptions.ApiError`. Failures of the exchange
itself surface as :class:`~b2cloud.base.exceptions.TransportError`.
"""

from __future__ import annotations

from typing import Any, BinaryIO, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from b2cloud.base.exceptions import ApiError, DecodeError, TransportError
from b2cloud.base.logger import b2_logger
from b2cloud.base.protocol import SUCCESS_STATUS

M = TypeVar("M", bound=BaseModel)


def _json_body(response: httpx.Response, operation: str | None) -> Any:
    try:
        return response.json()
    except ValueError as e:
        b2_logger.error(
            "Malformed response body",
            operation=operation,
            status=response.status_code,
        )
        raise TransportError(
            f"Received invalid response from B2 API (status {response.status_code})",
            original=e,
        ) from e


def _api_error(response: httpx.Response, operation: str | None) -> ApiError:
    payload = _json_body(response, operation)
    if not isinstance(payload, dict):
        raise TransportError(
            f"Received invalid error payload from B2 API (status {response.status_code})"
        )
    error = ApiError.from_payload(payload, response.status_code)
    b2_logger.warning(
        f"B2 API error: {error.code}",
        operation=operation,
        status=error.status,
    )
    return error


def decode(model: type[M], payload: Any) -> M:
    """Validate a decoded JSON payload into *model*.

    Raises:
        DecodeError: If the payload does not match the model.
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise DecodeError(f"Unexpected {model.__name__} payload: {e}") from e


class Transport:
    """Issues single request/response exchanges against the B2 API.

    Attributes:
        client: The underlying :class:`httpx.Client`.
    """

    def __init__(self, client: httpx.Client | None = None, timeout: float = 30.0) -> None:
        """Create a transport.

        Args:
            client: Pre-built client (e.g. one with a mock transport). The
                transport does not close a client it was handed.
            timeout: Timeout in seconds for a client created here.
        """
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=timeout)

    def call(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        content: Any = None,
        auth: tuple[str, str] | None = None,
        operation: str | None = None,
    ) -> dict[str, Any]:
        """Perform one exchange and return the decoded success payload.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            headers: Request headers.
            params: Query parameters.
            json: JSON request body.
            content: Raw request body (bytes or an iterator of bytes).
            auth: Basic-auth credentials, only for the authorize call.
            operation: Operation name used for logging.

        Returns:
            The JSON object returned by the service.

        Raises:
            TransportError: If the request did not complete or the body is not JSON.
            ApiError: If the service returned a non-success status.
        """
        b2_logger.debug(f"{method} {operation or url}", operation=operation)
        try:
            response = self.client.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json,
                content=content,
                auth=auth,
            )
        except httpx.HTTPError as e:
            b2_logger.error(f"Request failed: {e}", operation=operation)
            raise TransportError(f"Request to {operation or url} failed: {e}", original=e) from e

        if response.status_code != SUCCESS_STATUS:
            raise _api_error(response, operation)

        payload = _json_body(response, operation)
        if not isinstance(payload, dict):
            raise DecodeError(f"Expected a JSON object from {operation or url}")
        return payload

    def download(
        self,
        url: str,
        sink: BinaryIO,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
        operation: str | None = None,
    ) -> httpx.Headers:
        """Stream a response body into *sink* and return the response headers.

        Nothing is written to *sink* unless the status is the success status.

        Raises:
            TransportError: If the request or the stream fails.
            ApiError: If the service returned a non-success status.
        """
        b2_logger.debug(f"GET {operation or url}", operation=operation)
        try:
            with self.client.stream("GET", url, headers=headers, params=params) as response:
                if response.status_code != SUCCESS_STATUS:
                    response.read()
                    raise _api_error(response, operation)
                for chunk in response.iter_bytes():
                    sink.write(chunk)
                return response.headers
        except httpx.HTTPError as e:
            b2_logger.error(f"Download failed: {e}", operation=operation)
            raise TransportError(f"Download from {operation or url} failed: {e}", original=e) from e

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *_: Any) -> None:
        self.close()
