"""Thin JSON-over-HTTP client; the only place that knows about httpx."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator

import httpx

from family_chat.application.exceptions import (
    AppError,
    AuthenticationError,
    ForbiddenError,
    MalformedPayloadError,
    NetworkError,
    NotFoundError,
    ValidationError,
)
from family_chat.infrastructure.http.schemas.user import ErrorPayload

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], "str | None"]


def create_http_client(base_url: str) -> httpx.AsyncClient:
    # No client-side timeout: a hung request suspends only its own operation.
    return httpx.AsyncClient(base_url=base_url, timeout=None)


@contextmanager
def decoding(what: str) -> Iterator[None]:
    """Turn payload validation failures into ``MalformedPayloadError``."""
    try:
        yield
    except ValueError as exc:  # includes pydantic.ValidationError
        raise MalformedPayloadError(f"Malformed {what}: {exc}") from exc


class ApiClient:
    def __init__(self, http: httpx.AsyncClient, token_provider: TokenProvider) -> None:
        self._http = http
        self._token_provider = token_provider

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        token: str | None = None,
    ) -> Any:
        headers: dict[str, str] = {}
        bearer = token or self._token_provider()
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"

        try:
            response = await self._http.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %r", method, path, exc)
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            error = _error_for(response)
            logger.info("%s %s -> %d %s", method, path, response.status_code, error.detail)
            raise error

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedPayloadError(f"{method} {path}: response is not JSON") from exc

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)


def _error_for(response: httpx.Response) -> AppError:
    detail = _error_detail(response)
    status = response.status_code
    if status == 401:
        return AuthenticationError(detail)
    if status == 403:
        return ForbiddenError(detail)
    if status == 404:
        return NotFoundError(detail)
    if status in (408, 429) or status >= 500:
        return NetworkError(detail)
    return ValidationError(detail)


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = ErrorPayload.model_validate(response.json())
    except ValueError:
        return response.reason_phrase or f"HTTP {response.status_code}"
    if payload.message:
        return payload.message
    if payload.detail:
        return str(payload.detail)
    return response.reason_phrase or f"HTTP {response.status_code}"
