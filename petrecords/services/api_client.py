from __future__ import annotations

import time
import uuid
from typing import Any

import httpx
from pydantic import BaseModel
from redis.exceptions import RedisError

from petrecords.core import session
from petrecords.core.config import Settings
from petrecords.core.logging import get_logger

_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})

log = get_logger("api")


class ApiResult(BaseModel):
    """Outcome of one backend call: ``data`` on 2xx, ``error`` otherwise.

    ``status`` is 0 when no response was received (connection failure or
    timeout).
    """

    data: Any = None
    error: str | None = None
    status: int
    request_id: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status < 300


def _request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def _message_from_upstream(upstream_data: Any, fallback: str) -> str:
    if isinstance(upstream_data, dict):
        message = upstream_data.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return fallback


def _fallback_message(status_code: int) -> str:
    if status_code == 401:
        return "Authentication failed."
    if status_code == 404:
        return "Requested resource was not found."
    if status_code == 422:
        return "Validation failed."
    if status_code == 429:
        return "The server is busy, please try again in a moment."
    if status_code >= 500:
        return "Server is temporarily unavailable."
    return "Request failed."


def _decode_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return None


async def _headers(settings: Settings) -> dict[str, str]:
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    token = await session.get_token(settings)
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def _invalidate_session(settings: Settings, request_id: str) -> None:
    try:
        await session.clear_session(settings)
    except RedisError as exc:
        log.warning("session_clear_failed", request_id=request_id, error=str(exc))
        return
    log.info("session_cleared", request_id=request_id)


async def call_api(
    *,
    method: str,
    path: str,
    settings: Settings,
    json_data: Any = None,
    timeout: float | None = None,
) -> ApiResult:
    method = method.upper()
    if method not in _METHODS:
        raise ValueError(f"Unsupported HTTP method: {method}")
    if not path.startswith("/"):
        raise ValueError(f"Path must start with '/': {path!r}")

    request_id = _request_id()
    headers = await _headers(settings)
    start = time.perf_counter()

    try:
        async with httpx.AsyncClient(timeout=timeout or settings.REQUEST_TIMEOUT) as client:
            resp = await client.request(
                method=method,
                url=f"{settings.API_BASE_URL}{path}",
                headers=headers,
                json=json_data,
            )
    except httpx.RequestError as exc:
        log.warning(
            "api_request",
            method=method,
            path=path,
            status=0,
            error=type(exc).__name__,
            request_id=request_id,
        )
        return ApiResult(error="Network error", status=0, request_id=request_id)

    latency_ms = round((time.perf_counter() - start) * 1000, 2)
    log.info(
        "api_request",
        method=method,
        path=path,
        status=resp.status_code,
        latency_ms=latency_ms,
        request_id=request_id,
    )

    body = _decode_body(resp)
    if 200 <= resp.status_code < 300:
        return ApiResult(data=body, status=resp.status_code, request_id=request_id)

    if resp.status_code == 401:
        await _invalidate_session(settings, request_id)

    if body is None and resp.text:
        body = {"message": resp.text}
    return ApiResult(
        error=_message_from_upstream(body, _fallback_message(resp.status_code)),
        status=resp.status_code,
        request_id=request_id,
    )


async def get(path: str, settings: Settings) -> ApiResult:
    return await call_api(method="GET", path=path, settings=settings)


async def post(path: str, body: Any, settings: Settings) -> ApiResult:
    return await call_api(method="POST", path=path, settings=settings, json_data=body)


async def put(path: str, body: Any, settings: Settings) -> ApiResult:
    return await call_api(method="PUT", path=path, settings=settings, json_data=body)


async def delete(path: str, settings: Settings) -> ApiResult:
    return await call_api(method="DELETE", path=path, settings=settings)
