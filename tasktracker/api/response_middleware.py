"""Middleware to ensure successful responses use the shared envelope."""

from __future__ import annotations

import json
from typing import Any
from uuid import uuid4

import structlog
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from tasktracker.api.response_utils import build_meta
from tasktracker.schemas.response import ResponseEnvelope


class SuccessEnvelopeMiddleware(BaseHTTPMiddleware):
    """
    Wrap successful JSON responses in the shared response envelope.

    Also binds the request id into the structlog context so every log line
    emitted while serving the request carries it.
    """

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        response.headers["X-Request-ID"] = request_id
        if not self._should_wrap(response):
            return response

        body_bytes = await self._extract_body(response)
        if not body_bytes:
            return response

        try:
            payload = json.loads(body_bytes)
        except ValueError:
            return response

        if isinstance(payload, dict) and "success" in payload:
            return JSONResponse(
                status_code=response.status_code,
                content=payload,
                headers=self._passthrough_headers(response),
            )

        envelope = ResponseEnvelope(
            success=True,
            data=payload,
            error=None,
            meta=build_meta(request),
        )

        return JSONResponse(
            status_code=response.status_code,
            content=jsonable_encoder(envelope, by_alias=True),
            headers=self._passthrough_headers(response),
        )

    async def _extract_body(self, response: Response) -> bytes | None:
        body = getattr(response, "body", None)
        if body:
            return body

        body_iterator = getattr(response, "body_iterator", None)
        if body_iterator is None:
            return None

        data: list[bytes] = []
        async for chunk in body_iterator:
            data.append(chunk)

        return b"".join(data)

    @staticmethod
    def _passthrough_headers(response: Response) -> dict[str, str]:
        # content-length is recomputed for the new body
        return {
            key: value
            for key, value in response.headers.items()
            if key.lower() not in ("content-length", "content-type")
        }

    def _should_wrap(self, response: Response) -> bool:
        if response.status_code >= 400:
            return False
        if response.status_code in (204, 304):
            return False

        content_type = response.headers.get("content-type", "")
        return "application/json" in content_type
