"""Caching middleware for ASGI applications.

Per request:
1. A fresh ResponseDecorators is published on request.state so handlers
   can record etag/expires intent.
2. If the request carries If-None-Match and the store still knows that
   tag, the cycle short-circuits with 304 and the handler never runs.
3. When the response starts, Cache-Control (from the installation's
   policy) and any Expires intent are applied.
4. If the handler asked for an ETag, the body is buffered, the tag is
   attached and written to the store, and only then is the response
   emitted. With compare_outgoing_tag the tag just attached is also
   compared with If-None-Match, which can still turn the response into
   a 304 since no body byte has been sent.

Responses without ETag intent are streamed through untouched apart from
their headers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from response_caching.conditional import ConditionalContext, Decision
from response_caching.decorators import STATE_KEY, ResponseDecorators
from response_caching.exceptions import BackendError

if TYPE_CHECKING:
    from response_caching.plugin import CachingInstallation

log = structlog.get_logger(__name__)

INSTALLATION_STATE_KEY = "response_caching_installation"


def backend_error_response() -> Response:
    return JSONResponse({"detail": "Cache backend unavailable"}, status_code=500)


class CachingMiddleware:
    """Pure ASGI middleware driving the tag/store/policy pipeline."""

    def __init__(self, app: ASGIApp, *, installation: CachingInstallation) -> None:
        self.app = app
        self._installation = installation

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        installation = self._installation
        context = ConditionalContext(incoming_tag=Headers(scope=scope).get("if-none-match"))
        decorators = ResponseDecorators(default_ttl_ms=installation.options.etag_max_life_ms)
        state = scope.setdefault("state", {})
        state[STATE_KEY] = decorators
        state[INSTALLATION_STATE_KEY] = installation

        if context.incoming_tag is not None:
            try:
                known_tag = await installation.lookup_tag(context.incoming_tag)
            except BackendError as exc:
                log.error("caching.backend_error", phase="lookup", path=scope["path"], error=str(exc))
                await backend_error_response()(scope, receive, send)
                return

            if known_tag is not None and context.resolve(known_tag) is Decision.FRESH:
                log.debug("caching.not_modified", path=scope["path"], etag=known_tag)
                response = Response(
                    status_code=304,
                    headers={"etag": known_tag, "cache-control": installation.cache_control},
                )
                await response(scope, receive, send)
                return

        start_message: Message | None = None
        body_chunks: list[bytes] = []

        async def send_with_caching(message: Message) -> None:
            nonlocal start_message
            if message["type"] == "http.response.start":
                decorators.seal()
                self._apply_policy_headers(message, decorators)
                if not decorators.etag_requested:
                    await send(message)
                    return
                start_message = message
                return

            if message["type"] == "http.response.body" and start_message is not None:
                body_chunks.append(message.get("body", b""))
                if message.get("more_body", False):
                    return
                await self._send_tagged(
                    scope, receive, send, start_message, b"".join(body_chunks), decorators, context
                )
                return

            await send(message)

        await self.app(scope, receive, send_with_caching)

    def _apply_policy_headers(self, message: Message, decorators: ResponseDecorators) -> None:
        message.setdefault("headers", [])
        headers = MutableHeaders(scope=message)
        # A Cache-Control set by the handler itself wins over the policy
        if "cache-control" not in headers:
            headers["cache-control"] = self._installation.cache_control
        if decorators.expires_touched:
            if decorators.expires_value:
                headers["expires"] = decorators.expires_value
            elif "expires" in headers:
                del headers["expires"]

    async def _send_tagged(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        start_message: Message,
        body: bytes,
        decorators: ResponseDecorators,
        context: ConditionalContext,
    ) -> None:
        installation = self._installation
        tag = installation.tags.resolve(decorators.explicit_tag, body)
        headers = MutableHeaders(scope=start_message)
        headers["etag"] = tag

        try:
            await installation.remember_tag(
                tag,
                path=scope["path"],
                status_code=start_message["status"],
                ttl_ms=decorators.ttl_ms,
            )
        except BackendError as exc:
            log.error("caching.backend_error", phase="store", path=scope["path"], error=str(exc))
            await backend_error_response()(scope, receive, send)
            return

        if installation.options.compare_outgoing_tag:
            context.resolve(tag)
        else:
            context.outgoing_tag = tag
            context.decision = Decision.STALE

        if context.is_fresh:
            log.debug("caching.not_modified", path=scope["path"], etag=tag, phase="send")
            start_message["status"] = 304
            if "content-length" in headers:
                del headers["content-length"]
            body = b""

        await send(start_message)
        await send({"type": "http.response.body", "body": body, "more_body": False})
