"""ASGI adapter exposing relay delivery statistics.

This adapter provides a framework-agnostic ASGI application that can be
mounted next to the relay and polled by monitoring, without requiring any web
framework as a dependency.
"""

import json
from collections.abc import Callable, Coroutine
from typing import Any

from statsrelay.core.logs import get_logger
from statsrelay.relay import Relay

logger = get_logger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body as string (will be encoded to bytes).
    """
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


def create_status_app(relay: Relay) -> ASGIApp:
    """Create an ASGI app with a /status endpoint.

    GET /status returns the relay's last_flush, last_exception, flush_time
    and flush_length as a JSON object. Other paths return 404 and other
    methods on /status return 405.

    Args:
        relay: The relay whose statistics are reported.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        if scope["path"] != "/status":
            await _send_response(send, 404, "text/plain", "Not Found")
            return
        if scope.get("method", "GET") != "GET":
            await _send_response(send, 405, "text/plain", "Method Not Allowed")
            return

        stats: dict[str, Any] = {}

        def collect(error: Exception | None, backend: str, stat: str, value: Any) -> None:
            stats[stat] = value

        try:
            relay.status(collect)
        except Exception:
            logger.exception("Error reading relay status")
            error_body = json.dumps({"error": "Internal Server Error"})
            await _send_response(send, 500, "application/json", error_body)
            return
        await _send_response(send, 200, "application/json", json.dumps(stats))

    return app
