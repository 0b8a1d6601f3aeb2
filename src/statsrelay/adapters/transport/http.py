"""HTTP delivery of payloads to the infrastructure collector.

Delivery is fire-and-forget: a payload is posted once with a short timeout.
Errors are logged and reported to the caller through the return value; the
payload is never re-queued.
"""

import httpx

from statsrelay.core.logs import get_logger

logger = get_logger(__name__)

USER_AGENT = "StatsD-backend"


class HttpPayloadSender:
    """PayloadSenderPort implementation that POSTs JSON with httpx.

    Example:
        ```python
        sender = HttpPayloadSender("http://localhost:8001/v1/data", timeout=1.0)
        sender.send('{"name": "com.newrelic.statsd", ...}')
        ```
    """

    def __init__(
        self,
        url: str,
        timeout: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the sender.

        Args:
            url: Collector endpoint, e.g. http://localhost:8001/v1/data.
            timeout: Seconds before the request is aborted.
            transport: Optional httpx transport, used to stub the collector.
        """
        self.url = url
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @property
    def closed(self) -> bool:
        """True once close() has released the connection pool."""
        return self._client.is_closed

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._client.close()

    def __enter__(self) -> "HttpPayloadSender":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def send(self, payload: str) -> bool:
        """POST the payload and classify the response.

        Returns:
            True on a 2xx response, False on 4xx/5xx, other statuses, or
            transport failures (timeouts, refused connections).
        """
        logger.debug("Sending payload: %s", payload)
        try:
            response = self._client.post(
                self.url,
                content=payload.encode("utf-8"),
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": USER_AGENT,
                },
            )
        except httpx.TimeoutException:
            logger.warning(
                "Request timed out sending JSON payload to New Relic Infrastructure agent"
            )
            return False
        except httpx.HTTPError as e:
            logger.warning(
                "Unexpected error requesting New Relic Infrastructure Agent. Error: %s", e
            )
            return False

        status_class = response.status_code // 100
        if status_class == 2:
            logger.debug("Payload sent successfully")
            return True
        if status_class == 4:
            logger.warning(
                "Error sending JSON payload to New Relic Infrastructure Agent (POST %s). "
                "HTTP %d error: %s",
                self.url,
                response.status_code,
                response.text,
            )
        elif status_class == 5:
            logger.warning(
                "Unexpected error from New Relic Infrastructure Agent. HTTP %d error: %s",
                response.status_code,
                response.text,
            )
        else:
            logger.warning(
                "Unexpected response from New Relic Infrastructure Agent. HTTP %d: %s",
                response.status_code,
                response.text,
            )
        return False
