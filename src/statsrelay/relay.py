"""Flush orchestration: snapshot in, payload out, delivery best effort."""

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from statsrelay.adapters.transport.http import HttpPayloadSender
from statsrelay.core.aggregator import collect_metrics
from statsrelay.core.config import CONFIG_SECTION, RelayConfig
from statsrelay.core.encoding.payload import compose_payload, encode_payload
from statsrelay.core.logs import ROOT_LOGGER_NAME, get_logger
from statsrelay.core.models import FlushStats, MetricSnapshot
from statsrelay.core.ports import PayloadSenderPort

logger = get_logger(__name__)

StatusWriter = Callable[[Exception | None, str, str, Any], None]


def _now() -> int:
    return round(time.time())


class Relay:
    """Converts statsd flush snapshots into integration payloads.

    One Relay lives for the whole process. Each flush builds its own entity
    mapping and discards it; only the delivery statistics survive between
    flushes.

    Example:
        ```python
        config = load_config("statsd.json")
        with Relay(config) as relay:
            payload = relay.flush(time.time(), {"gauges": {"myapp.redis.mem": 1}})
        ```
    """

    def __init__(
        self,
        config: RelayConfig,
        sender: PayloadSenderPort | None = None,
        startup_time: int | None = None,
    ) -> None:
        """Initialize the relay.

        When config.debug is set the statsrelay logger is lowered to DEBUG.
        Handlers stay with the host application (see configure_logging).

        Args:
            config: Validated relay configuration.
            sender: Delivery adapter. Defaults to an HttpPayloadSender
                targeting config.url with config.send_timeout.
                The relay owns and closes a sender it creates itself.
            startup_time: Epoch seconds used to seed the status timestamps.
        """
        self.config = config
        if config.debug:
            logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.DEBUG)
        self._owned_sender: HttpPayloadSender | None = None
        if sender is None:
            sender = self._owned_sender = HttpPayloadSender(
                config.url, timeout=config.send_timeout
            )
        self.sender = sender
        started = _now() if startup_time is None else startup_time
        self.stats = FlushStats(last_flush=started, last_exception=started)

    def flush(
        self, timestamp: float, raw_metrics: MetricSnapshot | Mapping[str, Any] | None
    ) -> dict[str, Any]:
        """Run one flush cycle.

        Args:
            timestamp: Flush time reported by the aggregation pipeline.
            raw_metrics: Snapshot of aggregated metrics, as a MetricSnapshot
                or a raw mapping with optional category keys.

        Returns:
            The composed payload document, whether or not it was delivered.
        """
        config = self.config
        if not config.rules:
            logger.debug(
                "There are no rules configured for backend '%s'. Without rules, "
                "StatsD metrics cannot be processed and sent.",
                CONFIG_SECTION,
            )
        snapshot = (
            raw_metrics
            if isinstance(raw_metrics, MetricSnapshot)
            else MetricSnapshot.from_mapping(raw_metrics)
        )
        collected = collect_metrics(snapshot, config.rules)
        composed = compose_payload(
            collected.entities,
            metrics_limit=config.metrics_limit,
            send_limit_errors=config.send_limit_errors,
            protocol_version=config.protocol_version,
        )
        if composed.overflowed:
            self.stats.last_exception = _now()

        if not composed.has_records:
            logger.debug("Nothing to send for flush at %s", timestamp)
            return composed.body
        try:
            payload = encode_payload(composed.body)
        except (TypeError, ValueError):
            logger.exception("Failed to encode payload for flush at %s", timestamp)
            self.stats.last_exception = _now()
            return composed.body
        self._deliver(payload)
        return composed.body

    def _deliver(self, payload: str) -> None:
        start = time.perf_counter()
        try:
            delivered = self.sender.send(payload)
        except Exception:
            logger.exception("Payload delivery failed")
            delivered = False
        if not delivered:
            self.stats.last_exception = _now()
        self.stats.flush_time = round((time.perf_counter() - start) * 1000)
        self.stats.flush_length = len(payload.encode("utf-8"))
        self.stats.last_flush = _now()

    def close(self) -> None:
        """Release the sender if this relay created it."""
        if self._owned_sender is not None:
            self._owned_sender.close()

    def __enter__(self) -> "Relay":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def status(self, write: StatusWriter) -> None:
        """Report delivery statistics through a statsd-style status callback.

        Args:
            write: Called as write(error, backend_name, stat_name, value)
                once per statistic.
        """
        for stat, value in self.stats.as_dict().items():
            write(None, CONFIG_SECTION, stat, value)
