"""Compose and encode integration payloads from collected entity records."""

import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from statsrelay.core.logs import get_logger
from statsrelay.core.models import EntityRecord

logger = get_logger(__name__)

INTEGRATION_NAME = "com.newrelic.statsd"
INTEGRATION_VERSION = "0.1.0"
LIMIT_ERROR_EVENT_TYPE = "StatsdLimitErrorSample"
DEFAULT_METRICS_LIMIT = 150
SUPPORTED_PROTOCOL_VERSIONS = (1, 2)


@dataclass(frozen=True)
class ComposedPayload:
    """A payload document plus the number of events dropped for size.

    Attributes:
        body: The JSON-serializable payload document.
        overflowed: Events whose field count exceeded the configured limit.
    """

    body: dict[str, Any]
    overflowed: int = 0

    @property
    def has_records(self) -> bool:
        """True when the payload carries something worth delivering."""
        return bool(self.body.get("metrics") or self.body.get("data"))


def _integration_header(protocol_version: int) -> dict[str, Any]:
    return {
        "name": INTEGRATION_NAME,
        "integration_version": INTEGRATION_VERSION,
        "protocol_version": str(protocol_version),
    }


def _limit_error(metrics_length: int, metrics_limit: int) -> dict[str, Any]:
    return {
        "event_type": LIMIT_ERROR_EVENT_TYPE,
        "numberOfMetrics": metrics_length,
        "configuredLimit": metrics_limit,
    }


def _log_overflow(metrics_length: int, metrics_limit: int) -> None:
    logger.debug(
        "The event has more than %d metrics and can't be processed. Metrics length: %d",
        metrics_limit,
        metrics_length,
    )


def _compose_v1(
    entities: Mapping[str, EntityRecord], metrics_limit: int, send_limit_errors: bool
) -> ComposedPayload:
    metric_sets: list[dict[str, Any]] = []
    overflowed = 0
    for record in entities.values():
        for event_type, values in record.metrics.items():
            metrics_length = len(values)
            if metrics_length > metrics_limit:
                overflowed += 1
                if send_limit_errors:
                    metric_sets.append(_limit_error(metrics_length, metrics_limit))
                _log_overflow(metrics_length, metrics_limit)
            else:
                metric_sets.append({"event_type": event_type, **values})
    body = {
        **_integration_header(1),
        "metrics": metric_sets,
        "inventory": {},
        "events": [],
    }
    return ComposedPayload(body=body, overflowed=overflowed)


def _compose_v2(
    entities: Mapping[str, EntityRecord], metrics_limit: int, send_limit_errors: bool
) -> ComposedPayload:
    entities_data: list[dict[str, Any]] = []
    overflowed = 0
    for record in entities.values():
        entity_name = f"{record.type}:{record.name}"
        identity = {"entityName": entity_name, "displayName": record.name}
        metric_sets: list[dict[str, Any]] = []
        for event_type, values in record.metrics.items():
            metrics_length = len(values)
            if metrics_length > metrics_limit:
                overflowed += 1
                if send_limit_errors:
                    metric_sets.append(
                        {
                            "event_type": LIMIT_ERROR_EVENT_TYPE,
                            **identity,
                            "numberOfMetrics": metrics_length,
                            "configuredLimit": metrics_limit,
                        }
                    )
                _log_overflow(metrics_length, metrics_limit)
            else:
                metric_sets.append({"event_type": event_type, **values, **identity})
        entities_data.append(
            {
                "entity": {"name": record.name, "type": record.type},
                "metrics": metric_sets,
                "events": [],
                "inventory": {},
            }
        )
    body = {**_integration_header(2), "data": entities_data}
    return ComposedPayload(body=body, overflowed=overflowed)


def compose_payload(
    entities: Mapping[str, EntityRecord],
    metrics_limit: int = DEFAULT_METRICS_LIMIT,
    send_limit_errors: bool = True,
    protocol_version: int = 1,
) -> ComposedPayload:
    """Turn collected entity records into an integration payload.

    An event with more fields than metrics_limit is never sent as is; when
    send_limit_errors is set a StatsdLimitErrorSample record takes its place.

    Args:
        entities: Entity key -> record, in the order records were created.
        metrics_limit: Maximum number of fields per event.
        send_limit_errors: Emit an overflow record for each oversized event.
        protocol_version: 1 for a flat metrics list, 2 for per-entity data.

    Returns:
        ComposedPayload with the document and the overflow count.

    Raises:
        ValueError: If protocol_version is not supported.
    """
    if protocol_version == 1:
        return _compose_v1(entities, metrics_limit, send_limit_errors)
    if protocol_version == 2:
        return _compose_v2(entities, metrics_limit, send_limit_errors)
    raise ValueError(f"Unsupported protocol version: {protocol_version}")


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, Mapping):
        return {key: _json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_value(item) for item in value]
    return value


def encode_payload(body: Mapping[str, Any]) -> str:
    """Encode a payload document as compact, strictly valid JSON.

    NaN and infinite values become null and Decimal values are written as
    numbers, so the collector never receives the non-standard NaN or
    Infinity tokens.

    Raises:
        TypeError: If the document holds a value JSON cannot represent.
    """
    return json.dumps(_json_value(body), separators=(",", ":"), allow_nan=False)
