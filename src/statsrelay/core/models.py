"""Core domain models for the metrics relay."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

MetricValue = int | float


@dataclass(frozen=True)
class TaggedName:
    """A metric name with the tags that were attached to its raw key.

    Attributes:
        name: Base metric name (everything before the first '#').
        tags: Ordered tag key/value pairs.
    """

    name: str
    tags: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Rule:
    """Mapping from a metric-name pattern to an entity/event template.

    Attributes:
        match_expression: Regular expression searched in the metric name.
        metric_schema: Dot-delimited template with {field} placeholders.
        entity_type: Template for the entity type.
        entity_name: Template for the entity name.
        event_type: Literal event type name.
        labels: Label name to template, rendered as label.<name> fields.
    """

    match_expression: str
    metric_schema: str
    entity_type: str
    entity_name: str
    event_type: str
    labels: dict[str, str] = field(default_factory=dict)
    pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "pattern", re.compile(self.match_expression))


@dataclass(frozen=True)
class MetricSnapshot:
    """Aggregated metrics handed over by the statsd pipeline for one flush.

    Attributes:
        counters: Counter totals keyed by (possibly tagged) metric name.
        counter_rates: Per-second rates keyed like counters.
        gauges: Gauge values.
        timer_data: Timer summaries (statistic name -> value).
        sets: Sets of unique values; only their cardinality is relayed.
    """

    counters: Mapping[str, MetricValue] = field(default_factory=dict)
    counter_rates: Mapping[str, MetricValue] = field(default_factory=dict)
    gauges: Mapping[str, MetricValue] = field(default_factory=dict)
    timer_data: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    sets: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> "MetricSnapshot":
        """Build a snapshot from a raw mapping, defaulting missing categories."""
        raw = raw or {}
        return cls(
            counters=raw.get("counters") or {},
            counter_rates=raw.get("counter_rates") or {},
            gauges=raw.get("gauges") or {},
            timer_data=raw.get("timer_data") or {},
            sets=raw.get("sets") or {},
        )

    def key_count(self) -> int:
        """Number of raw keys across the categories that drive matching."""
        return (
            len(self.counters) + len(self.timer_data) + len(self.gauges) + len(self.sets)
        )


@dataclass
class EntityRecord:
    """Events collected for one entity during a flush.

    Attributes:
        name: Rendered entity name.
        type: Rendered entity type.
        metrics: Event type -> field name -> value, in insertion order.
    """

    name: str
    type: str
    metrics: dict[str, dict[str, Any]] = field(default_factory=dict)

    def fields_for(self, event_type: str) -> dict[str, Any]:
        """Return the field map for an event type, creating it on first use."""
        return self.metrics.setdefault(event_type, {})


class MatchResult(Enum):
    """Outcome of evaluating one rule against one metric name."""

    NO_MATCH = "no_match"
    EMITTED = "emitted"
    SCHEMA_TOO_SHORT = "schema_too_short"

    @property
    def matched(self) -> bool:
        """True when the rule expression matched, whether or not fields were stored."""
        return self is not MatchResult.NO_MATCH


@dataclass
class FlushStats:
    """Delivery statistics exposed through the status hook.

    Every value is overwritten by the latest flush, never accumulated.

    Attributes:
        last_flush: Epoch seconds of the last delivery attempt.
        last_exception: Epoch seconds of the last delivery or overflow error.
        flush_time: Duration of the last delivery in milliseconds.
        flush_length: Size of the last delivered payload in bytes.
    """

    last_flush: int | None = None
    last_exception: int | None = None
    flush_time: int | None = None
    flush_length: int | None = None

    def as_dict(self) -> dict[str, int | None]:
        return {
            "last_flush": self.last_flush,
            "last_exception": self.last_exception,
            "flush_time": self.flush_time,
            "flush_length": self.flush_length,
        }
