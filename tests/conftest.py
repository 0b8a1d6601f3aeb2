"""Shared test fixtures for all test modules."""

from collections.abc import Callable
from typing import Any

import pytest

from statsrelay.adapters.transport.in_memory import InMemoryPayloadSender
from statsrelay.core.config import RelayConfig
from statsrelay.core.models import Rule
from statsrelay.relay import Relay
from tests.support import REDIS_RULE_CONFIG


@pytest.fixture
def redis_rule() -> Rule:
    """Rule grouping every redis metric under one RedisSample entity."""
    return Rule(
        match_expression=".*redis.*",
        metric_schema="{app}.{service}.{metricName}",
        entity_type="Redis Cluster",
        entity_name="Production Host1",
        event_type="RedisSample",
    )


@pytest.fixture
def redis_snapshot() -> dict[str, Any]:
    """Raw snapshot with one metric of each kind the redis rule matches."""
    return {
        "gauges": {"myapp.redis.my_gauge": 1},
        "counters": {"myapp.redis.my_counter": 10},
        "counter_rates": {"myapp.redis.my_counter": 1},
        "timer_data": {"myapp.redis.my_timer": {"sum": 10, "mean": 10}},
    }


@pytest.fixture
def sender() -> InMemoryPayloadSender:
    """Sender that records payloads instead of posting them."""
    return InMemoryPayloadSender()


@pytest.fixture
def make_relay(sender: InMemoryPayloadSender) -> Callable[..., Relay]:
    """Factory fixture building a Relay from backend config overrides.

    Usage:
        def test_something(make_relay):
            relay = make_relay(metricsLimit=2)
    """

    def _make(**section: Any) -> Relay:
        section.setdefault("rules", [REDIS_RULE_CONFIG])
        config = RelayConfig.from_mapping(section)
        return Relay(config, sender=sender, startup_time=1000)

    return _make
