"""BDD step definitions for the flush cycle feature."""

from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from statsrelay.adapters.transport.in_memory import InMemoryPayloadSender
from statsrelay.core.config import RelayConfig
from statsrelay.relay import Relay


@dataclass
class FlushScenarioContext:
    """Shared state between steps in a flush scenario."""

    rule: dict[str, Any] = field(default_factory=dict)
    section: dict[str, Any] = field(default_factory=dict)
    snapshot: dict[str, dict[str, Any]] = field(
        default_factory=lambda: {
            "counters": {},
            "counter_rates": {},
            "gauges": {},
            "timer_data": {},
            "sets": {},
        }
    )
    sender: InMemoryPayloadSender = field(default_factory=InMemoryPayloadSender)
    payload: dict[str, Any] = field(default_factory=dict)


@pytest.fixture
def ctx() -> FlushScenarioContext:
    """Fresh scenario context for each test."""
    return FlushScenarioContext()


def _record(ctx: FlushScenarioContext, index: int) -> dict[str, Any]:
    records = ctx.payload["metrics"]
    assert len(records) >= index, f"Expected at least {index} records, got {records}"
    return records[index - 1]


# === Background Steps ===
@given(parsers.parse('a rule matching "{expression}" with schema "{schema}"'))
def step_rule(ctx: FlushScenarioContext, expression: str, schema: str) -> None:
    ctx.rule.update(matchExpression=expression, metricSchema=schema)


@given(
    parsers.parse(
        'the rule groups metrics as "{entity_type}" "{entity_name}" '
        'events of type "{event_type}"'
    )
)
def step_rule_entity(
    ctx: FlushScenarioContext, entity_type: str, entity_name: str, event_type: str
) -> None:
    ctx.rule.update(entityType=entity_type, entityName=entity_name, eventType=event_type)


@given("an in-memory collector")
def step_collector(ctx: FlushScenarioContext) -> None:
    ctx.sender = InMemoryPayloadSender()


# === Snapshot Steps ===
@given(parsers.parse("the metrics limit is {limit:d}"))
def step_metrics_limit(ctx: FlushScenarioContext, limit: int) -> None:
    ctx.section["metricsLimit"] = limit


@given(parsers.parse('the gauge "{name}" is {value:d}'))
def step_gauge(ctx: FlushScenarioContext, name: str, value: int) -> None:
    ctx.snapshot["gauges"][name] = value


@given(parsers.parse('the counter "{name}" is {value:d} at rate {rate:d}'))
def step_counter(ctx: FlushScenarioContext, name: str, value: int, rate: int) -> None:
    ctx.snapshot["counters"][name] = value
    ctx.snapshot["counter_rates"][name] = rate


@given(parsers.parse('the timer "{name}" has sum {total:d} and mean {mean:d}'))
def step_timer(ctx: FlushScenarioContext, name: str, total: int, mean: int) -> None:
    ctx.snapshot["timer_data"][name] = {"sum": total, "mean": mean}


# === Flush Steps ===
@when("the relay flushes")
def step_flush(ctx: FlushScenarioContext) -> None:
    config = RelayConfig.from_mapping({**ctx.section, "rules": [ctx.rule]})
    relay = Relay(config, sender=ctx.sender, startup_time=0)
    ctx.payload = relay.flush(12345, ctx.snapshot)


# === Assertion Steps ===
@then(parsers.parse("{count:d} payload is delivered"))
def step_payloads_delivered(ctx: FlushScenarioContext, count: int) -> None:
    assert len(ctx.sender.payloads) == count


@then("no payload is delivered")
def step_no_payload(ctx: FlushScenarioContext) -> None:
    assert ctx.sender.payloads == []


@then(parsers.re(r"the payload has (?P<count>\d+) metric records?"))
def step_record_count(ctx: FlushScenarioContext, count: str) -> None:
    assert len(ctx.payload["metrics"]) == int(count)


@then(parsers.parse('record {index:d} has event type "{event_type}"'))
def step_event_type(ctx: FlushScenarioContext, index: int, event_type: str) -> None:
    assert _record(ctx, index)["event_type"] == event_type


@then(parsers.parse('record {index:d} has field "{name}" equal to "{value}"'))
def step_string_field(ctx: FlushScenarioContext, index: int, name: str, value: str) -> None:
    assert _record(ctx, index)[name] == value


@then(parsers.parse('record {index:d} has numeric field "{name}" equal to {value:d}'))
def step_numeric_field(ctx: FlushScenarioContext, index: int, name: str, value: int) -> None:
    assert _record(ctx, index)[name] == value


@then(parsers.parse('record {index:d} has no field "{name}"'))
def step_missing_field(ctx: FlushScenarioContext, index: int, name: str) -> None:
    assert name not in _record(ctx, index)
