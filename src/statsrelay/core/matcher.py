"""Rule evaluation: match a metric name, extract schema fields, store the event.

A rule's metric schema is a dot-delimited template such as
"{app}.{service}.{metricName}". Each placeholder segment binds the metric
name segment at the same position; the last placeholder also swallows any
extra trailing segments, so "myapp.redis.my_timer.sum" binds
metricName="my_timer.sum".
"""

import json
import re
from typing import Any

from statsrelay.core.logs import get_logger
from statsrelay.core.models import EntityRecord, MatchResult, Rule

logger = get_logger(__name__)

METRIC_NAME_FIELD = "metricName"
UNDEFINED = "undefined"

_TEMPLATE_TOKEN = re.compile(r"\{([^}]*)\}")
_SCHEMA_FIELD = re.compile(r"\{([^}]*)")


def _format_field(value: Any) -> str:
    # Integral floats render like the statsd values they came from: 10.0 -> "10".
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_template(template: str, fields: dict[str, Any]) -> str:
    """Substitute {field} tokens with extracted values.

    Tokens naming a field that was not extracted render as "undefined".
    """
    return _TEMPLATE_TOKEN.sub(
        lambda match: _format_field(fields.get(match.group(1), UNDEFINED)), template
    )


def validate_key_with_schema(key: str, schema: str) -> bool:
    """Return True when the key has at least as many segments as the schema."""
    return len(key.split(".")) >= len(schema.split("."))


def extract_schema_fields(key: str, schema: str) -> dict[str, str]:
    """Bind schema placeholders to the matching metric name segments.

    Args:
        key: Dotted metric name. Must satisfy validate_key_with_schema.
        schema: Dot-delimited schema template.

    Returns:
        Placeholder name -> bound segment, in schema order.
    """
    schema_segments = schema.split(".")
    key_segments = key.split(".")
    last = len(schema_segments) - 1
    fields: dict[str, str] = {}
    for idx, segment in enumerate(schema_segments):
        placeholder = _SCHEMA_FIELD.search(segment)
        if placeholder is None:
            continue
        if idx == last and len(key_segments) > len(schema_segments):
            fields[placeholder.group(1)] = ".".join(key_segments[idx:])
        else:
            fields[placeholder.group(1)] = key_segments[idx]
    return fields


def entity_key(entity_type: str, entity_name: str, tags: dict[str, str]) -> str:
    """Grouping key for an entity, distinct per tag set."""
    key = f"{entity_type}:{entity_name}"
    if tags:
        key = f"{key}:{json.dumps(tags, separators=(',', ':'))}"
    return key


def evaluate_rule(
    rule: Rule,
    metric_name: str,
    value: Any,
    tags: dict[str, str],
    data: dict[str, EntityRecord],
) -> MatchResult:
    """Evaluate one rule against one metric and merge the result into data.

    Args:
        rule: The rule to apply.
        metric_name: Metric name without tags.
        value: Metric value stored under the name bound to {metricName}.
        tags: Tags parsed from the raw key, added as label.<tag> fields.
        data: Entity key -> record mapping for the current flush. Mutated.

    Returns:
        NO_MATCH when the expression does not match, SCHEMA_TOO_SHORT when it
        matches but the name has fewer segments than the schema, else EMITTED.
    """
    if rule.pattern.search(metric_name) is None:
        return MatchResult.NO_MATCH

    if not validate_key_with_schema(metric_name, rule.metric_schema):
        logger.debug(
            "It isn't possible to compose an event for key %s. "
            "It has less elements than metric schema: %s",
            metric_name,
            rule.metric_schema,
        )
        return MatchResult.SCHEMA_TOO_SHORT

    fields: dict[str, Any] = extract_schema_fields(metric_name, rule.metric_schema)
    event_type = rule.event_type
    if "{" in event_type and "}" in event_type:
        logger.debug("You can't use variable substitutions for eventType: %s", event_type)

    name = render_template(rule.entity_name, fields)
    type_ = render_template(rule.entity_type, fields)
    key = entity_key(type_, name, tags)

    value_key = fields.pop(METRIC_NAME_FIELD, UNDEFINED)
    if value_key != METRIC_NAME_FIELD:
        fields[value_key] = value

    record = data.get(key)
    if record is None:
        record = data[key] = EntityRecord(name=name, type=type_)
    event_fields = record.fields_for(event_type)
    event_fields.update(fields)

    for label, template in rule.labels.items():
        event_fields[f"label.{label}"] = render_template(template, fields)
    for tag, tag_value in tags.items():
        event_fields[f"label.{tag}"] = tag_value

    return MatchResult.EMITTED
