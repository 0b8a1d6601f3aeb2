"""Group a metrics snapshot into per-entity event records."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from statsrelay.core.logs import get_logger
from statsrelay.core.matcher import evaluate_rule
from statsrelay.core.models import EntityRecord, MatchResult, MetricSnapshot, Rule
from statsrelay.core.tags import split_tagged_name

logger = get_logger(__name__)

PER_SECOND_SUFFIX = "PerSecond"
SET_COUNT_SUFFIX = ".count"


@dataclass
class CollectResult:
    """Entities built during one flush plus the number of matched counter keys."""

    entities: dict[str, EntityRecord] = field(default_factory=dict)
    matched_keys: int = 0


def _safe_evaluate(
    rule: Rule,
    metric_name: str,
    value: Any,
    tags: dict[str, str],
    data: dict[str, EntityRecord],
) -> MatchResult:
    """Evaluate a rule, logging and isolating any unexpected failure."""
    try:
        return evaluate_rule(rule, metric_name, value, tags, data)
    except Exception:
        logger.exception(
            "Failed to evaluate rule %r for metric %s", rule.match_expression, metric_name
        )
        return MatchResult.NO_MATCH


def collect_metrics(snapshot: MetricSnapshot, rules: Sequence[Rule]) -> CollectResult:
    """Run every rule over every metric of the snapshot.

    Categories are processed in a fixed order: counters (each match also
    produces a <name>PerSecond field from counter_rates), timers (one
    <name>.<stat> per timer statistic), gauges, then sets (<name>.count with
    the set cardinality).

    Args:
        snapshot: Metrics aggregated for this flush.
        rules: Rules in evaluation order.

    Returns:
        CollectResult with entity records in first-seen order.
    """
    result = CollectResult()
    data = result.entities

    if logger.isEnabledFor(logging.DEBUG):
        expressions = ", ".join(rule.match_expression for rule in rules)
        logger.debug("Matching keys against rule expressions: [%s]", expressions)

    for raw_key, value in snapshot.counters.items():
        tagged = split_tagged_name(raw_key)
        for rule in rules:
            if _safe_evaluate(rule, tagged.name, value, tagged.tags, data).matched:
                if raw_key in snapshot.counter_rates:
                    _safe_evaluate(
                        rule,
                        tagged.name + PER_SECOND_SUFFIX,
                        snapshot.counter_rates[raw_key],
                        tagged.tags,
                        data,
                    )
                result.matched_keys += 1

    for raw_key, summary in snapshot.timer_data.items():
        tagged = split_tagged_name(raw_key)
        try:
            stats = list(summary.items())
        except (AttributeError, TypeError):
            logger.exception("Skipping timer %s with malformed summary", raw_key)
            continue
        for rule in rules:
            for stat, value in stats:
                _safe_evaluate(rule, f"{tagged.name}.{stat}", value, tagged.tags, data)

    for raw_key, value in snapshot.gauges.items():
        tagged = split_tagged_name(raw_key)
        for rule in rules:
            _safe_evaluate(rule, tagged.name, value, tagged.tags, data)

    for raw_key, members in snapshot.sets.items():
        tagged = split_tagged_name(raw_key)
        try:
            cardinality = len(members)
        except TypeError:
            logger.exception("Skipping set %s with malformed members", raw_key)
            continue
        for rule in rules:
            _safe_evaluate(
                rule, tagged.name + SET_COUNT_SUFFIX, cardinality, tagged.tags, data
            )

    logger.debug(
        "Matched keys %d. Total keys: %d", result.matched_keys, snapshot.key_count()
    )
    return result
