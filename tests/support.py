"""Shared test data."""

from typing import Any

REDIS_RULE_CONFIG: dict[str, Any] = {
    "matchExpression": ".*redis.*",
    "metricSchema": "{app}.{service}.{metricName}",
    "entityType": "Redis Cluster",
    "entityName": "Production Host1",
    "eventType": "RedisSample",
}
