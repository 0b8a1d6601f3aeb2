"""Relay configuration.

The configuration is read once at startup, validated, and passed to the
Relay as an immutable object. Keys follow the camelCase names used in statsd
configuration files:

    {
      "debug": false,
      "newrelic": {
        "host": "localhost",
        "port": 8001,
        "metricsLimit": 150,
        "sendLimitErrors": true,
        "rules": [
          {
            "matchExpression": ".*redis.*",
            "metricSchema": "{app}.{service}.{metricName}",
            "entityType": "Redis Cluster",
            "entityName": "Production Host1",
            "eventType": "RedisSample",
            "labels": {"role": "{service}"}
          }
        ]
      }
    }
"""

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from statsrelay.core.encoding.payload import (
    DEFAULT_METRICS_LIMIT,
    SUPPORTED_PROTOCOL_VERSIONS,
)
from statsrelay.core.errors import ConfigError
from statsrelay.core.models import Rule

CONFIG_SECTION = "newrelic"
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8001
DEFAULT_SEND_TIMEOUT = 1.0

_RULE_KEYS = {
    "matchExpression": "match_expression",
    "metricSchema": "metric_schema",
    "entityType": "entity_type",
    "entityName": "entity_name",
    "eventType": "event_type",
}


def rule_from_mapping(raw: Mapping[str, Any]) -> Rule:
    """Build a Rule from its configuration mapping.

    Raises:
        ConfigError: If a required key is missing, a value is not a string,
            or the match expression is not a valid regular expression.
    """
    if not isinstance(raw, Mapping):
        raise ConfigError(f"Rule must be a mapping, got {type(raw).__name__}")
    kwargs: dict[str, Any] = {}
    for config_key, attr in _RULE_KEYS.items():
        value = raw.get(config_key)
        if not isinstance(value, str):
            raise ConfigError(f"Rule is missing string value for '{config_key}': {raw!r}")
        kwargs[attr] = value
    labels = raw.get("labels") or {}
    if not isinstance(labels, Mapping):
        raise ConfigError(f"Rule labels must be a mapping: {labels!r}")
    kwargs["labels"] = {str(name): str(tpl) for name, tpl in labels.items()}
    try:
        return Rule(**kwargs)
    except re.error as e:
        raise ConfigError(
            f"Invalid matchExpression {kwargs['match_expression']!r}: {e}"
        ) from e


def _parse_int(raw: Mapping[str, Any], key: str, default: int) -> int:
    value = raw.get(key)
    # Zero and empty values fall back to the default, as statsd configs expect.
    if not value:
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"'{key}' must be an integer, got {value!r}") from e


@dataclass(frozen=True)
class RelayConfig:
    """Immutable relay settings.

    Attributes:
        host: Collector host.
        port: Collector port.
        rules: Rules in evaluation order.
        metrics_limit: Maximum fields per event before it is replaced.
        send_limit_errors: Send StatsdLimitErrorSample records on overflow.
        debug: Enable per-flush diagnostic logging.
        send_timeout: Seconds before an in-flight delivery is aborted.
        protocol_version: Payload protocol version (1 or 2).
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    rules: tuple[Rule, ...] = field(default_factory=tuple)
    metrics_limit: int = DEFAULT_METRICS_LIMIT
    send_limit_errors: bool = True
    debug: bool = False
    send_timeout: float = DEFAULT_SEND_TIMEOUT
    protocol_version: int = 1

    def __post_init__(self) -> None:
        if self.protocol_version not in SUPPORTED_PROTOCOL_VERSIONS:
            raise ConfigError(f"Unsupported protocolVersion: {self.protocol_version}")
        if self.send_timeout <= 0:
            raise ConfigError(f"sendTimeout must be positive, got {self.send_timeout}")

    @property
    def url(self) -> str:
        """Collector endpoint receiving payloads."""
        return f"http://{self.host}:{self.port}/v1/data"

    @classmethod
    def from_mapping(
        cls, section: Mapping[str, Any] | None, debug: bool = False
    ) -> "RelayConfig":
        """Build a config from the backend section of a statsd config.

        Args:
            section: The 'newrelic' mapping. None yields the defaults.
            debug: Global statsd debug flag.

        Raises:
            ConfigError: If any value fails validation.
        """
        section = section or {}
        raw_rules = section.get("rules") or []
        if not isinstance(raw_rules, list | tuple):
            raise ConfigError("'rules' must be a list")
        send_limit_errors = section.get("sendLimitErrors")
        try:
            send_timeout = float(section.get("sendTimeout", DEFAULT_SEND_TIMEOUT))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"'sendTimeout' must be a number: {e}") from e
        return cls(
            host=section.get("host") or DEFAULT_HOST,
            port=_parse_int(section, "port", DEFAULT_PORT),
            rules=tuple(rule_from_mapping(rule) for rule in raw_rules),
            metrics_limit=_parse_int(section, "metricsLimit", DEFAULT_METRICS_LIMIT),
            send_limit_errors=True if send_limit_errors is None else bool(send_limit_errors),
            debug=bool(debug),
            send_timeout=send_timeout,
            protocol_version=_parse_int(section, "protocolVersion", 1),
        )

    @classmethod
    def from_statsd_config(cls, config: Mapping[str, Any]) -> "RelayConfig":
        """Build a config from a whole statsd configuration document."""
        return cls.from_mapping(
            config.get(CONFIG_SECTION), debug=bool(config.get("debug", False))
        )


def load_config(path: str | Path) -> RelayConfig:
    """Read a statsd-style JSON configuration file.

    Raises:
        ConfigError: If the file cannot be read or parsed, or fails validation.
    """
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot load configuration from {path}: {e}") from e
    if not isinstance(document, dict):
        raise ConfigError(f"Configuration root must be an object: {path}")
    return RelayConfig.from_statsd_config(document)
