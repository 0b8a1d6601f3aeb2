"""statsrelay: relay statsd metrics to an infrastructure collector as entity events."""

from statsrelay.adapters.transport.http import HttpPayloadSender
from statsrelay.adapters.transport.in_memory import InMemoryPayloadSender
from statsrelay.core.config import RelayConfig, load_config
from statsrelay.core.errors import ConfigError, RelayError
from statsrelay.core.logs import configure_logging, get_logger
from statsrelay.core.models import MatchResult, MetricSnapshot, Rule
from statsrelay.relay import Relay

__all__ = [
    "ConfigError",
    "HttpPayloadSender",
    "InMemoryPayloadSender",
    "MatchResult",
    "MetricSnapshot",
    "Relay",
    "RelayConfig",
    "RelayError",
    "Rule",
    "configure_logging",
    "get_logger",
    "load_config",
]
