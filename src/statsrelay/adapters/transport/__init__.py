"""Payload delivery adapters."""

from statsrelay.adapters.transport.http import HttpPayloadSender
from statsrelay.adapters.transport.in_memory import InMemoryPayloadSender

__all__ = ["HttpPayloadSender", "InMemoryPayloadSender"]
