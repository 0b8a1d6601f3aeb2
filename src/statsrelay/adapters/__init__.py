"""Adapters connecting the relay to logging, transports and frameworks."""
