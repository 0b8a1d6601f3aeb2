"""Payload encoders."""
