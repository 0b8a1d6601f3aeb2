"""Framework adapters exposing relay status."""
