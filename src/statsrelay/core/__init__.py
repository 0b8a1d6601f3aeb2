"""Rule matching and event composition."""
