"""In-memory payload sender."""

import json
from typing import Any


class InMemoryPayloadSender:
    """In-memory implementation of PayloadSenderPort.

    Keeps every payload it is given. Suitable for testing and for dry runs
    where no collector is available.
    """

    def __init__(self, accept: bool = True) -> None:
        self._payloads: list[str] = []
        self.accept = accept

    def send(self, payload: str) -> bool:
        """Record the payload and report the configured outcome."""
        self._payloads.append(payload)
        return self.accept

    @property
    def payloads(self) -> list[str]:
        """Raw payloads in the order they were sent."""
        return list(self._payloads)

    def documents(self) -> list[dict[str, Any]]:
        """Payloads decoded from JSON."""
        return [json.loads(payload) for payload in self._payloads]
