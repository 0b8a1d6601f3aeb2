"""Port interfaces for delivery adapters.

The flush orchestrator depends only on this protocol, not on a concrete
transport.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class PayloadSenderPort(Protocol):
    """Port for delivering an encoded payload to the downstream collector.

    Adapters implementing this protocol deliver one payload per call.
    Examples: HttpPayloadSender, InMemoryPayloadSender.
    """

    def send(self, payload: str) -> bool:
        """Deliver a JSON payload.

        Delivery is best effort: failures are reported through the return
        value, never raised.

        Args:
            payload: Compact JSON document.

        Returns:
            True if the collector accepted the payload.
        """
        ...
