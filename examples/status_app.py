"""Example ASGI application serving relay status while flushing demo metrics.

Run with:
    uvicorn examples.status_app:app --reload

Endpoints:
    /status   - JSON delivery statistics (last_flush, last_exception, ...)

The relay here flushes a fixed snapshot every ten seconds into an in-memory
sender, so no collector needs to be running. Point HttpPayloadSender at a
real collector by passing no sender to Relay.
"""

import asyncio
import contextlib
import time
from pathlib import Path

from statsrelay import InMemoryPayloadSender, Relay, configure_logging, load_config
from statsrelay.adapters.frameworks.asgi import create_status_app

CONFIG_PATH = Path(__file__).with_name("statsd-config.json")
FLUSH_INTERVAL = 10.0

config = load_config(CONFIG_PATH)
configure_logging(config.debug)
sender = InMemoryPayloadSender()
relay = Relay(config, sender=sender)
status_app = create_status_app(relay)

DEMO_SNAPSHOT = {
    "gauges": {"myapp.redis.connected_clients": 12},
    "counters": {"myapp.redis.commands#shard:a": 240},
    "counter_rates": {"myapp.redis.commands#shard:a": 24},
    "timer_data": {"myapp.redis.latency": {"sum": 52.0, "mean": 2.6, "upper": 9.1}},
    "sets": {"myapp.redis.clients": {"10.0.0.1", "10.0.0.2"}},
}


async def _flush_forever() -> None:
    while True:
        relay.flush(time.time(), DEMO_SNAPSHOT)
        await asyncio.sleep(FLUSH_INTERVAL)


async def app(scope, receive, send):  # type: ignore[no-untyped-def]
    if scope["type"] == "lifespan":
        task: asyncio.Task[None] | None = None
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                task = asyncio.create_task(_flush_forever())
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                if task is not None:
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task
                await send({"type": "lifespan.shutdown.complete"})
                return
    await status_app(scope, receive, send)
