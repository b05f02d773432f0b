"""
Live order board stream: relays committed changes from the Redis feed.
"""
import json

from cafedesk.api.notifications import _sse_generator
from cafedesk.core.change_feed import channel_for, publish_change
from cafedesk.core.config import get_settings


class BrowserTab:
    """Stays connected for a fixed number of polls, then goes away."""

    def __init__(self, polls: int):
        self.polls = polls

    async def is_disconnected(self) -> bool:
        self.polls -= 1
        return self.polls < 0


async def test_stream_relays_changes_and_waits_on_redis(fake_redis):
    stream = _sse_generator(BrowserTab(polls=2))

    assert await stream.__anext__() == ": connected to order feed\n\n"
    assert (await stream.__anext__()).startswith("retry: ")

    await publish_change("orders", "INSERT", {"id": "o-1", "table_number": 4})
    frames = [frame async for frame in stream]

    event = frames[0]
    assert event.startswith("event: order_change\ndata: ")
    assert json.loads(event.split("data: ", 1)[1]) == {
        "table": "orders",
        "event": "INSERT",
        "new": {"id": "o-1", "table_number": 4},
    }
    assert frames[1:] == [": keepalive\n\n"]

    pubsub = fake_redis.pubsubs[0]
    keepalive = get_settings().SSE_KEEPALIVE_INTERVAL_SECONDS
    assert pubsub.timeouts == [keepalive, keepalive]
    assert channel_for("orders") not in pubsub.channels
    assert pubsub.closed is True
