"""Post-commit event fan-out.

Called only after the producing transaction committed. A failed publish is
logged and dropped: it never re-runs or rolls back the operation.
"""

import logging

from src.am_events.domain.events import EventOutbox
from src.am_events.domain.repository import EventBroadcaster

logger = logging.getLogger(__name__)


async def publish_all(broadcaster: EventBroadcaster, outbox: EventOutbox) -> int:
    """Publish every buffered event in order. Returns the number delivered."""
    delivered = 0
    for event in outbox.events:
        try:
            await broadcaster.publish(event.topic, event.message())
            delivered += 1
        except Exception:
            logger.warning(
                "Broadcast failed: event=%s topic=%s", event.name, event.topic, exc_info=True
            )
    return delivered
