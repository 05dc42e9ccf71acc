import asyncio
import json
import logging
from typing import Any, Dict, Set

from fastapi import Request

logger = logging.getLogger(__name__)


class EventBroadcaster:
    """
    Fans presentation events out to every connected stream subscriber.

    publish() never blocks: each subscriber has its own bounded queue, and a
    subscriber that falls behind loses its oldest events first.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: Set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.add(queue)
        logger.info(f"Stream subscriber added ({len(self._subscribers)} connected).")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)
        logger.info(f"Stream subscriber removed ({len(self._subscribers)} connected).")

    def publish(self, event_type: str, payload: Dict[str, Any]) -> None:
        event = {"event": event_type, "data": payload}
        for queue in list(self._subscribers):
            if queue.full():
                dropped = queue.get_nowait()
                logger.warning(f"Subscriber queue full, dropping oldest event: {dropped['event']}")
            queue.put_nowait(event)


def format_event(event: Dict[str, Any]) -> str:
    return f"event: {event['event']}\ndata: {json.dumps(event['data'])}\n\n"


async def alert_event_generator(request: Request, broadcaster: EventBroadcaster, keep_alive: float = 15.0):
    """
    Yields server-sent events for alert presentation changes.

    This generator waits for events published by the presenter and sends
    them to the client in the SSE format.
    """
    queue = broadcaster.subscribe()
    try:
        while True:
            # Check if the client has disconnected
            if await request.is_disconnected():
                logger.warning("Client disconnected, stopping alert stream.")
                break

            try:
                event = await asyncio.wait_for(queue.get(), timeout=keep_alive)
                yield format_event(event)
            except asyncio.TimeoutError:
                # If no event is received, send a keep-alive comment
                yield ": keep-alive\n\n"
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error(f"An unexpected error occurred in event generator: {e}", exc_info=True)
    finally:
        broadcaster.unsubscribe(queue)
        logger.info("Alert event generator finished.")
