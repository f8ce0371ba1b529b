"""Simple synchronous in-process event bus for snapshot change notifications.

Features:
- pub/sub with topic string keys
- handlers are invoked in subscription order, on the caller's thread

Subscribers only read the published snapshot; a failing handler is logged
and never interrupts the publisher or the remaining handlers.
"""
from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger("shadowledger.event_bus")

Subscriber = Callable[[str, Any], None]

CHARACTER_LOADED = "character.loaded"
CHARACTER_UPDATED = "character.updated"
CHARACTER_CLEARED = "character.cleared"


class EventBus:
    """
    A simple synchronous event bus for in-process communication.

    Supports publishing events to topics and subscribing handlers to those topics.
    """
    def __init__(self):
        self._subscribers: Dict[str, List[Subscriber]] = {}

    def publish(self, topic: str, payload: Any) -> int:
        """
        Publishes an event to a topic.

        Args:
            topic (str): The event topic identifier.
            payload (Any): The data to pass to subscribers.

        Returns:
            int: The number of handlers that completed without raising.
        """
        delivered = 0
        for sub in list(self._subscribers.get(topic, [])):
            try:
                sub(topic, payload)
                delivered += 1
            except Exception as e:
                logger.exception(f"Event handler failed for '{topic}': {e}")
        return delivered

    def subscribe(self, topic: str, handler: Subscriber) -> None:
        """
        Subscribes a handler function to a topic.

        Args:
            topic (str): The event topic to listen for.
            handler (Subscriber): A callable that takes (topic, payload).
        """
        self._subscribers.setdefault(topic, []).append(handler)

    def unsubscribe(self, topic: str, handler: Subscriber) -> bool:
        """
        Unsubscribes a handler from a topic.

        Returns:
            bool: True if the handler was registered and has been removed.
        """
        handlers = self._subscribers.get(topic, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))


# singleton convenience (but sessions may create their own bus if needed)
_default_bus: Optional[EventBus] = None

def get_event_bus() -> EventBus:
    """
    Returns the process-wide default instance of the EventBus.
    """
    global _default_bus
    if _default_bus is None:
        _default_bus = EventBus()
    return _default_bus
