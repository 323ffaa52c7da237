"""
Event Bus for Console Module Communication

Provides a central event bus so the console core can report command
acknowledgments, failures and scan progress to whoever is listening
(presentation layer, logging, tests) without knowing about them.

Author: BotanyBot Console Development
"""

import asyncio
import logging
import threading
import time
from typing import Dict, List, Callable, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class EventPriority(Enum):
    """Event priority levels"""
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4


@dataclass
class ConsoleEvent:
    """Console event data structure"""
    event_type: str
    data: Dict[str, Any] = field(default_factory=dict)
    source_module: str = "unknown"
    priority: EventPriority = EventPriority.NORMAL
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: f"evt_{int(time.time() * 1000000)}")

    def __str__(self):
        return f"Event({self.event_type}, {self.source_module}, {self.priority.name})"


class EventConstants:
    """Predefined event types for the console"""

    # Session Events
    SESSION_STARTED = "session.started"
    SESSION_CLOSED = "session.closed"

    # Command Events
    COMMAND_ACKNOWLEDGED = "command.acknowledged"
    COMMAND_FAILED = "command.failed"
    COMMAND_SUPERSEDED = "command.superseded"

    # Scan Events
    SCAN_STATE_CHANGED = "scan.state_changed"
    SCAN_STARTED = "scan.started"
    SCAN_COMPLETED = "scan.completed"
    SCAN_FAILED = "scan.failed"
    SCAN_REJECTED = "scan.rejected"

    # Advisory Events
    ADVISORY_READY = "advisory.ready"


class EventSubscription:
    """Represents an event subscription"""

    def __init__(self, event_type: str, callback: Callable, subscriber_name: str = "unknown"):
        self.event_type = event_type
        self.callback = callback
        self.subscriber_name = subscriber_name
        self.subscription_time = datetime.now()
        self.call_count = 0
        self.last_called: Optional[datetime] = None
        self.active = True

    def __str__(self):
        return f"Subscription({self.event_type}, {self.subscriber_name})"


class EventBus:
    """
    Central event bus for console module communication

    Features:
    - Thread-safe event publishing and subscription
    - Event history and statistics
    - Async and sync callback support
    - Error isolation between subscribers
    """

    def __init__(self, max_history: int = 500, enable_stats: bool = True):
        self._subscriptions: Dict[str, List[EventSubscription]] = {}
        self._event_history: List[ConsoleEvent] = []
        self._max_history = max_history
        self._enable_stats = enable_stats
        self._lock = threading.RLock()
        self._stats = {
            'events_published': 0,
            'events_processed': 0,
            'subscription_count': 0,
            'error_count': 0
        }

        logger.debug("Event bus initialized")

    def subscribe(self, event_type: str, callback: Callable, subscriber_name: str = "unknown") -> bool:
        """
        Subscribe to an event type

        Args:
            event_type: Type of event to subscribe to (use EventConstants)
            callback: Function to call when event occurs
            subscriber_name: Name of subscribing module for debugging

        Returns:
            True if subscription successful
        """
        with self._lock:
            subscription = EventSubscription(event_type, callback, subscriber_name)
            self._subscriptions.setdefault(event_type, []).append(subscription)

            if self._enable_stats:
                self._stats['subscription_count'] += 1

        logger.debug(f"Subscribed {subscriber_name} to {event_type}")
        return True

    def unsubscribe(self, event_type: str, callback: Callable) -> bool:
        """
        Unsubscribe from an event type

        Returns:
            True if the event type had subscriptions
        """
        with self._lock:
            if event_type not in self._subscriptions:
                return False

            self._subscriptions[event_type] = [
                sub for sub in self._subscriptions[event_type]
                if sub.callback != callback
            ]
            if not self._subscriptions[event_type]:
                del self._subscriptions[event_type]

        logger.debug(f"Unsubscribed from {event_type}")
        return True

    def publish(self, event_type: str, data: Optional[Dict[str, Any]] = None,
                source_module: str = "unknown", priority: EventPriority = EventPriority.NORMAL) -> bool:
        """
        Publish an event to all subscribers

        Args:
            event_type: Type of event (use EventConstants)
            data: Event data dictionary
            source_module: Module that published the event
            priority: Event priority level

        Returns:
            True if event published successfully
        """
        event = ConsoleEvent(
            event_type=event_type,
            data=data or {},
            source_module=source_module,
            priority=priority
        )

        with self._lock:
            self._event_history.append(event)
            if len(self._event_history) > self._max_history:
                self._event_history.pop(0)

            if self._enable_stats:
                self._stats['events_published'] += 1

        self._notify_subscribers(event)

        logger.debug(f"Published event: {event}")
        return True

    def _notify_subscribers(self, event: ConsoleEvent):
        """Notify all subscribers of an event"""
        with self._lock:
            subscribers = self._subscriptions.get(event.event_type, [])
            active_subscribers = [sub for sub in subscribers if sub.active]

        for subscription in active_subscribers:
            self._call_subscriber(subscription, event)

    def _call_subscriber(self, subscription: EventSubscription, event: ConsoleEvent):
        """Call a single subscriber with error isolation"""
        try:
            subscription.call_count += 1
            subscription.last_called = datetime.now()

            if asyncio.iscoroutinefunction(subscription.callback):
                asyncio.create_task(subscription.callback(event))
            else:
                subscription.callback(event)

            if self._enable_stats:
                with self._lock:
                    self._stats['events_processed'] += 1

        except Exception as e:
            logger.error(f"Error calling subscriber {subscription.subscriber_name} "
                         f"for event {event.event_type}: {e}")
            with self._lock:
                if self._enable_stats:
                    self._stats['error_count'] += 1

    def get_event_history(self, event_type: Optional[str] = None, limit: int = 100) -> List[ConsoleEvent]:
        """
        Get recent event history

        Args:
            event_type: Filter by event type (None for all events)
            limit: Maximum number of events to return
        """
        with self._lock:
            history = self._event_history.copy()

        if event_type:
            history = [event for event in history if event.event_type == event_type]

        return history[-limit:] if limit else history

    def get_subscriptions(self) -> Dict[str, List[str]]:
        """Get current subscription information"""
        with self._lock:
            return {
                event_type: [sub.subscriber_name for sub in subscriptions]
                for event_type, subscriptions in self._subscriptions.items()
            }

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics"""
        with self._lock:
            stats = self._stats.copy()
            stats['active_subscriptions'] = sum(
                len(subs) for subs in self._subscriptions.values()
            )
            stats['event_types'] = len(self._subscriptions)
            stats['history_size'] = len(self._event_history)

        return stats

    def clear_history(self):
        """Clear event history"""
        with self._lock:
            self._event_history.clear()

    def shutdown(self):
        """Drop all subscriptions and history"""
        logger.info("Shutting down event bus")
        with self._lock:
            self._subscriptions.clear()
            self._event_history.clear()
