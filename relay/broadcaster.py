"""
Event broadcaster: pushes (event, payload) pairs to every connected channel.

A channel is anything with send(event, payload). Socket.IO sessions are
registered on connect and removed on disconnect; in-process listeners can be
attached with listen(). There is no buffering and no replay: a channel only
sees events broadcast while it is registered.
"""
import logging
import threading
from typing import Any, Callable, List, Optional

logger = logging.getLogger(__name__)

# Event names pushed to browser sessions
BOARD_CREATED = "boardCreated"
BOARD_DELETED = "boardDeleted"
TASK_CREATED = "taskCreated"
TASK_UPDATED = "taskUpdated"
TASK_DELETED = "taskDeleted"
RAW_WEBHOOK_EVENT = "trelloUpdate"


class SocketIOChannel:
    """One Socket.IO session, addressed by its sid."""

    def __init__(self, socketio, sid: str):
        self.socketio = socketio
        self.sid = sid

    def send(self, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=self.sid)

    def __repr__(self):
        return f"SocketIOChannel({self.sid})"


class CallbackChannel:
    """In-process listener: calls fn(event, payload)."""

    def __init__(self, fn: Callable[[str, Any], None]):
        self.fn = fn

    def send(self, event: str, payload: Any) -> None:
        self.fn(event, payload)


class ChannelHandle:
    """Returned by ChannelRegistry.add(); close() unregisters the channel."""

    def __init__(self, registry: "ChannelRegistry", channel):
        self._registry = registry
        self.channel = channel
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._registry.remove(self.channel)


class ChannelRegistry:
    """Set of currently connected channels, safe to mutate during a broadcast."""

    def __init__(self):
        self._channels: List[Any] = []
        self._lock = threading.Lock()

    def add(self, channel) -> ChannelHandle:
        with self._lock:
            if channel not in self._channels:
                self._channels.append(channel)
        return ChannelHandle(self, channel)

    def remove(self, channel) -> bool:
        with self._lock:
            try:
                self._channels.remove(channel)
                return True
            except ValueError:
                return False

    def snapshot(self) -> List[Any]:
        with self._lock:
            return list(self._channels)

    def __len__(self):
        with self._lock:
            return len(self._channels)


class EventBroadcaster:
    """Fans named events out to every registered channel."""

    def __init__(self, registry: Optional[ChannelRegistry] = None):
        self.registry = registry if registry is not None else ChannelRegistry()

    def connect(self, channel) -> ChannelHandle:
        return self.registry.add(channel)

    def disconnect(self, channel) -> bool:
        return self.registry.remove(channel)

    def listen(self, fn: Callable[[str, Any], None]) -> ChannelHandle:
        """Attach an in-process listener; close the handle to detach it."""
        return self.connect(CallbackChannel(fn))

    def broadcast(self, event: str, payload: Any) -> int:
        """Send to all channels; returns how many accepted the event."""
        delivered = 0
        for channel in self.registry.snapshot():
            try:
                channel.send(event, payload)
                delivered += 1
            except Exception as e:
                logger.warning(f"Error sending {event} to {channel!r}: {e}")
        logger.debug(f"broadcast {event} -> {delivered} channel(s)")
        return delivered
