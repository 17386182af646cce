"""
Client-side event subscriber.

Keeps an in-memory copy of one list's cards in step with pushed events:

    taskCreated  → append when the card belongs to the active list
    taskUpdated  → replace the card with the same id
    taskDeleted  → drop the card whose id matches payload["cardId"]

There is no dedup: if both the mutation response and the webhook echo push
taskCreated for the same card, it is appended twice. Switching lists drops
the old subscriptions; events that fired earlier are not replayed.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from .broadcaster import TASK_CREATED, TASK_DELETED, TASK_UPDATED

logger = logging.getLogger(__name__)


class Subscription:
    """Cancellation handle for one (event, handler) registration."""

    def __init__(self, dispatcher: "EventDispatcher", event: str, handler: Callable):
        self._dispatcher = dispatcher
        self.event = event
        self.handler = handler
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._dispatcher._remove(self)


class EventDispatcher:
    """Routes named events to their subscribed handlers."""

    def __init__(self):
        self._subs: Dict[str, List[Subscription]] = {}

    def subscribe(self, event: str, handler: Callable[[Any], None]) -> Subscription:
        sub = Subscription(self, event, handler)
        self._subs.setdefault(event, []).append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        subs = self._subs.get(sub.event, [])
        if sub in subs:
            subs.remove(sub)

    def dispatch(self, event: str, payload: Any) -> int:
        """Call every handler for event; returns how many ran."""
        count = 0
        for sub in list(self._subs.get(event, [])):
            try:
                sub.handler(payload)
                count += 1
            except Exception as e:
                logger.warning(f"Error in {event} handler: {e}")
        return count


class ListSync:
    """Card list of the active list, patched by pushed events."""

    def __init__(self, list_id: str, cards: Optional[List[Dict[str, Any]]] = None):
        self.list_id = list_id
        self.cards: List[Dict[str, Any]] = list(cards or [])
        self._subs: List[Subscription] = []
        self._dispatcher: Optional[EventDispatcher] = None

    # ── Reconciliation rules ──

    def on_task_created(self, task: Dict[str, Any]) -> None:
        if task.get("idList") == self.list_id:
            self.cards.append(task)

    def on_task_updated(self, task: Dict[str, Any]) -> None:
        self.cards = [task if c.get("id") == task.get("id") else c for c in self.cards]

    def on_task_deleted(self, ref: Dict[str, Any]) -> None:
        card_id = ref.get("cardId")
        self.cards = [c for c in self.cards if c.get("id") != card_id]

    # ── Subscription lifetime ──

    def attach(self, dispatcher: EventDispatcher) -> List[Subscription]:
        self.detach()
        self._dispatcher = dispatcher
        self._subs = [
            dispatcher.subscribe(TASK_CREATED, self.on_task_created),
            dispatcher.subscribe(TASK_UPDATED, self.on_task_updated),
            dispatcher.subscribe(TASK_DELETED, self.on_task_deleted),
        ]
        return self._subs

    def detach(self) -> None:
        for sub in self._subs:
            sub.cancel()
        self._subs = []

    def switch_list(self, list_id: str, cards: Optional[List[Dict[str, Any]]] = None) -> None:
        """Make another list active; re-subscribes if attached."""
        dispatcher = self._dispatcher
        self.detach()
        self.list_id = list_id
        self.cards = list(cards or [])
        if dispatcher is not None:
            self.attach(dispatcher)


def bind_socketio(client, dispatcher: EventDispatcher) -> None:
    """
    Forward every event a python-socketio Client receives into dispatcher.

    Uses the catch-all "*" handler, which is called as handler(event, data).
    """
    def _forward(event, data=None):
        dispatcher.dispatch(event, data)

    client.on("*", _forward)
