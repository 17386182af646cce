"""
Trello webhook ingress: map provider actions to relay events.

Trello posts an envelope {"model": ..., "action": {"type": ..., "data": ...}}.
Recognised action types become a named event; every envelope with an action
is also rebroadcast raw under "trelloUpdate". Nothing here raises to the
caller: Trello disables webhooks that keep failing, so the HTTP layer always
answers 200.
"""
import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from .broadcaster import (
    BOARD_CREATED,
    RAW_WEBHOOK_EVENT,
    TASK_CREATED,
    TASK_DELETED,
    TASK_UPDATED,
    EventBroadcaster,
)

logger = logging.getLogger(__name__)

VERIFIED_REPLY = "Webhook verified"


def _card(data: Dict[str, Any]) -> Any:
    return data["card"]


def _card_ref(data: Dict[str, Any]) -> Dict[str, Any]:
    return {"cardId": data["card"]["id"]}


def _board(data: Dict[str, Any]) -> Any:
    return data["board"]


# action.type -> (event name, payload extractor over action.data)
ACTION_EVENTS: Dict[str, Tuple[str, Callable[[Dict[str, Any]], Any]]] = {
    "createCard": (TASK_CREATED, _card),
    "updateCard": (TASK_UPDATED, _card),
    "deleteCard": (TASK_DELETED, _card_ref),
    "createBoard": (BOARD_CREATED, _board),
}


def normalize_action(action: Dict[str, Any]) -> Optional[Tuple[str, Any]]:
    """
    Return (event, payload) for a recognised action, else None.

    A recognised type whose data lacks the expected sub-document is
    treated as unrecognised.
    """
    action_type = action.get("type")
    if not isinstance(action_type, str):
        return None
    entry = ACTION_EVENTS.get(action_type)
    if entry is None:
        return None
    event, extract = entry
    data = action.get("data")
    if not isinstance(data, dict):
        return None
    try:
        return event, extract(data)
    except (KeyError, TypeError):
        logger.warning(f"{action.get('type')} action without expected data, skipping")
        return None


def verification_reply(query: Dict[str, Any]) -> str:
    """Body for Trello's GET handshake: echo the challenge if there is one."""
    return query.get("challenge") or VERIFIED_REPLY


class WebhookIngress:
    """Turns webhook envelopes into broadcasts."""

    def __init__(self, broadcaster: EventBroadcaster):
        self.broadcaster = broadcaster

    def handle(self, envelope: Any) -> Optional[str]:
        """
        Process one delivery.

        Returns the mapped event name, or None when the envelope was ignored
        or its action type has no mapping.
        """
        if not isinstance(envelope, dict):
            logger.info("Webhook body is not a JSON object, ignoring")
            return None
        action = envelope.get("action")
        if not isinstance(action, dict):
            logger.info("Webhook body has no action, ignoring")
            return None

        logger.info(f"Webhook event received: {action.get('type')}")
        logger.debug(json.dumps(envelope, indent=2, default=str))

        mapped = normalize_action(action)
        if mapped:
            event, payload = mapped
            self.broadcaster.broadcast(event, payload)

        self.broadcaster.broadcast(RAW_WEBHOOK_EVENT, envelope)
        return mapped[0] if mapped else None
