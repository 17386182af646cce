"""
Trello REST client.

Thin wrapper around requests: every call carries the key/token pair, returns
the decoded provider body, and raises ProviderError on any failure. No
retries, no timeout beyond what the caller configures.
"""
import logging
from typing import Any, Dict, Optional

import requests

from .config import TRELLO_API_BASE

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a call to the Trello API fails (transport or HTTP status)."""

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def details(self) -> Any:
        """Provider error body when available, otherwise the message."""
        if self.body not in (None, ""):
            return self.body
        return str(self)


def _decode(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


class TrelloClient:
    """
    Stateless client for the boards/lists/cards/webhooks endpoints.

    The session is injectable so tests can hand in a MagicMock.
    """

    def __init__(
        self,
        key: str,
        token: str,
        api_base: str = TRELLO_API_BASE,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.key = key
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg) -> "TrelloClient":
        return cls(
            cfg.trello_key,
            cfg.trello_token,
            api_base=cfg.api_base,
            timeout=cfg.request_timeout,
        )

    def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        with_token: bool = True,
    ) -> Any:
        """Perform one call and return the decoded body."""
        query = dict(params or {})
        query["key"] = self.key
        if with_token:
            query["token"] = self.token

        url = f"{self.api_base}/{path.lstrip('/')}"
        shown = path.lstrip("/")
        if self.token:
            shown = shown.replace(self.token, "***")
        logger.debug("trello %s /%s", method, shown)
        try:
            resp = self.session.request(
                method, url, params=query, json=json, timeout=self.timeout
            )
        except requests.RequestException as e:
            # Exception text embeds the full URL, credentials included; keep only the type
            raise ProviderError(f"{method} /{shown} failed: {type(e).__name__}") from e

        body = _decode(resp)
        if not resp.ok:
            raise ProviderError(
                f"{method} /{shown} returned {resp.status_code}",
                status=resp.status_code,
                body=body,
            )
        return body

    # ── Boards ──────────────────────────────────────────────────────────────

    def list_boards(self) -> Any:
        return self.request("GET", "members/me/boards")

    def get_board(self, board_id: str) -> Any:
        return self.request("GET", f"boards/{board_id}")

    def create_board(self, name: str, default_lists: Optional[bool] = None) -> Any:
        body: Dict[str, Any] = {"name": name}
        if default_lists is not None:
            body["defaultLists"] = default_lists
        return self.request("POST", "boards/", json=body)

    def delete_board(self, board_id: str) -> Any:
        return self.request("DELETE", f"boards/{board_id}")

    def get_board_lists(self, board_id: str) -> Any:
        return self.request("GET", f"boards/{board_id}/lists")

    # ── Cards ───────────────────────────────────────────────────────────────

    def list_cards(self, list_id: str) -> Any:
        return self.request("GET", f"lists/{list_id}/cards")

    def get_card(self, card_id: str) -> Any:
        return self.request("GET", f"cards/{card_id}")

    def create_card(self, list_id: str, name: str, desc: str = "") -> Any:
        params = {"idList": list_id, "name": name, "desc": desc or ""}
        return self.request("POST", "cards", params=params)

    def update_card(
        self,
        card_id: str,
        name: Optional[str] = None,
        desc: Optional[str] = None,
        id_list: Optional[str] = None,
    ) -> Any:
        """Update a card. Fields left as None are not sent."""
        body = {"name": name, "desc": desc, "idList": id_list}
        body = {k: v for k, v in body.items() if v is not None}
        return self.request("PUT", f"cards/{card_id}", json=body)

    def close_card(self, card_id: str) -> Any:
        """Archive a card. Trello keeps it; the relay treats it as deleted."""
        return self.request("PUT", f"cards/{card_id}", params={"closed": "true"})

    # ── Webhooks ────────────────────────────────────────────────────────────

    def create_webhook(self, board_id: str, callback_url: str,
                       description: str = "Trello Board Webhook") -> Any:
        body = {
            "description": description,
            "callbackURL": callback_url,
            "idModel": board_id,
        }
        return self.request("POST", "webhooks", json=body)

    def list_webhooks(self) -> Any:
        # Token goes in the path here, so only the key is sent as a param
        return self.request("GET", f"tokens/{self.token}/webhooks", with_token=False)

    def delete_webhook(self, webhook_id: str) -> Any:
        return self.request("DELETE", f"webhooks/{webhook_id}")
