"""
HTTP routes.

    GET    /api/boards                  → list boards
    POST   /api/boards                  → create board      (emits boardCreated)
    GET    /api/boards/<id>             → get board
    DELETE /api/boards/<id>             → delete board      (emits boardDeleted)
    GET    /api/boards/<id>/lists       → lists of a board
    GET    /api/tasks/list/<listId>     → cards of a list
    GET    /api/tasks/<cardId>          → get card
    POST   /api/tasks                   → create card       (emits taskCreated)
    PUT    /api/tasks/<cardId>          → update card       (emits taskUpdated)
    DELETE /api/tasks/<cardId>          → archive card      (emits taskDeleted)
    POST   /api/webhooks/create         → register Trello webhook
    GET    /api/webhooks/list           → list registered webhooks
    DELETE /api/webhooks/<id>           → remove webhook
    HEAD|GET|POST /webhook              → Trello verification / delivery

Every provider failure becomes a 500 with a fixed message per endpoint.
"""
import logging

from flask import Blueprint, Response, jsonify, request

from .broadcaster import (
    BOARD_CREATED,
    BOARD_DELETED,
    TASK_CREATED,
    TASK_DELETED,
    TASK_UPDATED,
    EventBroadcaster,
)
from .provider import ProviderError, TrelloClient
from .webhook import WebhookIngress, verification_reply

logger = logging.getLogger(__name__)


class ValidationError(Exception):
    """Raised when a request is missing a required field."""
    pass


def _json_body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def _failure(message: str, err: ProviderError, with_details: bool = False):
    logger.error(f"{message}: {err.details}")
    body = {"error": message}
    if with_details:
        body["details"] = err.details
    return jsonify(body), 500


# ── Boards ──────────────────────────────────────────────────────────────────

def boards_blueprint(provider: TrelloClient, broadcaster: EventBroadcaster) -> Blueprint:
    bp = Blueprint("boards", __name__, url_prefix="/api/boards")

    @bp.route("", methods=["GET"])
    @bp.route("/", methods=["GET"])
    def list_boards():
        try:
            return jsonify(provider.list_boards())
        except ProviderError as e:
            return _failure("Failed to fetch boards", e)

    @bp.route("/<board_id>", methods=["GET"])
    def get_board(board_id):
        try:
            return jsonify(provider.get_board(board_id))
        except ProviderError as e:
            return _failure("Failed to fetch board", e)

    @bp.route("/<board_id>/lists", methods=["GET"])
    def board_lists(board_id):
        try:
            return jsonify(provider.get_board_lists(board_id))
        except ProviderError as e:
            return _failure("Failed to fetch lists", e)

    @bp.route("", methods=["POST"])
    @bp.route("/", methods=["POST"])
    def create_board():
        data = _json_body()
        try:
            board = provider.create_board(data.get("name"), data.get("defaultLists"))
        except ProviderError as e:
            return _failure("Failed to create board", e)
        broadcaster.broadcast(BOARD_CREATED, board)
        return jsonify(board)

    @bp.route("/<board_id>", methods=["DELETE"])
    def delete_board(board_id):
        try:
            provider.delete_board(board_id)
        except ProviderError as e:
            return _failure("Failed to delete board", e)
        broadcaster.broadcast(BOARD_DELETED, {"boardId": board_id})
        return jsonify({"success": True, "boardId": board_id})

    return bp


# ── Tasks (cards) ───────────────────────────────────────────────────────────

def tasks_blueprint(provider: TrelloClient, broadcaster: EventBroadcaster) -> Blueprint:
    bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")

    @bp.route("/list/<list_id>", methods=["GET"])
    def list_tasks(list_id):
        try:
            return jsonify(provider.list_cards(list_id))
        except ProviderError as e:
            return _failure("Failed to fetch tasks", e)

    @bp.route("/<card_id>", methods=["GET"])
    def get_task(card_id):
        try:
            return jsonify(provider.get_card(card_id))
        except ProviderError as e:
            return _failure("Failed to fetch task", e)

    @bp.route("", methods=["POST"])
    @bp.route("/", methods=["POST"])
    def create_task():
        data = _json_body()
        try:
            card = provider.create_card(
                data.get("listId"), data.get("name"), data.get("desc", "")
            )
        except ProviderError as e:
            return _failure("Failed to create task", e)
        broadcaster.broadcast(TASK_CREATED, card)
        return jsonify(card)

    @bp.route("/<card_id>", methods=["PUT"])
    def update_task(card_id):
        data = _json_body()
        try:
            card = provider.update_card(
                card_id,
                name=data.get("name"),
                desc=data.get("desc"),
                id_list=data.get("idList"),
            )
        except ProviderError as e:
            return _failure("Failed to update task", e)
        broadcaster.broadcast(TASK_UPDATED, card)
        return jsonify(card)

    @bp.route("/<card_id>", methods=["DELETE"])
    def delete_task(card_id):
        try:
            card = provider.close_card(card_id)
        except ProviderError as e:
            return _failure("Failed to delete task", e)
        broadcaster.broadcast(TASK_DELETED, {"cardId": card_id})
        return jsonify(card)

    return bp


# ── Webhook registration ────────────────────────────────────────────────────

def webhooks_blueprint(provider: TrelloClient, description: str = "Trello Board Webhook") -> Blueprint:
    bp = Blueprint("webhooks", __name__, url_prefix="/api/webhooks")

    def _require_callback(data: dict) -> str:
        callback_url = data.get("callbackURL")
        if not callback_url:
            raise ValidationError(
                "callbackURL is required (e.g., https://your-tunnel.example.com/webhook)"
            )
        return callback_url

    @bp.route("/create", methods=["POST"])
    def create_webhook():
        data = _json_body()
        try:
            callback_url = _require_callback(data)
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400

        try:
            webhook = provider.create_webhook(data.get("boardId"), callback_url, description)
        except ProviderError as e:
            return _failure("Failed to create webhook", e, with_details=True)

        logger.info(f"Webhook created: {webhook}")
        return jsonify({
            "success": True,
            "webhook": webhook,
            "message": f"Webhook registered successfully. Trello will now send events to: {callback_url}",
        })

    @bp.route("/list", methods=["GET"])
    def list_webhooks():
        try:
            return jsonify(provider.list_webhooks())
        except ProviderError as e:
            return _failure("Failed to list webhooks", e)

    @bp.route("/<webhook_id>", methods=["DELETE"])
    def delete_webhook(webhook_id):
        try:
            provider.delete_webhook(webhook_id)
        except ProviderError as e:
            return _failure("Failed to delete webhook", e)
        return jsonify({"success": True, "message": "Webhook deleted"})

    return bp


# ── Ingress (Trello → relay) ────────────────────────────────────────────────

def ingress_blueprint(ingress: WebhookIngress) -> Blueprint:
    bp = Blueprint("ingress", __name__)

    @bp.route("/webhook", methods=["GET", "HEAD"])
    def verify():
        if request.method == "HEAD":
            logger.info("Webhook HEAD verification")
            return Response(status=200)
        logger.info(f"Webhook GET verification: {dict(request.args)}")
        return verification_reply(request.args)

    @bp.route("/webhook", methods=["POST"])
    def deliver():
        envelope = request.get_json(force=True, silent=True)
        try:
            ingress.handle(envelope)
        except Exception:
            # Trello must always see 200 or it retries and eventually disables the hook
            logger.exception("Webhook processing failed")
        return Response("OK", status=200)

    return bp
