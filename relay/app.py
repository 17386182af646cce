"""
Application factory.

Builds the Flask app and its Socket.IO server from an explicit RelayConfig.
Each Socket.IO session becomes a channel in the broadcaster's registry for
as long as it stays connected.
"""
import logging
from typing import Optional, Tuple

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.exceptions import HTTPException

from .broadcaster import EventBroadcaster, SocketIOChannel
from .config import RelayConfig
from .provider import TrelloClient
from .routes import boards_blueprint, ingress_blueprint, tasks_blueprint, webhooks_blueprint
from .webhook import WebhookIngress

logger = logging.getLogger(__name__)


def create_app(
    cfg: RelayConfig,
    provider: Optional[TrelloClient] = None,
    broadcaster: Optional[EventBroadcaster] = None,
) -> Tuple[Flask, SocketIO]:
    """Wire routes, CORS and Socket.IO; returns (app, socketio)."""
    cfg.validate()
    provider = provider or TrelloClient.from_config(cfg)
    broadcaster = broadcaster or EventBroadcaster()

    app = Flask(__name__)
    app.extensions["relay.broadcaster"] = broadcaster
    app.extensions["relay.provider"] = provider
    CORS(app, origins=cfg.cors_origins)

    socketio = SocketIO(
        app,
        cors_allowed_origins=cfg.cors_origins,
        async_mode=cfg.async_mode,
    )

    app.register_blueprint(boards_blueprint(provider, broadcaster))
    app.register_blueprint(tasks_blueprint(provider, broadcaster))
    app.register_blueprint(webhooks_blueprint(provider, cfg.webhook_description))
    app.register_blueprint(ingress_blueprint(WebhookIngress(broadcaster)))

    # ── Socket.IO channels ──────────────────────────────────────────────────

    handles = {}  # sid -> ChannelHandle

    @socketio.on("connect")
    def on_connect(auth=None):
        sid = request.sid
        handles[sid] = broadcaster.connect(SocketIOChannel(socketio, sid))
        logger.info(f"Client connected: {sid} ({len(broadcaster.registry)} open)")

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        sid = request.sid
        handle = handles.pop(sid, None)
        if handle:
            handle.close()
        logger.info(f"Client disconnected: {sid} ({len(broadcaster.registry)} open)")

    # ── Misc routes ─────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        return "Trello relay running"

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "channels": len(broadcaster.registry)})

    @app.errorhandler(Exception)
    def handle_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error")
        return jsonify({"error": "Something went wrong!"}), 500

    return app, socketio
