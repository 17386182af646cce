#!/usr/bin/env python3
"""
Trello Relay Server
-------------------
Forwards board/list/card operations to the Trello REST API and pushes
change events to connected browsers over Socket.IO.

Usage:
    export TRELLO_KEY=...  TRELLO_TOKEN=...   (or put them in .env)
    python relay_server.py --port 5000

    # Trello must reach /webhook; register it once the URL is public:
    curl -X POST localhost:5000/api/webhooks/create \\
         -H 'Content-Type: application/json' \\
         -d '{"boardId": "<id>", "callbackURL": "https://<public-host>/webhook"}'

Socket.IO events:
    boardCreated, boardDeleted, taskCreated, taskUpdated, taskDeleted,
    trelloUpdate (raw webhook envelope)
"""
import argparse
import logging
import sys

from dotenv import load_dotenv

from relay.app import create_app
from relay.config import ConfigError, RelayConfig

logger = logging.getLogger("relay")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Trello Relay Server")
    parser.add_argument("--config", default=None, help="Path to relay.yaml")
    parser.add_argument("--host", default=None,
                        help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int, default=None)
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING...")
    args = parser.parse_args(argv)

    load_dotenv()

    try:
        cfg = RelayConfig.load(args.config)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.host:
        cfg.host = args.host
    if args.port:
        cfg.port = args.port
    if args.log_level:
        cfg.log_level = args.log_level

    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        app, socketio = create_app(cfg)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    print(f"""
╔═══════════════════════════════════════╗
║  Trello Relay Server                  ║
╠═══════════════════════════════════════╣
║  URL:  http://{cfg.host}:{cfg.port:<20}║
║  API:  {cfg.api_base:<31}║
╚═══════════════════════════════════════╝
""")

    run_kwargs = {}
    if socketio.server.eio.async_mode == "threading":
        # Werkzeug dev server; put a real WSGI server in front for production
        run_kwargs["allow_unsafe_werkzeug"] = True
    socketio.run(app, host=cfg.host, port=cfg.port, debug=False, **run_kwargs)


if __name__ == "__main__":
    main()
