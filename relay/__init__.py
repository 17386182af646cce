# Trello relay: REST pass-through and real-time fan-out of board/card changes
#
# Components:
#   config.py      - RelayConfig (YAML + env), credential checks
#   provider.py    - Trello REST client (requests)
#   broadcaster.py - Connected channel registry and event fan-out
#   webhook.py     - Trello webhook normalization (action type -> event name)
#   routes.py      - Flask blueprints for boards, tasks, webhooks, ingress
#   app.py         - Application factory (Flask + Socket.IO wiring)
#   subscriber.py  - Client-side list reconciliation for pushed events
