"""Shared fixtures for relay tests."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure the project root is importable without an install
sys.path.insert(0, str(Path(__file__).parent.parent))

from relay.app import create_app
from relay.broadcaster import EventBroadcaster
from relay.config import RelayConfig
from relay.provider import TrelloClient


@pytest.fixture
def cfg():
    return RelayConfig(trello_key="k-123", trello_token="t-456")


@pytest.fixture
def provider():
    return MagicMock(spec=TrelloClient)


@pytest.fixture
def broadcaster():
    return EventBroadcaster()


@pytest.fixture
def events(broadcaster):
    """Every (event, payload) broadcast while the test runs."""
    seen = []
    handle = broadcaster.listen(lambda event, payload: seen.append((event, payload)))
    yield seen
    handle.close()


@pytest.fixture
def relay(cfg, provider, broadcaster):
    app, socketio = create_app(cfg, provider=provider, broadcaster=broadcaster)
    app.config["TESTING"] = True
    return app, socketio


@pytest.fixture
def client(relay):
    app, _ = relay
    return app.test_client()
