"""
End-to-end tests over the Socket.IO channel.

Covers:
    - connect / disconnect   — registry membership
    - mutation broadcast     — HTTP mutation reaches every connected session
    - webhook broadcast      — mapped and raw events delivered
"""


def _named(received, name):
    return [pkt["args"][0] for pkt in received if pkt["name"] == name]


class TestChannels:

    def test_connect_registers_and_disconnect_removes(self, relay, broadcaster):
        app, socketio = relay
        sio = socketio.test_client(app)
        assert sio.is_connected()
        assert len(broadcaster.registry) == 1

        sio.disconnect()
        assert len(broadcaster.registry) == 0

    def test_create_task_reaches_all_sessions(self, relay, provider):
        app, socketio = relay
        card = {"id": "C1", "idList": "L1", "name": "Buy milk", "desc": ""}
        provider.create_card.return_value = card

        a = socketio.test_client(app)
        b = socketio.test_client(app)
        app.test_client().post("/api/tasks", json={"listId": "L1", "name": "Buy milk", "desc": ""})

        assert _named(a.get_received(), "taskCreated") == [card]
        assert _named(b.get_received(), "taskCreated") == [card]
        a.disconnect()
        b.disconnect()

    def test_disconnected_session_gets_nothing(self, relay, provider):
        app, socketio = relay
        provider.close_card.return_value = {"id": "C1"}

        stays = socketio.test_client(app)
        leaves = socketio.test_client(app)
        leaves.disconnect()

        app.test_client().delete("/api/tasks/C1")
        assert _named(stays.get_received(), "taskDeleted") == [{"cardId": "C1"}]
        stays.disconnect()

    def test_webhook_delivery(self, relay):
        app, socketio = relay
        sio = socketio.test_client(app)
        envelope = {"action": {"type": "createBoard", "data": {"board": {"id": "B3"}}}}

        app.test_client().post("/webhook", json=envelope)

        received = sio.get_received()
        assert _named(received, "boardCreated") == [{"id": "B3"}]
        assert _named(received, "trelloUpdate") == [envelope]
        sio.disconnect()
