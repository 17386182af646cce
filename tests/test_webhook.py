"""
Tests for relay.webhook.

Covers:
    - normalize_action()     — action type → event name and payload
    - WebhookIngress.handle() — mapped + raw broadcast, ignored bodies
    - verification_reply()    — challenge echo
"""

import pytest

from relay.broadcaster import EventBroadcaster
from relay.webhook import (
    ACTION_EVENTS,
    VERIFIED_REPLY,
    WebhookIngress,
    normalize_action,
    verification_reply,
)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# normalize_action
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestNormalizeAction:

    def test_mapping_table_is_fixed(self):
        assert set(ACTION_EVENTS) == {"createCard", "updateCard", "deleteCard", "createBoard"}

    def test_create_card(self):
        card = {"id": "C1", "name": "Buy milk"}
        assert normalize_action({"type": "createCard", "data": {"card": card}}) == ("taskCreated", card)

    def test_update_card(self):
        card = {"id": "C1", "name": "Renamed"}
        assert normalize_action({"type": "updateCard", "data": {"card": card}}) == ("taskUpdated", card)

    def test_delete_card_payload_is_card_id(self):
        action = {"type": "deleteCard", "data": {"card": {"id": "C9"}}}
        assert normalize_action(action) == ("taskDeleted", {"cardId": "C9"})

    def test_create_board(self):
        board = {"id": "B1", "name": "Sprint"}
        assert normalize_action({"type": "createBoard", "data": {"board": board}}) == ("boardCreated", board)

    @pytest.mark.parametrize("action_type", ["commentCard", "addMemberToCard", "updateList", None])
    def test_unrecognized_types(self, action_type):
        assert normalize_action({"type": action_type, "data": {"card": {"id": "C1"}}}) is None

    def test_missing_sub_document(self):
        assert normalize_action({"type": "deleteCard", "data": {}}) is None
        assert normalize_action({"type": "createCard"}) is None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# WebhookIngress
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestWebhookIngress:

    def setup_method(self):
        self.broadcaster = EventBroadcaster()
        self.events = []
        self.broadcaster.listen(lambda e, p: self.events.append((e, p)))
        self.ingress = WebhookIngress(self.broadcaster)

    def test_update_card_emits_mapped_then_raw(self):
        card = {"id": "C1", "name": "x", "idList": "L1"}
        envelope = {"model": {"id": "B1"}, "action": {"type": "updateCard", "data": {"card": card}}}

        assert self.ingress.handle(envelope) == "taskUpdated"
        assert self.events == [("taskUpdated", card), ("trelloUpdate", envelope)]

    def test_delete_card(self):
        envelope = {"action": {"type": "deleteCard", "data": {"card": {"id": "C9"}}}}
        self.ingress.handle(envelope)
        assert self.events[0] == ("taskDeleted", {"cardId": "C9"})

    def test_unrecognized_type_only_raw(self):
        envelope = {"action": {"type": "commentCard", "data": {"text": "hi"}}}
        assert self.ingress.handle(envelope) is None
        assert self.events == [("trelloUpdate", envelope)]

    @pytest.mark.parametrize("action_type", [["createCard"], {"name": "createCard"}, 42])
    def test_non_string_type_still_broadcasts_raw(self, action_type):
        envelope = {"action": {"type": action_type, "data": {}}}
        assert self.ingress.handle(envelope) is None
        assert self.events == [("trelloUpdate", envelope)]

    def test_missing_action_ignored(self):
        assert self.ingress.handle({"model": {"id": "B1"}}) is None
        assert self.events == []

    @pytest.mark.parametrize("body", [None, [], "text", {"action": "createCard"}])
    def test_malformed_bodies_ignored(self, body):
        assert self.ingress.handle(body) is None
        assert self.events == []

    def test_same_envelope_twice_broadcasts_twice(self):
        envelope = {"action": {"type": "createCard", "data": {"card": {"id": "C1"}}}}
        self.ingress.handle(envelope)
        self.ingress.handle(envelope)
        names = [e for e, _ in self.events]
        assert names == ["taskCreated", "trelloUpdate", "taskCreated", "trelloUpdate"]


class TestVerificationReply:

    def test_echoes_challenge(self):
        assert verification_reply({"challenge": "abc123"}) == "abc123"

    def test_default_acknowledgement(self):
        assert verification_reply({}) == VERIFIED_REPLY
