import asyncio
import unittest
from dataclasses import replace
from unittest.mock import Mock

from gomarket.chat import ASSISTANT_USERNAME, ConversationController, ConversationState
from gomarket.config import Latency
from gomarket.data_models import MessageStatus
from gomarket.errors import AIGatewayError
from gomarket.marketplace import MarketplaceStore
from tests.helpers import make_listing, make_user, message

INSTANT = Latency().scaled(0)


class ChatTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.seller = make_user("alice", ai_auto_reply_enabled=True)
        self.buyer = make_user("bob")
        self.store = MarketplaceStore([make_listing("1", self.seller, title="Lamp")])
        self.gateway = Mock()
        self.gateway.generate_chat_reply.return_value = "Yes, still available!"
        self.controllers = []

    def tearDown(self):
        for controller in self.controllers:
            controller.close()

    def controller(self, viewer, latency=INSTANT, gateway="default"):
        c = ConversationController(
            self.store, "1", viewer,
            gateway=self.gateway if gateway == "default" else gateway,
            latency=latency,
        )
        c.open()
        self.controllers.append(c)
        return c

    def history(self):
        return self.store.get("1").chat_history


class TestSend(ChatTestCase):
    async def test_message_awaits_delivery(self):
        c = self.controller(self.buyer, latency=replace(INSTANT, delivery=10), gateway=None)
        sent = c.send("Is this available?")
        self.assertEqual(sent.status, MessageStatus.SENT)
        self.assertEqual(self.history()[-1].status, MessageStatus.SENT)
        self.assertEqual(c.state, ConversationState.AWAITING_DELIVERY)

    async def test_message_is_delivered(self):
        c = self.controller(self.buyer, gateway=None)
        c.send("Hello?")
        await c.drain()
        self.assertEqual(self.history()[-1].status, MessageStatus.DELIVERED)
        self.assertEqual(c.state, ConversationState.IDLE)

    async def test_blank_message_is_ignored(self):
        c = self.controller(self.buyer)
        self.assertIsNone(c.send("   "))
        self.assertEqual(self.history(), [])

    async def test_image_only_message_is_sent(self):
        c = self.controller(self.buyer, gateway=None)
        sent = c.send("", image_url="/tmp/photo.png")
        self.assertEqual(sent.image_url, "/tmp/photo.png")
        await c.drain()
        self.assertEqual(len(self.history()), 1)

    async def test_unknown_listing_sends_nothing(self):
        c = ConversationController(self.store, "42", self.buyer, latency=INSTANT)
        self.assertIsNone(c.send("hello"))


class TestAutoReply(ChatTestCase):
    async def test_ai_replies_for_seller(self):
        c = self.controller(self.buyer)
        c.send("Is this available?")
        await c.drain()
        history = self.history()
        self.assertEqual(len(history), 2)
        self.assertEqual(history[0].status, MessageStatus.DELIVERED)
        reply = history[1]
        self.assertEqual(reply.sender_username, ASSISTANT_USERNAME)
        self.assertTrue(reply.is_ai_message)
        self.assertEqual(reply.text, "Yes, still available!")
        self.gateway.generate_chat_reply.assert_called_once()

    async def test_no_reply_when_seller_has_it_disabled(self):
        self.store = MarketplaceStore([make_listing("1", make_user("alice"))])
        c = self.controller(self.buyer)
        c.send("hello")
        await c.drain()
        self.assertEqual(len(self.history()), 1)
        self.gateway.generate_chat_reply.assert_not_called()

    async def test_no_reply_to_the_seller_themselves(self):
        c = self.controller(self.seller)
        c.send("Price drop!")
        await c.drain()
        self.gateway.generate_chat_reply.assert_not_called()

    async def test_new_message_replaces_pending_reply(self):
        c = self.controller(self.buyer)
        c.send("first")
        c.send("second")
        await c.drain()
        self.gateway.generate_chat_reply.assert_called_once()
        texts = [m.text for m in self.history()]
        self.assertEqual(texts, ["first", "second", "Yes, still available!"])

    async def test_seller_message_cancels_pending_reply(self):
        c = self.controller(self.buyer, latency=replace(INSTANT, ai_reply=10))
        c.send("Is this available?")
        self.assertEqual(c.state, ConversationState.AWAITING_DELIVERY)
        # the seller answers from their own session
        self.store.update_chat("1", self.history() + [message("alice", "Yes!", timestamp="2030-01-01T00:00:00.000+00:00")])
        await c.drain()
        self.gateway.generate_chat_reply.assert_not_called()
        self.assertEqual([m.sender_username for m in self.history()], ["bob", "alice"])

    async def test_gateway_failure_adds_nothing(self):
        self.gateway.generate_chat_reply.side_effect = AIGatewayError("AI features are unavailable")
        c = self.controller(self.buyer)
        c.send("hello")
        await c.drain()
        self.assertEqual(len(self.history()), 1)
        self.assertFalse(c.ai_sending)


class TestLifecycle(ChatTestCase):
    async def test_close_cancels_pending_timers(self):
        c = self.controller(self.buyer, latency=replace(INSTANT, delivery=10, ai_reply=10))
        c.send("hello")
        c.close()
        await asyncio.sleep(0)
        await c.drain()
        self.assertEqual(self.history()[-1].status, MessageStatus.SENT)
        self.assertEqual(len(self.history()), 1)
        self.gateway.generate_chat_reply.assert_not_called()
        self.assertIsNone(c.send("again"))

    async def test_open_marks_inbound_messages_read(self):
        self.store.update_chat("1", [
            message("bob", "hi", status=MessageStatus.DELIVERED),
            message("alice", "hello", status=MessageStatus.DELIVERED),
        ])
        c = self.controller(self.buyer)
        await c.drain()
        statuses = [m.status for m in self.history()]
        self.assertEqual(statuses, [MessageStatus.DELIVERED, MessageStatus.READ])

    async def test_open_leaves_chat_alone_when_last_message_is_own(self):
        self.store.update_chat("1", [message("alice", "hello", status=MessageStatus.DELIVERED),
                                     message("bob", "hi", status=MessageStatus.DELIVERED)])
        c = self.controller(self.buyer)
        await c.drain()
        self.assertEqual(self.history()[0].status, MessageStatus.DELIVERED)

    async def test_is_owner(self):
        self.assertTrue(self.controller(self.seller).is_owner)
        self.assertFalse(self.controller(self.buyer).is_owner)


if __name__ == "__main__":
    unittest.main()
