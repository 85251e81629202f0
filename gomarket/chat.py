"""
Chat on a listing: sending, simulated delivery and read receipts, AI auto-reply.

There is no message transport. Delivery acknowledgements and read receipts are
timers, and the AI auto-reply is a timer followed by a gateway call. Every
timer is an asyncio task owned by the controller; close() cancels them so a
conversation the user has left never receives late writes.
"""
import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Set

from .config import Latency
from .data_models import ChatMessage, Listing, MessageStatus, User, now_iso
from .errors import AIGatewayError
from .marketplace import CHAT_UPDATED, MarketplaceStore

logger = logging.getLogger("gomarket.chat")

ASSISTANT_USERNAME = "GoMarketAssistant"


class ConversationState(str, Enum):
    IDLE = "idle"
    AWAITING_DELIVERY = "awaiting_delivery"
    AWAITING_AI_REPLY = "awaiting_ai_reply"


class ConversationController:
    """One open conversation on one listing, seen by ``viewer``."""

    def __init__(
        self,
        store: MarketplaceStore,
        listing_id: str,
        viewer: User,
        gateway=None,
        latency: Optional[Latency] = None,
    ):
        self.store = store
        self.listing_id = listing_id
        self.viewer = viewer
        self.gateway = gateway
        self.latency = latency or Latency()
        self.closed = False
        self.ai_sending = False

        self._delivery_tasks: Set[asyncio.Task] = set()
        self._ai_task: Optional[asyncio.Task] = None
        self._read_task: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # --- queries ---
    @property
    def listing(self) -> Optional[Listing]:
        return self.store.get(self.listing_id)

    @property
    def messages(self) -> List[ChatMessage]:
        listing = self.listing
        return list(listing.chat_history) if listing else []

    @property
    def state(self) -> ConversationState:
        if any(not t.done() for t in self._delivery_tasks):
            return ConversationState.AWAITING_DELIVERY
        if self._ai_task is not None and not self._ai_task.done():
            return ConversationState.AWAITING_AI_REPLY
        return ConversationState.IDLE

    @property
    def is_owner(self) -> bool:
        listing = self.listing
        return listing is not None and listing.seller.username == self.viewer.username

    # --- lifecycle ---
    def open(self) -> None:
        """Start watching the listing and schedule read receipts if needed."""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_store_event)
        self._schedule_read_receipts()

    def close(self) -> None:
        """Cancel every pending timer and stop writing to the listing."""
        self.closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in self._pending_tasks():
            task.cancel()
        self.ai_sending = False

    async def drain(self) -> None:
        """Wait until no timer is pending."""
        while True:
            pending = [t for t in self._pending_tasks() if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def _pending_tasks(self) -> List[asyncio.Task]:
        tasks = list(self._delivery_tasks)
        if self._ai_task is not None:
            tasks.append(self._ai_task)
        if self._read_task is not None:
            tasks.append(self._read_task)
        return tasks

    def _start(self, delay: float, action: Callable[[], Awaitable[None]]) -> asyncio.Task:
        async def run() -> None:
            await asyncio.sleep(delay)
            if not self.closed:
                await action()

        return asyncio.get_running_loop().create_task(run())

    # --- commands ---
    def send(self, text: str, image_url: Optional[str] = None) -> Optional[ChatMessage]:
        """Append a message from the viewer. Returns None when nothing was sent."""
        text = (text or "").strip()
        if (not text and not image_url) or self.ai_sending or self.closed:
            return None
        listing = self.listing
        if listing is None:
            logger.debug("send on unknown listing %s", self.listing_id)
            return None

        message = ChatMessage(
            sender_username=self.viewer.username,
            text=text,
            timestamp=now_iso(),
            image_url=image_url,
            status=MessageStatus.SENT,
        )
        self._cancel_ai_reply()
        self.store.update_chat(self.listing_id, list(listing.chat_history) + [message])

        task = self._start(self.latency.delivery, lambda: self._acknowledge(message))
        self._delivery_tasks.add(task)
        task.add_done_callback(self._delivery_tasks.discard)

        seller = listing.seller
        if seller.username != self.viewer.username and seller.ai_auto_reply_enabled and self.gateway is not None:
            self._ai_task = self._start(self.latency.ai_reply, self._auto_reply)
        return message

    def _cancel_ai_reply(self) -> None:
        if self._ai_task is not None and not self._ai_task.done():
            logger.debug("cancelling pending AI reply on %s", self.listing_id)
            self._ai_task.cancel()
        self._ai_task = None
        self.ai_sending = False

    async def _acknowledge(self, message: ChatMessage) -> None:
        listing = self.listing
        if listing is None:
            return
        history = list(listing.chat_history)
        for i, m in enumerate(history):
            if (m.timestamp == message.timestamp and m.sender_username == message.sender_username
                    and m.status == MessageStatus.SENT):
                history[i] = m.with_status(MessageStatus.DELIVERED)
                self.store.update_chat(self.listing_id, history)
                return

    async def _auto_reply(self) -> None:
        listing = self.listing
        if listing is None:
            return
        self.ai_sending = True
        try:
            text = await asyncio.to_thread(self.gateway.generate_chat_reply, list(listing.chat_history), listing)
        except AIGatewayError:
            logger.error("AI auto-reply failed", exc_info=True)
            return
        finally:
            self.ai_sending = False
        if self.closed:
            return
        current = self.listing
        if current is None:
            return
        reply = ChatMessage(
            sender_username=ASSISTANT_USERNAME,
            text=text,
            timestamp=now_iso(),
            is_ai_message=True,
        )
        self._ai_task = None
        self.store.update_chat(self.listing_id, list(current.chat_history) + [reply])

    # --- read receipts ---
    def _has_unread_inbound(self) -> bool:
        history = self.messages
        if not history or history[-1].sender_username == self.viewer.username:
            return False
        return any(
            m.sender_username != self.viewer.username and m.status != MessageStatus.READ
            for m in history
        )

    def _schedule_read_receipts(self) -> None:
        if self.closed or not self._has_unread_inbound():
            return
        if self._read_task is not None and not self._read_task.done():
            return
        self._read_task = self._start(self.latency.read_receipt, self._mark_read)

    async def _mark_read(self) -> None:
        listing = self.listing
        if listing is None:
            return
        history = [
            m.with_status(MessageStatus.READ)
            if m.sender_username != self.viewer.username and m.status != MessageStatus.READ
            else m
            for m in listing.chat_history
        ]
        self._read_task = None
        self.store.update_chat(self.listing_id, history)

    def _on_store_event(self, event: str, listing_id: str) -> None:
        if event != CHAT_UPDATED or listing_id != self.listing_id or self.closed:
            return
        last = self.listing.last_message if self.listing else None
        if last is None:
            return
        listing = self.listing
        if last.sender_username == listing.seller.username and last.sender_username != self.viewer.username:
            # the real seller answered
            self._cancel_ai_reply()
        self._schedule_read_receipts()
