from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.widgets import (
    Static,
    Input,
    Button,
    TextArea,
    Select,
    Switch,
    Checkbox,
    TabbedContent,
    TabPane,
    OptionList,
)
from textual.reactive import reactive
from textual.screen import ModalScreen
from rich.text import Text
from pathlib import Path
from typing import Callable, List, Optional
import argparse
import asyncio
import logging
import sys
import tkinter as tk
from tkinter import filedialog

from .ai_gateway import anita_prompt, get_gateway, reset_gateway
from .ascii_video_widget import ASCIIVideoPlayer
from .chat import ASSISTANT_USERNAME, ConversationController
from .config import configure_logging, get_config, reset_config
from .credentials import clear_api_key, save_api_key
from .data_models import CATEGORIES, ChatMessage, Listing, ListingStatus, MessageStatus, Review, SubscriptionPlan, User, now_iso
from .errors import AIGatewayError, ValidationError
from .inbox import chat_partner, conversations, format_relative_date, is_unread, unread_count
from .listing_form import (
    ASSISTANT_GREETING,
    TITLE_FIRST,
    TITLE_FIRST_CATEGORY,
    TITLE_FIRST_PRICE,
    VIDEO_NEEDS,
    ListingDraft,
)
from .local_storage import LocalStorage
from .marketplace import MarketplaceStore
from .media import image_to_ascii, is_remote, prepare_video_frames, verify_image
from .payments import PLANS, apply_promo_code, price_breakdown, validate_card
from .router import VERIFIED_NOTICE, AppMode, Router, Screen as AppScreen, destination_for, sell_allowed
from .saved import SavedListingStore, SavedSearchStore
from .search import ALL_LOCATIONS, LOCATIONS, filter_listings, filter_locations
from .seed_data import seed_listings
from .session import SessionManager
from .settings_store import CURRENCIES, SettingsStore

logger = logging.getLogger("gomarket.main")

IMAGE_TYPES = [("Image files", "*.png *.jpg *.jpeg *.gif *.bmp *.webp")]

LOGO = r"""
  ____       __  __            _        _
 / ___| ___ |  \/  | __ _ _ __| | _____| |_
| |  _ / _ \| |\/| |/ _` | '__| |/ / _ \ __|
| |_| | (_) | |  | | (_| | |  |   <  __/ |_
 \____|\___/|_|  |_|\__,_|_|  |_|\_\___|\__|
"""


def pick_file(title: str, filetypes=None) -> Optional[str]:
    """Open the desktop file dialog. Returns None when cancelled or unavailable."""
    try:
        root = tk.Tk()
        root.withdraw()
        file_path = filedialog.askopenfilename(title=title, filetypes=filetypes or [("All files", "*.*")])
        root.destroy()
    except tk.TclError:
        logger.warning("file dialog unavailable (no display?)", exc_info=True)
        return None
    return file_path or None


def stars(rating: float) -> str:
    full = int(round(rating))
    return "★" * full + "☆" * (5 - full)


def status_label(user: User) -> str:
    return {
        "verified": "✓ Verified",
        "pending_verification": "… Pending verification",
        "unverified": "✗ Unverified",
    }[user.status.value]


# ───────── Items ─────────


class ListingItem(Static):
    """One listing row in a feed."""

    def __init__(self, listing: Listing, **kwargs):
        super().__init__(**kwargs)
        self.listing = listing

    def render(self) -> Text:
        app = self.app
        listing = self.listing
        text = Text()
        saved = app.saved_listings.is_saved(listing.id)
        text.append("♥ " if saved else "♡ ", style="red")
        text.append(listing.title, style="bold")
        if listing.status != ListingStatus.AVAILABLE:
            text.append(f"  [{listing.status.value.upper()}]", style="yellow")
        if listing.video_url:
            text.append("  🎬")
        text.append("\n")
        text.append(app.settings_store.format_price(listing.price), style="bold green")
        text.append(f"  · {listing.category} · {listing.seller_address or 'Location not set'}\n", style="dim")
        text.append(f"@{listing.seller.username}", style="cyan")
        if listing.seller.is_verified:
            text.append(" ✓", style="green")
        rating, count = listing.seller.rating()
        if count:
            text.append(f"  ★ {rating} ({count})", style="yellow")
        return text

    def on_click(self) -> None:
        self.app.open_listing(self.listing.id)


class ConversationItem(Static):
    def __init__(self, listing: Listing, **kwargs):
        super().__init__(**kwargs)
        self.listing = listing

    def render(self) -> Text:
        app = self.app
        user = app.user_session.user
        listing = self.listing
        partner = chat_partner(listing, user, app.store.listings)
        last = listing.last_message
        unread = is_unread(listing, user.username)
        text = Text()
        text.append("● " if unread else "  ", style="bold blue")
        text.append(partner.name if partner else "Unknown", style="bold" if unread else "")
        text.append(f"  ·  {listing.title}", style="dim")
        text.append(f"  {format_relative_date(last.timestamp)}\n", style="dim")
        prefix = "You: " if last.sender_username == user.username else ""
        preview = last.text or "📷 Photo"
        text.append(f"  {prefix}{preview[:70]}", style="" if unread else "dim")
        return text

    def on_click(self) -> None:
        self.app.open_listing(self.listing.id, tab="chat")


class ChatBubble(Static):
    def __init__(self, message: ChatMessage, viewer: str, seller_name: str = "", **kwargs):
        super().__init__(**kwargs)
        self.message = message
        self.viewer = viewer
        self.seller_name = seller_name

    def render(self) -> Text:
        m = self.message
        mine = m.sender_username == self.viewer
        text = Text()
        if m.is_ai_message or m.sender_username == ASSISTANT_USERNAME:
            text.append("🤖 GoMarket Assistant", style="bold magenta")
        elif mine:
            text.append("You", style="bold cyan")
        else:
            text.append(f"@{m.sender_username}", style="bold")
        text.append(f"  {format_relative_date(m.timestamp)}\n", style="dim")
        if m.text:
            text.append(m.text)
        if m.image_url:
            text.append(f"\n🖼 {Path(m.image_url).name}", style="italic")
        if mine:
            receipt = {MessageStatus.DELIVERED: "✓✓", MessageStatus.READ: "✓✓ read"}.get(m.status, "✓")
            text.append(f"\n{receipt}", style="blue" if m.status == MessageStatus.READ else "dim")
        return text


# ───────── Feeds ─────────


class ListingFeed(VerticalScroll):
    """Scrollable listing list with a vim-style cursor."""

    cursor_position = reactive(0)

    def __init__(self, listings: List[Listing], empty_text: str = "No listings found.", **kwargs):
        super().__init__(**kwargs)
        self.listings = list(listings)
        self.empty_text = empty_text

    def compose(self) -> ComposeResult:
        if not self.listings:
            yield Static(self.empty_text, classes="empty-state")
        for listing in self.listings:
            yield ListingItem(listing, classes="listing-item")

    async def set_listings(self, listings: List[Listing]) -> None:
        self.listings = list(listings)
        await self.remove_children()
        if self.listings:
            await self.mount_all([ListingItem(l, classes="listing-item") for l in self.listings])
        else:
            await self.mount(Static(self.empty_text, classes="empty-state"))
        self.cursor_position = min(self.cursor_position, max(0, len(self.listings) - 1))
        self._update_cursor()

    def on_mount(self) -> None:
        self.call_after_refresh(self._update_cursor)

    def _items(self) -> list:
        return list(self.query(ListingItem))

    def _update_cursor(self) -> None:
        items = self._items()
        for i, item in enumerate(items):
            if i == self.cursor_position and self.has_focus:
                item.add_class("vim-cursor")
                self.scroll_to_widget(item, animate=False)
            else:
                item.remove_class("vim-cursor")

    def watch_cursor_position(self, old: int, new: int) -> None:
        self._update_cursor()

    def on_focus(self) -> None:
        self._update_cursor()

    def on_blur(self) -> None:
        self._update_cursor()

    def current(self) -> Optional[Listing]:
        if 0 <= self.cursor_position < len(self.listings):
            return self.listings[self.cursor_position]
        return None

    def key_j(self) -> None:
        if self.cursor_position < len(self.listings) - 1:
            self.cursor_position += 1

    def key_k(self) -> None:
        if self.cursor_position > 0:
            self.cursor_position -= 1

    def key_g(self) -> None:
        self.cursor_position = 0

    def key_G(self) -> None:
        self.cursor_position = max(0, len(self.listings) - 1)

    def key_enter(self) -> None:
        listing = self.current()
        if listing:
            self.app.open_listing(listing.id)

    def key_s(self) -> None:
        listing = self.current()
        if listing:
            self.app.toggle_save(listing.id)

    def refresh_items(self) -> None:
        for item in self._items():
            item.refresh()


class ConversationList(VerticalScroll):
    cursor_position = reactive(0)

    def __init__(self, listings: List[Listing], **kwargs):
        super().__init__(**kwargs)
        self.listings = listings

    def compose(self) -> ComposeResult:
        if not self.listings:
            yield Static("No conversations yet. Message a seller from any listing.", classes="empty-state")
        for listing in self.listings:
            yield ConversationItem(listing, classes="conversation-item")

    def watch_cursor_position(self, old: int, new: int) -> None:
        items = list(self.query(ConversationItem))
        for i, item in enumerate(items):
            if i == new:
                item.add_class("vim-cursor")
                self.scroll_to_widget(item, animate=False)
            else:
                item.remove_class("vim-cursor")

    def key_j(self) -> None:
        if self.cursor_position < len(self.listings) - 1:
            self.cursor_position += 1

    def key_k(self) -> None:
        if self.cursor_position > 0:
            self.cursor_position -= 1

    def key_enter(self) -> None:
        if 0 <= self.cursor_position < len(self.listings):
            self.app.open_listing(self.listings[self.cursor_position].id, tab="chat")


# ───────── Dialogs ─────────


class StatusMixin:
    """Inline status line at #status-message, cleared after a few seconds."""

    def _show_status(self, message: str, error: bool = False, sticky: bool = False) -> None:
        widget = self.query_one("#status-message", Static)
        widget.styles.color = "#ff4444" if error else "#4a9eff"
        widget.update(message)
        if not sticky:
            self.set_timer(4, lambda: widget.update(""))


class VerificationPromptDialog(ModalScreen):
    """Shown when an unverified user tries to sell."""

    BINDINGS = [Binding("escape", "close", "Close")]

    def compose(self) -> ComposeResult:
        with Container(id="dialog-container"):
            yield Static("🛡 Verification Required", id="dialog-title")
            yield Static(
                "To keep GoMarket safe, sellers must verify their identity before posting.\n"
                "Upload your ID document and proof of address in Settings.",
                classes="dialog-message",
            )
            with Horizontal(id="action-buttons"):
                yield Button("Go to Settings", variant="primary", id="go-settings")
                yield Button("Maybe later", id="later")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "go-settings")

    def action_close(self) -> None:
        self.dismiss(False)


class ReviewDialog(ModalScreen):
    BINDINGS = [Binding("escape", "close", "Close")]

    def __init__(self, seller: User):
        super().__init__()
        self.seller = seller

    def compose(self) -> ComposeResult:
        with Container(id="dialog-container"):
            yield Static(f"⭐ Review @{self.seller.username}", id="dialog-title")
            yield Select([(stars(n) + f"  {n}", n) for n in range(5, 0, -1)], value=5, allow_blank=False, id="rating-select")
            yield TextArea(id="review-comment")
            yield Static("", id="status-message", classes="status-message")
            with Horizontal(id="action-buttons"):
                yield Button("Submit review", variant="primary", id="submit-review")
                yield Button("Cancel", id="cancel-review")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel-review":
            self.dismiss(None)
            return
        comment = self.query_one("#review-comment", TextArea).text.strip()
        rating = self.query_one("#rating-select", Select).value
        if not comment:
            widget = self.query_one("#status-message", Static)
            widget.update("Please write a short comment.")
            return
        self.dismiss((int(rating), comment))

    def action_close(self) -> None:
        self.dismiss(None)


class SellerIdCheckDialog(StatusMixin, ModalScreen):
    """Check a seller's ID number, either for a known seller or by lookup."""

    BINDINGS = [Binding("escape", "close", "Close")]

    def __init__(self, seller: Optional[User] = None):
        super().__init__()
        self.seller = seller
        self.found: Optional[User] = None

    def compose(self) -> ComposeResult:
        with Container(id="dialog-container"):
            yield Static("🪪 Verify ID", id="dialog-title")
            if self.seller:
                yield Static(
                    f"Meet in a safe, public place and ask @{self.seller.username} to show their ID.\n"
                    "Enter the ID number from the document:",
                    classes="dialog-message",
                )
            else:
                yield Static("Enter the ID number of the seller you are meeting:", classes="dialog-message")
            yield Input(placeholder="ID number", id="id-number-input")
            yield Static("", id="seller-card")
            yield Static("", id="status-message", classes="status-message")
            with Horizontal(id="action-buttons"):
                yield Button("Verify", variant="primary", id="verify-id")
                yield Button("View profile", id="view-found-profile", classes="hidden")
                yield Button("Close", id="close-dialog")

    def on_mount(self) -> None:
        self.query_one("#id-number-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._verify()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "verify-id":
            self._verify()
        elif event.button.id == "view-found-profile":
            self.dismiss(self.found)
        elif event.button.id == "close-dialog":
            self.dismiss(None)

    def _verify(self) -> None:
        entered = self.query_one("#id-number-input", Input).value.strip()
        if not entered:
            self._show_status("Please enter an ID number.", error=True)
            return
        store = self.app.store
        if self.seller:
            if store.verify_seller_id(self.seller, entered):
                self.app.notify("Seller ID verified! You can now buy this item.")
                self.dismiss(True)
            else:
                self._show_status(
                    "The ID number entered does not match the record. Please check and try again.", error=True
                )
            return
        found = store.find_seller_by_id_number(entered)
        if found is None:
            self._show_status(f'User with ID Number "{entered}" not found.', error=True)
            return
        self.found = found
        rating, count = found.rating()
        self.query_one("#seller-card", Static).update(
            f"{found.name} (@{found.username})\n{status_label(found)}  ·  {found.location or ''}\n"
            f"{stars(rating)} {rating} ({count} reviews)"
        )
        self.query_one("#view-found-profile", Button).remove_class("hidden")
        self._show_status("✓ ID matches a registered seller.", sticky=True)

    def action_close(self) -> None:
        self.dismiss(None)


class LocationPickerDialog(ModalScreen):
    BINDINGS = [Binding("escape", "close", "Close")]

    def __init__(self, current: str):
        super().__init__()
        self.current = current

    def compose(self) -> ComposeResult:
        with Container(id="dialog-container"):
            yield Static("📍 Change Location", id="dialog-title")
            yield Input(placeholder="Search for a city...", id="location-filter")
            yield OptionList(*filter_locations(""), id="location-options")

    def on_input_changed(self, event: Input.Changed) -> None:
        options = self.query_one("#location-options", OptionList)
        options.clear_options()
        options.add_options(filter_locations(event.value))

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(str(event.option.prompt))

    def action_close(self) -> None:
        self.dismiss(None)


class VisualSearchDialog(StatusMixin, ModalScreen):
    BINDINGS = [Binding("escape", "close", "Close")]

    def compose(self) -> ComposeResult:
        with Container(id="dialog-container"):
            yield Static("📷 Search with a photo", id="dialog-title")
            with Horizontal(classes="path-row"):
                yield Input(placeholder="Path to a photo", id="visual-path")
                yield Button("Browse", id="browse-visual")
            yield Static("", id="visual-preview", classes="ascii-preview")
            yield Static("", id="status-message", classes="status-message")
            with Horizontal(id="action-buttons"):
                yield Button("🔍 Find similar", variant="primary", id="analyze-visual")
                yield Button("Cancel", id="cancel-visual")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        btn_id = event.button.id
        if btn_id == "browse-visual":
            path = pick_file("Select an image", IMAGE_TYPES)
            if path:
                self.query_one("#visual-path", Input).value = path
                self.query_one("#visual-preview", Static).update(image_to_ascii(path, 40) or "")
        elif btn_id == "analyze-visual":
            path = self.query_one("#visual-path", Input).value.strip()
            if not path or not verify_image(path):
                self._show_status("⚠ Please choose a valid image file.", error=True)
                return
            self._show_status("Analyzing image...", sticky=True)
            self.run_worker(self._analyze(path), exclusive=True, group="visual")
        elif btn_id == "cancel-visual":
            self.dismiss(None)

    async def _analyze(self, path: str) -> None:
        try:
            term = await asyncio.to_thread(self.app.gateway.generate_search_term_from_image, path)
        except AIGatewayError as e:
            self._show_status(f"⚠ {e}", error=True, sticky=True)
            return
        self.dismiss(term)

    def action_close(self) -> None:
        self.dismiss(None)


class AssistantChatDialog(StatusMixin, ModalScreen):
    """Multi-turn chat with an AI assistant (Anita or the listing helper)."""

    BINDINGS = [Binding("escape", "close", "Close")]

    def __init__(self, title: str, greeting: str, session_factory: Callable, prompt_builder: Callable[[str], str]):
        super().__init__()
        self.title_text = title
        self.greeting = greeting
        self.session_factory = session_factory
        self.prompt_builder = prompt_builder
        self.chat_session = None
        self.busy = False

    def compose(self) -> ComposeResult:
        with Container(id="dialog-container", classes="assistant-dialog"):
            yield Static(self.title_text, id="dialog-title")
            with VerticalScroll(id="assistant-log"):
                yield Static(Text(self.greeting), classes="assistant-message")
            yield Static("", id="status-message", classes="status-message")
            with Horizontal(id="assistant-input-row"):
                yield Input(placeholder="Ask me anything...", id="assistant-input")
                yield Button("Send", variant="primary", id="assistant-send")

    def on_mount(self) -> None:
        self.query_one("#assistant-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._send()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "assistant-send":
            self._send()

    def _send(self) -> None:
        box = self.query_one("#assistant-input", Input)
        message = box.value.strip()
        if not message or self.busy:
            return
        box.value = ""
        self.busy = True
        self._append(f"You: {message}", "user-message")
        self._show_status("Thinking...", sticky=True)
        self.run_worker(self._ask(message), exclusive=True, group="assistant")

    async def _ask(self, message: str) -> None:
        try:
            if self.chat_session is None:
                self.chat_session = self.session_factory()
            reply = await asyncio.to_thread(self.chat_session.send_message, self.prompt_builder(message))
        except AIGatewayError as e:
            reply = str(e)
        finally:
            self.busy = False
            self.query_one("#status-message", Static).update("")
        self._append(reply, "assistant-message")

    def _append(self, text: str, classes: str) -> None:
        log = self.query_one("#assistant-log", VerticalScroll)
        log.mount(Static(Text(text), classes=classes))
        log.scroll_end(animate=False)

    def action_close(self) -> None:
        self.dismiss(None)


class PostItemDialog(StatusMixin, ModalScreen):
    """Form for posting a listing, with AI helpers."""

    BINDINGS = [Binding("escape", "close", "Close")]

    def __init__(self):
        super().__init__()
        self.draft = ListingDraft()
        self.assistant_session = None
        self.busy = set()

    def compose(self) -> ComposeResult:
        with Container(id="dialog-container", classes="post-dialog"):
            yield Static("📦 Post an Item", id="dialog-title")
            with VerticalScroll(id="post-form"):
                yield Static("Photos (up to 6, the first is the cover)", classes="field-label")
                with Horizontal(classes="path-row"):
                    yield Input(placeholder="Path to a photo", id="photo-path")
                    yield Button("Add", id="add-photo")
                    yield Button("Browse", id="browse-photo")
                yield Static("", id="photo-list")
                yield Static("", id="photo-preview", classes="ascii-preview")
                with Horizontal(classes="path-row"):
                    yield Input(placeholder="Describe an edit for the cover photo", id="edit-prompt")
                    yield Button("✨ Edit photo", id="edit-photo")
                yield Static("Title", classes="field-label")
                yield Input(placeholder="What are you selling?", id="title-input")
                yield Static("Category", classes="field-label")
                with Horizontal(classes="path-row"):
                    yield Select([(c, c) for c in CATEGORIES], prompt="Select a category", id="category-select")
                    yield Button("✨ Suggest", id="suggest-category")
                yield Static("Location", classes="field-label")
                yield Select([(loc, loc) for loc in LOCATIONS], prompt="Where is the item?", id="address-select")
                yield Static("Price", classes="field-label")
                with Horizontal(classes="path-row"):
                    yield Input(placeholder="0.00", id="price-input")
                    yield Button("✨ Suggest", id="suggest-price")
                yield Static("", id="price-justification", classes="hint")
                yield Static("Description", classes="field-label")
                yield TextArea(id="description-input")
                yield Button("✨ Generate description", id="generate-description")
                yield Static("Promotional video", classes="field-label")
                yield Button("🎬 Generate video", id="generate-video")
                yield Static("", id="video-status", classes="hint")
            yield Static("", id="status-message", classes="status-message")
            with Horizontal(id="action-buttons"):
                yield Button("🤖 Assistant", id="open-assistant")
                yield Button("📤 Post", variant="primary", id="post-button")
                yield Button("❌ Cancel", id="cancel-button")

    def on_mount(self) -> None:
        user = self.app.user_session.user
        if user and user.location in LOCATIONS:
            self.query_one("#address-select", Select).value = user.location
        self.query_one("#photo-path", Input).focus()

    # --- draft sync ---
    def _sync_draft(self) -> ListingDraft:
        d = self.draft
        d.title = self.query_one("#title-input", Input).value
        category = self.query_one("#category-select", Select).value
        d.category = category if isinstance(category, str) else ""
        address = self.query_one("#address-select", Select).value
        d.address = address if isinstance(address, str) else ""
        d.price = self.query_one("#price-input", Input).value
        d.description = self.query_one("#description-input", TextArea).text
        return d

    def _update_photos(self) -> None:
        names = [f"  {i + 1}. {'★ ' if i == 0 else ''}{Path(p).name}" for i, p in enumerate(self.draft.image_urls)]
        self.query_one("#photo-list", Static).update("\n".join(names))
        cover = self.draft.image_urls[0] if self.draft.image_urls else None
        self.query_one("#photo-preview", Static).update(image_to_ascii(cover, 36) or "")

    def _add_photo(self, path: str) -> None:
        if not verify_image(path):
            self._show_status("⚠ Invalid image file", error=True)
            return
        first = not self.draft.image_urls
        warning = self.draft.add_images([path])
        self._update_photos()
        if warning:
            self._show_status(warning, error=True)
            return
        self._show_status("✓ Photo added!")
        if first:
            self._start("title", self._title_from_image(path), "Analyzing your photo...")

    def _start(self, key: str, coro, message: str) -> None:
        if key in self.busy:
            coro.close()
            return
        self.busy.add(key)
        self._show_status(message, sticky=True)
        self.run_worker(coro, group=key)

    def _done(self, key: str, error: Optional[Exception] = None) -> None:
        self.busy.discard(key)
        if error is not None:
            self._show_status(f"⚠ {error}", error=True, sticky=True)
        else:
            self.query_one("#status-message", Static).update("")

    # --- AI helpers ---
    async def _title_from_image(self, path: str) -> None:
        try:
            title = await asyncio.to_thread(self.app.gateway.generate_title_from_image, path)
        except AIGatewayError as e:
            self._done("title", e)
            return
        self.query_one("#title-input", Input).value = title
        self._done("title")

    async def _description(self, title: str) -> None:
        try:
            text = await asyncio.to_thread(self.app.gateway.generate_description, title)
        except AIGatewayError as e:
            self._done("description", e)
            return
        self.query_one("#description-input", TextArea).text = text
        self._done("description")

    async def _price(self, title: str, description: str) -> None:
        try:
            suggestion = await asyncio.to_thread(self.app.gateway.suggest_price, title, description)
        except AIGatewayError as e:
            self._done("price", e)
            return
        self.query_one("#price-input", Input).value = f"{suggestion.price:g}"
        self.query_one("#price-justification", Static).update(f"💡 {suggestion.justification}")
        self._done("price")

    async def _category(self, title: str, description: str) -> None:
        try:
            category = await asyncio.to_thread(self.app.gateway.suggest_category, title, description)
        except AIGatewayError as e:
            self._done("category", e)
            return
        self.query_one("#category-select", Select).value = category
        self._done("category")

    async def _edit_photo(self, path: str, prompt: str) -> None:
        try:
            edited = await asyncio.to_thread(self.app.gateway.edit_image, path, prompt)
        except AIGatewayError as e:
            self._done("edit", e)
            return
        self.draft.image_urls[0] = str(edited)
        self._update_photos()
        self._done("edit")
        self._show_status("✓ Photo edited!")

    async def _video(self, title: str, path: str) -> None:
        status = self.query_one("#video-status", Static)

        def progress(message: str) -> None:
            self.app.call_from_thread(status.update, message)

        try:
            video_path = await asyncio.to_thread(self.app.gateway.generate_promotional_video, title, path, progress)
        except AIGatewayError as e:
            status.update("")
            self._done("video", e)
            return
        self.draft.video_url = str(video_path)
        status.update(f"🎬 Video ready: {Path(video_path).name}")
        self._done("video")

    # --- events ---
    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "photo-path" and event.value.strip():
            self._add_photo(event.value.strip())
            event.input.value = ""

    def on_button_pressed(self, event: Button.Pressed) -> None:
        btn_id = event.button.id
        d = self._sync_draft()

        if btn_id == "browse-photo":
            path = pick_file("Select an image", IMAGE_TYPES)
            if path:
                self._add_photo(path)
        elif btn_id == "add-photo":
            box = self.query_one("#photo-path", Input)
            if box.value.strip():
                self._add_photo(box.value.strip())
                box.value = ""
        elif btn_id == "edit-photo":
            prompt = self.query_one("#edit-prompt", Input).value.strip()
            if not d.image_urls or not prompt:
                self._show_status("Add a photo and describe the edit first.", error=True)
                return
            self._start("edit", self._edit_photo(d.image_urls[0], prompt), "Editing your photo...")
        elif btn_id == "generate-description":
            if not d.title.strip():
                self._show_status(TITLE_FIRST, error=True)
                return
            self._start("description", self._description(d.title), "Writing a description...")
        elif btn_id == "suggest-price":
            if not d.title.strip():
                self._show_status(TITLE_FIRST_PRICE, error=True)
                return
            self.query_one("#price-justification", Static).update("")
            self._start("price", self._price(d.title, d.description), "Checking the market...")
        elif btn_id == "suggest-category":
            if not d.title.strip():
                self._show_status(TITLE_FIRST_CATEGORY, error=True)
                return
            self._start("category", self._category(d.title, d.description), "Picking a category...")
        elif btn_id == "generate-video":
            if not d.image_urls or not d.title.strip() or is_remote(d.image_urls[0]):
                self._show_status(VIDEO_NEEDS, error=True)
                return
            self._start("video", self._video(d.title, d.image_urls[0]), "Generating video, this can take a few minutes...")
        elif btn_id == "open-assistant":
            self.app.push_screen(
                AssistantChatDialog(
                    "🤖 Listing Assistant",
                    ASSISTANT_GREETING,
                    self._assistant_session,
                    lambda message: self._sync_draft().assistant_prompt(message),
                )
            )
        elif btn_id == "post-button":
            try:
                fields = d.to_fields()
            except ValidationError as e:
                self._show_status(str(e), error=True, sticky=True)
                return
            self.dismiss(fields)
        elif btn_id == "cancel-button":
            self.dismiss(None)

    def _assistant_session(self):
        if self.assistant_session is None:
            self.assistant_session = self.app.gateway.create_listing_assistant_session()
        return self.assistant_session

    def action_close(self) -> None:
        self.dismiss(None)


class ListingDetailDialog(StatusMixin, ModalScreen):
    """Listing details and the chat with the seller."""

    BINDINGS = [Binding("escape", "close", "Close")]

    def __init__(self, listing_id: str, initial_tab: str = "details"):
        super().__init__()
        self.listing_id = listing_id
        self.initial_tab = initial_tab
        self.seller_id_checked = False
        self.pending_image: Optional[str] = None
        self.controller: Optional[ConversationController] = None
        self._unsubscribe = None

    @property
    def listing(self) -> Optional[Listing]:
        return self.app.store.get(self.listing_id)

    def compose(self) -> ComposeResult:
        listing = self.listing
        with Container(id="dialog-container", classes="listing-dialog"):
            yield Static("", id="dialog-title")
            with TabbedContent(initial=self.initial_tab, id="listing-tabs"):
                with TabPane("Details", id="details"):
                    with VerticalScroll(id="details-scroll"):
                        yield from self._compose_media(listing)
                        yield Static("", id="listing-info")
                        yield Static("", id="seller-info")
                        yield Static("", id="deal-info")
                        with Horizontal(id="listing-actions"):
                            yield Button("✓ Mark as Sold", id="mark-sold", variant="primary")
                            yield Button("✓ Confirm Sale Completion", id="confirm-sale", variant="primary")
                            yield Button("⭐ Leave a Review", id="leave-review", variant="primary")
                            yield Button("🪪 Verify seller ID", id="verify-seller-id")
                            yield Button("Buy Now", id="buy-now", variant="success")
                            yield Button("♡ Save", id="toggle-save")
                            yield Button("🔗 Share", id="share")
                            yield Button("👤 Seller profile", id="view-profile")
                with TabPane("Chat", id="chat"):
                    yield VerticalScroll(id="chat-log")
                    yield Static("", id="ai-typing", classes="hint")
                    with Horizontal(id="chat-input-row"):
                        yield Input(placeholder="Type a message...", id="chat-input")
                        yield Button("📎", id="attach-chat-image")
                        yield Button("Send", variant="primary", id="send-chat")
            yield Static("", id="status-message", classes="status-message")

    def _compose_media(self, listing: Optional[Listing]):
        if listing is None:
            return
        with Container(id="listing-media"):
            cover = listing.image_urls[0] if listing.image_urls else None
            preview = image_to_ascii(cover, 48)
            if preview:
                yield Static(preview, id="listing-image", classes="ascii-preview")
            elif cover:
                yield Static(Text(f"🖼 {cover}", style="dim"), id="listing-image")

    async def _load_video(self, video_path: str) -> None:
        # OpenCV decoding runs off the event loop; the cover stays until frames exist
        frames_dir = await asyncio.to_thread(prepare_video_frames, video_path)
        if frames_dir is None:
            return
        media = self.query_one("#listing-media", Container)
        await media.remove_children()
        await media.mount(ASCIIVideoPlayer(frames_dir=str(frames_dir), id="listing-video"))

    def on_mount(self) -> None:
        app = self.app
        self.controller = ConversationController(
            app.store, self.listing_id, app.user_session.user, gateway=app.gateway, latency=app.latency
        )
        self.controller.open()
        self._unsubscribe = app.store.subscribe(self._on_store_event)
        app.active_listing_id = self.listing_id
        listing = self.listing
        if listing is not None and listing.video_url and not is_remote(listing.video_url) \
                and Path(listing.video_url).exists():
            self.run_worker(self._load_video(listing.video_url), exclusive=True, group="video")
        self._render_details()
        self.run_worker(self._render_chat(), exclusive=True, group="chat")
        if self.initial_tab == "chat":
            self.query_one("#chat-input", Input).focus()

    def on_unmount(self) -> None:
        if self.controller is not None:
            self.controller.close()
        if self._unsubscribe is not None:
            self._unsubscribe()
        if self.app.active_listing_id == self.listing_id:
            self.app.active_listing_id = None

    def _on_store_event(self, event: str, listing_id: str) -> None:
        if listing_id != self.listing_id and event != "review_added":
            return
        if self.listing is None:
            self.dismiss(None)
            return
        self._render_details()
        self.run_worker(self._render_chat(), exclusive=True, group="chat")

    # --- rendering ---
    def _render_details(self) -> None:
        listing = self.listing
        if listing is None:
            return
        app = self.app
        user = app.user_session.user
        fmt = app.settings_store.format_price
        owner = listing.seller.username == user.username

        self.query_one("#dialog-title", Static).update(Text(listing.title, style="bold"))
        info = Text()
        info.append(fmt(listing.price), style="bold green")
        info.append(f"   {listing.category}   📍 {listing.seller_address or 'Location not set'}\n", style="dim")
        if listing.status != ListingStatus.AVAILABLE:
            info.append(f"Status: {listing.status.value.upper()}\n", style="yellow")
        info.append("\n" + listing.description)
        if len(listing.image_urls) > 1:
            info.append(f"\n\n📷 {len(listing.image_urls)} photos", style="dim")
        self.query_one("#listing-info", Static).update(info)

        seller = listing.seller
        rating, count = seller.rating()
        seller_text = Text()
        seller_text.append(f"\nSold by {seller.name} ", style="bold")
        seller_text.append(f"@{seller.username}  ", style="cyan")
        seller_text.append(status_label(seller), style="green" if seller.is_verified else "dim")
        seller_text.append(f"\n{stars(rating)} {rating} ({count} reviews)" if count else "\nNo reviews yet", style="yellow")
        self.query_one("#seller-info", Static).update(seller_text)

        deal = Text()
        if owner and listing.status == ListingStatus.SOLD:
            deal.append(f"\nYou sold this item to: {listing.buyer_name or 'a buyer'}", style="green")
        elif owner and listing.status == ListingStatus.PENDING:
            deal.append(f"\nSale pending with: {listing.buyer_name}", style="yellow")
        elif not owner and listing.status == ListingStatus.SOLD:
            if not app.store.can_review(listing, user):
                deal.append("\nThis item has been sold", style="dim")
        elif not owner and listing.status == ListingStatus.PENDING:
            deal.append(
                "\nAwaiting seller confirmation..." if listing.buyer_name == user.username
                else "\nThis item is pending sale.", style="dim"
            )
        elif not owner:
            deal.append("\n🛡 Safety First: ", style="bold blue")
            if not user.is_verified:
                deal.append("To buy items, please verify your account in Settings first.")
            elif not self.seller_id_checked:
                deal.append("You must verify the seller's ID before you can purchase. "
                            "Always meet in a safe, public place.")
            else:
                deal.append("Seller ID verified. ✓", style="green")
        self.query_one("#deal-info", Static).update(deal)

        available = listing.status == ListingStatus.AVAILABLE
        visible = {
            "mark-sold": owner and available,
            "confirm-sale": owner and listing.status == ListingStatus.PENDING,
            "leave-review": app.store.can_review(listing, user),
            "verify-seller-id": not owner and available and not self.seller_id_checked,
            "buy-now": not owner and available,
            "share": owner and available,
            "view-profile": not owner,
            "toggle-save": not owner,
        }
        for btn_id, show in visible.items():
            self.query_one(f"#{btn_id}", Button).display = show
        self.query_one("#verify-seller-id", Button).disabled = not user.is_verified
        buy = self.query_one("#buy-now", Button)
        buy.disabled = not app.store.can_purchase(listing, user, self.seller_id_checked)
        buy.label = f"Buy Now for {fmt(listing.price)}" if self.seller_id_checked else "Buy Now"
        saved = app.saved_listings.is_saved(listing.id)
        self.query_one("#toggle-save", Button).label = "♥ Saved" if saved else "♡ Save"

    async def _render_chat(self) -> None:
        listing = self.listing
        if listing is None:
            return
        log = self.query_one("#chat-log", VerticalScroll)
        await log.remove_children()
        viewer = self.app.user_session.user.username
        if not listing.chat_history:
            await log.mount(Static("No messages yet. Say hello!", classes="empty-state"))
        else:
            await log.mount_all(
                [ChatBubble(m, viewer, classes="chat-bubble mine" if m.sender_username == viewer else "chat-bubble")
                 for m in listing.chat_history]
            )
        log.scroll_end(animate=False)
        typing = self.controller is not None and self.controller.ai_sending
        self.query_one("#ai-typing", Static).update("🤖 GoMarket Assistant is typing..." if typing else "")

    # --- events ---
    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "chat-input":
            self._send_chat()

    def _send_chat(self) -> None:
        box = self.query_one("#chat-input", Input)
        sent = self.controller.send(box.value, image_url=self.pending_image)
        if sent is not None:
            box.value = ""
            self.pending_image = None
            self.query_one("#attach-chat-image", Button).label = "📎"
        elif self.controller.ai_sending:
            self._show_status("Please wait for the assistant to finish.")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        btn_id = event.button.id
        app = self.app
        listing = self.listing
        if listing is None:
            return
        if btn_id == "send-chat":
            self._send_chat()
        elif btn_id == "attach-chat-image":
            path = pick_file("Select an image", IMAGE_TYPES)
            if path and verify_image(path):
                self.pending_image = path
                event.button.label = f"📎 {Path(path).name}"
            elif path:
                self._show_status("⚠ Invalid image file", error=True)
        elif btn_id == "mark-sold" or btn_id == "confirm-sale":
            app.store.update_status(listing.id, ListingStatus.SOLD)
            app.notify("Listing marked as sold.")
        elif btn_id == "buy-now":
            app.store.initiate_purchase(listing.id, app.user_session.user)
            app.notify("Purchase requested! The seller will confirm the sale.")
        elif btn_id == "verify-seller-id":
            app.push_screen(SellerIdCheckDialog(listing.seller), self._on_seller_checked)
        elif btn_id == "leave-review":
            app.push_screen(ReviewDialog(listing.seller), self._on_review)
        elif btn_id == "toggle-save":
            app.toggle_save(listing.id)
            self._render_details()
        elif btn_id == "share":
            link = f"gomarket --listing-id {listing.id}"
            app.copy_to_clipboard(link)
            app.notify(f'I\'m selling my "{listing.title}" for {app.settings_store.format_price(listing.price)} '
                       f"on GoMarket! Open it with: {link}", timeout=8)
        elif btn_id == "view-profile":
            self.dismiss(None)
            app.show_profile(listing.seller)

    def _on_seller_checked(self, ok) -> None:
        if ok:
            self.seller_id_checked = True
            self._render_details()

    def _on_review(self, result) -> None:
        if not result:
            return
        rating, comment = result
        user = self.app.user_session.user
        self.app.store.add_review(
            self.listing_id, Review(rating=rating, comment=comment, buyer_name=user.username, date=now_iso())
        )
        self.app.notify("Thanks for your review!")

    def action_close(self) -> None:
        self.dismiss(None)


# ───────── Screens ─────────


class SplashScreen(Container):
    def compose(self) -> ComposeResult:
        with Vertical(id="splash"):
            yield Static(LOGO, id="splash-logo", markup=False)
            yield Static("Buy. Sell. Locally.", id="splash-tagline")
            yield Static("Loading...", id="splash-loading")


class LoginScreen(StatusMixin, Container):
    def compose(self) -> ComposeResult:
        with Vertical(id="auth-panel"):
            yield Static(LOGO, classes="auth-logo", markup=False)
            yield Static("Welcome back", classes="section-title")
            yield Button("Sign in", variant="primary", id="login")
            yield Button("Continue with Google", id="login-google")
            yield Static("New to GoMarket?", classes="hint")
            yield Button("Create an account", id="go-register")
            yield Static("", id="status-message", classes="status-message")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        app = self.app
        if event.button.id == "go-register":
            app.navigate(AppScreen.REGISTER)
            return
        self._show_status("Signing in...", sticky=True)
        google = event.button.id == "login-google"
        self.set_timer(app.latency.login, lambda: self._finish_login(google))

    def _finish_login(self, google: bool) -> None:
        app = self.app
        try:
            user = app.user_session.login_with_google() if google else app.user_session.login()
        except ValidationError as e:
            self._show_status(str(e), error=True, sticky=True)
            return
        app.navigate(destination_for(user))


class RegisterScreen(StatusMixin, Container):
    def compose(self) -> ComposeResult:
        with Vertical(id="auth-panel"):
            yield Static("Create your account", classes="section-title")
            yield Input(placeholder="Full name", id="reg-name")
            yield Input(placeholder="Email", id="reg-email")
            yield Input(placeholder="Password", password=True, id="reg-password")
            yield Checkbox("I agree to the Terms of Service and Privacy Policy", id="reg-terms")
            yield Button("Create account", variant="primary", id="register")
            yield Button("Back to sign in", id="go-login")
            yield Static("", id="status-message", classes="status-message")

    def on_mount(self) -> None:
        self.query_one("#reg-name", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        app = self.app
        if event.button.id == "go-login":
            app.navigate(AppScreen.LOGIN)
            return
        if event.button.id != "register":
            return
        try:
            user = app.user_session.register(
                self.query_one("#reg-name", Input).value,
                self.query_one("#reg-email", Input).value,
                self.query_one("#reg-password", Input).value,
                self.query_one("#reg-terms", Checkbox).value,
            )
        except ValidationError as e:
            self._show_status(str(e), error=True, sticky=True)
            return
        app.notify(f"Welcome to GoMarket, {user.name}!")
        app.navigate(destination_for(user))


class ModeSelectScreen(Container):
    def compose(self) -> ComposeResult:
        user = self.app.user_session.user
        with Vertical(id="mode-panel"):
            yield Static(f"Hi {user.name if user else ''}! What would you like to do today?", classes="section-title")
            with Horizontal(id="mode-buttons"):
                yield Button("🛍  Browse\nFind great deals near you", id="mode-browse", classes="mode-card")
                yield Button("🏷  Sell\nList an item in minutes", id="mode-sell", classes="mode-card")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        app = self.app
        app.router.select_mode(AppMode.SELL if event.button.id == "mode-sell" else AppMode.BROWSE)
        app.navigate(AppScreen.HOME)


class HomeScreen(Container):
    search_term = reactive("")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        user = self.app.user_session.user
        self.browsing_location = (user.location if user and user.location else ALL_LOCATIONS)
        self._debounce = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="search-bar"):
            yield Input(placeholder="Search GoMarket...  [/] to focus", id="search-input")
            yield Button("📷", id="visual-search")
            yield Button("☆ Save search", id="save-search")
        yield Horizontal(id="suggestions")
        yield Static("", id="buying-guide")
        with Horizontal(id="location-bar"):
            yield Static("", id="location-label")
            yield Button("Change", id="change-location")
        yield Static("Fresh finds near you", id="results-title", classes="section-title")
        yield ListingFeed(self._filtered(), empty_text="No listings match your search.", id="home-feed")
        with Horizontal(id="home-actions"):
            yield Button("+ Sell an item", variant="primary", id="sell")
            yield Button("🪪 Verify a seller", id="verify-seller")
            yield Button("💬 Ask Anita", id="anita")

    def on_mount(self) -> None:
        app = self.app
        self._update_location_label()
        applied = app.saved_searches.consume_applied()
        if applied:
            self.query_one("#search-input", Input).value = applied
        elif app.pending_listing_id:
            listing_id, app.pending_listing_id = app.pending_listing_id, None
            if app.store.get(listing_id):
                app.open_listing(listing_id)
            else:
                app.notify(f"Listing {listing_id} was not found.", severity="warning")
        if app.router.mode == AppMode.SELL:
            app.router.select_mode(AppMode.BROWSE)
            app.action_sell()

    def _filtered(self) -> List[Listing]:
        app = self.app
        user = app.user_session.user
        return filter_listings(
            app.store.listings,
            term=self.search_term,
            browsing_location=self.browsing_location,
            profile_location=user.location if user else None,
        )

    def _update_location_label(self) -> None:
        label = ("Showing listings from All Locations" if self.browsing_location == ALL_LOCATIONS
                 else f"Showing listings near {self.browsing_location}")
        self.query_one("#location-label", Static).update(f"📍 {label}")

    async def refresh_listings(self) -> None:
        feed = self.query_one("#home-feed", ListingFeed)
        await feed.set_listings(self._filtered())
        title = f'Results for "{self.search_term}"' if self.search_term else "Fresh finds near you"
        self.query_one("#results-title", Static).update(title)

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "search-input":
            return
        self.search_term = event.value
        self.app.current_search_term = event.value
        self.run_worker(self.refresh_listings(), exclusive=True, group="feed")
        if self._debounce is not None:
            self._debounce.stop()
            self._debounce = None
        if len(event.value.strip()) < 3:
            self.run_worker(self._show_suggestions([]), exclusive=True, group="suggestions")
            self._show_guide(None)
            return
        self.query_one("#buying-guide", Static).update(Text("✨ Finding suggestions...", style="dim"))
        self._debounce = self.set_timer(
            self.app.latency.search_debounce,
            lambda: self.run_worker(self._load_search_help(event.value), exclusive=True, group="search-help"),
        )

    async def _load_search_help(self, term: str) -> None:
        gateway = self.app.gateway
        try:
            suggestions, guide = await asyncio.gather(
                asyncio.to_thread(gateway.generate_search_suggestions, term),
                asyncio.to_thread(gateway.generate_buying_guide, term),
            )
        except AIGatewayError:
            logger.warning("Failed to fetch search data", exc_info=True)
            suggestions, guide = [], None
        if term != self.search_term:
            return
        await self._show_suggestions(suggestions)
        self._show_guide(guide)

    async def _show_suggestions(self, suggestions: List[str]) -> None:
        box = self.query_one("#suggestions", Horizontal)
        await box.remove_children()
        if suggestions:
            await box.mount_all([Button(s, classes="suggestion") for s in suggestions])

    def _show_guide(self, guide) -> None:
        widget = self.query_one("#buying-guide", Static)
        if guide is None:
            widget.update("")
            return
        text = Text()
        text.append(f'✨ AI Buying Guide for "{self.search_term}"\n', style="bold magenta")
        text.append(guide.guide + "\n")
        for source in guide.sources:
            text.append(f"  ↗ {source.title}: {source.uri}\n", style="dim")
        widget.update(text)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        app = self.app
        btn_id = event.button.id
        if "suggestion" in event.button.classes:
            self.query_one("#search-input", Input).value = str(event.button.label)
            self.run_worker(self._show_suggestions([]), exclusive=True, group="suggestions")
        elif btn_id == "visual-search":
            app.push_screen(VisualSearchDialog(), self._on_visual_term)
        elif btn_id == "save-search":
            if not self.search_term.strip():
                app.notify("Type something to search first.", severity="warning")
            elif app.saved_searches.add(self.search_term):
                app.notify("Search saved!")
            else:
                app.notify("This search is already saved.")
        elif btn_id == "change-location":
            app.push_screen(LocationPickerDialog(self.browsing_location), self._on_location)
        elif btn_id == "sell":
            app.action_sell()
        elif btn_id == "verify-seller":
            app.action_verify_seller()
        elif btn_id == "anita":
            app.action_anita()

    def _on_visual_term(self, term) -> None:
        if term:
            self.query_one("#search-input", Input).value = term

    def _on_location(self, location) -> None:
        if location:
            self.browsing_location = location
            self._update_location_label()
            self.run_worker(self.refresh_listings(), exclusive=True, group="feed")

    def key_slash(self) -> None:
        self.query_one("#search-input", Input).focus()


class InboxScreen(Container):
    def compose(self) -> ComposeResult:
        app = self.app
        yield Static("Inbox", classes="section-title")
        yield ConversationList(conversations(app.store.listings, app.user_session.user), id="inbox-list")

    async def refresh_listings(self) -> None:
        await self.recompose()


class SavedListingsScreen(Container):
    def compose(self) -> ComposeResult:
        yield Static("Saved items  [s] unsave", classes="section-title")
        yield ListingFeed(self._saved(), empty_text="Nothing saved yet. Press [s] on a listing to save it.",
                          id="saved-feed")

    def _saved(self) -> List[Listing]:
        app = self.app
        ids = app.saved_listings.ids
        return [l for l in app.store.listings if l.id in ids]

    async def refresh_listings(self) -> None:
        await self.query_one("#saved-feed", ListingFeed).set_listings(self._saved())


class ProfileScreen(Container):
    def compose(self) -> ComposeResult:
        app = self.app
        profile = app.router.viewing_profile
        # reviews live on listing snapshots, so read the freshest copy
        for listing in app.store.listings:
            if listing.seller.username == profile.username:
                profile = listing.seller
                break
        rating, count = profile.rating()
        with VerticalScroll(id="profile-panel"):
            header = Text()
            header.append(f"{profile.name}\n", style="bold")
            header.append(f"@{profile.username}  ", style="cyan")
            header.append(status_label(profile), style="green" if profile.is_verified else "dim")
            header.append(f"\n📍 {profile.location or 'Unknown location'}\n", style="dim")
            header.append(f"{stars(rating)} {rating} ({count} reviews)" if count else "No reviews yet", style="yellow")
            yield Static(header, classes="profile-header")
            yield Static("Reviews", classes="settings-section-header")
            if not profile.reviews:
                yield Static("No reviews yet.", classes="empty-state")
            for review in sorted(profile.reviews, key=lambda r: r.date, reverse=True):
                body = Text()
                body.append(f"{stars(review.rating)}  @{review.buyer_name}", style="yellow")
                body.append(f"  {format_relative_date(review.date)}\n", style="dim")
                body.append(review.comment)
                yield Static(body, classes="review-item")
            yield Static("Listings", classes="settings-section-header")
        yield ListingFeed(
            app.store.listings_by_seller_status(profile.username, ListingStatus.AVAILABLE),
            empty_text="No active listings.",
            id="profile-feed",
        )
        yield Button("← Back", id="back-home")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "back-home":
            self.app.navigate(AppScreen.HOME)


class SettingsScreen(StatusMixin, Container):
    def compose(self) -> ComposeResult:
        app = self.app
        user = app.user_session.user
        prefs = app.settings_store
        with VerticalScroll(id="settings-panel"):
            yield Static("→ Profile", classes="settings-section-header")
            yield Static(image_to_ascii(user.avatar_url, 20) or "", id="avatar-preview", classes="ascii-avatar")
            with Horizontal(classes="path-row"):
                yield Input(value="" if is_remote(user.avatar_url) else user.avatar_url,
                            placeholder="Path to a profile picture", id="avatar-path")
                yield Button("Browse", id="browse-avatar")
            yield Input(value=user.name, placeholder="Full name", id="profile-name")
            yield Select([(loc, loc) for loc in LOCATIONS], prompt="Location", id="profile-location")
            yield Button("Save changes", variant="primary", id="save-profile")

            yield Static("→ Saved Searches", classes="settings-section-header")
            searches = app.saved_searches.searches
            if not searches:
                yield Static("  You have no saved searches.", classes="hint")
            for search in searches:
                with Horizontal(classes="saved-search-row"):
                    yield Static(f"🔍 {search.term}", classes="saved-search-term")
                    yield Button("Apply", id=f"apply-search-{search.id}", classes="apply-search")
                    yield Button("🗑", id=f"delete-search-{search.id}", classes="delete-search")

            yield Static("→ Account Verification", classes="settings-section-header")
            yield from self._compose_verification(user)

            yield Static("→ Seller Tools", classes="settings-section-header")
            with Horizontal(classes="switch-row"):
                yield Switch(value=user.ai_auto_reply_enabled, id="ai-auto-reply")
                yield Static("AI auto-reply when you're away", classes="switch-label")
            counts = app.store.count_by_status(user.username)
            with TabbedContent(id="my-listings"):
                for status in ListingStatus:
                    with TabPane(f"{status.value.title()} ({counts[status]})", id=f"my-{status.value}"):
                        yield ListingFeed(
                            app.store.listings_by_seller_status(user.username, status),
                            empty_text=f"No {status.value} listings",
                            classes="my-listings-feed",
                        )

            yield Static("→ Subscription & Billing", classes="settings-section-header")
            yield Button("Manage subscription", id="go-subscription")

            yield Static("→ Preferences", classes="settings-section-header")
            with Horizontal(classes="switch-row"):
                yield Switch(value=prefs.theme == "dark", id="dark-mode")
                yield Static("Dark mode", classes="switch-label")
            with Horizontal(classes="switch-row"):
                yield Switch(value=prefs.notifications, id="notifications")
                yield Static("Notifications", classes="switch-label")
            yield Select([(c, c) for c in CURRENCIES], value=prefs.currency, allow_blank=False, id="currency-select")

            yield Static("→ Gemini API key", classes="settings-section-header")
            with Horizontal(classes="path-row"):
                yield Input(placeholder="Paste a key to store it in the system keyring", password=True, id="api-key")
                yield Button("Save key", id="save-api-key")

            yield Static("", id="status-message", classes="status-message")
            yield Button("Log out", variant="error", id="logout")

    def _compose_verification(self, user: User):
        if user.is_verified:
            yield Static("  ✓ Your account is verified.\n  To change your identity documents, please contact support.",
                         classes="verified-note")
            return
        if user.status.value == "pending_verification":
            yield Static("  ⏳ Verification in progress...\n  Your documents are under review. "
                         "This usually takes 24-48 hours.", classes="hint")
            yield Button("(Demo) Force Verify", id="force-verify")
            return
        yield Static("  Upload your ID document and a proof of address to start selling.", classes="hint")
        with Horizontal(classes="path-row"):
            yield Input(placeholder="ID document", id="id-document")
            yield Button("Browse", id="browse-id-document")
        with Horizontal(classes="path-row"):
            yield Input(placeholder="Proof of address", id="proof-document")
            yield Button("Browse", id="browse-proof-document")
        yield Input(placeholder="ID number", id="id-number")
        yield Button("Submit for verification", variant="primary", id="submit-verification")

    def on_mount(self) -> None:
        location = self.app.user_session.user.location
        if location in LOCATIONS:
            self.query_one("#profile-location", Select).value = location

    async def refresh_listings(self) -> None:
        for feed in self.query(ListingFeed):
            feed.refresh_items()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        app = self.app
        btn_id = event.button.id or ""
        if btn_id == "browse-avatar":
            path = pick_file("Select an image", IMAGE_TYPES)
            if path:
                self.query_one("#avatar-path", Input).value = path
                self.query_one("#avatar-preview", Static).update(image_to_ascii(path, 20) or "")
        elif btn_id == "save-profile":
            self._save_profile()
        elif btn_id.startswith("apply-search-"):
            search_id = btn_id[len("apply-search-"):]
            for search in app.saved_searches.searches:
                if search.id == search_id:
                    app.saved_searches.apply(search.term)
                    app.navigate(AppScreen.HOME)
        elif btn_id.startswith("delete-search-"):
            app.saved_searches.delete(btn_id[len("delete-search-"):])
            self.refresh(recompose=True)
        elif btn_id in ("browse-id-document", "browse-proof-document"):
            path = pick_file("Select a document", [("Documents", "*.png *.jpg *.jpeg *.pdf"), ("All files", "*.*")])
            if path:
                target = "#id-document" if btn_id == "browse-id-document" else "#proof-document"
                self.query_one(target, Input).value = path
        elif btn_id == "submit-verification":
            self._submit_verification()
        elif btn_id == "force-verify":
            app.user_session.check_verification_status()
            self.refresh(recompose=True)
        elif btn_id == "go-subscription":
            app.navigate(AppScreen.SUBSCRIPTION)
        elif btn_id == "save-api-key":
            self._save_api_key()
        elif btn_id == "logout":
            app.logout()

    def _save_profile(self) -> None:
        app = self.app
        name = self.query_one("#profile-name", Input).value
        location = self.query_one("#profile-location", Select).value
        avatar = self.query_one("#avatar-path", Input).value.strip()
        if avatar and not verify_image(avatar):
            self._show_status("⚠ Invalid image file", error=True)
            return
        try:
            app.user_session.save_profile(
                name,
                location if isinstance(location, str) else (app.user_session.user.location or ""),
                avatar_url=avatar or None,
            )
        except ValidationError as e:
            self._show_status(str(e), error=True)
            return
        app.notify("Profile updated and saved.")

    def _submit_verification(self) -> None:
        app = self.app
        id_doc = self.query_one("#id-document", Input).value.strip()
        proof = self.query_one("#proof-document", Input).value.strip()
        id_number = self.query_one("#id-number", Input).value.strip()
        if not id_doc or not proof:
            self._show_status("Please upload both documents to proceed.", error=True, sticky=True)
            return
        missing = [p for p in (id_doc, proof) if not Path(p).exists()]
        if missing:
            self._show_status(f"⚠ File not found: {missing[0]}", error=True, sticky=True)
            return
        self._show_status("Submitting documents...", sticky=True)

        def finish() -> None:
            try:
                app.user_session.submit_verification(id_doc, proof, id_number)
            except ValidationError as e:
                self._show_status(str(e), error=True, sticky=True)
                return
            app.notify("Documents submitted for review.")
            self.refresh(recompose=True)

        self.set_timer(app.latency.verification, finish)

    def _save_api_key(self) -> None:
        app = self.app
        box = self.query_one("#api-key", Input)
        try:
            save_api_key(box.value)
        except ValueError:
            self._show_status("Please paste an API key first.", error=True)
            return
        except RuntimeError as e:
            self._show_status(f"⚠ {e}", error=True)
            return
        box.value = ""
        reset_config()
        reset_gateway()
        app.gateway = get_gateway()
        app.notify("API key saved to the system keyring.")

    def on_switch_changed(self, event: Switch.Changed) -> None:
        app = self.app
        if event.switch.id == "ai-auto-reply":
            app.user_session.set_ai_auto_reply(event.value)
        elif event.switch.id == "dark-mode":
            app.settings_store.set_theme("dark" if event.value else "light")
        elif event.switch.id == "notifications":
            app.settings_store.set_notifications(event.value)

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "currency-select" and isinstance(event.value, str):
            if event.value != self.app.settings_store.currency:
                self.app.settings_store.set_currency(event.value)


class SubscriptionScreen(Container):
    def compose(self) -> ComposeResult:
        yield Static("GoMarket Subscription Plans\nChoose the plan that fits your business", classes="section-title")
        with Horizontal(id="plans"):
            for details in PLANS.values():
                with Vertical(classes="plan-card"):
                    title = Text()
                    title.append(details.name, style="bold")
                    if details.badge:
                        title.append(f"  [{details.badge}]", style="yellow")
                    title.append(f"\n{details.monthly_label}\n\n", style="bold green")
                    for feature in details.features:
                        title.append(f"✔ {feature}\n")
                    yield Static(title)
                    if details.plan == SubscriptionPlan.FREE:
                        yield Button("Your Current Plan", disabled=True)
                    else:
                        yield Button(f"Choose {details.plan.value}", variant="primary", id=f"plan-{details.plan.value}")
        yield Button("← Back to settings", id="back-settings")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        app = self.app
        btn_id = event.button.id or ""
        if btn_id == "back-settings":
            app.navigate(AppScreen.SETTINGS)
        elif btn_id.startswith("plan-"):
            app.router.select_plan(SubscriptionPlan(btn_id[len("plan-"):]))
            app.navigate(AppScreen.PAYMENT)


class PaymentScreen(StatusMixin, Container):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.discount_rate = 0.0

    def compose(self) -> ComposeResult:
        plan = PLANS[self.app.router.selected_plan]
        with VerticalScroll(id="payment-panel"):
            yield Static(f"Checkout: {plan.name} (billed yearly)", classes="section-title")
            yield Static("", id="price-breakdown")
            with Horizontal(classes="path-row"):
                yield Input(placeholder="Promotion code", id="promo-code")
                yield Button("Apply", id="apply-promo")
            yield Static("Card details", classes="settings-section-header")
            yield Input(placeholder="Name on card", id="card-name")
            yield Input(placeholder="Card number", id="card-number")
            with Horizontal(classes="path-row"):
                yield Input(placeholder="MM / YY", id="card-expiry")
                yield Input(placeholder="CVC", password=True, id="card-cvc")
            yield Static(f"Receipt will be sent to {self.app.user_session.user.username}@example.com", classes="hint")
            yield Static("", id="status-message", classes="status-message")
            with Horizontal(id="action-buttons"):
                yield Button("Pay", variant="primary", id="pay")
                yield Button("← Back", id="back-subscription")

    def on_mount(self) -> None:
        self._update_breakdown()

    def _update_breakdown(self) -> None:
        b = price_breakdown(self.app.router.selected_plan, self.discount_rate)
        lines = [f"Subtotal        R{b.subtotal:.2f}"]
        if b.discount > 0:
            lines.append(f"Discount (20%) -R{b.discount:.2f}")
        lines.append(f"Tax (15%)       R{b.tax:.2f}")
        lines.append(f"Total           R{b.total:.2f}")
        self.query_one("#price-breakdown", Static).update("\n".join(lines))
        self.query_one("#pay", Button).label = f"Pay R{b.total:.2f}"

    def on_button_pressed(self, event: Button.Pressed) -> None:
        app = self.app
        btn_id = event.button.id
        if btn_id == "apply-promo":
            try:
                self.discount_rate = apply_promo_code(self.query_one("#promo-code", Input).value)
            except ValidationError as e:
                self._show_status(str(e), error=True)
                return
            self._update_breakdown()
            self._show_status("✓ Promotion applied!")
        elif btn_id == "pay":
            try:
                validate_card(
                    self.query_one("#card-name", Input).value,
                    self.query_one("#card-number", Input).value,
                    self.query_one("#card-expiry", Input).value,
                    self.query_one("#card-cvc", Input).value,
                )
            except ValidationError as e:
                self._show_status(str(e), error=True, sticky=True)
                return
            event.button.disabled = True
            self._show_status("Processing payment...", sticky=True)
            self.set_timer(app.latency.login * 2, self._paid)
        elif btn_id == "back-subscription":
            app.navigate(AppScreen.SUBSCRIPTION)

    def _paid(self) -> None:
        plan = PLANS[self.app.router.selected_plan]
        self.app.notify(f"Payment successful! Welcome to {plan.name}.")
        self.app.navigate(AppScreen.HOME)


class PendingVerificationScreen(StatusMixin, Container):
    def compose(self) -> ComposeResult:
        user = self.app.user_session.user
        with Vertical(id="pending-panel"):
            yield Static("⏳ Verification Pending", classes="section-title")
            yield Static(
                f"Thanks, {user.name}! Your documents are under review.\n"
                "This usually takes 24-48 hours. We'll let you in as soon as you're verified.",
                classes="dialog-message",
            )
            yield Button("Check status", variant="primary", id="check-status")
            yield Button("Log out", id="logout")
            yield Static("", id="status-message", classes="status-message")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        app = self.app
        if event.button.id == "logout":
            app.logout()
        elif event.button.id == "check-status":
            event.button.disabled = True
            self._show_status("Checking your verification status...", sticky=True)
            self.set_timer(app.latency.verification, app.user_session.check_verification_status)


SCREENS = {
    AppScreen.SPLASH: (SplashScreen, ""),
    AppScreen.LOGIN: (LoginScreen, "[Tab] Next  [Enter] Select  [ctrl+q] Quit"),
    AppScreen.REGISTER: (RegisterScreen, "[Tab] Next  [Enter] Select  [ctrl+q] Quit"),
    AppScreen.MODE_SELECT: (ModeSelectScreen, "[Tab] Next  [Enter] Select  [ctrl+q] Quit"),
    AppScreen.HOME: (
        HomeScreen,
        "[1-4] Screens [/] Search [j/k] Navigate [Enter] Open [s] Save [n] Sell [a] Anita [t] Theme [ctrl+q] Quit",
    ),
    AppScreen.INBOX: (InboxScreen, "[1-4] Screens [j/k] Navigate [Enter] Open chat [ctrl+q] Quit"),
    AppScreen.SAVED_LISTINGS: (SavedListingsScreen, "[1-4] Screens [j/k] Navigate [Enter] Open [s] Unsave [ctrl+q] Quit"),
    AppScreen.SETTINGS: (SettingsScreen, "[1-4] Screens [Tab] Next field [ctrl+q] Quit"),
    AppScreen.PROFILE: (ProfileScreen, "[1-4] Screens [j/k] Navigate [Enter] Open [ctrl+q] Quit"),
    AppScreen.SUBSCRIPTION: (SubscriptionScreen, "[1-4] Screens [Tab] Next [ctrl+q] Quit"),
    AppScreen.PAYMENT: (PaymentScreen, "[Tab] Next field [ctrl+q] Quit"),
    AppScreen.PENDING_VERIFICATION: (PendingVerificationScreen, "[Tab] Next [ctrl+q] Quit"),
}

# Focus target after a screen switch, when the screen has one
FOCUS_TARGETS = {
    AppScreen.HOME: "#home-feed",
    AppScreen.INBOX: "#inbox-list",
    AppScreen.SAVED_LISTINGS: "#saved-feed",
    AppScreen.PROFILE: "#profile-feed",
    AppScreen.SETTINGS: "#settings-panel",
}


class GoMarketApp(App):
    CSS_PATH = "main.tcss"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=False),
        Binding("1", "show_home", "Home", show=False),
        Binding("2", "show_inbox", "Inbox", show=False),
        Binding("3", "show_saved", "Saved", show=False),
        Binding("4", "show_settings", "Settings", show=False),
        Binding("n", "sell", "Sell", show=False),
        Binding("a", "anita", "Anita", show=False),
        Binding("v", "verify_seller", "Verify seller", show=False),
        Binding("t", "toggle_theme", "Theme", show=False),
    ]

    current_screen_name = reactive(AppScreen.SPLASH.value)

    def __init__(self, storage: Optional[LocalStorage] = None, gateway=None, listing_id: Optional[str] = None):
        super().__init__()
        self.app_config = get_config()
        self.latency = self.app_config.latency
        self.storage = storage or LocalStorage(self.app_config.storage_file)
        self.settings_store = SettingsStore(self.storage)
        self.user_session = SessionManager(self.storage)
        self.store = MarketplaceStore(seed_listings())
        self.saved_listings = SavedListingStore(self.storage)
        self.saved_searches = SavedSearchStore(self.storage)
        self.router = Router()
        self.gateway = gateway or get_gateway()
        self.pending_listing_id = listing_id
        self.active_listing_id: Optional[str] = None
        self.current_search_term = ""

    def compose(self) -> ComposeResult:
        yield Static("GoMarket", id="app-header", markup=False)
        yield Container(id="body")
        yield Static("", id="app-footer", markup=False)

    def on_mount(self) -> None:
        self._apply_theme()
        self.settings_store.subscribe(self._on_settings_changed)
        self.user_session.subscribe(self._on_user_changed)
        self.store.subscribe(self._on_listings_changed)
        self.navigate(AppScreen.SPLASH)
        self.set_timer(self.latency.splash, self._after_splash)

    def _after_splash(self) -> None:
        user = self.user_session.restore()
        self.navigate(self.router.initial_destination(user))

    # --- navigation ---
    def navigate(self, target: AppScreen) -> None:
        user = self.user_session.user
        resolved = self.router.go(target, user)
        if resolved != target:
            logger.debug("navigation to %s redirected to %s", target.value, resolved.value)
        self.run_worker(self._swap_body(resolved), exclusive=True, group="navigate")

    async def _swap_body(self, target: AppScreen) -> None:
        body = self.screen_stack[0].query_one("#body", Container)
        await body.remove_children()
        screen_class, footer_text = SCREENS[target]
        await body.mount(screen_class(id="screen-container"))
        self.current_screen_name = target.value
        self.screen_stack[0].query_one("#app-footer", Static).update(footer_text)
        self._update_header()
        selector = FOCUS_TARGETS.get(target)
        if selector:
            self.call_after_refresh(self._focus_main_content, selector)

    def _focus_main_content(self, selector: str) -> None:
        for widget in self.screen_stack[0].query(selector):
            widget.focus()
            return

    def _update_header(self) -> None:
        user = self.user_session.user
        name = self.current_screen_name.replace("_", " ")
        if user is None:
            text = f"GoMarket [{name}]"
        else:
            unread = unread_count(self.store.listings, user)
            inbox = f"✉ {unread} unread" if unread else "✉ 0"
            text = f"GoMarket [{name}] @{user.username}  {inbox}"
        self.screen_stack[0].query_one("#app-header", Static).update(text)

    def _body_screen(self):
        for child in self.screen_stack[0].query("#screen-container"):
            return child
        return None

    # --- state listeners ---
    def _on_user_changed(self, user: Optional[User]) -> None:
        self._update_header()
        target = self.router.on_user_changed(user)
        if target is not None:
            self.notify(VERIFIED_NOTICE)
            self.navigate(target)

    def _on_listings_changed(self, event: str, listing_id: str) -> None:
        self._update_header()
        screen = self._body_screen()
        if screen is not None and hasattr(screen, "refresh_listings"):
            self.run_worker(screen.refresh_listings(), exclusive=True, group="refresh")

    def _on_settings_changed(self, settings: SettingsStore) -> None:
        self._apply_theme()
        screen = self._body_screen()
        if screen is not None:
            for feed in screen.query(ListingFeed):
                feed.refresh_items()

    def _apply_theme(self) -> None:
        self.theme = "textual-dark" if self.settings_store.theme == "dark" else "textual-light"

    # --- commands used by screens ---
    def open_listing(self, listing_id: str, tab: str = "details") -> None:
        if self.user_session.user is None or self.store.get(listing_id) is None:
            return
        self.push_screen(ListingDetailDialog(listing_id, initial_tab=tab))

    def show_profile(self, profile: User) -> None:
        self.router.view_profile(profile)
        self.navigate(AppScreen.PROFILE)

    def toggle_save(self, listing_id: str) -> None:
        saved = self.saved_listings.toggle(listing_id)
        self.notify("Item saved!" if saved else "Item removed from saved list.")
        screen = self._body_screen()
        if isinstance(screen, SavedListingsScreen):
            self.run_worker(screen.refresh_listings(), exclusive=True, group="refresh")
        elif screen is not None:
            for feed in screen.query(ListingFeed):
                feed.refresh_items()

    def logout(self) -> None:
        self.user_session.logout()
        self.navigate(AppScreen.LOGIN)

    def _post_listing(self, fields) -> None:
        if not fields:
            return
        listing = self.store.post(fields, self.user_session.user)
        self.notify(f'"{listing.title}" is now listed!')

    # --- actions ---
    def check_action(self, action: str, parameters) -> Optional[bool]:
        # with a dialog open only the assistant and the theme switch stay live
        if len(self.screen_stack) > 1:
            if action == "anita":
                return not isinstance(self.screen, AssistantChatDialog)
            return action in ("quit", "toggle_theme")
        return True

    def action_quit(self) -> None:
        self.exit()

    def action_show_home(self) -> None:
        self.navigate(AppScreen.HOME)

    def action_show_inbox(self) -> None:
        self.navigate(AppScreen.INBOX)

    def action_show_saved(self) -> None:
        self.navigate(AppScreen.SAVED_LISTINGS)

    def action_show_settings(self) -> None:
        self.navigate(AppScreen.SETTINGS)

    def action_sell(self) -> None:
        user = self.user_session.user
        if user is None:
            return
        if sell_allowed(user):
            self.push_screen(PostItemDialog(), self._post_listing)
        else:
            self.push_screen(
                VerificationPromptDialog(),
                lambda go: self.navigate(AppScreen.SETTINGS) if go else None,
            )

    def action_verify_seller(self) -> None:
        if self.user_session.user is None:
            return
        self.push_screen(SellerIdCheckDialog(), lambda seller: self.show_profile(seller) if seller else None)

    def action_anita(self) -> None:
        user = self.user_session.user
        if user is None:
            return

        def build_prompt(message: str) -> str:
            listing = self.store.get(self.active_listing_id) if self.active_listing_id else None
            return anita_prompt(
                user.username,
                message,
                listing_title=listing.title if listing else None,
                listing_seller=listing.seller.username if listing else None,
                search_term=self.current_search_term or None,
            )

        self.push_screen(
            AssistantChatDialog(
                "💬 Anita",
                f"Hi {user.username}! I'm Anita, your personal marketplace assistant. How can I help you today? 😊",
                self.gateway.create_anita_session,
                build_prompt,
            )
        )

    def action_toggle_theme(self) -> None:
        self.settings_store.toggle_theme()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="gomarket", description="GoMarket terminal marketplace")
    parser.add_argument("--listing-id", help="Open this listing once the home screen loads")
    parser.add_argument("--set-api-key", metavar="KEY", help="Store the Gemini API key in the system keyring and exit")
    parser.add_argument("--clear-api-key", action="store_true", help="Remove the stored Gemini API key and exit")
    parser.add_argument("--debug", action="store_true", help="Write debug logs to ~/.gomarket_debug.log")
    args = parser.parse_args(argv)

    configure_logging(debug=True if args.debug else None)

    if args.set_api_key is not None:
        try:
            save_api_key(args.set_api_key)
        except (ValueError, RuntimeError) as e:
            print(f"Could not store API key: {e}", file=sys.stderr)
            return 1
        print("API key saved to the system keyring.")
        return 0
    if args.clear_api_key:
        clear_api_key()
        print("Stored API key removed.")
        return 0

    logger.debug("starting GoMarketApp")
    try:
        GoMarketApp(listing_id=args.listing_id).run()
    except Exception:
        logger.exception("Exception occurred while running GoMarketApp:")
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
