"""
Listing collection: the authoritative in-memory set of marketplace listings.

All commands are local and synchronous. Commands that target an unknown
listing id are no-ops; observers are only notified when something changed.
"""
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional

from .data_models import ChatMessage, Listing, ListingStatus, Review, User

logger = logging.getLogger("gomarket.marketplace")

# Observer signature: (event name, listing id)
Listener = Callable[[str, str], None]

POSTED = "posted"
STATUS_CHANGED = "status_changed"
REVIEW_ADDED = "review_added"
CHAT_UPDATED = "chat_updated"


def same_seller(a: User, b: User) -> bool:
    """Sellers are matched by display name when propagating reviews.

    Listings hold seller snapshots rather than references, so the name is the
    only field shared by every copy. Two sellers with the same name will share
    reviews.
    """
    return a.name == b.name


class MarketplaceStore:
    """Single owner of listing state with explicit commands and subscriptions."""

    def __init__(self, listings: Optional[Iterable[Listing]] = None):
        self._listings: List[Listing] = list(listings or [])
        self._listeners: List[Listener] = []

    # --- queries ---
    @property
    def listings(self) -> List[Listing]:
        """Snapshot of the collection, newest first."""
        return list(self._listings)

    def get(self, listing_id: str) -> Optional[Listing]:
        for listing in self._listings:
            if listing.id == listing_id:
                return listing
        return None

    def _index(self, listing_id: str) -> Optional[int]:
        for i, listing in enumerate(self._listings):
            if listing.id == listing_id:
                return i
        logger.debug("listing %s not found", listing_id)
        return None

    def sellers(self) -> List[User]:
        """Unique sellers by username, latest snapshot wins."""
        unique: Dict[str, User] = {}
        for listing in self._listings:
            unique[listing.seller.username] = listing.seller
        return list(unique.values())

    def find_seller_by_id_number(self, id_number: str) -> Optional[User]:
        wanted = id_number.strip().lower()
        if not wanted:
            return None
        for seller in self.sellers():
            if seller.id_number and seller.id_number.lower() == wanted:
                return seller
        return None

    def listings_by_seller_status(self, username: str, status: Optional[ListingStatus] = None) -> List[Listing]:
        mine = [l for l in self._listings if l.seller.username == username]
        if status is not None:
            mine = [l for l in mine if l.status == status]
        return mine

    def count_by_status(self, username: str) -> Dict[ListingStatus, int]:
        counts = {status: 0 for status in ListingStatus}
        for listing in self.listings_by_seller_status(username):
            counts[listing.status] += 1
        return counts

    @staticmethod
    def verify_seller_id(seller: User, entered: str) -> bool:
        """Check an ID number shown by a seller in person against the record."""
        if not entered.strip() or not seller.id_number:
            return False
        return entered.strip().lower() == seller.id_number.lower()

    @staticmethod
    def can_review(listing: Listing, user: User) -> bool:
        """Only the recorded buyer of a sold listing may review it, once."""
        return (
            listing.status == ListingStatus.SOLD
            and listing.buyer_name == user.username
            and not listing.review_left
        )

    @staticmethod
    def can_purchase(listing: Listing, user: User, seller_id_checked: bool) -> bool:
        """Buying needs a verified buyer who has checked the seller's ID."""
        return (
            listing.status == ListingStatus.AVAILABLE
            and listing.seller.username != user.username
            and user.is_verified
            and seller_id_checked
        )

    def _next_id(self) -> str:
        numeric = [int(l.id) for l in self._listings if l.id.isdigit()]
        return str(max(numeric, default=0) + 1)

    # --- commands ---
    def post(self, fields: Dict[str, Any], user: User) -> Listing:
        """Create a listing owned by ``user`` and put it first."""
        listing = Listing(
            id=self._next_id(),
            title=fields["title"],
            price=float(fields["price"]),
            description=fields["description"],
            seller=replace(user, reviews=list(user.reviews)),
            category=fields["category"],
            image_urls=list(fields.get("image_urls") or []),
            video_url=fields.get("video_url") or None,
            status=ListingStatus.AVAILABLE,
            seller_address=fields.get("seller_address"),
            chat_history=[],
        )
        self._listings.insert(0, listing)
        logger.info("listing %s posted by %s", listing.id, user.username)
        self._notify(POSTED, listing.id)
        return listing

    def update_status(
        self, listing_id: str, status: ListingStatus, acting_user: Optional[User] = None
    ) -> Optional[Listing]:
        idx = self._index(listing_id)
        if idx is None:
            return None
        status = ListingStatus(status)
        updated = replace(self._listings[idx], status=status)
        if status == ListingStatus.PENDING and acting_user is not None:
            updated.buyer_name = acting_user.username
            updated.buyer_avatar_url = acting_user.avatar_url
        self._listings[idx] = updated
        self._notify(STATUS_CHANGED, listing_id)
        return updated

    def initiate_purchase(self, listing_id: str, buyer: User) -> Optional[Listing]:
        return self.update_status(listing_id, ListingStatus.PENDING, acting_user=buyer)

    def add_review(self, listing_id: str, review: Review) -> bool:
        """Mark the listing reviewed and add the review to every copy of its seller."""
        idx = self._index(listing_id)
        if idx is None:
            return False
        reviewed_seller = self._listings[idx].seller

        updated_listings = []
        for listing in self._listings:
            new_listing = replace(listing)
            if new_listing.id == listing_id:
                new_listing.review_left = True
            if same_seller(new_listing.seller, reviewed_seller):
                new_listing.seller = replace(
                    new_listing.seller, reviews=list(new_listing.seller.reviews) + [review]
                )
            updated_listings.append(new_listing)
        self._listings = updated_listings
        self._notify(REVIEW_ADDED, listing_id)
        return True

    def update_chat(self, listing_id: str, chat_history: List[ChatMessage]) -> bool:
        """Replace a listing's chat history with the caller's full next state."""
        idx = self._index(listing_id)
        if idx is None:
            return False
        self._listings[idx] = replace(self._listings[idx], chat_history=list(chat_history))
        self._notify(CHAT_UPDATED, listing_id)
        return True

    # --- observers ---
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str, listing_id: str) -> None:
        for listener in list(self._listeners):
            listener(event, listing_id)
