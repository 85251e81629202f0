"""
Inbox derivation: conversations and unread state computed from listings.

Nothing here is stored. Every call recomputes from the listing collection.
"""
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .data_models import Listing, User, parse_iso

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def is_participant(listing: Listing, username: str) -> bool:
    """True when the user sells the listing or has sent a message on it."""
    if not listing.chat_history:
        return False
    if listing.seller.username == username:
        return True
    return any(m.sender_username == username for m in listing.chat_history)


def is_unread(listing: Listing, username: str) -> bool:
    last = listing.last_message
    return last is not None and last.sender_username != username


def conversations(listings: Iterable[Listing], user: User) -> List[Listing]:
    """Listings the user is chatting on, latest message first."""
    mine = [l for l in listings if is_participant(l, user.username)]
    mine.sort(key=lambda l: parse_iso(l.last_message.timestamp), reverse=True)
    return mine


def unread_count(listings: Iterable[Listing], user: Optional[User]) -> int:
    if user is None:
        return 0
    return sum(
        1 for l in listings
        if is_participant(l, user.username) and is_unread(l, user.username)
    )


def chat_partner(listing: Listing, user: User, listings: Iterable[Listing] = ()) -> Optional[User]:
    """Who the user talks to on this listing.

    Buyers talk to the seller. Sellers talk to the first other sender, whose
    profile is looked up among known sellers; unknown buyers get a bare user.
    """
    if listing.seller.username != user.username:
        return listing.seller
    other = next(
        (m.sender_username for m in listing.chat_history if m.sender_username != user.username),
        None,
    )
    if other is None:
        return None
    for candidate in listings:
        if candidate.seller.username == other:
            return candidate.seller
    if listing.buyer_name == other and listing.buyer_avatar_url:
        return User(name=other, username=other, avatar_url=listing.buyer_avatar_url)
    return User(name=other, username=other)


def format_relative_date(timestamp: str, now: Optional[datetime] = None) -> str:
    """Short relative label for an inbox row."""
    then = parse_iso(timestamp)
    now = now or datetime.now(timezone.utc)
    seconds = (now - then).total_seconds()
    minutes = int(seconds // 60)
    hours = int(minutes // 60)
    days = int(hours // 24)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days}d ago"
    local = then.astimezone()
    return f"{_MONTHS[local.month - 1]} {local.day}"
