"""Builders shared by the test modules."""
from gomarket.data_models import ChatMessage, Listing, ListingStatus, MessageStatus, User, VerificationStatus


def make_user(username, name=None, verified=True, **extra) -> User:
    return User(
        name=name or username.title(),
        username=username,
        status=VerificationStatus.VERIFIED if verified else VerificationStatus.UNVERIFIED,
        **extra,
    )


def make_listing(listing_id, seller, title="Thing", price=100.0, status=ListingStatus.AVAILABLE, **extra) -> Listing:
    return Listing(
        id=listing_id,
        title=title,
        price=price,
        description=extra.pop("description", f"A {title.lower()} in good condition"),
        seller=seller,
        category=extra.pop("category", "Other"),
        status=status,
        **extra,
    )


def message(sender, text="hi", timestamp="2024-03-01T10:00:00.000+00:00", status=MessageStatus.SENT) -> ChatMessage:
    return ChatMessage(sender_username=sender, text=text, timestamp=timestamp, status=status)
