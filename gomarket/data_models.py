"""
Data models for the GoMarket application.
These models define the structure of data used throughout the app.
"""
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class VerificationStatus(str, Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending_verification"
    VERIFIED = "verified"


class ListingStatus(str, Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    SOLD = "sold"


class MessageStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


class SubscriptionPlan(str, Enum):
    FREE = "Free"
    PRO = "Pro"
    PREMIER = "Premier"


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def parse_iso(value: str) -> datetime:
    """Parse an ISO timestamp, accepting a trailing 'Z'. Naive values are UTC."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Review:
    """A buyer's review of a seller. Immutable once created."""
    rating: int
    comment: str
    buyer_name: str
    date: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Review":
        return cls(
            rating=int(data.get("rating", 0)),
            comment=data.get("comment") or "",
            buyer_name=data.get("buyer_name") or "",
            date=data.get("date") or now_iso(),
        )


@dataclass
class User:
    """Represents a user. ``username`` is the identity key."""
    name: str
    username: str
    avatar_url: str = ""
    status: VerificationStatus = VerificationStatus.UNVERIFIED
    reviews: List[Review] = field(default_factory=list)
    id_number: Optional[str] = None
    id_document_url: Optional[str] = None
    location: Optional[str] = None
    accepted_terms: Optional[bool] = False
    ai_auto_reply_enabled: bool = False

    @property
    def is_verified(self) -> bool:
        return self.status == VerificationStatus.VERIFIED

    def rating(self) -> Tuple[float, int]:
        """Average review rating rounded to one decimal, and review count."""
        if not self.reviews:
            return 0.0, 0
        total = sum(r.rating for r in self.reviews)
        return round(total / len(self.reviews), 1), len(self.reviews)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        """Build a user from stored data; raises ValueError on bad records."""
        if not isinstance(data, dict):
            raise ValueError("user record must be an object")
        name = data.get("name")
        if not name or not isinstance(name, str):
            raise ValueError("user record has no name")
        return cls(
            name=name,
            username=data.get("username") or "",
            avatar_url=data.get("avatar_url") or "",
            status=VerificationStatus(data.get("status") or VerificationStatus.UNVERIFIED.value),
            reviews=[Review.from_dict(r) for r in data.get("reviews") or []],
            id_number=data.get("id_number"),
            id_document_url=data.get("id_document_url"),
            location=data.get("location"),
            accepted_terms=data.get("accepted_terms") if "accepted_terms" in data else None,
            ai_auto_reply_enabled=bool(data.get("ai_auto_reply_enabled", False)),
        )


@dataclass(frozen=True)
class ChatMessage:
    """Represents a chat message on a listing."""
    sender_username: str
    text: str
    timestamp: str
    image_url: Optional[str] = None
    status: Optional[MessageStatus] = None
    is_ai_message: bool = False

    def with_status(self, status: MessageStatus) -> "ChatMessage":
        return replace(self, status=status)


@dataclass
class Listing:
    """Represents a marketplace listing. ``seller`` is a snapshot copy."""
    id: str
    title: str
    price: float
    description: str
    seller: User
    category: str
    image_urls: List[str] = field(default_factory=list)
    video_url: Optional[str] = None
    status: ListingStatus = ListingStatus.AVAILABLE
    seller_address: Optional[str] = None
    buyer_name: Optional[str] = None
    buyer_avatar_url: Optional[str] = None
    review_left: bool = False
    chat_history: List[ChatMessage] = field(default_factory=list)

    @property
    def last_message(self) -> Optional[ChatMessage]:
        return self.chat_history[-1] if self.chat_history else None


@dataclass
class SavedSearch:
    id: str
    term: str
    created_at: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SavedSearch":
        return cls(id=str(data["id"]), term=str(data["term"]), created_at=str(data.get("created_at") or ""))


@dataclass
class BuyingGuideSource:
    uri: str
    title: str


@dataclass
class BuyingGuide:
    guide: str
    sources: List[BuyingGuideSource] = field(default_factory=list)


@dataclass
class PriceSuggestion:
    price: float
    justification: str


CATEGORIES = [
    "Furniture",
    "Home Decor",
    "Electronics",
    "Appliances",
    "Musical Instruments",
    "Sporting Goods",
    "Books & Media",
    "Clothing & Accessories",
    "Vehicles",
    "Toys & Games",
    "Other",
]
