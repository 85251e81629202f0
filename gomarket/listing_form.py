"""
Post-item form state and validation.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import ValidationError

MAX_PHOTOS = 6

MISSING_FIELDS = "Please fill out all fields and upload at least one photo."
BAD_PRICE = "Price must be a positive number."
TITLE_FIRST = "Please provide a title first."
TITLE_FIRST_PRICE = "Please provide a title first to get a price suggestion."
TITLE_FIRST_CATEGORY = "Please provide a title first to get a category suggestion."
VIDEO_NEEDS = "An image and title are required to generate a video."

ASSISTANT_GREETING = (
    "Hi there! How can I help you make this listing perfect? "
    "Ask me for suggestions on the title, description, or price!"
)


def parse_price(text: str) -> float:
    """Parse a price the seller typed; only positive numbers pass."""
    try:
        price = float(str(text).strip())
    except ValueError:
        raise ValidationError(BAD_PRICE)
    if not math.isfinite(price) or price <= 0:
        raise ValidationError(BAD_PRICE)
    return price


@dataclass
class ListingDraft:
    title: str = ""
    category: str = ""
    address: str = ""
    price: str = ""
    description: str = ""
    image_urls: List[str] = field(default_factory=list)
    video_url: Optional[str] = None
    price_justification: Optional[str] = None

    def add_images(self, paths: List[str]) -> Optional[str]:
        """Add photos up to the limit. Returns a warning when some were dropped."""
        room = MAX_PHOTOS - len(self.image_urls)
        accepted = paths[:max(room, 0)]
        self.image_urls.extend(accepted)
        if len(paths) > room:
            return (
                f"You can only upload a maximum of {MAX_PHOTOS} photos. "
                f"{max(room, 0)} more photo(s) were added."
            )
        return None

    def remove_image(self, index: int) -> None:
        # the main photo is replaced by starting over, not removed
        if index == 0 or index >= len(self.image_urls):
            return
        del self.image_urls[index]

    def validate(self) -> float:
        """Raise ValidationError with the inline message, or return the price."""
        if not all(s.strip() for s in (self.title, self.price, self.description, self.category, self.address)) \
                or not self.image_urls:
            raise ValidationError(MISSING_FIELDS)
        return parse_price(self.price)

    def to_fields(self) -> Dict[str, Any]:
        price = self.validate()
        return {
            "title": self.title.strip(),
            "price": price,
            "description": self.description.strip(),
            "image_urls": list(self.image_urls),
            "video_url": self.video_url,
            "category": self.category,
            "seller_address": self.address.strip(),
        }

    def assistant_prompt(self, message: str) -> str:
        """Wrap a question to the listing assistant with the current draft."""
        return (
            f'The user\'s request is: "{message}".\n'
            "Here is the current listing information for context:\n"
            f'- Title: "{self.title or "(not set)"}"\n'
            f'- Category: "{self.category or "(not set)"}"\n'
            f'- Location: "{self.address or "(not set)"}"\n'
            f'- Price: "{self.price or "(not set)"}"\n'
            f'- Description: "{self.description or "(not set)"}"\n\n'
            "Please provide a helpful response or suggestion based on their request and the listing info."
        )

    def reset(self) -> None:
        self.__init__()
