# seed_data.py
"""Listings the marketplace starts with. Nothing here is persisted."""
import datetime as dt
from typing import List

from .data_models import ChatMessage, Listing, ListingStatus, MessageStatus, Review, User, VerificationStatus

AVATAR = "https://i.pravatar.cc/150?u={}"


def _ago(**kwargs) -> str:
    return (dt.datetime.now(dt.timezone.utc) - dt.timedelta(**kwargs)).isoformat(timespec="milliseconds")


def _seller(name, username, location, status=VerificationStatus.VERIFIED, **extra) -> User:
    return User(
        name=name,
        username=username,
        avatar_url=AVATAR.format(username),
        status=status,
        location=location,
        accepted_terms=True,
        **extra,
    )


def seed_listings() -> List[Listing]:
    thandi = _seller(
        "Thandi Mokoena", "thandi_m", "Johannesburg, GP",
        id_number="8001015009087",
        ai_auto_reply_enabled=True,
        reviews=[
            Review(5, "Exactly as described, friendly seller.", "sipho_k", _ago(days=40)),
            Review(4, "Quick handover, slight scratch not mentioned.", "lerato88", _ago(days=12)),
        ],
    )
    johan = _seller(
        "Johan van Wyk", "johanvw", "Cape Town, WC",
        id_number="7502205123081",
        reviews=[Review(5, "Great bike, great guy.", "demouser", _ago(days=90))],
    )
    amara = _seller("Amara Okafor", "amara_o", "Lagos, NG", id_number="A09876543")
    sipho = _seller("Sipho Khumalo", "sipho_k", "Durban, KZN", status=VerificationStatus.UNVERIFIED)

    listings = [
        Listing(
            id="8",
            title="Mid-century Teak Sideboard",
            price=4500,
            description="Solid teak sideboard from the 1960s. Three drawers, two cupboards, "
                        "original handles. Minor wear on the top, otherwise excellent.",
            seller=thandi,
            category="Furniture",
            image_urls=["https://picsum.photos/seed/sideboard/800/600"],
            seller_address="Johannesburg, GP",
            chat_history=[
                ChatMessage("sipho_k", "Hi, is the sideboard still available?", _ago(hours=5),
                            status=MessageStatus.READ),
                ChatMessage("thandi_m", "Yes it is! Happy to show it this weekend.", _ago(hours=4),
                            status=MessageStatus.READ),
                ChatMessage("sipho_k", "Great, would you take R4000?", _ago(hours=3),
                            status=MessageStatus.DELIVERED),
            ],
        ),
        Listing(
            id="7",
            title="Road Bike, 56cm Aluminium Frame",
            price=6200,
            description="Shimano Sora groupset, new tyres last month. Serviced and ready to ride.",
            seller=johan,
            category="Sporting Goods",
            image_urls=["https://picsum.photos/seed/roadbike/800/600",
                        "https://picsum.photos/seed/roadbike2/800/600"],
            seller_address="Cape Town, WC",
        ),
        Listing(
            id="6",
            title="Acoustic Guitar with Case",
            price=2300,
            description="Yamaha F310 in good condition. Comes with a padded gig bag and spare strings.",
            seller=thandi,
            category="Musical Instruments",
            image_urls=["https://picsum.photos/seed/guitar/800/600"],
            seller_address="Johannesburg, GP",
            status=ListingStatus.SOLD,
            buyer_name="demouser",
            buyer_avatar_url=AVATAR.format("demouser"),
        ),
        Listing(
            id="5",
            title="Samsung 55\" 4K Smart TV",
            price=7800,
            description="Two years old, works perfectly. Wall bracket and remote included.",
            seller=amara,
            category="Electronics",
            image_urls=["https://picsum.photos/seed/tv55/800/600"],
            seller_address="Lagos, NG",
        ),
        Listing(
            id="4",
            title="Set of Hardcover Cookbooks",
            price=450,
            description="Six cookbooks, barely used. Great for someone starting out in the kitchen.",
            seller=sipho,
            category="Books & Media",
            image_urls=["https://picsum.photos/seed/cookbooks/800/600"],
            seller_address="Durban, KZN",
        ),
        Listing(
            id="3",
            title="Bar Fridge 90L",
            price=1600,
            description="Quiet and energy efficient. Perfect for a student flat or an office.",
            seller=johan,
            category="Appliances",
            image_urls=["https://picsum.photos/seed/barfridge/800/600"],
            seller_address="Stellenbosch, WC",
            status=ListingStatus.PENDING,
            buyer_name="lerato88",
            buyer_avatar_url=AVATAR.format("lerato88"),
        ),
        Listing(
            id="2",
            title="Handwoven Basket Set",
            price=380,
            description="Three nesting baskets woven from ilala palm. Each one is unique.",
            seller=thandi,
            category="Home Decor",
            image_urls=["https://picsum.photos/seed/baskets/800/600"],
            seller_address="Pretoria, GP",
        ),
        Listing(
            id="1",
            title="Kids' Wooden Train Set",
            price=520,
            description="Forty pieces including bridge and station. All pieces present.",
            seller=amara,
            category="Toys & Games",
            image_urls=["https://picsum.photos/seed/trainset/800/600"],
            seller_address="Nairobi, KE",
        ),
    ]
    return listings
