"""
Subscription plans and the (simulated) checkout arithmetic.
"""
import re
from dataclasses import dataclass
from typing import Dict, List

from .data_models import SubscriptionPlan
from .errors import ValidationError

TAX_RATE = 0.15
PROMO_CODES = {"SAVE20": 0.20}


@dataclass(frozen=True)
class PlanDetails:
    plan: SubscriptionPlan
    name: str
    yearly_price: float
    monthly_label: str
    badge: str
    features: List[str]


PLANS: Dict[SubscriptionPlan, PlanDetails] = {
    SubscriptionPlan.FREE: PlanDetails(
        SubscriptionPlan.FREE, "GoMarket Free", 0, "R0/month", "",
        ["Up to 10 product listings", "Standard commission per order", "Basic marketplace tools"],
    ),
    SubscriptionPlan.PRO: PlanDetails(
        SubscriptionPlan.PRO, "GoMarket Pro", 600, "R50/month", "Most Popular",
        ["Unlimited product listings", "Reduced commission fees",
         "Featured in search results", "Vendor analytics & reports"],
    ),
    SubscriptionPlan.PREMIER: PlanDetails(
        SubscriptionPlan.PREMIER, "GoMarket Premier", 1800, "R150/month", "Best Value",
        ["Unlimited product listings", "Lowest commission fees", "Premium homepage visibility",
         "Dedicated vendor support", "Early access to new features"],
    ),
}


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: float
    discount: float
    tax: float
    total: float


def price_breakdown(plan: SubscriptionPlan, discount_rate: float = 0.0) -> PriceBreakdown:
    subtotal = PLANS[plan].yearly_price
    discount = subtotal * discount_rate
    taxable = subtotal - discount
    tax = taxable * TAX_RATE
    return PriceBreakdown(subtotal=subtotal, discount=discount, tax=tax, total=taxable + tax)


def apply_promo_code(code: str) -> float:
    """Return the discount rate for a promotion code."""
    rate = PROMO_CODES.get(code.strip().upper())
    if rate is None:
        raise ValidationError("Invalid promotion code.")
    return rate


def validate_card(name: str, number: str, expiry: str, cvc: str) -> None:
    if not (name.strip() and number.strip() and expiry.strip() and cvc.strip()):
        raise ValidationError("Please fill in all card details.")
    if not re.fullmatch(r"[\d ]{12,23}", number.strip()):
        raise ValidationError("Please enter a valid card number.")
    if not re.fullmatch(r"(0[1-9]|1[0-2])\s*/\s*\d{2}", expiry.strip()):
        raise ValidationError("Expiry must be in MM / YY format.")
    if not re.fullmatch(r"\d{3,4}", cvc.strip()):
        raise ValidationError("Please enter a valid CVC.")
