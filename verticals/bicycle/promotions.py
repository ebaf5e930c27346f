"""Promo codes offered on the bicycle shop."""

from decimal import Decimal

from catalog.models.schemas import PromoCode
from engine.promotions import PromoType

PROMO_CODES = [
    PromoCode(
        code="WELCOME10",
        promo_type=PromoType.PERCENTAGE,
        value=Decimal("10"),
        description="10% off your first order",
    ),
    PromoCode(
        code="BIKE20",
        promo_type=PromoType.FIXED,
        value=Decimal("20"),
        min_order_value=Decimal("500"),
        description="€20 off orders over €500",
    ),
    PromoCode(
        code="FREERIDE",
        promo_type=PromoType.PERCENTAGE,
        value=Decimal("15"),
        description="15% off - Limited time offer!",
    ),
    PromoCode(
        code="SUMMER25",
        promo_type=PromoType.PERCENTAGE,
        value=Decimal("25"),
        min_order_value=Decimal("1000"),
        description="25% off orders over €1000",
    ),
]
