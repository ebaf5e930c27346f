"""Promo-code checks against an order total.

``validate_promo_code`` looks a code up (trimmed, case-insensitive) and
applies the rejection checks in a fixed order: unknown, inactive, expired,
below the minimum order value, usage limit reached. The first failing
check decides the error; a passing code carries its discount.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional

from core.models.base import utcnow
from engine.config import PricingConfig
from engine.rules import assert_never

ZERO = Decimal("0")


class PromoType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"


@dataclass
class PromoValidation:
    is_valid: bool
    discount_amount: Decimal = ZERO
    promo_code: Optional[Any] = None
    error: Optional[str] = None


def normalize_code(code: str) -> str:
    return code.strip().upper()


def _rejected(error: str) -> PromoValidation:
    return PromoValidation(is_valid=False, error=error)


def _expired(expires_at: datetime | None, now: datetime) -> bool:
    if expires_at is None:
        return False
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < now


def promo_discount(
    promo: Any, order_total: Decimal, config: PricingConfig | None = None
) -> Decimal:
    """Percentage codes round to the currency quantum; fixed codes never exceed the total."""
    config = config or PricingConfig()
    match PromoType(promo.promo_type):
        case PromoType.PERCENTAGE:
            raw = order_total * promo.value / Decimal("100")
            return raw.quantize(config.currency_quantum, rounding=config.rounding)
        case PromoType.FIXED:
            return min(promo.value, order_total)
        case other:
            assert_never(other)


def validate_promo_code(
    code: str,
    order_total: Decimal,
    promo_codes: Iterable[Any],
    now: datetime | None = None,
    config: PricingConfig | None = None,
) -> PromoValidation:
    normalized = normalize_code(code)
    promo = next((p for p in promo_codes if p.code == normalized), None)

    if promo is None:
        return _rejected("Invalid promo code")
    if not promo.is_active:
        return _rejected("This promo code is no longer active")
    if _expired(promo.expires_at, now or utcnow()):
        return _rejected("This promo code has expired")
    if promo.min_order_value and order_total < promo.min_order_value:
        return _rejected(f"Minimum order value of €{promo.min_order_value} required")
    if promo.max_uses and promo.current_uses and promo.current_uses >= promo.max_uses:
        return _rejected("This promo code has reached its usage limit")

    return PromoValidation(
        is_valid=True,
        discount_amount=promo_discount(promo, order_total, config),
        promo_code=promo,
    )


def available_promo_codes(promo_codes: Iterable[Any]) -> list[Any]:
    """Active codes, in their original order."""
    return [p for p in promo_codes if p.is_active]
