"""Cart Service: holds persisted configurations on their way to checkout.

The cart is the gate for invalid configurations: ``add_to_cart`` refuses
any configuration whose validation failed and leaves the cart untouched.
"""

import logging
from typing import Sequence

from catalog.models.schemas import Cart, PromoCode
from catalog.repository import CartRepository, ConfigurationRepository
from core.database import Database
from core.exceptions import (
    CartNotFoundException,
    ConfigurationNotFoundException,
    InvalidConfigurationError,
)
from engine.promotions import PromoValidation, available_promo_codes, validate_promo_code

logger = logging.getLogger(__name__)


class CartService:
    def __init__(self, db: Database, promo_codes: Sequence[PromoCode] = ()):
        self.db = db
        self.promo_codes = list(promo_codes)

    async def add_to_cart(self, cart_id: str, configuration_id: str, quantity: int = 1) -> Cart:
        """Add a persisted configuration to a cart at its computed price.

        Raises:
            ConfigurationNotFoundException: no such configuration
            InvalidConfigurationError: the configuration failed validation;
                ``errors`` carries its validation errors
        """
        async with self.db.transaction() as session:
            configuration = await ConfigurationRepository(session).get(configuration_id)
            if configuration is None:
                raise ConfigurationNotFoundException(configuration_id)
            if not configuration.is_valid:
                logger.info(
                    "Refused invalid configuration %s for cart %s", configuration_id, cart_id
                )
                raise InvalidConfigurationError(configuration_id, configuration.validation_errors)

            cart = await CartRepository(session).add_item(
                cart_id, configuration_id, configuration.total_price, quantity
            )

        logger.info("Cart %s: added configuration %s x%d", cart_id, configuration_id, quantity)
        return cart

    async def remove_from_cart(self, cart_id: str, item_id: str) -> Cart:
        """Remove an item; an item id the cart does not hold is a no-op."""
        async with self.db.transaction() as session:
            return await CartRepository(session).remove_item(cart_id, item_id)

    async def update_quantity(self, cart_id: str, item_id: str, quantity: int) -> Cart:
        """Set an item's quantity; zero or less removes the item.

        Raises:
            CartItemNotFoundException: the cart holds no such item
        """
        async with self.db.transaction() as session:
            repo = CartRepository(session)
            if quantity <= 0:
                return await repo.remove_item(cart_id, item_id, missing_ok=False)
            return await repo.set_item_quantity(cart_id, item_id, quantity)

    async def clear_cart(self, cart_id: str) -> Cart:
        async with self.db.transaction() as session:
            return await CartRepository(session).clear(cart_id)

    async def get_cart(self, cart_id: str) -> Cart:
        async with self.db.session() as session:
            cart = await CartRepository(session).get(cart_id)
        if cart is None:
            raise CartNotFoundException(cart_id)
        return cart

    async def apply_promo_code(self, cart_id: str, code: str) -> PromoValidation:
        """Check ``code`` against the cart's current total.

        The cart is not modified; the caller shows the discount or the error.
        """
        cart = await self.get_cart(cart_id)
        result = validate_promo_code(code, cart.total_amount, self.promo_codes)
        if result.is_valid:
            logger.info(
                "Cart %s: promo %s worth %s", cart_id, result.promo_code.code, result.discount_amount
            )
        else:
            logger.debug("Cart %s: promo %r rejected: %s", cart_id, code, result.error)
        return result

    def get_available_promo_codes(self) -> list[PromoCode]:
        return available_promo_codes(self.promo_codes)
