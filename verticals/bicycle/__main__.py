"""Seed the bicycle catalog and price a sample build.

    python -m verticals.bicycle

Reads CONFIGURATOR_* environment variables (see ``engine.config``).
"""

import asyncio
import logging

from catalog.cart import CartService
from catalog.service import ConfigurationService
from core.database import Database
from core.observability.logging_setup import setup_logging
from engine.config import ConfiguratorConfig
from verticals.bicycle.catalog import seed_bicycle_catalog
from verticals.bicycle.promotions import PROMO_CODES

logger = logging.getLogger(__name__)


async def main(config: ConfiguratorConfig) -> None:
    db = Database.from_config(config.database)
    try:
        await db.init_db()
        catalog = await seed_bicycle_catalog(db)
        service = ConfigurationService(db, pricing=config.pricing)

        selections = catalog.selections(
            "full-suspension", "matte", "road-wheels", "black-rim", "single-speed"
        )
        breakdown = await service.get_price_breakdown(catalog.product.id, selections)
        logger.info(
            "Base %s + options %s", breakdown.base_price, breakdown.options_total
        )
        for applied in breakdown.applied_rules:
            logger.info(
                "Rule %r: %s -> %s", applied.name, applied.total_before, applied.total_after
            )

        configuration = await service.create_configuration(catalog.product.id, selections)
        carts = CartService(db, promo_codes=PROMO_CODES)
        cart = await carts.add_to_cart("demo-cart", configuration.id)
        logger.info("Cart %s total: %s", cart.id, cart.total_amount)

        promo = await carts.apply_promo_code(cart.id, "summer25")
        logger.info("SUMMER25 discount: %s", promo.discount_amount)
    finally:
        await db.close()


if __name__ == "__main__":
    config = ConfiguratorConfig.from_env()
    setup_logging(config.log_level)
    asyncio.run(main(config))
