"""Configuration Service: the entry point for configuring a product.

Loads catalog data through the repositories, hands it to the pure engine
functions in ``engine.constraints`` / ``engine.pricing`` and persists the
result. The service owns session scopes; repositories never commit.

Storage errors (``StorageUnavailable``, ``TransactionFailure``) propagate
unchanged. Validation failures are return values, never exceptions.
"""

import logging
from decimal import Decimal
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models.schemas import (
    ConfigurationSelection,
    PartOption,
    PartType,
    ProductConfiguration,
)
from catalog.repository import (
    ConfigurationRepository,
    ConstraintRepository,
    PartOptionRepository,
    PartTypeRepository,
    PricingRuleRepository,
    ProductRepository,
)
from core.database import Database
from core.models.base import new_id, utcnow
from engine.config import PricingConfig
from engine.constraints import (
    ValidationResult,
    filter_available_options,
    referenced_option_ids,
    selected_option_ids,
    validate_selections,
)
from engine.lifecycle import ConfigurationState
from engine.pricing import PriceBreakdown, finalize_total, price_breakdown

logger = logging.getLogger(__name__)


class ConfigurationService:
    """Available options, validation, pricing and persistence of configurations.

    Usage::

        service = ConfigurationService(Database.from_config(config.database))
        options = await service.get_available_options(category_id, frame_type_id, selections)
        result = await service.validate_configuration(product_id, selections)
        configuration = await service.create_configuration(product_id, selections)
    """

    def __init__(self, db: Database, pricing: PricingConfig | None = None):
        self.db = db
        self.pricing = pricing or PricingConfig()

    # -- Catalog reads --

    async def get_part_types(self, category_id: str) -> list[PartType]:
        async with self.db.session() as session:
            return await PartTypeRepository(session).list_by_category(category_id)

    async def get_available_options(
        self,
        category_id: str,
        part_type_id: str,
        current_selections: Sequence[ConfigurationSelection],
    ) -> list[PartOption]:
        """Options of ``part_type_id`` a customer may pick next.

        Keeps active, in-stock options that no DISABLES rule triggered by
        ``current_selections`` hides, in repository order.
        """
        async with self.db.session() as session:
            options = await PartOptionRepository(session).list_by_part_type(part_type_id)
            constraints = await ConstraintRepository(session).list_by_category(category_id)
        return filter_available_options(options, current_selections, constraints)

    # -- Validation --

    async def validate_configuration(
        self, product_id: str, selections: Sequence[ConfigurationSelection]
    ) -> ValidationResult:
        async with self.db.session() as session:
            return await self._validate(session, product_id, selections)

    async def _validate(
        self,
        session: AsyncSession,
        product_id: str,
        selections: Sequence[ConfigurationSelection],
    ) -> ValidationResult:
        product = await ProductRepository(session).get(product_id)
        if product is None:
            result = validate_selections(None, [], [], selections, {})
        else:
            part_types = await PartTypeRepository(session).list_by_category(product.category_id)
            constraints = await ConstraintRepository(session).list_by_category(product.category_id)
            options = await PartOptionRepository(session).get_many(
                referenced_option_ids(selections, constraints)
            )
            result = validate_selections(product, part_types, constraints, selections, options)

        if not result.is_valid:
            logger.debug("Product %s: selections invalid: %s", product_id, result.errors)
        return result

    # -- Pricing --

    async def calculate_price(
        self, product_id: str, selections: Sequence[ConfigurationSelection]
    ) -> Decimal:
        """Final total for ``selections``; zero when the product is missing."""
        breakdown = await self.get_price_breakdown(product_id, selections)
        if breakdown is None:
            return finalize_total(Decimal("0"), self.pricing)
        return breakdown.total

    async def get_price_breakdown(
        self, product_id: str, selections: Sequence[ConfigurationSelection]
    ) -> PriceBreakdown | None:
        async with self.db.session() as session:
            return await self._price(session, product_id, selections)

    async def _price(
        self,
        session: AsyncSession,
        product_id: str,
        selections: Sequence[ConfigurationSelection],
    ) -> PriceBreakdown | None:
        product = await ProductRepository(session).get(product_id)
        if product is None:
            return None
        rules = await PricingRuleRepository(session).list_by_category(product.category_id)
        options = await PartOptionRepository(session).get_many(selected_option_ids(selections))
        return price_breakdown(product, selections, options, rules, self.pricing)

    # -- Persistence --

    async def create_configuration(
        self, product_id: str, selections: Sequence[ConfigurationSelection]
    ) -> ProductConfiguration:
        """Validate, price and persist a configuration.

        Invalid configurations are persisted too, with a zero total and
        their errors; refusing them is the cart's job. The configuration
        row and all selection rows are written in one transaction.
        """
        async with self.db.transaction() as session:
            result = await self._validate(session, product_id, selections)
            if result.is_valid:
                breakdown = await self._price(session, product_id, selections)
                total = breakdown.total
            else:
                total = finalize_total(Decimal("0"), self.pricing)

            draft = ProductConfiguration(
                id=new_id(),
                product_id=product_id,
                selections=list(selections),
                total_price=total,
                is_valid=result.is_valid,
                validation_errors=result.errors,
                created_at=utcnow(),
                state=ConfigurationState.DRAFT,
            )
            configuration = await ConfigurationRepository(session).save(draft)

        logger.info(
            "Created configuration %s for product %s (valid=%s, total=%s)",
            configuration.id, product_id, configuration.is_valid, configuration.total_price,
        )
        return configuration

    async def get_configuration(self, configuration_id: str) -> ProductConfiguration | None:
        async with self.db.session() as session:
            return await ConfigurationRepository(session).get(configuration_id)

    async def list_configurations(self, product_id: str) -> list[ProductConfiguration]:
        async with self.db.session() as session:
            return await ConfigurationRepository(session).list_by_product(product_id)
