"""Catalog repositories: async database access for each entity family.

Extends BaseRepository with the queries the configuration engine needs:
options by part type, constraints with their rules, pricing rules with
their conditions and effects, configurations with their selections, and
carts with their items.
"""

from decimal import Decimal
from typing import Any, Iterable

from pydantic import BaseModel
from sqlalchemy import select

from catalog.models import db_models as rows
from catalog.models.schemas import (
    Cart,
    ConfigurationConstraint,
    ConstraintRule,
    ConstraintRuleCreate,
    PartOption,
    PartType,
    PricingCondition,
    PricingConditionCreate,
    PricingEffect,
    PricingEffectCreate,
    PricingRule,
    Product,
    ProductConfiguration,
)
from core.exceptions import (
    CartItemNotFoundException,
    CartNotFoundException,
    ImmutableEntityError,
)
from core.models.base import new_id, utcnow
from engine.lifecycle import ConfigurationState, ensure_transition
from engine.repository import BaseRepository, column_values


# ---------------------------------------------------------------------------
# Products and parts
# ---------------------------------------------------------------------------

class ProductRepository(BaseRepository[rows.Product, Product]):
    """Products are frozen once a configuration references them."""

    model = rows.Product
    schema = Product
    category_column = "category_id"

    async def is_referenced(self, product_id: str) -> bool:
        stmt = (
            select(rows.ProductConfiguration.id)
            .where(rows.ProductConfiguration.product_id == product_id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar() is not None

    async def update(self, item_id: str, data: BaseModel | dict[str, Any]) -> Product | None:
        if await self.is_referenced(item_id):
            raise ImmutableEntityError(
                "Product", item_id, "it is referenced by a configuration"
            )
        return await super().update(item_id, data)


class PartTypeRepository(BaseRepository[rows.PartType, PartType]):
    model = rows.PartType
    schema = PartType
    order_by = ("display_order", "name")


class PartOptionRepository(BaseRepository[rows.PartOption, PartOption]):
    """Options belong to a part type; category listings go through it."""

    model = rows.PartOption
    schema = PartOption

    async def list_by_category(self, category_id: str) -> list[PartOption]:
        stmt = (
            select(rows.PartOption)
            .join(rows.PartType, rows.PartType.id == rows.PartOption.part_type_id)
            .where(rows.PartType.product_category_id == category_id)
            .order_by(rows.PartType.display_order, rows.PartOption.name, rows.PartOption.id)
        )
        result = await self.session.execute(stmt)
        return self._to_schemas(result.scalars().all())

    async def list_by_part_type(self, part_type_id: str) -> list[PartOption]:
        """All options of a part type (active or not), by name."""
        stmt = (
            select(rows.PartOption)
            .where(rows.PartOption.part_type_id == part_type_id)
            .order_by(*self._ordering())
        )
        result = await self.session.execute(stmt)
        return self._to_schemas(result.scalars().all())

    async def get_many(self, option_ids: Iterable[str]) -> dict[str, PartOption]:
        """Batch lookup keyed by id; unknown ids are simply absent."""
        ids = list(set(option_ids))
        if not ids:
            return {}
        stmt = select(rows.PartOption).where(rows.PartOption.id.in_(ids))
        result = await self.session.execute(stmt)
        return {option.id: option for option in self._to_schemas(result.scalars().all())}

    async def update_stock(
        self, option_id: str, in_stock: bool, stock_count: int | None = None
    ) -> PartOption | None:
        return await self.update(option_id, {"in_stock": in_stock, "stock_count": stock_count})


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

class ConstraintRepository(BaseRepository[rows.ConfigurationConstraint, ConfigurationConstraint]):
    """Constraints always come back with their rules loaded."""

    model = rows.ConfigurationConstraint
    schema = ConfigurationConstraint
    relationships = ("rules",)

    async def add_rule(self, constraint_id: str, data: ConstraintRuleCreate) -> ConstraintRule | None:
        """Append a rule to a constraint. Returns None if the constraint is missing."""
        constraint = await self._get_row(constraint_id)
        if constraint is None:
            return None
        rule = rows.ConstraintRule(
            constraint_id=constraint_id,
            position=len(constraint.rules),
            **column_values(data),
        )
        constraint.rules.append(rule)
        await self.session.flush()
        return ConstraintRule.model_validate(rule, from_attributes=True)


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------

class PricingRuleRepository(BaseRepository[rows.PricingRule, PricingRule]):
    """Pricing rules always come back with conditions and effects loaded.

    Listings are by name; application order is the engine's concern.
    """

    model = rows.PricingRule
    schema = PricingRule
    relationships = ("conditions", "effects")

    async def add_condition(
        self, rule_id: str, data: PricingConditionCreate
    ) -> PricingCondition | None:
        rule = await self._get_row(rule_id)
        if rule is None:
            return None
        condition = rows.PricingCondition(
            pricing_rule_id=rule_id,
            position=len(rule.conditions),
            **column_values(data),
        )
        rule.conditions.append(condition)
        await self.session.flush()
        return PricingCondition.model_validate(condition, from_attributes=True)

    async def add_effect(self, rule_id: str, data: PricingEffectCreate) -> PricingEffect | None:
        """Append an effect; effects apply in the order they were added."""
        rule = await self._get_row(rule_id)
        if rule is None:
            return None
        effect = rows.PricingEffect(
            pricing_rule_id=rule_id,
            position=len(rule.effects),
            **column_values(data),
        )
        rule.effects.append(effect)
        await self.session.flush()
        return PricingEffect.model_validate(effect, from_attributes=True)


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

class ConfigurationRepository(BaseRepository[rows.ProductConfiguration, ProductConfiguration]):
    """Persisted configurations: written once with all selection rows, never updated."""

    model = rows.ProductConfiguration
    schema = ProductConfiguration
    category_column = "product_id"
    order_by = ("created_at",)
    relationships = ("selections",)

    async def save(self, configuration: ProductConfiguration) -> ProductConfiguration:
        """Write a draft configuration and its selections.

        Must run inside ``Database.transaction()`` so the configuration row
        and its selection rows become visible together or not at all.
        """
        ensure_transition(configuration.state, ConfigurationState.PERSISTED)

        row = rows.ProductConfiguration(
            id=configuration.id,
            product_id=configuration.product_id,
            total_price=configuration.total_price,
            is_valid=configuration.is_valid,
            validation_errors=list(configuration.validation_errors),
            created_at=configuration.created_at,
        )
        self.session.add(row)
        await self.session.flush()

        for position, selection in enumerate(configuration.selections):
            self.session.add(rows.ConfigurationSelection(
                configuration_id=row.id,
                part_type_id=selection.part_type_id,
                part_option_id=selection.part_option_id,
                quantity=selection.quantity,
                position=position,
            ))
        await self.session.flush()

        await self._reload(row)
        return self._to_schema(row)

    async def list_by_product(self, product_id: str) -> list[ProductConfiguration]:
        return await self.list_by_category(product_id)

    async def create(self, data: BaseModel | dict[str, Any]) -> ProductConfiguration:
        if isinstance(data, ProductConfiguration):
            return await self.save(data)
        values = data.model_dump() if isinstance(data, BaseModel) else dict(data)
        values.setdefault("id", new_id())
        values.setdefault("created_at", utcnow())
        values["state"] = ConfigurationState.DRAFT
        return await self.save(ProductConfiguration.model_validate(values))

    async def update(self, item_id: str, data: BaseModel | dict[str, Any]) -> ProductConfiguration | None:
        existing = await self.get(item_id)
        if existing is None:
            return None
        raise ImmutableEntityError(
            "Configuration", item_id, "persisted configurations are immutable"
        )


# Carts
# ---------------------------------------------------------------------------

class CartRepository(BaseRepository[rows.Cart, Cart]):
    """Carts with their items; every mutation recomputes the cart total."""

    model = rows.Cart
    schema = Cart
    category_column = "session_id"
    order_by = ("created_at",)
    relationships = ("items",)

    async def _require_row(self, cart_id: str) -> rows.Cart:
        cart = await self._get_row(cart_id)
        if cart is None:
            raise CartNotFoundException(cart_id)
        return cart

    async def _finish(self, cart: rows.Cart) -> Cart:
        cart.total_amount = sum((item.total_price for item in cart.items), Decimal("0"))
        await self.session.flush()
        await self._reload(cart)
        return self._to_schema(cart)

    @staticmethod
    def _find_item(cart: rows.Cart, item_id: str) -> rows.CartItem:
        for item in cart.items:
            if item.id == item_id:
                return item
        raise CartItemNotFoundException(cart.id, item_id)

    async def add_item(
        self,
        cart_id: str,
        configuration_id: str,
        unit_price: Decimal,
        quantity: int = 1,
    ) -> Cart:
        """Add a configuration to a cart, creating the cart on first use.

        Adding a configuration already in the cart increases its quantity.
        """
        cart = await self._get_row(cart_id)
        if cart is None:
            cart = rows.Cart(id=cart_id, session_id=cart_id, total_amount=Decimal("0"), items=[])
            self.session.add(cart)

        existing = next(
            (i for i in cart.items if i.product_configuration_id == configuration_id), None
        )
        if existing is not None:
            existing.quantity += quantity
            existing.total_price = existing.unit_price * existing.quantity
        else:
            cart.items.append(rows.CartItem(
                product_configuration_id=configuration_id,
                quantity=quantity,
                unit_price=unit_price,
                total_price=unit_price * quantity,
                added_at=utcnow(),
            ))
        return await self._finish(cart)

    async def set_item_quantity(self, cart_id: str, item_id: str, quantity: int) -> Cart:
        cart = await self._require_row(cart_id)
        item = self._find_item(cart, item_id)
        item.quantity = quantity
        item.total_price = item.unit_price * quantity
        return await self._finish(cart)

    async def remove_item(self, cart_id: str, item_id: str, missing_ok: bool = True) -> Cart:
        """Drop an item from a cart.

        An unknown ``item_id`` leaves the items as they are unless
        ``missing_ok`` is false. The cart itself must exist.
        """
        cart = await self._require_row(cart_id)
        if missing_ok:
            cart.items[:] = [item for item in cart.items if item.id != item_id]
        else:
            cart.items.remove(self._find_item(cart, item_id))
        return await self._finish(cart)

    async def clear(self, cart_id: str) -> Cart:
        cart = await self._require_row(cart_id)
        cart.items.clear()
        return await self._finish(cart)
