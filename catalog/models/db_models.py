"""SQLAlchemy models for the configurable-product catalog.

Parent → child relationships are loaded with ``lazy="selectin"`` so the
pydantic schemas can read them from a flushed or queried row without
triggering implicit IO on the async session. Tag columns store the
``engine.rules`` enum values as plain strings.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.models.base import Base, RecordMixin, new_id, utcnow
from engine.lifecycle import ConfigurationState

MONEY = Numeric(12, 2)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class Product(RecordMixin, Base):
    """A configurable product; its price starts at ``base_price``."""

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    base_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="check_product_base_price_non_negative"),
    )


class PartType(RecordMixin, Base):
    """A customizable slot on the products of one category (e.g. "Frame")."""

    __tablename__ = "part_types"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_category_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PartOption(RecordMixin, Base):
    """One concrete choice for a part type."""

    __tablename__ = "part_options"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    part_type_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("part_types.id"), nullable=False, index=True
    )
    base_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    in_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    stock_count: Mapped[int | None] = mapped_column(Integer, nullable=True)


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

class ConfigurationConstraint(RecordMixin, Base):
    __tablename__ = "configuration_constraints"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_category_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    constraint_type: Mapped[str] = mapped_column(String(40), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    rules: Mapped[list["ConstraintRule"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ConstraintRule.position",
    )


class ConstraintRule(RecordMixin, Base):
    """Relates a trigger option to a target option."""

    __tablename__ = "constraint_rules"

    constraint_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("configuration_constraints.id"), nullable=False, index=True
    )
    trigger_part_option_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("part_options.id"), nullable=False
    )
    target_part_option_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("part_options.id"), nullable=False
    )
    rule_type: Mapped[str] = mapped_column(String(20), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------

class PricingRule(RecordMixin, Base):
    __tablename__ = "pricing_rules"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    product_category_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    rule_type: Mapped[str] = mapped_column(String(40), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    conditions: Mapped[list["PricingCondition"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PricingCondition.position",
    )
    effects: Mapped[list["PricingEffect"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PricingEffect.position",
    )


class PricingCondition(RecordMixin, Base):
    __tablename__ = "pricing_conditions"

    pricing_rule_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("pricing_rules.id"), nullable=False, index=True
    )
    part_option_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("part_options.id"), nullable=False
    )
    condition_type: Mapped[str] = mapped_column(String(20), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class PricingEffect(RecordMixin, Base):
    """Effects of one rule are applied in ``position`` order."""

    __tablename__ = "pricing_effects"

    pricing_rule_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("pricing_rules.id"), nullable=False, index=True
    )
    target_part_option_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("part_options.id"), nullable=True
    )
    effect_type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

class ProductConfiguration(Base):
    """A priced, validated selection set. Written once, never updated."""

    __tablename__ = "product_configurations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    # No foreign key: a configuration for an unknown product is still recorded (as invalid).
    product_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    total_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    is_valid: Mapped[bool] = mapped_column(Boolean, nullable=False)
    validation_errors: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    selections: Mapped[list["ConfigurationSelection"]] = relationship(
        lazy="selectin",
        order_by="ConfigurationSelection.position",
    )

    __table_args__ = (
        CheckConstraint("total_price >= 0", name="check_configuration_total_non_negative"),
    )

    @property
    def state(self) -> ConfigurationState:
        # Anything read back from storage has been persisted.
        return ConfigurationState.PERSISTED


class ConfigurationSelection(Base):
    __tablename__ = "configuration_selections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    configuration_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("product_configurations.id"), nullable=False, index=True
    )
    part_type_id: Mapped[str] = mapped_column(String(64), nullable=False)
    part_option_id: Mapped[str] = mapped_column(String(64), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="check_selection_quantity_positive"),
    )


# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------

class Cart(RecordMixin, Base):
    __tablename__ = "carts"

    customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    session_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=0)

    items: Mapped[list["CartItem"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CartItem.added_at",
    )


class CartItem(Base):
    __tablename__ = "cart_items"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    cart_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("carts.id"), nullable=False, index=True
    )
    product_configuration_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("product_configurations.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    total_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
