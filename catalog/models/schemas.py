"""Pydantic value types for the configurable-product domain.

Entities are frozen and built from ORM rows with
``model_validate(row, from_attributes=True)``. Money is ``Decimal``.
``*Create`` / ``*Update`` models are repository write payloads.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from engine.lifecycle import ConfigurationState
from engine.promotions import PromoType, normalize_code
from engine.rules import (
    ConditionType,
    ConstraintType,
    EffectType,
    PricingRuleType,
    RuleType,
)


class Entity(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)


class Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class Product(Entity):
    id: str
    name: str
    description: Optional[str] = None
    category_id: str
    base_price: Decimal = Field(ge=0)
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PartType(Entity):
    id: str
    name: str
    description: Optional[str] = None
    product_category_id: str
    is_required: bool = False
    display_order: int = 0


class PartOption(Entity):
    id: str
    name: str
    description: Optional[str] = None
    part_type_id: str
    base_price: Decimal = Decimal("0")
    is_active: bool = True
    in_stock: bool = True
    stock_count: Optional[int] = None


class ProductCreate(Payload):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category_id: str
    base_price: Decimal = Field(..., ge=0)
    is_active: bool = True


class ProductUpdate(Payload):
    name: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None


class PartTypeCreate(Payload):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    product_category_id: str
    is_required: bool = False
    display_order: int = 0


class PartTypeUpdate(Payload):
    name: Optional[str] = None
    description: Optional[str] = None
    is_required: Optional[bool] = None
    display_order: Optional[int] = None


class PartOptionCreate(Payload):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    part_type_id: str
    base_price: Decimal = Decimal("0")
    is_active: bool = True
    in_stock: bool = True
    stock_count: Optional[int] = Field(None, ge=0)


class PartOptionUpdate(Payload):
    name: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[Decimal] = None
    is_active: Optional[bool] = None
    in_stock: Optional[bool] = None
    stock_count: Optional[int] = Field(None, ge=0)


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

class ConstraintRule(Entity):
    id: str
    constraint_id: str
    trigger_part_option_id: str
    target_part_option_id: str
    rule_type: RuleType


class ConfigurationConstraint(Entity):
    id: str
    name: str
    description: Optional[str] = None
    product_category_id: str
    constraint_type: ConstraintType
    is_active: bool = True
    rules: list[ConstraintRule] = Field(default_factory=list)


class ConstraintCreate(Payload):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    product_category_id: str
    constraint_type: ConstraintType
    is_active: bool = True


class ConstraintUpdate(Payload):
    name: Optional[str] = None
    description: Optional[str] = None
    constraint_type: Optional[ConstraintType] = None
    is_active: Optional[bool] = None


class ConstraintRuleCreate(Payload):
    trigger_part_option_id: str
    target_part_option_id: str
    rule_type: RuleType


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------

class PricingCondition(Entity):
    id: str
    pricing_rule_id: str
    part_option_id: str
    condition_type: ConditionType


class PricingEffect(Entity):
    id: str
    pricing_rule_id: str
    target_part_option_id: Optional[str] = None  # None: applies to the running total
    effect_type: EffectType
    value: Decimal


class PricingRule(Entity):
    id: str
    name: str
    description: Optional[str] = None
    product_category_id: str
    rule_type: PricingRuleType
    priority: int = 0  # lower value is applied first
    is_active: bool = True
    conditions: list[PricingCondition] = Field(default_factory=list)
    effects: list[PricingEffect] = Field(default_factory=list)


class PricingRuleCreate(Payload):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    product_category_id: str
    rule_type: PricingRuleType
    priority: int = 0
    is_active: bool = True


class PricingRuleUpdate(Payload):
    name: Optional[str] = None
    description: Optional[str] = None
    rule_type: Optional[PricingRuleType] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None


class PricingConditionCreate(Payload):
    part_option_id: str
    condition_type: ConditionType


class PricingEffectCreate(Payload):
    target_part_option_id: Optional[str] = None
    effect_type: EffectType
    value: Decimal


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

class ConfigurationSelection(Entity):
    part_type_id: str
    part_option_id: str
    quantity: int = Field(1, ge=1)


class ProductConfiguration(Entity):
    id: str
    product_id: str
    selections: list[ConfigurationSelection] = Field(default_factory=list)
    total_price: Decimal = Field(Decimal("0"), ge=0)
    is_valid: bool
    validation_errors: list[str] = Field(default_factory=list)
    created_at: datetime
    state: ConfigurationState = ConfigurationState.DRAFT

    @model_validator(mode="after")
    def _validity_matches_errors(self):
        if self.is_valid == bool(self.validation_errors):
            raise ValueError("is_valid must be true exactly when validation_errors is empty")
        return self


# ---------------------------------------------------------------------------
# Carts
# ---------------------------------------------------------------------------

class CartItem(Entity):
    id: str
    product_configuration_id: str
    quantity: int = Field(ge=1)
    unit_price: Decimal
    total_price: Decimal
    added_at: datetime


class Cart(Entity):
    id: str
    customer_id: Optional[str] = None
    session_id: str
    items: list[CartItem] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------

class PromoCode(Entity):
    code: str
    promo_type: PromoType
    value: Decimal = Field(ge=0)  # percent for PERCENTAGE, amount for FIXED
    min_order_value: Optional[Decimal] = None
    max_uses: Optional[int] = None
    current_uses: int = 0
    expires_at: Optional[datetime] = None
    is_active: bool = True
    description: Optional[str] = None

    @field_validator("code")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_code(value)
