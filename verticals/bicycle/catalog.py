"""Seed data for the bicycle catalog.

``seed_bicycle_catalog(db)`` writes the whole catalog in one transaction
and returns a ``BicycleCatalog`` whose entities are addressed by short
keys ("diamond", "matte", "road-wheels", ...).
"""

from dataclasses import dataclass, field
from decimal import Decimal

from catalog.models.schemas import (
    ConfigurationConstraint,
    ConfigurationSelection,
    ConstraintCreate,
    ConstraintRuleCreate,
    PartOption,
    PartOptionCreate,
    PartType,
    PartTypeCreate,
    PricingConditionCreate,
    PricingEffectCreate,
    PricingRule,
    PricingRuleCreate,
    Product,
    ProductCreate,
)
from catalog.repository import (
    ConstraintRepository,
    PartOptionRepository,
    PartTypeRepository,
    PricingRuleRepository,
    ProductRepository,
)
from core.database import Database
from engine.rules import (
    ConditionType,
    ConstraintType,
    EffectType,
    PricingRuleType,
    RuleType,
)

CATEGORY_ID = "bicycles"

# (key, name, description, display_order)
PART_TYPES = [
    ("frame-type", "Frame Type", "Choose your frame style", 1),
    ("frame-finish", "Frame Finish", "Select the frame finish", 2),
    ("wheels", "Wheels", "Choose your wheel type", 3),
    ("rim-color", "Rim Color", "Pick your rim color", 4),
    ("chain", "Chain", "Select chain type", 5),
]

# part type key -> [(key, name, description, base_price)]
PART_OPTIONS = {
    "frame-type": [
        ("full-suspension", "Full-Suspension", "Premium suspension system for rough terrain", "130"),
        ("diamond", "Diamond", "Classic diamond frame design", "100"),
        ("step-through", "Step-Through", "Easy-access step-through design", "110"),
    ],
    "frame-finish": [
        ("matte", "Matte", "Professional matte finish", "35"),
        ("shiny", "Shiny", "High-gloss shiny finish", "30"),
    ],
    "wheels": [
        ("road-wheels", "Road Wheels", "Lightweight wheels for road cycling", "80"),
        ("mountain-wheels", "Mountain Wheels", "Heavy-duty wheels for mountain biking", "120"),
        ("fat-bike-wheels", "Fat Bike Wheels", "Extra-wide wheels for sand and snow", "200"),
    ],
    "rim-color": [
        ("red-rim", "Red", "Vibrant red rim color", "20"),
        ("black-rim", "Black", "Classic black rim color", "15"),
        ("blue-rim", "Blue", "Cool blue rim color", "20"),
    ],
    "chain": [
        ("single-speed", "Single-Speed Chain", "Simple and reliable single-speed chain", "43"),
        ("8-speed", "8-Speed Chain", "Versatile 8-speed chain system", "65"),
    ],
}

# (key, name, constraint type, [(trigger key, rule type, target key)])
CONSTRAINTS = [
    (
        "mountain-needs-suspension",
        "Mountain wheels need a full-suspension frame",
        ConstraintType.REQUIRED_COMBINATION,
        [("mountain-wheels", RuleType.REQUIRES, "full-suspension")],
    ),
    (
        "rigid-frames-no-mountain",
        "Diamond and step-through frames cannot take mountain wheels",
        ConstraintType.CONDITIONAL_AVAILABILITY,
        [
            ("diamond", RuleType.DISABLES, "mountain-wheels"),
            ("step-through", RuleType.DISABLES, "mountain-wheels"),
        ],
    ),
    (
        "fat-bike-no-red",
        "Fat bike wheels are not available with red rims",
        ConstraintType.FORBIDDEN_COMBINATION,
        [
            ("fat-bike-wheels", RuleType.FORBIDS, "red-rim"),
            ("fat-bike-wheels", RuleType.DISABLES, "red-rim"),
        ],
    ),
]


@dataclass
class BicycleCatalog:
    product: Product
    part_types: dict[str, PartType] = field(default_factory=dict)
    options: dict[str, PartOption] = field(default_factory=dict)
    constraints: dict[str, ConfigurationConstraint] = field(default_factory=dict)
    pricing_rules: dict[str, PricingRule] = field(default_factory=dict)

    @property
    def category_id(self) -> str:
        return self.product.category_id

    def selection(self, option_key: str, quantity: int = 1) -> ConfigurationSelection:
        """Selection of the option stored under ``option_key``."""
        option = self.options[option_key]
        return ConfigurationSelection(
            part_type_id=option.part_type_id,
            part_option_id=option.id,
            quantity=quantity,
        )

    def selections(self, *option_keys: str) -> list[ConfigurationSelection]:
        return [self.selection(key) for key in option_keys]


async def seed_bicycle_catalog(db: Database) -> BicycleCatalog:
    """Write the bicycle catalog and return it keyed for lookup."""
    async with db.transaction() as session:
        product = await ProductRepository(session).create(ProductCreate(
            name="Custom Mountain Bike",
            description="Build your perfect mountain bike with premium components",
            category_id=CATEGORY_ID,
            base_price=Decimal("800"),
        ))
        catalog = BicycleCatalog(product=product)

        part_types = PartTypeRepository(session)
        options = PartOptionRepository(session)
        for key, name, description, display_order in PART_TYPES:
            part_type = await part_types.create(PartTypeCreate(
                name=name,
                description=description,
                product_category_id=CATEGORY_ID,
                is_required=True,
                display_order=display_order,
            ))
            catalog.part_types[key] = part_type
            for option_key, option_name, option_description, price in PART_OPTIONS[key]:
                catalog.options[option_key] = await options.create(PartOptionCreate(
                    name=option_name,
                    description=option_description,
                    part_type_id=part_type.id,
                    base_price=Decimal(price),
                ))

        constraints = ConstraintRepository(session)
        for key, name, constraint_type, rules in CONSTRAINTS:
            constraint = await constraints.create(ConstraintCreate(
                name=name,
                product_category_id=CATEGORY_ID,
                constraint_type=constraint_type,
            ))
            for trigger, rule_type, target in rules:
                await constraints.add_rule(constraint.id, ConstraintRuleCreate(
                    trigger_part_option_id=catalog.options[trigger].id,
                    target_part_option_id=catalog.options[target].id,
                    rule_type=rule_type,
                ))
            catalog.constraints[key] = await constraints.get(constraint.id)

        pricing_rules = PricingRuleRepository(session)
        rule = await pricing_rules.create(PricingRuleCreate(
            name="Matte finish on full-suspension frame",
            description="The matte finish costs 50 on a full-suspension frame",
            product_category_id=CATEGORY_ID,
            rule_type=PricingRuleType.REPLACEMENT_PRICE,
            priority=1,
        ))
        for key in ("matte", "full-suspension"):
            await pricing_rules.add_condition(rule.id, PricingConditionCreate(
                part_option_id=catalog.options[key].id,
                condition_type=ConditionType.SELECTED,
            ))
        await pricing_rules.add_effect(rule.id, PricingEffectCreate(
            target_part_option_id=catalog.options["matte"].id,
            effect_type=EffectType.REPLACE,
            value=Decimal("50"),
        ))
        catalog.pricing_rules["matte-full-suspension"] = await pricing_rules.get(rule.id)

    return catalog
