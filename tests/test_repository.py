"""Test catalog repositories against a SQLite database."""
from decimal import Decimal

import pytest

from catalog.models.schemas import (
    ConfigurationSelection,
    ConstraintRuleCreate,
    PartOptionUpdate,
    PartTypeCreate,
    ProductConfiguration,
    ProductCreate,
    ProductUpdate,
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
from core.exceptions import ImmutableEntityError, InvalidStateTransition, StorageUnavailable
from core.models.base import new_id, utcnow
from engine.lifecycle import ConfigurationState
from engine.rules import EffectType, RuleType


@pytest.mark.asyncio
async def test_create_assigns_id(db):
    async with db.transaction() as session:
        product = await ProductRepository(session).create(ProductCreate(
            name="Touring Bike", category_id="bicycles", base_price=Decimal("650"),
        ))
    assert product.id
    assert product.base_price == Decimal("650")
    assert product.created_at is not None

    async with db.session() as session:
        fetched = await ProductRepository(session).get(product.id)
    assert fetched == product


@pytest.mark.asyncio
async def test_get_missing_returns_none(db):
    async with db.session() as session:
        assert await ProductRepository(session).get("nope") is None
        assert await PartTypeRepository(session).update("nope", {"name": "x"}) is None


@pytest.mark.asyncio
async def test_part_types_in_display_order(db):
    async with db.transaction() as session:
        repo = PartTypeRepository(session)
        for name, order in [("Chain", 3), ("Frame", 1), ("Brakes", 3), ("Wheels", 2)]:
            await repo.create(PartTypeCreate(
                name=name, product_category_id="bicycles", display_order=order,
            ))
        await repo.create(PartTypeCreate(name="Sail", product_category_id="boats"))

    async with db.session() as session:
        part_types = await PartTypeRepository(session).list_by_category("bicycles")
    assert [p.name for p in part_types] == ["Frame", "Wheels", "Brakes", "Chain"]


@pytest.mark.asyncio
async def test_options_by_part_type_sorted_by_name(db, bikes):
    async with db.session() as session:
        options = await PartOptionRepository(session).list_by_part_type(
            bikes.part_types["frame-type"].id
        )
    assert [o.name for o in options] == ["Diamond", "Full-Suspension", "Step-Through"]


@pytest.mark.asyncio
async def test_options_by_category_follow_part_type_order(db, bikes):
    async with db.session() as session:
        options = await PartOptionRepository(session).list_by_category("bicycles")
    assert len(options) == 13
    assert options[0].part_type_id == bikes.part_types["frame-type"].id
    assert options[-1].part_type_id == bikes.part_types["chain"].id


@pytest.mark.asyncio
async def test_get_many_skips_unknown_ids(db, bikes):
    ids = [bikes.options["matte"].id, "ghost"]
    async with db.session() as session:
        found = await PartOptionRepository(session).get_many(ids)
        assert await PartOptionRepository(session).get_many([]) == {}
    assert list(found) == [bikes.options["matte"].id]
    assert found[bikes.options["matte"].id].name == "Matte"


@pytest.mark.asyncio
async def test_partial_update(db, bikes):
    option_id = bikes.options["red-rim"].id
    async with db.transaction() as session:
        updated = await PartOptionRepository(session).update(
            option_id, PartOptionUpdate(base_price=Decimal("25"))
        )
    assert updated.base_price == Decimal("25")
    assert updated.name == "Red"
    assert updated.in_stock


@pytest.mark.asyncio
async def test_update_stock(db, bikes):
    option_id = bikes.options["blue-rim"].id
    async with db.transaction() as session:
        updated = await PartOptionRepository(session).update_stock(option_id, False, 0)
    assert not updated.in_stock
    assert updated.stock_count == 0


@pytest.mark.asyncio
async def test_constraints_load_rules_in_order(db, bikes):
    async with db.session() as session:
        constraints = await ConstraintRepository(session).list_by_category("bicycles")
    by_name = {c.name: c for c in constraints}
    fat = by_name["Fat bike wheels are not available with red rims"]
    assert [r.rule_type for r in fat.rules] == [RuleType.FORBIDS, RuleType.DISABLES]
    assert [c.name for c in constraints] == sorted(c.name for c in constraints)


@pytest.mark.asyncio
async def test_add_rule_to_missing_constraint(db):
    async with db.transaction() as session:
        rule = await ConstraintRepository(session).add_rule("nope", ConstraintRuleCreate(
            trigger_part_option_id="a", target_part_option_id="b", rule_type=RuleType.REQUIRES,
        ))
    assert rule is None


@pytest.mark.asyncio
async def test_pricing_rules_load_conditions_and_effects(db, bikes):
    async with db.session() as session:
        rules = await PricingRuleRepository(session).list_by_category("bicycles")
    assert len(rules) == 1
    rule = rules[0]
    assert {c.part_option_id for c in rule.conditions} == {
        bikes.options["matte"].id, bikes.options["full-suspension"].id,
    }
    assert rule.effects[0].effect_type == EffectType.REPLACE
    assert rule.effects[0].value == Decimal("50")
    assert rule.effects[0].target_part_option_id == bikes.options["matte"].id


def _draft(bikes, *keys, **overrides):
    values = dict(
        id=new_id(),
        product_id=bikes.product.id,
        selections=bikes.selections(*keys),
        total_price=Decimal("1073.00"),
        is_valid=True,
        validation_errors=[],
        created_at=utcnow(),
    )
    values.update(overrides)
    return ProductConfiguration(**values)


@pytest.mark.asyncio
async def test_save_configuration_keeps_selection_order(db, bikes, standard_build):
    draft = _draft(bikes, *reversed(standard_build))
    async with db.transaction() as session:
        saved = await ConfigurationRepository(session).save(draft)
    assert saved.state == ConfigurationState.PERSISTED

    async with db.session() as session:
        fetched = await ConfigurationRepository(session).get(draft.id)
    assert fetched.selections == draft.selections
    assert fetched.total_price == Decimal("1073.00")
    assert fetched.is_valid


@pytest.mark.asyncio
async def test_create_configuration_from_dict(db, bikes):
    async with db.transaction() as session:
        saved = await ConfigurationRepository(session).create({
            "product_id": bikes.product.id,
            "is_valid": False,
            "validation_errors": ["Frame Type is required but not selected"],
        })
    assert saved.id
    assert saved.total_price == Decimal("0")
    assert saved.validation_errors == ["Frame Type is required but not selected"]


@pytest.mark.asyncio
async def test_persisted_configuration_cannot_be_saved_again(db, bikes, standard_build):
    draft = _draft(bikes, *standard_build)
    async with db.transaction() as session:
        saved = await ConfigurationRepository(session).save(draft)

    with pytest.raises(InvalidStateTransition):
        async with db.transaction() as session:
            await ConfigurationRepository(session).save(saved)


@pytest.mark.asyncio
async def test_configurations_are_immutable(db, bikes, standard_build):
    draft = _draft(bikes, *standard_build)
    async with db.transaction() as session:
        await ConfigurationRepository(session).save(draft)

    with pytest.raises(ImmutableEntityError):
        async with db.transaction() as session:
            await ConfigurationRepository(session).update(draft.id, {"total_price": Decimal("1")})


@pytest.mark.asyncio
async def test_product_frozen_once_referenced(db, bikes, standard_build):
    async with db.transaction() as session:
        updated = await ProductRepository(session).update(
            bikes.product.id, ProductUpdate(description="Now with more trail")
        )
    assert updated.description == "Now with more trail"

    async with db.transaction() as session:
        await ConfigurationRepository(session).save(_draft(bikes, *standard_build))

    with pytest.raises(ImmutableEntityError):
        async with db.transaction() as session:
            await ProductRepository(session).update(
                bikes.product.id, ProductUpdate(base_price=Decimal("900"))
            )


@pytest.mark.asyncio
async def test_list_by_product(db, bikes, standard_build):
    async with db.transaction() as session:
        repo = ConfigurationRepository(session)
        await repo.save(_draft(bikes, *standard_build))
        await repo.save(_draft(bikes, *standard_build))
        await repo.save(_draft(bikes, *standard_build, product_id="other"))

    async with db.session() as session:
        configurations = await ConfigurationRepository(session).list_by_product(bikes.product.id)
    assert len(configurations) == 2


@pytest.mark.asyncio
async def test_unreachable_storage():
    db = Database("sqlite+aiosqlite:////nonexistent-dir/configurator.db")
    try:
        with pytest.raises(StorageUnavailable):
            async with db.session() as session:
                await ProductRepository(session).get("anything")
    finally:
        await db.close()


def test_selection_quantity_must_be_positive():
    with pytest.raises(ValueError):
        ConfigurationSelection(part_type_id="frame", part_option_id="diamond", quantity=0)
