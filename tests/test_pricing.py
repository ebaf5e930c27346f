"""Test price computation and pricing-rule ordering."""
from decimal import Decimal

import pytest

from catalog.models.schemas import (
    ConfigurationSelection,
    PartOption,
    PricingCondition,
    PricingEffect,
    PricingRule,
    Product,
)
from engine.config import PricingConfig
from engine.pricing import (
    apply_effect,
    calculate_total,
    condition_holds,
    finalize_total,
    price_breakdown,
    rule_applies,
    sort_pricing_rules,
)
from engine.rules import Add, Multiply, Replace

PRODUCT = Product(id="bike", name="Bike", category_id="bikes", base_price=Decimal("800"))

OPTIONS = {
    o.id: o
    for o in [
        PartOption(id="full", name="Full-Suspension", part_type_id="frame", base_price=Decimal("130")),
        PartOption(id="diamond", name="Diamond", part_type_id="frame", base_price=Decimal("100")),
        PartOption(id="matte", name="Matte", part_type_id="finish", base_price=Decimal("35")),
        PartOption(id="road", name="Road Wheels", part_type_id="wheels", base_price=Decimal("80")),
        PartOption(id="black", name="Black", part_type_id="rim", base_price=Decimal("15")),
        PartOption(id="single", name="Single-Speed Chain", part_type_id="chain", base_price=Decimal("43")),
    ]
}


def _select(*option_ids, quantity=1):
    return [
        ConfigurationSelection(
            part_type_id=OPTIONS[o].part_type_id, part_option_id=o, quantity=quantity
        )
        for o in option_ids
    ]


def _rule(rule_id, priority, effects, conditions=(), is_active=True):
    return PricingRule(
        id=rule_id,
        name=rule_id,
        product_category_id="bikes",
        rule_type="CONDITIONAL_PRICE",
        priority=priority,
        is_active=is_active,
        conditions=[
            PricingCondition(
                id=f"{rule_id}-c{i}", pricing_rule_id=rule_id,
                part_option_id=option_id, condition_type=condition_type,
            )
            for i, (condition_type, option_id) in enumerate(conditions)
        ],
        effects=[
            PricingEffect(
                id=f"{rule_id}-e{i}", pricing_rule_id=rule_id,
                effect_type=effect_type, value=Decimal(value), target_part_option_id=target,
            )
            for i, (effect_type, value, target) in enumerate(effects)
        ],
    )


MATTE_ON_FULL = _rule(
    "matte-full",
    1,
    [("REPLACE", "50", "matte")],
    [("SELECTED", "matte"), ("SELECTED", "full")],
)


def test_plain_sum():
    total = calculate_total(
        PRODUCT, _select("diamond", "matte", "road", "black", "single"), OPTIONS, [MATTE_ON_FULL]
    )
    assert total == Decimal("1073.00")


def test_targeted_replace():
    total = calculate_total(
        PRODUCT, _select("full", "matte", "road", "black", "single"), OPTIONS, [MATTE_ON_FULL]
    )
    assert total == Decimal("1118.00")


def test_quantity_multiplies_option_price():
    total = calculate_total(PRODUCT, _select("black", quantity=2), OPTIONS, [])
    assert total == Decimal("830.00")


def test_missing_option_contributes_nothing():
    selections = [ConfigurationSelection(part_type_id="x", part_option_id="ghost")]
    assert calculate_total(PRODUCT, selections, OPTIONS, []) == Decimal("800.00")


def test_priority_order_is_applied():
    add = _rule("add", 1, [("ADD", "100", None)])
    double = _rule("double", 2, [("MULTIPLY", "2", None)])
    assert calculate_total(PRODUCT, [], OPTIONS, [double, add]) == Decimal("1800.00")

    add_late = _rule("add", 3, [("ADD", "100", None)])
    assert calculate_total(PRODUCT, [], OPTIONS, [double, add_late]) == Decimal("1700.00")


def test_priority_ties_break_on_id():
    rules = [_rule("b", 1, []), _rule("a", 1, []), _rule("c", 0, [])]
    assert [r.id for r in sort_pricing_rules(rules)] == ["c", "a", "b"]


def test_inactive_rules_are_skipped():
    rules = [_rule("off", 1, [("ADD", "100", None)], is_active=False)]
    assert sort_pricing_rules(rules) == []
    assert calculate_total(PRODUCT, [], OPTIONS, rules) == Decimal("800.00")


def test_effects_apply_in_definition_order():
    rule = _rule("mixed", 1, [("ADD", "200", None), ("MULTIPLY", "0.5", None)])
    assert calculate_total(PRODUCT, [], OPTIONS, [rule]) == Decimal("500.00")


def test_untargeted_replace_overrides_earlier_effects():
    rules = [
        _rule("markup", 1, [("MULTIPLY", "3", None)]),
        _rule("flat", 2, [("REPLACE", "999", None)]),
    ]
    assert calculate_total(PRODUCT, [], OPTIONS, rules) == Decimal("999.00")


def test_targeted_replace_skips_unselected_option():
    rule = _rule("swap", 1, [("REPLACE", "50", "matte")])
    assert calculate_total(PRODUCT, _select("road"), OPTIONS, [rule]) == Decimal("880.00")


def test_negative_totals_clamp_to_zero():
    rule = _rule("discount", 1, [("ADD", "-5000", None)])
    assert calculate_total(PRODUCT, _select("road"), OPTIONS, [rule]) == Decimal("0.00")


def test_negative_intermediate_totals_are_kept():
    rules = [
        _rule("down", 1, [("ADD", "-1000", None)]),
        _rule("up", 2, [("ADD", "300", None)]),
    ]
    assert calculate_total(PRODUCT, [], OPTIONS, rules) == Decimal("100.00")


def test_conditions():
    selected = {"matte"}

    def cond(condition_type, option_id):
        return PricingCondition(
            id="c", pricing_rule_id="r", part_option_id=option_id, condition_type=condition_type
        )

    assert condition_holds(cond("SELECTED", "matte"), selected)
    assert not condition_holds(cond("SELECTED", "full"), selected)
    assert not condition_holds(cond("NOT_SELECTED", "matte"), selected)
    assert condition_holds(cond("NOT_SELECTED", "full"), selected)


def test_selected_with_never_blocks_a_rule():
    condition = PricingCondition(
        id="c", pricing_rule_id="r", part_option_id="matte", condition_type="SELECTED_WITH"
    )
    assert condition_holds(condition, set())
    assert condition_holds(condition, {"matte"})

    rule = _rule("bundle", 1, [("ADD", "25", None)], [("SELECTED_WITH", "matte")])
    assert calculate_total(PRODUCT, _select("road"), OPTIONS, [rule]) == Decimal("905.00")


def test_rule_without_conditions_always_applies():
    assert rule_applies(_rule("always", 1, []), set())


def test_all_conditions_must_hold():
    assert not rule_applies(MATTE_ON_FULL, {"matte"})
    assert rule_applies(MATTE_ON_FULL, {"matte", "full"})


def test_apply_effect_variants():
    total = Decimal("100")
    assert apply_effect(Add(Decimal("5")), total, set(), OPTIONS) == Decimal("105")
    assert apply_effect(Multiply(Decimal("1.5")), total, set(), OPTIONS) == Decimal("150.0")
    assert apply_effect(Replace(Decimal("7")), total, set(), OPTIONS) == Decimal("7")
    assert apply_effect(Replace(Decimal("50"), "matte"), total, {"matte"}, OPTIONS) == Decimal("115")


def test_breakdown_traces_applied_rules():
    breakdown = price_breakdown(
        PRODUCT, _select("full", "matte"), OPTIONS, [MATTE_ON_FULL, _rule("never", 5, [], [("SELECTED", "road")])]
    )
    assert breakdown.base_price == Decimal("800")
    assert breakdown.options_total == Decimal("165")
    assert [a.rule_id for a in breakdown.applied_rules] == ["matte-full"]
    applied = breakdown.applied_rules[0]
    assert applied.total_before == Decimal("965")
    assert applied.total_after == Decimal("980")
    assert breakdown.total == Decimal("980.00")


@pytest.mark.parametrize("raw, expected", [
    (Decimal("10.005"), Decimal("10.01")),
    (Decimal("10.004"), Decimal("10.00")),
    (Decimal("-3"), Decimal("0.00")),
])
def test_finalize_total(raw, expected):
    assert finalize_total(raw) == expected


def test_finalize_total_custom_quantum():
    config = PricingConfig(currency_quantum=Decimal("1"))
    assert finalize_total(Decimal("10.5"), config) == Decimal("11")
