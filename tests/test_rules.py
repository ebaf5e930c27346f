"""Test compilation of rule and effect rows into variants."""
from decimal import Decimal

import pytest

from catalog.models.schemas import ConstraintRule, PricingEffect
from engine.rules import (
    Add,
    Disables,
    Enables,
    Forbids,
    Multiply,
    Replace,
    Requires,
    RuleType,
    assert_never,
    compile_effect,
    compile_rule,
)


def _rule(rule_type):
    return ConstraintRule(
        id="r1",
        constraint_id="c1",
        trigger_part_option_id="a",
        target_part_option_id="b",
        rule_type=rule_type,
    )


@pytest.mark.parametrize("rule_type, variant", [
    (RuleType.REQUIRES, Requires),
    (RuleType.FORBIDS, Forbids),
    (RuleType.ENABLES, Enables),
    (RuleType.DISABLES, Disables),
])
def test_compile_rule(rule_type, variant):
    assert compile_rule(_rule(rule_type)) == variant("a", "b")


def test_compile_rule_from_plain_string_tag():
    class Row:
        rule_type = "DISABLES"
        trigger_part_option_id = "x"
        target_part_option_id = "y"

    assert compile_rule(Row()) == Disables("x", "y")


def test_compile_rule_unknown_tag():
    class Row:
        rule_type = "IMPLIES"
        trigger_part_option_id = "x"
        target_part_option_id = "y"

    with pytest.raises(ValueError):
        compile_rule(Row())


def test_compile_effects():
    add = PricingEffect(id="e1", pricing_rule_id="p", effect_type="ADD", value=Decimal("10"))
    mul = PricingEffect(id="e2", pricing_rule_id="p", effect_type="MULTIPLY", value=Decimal("1.1"))
    assert compile_effect(add) == Add(Decimal("10"))
    assert compile_effect(mul) == Multiply(Decimal("1.1"))


def test_compile_replace_keeps_target():
    targeted = PricingEffect(
        id="e1", pricing_rule_id="p", effect_type="REPLACE",
        value=Decimal("50"), target_part_option_id="matte",
    )
    untargeted = PricingEffect(id="e2", pricing_rule_id="p", effect_type="REPLACE", value=Decimal("5"))
    assert compile_effect(targeted) == Replace(Decimal("50"), "matte")
    assert compile_effect(untargeted).target_id is None


def test_compile_effect_float_value_is_exact():
    class Row:
        effect_type = "ADD"
        value = 0.1
        target_part_option_id = None

    assert compile_effect(Row()).value == Decimal("0.1")


def test_assert_never_raises():
    with pytest.raises(AssertionError):
        assert_never("unexpected")
