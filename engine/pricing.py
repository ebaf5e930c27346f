"""Pure-function pricing engine.

total = product base price
      + sum(option base price x quantity)
      then, for each active pricing rule in ascending (priority, id) order
      whose conditions all hold, apply its effects in definition order
      to the running total.

Effects do not commute (ADD then MULTIPLY differs from MULTIPLY then
ADD), so the (priority, id) order is the contract. Intermediate totals may
go negative; only the final total is clamped at zero and rounded to the
currency quantum.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence

from engine.config import PricingConfig
from engine.rules import (
    Add,
    ConditionType,
    Multiply,
    PriceEffect,
    Replace,
    assert_never,
    compile_effect,
)

ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class AppliedRule:
    """A pricing rule whose conditions held, with the total around it."""

    rule_id: str
    name: str
    priority: int
    total_before: Decimal
    total_after: Decimal


@dataclass
class PriceBreakdown:
    base_price: Decimal
    options_total: Decimal
    applied_rules: list[AppliedRule] = field(default_factory=list)
    total: Decimal = ZERO


# ---------------------------------------------------------------------------
# Rule evaluation
# ---------------------------------------------------------------------------

def sort_pricing_rules(rules: Iterable[Any]) -> list[Any]:
    """Active rules in application order: priority ascending, then id."""
    return sorted((r for r in rules if r.is_active), key=lambda r: (r.priority, r.id))


def condition_holds(condition: Any, selected: set[str]) -> bool:
    match ConditionType(condition.condition_type):
        case ConditionType.SELECTED:
            return condition.part_option_id in selected
        case ConditionType.NOT_SELECTED:
            return condition.part_option_id not in selected
        case ConditionType.SELECTED_WITH:
            # Never gates a rule; pairing is expressed by the rule's other conditions.
            return True
        case other:
            assert_never(other)


def rule_applies(rule: Any, selected: set[str]) -> bool:
    """All conditions must hold; a rule without conditions always applies."""
    return all(condition_holds(c, selected) for c in rule.conditions)


def apply_effect(
    effect: PriceEffect,
    total: Decimal,
    selected: set[str],
    options: Mapping[str, Any],
) -> Decimal:
    match effect:
        case Add():
            return total + effect.value
        case Multiply():
            return total * effect.value
        case Replace(target_id=None):
            return effect.value
        case Replace():
            # Swap one option's contribution, only if that option is selected.
            original = options.get(effect.target_id)
            if effect.target_id in selected and original is not None:
                return total - original.base_price + effect.value
            return total
        case _:
            assert_never(effect)


# ---------------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------------

def finalize_total(total: Decimal, config: PricingConfig | None = None) -> Decimal:
    """Clamp at zero and round to the currency quantum."""
    config = config or PricingConfig()
    return max(ZERO, total).quantize(config.currency_quantum, rounding=config.rounding)


def price_breakdown(
    product: Any,
    selections: Sequence[Any],
    options: Mapping[str, Any],
    pricing_rules: Iterable[Any],
    config: PricingConfig | None = None,
) -> PriceBreakdown:
    """Compute the total for ``selections`` on ``product`` with a rule trace.

    ``options`` maps option id to option; selections whose option is
    missing contribute nothing (validation reports them).
    """
    selected = {s.part_option_id for s in selections}

    options_total = ZERO
    for selection in selections:
        option = options.get(selection.part_option_id)
        if option is not None:
            options_total += option.base_price * selection.quantity

    breakdown = PriceBreakdown(base_price=product.base_price, options_total=options_total)
    total = product.base_price + options_total

    for rule in sort_pricing_rules(pricing_rules):
        if not rule_applies(rule, selected):
            continue
        before = total
        for effect in rule.effects:
            total = apply_effect(compile_effect(effect), total, selected, options)
        breakdown.applied_rules.append(AppliedRule(
            rule_id=rule.id,
            name=rule.name,
            priority=rule.priority,
            total_before=before,
            total_after=total,
        ))

    breakdown.total = finalize_total(total, config)
    return breakdown


def calculate_total(
    product: Any,
    selections: Sequence[Any],
    options: Mapping[str, Any],
    pricing_rules: Iterable[Any],
    config: PricingConfig | None = None,
) -> Decimal:
    """Final, non-negative total; see ``price_breakdown``."""
    return price_breakdown(product, selections, options, pricing_rules, config).total
