"""Rule vocabulary: storage tags and the closed variant types the engine runs on.

Rows carry string tags (``rule_type``, ``effect_type``). Before evaluation
each row is compiled into one frozen dataclass per kind, and the engine
dispatches on those with ``match`` so every kind is handled explicitly:

    CompatibilityRule = Requires | Forbids | Enables | Disables
    PriceEffect       = Add | Multiply | Replace
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, NoReturn, Union


# ---------------------------------------------------------------------------
# Storage tags
# ---------------------------------------------------------------------------

class ConstraintType(str, Enum):
    """Informational grouping of a constraint's rules."""

    REQUIRED_COMBINATION = "REQUIRED_COMBINATION"
    FORBIDDEN_COMBINATION = "FORBIDDEN_COMBINATION"
    CONDITIONAL_AVAILABILITY = "CONDITIONAL_AVAILABILITY"


class RuleType(str, Enum):
    REQUIRES = "REQUIRES"
    FORBIDS = "FORBIDS"
    ENABLES = "ENABLES"
    DISABLES = "DISABLES"


class PricingRuleType(str, Enum):
    """Informational tag; behaviour comes from the rule's effects."""

    FLAT_ADDITION = "FLAT_ADDITION"
    PERCENTAGE_MARKUP = "PERCENTAGE_MARKUP"
    REPLACEMENT_PRICE = "REPLACEMENT_PRICE"
    CONDITIONAL_PRICE = "CONDITIONAL_PRICE"


class ConditionType(str, Enum):
    SELECTED = "SELECTED"
    NOT_SELECTED = "NOT_SELECTED"
    SELECTED_WITH = "SELECTED_WITH"


class EffectType(str, Enum):
    ADD = "ADD"
    MULTIPLY = "MULTIPLY"
    REPLACE = "REPLACE"


# ---------------------------------------------------------------------------
# Compatibility rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Requires:
    """Selecting ``trigger_id`` requires ``target_id`` to be selected too."""

    trigger_id: str
    target_id: str


@dataclass(frozen=True)
class Forbids:
    """``trigger_id`` and ``target_id`` may not be selected together."""

    trigger_id: str
    target_id: str


@dataclass(frozen=True)
class Enables:
    trigger_id: str
    target_id: str


@dataclass(frozen=True)
class Disables:
    """Once ``trigger_id`` is selected, ``target_id`` is no longer offered."""

    trigger_id: str
    target_id: str


CompatibilityRule = Union[Requires, Forbids, Enables, Disables]


# ---------------------------------------------------------------------------
# Pricing effects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Add:
    value: Decimal


@dataclass(frozen=True)
class Multiply:
    value: Decimal


@dataclass(frozen=True)
class Replace:
    """Replace the running total, or one option's contribution when targeted."""

    value: Decimal
    target_id: str | None = None


PriceEffect = Union[Add, Multiply, Replace]


# ---------------------------------------------------------------------------
# Compilation from rows
# ---------------------------------------------------------------------------

def assert_never(value: NoReturn) -> NoReturn:
    raise AssertionError(f"Unhandled variant: {value!r}")


def compile_rule(rule: Any) -> CompatibilityRule:
    """Turn a constraint-rule row (anything with ``rule_type``,
    ``trigger_part_option_id`` and ``target_part_option_id``) into its variant.
    """
    trigger, target = rule.trigger_part_option_id, rule.target_part_option_id
    match RuleType(rule.rule_type):
        case RuleType.REQUIRES:
            return Requires(trigger, target)
        case RuleType.FORBIDS:
            return Forbids(trigger, target)
        case RuleType.ENABLES:
            return Enables(trigger, target)
        case RuleType.DISABLES:
            return Disables(trigger, target)
        case other:
            assert_never(other)


def compile_effect(effect: Any) -> PriceEffect:
    """Turn a pricing-effect row into its variant."""
    value = Decimal(str(effect.value))
    match EffectType(effect.effect_type):
        case EffectType.ADD:
            return Add(value)
        case EffectType.MULTIPLY:
            return Multiply(value)
        case EffectType.REPLACE:
            return Replace(value, effect.target_part_option_id)
        case other:
            assert_never(other)
