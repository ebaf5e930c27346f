"""Pure-function constraint engine.

Answers two questions over data the caller has already loaded:
- is option O offerable given selections S? (``is_option_available``)
- does a selection set violate the catalog's rules? (``validate_selections``)

No database, no IO, no shared state: every call takes its inputs by value
and returns a fresh result, so the functions are safe to call from any
number of concurrent requests.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from engine.rules import (
    CompatibilityRule,
    Disables,
    Enables,
    Forbids,
    Requires,
    assert_never,
    compile_rule,
)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class ValidationResult:
    """Outcome of validating a selection set.

    ``is_valid`` is derived: it is true exactly when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    is_valid: bool = field(init=False)

    def __post_init__(self):
        self.is_valid = len(self.errors) == 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def selected_option_ids(selections: Iterable[Any]) -> set[str]:
    return {s.part_option_id for s in selections}


def active_constraints(constraints: Iterable[Any]) -> list[Any]:
    return [c for c in constraints if c.is_active]


def compiled_rules(constraint: Any) -> list[CompatibilityRule]:
    return [compile_rule(rule) for rule in constraint.rules]


def _option_name(options: Mapping[str, Any], option_id: str) -> str:
    option = options.get(option_id)
    return option.name if option is not None else option_id


# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------

def is_option_available(option: Any, selections: Sequence[Any], constraints: Iterable[Any]) -> bool:
    """False if any active DISABLES rule targets ``option`` and its trigger is selected.

    DISABLES rules form an unordered set: one matching trigger is enough.
    The ``is_active``/``in_stock`` pre-check is the caller's job (see
    ``filter_available_options``).
    """
    selected = selected_option_ids(selections)
    for constraint in active_constraints(constraints):
        for rule in compiled_rules(constraint):
            match rule:
                case Disables():
                    if rule.target_id == option.id and rule.trigger_id in selected:
                        return False
                case Requires() | Forbids() | Enables():
                    pass
                case _:
                    assert_never(rule)
    return True


def filter_available_options(
    options: Iterable[Any], selections: Sequence[Any], constraints: Sequence[Any]
) -> list[Any]:
    """Keep offerable options (active, in stock, not disabled), preserving order."""
    return [
        option
        for option in options
        if option.is_active and option.in_stock
        and is_option_available(option, selections, constraints)
    ]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_constraint(
    constraint: Any, selections: Sequence[Any], options: Mapping[str, Any]
) -> list[str]:
    """Errors produced by one constraint's REQUIRES / FORBIDS rules.

    ENABLES and DISABLES only shape availability and never add errors here.
    ``options`` maps option id to option and supplies names for messages.
    """
    selected = selected_option_ids(selections)
    errors = []
    for rule in compiled_rules(constraint):
        trigger_selected = rule.trigger_id in selected
        target_selected = rule.target_id in selected
        match rule:
            case Requires():
                if trigger_selected and not target_selected:
                    errors.append(
                        f"{_option_name(options, rule.trigger_id)} requires "
                        f"{_option_name(options, rule.target_id)}"
                    )
            case Forbids():
                if trigger_selected and target_selected:
                    errors.append(
                        f"{_option_name(options, rule.trigger_id)} cannot be combined with "
                        f"{_option_name(options, rule.target_id)}"
                    )
            case Enables() | Disables():
                pass
            case _:
                assert_never(rule)
    return errors


def validate_selections(
    product: Any | None,
    part_types: Iterable[Any],
    constraints: Iterable[Any],
    selections: Sequence[Any],
    options: Mapping[str, Any],
) -> ValidationResult:
    """Validate a complete selection set for ``product``.

    Errors accumulate without short-circuiting, in this order:
    1. required part types with no selection
    2. part types selected more than once
    3. constraint violations, in constraint order
    4. per-selection availability problems, in selection order

    A missing product yields the single error "Product not found".
    """
    if product is None:
        return ValidationResult(errors=["Product not found"])

    errors: list[str] = []
    part_types = list(part_types)

    chosen = Counter(s.part_type_id for s in selections)
    for part_type in part_types:
        if part_type.is_required and part_type.id not in chosen:
            errors.append(f"{part_type.name} is required but not selected")
    names = {part_type.id: part_type.name for part_type in part_types}
    for part_type_id, count in chosen.items():
        if count > 1:
            errors.append(f"Only one {names.get(part_type_id, part_type_id)} can be selected")

    for constraint in active_constraints(constraints):
        errors.extend(validate_constraint(constraint, selections, options))

    for selection in selections:
        option = options.get(selection.part_option_id)
        if option is None:
            errors.append("Selected part option not found")
            continue
        if not option.is_active:
            errors.append(f"{option.name} is no longer available")
        if not option.in_stock:
            errors.append(f"{option.name} is temporarily out of stock")

    return ValidationResult(errors=errors)


def referenced_option_ids(selections: Iterable[Any], constraints: Iterable[Any]) -> set[str]:
    """Every option id validation may need to look up (selected or named by a rule)."""
    ids = selected_option_ids(selections)
    for constraint in active_constraints(constraints):
        for rule in constraint.rules:
            ids.add(rule.trigger_part_option_id)
            ids.add(rule.target_part_option_id)
    return ids
