"""Editing a selection set while a customer configures a product.

A selection set holds at most one selection per part type. Both helpers
return a new list and leave their input untouched.
"""

from typing import Sequence

from catalog.models.schemas import ConfigurationSelection


def update_selection(
    selections: Sequence[ConfigurationSelection], selection: ConfigurationSelection
) -> list[ConfigurationSelection]:
    """Set the choice for ``selection.part_type_id``.

    An existing selection for that part type is replaced in place (its
    position is kept); otherwise the selection is appended.
    """
    updated = list(selections)
    for index, current in enumerate(updated):
        if current.part_type_id == selection.part_type_id:
            updated[index] = selection
            return updated
    updated.append(selection)
    return updated


def remove_selection(
    selections: Sequence[ConfigurationSelection], part_type_id: str
) -> list[ConfigurationSelection]:
    return [s for s in selections if s.part_type_id != part_type_id]
