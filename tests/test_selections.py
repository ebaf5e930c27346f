"""Test selection-set editing."""
from catalog.models.schemas import ConfigurationSelection
from catalog.selections import remove_selection, update_selection


def _sel(part_type_id, option_id, quantity=1):
    return ConfigurationSelection(
        part_type_id=part_type_id, part_option_id=option_id, quantity=quantity
    )


def test_update_appends_new_part_type():
    selections = update_selection([], _sel("frame", "diamond"))
    selections = update_selection(selections, _sel("wheels", "road"))
    assert [s.part_option_id for s in selections] == ["diamond", "road"]


def test_update_replaces_in_place():
    selections = [_sel("frame", "diamond"), _sel("wheels", "road"), _sel("chain", "single")]
    updated = update_selection(selections, _sel("wheels", "fat"))
    assert [s.part_option_id for s in updated] == ["diamond", "fat", "single"]
    assert len({s.part_type_id for s in updated}) == len(updated)


def test_update_does_not_mutate_input():
    selections = [_sel("frame", "diamond")]
    update_selection(selections, _sel("frame", "full"))
    assert selections[0].part_option_id == "diamond"


def test_remove_selection():
    selections = [_sel("frame", "diamond"), _sel("wheels", "road")]
    assert remove_selection(selections, "frame") == [_sel("wheels", "road")]
    assert remove_selection(selections, "rim") == selections
