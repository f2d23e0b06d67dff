from core.models import StatusFlag
from core.planner import plan
from fakes import make_entry

OWNED = {StatusFlag.OWN: True}


def test_new_entry_becomes_work_item():
    work = plan([make_entry(13, status=OWNED)], [])

    assert len(work) == 1
    assert work[0].entity_id == 13
    assert work[0].entry.status[StatusFlag.OWN] is True


def test_entry_already_in_collection_is_skipped():
    desired = [make_entry(13, status=OWNED)]
    existing = [make_entry(13, status=OWNED)]

    assert plan(desired, existing) == []


def test_same_game_with_different_status_is_planned():
    desired = [make_entry(13, status={StatusFlag.OWN: True, StatusFlag.FOR_TRADE: True})]
    existing = [make_entry(13, status=OWNED)]

    assert [w.entity_id for w in plan(desired, existing)] == [13]


def test_duplicates_in_input_keep_first_occurrence():
    first = make_entry(13, status=OWNED, variant_name="Deluxe")
    second = make_entry(13, status=OWNED, variant_name="Travel")

    work = plan([first, second], [])

    assert len(work) == 1
    assert work[0].entry is first


def test_input_order_is_preserved():
    desired = [
        make_entry(822, "Carcassonne", status=OWNED),
        make_entry(13, status=OWNED),
        make_entry(30549, "Pandemic", status={StatusFlag.WISHLIST: True}),
    ]
    existing = [make_entry(13, status=OWNED)]

    assert [w.entity_id for w in plan(desired, existing)] == [822, 30549]


def test_plan_is_a_pure_function_of_its_inputs():
    desired = [
        make_entry(13, status=OWNED),
        make_entry(13, status=OWNED),
        make_entry(822, "Carcassonne"),
    ]
    existing = [make_entry(822, "Carcassonne")]

    first = plan(desired, existing)
    second = plan(desired, existing)

    assert [w.entry for w in first] == [w.entry for w in second]
    assert len(first) == 1
