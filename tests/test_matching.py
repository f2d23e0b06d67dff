import itertools

import pytest

from core.matching import same_version
from core.models import CollectionEntry, StatusFlag
from fakes import make_entry

SAMPLES = [
    make_entry(13),
    make_entry(13, status={StatusFlag.OWN: True}),
    make_entry(13, status={StatusFlag.OWN: False}),
    make_entry(13, status={StatusFlag.WISHLIST: True, StatusFlag.WISHLIST_PRIORITY: 2}),
    make_entry(13, status={StatusFlag.WISHLIST: True}),
    make_entry(13, status={StatusFlag.COMMENT: "sleeved"}),
    make_entry(13, name="Settlers of Catan", status={StatusFlag.OWN: True}),
    make_entry(822, name="Carcassonne", status={StatusFlag.OWN: True}),
]


@pytest.mark.parametrize("entry", SAMPLES)
def test_reflexive(entry):
    assert same_version(entry, entry)


@pytest.mark.parametrize("a,b", list(itertools.product(SAMPLES, repeat=2)))
def test_symmetric(a, b):
    assert same_version(a, b) == same_version(b, a)


def test_absent_boolean_equals_false():
    assert same_version(make_entry(13), make_entry(13, status={StatusFlag.OWN: False}))


def test_boolean_difference_is_a_mismatch():
    assert not same_version(make_entry(13), make_entry(13, status={StatusFlag.OWN: True}))


def test_absent_priority_only_matches_absent():
    wished = make_entry(13, status={StatusFlag.WISHLIST: True})
    prioritized = make_entry(13, status={StatusFlag.WISHLIST: True, StatusFlag.WISHLIST_PRIORITY: 2})
    assert not same_version(wished, prioritized)


def test_empty_comment_counts_as_absent():
    assert same_version(make_entry(13), make_entry(13, status={StatusFlag.COMMENT: ""}))
    assert not same_version(make_entry(13), make_entry(13, status={StatusFlag.COMMENT: "x"}))


def test_name_and_id_must_both_match():
    assert not same_version(make_entry(13, "Catan"), make_entry(13, "CATAN"))
    assert not same_version(make_entry(13, "Catan"), make_entry(14, "Catan"))


def test_variant_fields_do_not_take_part():
    plain = make_entry(13, status={StatusFlag.OWN: True})
    versioned = CollectionEntry(
        entity_id=13,
        entity_name="Catan",
        variant_name="Deluxe",
        variant_year="2015",
        status={StatusFlag.OWN: True},
    )
    assert same_version(plain, versioned)
