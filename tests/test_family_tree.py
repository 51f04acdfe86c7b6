"""Flat family tree projection."""

from datetime import date

import pytest

from kinbook.core.family_tree import build_family_tree
from kinbook.core.relationships import link_parent_child, link_person_to_family, link_spouses
from kinbook.core.graph_reader import relation_ids
from kinbook.errors import NotFoundError


def test_empty_family_has_root_only(db, make_family):
    lee = make_family("Lee Family")

    tree = build_family_tree(db, lee)

    assert tree.name == "Lee Family"
    assert tree.children == []


def test_lee_family_scenario(db, make_person, make_family):
    ann = make_person("Ann", "Lee")
    bo = make_person("Bo", "Lee")

    link_spouses(db, ann, bo)
    assert relation_ids(db, ann).spouse_ids == [bo]
    assert relation_ids(db, bo).spouse_ids == [ann]

    lee = make_family("Lee Family")
    link_person_to_family(db, ann, lee)
    assert relation_ids(db, ann).family_ids == [lee]

    tree = build_family_tree(db, lee)
    assert [child.name for child in tree.children] == ["Ann Lee"]


def test_member_attributes(db, make_person, make_family):
    ann = make_person("Ann", "Lee", birth_date=date(1950, 4, 2), death_date=date(2020, 1, 9))
    lee = make_family("Lee Family", origin="Busan")
    link_person_to_family(db, ann, lee)

    tree = build_family_tree(db, lee)

    assert tree.attributes == {"origin": "Busan"}
    assert tree.children[0].attributes == {"birth": "1950-04-02", "death": "2020-01-09"}


def test_unknown_dates_are_empty_strings(db, make_person, make_family):
    bo = make_person("Bo", "Lee")
    lee = make_family("Lee Family")
    link_person_to_family(db, bo, lee)

    node = build_family_tree(db, lee).children[0]
    assert node.attributes == {"birth": "", "death": ""}


def test_projection_stays_flat(db, make_person, make_family):
    ann = make_person("Ann", "Lee")
    cy = make_person("Cy", "Lee")
    lee = make_family("Lee Family")

    link_parent_child(db, ann, cy)
    link_person_to_family(db, ann, lee)
    link_person_to_family(db, cy, lee)

    tree = build_family_tree(db, lee)

    assert [child.name for child in tree.children] == ["Ann Lee", "Cy Lee"]
    assert all(child.children == [] for child in tree.children)


def test_only_members_of_this_family(db, make_person, make_family):
    ann = make_person("Ann", "Lee")
    dee = make_person("Dee", "Kim")
    lee = make_family("Lee Family")
    kim = make_family("Kim Family")

    link_person_to_family(db, ann, lee)
    link_person_to_family(db, dee, kim)

    assert [c.name for c in build_family_tree(db, lee).children] == ["Ann Lee"]


def test_unknown_family(db):
    with pytest.raises(NotFoundError):
        build_family_tree(db, "no-such-family")


def test_member_name_without_last_name(db, make_person, make_family):
    bo = make_person("Bo")
    lee = make_family("Lee Family")
    link_person_to_family(db, bo, lee)

    assert build_family_tree(db, lee).children[0].name == "Bo"
