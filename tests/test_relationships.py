"""Relationship maintainer: bidirectional, idempotent links."""

import pytest
from sqlalchemy.exc import OperationalError

from kinbook.config import settings
from kinbook.core.graph_reader import relation_ids, family_member_ids
from kinbook.core.relationships import (
    link_by_relationship,
    link_parent_child,
    link_person_to_family,
    link_spouses,
)
from kinbook.errors import (
    BackendUnavailable,
    LineageCycleError,
    NotFoundError,
    ValidationFailure,
)
from kinbook.models.person_link import PersonLink


class TestParentChild:

    def test_both_sides_see_the_link(self, db, make_person):
        parent = make_person("Ann", "Lee")
        child = make_person("Cy", "Lee")

        result = link_parent_child(db, parent, child)

        assert result.created is True
        assert relation_ids(db, parent).child_ids == [child]
        assert relation_ids(db, child).parent_ids == [parent]

    def test_repeat_is_noop(self, db, make_person):
        parent = make_person("Ann", "Lee")
        child = make_person("Cy", "Lee")

        link_parent_child(db, parent, child)
        again = link_parent_child(db, parent, child)

        assert again.created is False
        assert db.query(PersonLink).count() == 1
        assert relation_ids(db, parent).child_ids == [child]

    def test_self_parent_rejected(self, db, make_person):
        ann = make_person("Ann", "Lee")
        with pytest.raises(ValidationFailure):
            link_parent_child(db, ann, ann)

    def test_missing_person(self, db, make_person):
        ann = make_person("Ann", "Lee")
        with pytest.raises(NotFoundError):
            link_parent_child(db, ann, "ghost")

    def test_cycles_allowed_by_default(self, db, make_person):
        a = make_person("A")
        b = make_person("B")

        link_parent_child(db, a, b)
        result = link_parent_child(db, b, a)

        assert result.created is True
        assert relation_ids(db, a).parent_ids == [b]

    def test_cycles_rejected_when_enforced(self, db, make_person, monkeypatch):
        monkeypatch.setattr(settings, "ENFORCE_ACYCLIC_LINEAGE", True)
        grandparent = make_person("G")
        parent = make_person("P")
        child = make_person("C")

        link_parent_child(db, grandparent, parent)
        link_parent_child(db, parent, child)

        with pytest.raises(LineageCycleError):
            link_parent_child(db, child, grandparent)

        assert relation_ids(db, grandparent).parent_ids == []

    def test_write_failure_leaves_no_half_link(self, db, make_person, monkeypatch):
        parent = make_person("Ann", "Lee")
        child = make_person("Cy", "Lee")

        def broken_commit():
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", broken_commit)

        with pytest.raises(BackendUnavailable):
            link_parent_child(db, parent, child)

        monkeypatch.undo()
        assert relation_ids(db, parent).child_ids == []
        assert relation_ids(db, child).parent_ids == []


class TestSpouses:

    def test_symmetric(self, db, make_person):
        ann = make_person("Ann", "Lee")
        bo = make_person("Bo", "Lee")

        link_spouses(db, ann, bo)

        assert relation_ids(db, ann).spouse_ids == [bo]
        assert relation_ids(db, bo).spouse_ids == [ann]

    def test_reverse_order_is_same_link(self, db, make_person):
        ann = make_person("Ann", "Lee")
        bo = make_person("Bo", "Lee")

        link_spouses(db, ann, bo)
        again = link_spouses(db, bo, ann)

        assert again.created is False
        assert db.query(PersonLink).count() == 1

    def test_self_spouse_rejected(self, db, make_person):
        ann = make_person("Ann", "Lee")
        with pytest.raises(ValidationFailure):
            link_spouses(db, ann, ann)


class TestFamilyMembership:

    def test_both_sides(self, db, make_person, make_family):
        ann = make_person("Ann", "Lee")
        lee = make_family("Lee Family")

        link_person_to_family(db, ann, lee)

        assert relation_ids(db, ann).family_ids == [lee]
        assert family_member_ids(db, lee) == [ann]

    def test_repeat_is_noop(self, db, make_person, make_family):
        ann = make_person("Ann", "Lee")
        lee = make_family("Lee Family")

        link_person_to_family(db, ann, lee)
        again = link_person_to_family(db, ann, lee)

        assert again.created is False
        assert family_member_ids(db, lee) == [ann]

    def test_missing_family(self, db, make_person):
        ann = make_person("Ann", "Lee")
        with pytest.raises(NotFoundError):
            link_person_to_family(db, ann, "no-family")


class TestLinkByRelationship:

    def test_parent_means_target_is_parent(self, db, make_person):
        me = make_person("Cy", "Lee")
        mum = make_person("Ann", "Lee")

        link_by_relationship(db, me, mum, "parent")

        assert relation_ids(db, me).parent_ids == [mum]

    def test_child_means_target_is_child(self, db, make_person):
        me = make_person("Ann", "Lee")
        kid = make_person("Cy", "Lee")

        link_by_relationship(db, me, kid, "child")

        assert relation_ids(db, me).child_ids == [kid]

    def test_spouse(self, db, make_person):
        me = make_person("Ann", "Lee")
        bo = make_person("Bo", "Lee")

        link_by_relationship(db, me, bo, "spouse")

        assert relation_ids(db, bo).spouse_ids == [me]

    def test_unknown_relationship(self, db, make_person):
        me = make_person("Ann", "Lee")
        bo = make_person("Bo", "Lee")
        with pytest.raises(ValidationFailure):
            link_by_relationship(db, me, bo, "cousin")
