"""Graph reader: best-effort, order-preserving resolution."""

import pytest

from kinbook.constants import PEOPLE
from kinbook.core.entity_store import EntityStore
from kinbook.core.graph_reader import person_relatives, relation_ids, resolve_related
from kinbook.core.relationships import link_parent_child, link_person_to_family, link_spouses
from kinbook.errors import BackendUnavailable, NotFoundError


class TestResolveRelated:

    def test_empty_input(self, db):
        assert resolve_related(db, PEOPLE, []) == []

    def test_unknown_id_is_omitted_not_an_error(self, db):
        assert resolve_related(db, PEOPLE, ["does-not-exist"]) == []

    def test_preserves_input_order(self, db, make_person):
        ann = make_person("Ann", "Lee")
        bo = make_person("Bo", "Lee")
        cy = make_person("Cy", "Lee")

        resolved = resolve_related(db, PEOPLE, [cy, "gone", ann, bo])

        assert [p.id for p in resolved] == [cy, ann, bo]

    def test_falls_back_when_batch_lookup_fails(self, db, make_person, monkeypatch):
        ann = make_person("Ann", "Lee")
        bo = make_person("Bo", "Lee")

        def broken_batch(self, kind, ids):
            raise BackendUnavailable("batch lookup down")

        monkeypatch.setattr(EntityStore, "get_many", broken_batch)

        resolved = resolve_related(db, PEOPLE, [bo, ann])
        assert [p.id for p in resolved] == [bo, ann]

    def test_single_failed_lookup_is_skipped(self, db, make_person, monkeypatch):
        ann = make_person("Ann", "Lee")
        bo = make_person("Bo", "Lee")
        real_get = EntityStore.get

        def broken_batch(self, kind, ids):
            raise BackendUnavailable("batch lookup down")

        def flaky_get(self, kind, entity_id):
            if entity_id == ann:
                raise BackendUnavailable("timeout")
            return real_get(self, kind, entity_id)

        monkeypatch.setattr(EntityStore, "get_many", broken_batch)
        monkeypatch.setattr(EntityStore, "get", flaky_get)

        resolved = resolve_related(db, PEOPLE, [ann, bo])
        assert [p.id for p in resolved] == [bo]


class TestRelationViews:

    def test_relation_ids_for_everything(self, db, make_person, make_family):
        ann = make_person("Ann", "Lee")
        bo = make_person("Bo", "Lee")
        cy = make_person("Cy", "Lee")
        mum = make_person("Dee", "Kim")
        lee = make_family("Lee Family")

        link_spouses(db, ann, bo)
        link_parent_child(db, ann, cy)
        link_parent_child(db, mum, ann)
        link_person_to_family(db, ann, lee)

        ids = relation_ids(db, ann)
        assert ids.spouse_ids == [bo]
        assert ids.child_ids == [cy]
        assert ids.parent_ids == [mum]
        assert ids.family_ids == [lee]

    def test_person_relatives_materializes_each_group(self, db, make_person, make_family):
        ann = make_person("Ann", "Lee")
        bo = make_person("Bo", "Lee")
        cy = make_person("Cy", "Lee")
        lee = make_family("Lee Family")

        link_spouses(db, ann, bo)
        link_parent_child(db, ann, cy)
        link_person_to_family(db, ann, lee)

        relatives = person_relatives(db, ann)
        assert [p.display_name for p in relatives.spouses] == ["Bo Lee"]
        assert [p.display_name for p in relatives.children] == ["Cy Lee"]
        assert relatives.parents == []
        assert [f.name for f in relatives.families] == ["Lee Family"]

    def test_person_relatives_unknown_person(self, db):
        with pytest.raises(NotFoundError):
            person_relatives(db, "ghost")
