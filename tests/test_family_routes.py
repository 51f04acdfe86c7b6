"""Family routes: create, list, members, tree."""

from kinbook.core.entity_store import EntityStore
from kinbook.errors import BackendUnavailable, GENERIC_BACKEND_MESSAGE


def create_family(client, name, **fields):
    response = client.post("/families", json={"name": name, **fields})
    assert response.status_code == 200, response.text
    return response.json()


def create_person(client, first_name, last_name):
    response = client.post("/people", json={"first_name": first_name, "last_name": last_name})
    assert response.status_code == 200, response.text
    return response.json()


def test_create_and_get(auth_client):
    lee = create_family(auth_client, "Lee Family", origin="Busan")

    response = auth_client.get(f"/families/{lee['id']}")
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Lee Family"
    assert body["origin"] == "Busan"
    assert body["members"] == []


def test_blank_name_rejected(auth_client):
    response = auth_client.post("/families", json={"name": "   "})
    assert response.status_code == 400


def test_list_is_ordered_by_name(auth_client):
    create_family(auth_client, "Park Family")
    create_family(auth_client, "Kim Family")

    response = auth_client.get("/families")
    assert [f["name"] for f in response.json()] == ["Kim Family", "Park Family"]


def test_search(auth_client):
    create_family(auth_client, "Lee Family")
    create_family(auth_client, "Kim Family")

    response = auth_client.get("/families/search", params={"q": "LE"})
    assert [f["name"] for f in response.json()] == ["Lee Family"]


def test_members(auth_client):
    lee = create_family(auth_client, "Lee Family")
    ann = create_person(auth_client, "Ann", "Lee")

    response = auth_client.post(f"/families/{lee['id']}/members", json={"person_id": ann["id"]})
    assert response.status_code == 200
    assert response.json()["created"] is True

    again = auth_client.post(f"/families/{lee['id']}/members", json={"person_id": ann["id"]})
    assert again.json()["created"] is False

    members = auth_client.get(f"/families/{lee['id']}/members").json()
    assert [m["display_name"] for m in members] == ["Ann Lee"]

    assert auth_client.get(f"/families/{lee['id']}").json()["members"] == [ann["id"]]
    assert auth_client.get(f"/people/{ann['id']}").json()["family_ids"] == [lee["id"]]


def test_tree(auth_client):
    lee = create_family(auth_client, "Lee Family", origin="Busan")
    ann = create_person(auth_client, "Ann", "Lee")
    auth_client.post(f"/families/{lee['id']}/members", json={"person_id": ann["id"]})

    response = auth_client.get(f"/families/{lee['id']}/tree")
    assert response.status_code == 200
    assert response.json() == {
        "name": "Lee Family",
        "attributes": {"origin": "Busan"},
        "children": [
            {"name": "Ann Lee", "attributes": {"birth": "", "death": ""}, "children": []},
        ],
    }


def test_unknown_family(auth_client):
    assert auth_client.get("/families/nope").status_code == 404
    assert auth_client.get("/families/nope/tree").status_code == 404

    ann = create_person(auth_client, "Ann", "Lee")
    response = auth_client.post("/families/nope/members", json={"person_id": ann["id"]})
    assert response.status_code == 404


def test_backend_failure_is_generic(auth_client, monkeypatch):
    def broken_list(self, *args, **kwargs):
        raise BackendUnavailable("connection reset by peer")

    monkeypatch.setattr(EntityStore, "list", broken_list)

    response = auth_client.get("/families")
    assert response.status_code == 503
    assert response.json() == {"detail": GENERIC_BACKEND_MESSAGE}
