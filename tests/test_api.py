"""Tests for the HTTP surface in genealogy/main.py.

Requirements tested:
- REQ-A1: Derived views (summaries, tree, stats) are recomputed from the store on every request
- REQ-A2: Invalid input is rejected with 400/422, unknown ids with 404
- REQ-A3: Edits are written to the operation log
- REQ-A4: Event timelines can be edited and read per person or per family
"""


def _family(client, name="张氏"):
    return client.post("/api/families", json={"name": name}).json()


def _person(client, name, gender="male", generation=1, family_id=None):
    body = {"name": name, "gender": gender, "generation": generation, "family_id": family_id}
    return client.post("/api/people", json=body).json()


def _relate(client, a, b, rel_type="parent-child"):
    return client.post("/api/relations", json={"from_id": a["id"], "to_id": b["id"], "type": rel_type})


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"ok": True}


class TestFamilies:
    def test_crud(self, client):
        fam = _family(client)
        assert client.get(f"/api/families/{fam['id']}").json()["name"] == "张氏"
        resp = client.put(f"/api/families/{fam['id']}", json={"name": "张氏宗族"})
        assert resp.json()["name"] == "张氏宗族"
        assert len(client.get("/api/families").json()) == 1
        assert client.delete(f"/api/families/{fam['id']}").status_code == 200
        assert client.get(f"/api/families/{fam['id']}").status_code == 404

    def test_member_count(self, client):
        fam = _family(client)
        _person(client, "A", family_id=fam["id"])
        p = _person(client, "B", family_id=fam["id"])
        assert client.get(f"/api/families/{fam['id']}").json()["member_count"] == 2
        client.delete(f"/api/people/{p['id']}")
        assert client.get("/api/families").json()[0]["member_count"] == 1

    def test_person_in_unknown_family(self, client):
        resp = client.post("/api/people", json={"name": "A", "family_id": "missing"})
        assert resp.status_code == 404


class TestPeople:
    def test_create_and_list(self, client):
        _person(client, "张三")
        resp = client.get("/api/people")
        assert resp.status_code == 200
        assert [p["name"] for p in resp.json()] == ["张三"]

    def test_blank_name_rejected(self, client):
        assert client.post("/api/people", json={"name": " "}).status_code == 422

    def test_update(self, client):
        p = _person(client, "Old")
        resp = client.put(f"/api/people/{p['id']}", json={"name": "New", "gender": "female"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "New"
        assert resp.json()["gender"] == "female"

    def test_update_not_found(self, client):
        assert client.put("/api/people/nonexistent", json={"name": "X"}).status_code == 404

    def test_star(self, client):
        p = _person(client, "A")
        assert client.patch(f"/api/people/{p['id']}/star").json()["is_starred"] is True

    def test_delete(self, client):
        p = _person(client, "A")
        assert client.delete(f"/api/people/{p['id']}").status_code == 200
        assert client.get(f"/api/people/{p['id']}").status_code == 404
        assert client.delete(f"/api/people/{p['id']}").status_code == 404


class TestRelations:
    def test_create_and_list(self, client):
        a, b = _person(client, "A"), _person(client, "B", "female")
        resp = _relate(client, a, b, "spouse")
        assert resp.status_code == 200
        assert resp.json()["type"] == "spouse"
        assert len(client.get("/api/relations").json()) == 1
        assert len(client.get(f"/api/relations/person/{b['id']}").json()) == 1

    def test_self_relation_rejected(self, client):
        a = _person(client, "A")
        assert _relate(client, a, a).status_code == 422

    def test_unknown_person_rejected(self, client):
        a = _person(client, "A")
        assert _relate(client, a, {"id": "ghost"}).status_code == 400

    def test_delete(self, client):
        a, b = _person(client, "A"), _person(client, "B")
        rel = _relate(client, a, b).json()
        assert client.delete(f"/api/relations/{rel['id']}").status_code == 200
        assert client.delete(f"/api/relations/{rel['id']}").status_code == 404


class TestEvents:
    def _event(self, client, person, title="出生", event_type="birth", **extra):
        body = {"person_id": person["id"], "type": event_type, "title": title, **extra}
        return client.post("/api/events", json=body)

    def test_create_and_timeline(self, client):
        p = _person(client, "张三")
        self._event(client, p, "去世", "death", event_date="1990")
        resp = self._event(client, p, "出生", "birth", event_date="1920", location="苏州")
        assert resp.status_code == 200
        assert resp.json()["location"] == "苏州"
        timeline = client.get(f"/api/events/person/{p['id']}").json()
        assert [e["title"] for e in timeline] == ["出生", "去世"]
        assert len(client.get("/api/events").json()) == 2

    def test_invalid_input(self, client):
        p = _person(client, "张三")
        assert self._event(client, p, "X", "wedding").status_code == 422
        assert self._event(client, p, " ").status_code == 422
        assert self._event(client, {"id": "ghost"}).status_code == 400
        assert client.get("/api/events/person/ghost").status_code == 404

    def test_update_and_delete(self, client):
        p = _person(client, "张三")
        event = self._event(client, p).json()
        resp = client.put(f"/api/events/{event['id']}", json={"title": "出生于苏州"})
        assert resp.json()["title"] == "出生于苏州"
        assert resp.json()["type"] == "birth"
        assert client.put("/api/events/missing", json={"title": "X"}).status_code == 404
        assert client.delete(f"/api/events/{event['id']}").status_code == 200
        assert client.delete(f"/api/events/{event['id']}").status_code == 404

    def test_deleting_person_clears_timeline(self, client):
        p = _person(client, "张三")
        self._event(client, p)
        client.delete(f"/api/people/{p['id']}")
        assert client.get("/api/events").json() == []


class TestDerivedViews:
    def _build(self, client):
        fam = _family(client)
        fid = fam["id"]
        a = _person(client, "张大", "male", 1, fid)
        b = _person(client, "王芳", "female", 1, fid)
        c = _person(client, "张二", "male", 2, fid)
        _relate(client, a, b, "spouse")
        _relate(client, a, c)
        return fid, a, b, c

    def test_summaries(self, client):
        fid, a, b, c = self._build(client)
        data = client.get("/api/summaries", params={"family_id": fid}).json()
        assert data[a["id"]]["spouse_name"] == "王芳"
        assert data[a["id"]]["spouse_label"] == "之妻"
        assert data[a["id"]]["child_count"] == 1
        assert data[c["id"]]["parent_descriptions"] == ["张大父"]

    def test_tree(self, client):
        fid, a, b, c = self._build(client)
        tree = client.get("/api/tree", params={"family_id": fid}).json()
        assert tree["id"] == a["id"]
        assert tree["is_virtual"] is False
        assert [s["id"] for s in tree["spouses"]] == [b["id"]]
        assert [ch["id"] for ch in tree["children"]] == [c["id"]]

    def test_tree_recomputed_after_edit(self, client):
        fid, a, b, c = self._build(client)
        _person(client, "李四", "male", 1, fid)
        tree = client.get("/api/tree", params={"family_id": fid}).json()
        assert tree["is_virtual"] is True
        assert len(tree["children"]) == 2

    def test_empty_tree(self, client):
        fam = _family(client)
        resp = client.get("/api/tree", params={"family_id": fam["id"]})
        assert resp.status_code == 200
        assert resp.json() is None

    def test_stats(self, client):
        fid, a, b, c = self._build(client)
        stats = client.get("/api/stats", params={"family_id": fid}).json()
        assert stats["total"] == 3
        assert stats["spouse_count"] == 1
        assert stats["max_generation"] == 2
        assert stats["generation_distribution"] == {"1": 2, "2": 1}

    def test_person_relations(self, client):
        fid, a, b, c = self._build(client)
        data = client.get(f"/api/people/{c['id']}/relations").json()
        assert data == [{"relation_id": data[0]["relation_id"], "other_id": a["id"],
                         "other_name": "张大", "label": "父/母"}]

    def test_lineage(self, client):
        fid, a, b, c = self._build(client)
        data = client.get(f"/api/people/{c['id']}/lineage").json()
        assert data == {"ancestors": [a["id"]], "descendants": []}
        assert client.get("/api/people/nonexistent/lineage").status_code == 404


class TestOperations:
    def test_edits_logged(self, client):
        a = _person(client, "A")
        b = _person(client, "B")
        client.post("/api/relations", json={"from_id": a["id"], "to_id": b["id"], "type": "spouse"},
                    headers={"X-Operator": "editor"})
        ops = client.get("/api/operations").json()
        assert len(ops) == 3
        assert {o["entity_type"] for o in ops} == {"person", "relation"}
        relation_op = next(o for o in ops if o["entity_type"] == "relation")
        assert relation_op["operator"] == "editor"
        assert relation_op["summary"] == "A - B"

    def test_filtered_by_entity(self, client):
        a = _person(client, "A")
        _person(client, "B")
        client.put(f"/api/people/{a['id']}", json={"name": "A2"})
        ops = client.get("/api/operations", params={"entity_id": a["id"]}).json()
        assert [o["action"] for o in ops] == ["update", "create"]

    def test_event_logged(self, client):
        p = _person(client, "张三")
        event = client.post("/api/events", json={"person_id": p["id"], "title": "出生"}).json()
        ops = client.get("/api/operations", params={"entity_id": event["id"]}).json()
        assert len(ops) == 1
        assert ops[0]["entity_type"] == "event"
        assert ops[0]["summary"] == "张三 - 出生"
