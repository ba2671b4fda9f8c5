import uuid


def _create(client, actor_id, slug="landing", components=None):
    resp = client.post(
        "/cms/pages",
        json={
            "title": "Landing",
            "slug": slug,
            "created_by": str(actor_id),
            "metadata_": {"campaign": "spring"},
            "components": components
            or [
                {"component_type": "hero", "props": {"title": "Hi"}},
                {"component_type": "text", "props": {"body": "..."}},
            ],
        },
    )
    assert resp.status_code == 201
    return resp.json()


class TestPageEndpoints:
    def test_create(self, client, actor_id):
        data = _create(client, actor_id, slug="Spring Sale")
        assert data["slug"] == "spring-sale"
        assert data["status"] == "draft"
        assert data["revision"] == 1
        assert [c["position"] for c in data["components"]] == [0, 1]

    def test_create_validation_error(self, client):
        resp = client.post("/cms/pages", json={"title": "No slug"})
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"

    def test_get(self, client, page):
        resp = client.get(f"/cms/pages/{page.id}")
        assert resp.status_code == 200
        assert resp.json()["id"] == str(page.id)

    def test_get_not_found(self, client):
        resp = client.get(f"/cms/pages/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["code"] == "not_found"

    def test_versioned_prefix(self, client, page):
        resp = client.get(f"/api/v1/cms/pages/{page.id}")
        assert resp.status_code == 200

    def test_list(self, client, page):
        resp = client.get("/cms/pages?status=draft")
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 1
        assert data["items"][0]["slug"] == "home"

    def test_list_invalid_order(self, client, page):
        resp = client.get("/cms/pages?order_by=nope")
        assert resp.status_code == 400

    def test_preview(self, client, page):
        resp = client.get(f"/cms/pages/{page.id}/preview")
        assert resp.status_code == 200
        types = [c["component_type"] for c in resp.json()["components"]]
        assert types == ["hero", "text", "cta"]

    def test_update(self, client, page, actor_id):
        resp = client.patch(
            f"/cms/pages/{page.id}",
            json={
                "expected_revision": 1,
                "updated_by": str(actor_id),
                "description": "Front page",
            },
        )
        assert resp.status_code == 200
        assert resp.json()["description"] == "Front page"
        assert resp.json()["revision"] == 2

    def test_update_stale_revision(self, client, page, actor_id):
        resp = client.patch(
            f"/cms/pages/{page.id}",
            json={"expected_revision": 7, "updated_by": str(actor_id), "title": "X"},
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "conflict"

    def test_delete(self, client, page):
        resp = client.delete(f"/cms/pages/{page.id}")
        assert resp.status_code == 204
        assert client.get(f"/cms/pages/{page.id}").status_code == 404

    def test_duplicate(self, client, page, actor_id):
        resp = client.post(
            f"/cms/pages/{page.id}/duplicate",
            json={"new_slug": "home-2", "actor_id": str(actor_id)},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["title"] == "Home (Copy)"
        assert len(data["components"]) == 3

    def test_published_by_slug(self, client, page, actor_id):
        assert client.get("/cms/pages/slug/home").status_code == 404
        client.post(f"/cms/pages/{page.id}/publish", json={"actor_id": str(actor_id)})
        resp = client.get("/cms/pages/slug/home")
        assert resp.status_code == 200
        assert resp.json()["status"] == "published"


class TestComponentEndpoints:
    def test_get_components(self, client, page):
        resp = client.get(f"/cms/pages/{page.id}/components")
        assert resp.status_code == 200
        assert [c["position"] for c in resp.json()] == [0, 1, 2]

    def test_replace_components(self, client, page, actor_id):
        resp = client.put(
            f"/cms/pages/{page.id}/components",
            json={
                "expected_revision": 1,
                "actor_id": str(actor_id),
                "components": [
                    {"component_type": "b", "position": 9},
                    {"component_type": "a", "position": 2},
                ],
            },
        )
        assert resp.status_code == 200
        assert [(c["component_type"], c["position"]) for c in resp.json()] == [
            ("a", 0),
            ("b", 1),
        ]
        versions = client.get(f"/cms/pages/{page.id}/versions").json()
        assert versions["items"][0]["version_number"] == 2

    def test_replace_components_stale(self, client, page, actor_id):
        resp = client.put(
            f"/cms/pages/{page.id}/components",
            json={"expected_revision": 3, "actor_id": str(actor_id), "components": []},
        )
        assert resp.status_code == 409


class TestVersionEndpoints:
    def _version_id(self, client, page_id, number):
        resp = client.get(f"/cms/pages/{page_id}/versions/number/{number}")
        assert resp.status_code == 200
        return resp.json()["id"]

    def test_create_and_list(self, client, page, actor_id):
        resp = client.post(
            f"/cms/pages/{page.id}/versions",
            json={"actor_id": str(actor_id), "change_description": "Checkpoint"},
        )
        assert resp.status_code == 201
        assert resp.json()["version_number"] == 2
        listing = client.get(f"/cms/pages/{page.id}/versions").json()
        assert [v["version_number"] for v in listing["items"]] == [2, 1]

    def test_get_and_preview(self, client, page):
        version_id = self._version_id(client, page.id, 1)
        resp = client.get(f"/cms/pages/{page.id}/versions/{version_id}")
        assert resp.status_code == 200
        preview = client.get(f"/cms/pages/{page.id}/versions/{version_id}/preview")
        assert preview.status_code == 200
        assert preview.json()["version_number"] == 1
        assert len(preview.json()["components"]) == 3

    def test_delete_current_version(self, client, page):
        version_id = self._version_id(client, page.id, 1)
        resp = client.delete(f"/cms/pages/{page.id}/versions/{version_id}")
        assert resp.status_code == 400
        assert resp.json()["code"] == "invalid_operation"

    def test_restore_and_compare(self, client, page, actor_id):
        client.put(
            f"/cms/pages/{page.id}/components",
            json={
                "expected_revision": 1,
                "actor_id": str(actor_id),
                "components": [{"component_type": "gallery"}],
            },
        )
        first = self._version_id(client, page.id, 1)
        resp = client.post(
            f"/cms/pages/{page.id}/versions/{first}/restore",
            json={"actor_id": str(actor_id)},
        )
        assert resp.status_code == 200
        assert resp.json()["metadata_"]["restored_from_version"] == 1
        latest = self._version_id(client, page.id, 3)

        resp = client.get(
            f"/cms/pages/{page.id}/versions/compare",
            params={"version_a": first, "version_b": latest},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["strategy"] == "positional"
        assert body["comparison"]["summary"]["modified_count"] == 0

        second = self._version_id(client, page.id, 2)
        resp = client.get(
            f"/cms/pages/{page.id}/versions/compare",
            params={"version_a": first, "version_b": second, "strategy": "content"},
        )
        assert resp.status_code == 200
        summary = resp.json()["comparison"]["summary"]
        assert summary["added_count"] + summary["modified_count"] >= 1
