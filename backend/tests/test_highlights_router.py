"""
API tests for the highlights router.

Documents are registered directly through db_service; each test uses its
own user id so tests sharing the module-level database stay independent.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from main import app
from studydesk.services.database_service import db_service

client = TestClient(app)


@pytest.fixture
def user_id():
    return f"user-{uuid.uuid4()}"


@pytest.fixture
def document_id(user_id):
    return db_service.create_document(
        user_id=user_id,
        title="Biology",
        file_name="biology.pdf",
        num_pages=5,
        file_path="uploads/biology.pdf",
    )


def _pixel_payload(document_id, user_id, **overrides):
    payload = {
        "document_id": document_id,
        "user_id": user_id,
        "page_number": 1,
        "selected_text": "photosynthesis",
        "selection_rect": {"left": 180, "top": 150, "width": 160, "height": 20},
        "page_rect": {"left": 100, "top": 50, "width": 800, "height": 1000},
    }
    payload.update(overrides)
    return payload


def _relative_payload(document_id, user_id, **overrides):
    payload = {
        "document_id": document_id,
        "user_id": user_id,
        "page_number": 1,
        "selected_text": "chlorophyll",
        "relative_x": 0.1,
        "relative_y": 0.1,
        "relative_width": 0.2,
        "relative_height": 0.02,
    }
    payload.update(overrides)
    return payload


class TestCreateHighlight:
    def test_create_from_pixel_boxes(self, document_id, user_id):
        response = client.post("/highlights/", json=_pixel_payload(document_id, user_id))

        assert response.status_code == 200
        data = response.json()
        assert data["relative_x"] == pytest.approx(0.1)
        assert data["relative_y"] == pytest.approx(0.1)
        assert data["relative_width"] == pytest.approx(0.2)
        assert data["relative_height"] == pytest.approx(0.02)
        assert data["color"] == "#ffff00"

    def test_create_from_relative_values(self, document_id, user_id):
        response = client.post(
            "/highlights/",
            json=_relative_payload(document_id, user_id, id="client-" + user_id, note="n"),
        )

        assert response.status_code == 200
        assert response.json()["id"] == "client-" + user_id
        assert response.json()["note"] == "n"

    def test_duplicate_id_is_conflict(self, document_id, user_id):
        payload = _relative_payload(document_id, user_id, id="dup-" + user_id)
        client.post("/highlights/", json=payload)

        response = client.post("/highlights/", json=payload)

        assert response.status_code == 409

    def test_zero_width_page_is_invalid_geometry(self, document_id, user_id):
        payload = _pixel_payload(
            document_id,
            user_id,
            page_rect={"left": 0, "top": 0, "width": 0, "height": 1000},
        )

        response = client.post("/highlights/", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_geometry"

    def test_empty_text_is_invalid_geometry(self, document_id, user_id):
        response = client.post(
            "/highlights/", json=_pixel_payload(document_id, user_id, selected_text="  ")
        )

        assert response.status_code == 400
        assert client.get(
            f"/highlights/document/{document_id}", params={"user_id": user_id}
        ).json() == []

    def test_leading_overhang_is_clipped(self, document_id, user_id):
        payload = _pixel_payload(
            document_id,
            user_id,
            selection_rect={"left": 90, "top": 150, "width": 110, "height": 20},
        )

        response = client.post("/highlights/", json=payload)

        assert response.status_code == 200
        assert response.json()["relative_x"] == 0.0
        assert response.json()["relative_width"] == pytest.approx(0.125)

    def test_missing_geometry(self, document_id, user_id):
        payload = {
            "document_id": document_id,
            "user_id": user_id,
            "page_number": 1,
            "selected_text": "text",
        }

        assert client.post("/highlights/", json=payload).status_code == 400

    def test_page_out_of_range(self, document_id, user_id):
        response = client.post(
            "/highlights/", json=_relative_payload(document_id, user_id, page_number=6)
        )

        assert response.status_code == 400

    def test_page_zero_fails_validation(self, document_id, user_id):
        response = client.post(
            "/highlights/", json=_relative_payload(document_id, user_id, page_number=0)
        )

        assert response.status_code == 422

    def test_other_users_document_is_forbidden(self, document_id):
        response = client.post(
            "/highlights/", json=_relative_payload(document_id, "someone-else")
        )

        assert response.status_code == 403

    def test_unknown_document(self, user_id):
        response = client.post("/highlights/", json=_relative_payload("missing", user_id))

        assert response.status_code == 404


class TestReadAndUpdate:
    def test_list_in_creation_order_and_filter_by_page(self, document_id, user_id):
        first = client.post(
            "/highlights/", json=_relative_payload(document_id, user_id)
        ).json()
        second = client.post(
            "/highlights/", json=_relative_payload(document_id, user_id, page_number=2)
        ).json()

        all_highlights = client.get(
            f"/highlights/document/{document_id}", params={"user_id": user_id}
        ).json()
        page_two = client.get(
            f"/highlights/document/{document_id}",
            params={"user_id": user_id, "page_number": 2},
        ).json()

        assert [h["id"] for h in all_highlights] == [first["id"], second["id"]]
        assert [h["id"] for h in page_two] == [second["id"]]

    def test_update_note_keeps_geometry(self, document_id, user_id):
        created = client.post(
            "/highlights/", json=_relative_payload(document_id, user_id)
        ).json()

        response = client.put(
            f"/highlights/{created['id']}/note",
            json={"user_id": user_id, "note": "Key term"},
        )

        assert response.status_code == 200
        assert response.json()["note"] == "Key term"
        assert response.json()["relative_x"] == created["relative_x"]

    def test_get_by_id_of_other_user(self, document_id, user_id):
        created = client.post(
            "/highlights/", json=_relative_payload(document_id, user_id)
        ).json()

        response = client.get(
            f"/highlights/id/{created['id']}", params={"user_id": "someone-else"}
        )

        assert response.status_code == 403

    def test_delete(self, document_id, user_id):
        created = client.post(
            "/highlights/", json=_relative_payload(document_id, user_id)
        ).json()

        response = client.delete(f"/highlights/{created['id']}", params={"user_id": user_id})

        assert response.status_code == 200
        assert (
            client.get(
                f"/highlights/id/{created['id']}", params={"user_id": user_id}
            ).status_code
            == 404
        )

    def test_stats(self, document_id, user_id):
        client.post("/highlights/", json=_relative_payload(document_id, user_id))
        client.post(
            "/highlights/", json=_relative_payload(document_id, user_id, page_number=3)
        )

        stats = client.get("/highlights/stats/count", params={"user_id": user_id}).json()

        assert stats[document_id]["highlights_count"] == 2
        assert stats[document_id]["pages_highlighted"] == 2


class TestOverlay:
    def test_overlay_projects_page_highlights(self, document_id, user_id):
        created = client.post(
            "/highlights/", json=_pixel_payload(document_id, user_id)
        ).json()
        client.post(
            "/highlights/", json=_relative_payload(document_id, user_id, page_number=2)
        )

        response = client.post(
            f"/highlights/document/{document_id}/page/1/overlay",
            json={
                "user_id": user_id,
                "page_rect": {"left": 0, "top": 0, "width": 400, "height": 500},
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["scale_x"] == 400
        assert [o["highlight_id"] for o in data["overlays"]] == [created["id"]]
        overlay = data["overlays"][0]
        assert overlay["x"] == pytest.approx(40)
        assert overlay["y"] == pytest.approx(50)
        assert overlay["width"] == pytest.approx(80)
        assert overlay["height"] == pytest.approx(10)

    def test_overlay_with_container_offset(self, document_id, user_id):
        client.post("/highlights/", json=_relative_payload(document_id, user_id))

        response = client.post(
            f"/highlights/document/{document_id}/page/1/overlay",
            json={
                "user_id": user_id,
                "page_rect": {"left": 150, "top": 80, "width": 400, "height": 500},
                "container_rect": {"left": 100, "top": 30, "width": 800, "height": 2000},
            },
        )

        overlay = response.json()["overlays"][0]
        assert overlay["x"] == pytest.approx(50 + 40)
        assert overlay["y"] == pytest.approx(50 + 50)

    def test_zero_sized_page_is_not_ready(self, document_id, user_id):
        response = client.post(
            f"/highlights/document/{document_id}/page/1/overlay",
            json={
                "user_id": user_id,
                "page_rect": {"left": 0, "top": 0, "width": 0, "height": 0},
            },
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "not_ready"
