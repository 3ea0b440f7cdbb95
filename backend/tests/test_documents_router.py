"""
API tests for the documents and summaries routers.

The summarization service is swapped for one backed by httpx.MockTransport.
"""

import uuid
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient

from main import app
from studydesk.routers import documents, summaries
from studydesk.services.database_service import db_service
from studydesk.services.summarization_service import SummarizationService

client = TestClient(app)


@pytest.fixture
def user_id():
    return f"user-{uuid.uuid4()}"


@pytest.fixture
def uploaded(user_id, make_pdf):
    response = client.post(
        "/documents/upload",
        files={"file": ("Cell Biology.pdf", make_pdf(3), "application/pdf")},
        data={"user_id": user_id},
    )
    assert response.status_code == 200
    return response.json()


def _summarizer(handler) -> SummarizationService:
    return SummarizationService(
        base_url="http://summarizer.test", transport=httpx.MockTransport(handler)
    )


class TestDocuments:
    def test_upload_registers_document(self, uploaded, user_id):
        assert uploaded["user_id"] == user_id
        assert uploaded["title"] == "Cell Biology"
        assert uploaded["file_name"] == "Cell Biology.pdf"
        assert uploaded["num_pages"] == 3
        assert uploaded["file_path"].endswith("_Cell_Biology.pdf")
        assert user_id in uploaded["file_path"]

    def test_upload_rejects_non_pdf(self, user_id):
        response = client.post(
            "/documents/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            data={"user_id": user_id},
        )

        assert response.status_code == 400

    def test_upload_rejects_broken_pdf(self, user_id):
        response = client.post(
            "/documents/upload",
            files={"file": ("broken.pdf", b"not really a pdf", "application/pdf")},
            data={"user_id": user_id},
        )

        assert response.status_code == 400

    def test_list_and_get(self, uploaded, user_id):
        listed = client.get("/documents/", params={"user_id": user_id}).json()

        assert [d["id"] for d in listed] == [uploaded["id"]]
        assert (
            client.get(f"/documents/{uploaded['id']}", params={"user_id": user_id}).json()[
                "id"
            ]
            == uploaded["id"]
        )

    def test_other_user_is_forbidden(self, uploaded):
        response = client.get(
            f"/documents/{uploaded['id']}", params={"user_id": "someone-else"}
        )

        assert response.status_code == 403

    def test_serve_file(self, uploaded, user_id):
        response = client.get(
            f"/documents/{uploaded['id']}/file", params={"user_id": user_id}
        )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_page_text(self, uploaded, user_id):
        response = client.get(
            f"/documents/{uploaded['id']}/text/2", params={"user_id": user_id}
        )

        assert response.status_code == 200
        assert response.json()["page_number"] == 2
        assert response.json()["text"] == ""

    def test_page_text_out_of_range(self, uploaded, user_id):
        response = client.get(
            f"/documents/{uploaded['id']}/text/9", params={"user_id": user_id}
        )

        assert response.status_code == 400

    def test_update_summary(self, uploaded, user_id):
        response = client.patch(
            f"/documents/{uploaded['id']}/summary",
            json={"user_id": user_id, "summary": "About cells"},
        )

        assert response.status_code == 200
        assert response.json()["summary"] == "About cells"

    def test_delete_removes_file_and_highlights(self, uploaded, user_id):
        db_service.save_highlight(
            document_id=uploaded["id"],
            user_id=user_id,
            page_number=1,
            selected_text="nucleus",
            relative_x=0.1,
            relative_y=0.1,
            relative_width=0.1,
            relative_height=0.1,
        )

        response = client.delete(f"/documents/{uploaded['id']}", params={"user_id": user_id})

        assert response.status_code == 200
        assert response.json()["file_deleted"] is True
        assert db_service.get_document(uploaded["id"]) is None
        assert db_service.get_highlights_for_document(uploaded["id"]) == []


class TestSummaries:
    def test_page_summary(self, uploaded, user_id):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/summarize-pdf"
            return httpx.Response(
                200, json={"summary": "Page two summary", "model_used": "m1"}
            )

        with patch.object(summaries, "summarization_service", _summarizer(handler)):
            response = client.post(
                f"/summaries/documents/{uploaded['id']}/pages/2",
                params={"user_id": user_id},
            )

        assert response.status_code == 200
        assert response.json()["summary"] == "Page two summary"
        assert response.json()["page_number"] == 2
        assert response.json()["metadata"]["model"] == "m1"

    def test_document_summary_is_stored(self, uploaded, user_id):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"text": "Whole book summary"})

        with patch.object(summaries, "summarization_service", _summarizer(handler)):
            response = client.post(
                f"/summaries/documents/{uploaded['id']}", params={"user_id": user_id}
            )

        assert response.status_code == 200
        assert db_service.get_document(uploaded["id"])["summary"] == "Whole book summary"

    def test_upstream_error_is_bad_gateway(self, uploaded, user_id):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="model crashed")

        with patch.object(summaries, "summarization_service", _summarizer(handler)):
            response = client.post(
                f"/summaries/documents/{uploaded['id']}/pages/1",
                params={"user_id": user_id},
            )

        assert response.status_code == 502
        assert response.json()["detail"]["status"] == 500
        assert response.json()["detail"]["details"] == "model crashed"

    def test_unreachable_service(self, uploaded, user_id):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        with patch.object(summaries, "summarization_service", _summarizer(handler)):
            response = client.post(
                f"/summaries/documents/{uploaded['id']}/pages/1",
                params={"user_id": user_id},
            )

        assert response.status_code == 503

    def test_page_out_of_range(self, uploaded, user_id):
        response = client.post(
            f"/summaries/documents/{uploaded['id']}/pages/7",
            params={"user_id": user_id},
        )

        assert response.status_code == 400

    def test_not_configured(self, uploaded, user_id):
        with patch.object(
            summaries, "summarization_service", SummarizationService(base_url="")
        ):
            response = client.post(
                f"/summaries/documents/{uploaded['id']}/pages/1",
                params={"user_id": user_id},
            )

        assert response.status_code == 500


class TestUploadLocation:
    @pytest.mark.parametrize("bad_user_id", ["..", ".", ""])
    def test_user_id_cannot_leave_upload_root(self, bad_user_id, make_pdf):
        upload_root = documents.pdf_service.upload_dir.resolve()
        before = set(upload_root.parent.iterdir())

        response = client.post(
            "/documents/upload",
            files={"file": ("escape.pdf", make_pdf(1), "application/pdf")},
            data={"user_id": bad_user_id},
        )

        assert response.status_code in (400, 422)
        assert set(upload_root.parent.iterdir()) == before

    def test_stored_file_stays_under_upload_root(self, uploaded):
        upload_root = documents.pdf_service.upload_dir.resolve()

        assert upload_root in Path(uploaded["file_path"]).resolve().parents


class TestSummaryTransportErrors:
    def test_connection_reset_is_service_unavailable(self, uploaded, user_id):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadError("connection reset", request=request)

        with patch.object(summaries, "summarization_service", _summarizer(handler)):
            response = client.post(
                f"/summaries/documents/{uploaded['id']}/pages/1",
                params={"user_id": user_id},
            )

        assert response.status_code == 503

    def test_non_object_json_is_bad_gateway(self, uploaded, user_id):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["x"])

        with patch.object(summaries, "summarization_service", _summarizer(handler)):
            response = client.post(
                f"/summaries/documents/{uploaded['id']}", params={"user_id": user_id}
            )

        assert response.status_code == 502
