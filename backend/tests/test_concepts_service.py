"""
Unit tests for ConceptsService.
"""

import sqlite3

import pytest

from studydesk.services.concepts_service import ConceptsService


@pytest.fixture
def service(temp_db_path):
    return ConceptsService(db_path=temp_db_path)


class TestConcepts:
    def test_create_and_get(self, service):
        concept_id = service.create_concept(
            "user-1", "Mitochondria", "Powerhouse", position_x=120.5, position_y=40
        )

        concept = service.get_concept(concept_id)

        assert concept["name"] == "Mitochondria"
        assert concept["description"] == "Powerhouse"
        assert concept["position_x"] == pytest.approx(120.5)

    def test_list_is_scoped_to_user(self, service):
        service.create_concept("user-1", "A")
        service.create_concept("user-1", "B")
        service.create_concept("user-2", "C")

        names = [c["name"] for c in service.list_concepts("user-1")]

        assert names == ["B", "A"]

    def test_partial_update(self, service):
        concept_id = service.create_concept("user-1", "Cell", "Unit of life")

        assert service.update_concept(concept_id, position_x=10, position_y=20) is True

        concept = service.get_concept(concept_id)
        assert concept["name"] == "Cell"
        assert concept["position_x"] == 10
        assert concept["position_y"] == 20

    def test_empty_update_reports_existence(self, service):
        concept_id = service.create_concept("user-1", "Cell")

        assert service.update_concept(concept_id) is True
        assert service.update_concept(9999) is False

    def test_delete_removes_connections(self, service):
        a = service.create_concept("user-1", "A")
        b = service.create_concept("user-1", "B")
        c = service.create_concept("user-1", "C")
        service.create_connection("user-1", a, b)
        service.create_connection("user-1", c, a)
        service.create_connection("user-1", b, c)

        assert service.delete_concept(a) is True

        connections = service.list_connections("user-1")
        assert [(x["from_concept_id"], x["to_concept_id"]) for x in connections] == [(b, c)]


class TestConnections:
    def test_duplicate_connection_returns_none(self, service):
        a = service.create_concept("user-1", "A")
        b = service.create_concept("user-1", "B")

        assert service.create_connection("user-1", a, b) is not None
        assert service.create_connection("user-1", a, b) is None

    def test_reverse_direction_is_distinct(self, service):
        a = service.create_concept("user-1", "A")
        b = service.create_concept("user-1", "B")
        service.create_connection("user-1", a, b)

        assert service.create_connection("user-1", b, a) is not None

    def test_self_connection_raises(self, service):
        a = service.create_concept("user-1", "A")

        with pytest.raises(ValueError):
            service.create_connection("user-1", a, a)

    def test_delete_connection_by_pair(self, service):
        a = service.create_concept("user-1", "A")
        b = service.create_concept("user-1", "B")
        service.create_connection("user-1", a, b)

        assert service.delete_connection("user-2", a, b) is False
        assert service.delete_connection("user-1", a, b) is True
        assert service.list_connections("user-1") == []

    def test_storage_error_raises_instead_of_reporting_duplicate(self, service):
        a = service.create_concept("user-1", "A")
        b = service.create_concept("user-1", "B")
        with service.get_connection() as conn:
            conn.execute("DROP TABLE concept_connections")
            conn.commit()

        with pytest.raises(sqlite3.Error):
            service.create_connection("user-1", a, b)
