"""
Tests for category workflows: storage, compilation and the category endpoints.
"""
import pytest

from tracker.core.exceptions import ConfigurationError, NotFound
from tracker.models.department import Department
from tracker.models.department_history import WorkStatus
from tracker.services.category_service import CategoryService
from tracker.services.workflow_graph import MappingSpec

D = Department


def _workflow(*departments):
    return [MappingSpec(dept, index + 1) for index, dept in enumerate(departments)]


class TestCategoryService:
    """Test category storage through the service layer."""

    def test_create_with_workflow(self, db):
        category = CategoryService.create_category(
            db, "Landing page", description="Small sites", workflow=_workflow(D.DESIGN, D.HTML, D.QA)
        )

        mappings = CategoryService.list_mappings(db, category.id)
        assert [(m.department, m.sequence) for m in mappings] == [
            (D.DESIGN, 1), (D.HTML, 2), (D.QA, 3),
        ]

    def test_create_without_workflow(self, db):
        category = CategoryService.create_category(db, "Unplanned")
        assert CategoryService.list_mappings(db, category.id) == []
        assert CategoryService.describe_workflow(db, category.id)["transitions"] == []

    def test_duplicate_name(self, db):
        CategoryService.create_category(db, "Landing page")
        with pytest.raises(ConfigurationError):
            CategoryService.create_category(db, "Landing page")

    def test_invalid_workflow_not_created(self, db):
        with pytest.raises(ConfigurationError):
            CategoryService.create_category(
                db, "Broken", workflow=[MappingSpec(D.HTML, 1), MappingSpec(D.QA, 1)]
            )
        assert CategoryService.list_categories(db) == []

    def test_replace_workflow(self, db):
        category = CategoryService.create_category(
            db, "Shop", workflow=_workflow(D.PMO, D.DESIGN, D.HTML)
        )

        CategoryService.replace_workflow(db, category.id, _workflow(D.HTML, D.WORDPRESS, D.QA))

        mappings = CategoryService.list_mappings(db, category.id)
        assert [m.department for m in mappings] == [D.HTML, D.WORDPRESS, D.QA]

    def test_rejected_replacement_keeps_old_workflow(self, db):
        category = CategoryService.create_category(
            db, "Shop", workflow=_workflow(D.PMO, D.DESIGN, D.HTML)
        )

        with pytest.raises(ConfigurationError):
            CategoryService.replace_workflow(
                db, category.id, [MappingSpec(D.HTML, 1), MappingSpec(D.HTML, 2)]
            )
        with pytest.raises(ConfigurationError):
            CategoryService.replace_workflow(db, category.id, [])

        mappings = CategoryService.list_mappings(db, category.id)
        assert [m.department for m in mappings] == [D.PMO, D.DESIGN, D.HTML]

    def test_replacement_cannot_drop_running_project_department(self, db, make_project):
        category = CategoryService.create_category(
            db, "Shop", workflow=_workflow(D.PMO, D.DESIGN, D.HTML)
        )
        project = make_project(category_id=category.id)
        assert project.current_department == D.PMO

        with pytest.raises(ConfigurationError) as exc_info:
            CategoryService.replace_workflow(db, category.id, _workflow(D.DESIGN, D.HTML))
        assert exc_info.value.category_id == category.id
        assert f"{project.id} (PMO)" in exc_info.value.reason

        mappings = CategoryService.list_mappings(db, category.id)
        assert [m.department for m in mappings] == [D.PMO, D.DESIGN, D.HTML]

        # Keeping the project's department is fine, even when others go
        CategoryService.replace_workflow(db, category.id, _workflow(D.PMO, D.HTML))
        mappings = CategoryService.list_mappings(db, category.id)
        assert [m.department for m in mappings] == [D.PMO, D.HTML]

    def test_replace_unknown_category(self, db):
        with pytest.raises(NotFound):
            CategoryService.replace_workflow(db, 999, _workflow(D.HTML))

    def test_describe_workflow(self, db):
        category = CategoryService.create_category(
            db, "Shop", workflow=_workflow(D.DESIGN, D.HTML, D.QA, D.DELIVERY)
        )

        transitions = CategoryService.describe_workflow(db, category.id)["transitions"]

        assert [(t["from_department"], t["to_department"]) for t in transitions] == [
            (D.DESIGN, D.HTML), (D.HTML, D.QA), (D.QA, D.DELIVERY),
        ]
        design, html, qa = transitions
        assert design["requires_approval"] is True
        assert html["requires_qa_passing"] is True
        assert qa["required_status"] == WorkStatus.READY_FOR_DELIVERY


class TestCategoryEndpoints:
    """Test the category API."""

    def test_create_and_read(self, client, manager_headers):
        response = client.post(
            "/api/categories/",
            json={
                "name": "Landing page",
                "workflow": [
                    {"department": "DESIGN", "sequence": 1, "estimated_days": 3},
                    {"department": "HTML", "sequence": 2},
                ],
            },
            headers=manager_headers,
        )
        assert response.status_code == 201
        category_id = response.json()["id"]

        response = client.get("/api/categories/", headers=manager_headers)
        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == ["Landing page"]

        response = client.get(f"/api/categories/{category_id}/workflow", headers=manager_headers)
        assert response.status_code == 200
        data = response.json()
        assert [m["department"] for m in data["mappings"]] == ["DESIGN", "HTML"]
        assert data["mappings"][0]["estimated_days"] == 3
        assert data["transitions"][0]["from_department"] == "DESIGN"

    def test_replace_rejects_bad_workflow(self, client, manager_headers):
        response = client.post("/api/categories/", json={"name": "Shop"}, headers=manager_headers)
        category_id = response.json()["id"]

        response = client.put(
            f"/api/categories/{category_id}/workflow",
            json={"departments": [
                {"department": "HTML", "sequence": 1},
                {"department": "QA", "sequence": 1},
            ]},
            headers=manager_headers,
        )

        assert response.status_code == 422
        data = response.json()
        assert data["code"] == "CONFIGURATION_ERROR"
        assert data["category_id"] == category_id

    def test_replace_workflow(self, client, manager_headers):
        response = client.post("/api/categories/", json={"name": "Shop"}, headers=manager_headers)
        category_id = response.json()["id"]

        response = client.put(
            f"/api/categories/{category_id}/workflow",
            json={"departments": [
                {"department": "HTML", "sequence": 2},
                {"department": "DESIGN", "sequence": 1},
            ]},
            headers=manager_headers,
        )

        assert response.status_code == 200
        assert [m["department"] for m in response.json()["mappings"]] == ["DESIGN", "HTML"]

    def test_developer_cannot_configure(self, client, developer_headers):
        response = client.post(
            "/api/categories/", json={"name": "Shop"}, headers=developer_headers
        )
        assert response.status_code == 403

    def test_requires_authentication(self, client):
        response = client.get("/api/categories/")
        assert response.status_code == 401
