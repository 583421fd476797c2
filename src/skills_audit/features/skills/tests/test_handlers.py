"""Tests for skills API handlers."""

from fastapi.testclient import TestClient

from src.skills_audit.services.database.models import Collection, Role

AJAX = {"X-Requested-With": "XMLHttpRequest"}


def skill_document(skill_id: str, user_id: str = "user-1", **overrides) -> dict:
    document = {
        "id": skill_id,
        "user_id": user_id,
        "name": "Financial Modelling",
        "category": "Finance",
        "level": "Intermediate",
        "description": None,
        "years_experience": 3,
        "is_verified": False,
        "created_at": "2026-01-05T09:00:00Z",
        "updated_at": "2026-01-05T09:00:00Z",
    }
    document.update(overrides)
    return document


class TestOwnSkills:
    """Tests for the caller's own skill endpoints."""

    def test_requires_login(self, client: TestClient) -> None:
        """Test anonymous callers are redirected to login."""
        response = client.get("/api/v1/skills", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login?returnUrl=/api/v1/skills"

    def test_lists_only_own_skills(self, client, employee, seed) -> None:
        """Test the list holds only the caller's skills."""
        # Arrange
        seed(Collection.SKILLS, skill_document("s1"))
        seed(Collection.SKILLS, skill_document("s2", user_id="user-2"))

        # Act
        response = client.get("/api/v1/skills", headers=employee)

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["skills"][0]["id"] == "s1"

    def test_add_skill(self, client, employee, memory_store) -> None:
        """Test a created skill is stored for the caller, unverified."""
        response = client.post(
            "/api/v1/skills",
            headers=employee,
            json={"name": "IFRS", "category": "Accounting", "level": "Expert", "years_experience": 4},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"] == "user-1"
        assert data["is_verified"] is False
        assert data["id"] in memory_store.collections["skills"]

    def test_add_skill_validation_errors(self, client, employee) -> None:
        """Test invalid fields are reported by name."""
        response = client.post(
            "/api/v1/skills",
            headers=employee,
            json={"name": "", "category": "Accounting", "level": "Guru"},
        )

        assert response.status_code == 400
        errors = response.json()["errors"]
        assert "name" in errors
        assert "level" in errors

    def test_update_own_skill(self, client, employee, seed) -> None:
        """Test an update ignores is_verified from the caller."""
        seed(Collection.SKILLS, skill_document("s1"))

        response = client.put(
            "/api/v1/skills/s1", headers=employee, json={"level": "Advanced", "is_verified": True}
        )

        assert response.status_code == 200
        assert response.json()["level"] == "Advanced"
        # Verification cannot be self-assigned
        assert response.json()["is_verified"] is False

    def test_other_users_skill_is_not_found(self, client, employee, seed) -> None:
        """Test another user's skill answers 404 for read, update and delete."""
        seed(Collection.SKILLS, skill_document("s2", user_id="user-2"))

        for method in ("get", "delete"):
            response = getattr(client, method)("/api/v1/skills/s2", headers=employee)
            assert response.status_code == 404
            assert response.json()["message"] == "Skill not found"

        response = client.put("/api/v1/skills/s2", headers=employee, json={"name": "Mine"})
        assert response.status_code == 404

    def test_delete_own_skill(self, client, employee, seed, memory_store) -> None:
        """Test deleting removes the stored skill."""
        seed(Collection.SKILLS, skill_document("s1"))

        response = client.delete("/api/v1/skills/s1", headers=employee)

        assert response.status_code == 200
        assert "s1" not in memory_store.collections["skills"]

    def test_stats(self, client, employee, seed) -> None:
        seed(Collection.SKILLS, skill_document("s1", level="Expert", is_verified=True))

        response = client.get("/api/v1/skills/stats", headers=employee)

        assert response.status_code == 200
        assert response.json()["expert"] == 1
        assert response.json()["verified"] == 1


class TestAjaxEndpoints:
    """Tests for AJAX-only skill endpoints."""

    def test_search_requires_ajax(self, client, employee) -> None:
        """Test search without the AJAX header is rejected."""
        response = client.get("/api/v1/skills/search?q=excel", headers=employee)

        assert response.status_code == 400
        assert response.json() == {"error": "This action only accepts AJAX requests."}

    def test_search(self, client, employee, seed) -> None:
        """Test search returns matching skills of the caller."""
        seed(Collection.SKILLS, skill_document("s1", name="Excel"))
        seed(Collection.SKILLS, skill_document("s2", name="Payroll"))

        response = client.get("/api/v1/skills/search?q=exc", headers={**employee, **AJAX})

        assert response.status_code == 200
        assert [skill["id"] for skill in response.json()["skills"]] == ["s1"]

    def test_categories(self, client, employee, seed) -> None:
        """Test categories are listed across all users."""
        seed(Collection.SKILLS, skill_document("s1", category="Tax"))
        seed(Collection.SKILLS, skill_document("s2", user_id="user-2", category="Audit"))

        response = client.get("/api/v1/skills/categories", headers={**employee, **AJAX})

        assert response.json() == ["Audit", "Tax"]


class TestManagerViews:
    """Tests for manager and admin skill views."""

    def test_employee_cannot_view_top_skills(self, client, employee) -> None:
        """Test employees are forbidden from the top skills view."""
        response = client.get("/api/v1/skills/top", headers=employee)

        assert response.status_code == 403

    def test_manager_views_skills_by_category(self, client, sign_in, make_profile, seed) -> None:
        """Test managers see a category across all users."""
        headers = sign_in(make_profile(id="mgr-1", role=Role.MANAGER, employee_id="EMP0100"))
        seed(Collection.SKILLS, skill_document("s1", category="Tax"))
        seed(Collection.SKILLS, skill_document("s2", user_id="user-2", category="Tax"))

        response = client.get("/api/v1/skills/by-category/Tax", headers=headers)

        assert response.status_code == 200
        assert response.json()["total"] == 2


class TestImportExport:
    """Tests for skill import and export endpoints."""

    def test_import(self, client, employee, memory_store) -> None:
        """Test every imported skill is stored."""
        response = client.post(
            "/api/v1/skills/import",
            headers=employee,
            json={
                "skills": [
                    {"name": "Excel", "category": "Tools", "level": "Advanced"},
                    {"name": "SQL", "category": "Tools", "level": "Beginner"},
                ]
            },
        )

        assert response.status_code == 201
        assert response.json()["total"] == 2
        assert len(memory_store.collections["skills"]) == 2

    def test_import_rejects_empty_list(self, client, employee) -> None:
        """Test an import needs at least one skill."""
        response = client.post("/api/v1/skills/import", headers=employee, json={"skills": []})

        assert response.status_code == 400

    def test_csv_export(self, client, employee, seed) -> None:
        """Test the export is served as a CSV attachment."""
        seed(Collection.SKILLS, skill_document("s1", name="Excel"))

        response = client.get("/api/v1/skills/export", headers=employee)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="skills.csv"' in response.headers["content-disposition"]
        assert response.text.splitlines()[1].startswith("Excel,Finance,Intermediate,3")
