"""Tests for SkillService against the in-memory document store."""

import pytest

from src.skills_audit.features.skills.schemas import AddSkillRequest
from src.skills_audit.features.skills.service import SkillService
from src.skills_audit.services.database import InMemoryDocumentStore
from src.skills_audit.services.database.models import Collection, Skill, SkillPatch
from src.skills_audit.services.export import ExportFormat


def make_skill(skill_id: str, user_id: str = "user-1", **overrides) -> Skill:
    fields = {
        "id": skill_id,
        "user_id": user_id,
        "name": "Financial Modelling",
        "category": "Finance",
        "level": "Intermediate",
        "years_experience": 3,
    }
    fields.update(overrides)
    return Skill(**fields)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def service(store) -> SkillService:
    return SkillService(store)


async def save(store, *skills: Skill) -> None:
    for skill in skills:
        await store.set(Collection.SKILLS, skill.id, skill.to_document())


@pytest.mark.asyncio
class TestSkillRecords:
    """Tests for single skill records."""

    async def test_add_skill_is_unverified_and_owned(self, service, store):
        """Test a new skill belongs to the caller and starts unverified."""
        # Arrange
        request = AddSkillRequest(name="IFRS", category="Accounting", level="Expert", years_experience=7)

        # Act
        skill = await service.add_skill("user-1", request)

        # Assert
        assert skill is not None
        assert skill.user_id == "user-1"
        assert skill.is_verified is False
        stored = await store.get_by_id(Collection.SKILLS, skill.id)
        assert stored["name"] == "IFRS"
        assert stored["level"] == "Expert"

    async def test_user_skills_are_ordered_by_name(self, service, store):
        """Test only the user's skills are listed, by name."""
        # Arrange
        await save(
            store,
            make_skill("s1", name="Payroll"),
            make_skill("s2", name="Auditing"),
            make_skill("s3", user_id="user-2", name="Budgeting"),
        )

        # Act
        skills = await service.get_user_skills("user-1")

        # Assert
        assert [skill.name for skill in skills] == ["Auditing", "Payroll"]

    async def test_update_skill(self, service, store):
        """Test a patch changes only the fields it names."""
        await save(store, make_skill("s1"))

        assert await service.update_skill("s1", SkillPatch(level="Advanced")) is True

        skill = await service.get_skill("s1")
        assert skill.level.value == "Advanced"
        assert skill.name == "Financial Modelling"

    async def test_update_missing_skill_fails(self, service):
        assert await service.update_skill("missing", SkillPatch(name="X")) is False

    async def test_delete_skill(self, service, store):
        """Test a deleted skill can no longer be read."""
        await save(store, make_skill("s1"))

        assert await service.delete_skill("s1") is True
        assert await service.get_skill("s1") is None

    async def test_owns_skill(self, service, store):
        """Test ownership is false for other users and missing skills."""
        await save(store, make_skill("s1"))

        assert await service.owns_skill("s1", "user-1") is True
        assert await service.owns_skill("s1", "user-2") is False
        assert await service.owns_skill("missing", "user-1") is False


@pytest.mark.asyncio
class TestSkillQueries:
    """Tests for skill listings, search and stats."""

    async def test_categories_are_distinct_and_sorted(self, service, store):
        """Test categories across all users are deduplicated and sorted."""
        await save(
            store,
            make_skill("s1", category="Tax"),
            make_skill("s2", user_id="user-2", category="Audit"),
            make_skill("s3", category="Tax"),
        )

        assert await service.get_categories() == ["Audit", "Tax"]

    async def test_search_matches_name_or_description(self, service, store):
        """Test search is case-insensitive over name and description."""
        await save(
            store,
            make_skill("s1", name="Excel"),
            make_skill("s2", name="Reporting", description="Advanced EXCEL dashboards"),
            make_skill("s3", name="Negotiation"),
        )

        skills = await service.search_skills("user-1", "excel")

        assert {skill.id for skill in skills} == {"s1", "s2"}

    async def test_stats_count_levels_and_verified(self, service, store):
        """Test stats count each level and verified skills."""
        await save(
            store,
            make_skill("s1", level="Beginner"),
            make_skill("s2", level="Expert", is_verified=True),
            make_skill("s3", level="Expert"),
        )

        stats = await service.get_skill_stats("user-1")

        assert stats.total == 3
        assert stats.beginner == 1
        assert stats.expert == 2
        assert stats.intermediate == 0
        assert stats.verified == 1

    async def test_top_skills_by_experience(self, service, store):
        """Test top skills are ranked by years of experience across users."""
        await save(
            store,
            make_skill("s1", years_experience=2),
            make_skill("s2", user_id="user-2", years_experience=12),
            make_skill("s3", years_experience=8),
        )

        skills = await service.get_top_skills(2)

        assert [skill.id for skill in skills] == ["s2", "s3"]

    async def test_skills_by_category_spans_users(self, service, store):
        await save(
            store,
            make_skill("s1", category="Tax"),
            make_skill("s2", user_id="user-2", category="Tax"),
            make_skill("s3", category="Audit"),
        )

        skills = await service.get_skills_by_category("Tax")

        assert {skill.id for skill in skills} == {"s1", "s2"}


@pytest.mark.asyncio
class TestImportExport:
    """Tests for bulk import and export."""

    async def test_import_writes_every_skill(self, service, store):
        """Test an import stores every requested skill."""
        requests = [
            AddSkillRequest(name="Excel", category="Tools", level="Advanced"),
            AddSkillRequest(name="SQL", category="Tools", level="Beginner"),
        ]

        skills = await service.import_skills("user-1", requests)

        assert len(skills) == 2
        assert await store.count(Collection.SKILLS) == 2

    async def test_failed_import_writes_nothing(self, service, store, monkeypatch):
        """Test one failed write leaves none of the imported skills stored."""
        # Arrange
        original = store.apply_operation
        calls = []

        def failing_second_write(*args):
            calls.append(args)
            if len(calls) == 2:
                raise RuntimeError("write rejected")
            original(*args)

        monkeypatch.setattr(store, "apply_operation", failing_second_write)
        requests = [
            AddSkillRequest(name=f"Skill {n}", category="Tools", level="Beginner") for n in range(3)
        ]

        # Act
        skills = await service.import_skills("user-1", requests)

        # Assert
        assert skills is None
        assert await store.count(Collection.SKILLS) == 0

    async def test_csv_export_has_header_and_rows(self, service, store):
        """Test the CSV export has the column headers and one row per skill."""
        await save(store, make_skill("s1", name="Excel", is_verified=True))

        content = (await service.export_skills("user-1")).decode("utf-8")

        lines = content.splitlines()
        assert lines[0] == "Name,Category,Level,Years Experience,Description,Verified,Created Date"
        assert lines[1].startswith("Excel,Finance,Intermediate,3,,Yes,")
        assert len(lines) == 2

    async def test_json_export(self, service, store):
        await save(store, make_skill("s1"))

        content = await service.export_skills("user-1", ExportFormat.JSON)

        assert b'"id": "s1"' in content
