"""Business logic for employee skills."""

import logging

from src.skills_audit.features.skills.schemas import AddSkillRequest, SkillStats
from src.skills_audit.services.database import DocumentStore
from src.skills_audit.services.database.models import (
    Collection,
    Skill,
    SkillLevel,
    SkillPatch,
    generate_id,
    utc_now,
)
from src.skills_audit.services.database.query import asc, desc, eq
from src.skills_audit.services.export import ExportFormat, export_skills

logger = logging.getLogger(__name__)


def _new_skill(user_id: str, request: AddSkillRequest) -> Skill:
    now = utc_now()
    return Skill(
        id=generate_id(),
        user_id=user_id,
        name=request.name,
        category=request.category,
        level=request.level,
        description=request.description,
        years_experience=request.years_experience,
        is_verified=False,
        created_at=now,
        updated_at=now,
    )


class SkillService:
    """Skill records; failures are logged and reported as empty results or False."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def _find(self, predicates, order_by=(asc("name"),), limit: int | None = None) -> list[Skill]:
        page = await self.store.query(Collection.SKILLS, predicates, order_by=order_by, limit=limit)
        return [Skill.from_document(document) for document in page]

    async def get_user_skills(self, user_id: str) -> list[Skill]:
        try:
            return await self._find([eq("user_id", user_id)])
        except Exception as e:
            logger.error(f"Error getting skills for user {user_id}: {e}", exc_info=True)
            return []

    async def get_skill(self, skill_id: str) -> Skill | None:
        try:
            document = await self.store.get_by_id(Collection.SKILLS, skill_id)
        except Exception as e:
            logger.error(f"Error getting skill {skill_id}: {e}", exc_info=True)
            return None
        return Skill.from_document(document) if document else None

    async def add_skill(self, user_id: str, request: AddSkillRequest) -> Skill | None:
        skill = _new_skill(user_id, request)
        try:
            await self.store.set(Collection.SKILLS, skill.id, skill.to_document())
        except Exception as e:
            logger.error(f"Error adding skill for user {user_id}: {e}", extra={"user_id": user_id})
            return None
        logger.info(f"Skill {skill.id} added", extra={"user_id": user_id, "skill_id": skill.id})
        return skill

    async def update_skill(self, skill_id: str, patch: SkillPatch) -> bool:
        try:
            await self.store.update(Collection.SKILLS, skill_id, patch.to_fields())
        except Exception as e:
            logger.error(f"Error updating skill {skill_id}: {e}")
            return False
        return True

    async def delete_skill(self, skill_id: str) -> bool:
        try:
            await self.store.delete(Collection.SKILLS, skill_id)
        except Exception as e:
            logger.error(f"Error deleting skill {skill_id}: {e}")
            return False
        return True

    async def get_skills_by_category(self, category: str) -> list[Skill]:
        try:
            return await self._find([eq("category", category)])
        except Exception as e:
            logger.error(f"Error getting skills by category {category}: {e}", exc_info=True)
            return []

    async def get_categories(self) -> list[str]:
        """Distinct non-empty categories across all skills, sorted."""
        try:
            page = await self.store.query(Collection.SKILLS)
        except Exception as e:
            logger.error(f"Error getting skill categories: {e}", exc_info=True)
            return []
        return sorted({document["category"] for document in page if document.get("category")})

    async def search_skills(self, user_id: str, term: str) -> list[Skill]:
        """Case-insensitive match on name or description within the user's skills."""
        needle = term.casefold()
        return [
            skill
            for skill in await self.get_user_skills(user_id)
            if needle in skill.name.casefold()
            or (skill.description is not None and needle in skill.description.casefold())
        ]

    async def owns_skill(self, skill_id: str, user_id: str) -> bool:
        skill = await self.get_skill(skill_id)
        return skill is not None and skill.user_id == user_id

    async def get_skill_stats(self, user_id: str) -> SkillStats:
        skills = await self.get_user_skills(user_id)
        levels = [skill.level for skill in skills]
        return SkillStats(
            total=len(skills),
            beginner=levels.count(SkillLevel.BEGINNER),
            intermediate=levels.count(SkillLevel.INTERMEDIATE),
            advanced=levels.count(SkillLevel.ADVANCED),
            expert=levels.count(SkillLevel.EXPERT),
            verified=sum(1 for skill in skills if skill.is_verified),
        )

    async def get_top_skills(self, count: int = 10) -> list[Skill]:
        """Skills with the most years of experience across all users."""
        try:
            return await self._find([], order_by=(desc("years_experience"),), limit=count)
        except Exception as e:
            logger.error(f"Error getting top skills: {e}", exc_info=True)
            return []

    async def import_skills(self, user_id: str, requests: list[AddSkillRequest]) -> list[Skill] | None:
        """
        Add several skills in one atomic batch.

        Returns:
            The created skills, or None when the batch failed and nothing was written
        """
        skills = [_new_skill(user_id, request) for request in requests]
        batch = self.store.batch()
        for skill in skills:
            batch.set(Collection.SKILLS, skill.id, skill.to_document())
        try:
            await batch.commit()
        except Exception as e:
            logger.error(
                f"Error importing {len(skills)} skills for user {user_id}: {e}",
                extra={"user_id": user_id},
            )
            return None
        logger.info(f"Imported {len(skills)} skills", extra={"user_id": user_id})
        return skills

    async def export_skills(self, user_id: str, export_format: ExportFormat = ExportFormat.CSV) -> bytes:
        return export_skills(await self.get_user_skills(user_id), export_format)
