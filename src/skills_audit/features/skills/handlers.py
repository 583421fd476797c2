"""API handlers for skill records."""

import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status

from src.skills_audit.auth.gates import AjaxGate, ModelGate, RoleGate
from src.skills_audit.auth.models import RequestIdentity
from src.skills_audit.errors import FailureKind, ServiceError
from src.skills_audit.features.skills.schemas import (
    AddSkillRequest,
    ImportSkillsRequest,
    SkillListResponse,
    SkillStats,
    UpdateSkillRequest,
)
from src.skills_audit.features.skills.service import SkillService
from src.skills_audit.services.database import get_document_store
from src.skills_audit.services.database.models import Role, Skill
from src.skills_audit.services.database.store import DocumentStore
from src.skills_audit.services.export import MEDIA_TYPES, ExportFormat
from src.skills_audit.services.rate_limiter import (
    bulk_rate_limit,
    default_rate_limit,
    write_rate_limit,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/skills", tags=["skills"])

SKILL_NOT_FOUND = "Skill not found"


def get_skill_service(store: DocumentStore = Depends(get_document_store)) -> SkillService:
    return SkillService(store)


def _listing(skills: list[Skill]) -> SkillListResponse:
    return SkillListResponse(skills=skills, total=len(skills))


@router.get("", response_model=SkillListResponse)
@default_rate_limit
async def list_my_skills(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    service: SkillService = Depends(get_skill_service),
) -> SkillListResponse:
    return _listing(await service.get_user_skills(identity.user_id))


@router.get("/search", response_model=SkillListResponse, dependencies=[Depends(AjaxGate())])
@default_rate_limit
async def search_my_skills(
    request: Request,
    q: str = Query(min_length=1, max_length=100),
    identity: RequestIdentity = Depends(RoleGate()),
    service: SkillService = Depends(get_skill_service),
) -> SkillListResponse:
    return _listing(await service.search_skills(identity.user_id, q))


@router.get("/categories", response_model=list[str], dependencies=[Depends(AjaxGate())])
@default_rate_limit
async def list_categories(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    service: SkillService = Depends(get_skill_service),
) -> list[str]:
    return await service.get_categories()


@router.get("/stats", response_model=SkillStats)
@default_rate_limit
async def get_my_skill_stats(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    service: SkillService = Depends(get_skill_service),
) -> SkillStats:
    return await service.get_skill_stats(identity.user_id)


@router.get("/top", response_model=SkillListResponse)
@default_rate_limit
async def get_top_skills(
    request: Request,
    count: int = Query(10, ge=1, le=100),
    identity: RequestIdentity = Depends(RoleGate(Role.ADMIN, Role.MANAGER)),
    service: SkillService = Depends(get_skill_service),
) -> SkillListResponse:
    return _listing(await service.get_top_skills(count))


@router.get("/by-category/{category}", response_model=SkillListResponse)
@default_rate_limit
async def get_skills_by_category(
    request: Request,
    category: str,
    identity: RequestIdentity = Depends(RoleGate(Role.ADMIN, Role.MANAGER)),
    service: SkillService = Depends(get_skill_service),
) -> SkillListResponse:
    return _listing(await service.get_skills_by_category(category))


@router.get("/export")
@bulk_rate_limit
async def export_my_skills(
    request: Request,
    format: ExportFormat = ExportFormat.CSV,
    identity: RequestIdentity = Depends(RoleGate()),
    service: SkillService = Depends(get_skill_service),
) -> Response:
    content = await service.export_skills(identity.user_id, format)
    return Response(
        content=content,
        media_type=MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="skills.{format.value}"'},
    )


@router.post("/import", response_model=SkillListResponse, status_code=status.HTTP_201_CREATED)
@bulk_rate_limit
async def import_skills(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    body: ImportSkillsRequest = Depends(ModelGate(ImportSkillsRequest)),
    service: SkillService = Depends(get_skill_service),
) -> SkillListResponse:
    """Add all submitted skills, or none of them if any write fails."""
    skills = await service.import_skills(identity.user_id, body.skills)
    if skills is None:
        raise ServiceError("Failed to import skills", FailureKind.TRANSPORT)
    return _listing(skills)


@router.post("", response_model=Skill, status_code=status.HTTP_201_CREATED)
@write_rate_limit
async def add_skill(
    request: Request,
    identity: RequestIdentity = Depends(RoleGate()),
    body: AddSkillRequest = Depends(ModelGate(AddSkillRequest)),
    service: SkillService = Depends(get_skill_service),
) -> Skill:
    skill = await service.add_skill(identity.user_id, body)
    if skill is None:
        raise ServiceError("Failed to add skill", FailureKind.TRANSPORT)
    return skill


async def _require_owned(service: SkillService, skill_id: str, identity: RequestIdentity) -> None:
    # Other users' skills are reported as missing
    if not await service.owns_skill(skill_id, identity.user_id):
        raise ServiceError(SKILL_NOT_FOUND, FailureKind.NOT_FOUND)


@router.get("/{skill_id}", response_model=Skill)
@default_rate_limit
async def get_skill(
    request: Request,
    skill_id: str,
    identity: RequestIdentity = Depends(RoleGate()),
    service: SkillService = Depends(get_skill_service),
) -> Skill:
    skill = await service.get_skill(skill_id)
    if skill is None or skill.user_id != identity.user_id:
        raise ServiceError(SKILL_NOT_FOUND, FailureKind.NOT_FOUND)
    return skill


@router.put("/{skill_id}", response_model=Skill)
@write_rate_limit
async def update_skill(
    request: Request,
    skill_id: str,
    identity: RequestIdentity = Depends(RoleGate()),
    body: UpdateSkillRequest = Depends(ModelGate(UpdateSkillRequest)),
    service: SkillService = Depends(get_skill_service),
) -> Skill:
    await _require_owned(service, skill_id, identity)
    if not await service.update_skill(skill_id, body.to_patch()):
        raise ServiceError("Failed to update skill", FailureKind.TRANSPORT)
    return await service.get_skill(skill_id)


@router.delete("/{skill_id}")
@write_rate_limit
async def delete_skill(
    request: Request,
    skill_id: str,
    identity: RequestIdentity = Depends(RoleGate()),
    service: SkillService = Depends(get_skill_service),
) -> dict:
    await _require_owned(service, skill_id, identity)
    if not await service.delete_skill(skill_id):
        raise ServiceError("Failed to delete skill", FailureKind.TRANSPORT)
    return {"success": True, "message": "Skill deleted"}
