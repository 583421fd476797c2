"""
Admission gates evaluated before a handler runs.

A gate inspects the request and either admits it or rejects it with a
response kind. Gates are FastAPI dependencies: use a single gate directly
(``Depends(RoleGate(Role.ADMIN))`` yields the caller's identity,
``Depends(ModelGate(Model))`` yields the parsed body) or compose several
with ``admit(...)``, which stops at the first rejection.
"""

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar
from urllib.parse import quote

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from pydantic import BaseModel, ValidationError

from src.skills_audit.auth.dependencies import get_request_identity
from src.skills_audit.auth.models import RequestIdentity
from src.skills_audit.config import settings
from src.skills_audit.services.database.models import Role

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

AJAX_ONLY_MESSAGE = "This action only accepts AJAX requests."
FORBIDDEN_MESSAGE = "You do not have permission to perform this action"


class RejectionKind(str, Enum):
    REDIRECT_TO_LOGIN = "redirect_to_login"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"


@dataclass(frozen=True)
class Admitted:
    value: Any = None


@dataclass(frozen=True)
class Rejected:
    kind: RejectionKind
    body: dict[str, Any] = field(default_factory=dict)


Admission = Admitted | Rejected


class AdmissionRejected(Exception):
    """Raised by a gate dependency; turned into a response by ``admission_rejected_handler``."""

    def __init__(self, rejection: Rejected):
        self.rejection = rejection
        super().__init__(rejection.kind.value)


class Gate(Protocol):
    async def check(self, request: Request) -> Admission: ...


async def _enforce(gate: Gate, request: Request) -> Any:
    outcome = await gate.check(request)
    if isinstance(outcome, Rejected):
        raise AdmissionRejected(outcome)
    return outcome.value


class RoleGate:
    """
    Require an authenticated caller, optionally with one of the given roles.

    ``RoleGate()`` admits any authenticated caller.
    """

    def __init__(self, *roles: Role):
        self.roles = frozenset(roles)

    async def check(self, request: Request) -> Admission:
        identity = get_request_identity(request)
        if identity is None:
            return Rejected(RejectionKind.REDIRECT_TO_LOGIN)
        if self.roles and identity.role not in self.roles:
            logger.info(
                f"Role {identity.role.value} denied for {request.url.path}",
                extra={"user_id": identity.user_id, "path": request.url.path},
            )
            return Rejected(
                RejectionKind.FORBIDDEN, {"success": False, "message": FORBIDDEN_MESSAGE}
            )
        return Admitted(identity)

    async def __call__(self, request: Request) -> RequestIdentity:
        return await _enforce(self, request)


class AjaxGate:
    """Require the ``X-Requested-With: XMLHttpRequest`` header."""

    async def check(self, request: Request) -> Admission:
        if request.headers.get(settings.ajax_header_name) != settings.ajax_header_value:
            return Rejected(RejectionKind.BAD_REQUEST, {"error": AJAX_ONLY_MESSAGE})
        return Admitted()

    async def __call__(self, request: Request) -> None:
        await _enforce(self, request)


def field_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors as ``{field: [messages]}``; model-level errors use ``""``."""
    errors: dict[str, list[str]] = defaultdict(list)
    for error in exc.errors():
        name = ".".join(str(part) for part in error["loc"])
        errors[name].append(error["msg"])
    return dict(errors)


class ModelGate(Generic[ModelT]):
    """Validate the JSON body against a pydantic model and yield the parsed model."""

    def __init__(self, model: type[ModelT]):
        self.model = model

    async def check(self, request: Request) -> Admission:
        raw = await request.body()
        try:
            payload = json.loads(raw) if raw else {}
        except ValueError:
            return Rejected(
                RejectionKind.BAD_REQUEST,
                {
                    "success": False,
                    "message": "Validation failed",
                    "errors": {"body": ["Request body must be valid JSON"]},
                },
            )

        try:
            return Admitted(self.model.model_validate(payload))
        except ValidationError as e:
            return Rejected(
                RejectionKind.BAD_REQUEST,
                {"success": False, "message": "Validation failed", "errors": field_errors(e)},
            )

    async def __call__(self, request: Request) -> ModelT:
        return await _enforce(self, request)


def admit(*gates: Gate):
    """
    Compose gates into one dependency.

    Gates run in order; the first rejection wins and later gates are not
    evaluated.
    """

    async def dependency(request: Request) -> None:
        for gate in gates:
            await _enforce(gate, request)

    return dependency


async def admission_rejected_handler(request: Request, exc: AdmissionRejected) -> Response:
    rejection = exc.rejection
    if rejection.kind is RejectionKind.REDIRECT_TO_LOGIN:
        target = f"{settings.login_path}?returnUrl={quote(request.url.path)}"
        return RedirectResponse(url=target, status_code=303)
    if rejection.kind is RejectionKind.FORBIDDEN:
        return JSONResponse(status_code=403, content=rejection.body)
    return JSONResponse(status_code=400, content=rejection.body)
