# ABOUTME: Reflection routes: public listing and admin-only create, edit and delete.
# ABOUTME: Thin adapter between JSON requests and ReflectionService.

import structlog
from fastapi import APIRouter
from pydantic import BaseModel

from daily_reflection.models import ReflectionEntry, ReflectionInput
from daily_reflection.web.dependencies import ReflectionSvc
from daily_reflection.web.middleware.admin_auth import AdminToken

router = APIRouter(prefix="/api/reflections", tags=["reflections"])
log = structlog.get_logger()


class ReflectionResponse(BaseModel):
    """Response for create and update."""

    success: bool = True
    reflection: ReflectionEntry


class SuccessResponse(BaseModel):
    """Response carrying only a success flag."""

    success: bool = True


@router.get("", response_model=list[ReflectionEntry])
async def list_reflections(service: ReflectionSvc):
    """All reflections, most recent date first."""
    return await service.list_reflections()


@router.get("/{entry_id}", response_model=ReflectionEntry)
async def get_reflection(entry_id: str, service: ReflectionSvc):
    """A single reflection."""
    return await service.get(entry_id)


@router.post("", response_model=ReflectionResponse)
async def create_reflection(
    _token: AdminToken, data: ReflectionInput, service: ReflectionSvc
):
    """Create a reflection."""
    entry = await service.create(data)
    return ReflectionResponse(reflection=entry)


@router.put("/{entry_id}", response_model=ReflectionResponse)
async def update_reflection(
    _token: AdminToken, entry_id: str, data: ReflectionInput, service: ReflectionSvc
):
    """Replace a reflection's title, body and date."""
    entry = await service.update(entry_id, data)
    return ReflectionResponse(reflection=entry)


@router.delete("/{entry_id}", response_model=SuccessResponse)
async def delete_reflection(_token: AdminToken, entry_id: str, service: ReflectionSvc):
    """Delete a reflection."""
    await service.delete(entry_id)
    return SuccessResponse()
