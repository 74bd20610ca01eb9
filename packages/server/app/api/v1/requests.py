"""Solver-side view of their own project requests."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_solver
from app.core.database import get_session
from app.services import requests as request_service
from marketplace_shared.schemas.common import APIResponse
from marketplace_shared.schemas.projects import ProjectRequestRead

router = APIRouter()


@router.get("/my", response_model=APIResponse[List[ProjectRequestRead]])
async def my_requests(
    auth: AuthenticatedUser = Depends(require_solver),
    session: AsyncSession = Depends(get_session),
):
    return APIResponse(data=await request_service.list_my_requests(session, auth))
