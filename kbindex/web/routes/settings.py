"""User settings routes.

Routes:
- GET /api/settings - Stored rebasing settings (created with defaults on first read)
- PUT /api/settings - Replace rebasing settings
"""

from __future__ import annotations

from fastapi import APIRouter

from kbindex.db.connection import get_session
from kbindex.indexing.service import get_user_settings, update_user_settings
from kbindex.web.dependencies import envelope
from kbindex.web.models import SettingsUpdateRequest

router = APIRouter(prefix="/api", tags=["settings"])


@router.get("/settings")
async def read_settings():
    async with get_session() as session:
        result = await get_user_settings(session)

    return envelope(result)


@router.put("/settings")
async def write_settings(request: SettingsUpdateRequest):
    """Upsert both settings fields; out-of-range values are rejected with 400."""
    async with get_session() as session:
        result = await update_user_settings(session, request.to_settings())

    return envelope(result)
