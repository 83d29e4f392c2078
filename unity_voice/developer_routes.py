"""Developer utilities for seeding progression records."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status

from .auth import AuthenticatedUser, get_current_user
from .config import Settings, get_settings
from .level_resolver import level_resolver
from .telemetry import emit_event


router = APIRouter(prefix="/api/debug", tags=["developer"])


def require_debug_endpoints(settings: Settings = Depends(get_settings)) -> None:
    if not settings.debug_endpoints:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")


@router.post("/init-user-levels", dependencies=[Depends(require_debug_endpoints)])
def init_user_levels(user: AuthenticatedUser = Depends(get_current_user)) -> Dict[str, Any]:
    results: List[Dict[str, object]] = level_resolver.initialize_user_levels(user.user_id)
    created = sum(1 for entry in results if entry["status"] == "created")
    emit_event("user_levels_initialized", user_id=user.user_id, created=created, topics=len(results))
    return {"success": True, "results": results}


__all__ = ["router"]
