"""Level endpoints used by the topic pages."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from .auth import AuthenticatedUser, get_current_user
from .level_resolver import LevelProgress, level_resolver

router = APIRouter(prefix="/api", tags=["progress"])
logger = logging.getLogger(__name__)


class LevelPayload(BaseModel):
    topic_name: str
    level: int
    source: str


class UpdateLevelRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    topic_name: str = Field(..., min_length=1, alias="topicName")
    level: int = Field(..., ge=1)
    earned_score: Optional[int] = Field(default=None, ge=0, alias="earnedScore")


class LevelCompletionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    topic_name: str = Field(..., min_length=1, alias="topicName")
    level: int = Field(..., ge=1)
    earned_score: int = Field(default=0, ge=0, alias="earnedScore")
    completed: bool = False


@router.get("/user/level", response_model=LevelPayload)
def get_user_level(
    topic_name: str = Query(..., min_length=1, alias="topicName"),
    user: AuthenticatedUser = Depends(get_current_user),
) -> LevelPayload:
    resolution = level_resolver.resolve(user.user_id, topic_name)
    return LevelPayload(topic_name=topic_name, level=resolution.level, source=resolution.source)


@router.post("/user/level", status_code=status.HTTP_200_OK)
def update_user_level(
    payload: UpdateLevelRequest,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    if not level_resolver.update_level(user.user_id, payload.topic_name, payload.level, payload.earned_score):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to update user level.",
        )
    return {"success": True}


@router.post("/user-level/update", response_model=LevelProgress)
def record_level_completion(
    payload: LevelCompletionRequest,
    user: AuthenticatedUser = Depends(get_current_user),
) -> LevelProgress:
    progress = level_resolver.record_level_completion(
        user.user_id,
        payload.topic_name,
        payload.level,
        earned_score=payload.earned_score,
        completed=payload.completed,
    )
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record level progress.",
        )
    return progress


__all__ = ["router"]
