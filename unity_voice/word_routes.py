"""Vocabulary and topic catalogue endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from .auth import AuthenticatedUser, get_current_user
from .task_store import TaskNotFoundError, task_store
from .word_store import DEFAULT_WORD_LIMIT, WordSnapshot, list_topics, select_words

router = APIRouter(prefix="/api", tags=["words"])


class AddWordsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(..., min_length=1, alias="taskId")
    word_ids: List[str] = Field(default_factory=list, alias="wordIds")


@router.get("/words-in-task", response_model=List[WordSnapshot])
def get_words_in_task(
    task_id: str = Query(..., min_length=1, alias="taskId"),
    user: AuthenticatedUser = Depends(get_current_user),
) -> List[WordSnapshot]:
    try:
        return task_store.words_for_task(task_id, user_id=user.user_id)
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/words-in-task")
def add_words_to_task(
    payload: AddWordsRequest,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    try:
        added = task_store.add_words_to_task(payload.task_id, payload.word_ids, user_id=user.user_id)
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"success": True, "added": added}


@router.get("/words", response_model=List[WordSnapshot])
def get_words(
    topic_name: str = Query(..., min_length=1, alias="topicName"),
    level: str = Query(..., min_length=1),
    limit: int = Query(default=DEFAULT_WORD_LIMIT, ge=1, le=100),
    user: AuthenticatedUser = Depends(get_current_user),
) -> List[WordSnapshot]:
    return select_words(user.user_id, topic_name, level, limit=limit)


@router.get("/topics")
def get_topics(user: AuthenticatedUser = Depends(get_current_user)) -> List[dict]:
    return list_topics()


__all__ = ["router"]
