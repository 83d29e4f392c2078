"""Task lifecycle endpoints."""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from .auth import AuthenticatedUser, get_current_user
from .task_sequencer import TaskSequencingError, TaskSnapshot, TaskType
from .task_store import TaskNotFoundError, TaskStoreError, task_store

router = APIRouter(prefix="/api", tags=["tasks"])
logger = logging.getLogger(__name__)


class CreateTaskRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    topic_name: str = Field(..., min_length=1, alias="topicName")
    task_type: TaskType = Field(..., alias="taskType")
    level: int = Field(default=1, ge=1)


class CreateTaskResponse(BaseModel):
    task_id: str


class NextTaskResponse(BaseModel):
    task_id: str
    task_type: TaskType
    level: int
    topic_url: str
    created: bool
    path: str


class CompleteTaskRequest(BaseModel):
    score: int = Field(default=0, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)


class TaskDurationRequest(BaseModel):
    duration: int = Field(..., ge=0)


@router.get("/user-tasks", response_model=List[TaskSnapshot])
def list_user_tasks(
    topic_name: str = Query(..., min_length=1, alias="topicName"),
    user: AuthenticatedUser = Depends(get_current_user),
) -> List[TaskSnapshot]:
    return task_store.list_topic_tasks(user.user_id, topic_name)


@router.post("/create-task", response_model=CreateTaskResponse)
def create_task(
    payload: CreateTaskRequest,
    user: AuthenticatedUser = Depends(get_current_user),
) -> CreateTaskResponse:
    if payload.user_id and payload.user_id != user.user_id:
        logger.warning("User %s attempted to create a task for %s", user.user_id, payload.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot create tasks for another user.",
        )
    try:
        task_id = task_store.create_task(user.user_id, payload.topic_name, payload.task_type, payload.level)
    except TaskStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return CreateTaskResponse(task_id=task_id)


@router.get("/topics/{topic}/next-task", response_model=NextTaskResponse)
def next_task(topic: str, user: AuthenticatedUser = Depends(get_current_user)) -> NextTaskResponse:
    try:
        decision = task_store.next_task(user.user_id, topic)
    except TaskSequencingError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except TaskStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return NextTaskResponse(**decision.model_dump(), path=decision.path)


@router.put("/tasks/{task_id}/complete", response_model=TaskSnapshot)
def complete_task(
    task_id: str,
    payload: CompleteTaskRequest,
    user: AuthenticatedUser = Depends(get_current_user),
) -> TaskSnapshot:
    try:
        return task_store.complete_task(task_id, payload.score, payload.duration, user_id=user.user_id)
    except TaskNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.put("/tasks/{task_id}/duration")
def update_task_duration(
    task_id: str,
    payload: TaskDurationRequest,
    user: AuthenticatedUser = Depends(get_current_user),
) -> dict:
    if not task_store.update_task_duration(task_id, payload.duration, user_id=user.user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task {task_id} not found.",
        )
    return {"success": True}


__all__ = ["router"]
