from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_serializer
from datetime import datetime
from taskmanager.core.database import get_db
from taskmanager.api.dependencies import get_current_user, get_task_service
from taskmanager.models.task import TaskStatus
from taskmanager.services.task_service import TaskService
from taskmanager.utils.datetime_utils import isoformat_utc

# Every route below sits behind the bearer-token gate
router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(get_current_user)],
)


class TaskCreate(BaseModel):
    title: str
    description: Optional[str] = None
    status: Optional[TaskStatus] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None


class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    status: TaskStatus
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at')
    def serialize_created_at(self, value: Optional[datetime], _info):
        return isoformat_utc(value)

    @field_serializer('updated_at')
    def serialize_updated_at(self, value: Optional[datetime], _info):
        return isoformat_utc(value)


class MessageResponse(BaseModel):
    message: str


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    db: Session = Depends(get_db),
    task_service: TaskService = Depends(get_task_service),
):
    """List all tasks, newest first"""
    return task_service.list_tasks(db)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    db: Session = Depends(get_db),
    task_service: TaskService = Depends(get_task_service),
):
    """Create a new task"""
    return task_service.create_task(
        db,
        title=task.title,
        description=task.description,
        status=task.status,
    )


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    task_update: TaskUpdate,
    db: Session = Depends(get_db),
    task_service: TaskService = Depends(get_task_service),
):
    """Update the fields present in the body; the rest stay as they are"""
    return task_service.update_task(db, task_id, task_update.model_dump(exclude_unset=True))


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    task_service: TaskService = Depends(get_task_service),
):
    """Delete a task"""
    task_service.delete_task(db, task_id)
    return MessageResponse(message="Task deleted")
