import logging
from typing import Any, Dict, List, Optional, Union
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from taskmanager.core.errors import BadRequestError, InternalError, NotFoundError
from taskmanager.models.task import TASK_STATUSES, Task, TaskStatus

logger = logging.getLogger(__name__)

TASK_NOT_FOUND_MESSAGE = "Task not found"
# Largest value a 64-bit signed INTEGER primary key can hold
MAX_TASK_ID = 2**63 - 1
UPDATABLE_FIELDS = ("title", "description", "status")


def _validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise BadRequestError("Title is required")
    return title


def _validate_status(status: Any) -> str:
    if isinstance(status, TaskStatus):
        return status.value
    if status not in TASK_STATUSES:
        raise BadRequestError(
            f"Invalid status: {status!r}. Allowed: {', '.join(TASK_STATUSES)}"
        )
    return status


def _parse_task_id(task_id: Union[int, str]) -> int:
    """
    Ids are opaque to clients. Anything that cannot be a stored primary key
    (non-numeric, zero, negative, beyond 64 bits) matches no record.
    """
    if isinstance(task_id, str):
        candidate = task_id.strip()
        if not (candidate.isascii() and candidate.isdigit()):
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        task_id = int(candidate)
    if not 1 <= task_id <= MAX_TASK_ID:
        raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
    return task_id


class TaskService:
    """
    CRUD over the tasks table.

    Tasks are not scoped to a user: every authenticated caller sees and edits
    the same set.
    """

    def list_tasks(self, db: Session) -> List[Task]:
        """All tasks, newest first"""
        try:
            # id breaks ties between rows created within the same timestamp tick
            return db.query(Task).order_by(Task.created_at.desc(), Task.id.desc()).all()
        except SQLAlchemyError as e:
            logger.exception("Error fetching tasks")
            raise InternalError("Error fetching tasks", error=str(e))

    def create_task(
        self,
        db: Session,
        title: str,
        description: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Task:
        # Validate before touching the store
        title = _validate_title(title)
        status = _validate_status(status) if status is not None else TaskStatus.TODO.value

        db_task = Task(title=title, description=description, status=status)
        try:
            db.add(db_task)
            db.commit()
            db.refresh(db_task)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Error creating task")
            raise InternalError("Error creating task", error=str(e))

        logger.info(f"Created task {db_task.id}")
        return db_task

    def get_task(self, db: Session, task_id: Union[int, str]) -> Task:
        task_id = _parse_task_id(task_id)
        try:
            task = db.query(Task).filter(Task.id == task_id).first()
        except SQLAlchemyError as e:
            logger.exception(f"Error fetching task {task_id}")
            raise InternalError("Error fetching task", error=str(e))

        if not task:
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        return task

    def update_task(self, db: Session, task_id: Union[int, str], fields: Dict[str, Any]) -> Task:
        """
        Apply a partial update. Only keys present in fields are written;
        unknown keys are ignored.
        """
        changes = {key: value for key, value in fields.items() if key in UPDATABLE_FIELDS}
        if "title" in changes:
            changes["title"] = _validate_title(changes["title"])
        if "status" in changes:
            changes["status"] = _validate_status(changes["status"])

        task = self.get_task(db, task_id)

        for key, value in changes.items():
            setattr(task, key, value)

        try:
            db.commit()
            db.refresh(task)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Error updating task {task_id}")
            raise InternalError("Error updating task", error=str(e))

        logger.info(f"Updated task {task_id}: {', '.join(changes) or 'no changes'}")
        return task

    def delete_task(self, db: Session, task_id: Union[int, str]) -> None:
        task = self.get_task(db, task_id)
        try:
            db.delete(task)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Error deleting task {task_id}")
            raise InternalError("Error deleting task", error=str(e))

        logger.info(f"Deleted task {task_id}")
