from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session, select
from typing import List, Optional
from database import get_session
from models import Task, User, utcnow
from schemas import TaskCreate, TaskUpdate, TaskResponse
from middleware.auth import verify_jwt_middleware

router = APIRouter()

SORTABLE_FIELDS = {
    "description": Task.description,
    "completed": Task.completed,
    "created_at": Task.created_at,
    "createdAt": Task.created_at,
    "updated_at": Task.updated_at,
    "updatedAt": Task.updated_at,
}


def parse_sort(sort_by: str):
    """
    Turn a `field_direction` token into an ORDER BY clause

    A `_desc` suffix sorts descending and any other suffix, or none, sorts
    ascending, so `created_at`, `created_at_asc` and `created_at_up` agree.

    Raises:
        HTTPException: If the field is not sortable
    """
    field, descending = sort_by, False
    head, sep, tail = sort_by.rpartition("_")
    if sep and head in SORTABLE_FIELDS:
        field, descending = head, tail == "desc"

    column = SORTABLE_FIELDS.get(field)
    if column is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot sort by '{field}'"
        )
    return column.desc() if descending else column.asc()


def get_owned_task(session: Session, task_id: str, owner: User) -> Task:
    """Fetch a task owned by the user; foreign and missing tasks are both 404"""
    task = session.exec(
        select(Task).where(Task.id == task_id, Task.owner_id == owner.id)
    ).first()

    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found"
        )
    return task


@router.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> Task:
    """
    Create a new task owned by the authenticated user

    Args:
        task_data: Task creation data
        user: Authenticated user
        session: Database session

    Returns:
        Created task
    """
    task = Task(
        owner_id=user.id,
        description=task_data.description,
        completed=task_data.completed
    )

    session.add(task)
    session.commit()
    session.refresh(task)

    return task


@router.get("/tasks", response_model=List[TaskResponse])
async def list_tasks(
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session),
    completed: Optional[bool] = None,
    limit: Optional[int] = Query(None, ge=0),
    skip: Optional[int] = Query(None, ge=0),
    sort_by: Optional[str] = Query(None, alias="sortBy")
) -> List[Task]:
    """
    Get the authenticated user's tasks

    Args:
        user: Authenticated user
        session: Database session
        completed: Only return tasks with this completion state
        limit: Maximum number of tasks to return
        skip: Number of tasks to skip
        sort_by: Sort token such as `created_at_desc`

    Returns:
        List of tasks
    """
    query = select(Task).where(Task.owner_id == user.id)

    if completed is not None:
        query = query.where(Task.completed == completed)

    if sort_by:
        query = query.order_by(parse_sort(sort_by))

    if skip:
        query = query.offset(skip)
    if limit:
        query = query.limit(limit)

    return session.exec(query).all()


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> Task:
    """
    Get task details

    Args:
        task_id: Task ID
        user: Authenticated user
        session: Database session

    Returns:
        Task details
    """
    return get_owned_task(session, task_id, user)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> Task:
    """
    Update a task

    Args:
        task_id: Task ID
        task_data: Task update data, only description and completed
        user: Authenticated user
        session: Database session

    Returns:
        Updated task
    """
    task = get_owned_task(session, task_id, user)

    # Update fields
    for field, value in task_data.model_dump(exclude_unset=True).items():
        setattr(task, field, value)

    task.updated_at = utcnow()

    session.add(task)
    session.commit()
    session.refresh(task)

    return task


@router.delete("/tasks/{task_id}", response_model=TaskResponse)
async def delete_task(
    task_id: str,
    user: User = Depends(verify_jwt_middleware),
    session: Session = Depends(get_session)
) -> TaskResponse:
    """
    Delete a task

    Args:
        task_id: Task ID
        user: Authenticated user
        session: Database session

    Returns:
        Deleted task
    """
    task = get_owned_task(session, task_id, user)
    deleted = TaskResponse.model_validate(task)

    session.delete(task)
    session.commit()

    return deleted
