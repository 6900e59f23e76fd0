from fastapi import APIRouter, Depends, Query, Response, status

from tasker.core.context import get_task_service
from tasker.models import GenerateResponse, TaskCreate, TaskResponse
from tasker.services.task_service import TaskService

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("/")
async def list_tasks(service: TaskService = Depends(get_task_service)):
    """List all tasks, newest first. ``X-Cache-Hit`` tells whether the cache served it."""
    result = await service.list()
    return Response(
        content=result.payload,
        media_type="application/json",
        headers={"X-Cache-Hit": "true" if result.hit else "false"},
    )


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate, service: TaskService = Depends(get_task_service)
):
    """Create a new task"""
    return await service.create(task_data.title)


@router.delete("/", status_code=status.HTTP_204_NO_CONTENT)
async def clear_tasks(service: TaskService = Depends(get_task_service)):
    """Delete every task"""
    await service.delete_all()


# count stays a raw string: anything that is not a positive integer means "default".
@router.post("/generate", response_model=GenerateResponse)
async def generate_tasks(
    count: str | None = Query(default=None),
    service: TaskService = Depends(get_task_service),
):
    created = await service.generate(count)
    return GenerateResponse(message=f"generated {created} tasks", count=created)


# task_id stays a raw string: a value that is not an id matches no row.
@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """Delete a task. Unknown ids are not an error."""
    await service.delete_one(task_id)
