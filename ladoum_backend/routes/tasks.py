from fastapi import APIRouter, Header, Request
from ..models import TaskBody, UpdateTaskBody, UpdateTaskStatusBody
from ..services.tasks import (
    insert_task, get_task, get_tasks_by_farm, get_tasks_by_animal,
    update_task_status, update_task, delete_task,
)
from ..services.auth_service import authenticate_user

router = APIRouter(prefix="/tasks", tags=["tasks"])

@router.post("", status_code=201)
def create_task(body: TaskBody, request: Request, x_user_key: str | None = Header(default=None)):
    user_id = authenticate_user(request, x_user_key)
    task_id = insert_task(user_id, body)
    return {"ok": True, "id": task_id}

@router.get("/farm/{farm_id}")
def list_farm_tasks(farm_id: str, request: Request, status: str | None = None, x_user_key: str | None = Header(default=None)):
    """Tasks of a farm ordered by date, optionally one kanban column"""
    authenticate_user(request, x_user_key)
    tasks = get_tasks_by_farm(farm_id, status)
    return {"count": len(tasks), "tasks": tasks}

@router.get("/animal/{animal_id}")
def list_animal_tasks(animal_id: str, request: Request, x_user_key: str | None = Header(default=None)):
    authenticate_user(request, x_user_key)
    tasks = get_tasks_by_animal(animal_id)
    return {"count": len(tasks), "tasks": tasks}

@router.get("/{task_id}")
def read_task(task_id: str, request: Request, x_user_key: str | None = Header(default=None)):
    authenticate_user(request, x_user_key)
    return get_task(task_id)

@router.patch("/{task_id}/status")
def move_task(task_id: str, body: UpdateTaskStatusBody, request: Request, x_user_key: str | None = Header(default=None)):
    """Move a task to another kanban column (Todo, In Progress, Blocked, Done)"""
    authenticate_user(request, x_user_key)
    update_task_status(task_id, body.status)
    return {"ok": True}

@router.put("/{task_id}")
def edit_task(task_id: str, body: UpdateTaskBody, request: Request, x_user_key: str | None = Header(default=None)):
    authenticate_user(request, x_user_key)
    update_task(task_id, body)
    return {"ok": True}

@router.delete("/{task_id}")
def remove_task(task_id: str, request: Request, x_user_key: str | None = Header(default=None)):
    authenticate_user(request, x_user_key)
    delete_task(task_id)
    return {"ok": True}
