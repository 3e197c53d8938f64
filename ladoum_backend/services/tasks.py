import json
import uuid
import sqlite3
import logging
import datetime as _dt
from fastapi import HTTPException
from ..db import conn
from ..models import TaskBody, UpdateTaskBody, TaskStatus
from ..events.event_types import InvalidDateError, parse_event_date

logger = logging.getLogger(__name__)

_TASK_COLUMNS = """
    id, farm_id, title, date, status, priority, type, animal_id,
    description, assigned_to, created_by, created_at, updated_at
"""

VALID_TASK_STATUSES = [s.value for s in TaskStatus]


def _now_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat()


def _validate_task_date(value) -> str:
    try:
        return parse_event_date(value).isoformat()
    except InvalidDateError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _encode_assigned_to(assigned_to) -> str | None:
    # Single user id or a list of ids for group tasks
    if assigned_to is None:
        return None
    return json.dumps(assigned_to)


def _row_to_task(row) -> dict:
    task = {
        "id": row[0],
        "farmId": row[1],
        "title": row[2],
        "date": row[3],
        "status": row[4],
        "priority": row[5],
        "type": row[6],
        "animalId": row[7],
        "description": row[8],
        "assignedTo": json.loads(row[9]) if row[9] else None,
        "createdBy": row[10],
        "createdAt": row[11],
        "updatedAt": row[12],
    }
    return {k: v for k, v in task.items() if v is not None}


def insert_task(created_by: str, body: TaskBody) -> str:
    """Insert a new task and return its id"""
    if not (body.title or "").strip():
        raise HTTPException(status_code=400, detail="title is required")

    task_id = uuid.uuid4().hex
    now = _now_iso()
    try:
        with conn:
            conn.execute(
                f"""
                INSERT INTO tasks ({_TASK_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task_id,
                    body.farmId,
                    body.title.strip(),
                    _validate_task_date(body.date),
                    body.status.value,
                    body.priority.value,
                    body.type.value,
                    body.animalId,
                    body.description,
                    _encode_assigned_to(body.assignedTo),
                    created_by,
                    now,
                    now,
                ),
            )
        return task_id
    except sqlite3.Error as e:
        logger.error(f"Error inserting task: {e}")
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


def get_task(task_id: str) -> dict:
    try:
        cursor = conn.execute(f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ?", (task_id,))
        row = cursor.fetchone()
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
    if not row:
        raise HTTPException(status_code=404, detail="Task not found")
    return _row_to_task(row)


def get_tasks_by_farm(farm_id: str, status: str | None = None) -> list[dict]:
    """Get the tasks of a farm ordered by date, optionally for one kanban column"""
    where_conditions = ["farm_id = ?"]
    params = [farm_id]
    if status:
        if status not in VALID_TASK_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Must be one of: {', '.join(VALID_TASK_STATUSES)}",
            )
        where_conditions.append("status = ?")
        params.append(status)

    try:
        cursor = conn.execute(
            f"""
            SELECT {_TASK_COLUMNS} FROM tasks
            WHERE {' AND '.join(where_conditions)}
            ORDER BY date ASC, created_at ASC
            """,
            tuple(params),
        )
        return [_row_to_task(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


def get_tasks_by_animal(animal_id: str) -> list[dict]:
    try:
        cursor = conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE animal_id = ? ORDER BY date ASC, created_at ASC",
            (animal_id,),
        )
        return [_row_to_task(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


def update_task_status(task_id: str, status: str) -> None:
    """Move a task to another kanban column"""
    if status not in VALID_TASK_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Must be one of: {', '.join(VALID_TASK_STATUSES)}",
        )
    try:
        with conn:
            cursor = conn.execute(
                "UPDATE tasks SET status = ?, updated_at = ? WHERE id = ?",
                (status, _now_iso(), task_id),
            )
            if cursor.rowcount == 0:
                raise HTTPException(status_code=404, detail="Task not found")
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


def update_task(task_id: str, body: UpdateTaskBody) -> None:
    """Update the provided fields of a task"""
    updates = {}
    if body.title is not None:
        if not body.title.strip():
            raise HTTPException(status_code=400, detail="title cannot be empty")
        updates["title"] = body.title.strip()
    if body.date is not None:
        updates["date"] = _validate_task_date(body.date)
    if body.priority is not None:
        updates["priority"] = body.priority.value
    if body.type is not None:
        updates["type"] = body.type.value
    if body.animalId is not None:
        updates["animal_id"] = body.animalId
    if body.description is not None:
        updates["description"] = body.description
    if body.assignedTo is not None:
        updates["assigned_to"] = _encode_assigned_to(body.assignedTo)

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    updates["updated_at"] = _now_iso()
    set_clause = ", ".join(f"{column} = ?" for column in updates)
    try:
        with conn:
            cursor = conn.execute(
                f"UPDATE tasks SET {set_clause} WHERE id = ?",
                (*updates.values(), task_id),
            )
            if cursor.rowcount == 0:
                raise HTTPException(status_code=404, detail="Task not found")
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


def delete_task(task_id: str) -> None:
    try:
        with conn:
            cursor = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            if cursor.rowcount == 0:
                raise HTTPException(status_code=404, detail="Task not found")
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
