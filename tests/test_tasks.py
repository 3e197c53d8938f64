import pytest
from fastapi import HTTPException

from ladoum_backend.models import TaskBody, TaskPriority, UpdateTaskBody
from ladoum_backend.services import tasks

USER = "test-key"


def _task(**kwargs):
    fields = {"title": "Deworm flock", "date": "2024-04-01", "farmId": "FARM-1"}
    fields.update(kwargs)
    return tasks.insert_task(USER, TaskBody(**fields))


def test_insert_defaults_to_todo():
    task = tasks.get_task(_task())
    assert task["status"] == "Todo"
    assert task["priority"] == "Medium"
    assert task["type"] == "General"
    assert task["createdBy"] == USER


def test_group_assignment_is_kept():
    task = tasks.get_task(_task(assignedTo=["u1", "u2"]))
    assert task["assignedTo"] == ["u1", "u2"]


def test_blank_title_is_rejected():
    with pytest.raises(HTTPException) as exc_info:
        _task(title="   ")
    assert exc_info.value.status_code == 400


def test_invalid_date_is_rejected():
    with pytest.raises(HTTPException) as exc_info:
        _task(date="next week")
    assert exc_info.value.status_code == 400


def test_farm_tasks_are_ordered_by_date_and_filterable():
    later = _task(title="Shear", date="2024-05-01")
    earlier = _task(title="Vaccinate", date="01/04/2024")
    _task(title="Elsewhere", farmId="FARM-2")

    assert [t["id"] for t in tasks.get_tasks_by_farm("FARM-1")] == [earlier, later]

    tasks.update_task_status(later, "In Progress")
    in_progress = tasks.get_tasks_by_farm("FARM-1", "In Progress")
    assert [t["id"] for t in in_progress] == [later]


def test_unknown_status_is_rejected():
    task_id = _task()
    with pytest.raises(HTTPException) as exc_info:
        tasks.update_task_status(task_id, "Archived")
    assert exc_info.value.status_code == 400
    with pytest.raises(HTTPException):
        tasks.get_tasks_by_farm("FARM-1", "Archived")


def test_status_of_missing_task():
    with pytest.raises(HTTPException) as exc_info:
        tasks.update_task_status("missing", "Done")
    assert exc_info.value.status_code == 404


def test_update_task_fields():
    task_id = _task()
    tasks.update_task(task_id, UpdateTaskBody(title="Deworm ewes", priority=TaskPriority.HIGH, date="2024-04-03"))
    task = tasks.get_task(task_id)
    assert task["title"] == "Deworm ewes"
    assert task["priority"] == "High"
    assert task["date"] == "2024-04-03"


def test_update_without_fields():
    with pytest.raises(HTTPException) as exc_info:
        tasks.update_task(_task(), UpdateTaskBody())
    assert exc_info.value.status_code == 400


def test_delete_task():
    task_id = _task()
    tasks.delete_task(task_id)
    with pytest.raises(HTTPException) as exc_info:
        tasks.get_task(task_id)
    assert exc_info.value.status_code == 404
    with pytest.raises(HTTPException):
        tasks.delete_task(task_id)
