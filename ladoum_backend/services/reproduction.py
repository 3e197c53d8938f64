"""
Reproduction event service
Persists reproduction events, schedules their follow-up tasks and exposes the
cycle engine over the stored history of an animal or a farm.
"""

import json
import uuid
import sqlite3
import logging
import datetime as _dt
from typing import Dict, List, Optional
from fastapi import HTTPException
from ..db import conn
from ..models import (
    ReproductionEventBody, HeatBody, MatingBody, BirthBody,
    TaskBody, TaskPriority, TaskType,
)
from ..events.event_types import (
    InvalidDateError,
    ReproductionEvent,
    ReproductionEventType,
    parse_event_date,
)
from .reproduction_cycle import engine
from .tasks import insert_task

logger = logging.getLogger(__name__)

_EVENT_COLUMNS = """
    id, farm_id, animal_id, type, date, notes, intensity, duration, male_id,
    mating_type, expected_due_date, confirmation_method, litter_size,
    offspring_ids, complications, weaning_weight, created_by, created_at, updated_at
"""

# Same-date events come back newest first, so the latest recorded one decides the status
_ORDER_BY = "ORDER BY date DESC, created_at DESC, rowid DESC"


def _now_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat()


def _normalize_text(value: str | None) -> str | None:
    """Strip whitespace, empty strings become None"""
    return (value or "").strip() or None


def _enum_value(value) -> str | None:
    return value.value if value is not None else None


def validate_date(value, field_name: str = "date") -> _dt.date:
    """Parse a date at the API boundary, 400 on anything unparseable"""
    try:
        return parse_event_date(value, field_name)
    except InvalidDateError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _row_to_event(row) -> ReproductionEvent:
    return ReproductionEvent(
        id=row[0],
        farm_id=row[1],
        animal_id=row[2],
        type=row[3],
        date=row[4],
        notes=row[5],
        intensity=row[6],
        duration=row[7],
        male_id=row[8],
        mating_type=row[9],
        expected_due_date=row[10],
        confirmation_method=row[11],
        litter_size=row[12],
        offspring_ids=json.loads(row[13]) if row[13] else (),
        complications=row[14],
        weaning_weight=row[15],
        created_by=row[16],
        created_at=row[17],
        updated_at=row[18],
    )


def _insert_event(event: ReproductionEvent) -> ReproductionEvent:
    """Store a new event, assigning its id and bookkeeping timestamps"""
    now = _now_iso()
    stored = ReproductionEvent.from_dict(
        {**event.to_dict(), "id": uuid.uuid4().hex, "createdAt": now, "updatedAt": now}
    )
    try:
        with conn:
            conn.execute(
                f"""
                INSERT INTO reproduction_events ({_EVENT_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    stored.id,
                    stored.farm_id,
                    stored.animal_id,
                    stored.type.value,
                    stored.date.isoformat(),
                    stored.notes,
                    stored.intensity,
                    stored.duration,
                    stored.male_id,
                    stored.mating_type,
                    stored.expected_due_date.isoformat() if stored.expected_due_date else None,
                    stored.confirmation_method,
                    stored.litter_size,
                    json.dumps(list(stored.offspring_ids)) if stored.offspring_ids else None,
                    stored.complications,
                    stored.weaning_weight,
                    stored.created_by,
                    stored.created_at,
                    stored.updated_at,
                ),
            )
        return stored
    except sqlite3.IntegrityError as e:
        if "UNIQUE constraint failed" in str(e):
            raise HTTPException(status_code=409, detail="Heat already recorded for this animal on this date")
        raise HTTPException(status_code=500, detail=f"Database integrity error: {e}")
    except sqlite3.Error as e:
        logger.error(f"Error inserting reproduction event: {e}")
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


def add_event(created_by: str, body: ReproductionEventBody) -> ReproductionEvent:
    """Append a reproduction event.

    For a mating the expected due date is computed here, once, and stored with
    the event; it is never recomputed afterwards.
    """
    animal_id = _normalize_text(body.animalId)
    if not animal_id:
        raise HTTPException(status_code=400, detail="animalId is required")

    event_date = validate_date(body.date)
    expected_due_date = None
    if body.type == ReproductionEventType.MATING:
        expected_due_date = engine.expected_due_date(event_date)

    event = ReproductionEvent(
        farm_id=_normalize_text(body.farmId),
        animal_id=animal_id,
        type=body.type,
        date=event_date,
        notes=_normalize_text(body.notes),
        intensity=_enum_value(body.intensity),
        duration=body.duration,
        male_id=_normalize_text(body.maleId),
        mating_type=_enum_value(body.matingType),
        expected_due_date=expected_due_date,
        confirmation_method=_enum_value(body.confirmationMethod),
        litter_size=body.litterSize,
        offspring_ids=body.offspringIds or (),
        complications=_normalize_text(body.complications),
        weaning_weight=body.weaningWeight,
        created_by=created_by,
    )
    return _insert_event(event)


def get_event(event_id: str) -> ReproductionEvent:
    try:
        cursor = conn.execute(
            f"SELECT {_EVENT_COLUMNS} FROM reproduction_events WHERE id = ?", (event_id,)
        )
        row = cursor.fetchone()
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
    if not row:
        raise HTTPException(status_code=404, detail="Reproduction event not found")
    return _row_to_event(row)


def get_events_by_animal(animal_id: str) -> List[ReproductionEvent]:
    """All events of one animal, most recent first"""
    try:
        cursor = conn.execute(
            f"SELECT {_EVENT_COLUMNS} FROM reproduction_events WHERE animal_id = ? {_ORDER_BY}",
            (animal_id,),
        )
        return [_row_to_event(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


def get_events_by_farm(farm_id: str) -> List[ReproductionEvent]:
    """All events of a farm, most recent first"""
    try:
        cursor = conn.execute(
            f"SELECT {_EVENT_COLUMNS} FROM reproduction_events WHERE farm_id = ? {_ORDER_BY}",
            (farm_id,),
        )
        return [_row_to_event(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


def get_last_mating(animal_id: str) -> Optional[ReproductionEvent]:
    """Most recent mating of a female, used to find the sire of a litter"""
    matings = [e for e in get_events_by_animal(animal_id) if e.type == ReproductionEventType.MATING]
    return matings[0] if matings else None


def update_event(event_id: str, notes: str | None) -> ReproductionEvent:
    """Amend the notes of an event. Key fields are immutable."""
    updated_at = _now_iso()
    try:
        with conn:
            cursor = conn.execute(
                "UPDATE reproduction_events SET notes = ?, updated_at = ? WHERE id = ?",
                (_normalize_text(notes), updated_at, event_id),
            )
            if cursor.rowcount == 0:
                raise HTTPException(status_code=404, detail="Reproduction event not found")
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
    return get_event(event_id)


def _schedule_follow_up(created_by: str, task: TaskBody) -> Optional[str]:
    # The event is already recorded; a failed task must not fail the request
    try:
        return insert_task(created_by, task)
    except HTTPException as e:
        logger.warning(f"Failed to schedule follow-up task '{task.title}': {e.detail}")
        return None


def record_heat(created_by: str, body: HeatBody) -> Dict:
    event = add_event(
        created_by,
        ReproductionEventBody(
            farmId=body.farmId,
            animalId=body.animalId,
            type=ReproductionEventType.HEAT,
            date=body.date,
            intensity=body.intensity,
            duration=body.duration,
            notes=body.notes,
        ),
    )
    prediction = engine.predict_next_heat(get_events_by_animal(event.animal_id))
    return {
        "event": event.to_dict(),
        "nextHeat": prediction.to_dict() if prediction else None,
    }


def record_mating(created_by: str, body: MatingBody) -> Dict:
    """Record a mating and plan the pregnancy confirmation ultrasound"""
    event = add_event(
        created_by,
        ReproductionEventBody(
            farmId=body.farmId,
            animalId=body.animalId,
            type=ReproductionEventType.MATING,
            date=body.date,
            maleId=body.maleId,
            matingType=body.matingType,
            notes=body.notes,
        ),
    )
    name = _normalize_text(body.animalName) or event.animal_id
    task_id = _schedule_follow_up(
        created_by,
        TaskBody(
            farmId=event.farm_id,
            title=f"Ultrasound - {name}",
            description=f"Pregnancy confirmation after mating on {event.date.isoformat()}",
            date=engine.ultrasound_date(event.date).isoformat(),
            priority=TaskPriority.HIGH,
            type=TaskType.REPRODUCTION,
            animalId=event.animal_id,
        ),
    )
    return {
        "event": event.to_dict(),
        "expectedDueDate": event.expected_due_date.isoformat(),
        "taskId": task_id,
    }


def record_birth(created_by: str, body: BirthBody) -> Dict:
    """Record a birth and plan the weaning of the litter"""
    if body.litterSize < 1:
        raise HTTPException(status_code=400, detail="litterSize must be at least 1")

    complications = _normalize_text(body.complications)
    notes = _normalize_text(body.notes) or (complications or "Normal birth")
    if body.birthTime:
        notes = f"{notes}. Time: {body.birthTime}"

    event = add_event(
        created_by,
        ReproductionEventBody(
            farmId=body.farmId,
            animalId=body.animalId,
            type=ReproductionEventType.BIRTH,
            date=body.date,
            litterSize=body.litterSize,
            offspringIds=body.offspringIds,
            complications=complications,
            notes=notes,
        ),
    )
    name = _normalize_text(body.animalName) or event.animal_id
    task_id = _schedule_follow_up(
        created_by,
        TaskBody(
            farmId=event.farm_id,
            title=f"Suggested weaning - {name}",
            description=f"Weaning of {body.litterSize} lamb(s) born on {event.date.isoformat()}",
            date=engine.weaning_date(event.date).isoformat(),
            priority=TaskPriority.MEDIUM,
            type=TaskType.REPRODUCTION,
            animalId=event.animal_id,
        ),
    )
    return {"event": event.to_dict(), "taskId": task_id}


def get_cycle_status(animal_id: str, now: _dt.date) -> Dict:
    status = engine.current_cycle_status(get_events_by_animal(animal_id), now)
    return {"animalId": animal_id, **status.to_dict()}


def get_farm_cycle_overview(farm_id: str, now: _dt.date) -> List[Dict]:
    """Cycle status, next heat and gestation of every animal with events on a farm"""
    by_animal: Dict[str, List[ReproductionEvent]] = {}
    for event in get_events_by_farm(farm_id):
        by_animal.setdefault(event.animal_id, []).append(event)

    overview = []
    for animal_id, events in by_animal.items():
        status = engine.current_cycle_status(events, now)
        next_heat = engine.predict_next_heat(events)
        gestation = engine.predict_gestation(events, now)
        overview.append({
            "animalId": animal_id,
            **status.to_dict(),
            "nextHeat": next_heat.to_dict() if next_heat else None,
            "gestation": gestation.to_dict() if gestation else None,
        })
    return sorted(overview, key=lambda item: item["animalId"])


def export_events(farm_id: str, start_date: str = None, end_date: str = None) -> List[Dict]:
    """Export the events of a farm with optional date filtering"""
    where_conditions = ["farm_id = ?"]
    params = [farm_id]

    start = validate_date(start_date, "start_date") if start_date else None
    end = validate_date(end_date, "end_date") if end_date else None
    if start:
        where_conditions.append("date >= ?")
        params.append(start.isoformat())
    if end:
        where_conditions.append("date <= ?")
        params.append(end.isoformat())

    try:
        cursor = conn.execute(
            f"""
            SELECT {_EVENT_COLUMNS} FROM reproduction_events
            WHERE {' AND '.join(where_conditions)}
            {_ORDER_BY}
            """,
            tuple(params),
        )
        events = [_row_to_event(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")

    return [
        {
            "animalId": e.animal_id,
            "type": e.type.value,
            "date": e.date.isoformat(),
            "maleId": e.male_id or "",
            "matingType": e.mating_type or "",
            "expectedDueDate": e.expected_due_date.isoformat() if e.expected_due_date else "",
            "intensity": e.intensity or "",
            "litterSize": e.litter_size if e.litter_size is not None else "",
            "complications": e.complications or "",
            "notes": e.notes or "",
        }
        for e in events
    ]
