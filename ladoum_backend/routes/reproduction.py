import csv
import io
import datetime as _dt
from fastapi import APIRouter, Header, HTTPException, Request, UploadFile, File
from fastapi.responses import Response
from ..models import (
    ReproductionEventBody, UpdateReproductionEventBody,
    HeatBody, MatingBody, BirthBody, CycleStatusResponse,
)
from ..services.reproduction import (
    add_event, get_event, update_event, get_events_by_animal, get_events_by_farm,
    record_heat, record_mating, record_birth, get_cycle_status,
    get_farm_cycle_overview, export_events, validate_date,
)
from ..services.reproduction_cycle import engine
from ..services.reproduction_upload import upload_heats_from_file
from ..services.auth_service import authenticate_user

router = APIRouter(prefix="/reproduction", tags=["reproduction"])

EXPORT_COLUMNS = [
    "animalId", "type", "date", "maleId", "matingType", "expectedDueDate",
    "intensity", "litterSize", "complications", "notes",
]


def _reference_date(on: str | None) -> _dt.date:
    # Reproducible answers: callers may pin "today"
    return validate_date(on, "on") if on else _dt.date.today()


@router.post("/events", status_code=201)
def create_event(body: ReproductionEventBody, request: Request, x_user_key: str | None = Header(default=None)):
    """Record a reproduction event"""
    user_id = authenticate_user(request, x_user_key)
    event = add_event(user_id, body)
    return {"ok": True, "id": event.id, "event": event.to_dict()}

@router.get("/events/{event_id}")
def read_event(event_id: str, request: Request, x_user_key: str | None = Header(default=None)):
    authenticate_user(request, x_user_key)
    return get_event(event_id).to_dict()

@router.patch("/events/{event_id}")
def amend_event(event_id: str, body: UpdateReproductionEventBody, request: Request, x_user_key: str | None = Header(default=None)):
    """Amend the notes of an event; type, date and animal never change"""
    authenticate_user(request, x_user_key)
    event = update_event(event_id, body.notes)
    return {"ok": True, "event": event.to_dict()}

@router.get("/animals/{animal_id}/events")
def list_animal_events(animal_id: str, request: Request, x_user_key: str | None = Header(default=None)):
    """All events of an animal, most recent first"""
    authenticate_user(request, x_user_key)
    events = get_events_by_animal(animal_id)
    return {"count": len(events), "events": [e.to_dict() for e in events]}

@router.get("/farms/{farm_id}/events")
def list_farm_events(farm_id: str, request: Request, x_user_key: str | None = Header(default=None)):
    authenticate_user(request, x_user_key)
    events = get_events_by_farm(farm_id)
    return {"count": len(events), "events": [e.to_dict() for e in events]}

@router.post("/heats", status_code=201)
def register_heat(body: HeatBody, request: Request, x_user_key: str | None = Header(default=None)):
    """Record a heat and return the updated next heat prediction"""
    user_id = authenticate_user(request, x_user_key)
    return {"ok": True, **record_heat(user_id, body)}

@router.post("/matings", status_code=201)
def register_mating(body: MatingBody, request: Request, x_user_key: str | None = Header(default=None)):
    """Record a mating; schedules the confirmation ultrasound"""
    user_id = authenticate_user(request, x_user_key)
    return {"ok": True, **record_mating(user_id, body)}

@router.post("/births", status_code=201)
def register_birth(body: BirthBody, request: Request, x_user_key: str | None = Header(default=None)):
    """Record a birth; schedules the weaning of the litter"""
    user_id = authenticate_user(request, x_user_key)
    return {"ok": True, **record_birth(user_id, body)}

@router.get("/animals/{animal_id}/status", response_model=CycleStatusResponse, response_model_exclude_none=True)
def animal_cycle_status(animal_id: str, request: Request, on: str | None = None, x_user_key: str | None = Header(default=None)):
    """Current cycle status, derived from the most recent event"""
    authenticate_user(request, x_user_key)
    return get_cycle_status(animal_id, _reference_date(on))

@router.get("/animals/{animal_id}/next-heat")
def animal_next_heat(animal_id: str, request: Request, x_user_key: str | None = Header(default=None)):
    """Predicted next heat; null prediction when fewer than two heats are recorded"""
    authenticate_user(request, x_user_key)
    prediction = engine.predict_next_heat(get_events_by_animal(animal_id))
    return {"animalId": animal_id, "prediction": prediction.to_dict() if prediction else None}

@router.get("/animals/{animal_id}/gestation")
def animal_gestation(animal_id: str, request: Request, on: str | None = None, x_user_key: str | None = Header(default=None)):
    authenticate_user(request, x_user_key)
    prediction = engine.predict_gestation(get_events_by_animal(animal_id), _reference_date(on))
    return {"animalId": animal_id, "prediction": prediction.to_dict() if prediction else None}

@router.get("/due-date")
def due_date(mating_date: str, request: Request, x_user_key: str | None = Header(default=None)):
    """Expected due date for a mating date"""
    authenticate_user(request, x_user_key)
    parsed = validate_date(mating_date, "mating_date")
    return {
        "matingDate": parsed.isoformat(),
        "expectedDueDate": engine.expected_due_date(parsed).isoformat(),
        "gestationDays": engine.gestation_days,
    }

@router.get("/farms/{farm_id}/overview")
def farm_overview(farm_id: str, request: Request, on: str | None = None, x_user_key: str | None = Header(default=None)):
    """Cycle status of every animal of a farm"""
    authenticate_user(request, x_user_key)
    animals = get_farm_cycle_overview(farm_id, _reference_date(on))
    return {"farmId": farm_id, "count": len(animals), "animals": animals}

@router.get("/farms/{farm_id}/export")
def export_farm_events(
    farm_id: str,
    request: Request,
    x_user_key: str | None = Header(default=None),
    format: str = "json",
    start: str | None = None,
    end: str | None = None
):
    """Export reproduction events with optional date filtering"""
    authenticate_user(request, x_user_key)
    records = export_events(farm_id, start, end)

    if (format or "").lower() == "csv":
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS)
        writer.writeheader()
        for record in records:
            writer.writerow(record)

        return Response(
            content=buf.getvalue(),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename=reproduction_{farm_id}.csv"}
        )

    return {"count": len(records), "records": records}

@router.post("/farms/{farm_id}/upload-heats")
async def upload_heats(farm_id: str, request: Request, file: UploadFile = File(...), x_user_key: str | None = Header(default=None)):
    """Import a heat history from a CSV/XLSX file"""
    user_id = authenticate_user(request, x_user_key)
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    return await upload_heats_from_file(file, farm_id, user_id)
