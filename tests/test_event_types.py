from datetime import date, datetime

import pytest

from ladoum_backend.events.event_types import (
    InvalidDateError, ReproductionEvent, ReproductionEventType, parse_event_date,
)


@pytest.mark.parametrize("value", [
    "2024-01-15",
    "15/01/2024",
    "15/01/24",
    "15-01-2024",
    "2024-01-15T08:30:00Z",
    "2024-01-15 10:30:00",
    date(2024, 1, 15),
    datetime(2024, 1, 15, 22, 0),
])
def test_parse_event_date_formats(value):
    assert parse_event_date(value) == date(2024, 1, 15)


@pytest.mark.parametrize("value", ["", "   ", "31/02/2024", "tomorrow", None, 20240115])
def test_parse_event_date_rejects_invalid(value):
    with pytest.raises(InvalidDateError):
        parse_event_date(value)


def test_invalid_date_error_names_field():
    with pytest.raises(InvalidDateError) as exc_info:
        parse_event_date("13/13/2024", "matingDate")
    assert exc_info.value.field_name == "matingDate"
    assert "matingDate" in str(exc_info.value)
    assert isinstance(exc_info.value, ValueError)


def test_event_rejects_bad_date_at_construction():
    with pytest.raises(InvalidDateError):
        ReproductionEvent(animal_id="EWE-1", type="Heat", date="soon")


def test_event_rejects_unknown_type():
    with pytest.raises(ValueError):
        ReproductionEvent(animal_id="EWE-1", type="Ultrasound", date="2024-01-01")


def test_event_dict_round_trip_keeps_camel_case():
    event = ReproductionEvent.from_dict({
        "id": "abc",
        "farmId": "FARM-1",
        "animalId": "EWE-1",
        "type": "Mating",
        "date": "2024-01-01",
        "maleId": "RAM-7",
        "matingType": "AI",
        "expectedDueDate": "2024-05-30",
    })
    assert event.type == ReproductionEventType.MATING
    assert event.expected_due_date == date(2024, 5, 30)

    data = event.to_dict()
    assert data["maleId"] == "RAM-7"
    assert data["expectedDueDate"] == "2024-05-30"
    assert "litterSize" not in data
    assert "offspringIds" not in data
