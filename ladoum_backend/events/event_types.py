"""
Reproduction Event Type Definitions

This module defines the reproduction event types recorded for female animals,
the cycle statuses derived from them, and the immutable event record used by
the cycle engine.

Key principles:
- Events are immutable - only notes (and updatedAt) can be amended after creation
- Event dates are calendar dates, parsed once at the boundary
- The most recent event decides the current cycle status
"""

import datetime as _dt
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field


class ReproductionEventType(str, Enum):
    """Closed set of reproduction events recorded for a female."""

    HEAT = "Heat"
    MATING = "Mating"
    PREGNANCY = "Pregnancy"
    BIRTH = "Birth"
    ABORTION = "Abortion"
    WEANING = "Weaning"


class CycleStatusLabel(str, Enum):
    """Reproductive phase derived from the most recent event."""

    AVAILABLE = "Available"
    IN_HEAT = "InHeat"
    AWAITING_CONFIRMATION = "AwaitingConfirmation"  # Mating recorded, waiting for heat return or ultrasound
    PREGNANT = "Pregnant"
    LACTATING = "Lactating"


class Confidence(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


# Events that close a gestation
OUTCOME_EVENTS: List[ReproductionEventType] = [
    ReproductionEventType.BIRTH,
    ReproductionEventType.ABORTION,
]


class InvalidDateError(ValueError):
    """Raised when an event or input date cannot be parsed into a calendar date."""

    def __init__(self, value: Any, field_name: str = "date"):
        self.value = value
        self.field_name = field_name
        super().__init__(
            f"Invalid {field_name}: {value!r}. Expected format: yyyy-mm-dd or dd/mm/yyyy (e.g., 15/01/2024)"
        )


# ISO is tried first; dd/mm/yyyy is the user-friendly format and wins over mm/dd/yyyy
_DATE_FORMATS = [
    "%d/%m/%Y",       # 15/01/2024
    "%d/%m/%y",       # 15/01/24
    "%d-%m-%Y",       # 15-01-2024
    "%Y/%m/%d",       # 2024/01/15
    "%m/%d/%Y",       # 01/15/2024
    "%Y-%m-%d %H:%M:%S",
]


def parse_event_date(value: Union[str, _dt.date, _dt.datetime, None], field_name: str = "date") -> _dt.date:
    """Parse a date, datetime or date string into a calendar date.

    Datetimes are truncated to their date. Raises InvalidDateError for anything
    that is not a real calendar date.
    """
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateError(value, field_name)

    text = value.strip()
    try:
        return _dt.datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return _dt.datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    raise InvalidDateError(value, field_name)


def parse_optional_date(value, field_name: str = "date") -> Optional[_dt.date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_event_date(value, field_name)


@dataclass(frozen=True)
class ReproductionEvent:
    """
    A reproduction event for one female animal.

    Type specific fields are optional and only meaningful for their type:
    - Heat: intensity, duration (hours)
    - Mating: male_id, mating_type, expected_due_date
    - Pregnancy: confirmation_method
    - Birth: litter_size, offspring_ids, complications
    - Weaning: weaning_weight (kg)
    """

    animal_id: str
    type: ReproductionEventType
    date: _dt.date
    id: Optional[str] = None
    farm_id: Optional[str] = None
    notes: Optional[str] = None
    intensity: Optional[str] = None
    duration: Optional[float] = None
    male_id: Optional[str] = None
    mating_type: Optional[str] = None
    expected_due_date: Optional[_dt.date] = None
    confirmation_method: Optional[str] = None
    litter_size: Optional[int] = None
    offspring_ids: Tuple[str, ...] = field(default_factory=tuple)
    complications: Optional[str] = None
    weaning_weight: Optional[float] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        # Normalize at construction so the engine only ever sees real dates and enum members
        object.__setattr__(self, "type", ReproductionEventType(self.type))
        object.__setattr__(self, "date", parse_event_date(self.date))
        object.__setattr__(
            self, "expected_due_date", parse_optional_date(self.expected_due_date, "expectedDueDate")
        )
        object.__setattr__(self, "offspring_ids", tuple(self.offspring_ids or ()))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReproductionEvent":
        """Build an event from a camelCase dict (API payload or stored row)."""
        return cls(
            id=data.get("id"),
            farm_id=data.get("farmId"),
            animal_id=data["animalId"],
            type=data["type"],
            date=data["date"],
            notes=data.get("notes"),
            intensity=data.get("intensity"),
            duration=data.get("duration"),
            male_id=data.get("maleId"),
            mating_type=data.get("matingType"),
            expected_due_date=data.get("expectedDueDate"),
            confirmation_method=data.get("confirmationMethod"),
            litter_size=data.get("litterSize"),
            offspring_ids=data.get("offspringIds") or (),
            complications=data.get("complications"),
            weaning_weight=data.get("weaningWeight"),
            created_by=data.get("createdBy"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """camelCase representation, empty optional fields left out."""
        data = {
            "id": self.id,
            "farmId": self.farm_id,
            "animalId": self.animal_id,
            "type": self.type.value,
            "date": self.date.isoformat(),
            "notes": self.notes,
            "intensity": self.intensity,
            "duration": self.duration,
            "maleId": self.male_id,
            "matingType": self.mating_type,
            "expectedDueDate": self.expected_due_date.isoformat() if self.expected_due_date else None,
            "confirmationMethod": self.confirmation_method,
            "litterSize": self.litter_size,
            "offspringIds": list(self.offspring_ids) or None,
            "complications": self.complications,
            "weaningWeight": self.weaning_weight,
            "createdBy": self.created_by,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        return {k: v for k, v in data.items() if v is not None}
