from enum import Enum
from pydantic import BaseModel
from typing import Optional, List, Union
from .events.event_types import ReproductionEventType


class TaskStatus(str, Enum):
    TODO = "Todo"
    IN_PROGRESS = "In Progress"
    BLOCKED = "Blocked"
    DONE = "Done"


class TaskPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class TaskType(str, Enum):
    HEALTH = "Health"
    FEEDING = "Feeding"
    REPRODUCTION = "Reproduction"
    GENERAL = "General"


class HeatIntensity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class MatingType(str, Enum):
    NATURAL = "Natural"
    AI = "AI"


class ConfirmationMethod(str, Enum):
    ULTRASOUND = "Ultrasound"
    OBSERVATION = "Observation"


class ValidateKeyBody(BaseModel):
    key: str

class ReproductionEventBody(BaseModel):
    animalId: str
    type: ReproductionEventType
    date: str
    farmId: str | None = None
    notes: str | None = None
    # Heat
    intensity: HeatIntensity | None = None
    duration: float | None = None
    # Mating
    maleId: str | None = None
    matingType: MatingType | None = None
    # Pregnancy
    confirmationMethod: ConfirmationMethod | None = None
    # Birth
    litterSize: int | None = None
    offspringIds: List[str] | None = None
    complications: str | None = None
    # Weaning
    weaningWeight: float | None = None

class UpdateReproductionEventBody(BaseModel):
    notes: str | None = None

    class Config:
        # Key fields (type, date, animalId...) may be sent back by clients; they are never amended
        extra = "ignore"

class HeatBody(BaseModel):
    animalId: str
    date: str
    farmId: str | None = None
    intensity: HeatIntensity | None = None
    duration: float | None = None
    notes: str | None = None

class MatingBody(BaseModel):
    animalId: str
    date: str
    farmId: str | None = None
    animalName: str | None = None
    maleId: str | None = None
    matingType: MatingType | None = None
    notes: str | None = None

class BirthBody(BaseModel):
    animalId: str
    date: str
    farmId: str | None = None
    animalName: str | None = None
    litterSize: int = 1
    offspringIds: List[str] | None = None
    complications: str | None = None
    birthTime: str | None = None
    notes: str | None = None

class TaskBody(BaseModel):
    title: str
    date: str
    farmId: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    type: TaskType = TaskType.GENERAL
    animalId: str | None = None
    description: str | None = None
    assignedTo: Union[str, List[str], None] = None

class UpdateTaskBody(BaseModel):
    title: str | None = None
    date: str | None = None
    priority: TaskPriority | None = None
    type: TaskType | None = None
    animalId: str | None = None
    description: str | None = None
    assignedTo: Union[str, List[str], None] = None

    class Config:
        extra = "ignore"

class UpdateTaskStatusBody(BaseModel):
    status: str

class CycleStatusResponse(BaseModel):
    animalId: str
    status: str
    lastEvent: dict | None = None
    daysInStatus: int | None = None
