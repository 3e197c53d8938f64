"""
Reproductive Cycle Engine
Derives the current cycle status, expected due date and next heat prediction
of a female from her reproduction event history.

Pure functions over the events passed in: no storage access, no logging, and
the current date is always an explicit input.
"""

import math
import datetime as _dt
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..config import (
    GESTATION_DAYS,
    MATING_CONFIRMATION_DAYS,
    ULTRASOUND_DELAY_DAYS,
    WEANING_DELAY_DAYS,
    HEAT_WINDOW_DAYS,
    GESTATION_WINDOW_DAYS,
)
from ..events.event_types import (
    Confidence,
    CycleStatusLabel,
    OUTCOME_EVENTS,
    ReproductionEvent,
    ReproductionEventType,
    parse_event_date,
)

DateLike = Union[str, _dt.date, _dt.datetime]

# Confidence bands on the population variance of heat intervals (days^2)
HIGH_CONFIDENCE_VARIANCE = 4
MEDIUM_CONFIDENCE_VARIANCE = 16

# Early gestation: below this many days since mating the due date is a guess
EARLY_GESTATION_DAYS = 45
# Past due date + this margin, the birth was most likely never recorded
OVERDUE_TOLERANCE_DAYS = 15

_STATUS_BY_EVENT = {
    ReproductionEventType.HEAT: CycleStatusLabel.IN_HEAT,
    ReproductionEventType.PREGNANCY: CycleStatusLabel.PREGNANT,
    ReproductionEventType.BIRTH: CycleStatusLabel.LACTATING,
    ReproductionEventType.WEANING: CycleStatusLabel.AVAILABLE,
    ReproductionEventType.ABORTION: CycleStatusLabel.AVAILABLE,
}


@dataclass(frozen=True)
class CycleStatus:
    status: CycleStatusLabel
    last_event: Optional[ReproductionEvent] = None
    days_in_status: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status.value}
        if self.last_event is not None:
            data["lastEvent"] = self.last_event.to_dict()
        if self.days_in_status is not None:
            data["daysInStatus"] = self.days_in_status
        return data


@dataclass(frozen=True)
class HeatPrediction:
    predicted_date: _dt.date
    confidence: Confidence
    average_cycle: int
    variance: float
    window_start: _dt.date
    window_end: _dt.date
    based_on_cycles: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "predictedDate": self.predicted_date.isoformat(),
            "confidence": self.confidence.value,
            "averageCycle": self.average_cycle,
            "variance": self.variance,
            "windowStart": self.window_start.isoformat(),
            "windowEnd": self.window_end.isoformat(),
            "basedOnCycles": self.based_on_cycles,
        }


@dataclass(frozen=True)
class GestationPrediction:
    mating_date: _dt.date
    expected_birth_date: _dt.date
    window_start: _dt.date
    window_end: _dt.date
    days_remaining: int
    confidence: Confidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matingDate": self.mating_date.isoformat(),
            "expectedBirthDate": self.expected_birth_date.isoformat(),
            "windowStart": self.window_start.isoformat(),
            "windowEnd": self.window_end.isoformat(),
            "daysRemaining": self.days_remaining,
            "confidence": self.confidence.value,
        }


def _as_event(event: Union[ReproductionEvent, Mapping[str, Any]]) -> ReproductionEvent:
    if isinstance(event, ReproductionEvent):
        return event
    return ReproductionEvent.from_dict(dict(event))


def _today(now: Optional[DateLike]) -> _dt.date:
    if now is None:
        return _dt.date.today()
    return parse_event_date(now, "now")


def _round_half_up(value: float) -> int:
    # 17.5 -> 18, never banker's rounding
    return int(math.floor(value + 0.5))


def _latest_first(events: List[ReproductionEvent]) -> List[ReproductionEvent]:
    # Stable: among same-date events the caller's order (store creation order) is kept
    return sorted(events, key=lambda e: e.date, reverse=True)


class ReproductiveCycleEngine:
    """Reproduction rules for one breed, parameterized by its day constants"""

    def __init__(
        self,
        gestation_days: int = GESTATION_DAYS,
        confirmation_window_days: int = MATING_CONFIRMATION_DAYS,
        heat_window_days: int = HEAT_WINDOW_DAYS,
        gestation_window_days: int = GESTATION_WINDOW_DAYS,
        ultrasound_delay_days: int = ULTRASOUND_DELAY_DAYS,
        weaning_delay_days: int = WEANING_DELAY_DAYS,
    ):
        self.gestation_days = gestation_days
        self.confirmation_window_days = confirmation_window_days
        self.heat_window_days = heat_window_days
        self.gestation_window_days = gestation_window_days
        self.ultrasound_delay_days = ultrasound_delay_days
        self.weaning_delay_days = weaning_delay_days

    def current_cycle_status(
        self,
        events: Iterable[Union[ReproductionEvent, Mapping[str, Any]]],
        now: Optional[DateLike] = None,
    ) -> CycleStatus:
        """Status of the animal as decided by her most recent event.

        Older events are ignored. A mating older than the confirmation window
        without any later event is presumed failed.
        """
        today = _today(now)
        history = [_as_event(e) for e in events]
        if not history:
            return CycleStatus(status=CycleStatusLabel.AVAILABLE)

        last_event = _latest_first(history)[0]
        days_since = (today - last_event.date).days

        if last_event.type == ReproductionEventType.MATING:
            if days_since < self.confirmation_window_days:
                status = CycleStatusLabel.AWAITING_CONFIRMATION
            else:
                status = CycleStatusLabel.AVAILABLE
        else:
            status = _STATUS_BY_EVENT[last_event.type]

        return CycleStatus(status=status, last_event=last_event, days_in_status=days_since)

    def expected_due_date(self, mating_date: DateLike) -> _dt.date:
        return parse_event_date(mating_date, "matingDate") + _dt.timedelta(days=self.gestation_days)

    def ultrasound_date(self, mating_date: DateLike) -> _dt.date:
        """Date of the pregnancy confirmation ultrasound following a mating"""
        return parse_event_date(mating_date, "matingDate") + _dt.timedelta(days=self.ultrasound_delay_days)

    def weaning_date(self, birth_date: DateLike) -> _dt.date:
        """Suggested weaning date for a litter"""
        return parse_event_date(birth_date, "birthDate") + _dt.timedelta(days=self.weaning_delay_days)

    def predict_next_heat(
        self, events: Iterable[Union[ReproductionEvent, Mapping[str, Any]]]
    ) -> Optional[HeatPrediction]:
        """Predict the next heat from the mean interval between recorded heats.

        Returns None when fewer than two heats are recorded. Confidence comes
        from the population variance of the intervals around the rounded mean.
        """
        heats = sorted(
            (e for e in map(_as_event, events) if e.type == ReproductionEventType.HEAT),
            key=lambda e: e.date,
        )
        if len(heats) < 2:
            return None

        gaps = [(heats[i + 1].date - heats[i].date).days for i in range(len(heats) - 1)]
        average_cycle = _round_half_up(sum(gaps) / len(gaps))
        variance = sum((gap - average_cycle) ** 2 for gap in gaps) / len(gaps)

        if variance < HIGH_CONFIDENCE_VARIANCE:
            confidence = Confidence.HIGH
        elif variance < MEDIUM_CONFIDENCE_VARIANCE:
            confidence = Confidence.MEDIUM
        else:
            confidence = Confidence.LOW

        predicted_date = heats[-1].date + _dt.timedelta(days=average_cycle)
        window = _dt.timedelta(days=self.heat_window_days)

        return HeatPrediction(
            predicted_date=predicted_date,
            confidence=confidence,
            average_cycle=average_cycle,
            variance=variance,
            window_start=predicted_date - window,
            window_end=predicted_date + window,
            based_on_cycles=len(heats),
        )

    def predict_gestation(
        self,
        events: Iterable[Union[ReproductionEvent, Mapping[str, Any]]],
        now: Optional[DateLike] = None,
    ) -> Optional[GestationPrediction]:
        """Expected birth of the gestation started by the latest mating.

        None when there is no mating, when a birth or abortion already closed
        it, or when the due date is long past without any outcome recorded.
        """
        history = _latest_first([_as_event(e) for e in events])
        mating = next((e for e in history if e.type == ReproductionEventType.MATING), None)
        if mating is None:
            return None

        if any(e.type in OUTCOME_EVENTS and e.date > mating.date for e in history):
            return None

        today = _today(now)
        days_since_mating = (today - mating.date).days
        if days_since_mating > self.gestation_days + OVERDUE_TOLERANCE_DAYS:
            return None

        # The stored due date wins: it was fixed when the mating was recorded
        expected = mating.expected_due_date or self.expected_due_date(mating.date)
        window = _dt.timedelta(days=self.gestation_window_days)

        confirmed = any(
            e.type == ReproductionEventType.PREGNANCY and e.date > mating.date for e in history
        )
        if confirmed:
            confidence = Confidence.HIGH
        elif days_since_mating < EARLY_GESTATION_DAYS:
            confidence = Confidence.LOW
        else:
            confidence = Confidence.MEDIUM

        return GestationPrediction(
            mating_date=mating.date,
            expected_birth_date=expected,
            window_start=expected - window,
            window_end=expected + window,
            days_remaining=(expected - today).days,
            confidence=confidence,
        )


# Default engine built from configuration
engine = ReproductiveCycleEngine()


def current_cycle_status(events, now: Optional[DateLike] = None) -> CycleStatus:
    return engine.current_cycle_status(events, now)


def expected_due_date(mating_date: DateLike) -> _dt.date:
    return engine.expected_due_date(mating_date)


def predict_next_heat(events) -> Optional[HeatPrediction]:
    return engine.predict_next_heat(events)
