"""
Tests for the reproductive cycle engine
"""
import random
from datetime import date, datetime

import pytest

from ladoum_backend.events.event_types import (
    Confidence, CycleStatusLabel, InvalidDateError, ReproductionEvent, ReproductionEventType,
)
from ladoum_backend.services.reproduction_cycle import (
    ReproductiveCycleEngine, current_cycle_status, expected_due_date, predict_next_heat,
)

NOW = date(2024, 3, 1)


def _event(event_type, day, **kwargs):
    return ReproductionEvent(animal_id="EWE-1", type=event_type, date=day, **kwargs)


def _heats(*days):
    return [_event(ReproductionEventType.HEAT, d) for d in days]


class TestCurrentCycleStatus:
    def test_empty_history_is_available(self):
        result = current_cycle_status([], NOW)
        assert result.status == CycleStatusLabel.AVAILABLE
        assert result.last_event is None
        assert result.days_in_status is None
        assert result.to_dict() == {"status": "Available"}

    def test_heat_today_is_in_heat(self):
        result = current_cycle_status([_event(ReproductionEventType.HEAT, NOW)], NOW)
        assert result.status == CycleStatusLabel.IN_HEAT
        assert result.days_in_status == 0

    def test_recent_mating_awaits_confirmation(self):
        result = current_cycle_status([_event(ReproductionEventType.MATING, "2024-02-20")], NOW)
        assert result.status == CycleStatusLabel.AWAITING_CONFIRMATION
        assert result.days_in_status == 10

    def test_old_mating_is_presumed_failed(self):
        result = current_cycle_status([_event(ReproductionEventType.MATING, "2024-02-05")], NOW)
        assert result.status == CycleStatusLabel.AVAILABLE
        assert result.days_in_status == 25

    def test_mating_window_boundary(self):
        # Exactly 20 days is no longer within the window
        on_boundary = current_cycle_status([_event(ReproductionEventType.MATING, "2024-02-10")], NOW)
        just_inside = current_cycle_status([_event(ReproductionEventType.MATING, "2024-02-11")], NOW)
        assert on_boundary.status == CycleStatusLabel.AVAILABLE
        assert just_inside.status == CycleStatusLabel.AWAITING_CONFIRMATION

    @pytest.mark.parametrize("event_type,expected", [
        (ReproductionEventType.PREGNANCY, CycleStatusLabel.PREGNANT),
        (ReproductionEventType.BIRTH, CycleStatusLabel.LACTATING),
        (ReproductionEventType.WEANING, CycleStatusLabel.AVAILABLE),
        (ReproductionEventType.ABORTION, CycleStatusLabel.AVAILABLE),
    ])
    def test_status_by_last_event_type(self, event_type, expected):
        result = current_cycle_status([_event(event_type, "2024-01-01")], NOW)
        assert result.status == expected
        assert result.days_in_status == 60

    def test_only_most_recent_event_counts(self):
        events = [
            _event(ReproductionEventType.MATING, "2023-10-01"),
            _event(ReproductionEventType.PREGNANCY, "2023-11-15"),
            _event(ReproductionEventType.BIRTH, "2024-02-27"),
        ]
        result = current_cycle_status(events, NOW)
        assert result.status == CycleStatusLabel.LACTATING
        assert result.last_event.type == ReproductionEventType.BIRTH
        assert result.days_in_status == 3

    def test_datetime_now_is_truncated_to_date(self):
        result = current_cycle_status(
            [_event(ReproductionEventType.HEAT, "2024-02-29")], datetime(2024, 3, 1, 23, 59)
        )
        assert result.days_in_status == 1

    def test_idempotent_with_fixed_now(self):
        events = _heats("2024-01-01", "2024-01-18") + [_event(ReproductionEventType.MATING, "2024-02-20")]
        assert current_cycle_status(events, NOW) == current_cycle_status(events, NOW)

    def test_order_independent(self):
        events = [
            _event(ReproductionEventType.HEAT, "2024-01-01"),
            _event(ReproductionEventType.MATING, "2024-01-02"),
            _event(ReproductionEventType.PREGNANCY, "2024-02-15"),
            _event(ReproductionEventType.HEAT, "2023-12-15"),
        ]
        expected = current_cycle_status(events, NOW)
        shuffled = list(events)
        random.Random(7).shuffle(shuffled)
        assert current_cycle_status(shuffled, NOW) == expected
        assert current_cycle_status(list(reversed(events)), NOW) == expected

    def test_accepts_camel_case_dicts(self):
        result = current_cycle_status([{"animalId": "EWE-1", "type": "Heat", "date": "2024-02-28"}], NOW)
        assert result.status == CycleStatusLabel.IN_HEAT
        assert result.days_in_status == 2

    def test_invalid_now_is_rejected(self):
        with pytest.raises(InvalidDateError):
            current_cycle_status([_event(ReproductionEventType.HEAT, NOW)], "yesterday-ish")

    def test_invalid_now_is_rejected_without_history(self):
        with pytest.raises(InvalidDateError):
            current_cycle_status([], "garbage")

    def test_custom_confirmation_window(self):
        engine = ReproductiveCycleEngine(confirmation_window_days=30)
        result = engine.current_cycle_status([_event(ReproductionEventType.MATING, "2024-02-05")], NOW)
        assert result.status == CycleStatusLabel.AWAITING_CONFIRMATION


class TestExpectedDueDate:
    def test_default_gestation(self):
        assert expected_due_date("2024-01-01") == date(2024, 5, 30)

    def test_accepts_date_and_user_format(self):
        assert expected_due_date(date(2024, 1, 1)) == date(2024, 5, 30)
        assert expected_due_date("01/01/2024") == date(2024, 5, 30)

    def test_configurable_gestation(self):
        assert ReproductiveCycleEngine(gestation_days=145).expected_due_date("2024-01-01") == date(2024, 5, 25)

    def test_unparseable_date_raises(self):
        with pytest.raises(InvalidDateError):
            expected_due_date("not-a-date")

    def test_follow_up_dates(self):
        engine = ReproductiveCycleEngine()
        assert engine.ultrasound_date("2024-03-10") == date(2024, 4, 24)
        assert engine.weaning_date("2024-05-01") == date(2024, 7, 30)


class TestPredictNextHeat:
    def test_no_prediction_without_history(self):
        assert predict_next_heat([]) is None

    def test_single_heat_gives_no_prediction(self):
        assert predict_next_heat(_heats("2024-01-01")) is None

    def test_regular_cycles_are_high_confidence(self):
        prediction = predict_next_heat(_heats("2024-01-01", "2024-01-18", "2024-02-04"))
        assert prediction.average_cycle == 17
        assert prediction.variance == 0
        assert prediction.confidence == Confidence.HIGH
        assert prediction.predicted_date == date(2024, 2, 21)
        assert prediction.window_start == date(2024, 2, 19)
        assert prediction.window_end == date(2024, 2, 23)
        assert prediction.based_on_cycles == 3

    def test_irregular_cycles_are_low_confidence(self):
        prediction = predict_next_heat(_heats("2024-01-01", "2024-01-11", "2024-02-04"))
        assert prediction.average_cycle == 17
        assert prediction.variance == 49
        assert prediction.confidence == Confidence.LOW

    def test_variance_of_four_is_medium(self):
        prediction = predict_next_heat(_heats("2024-01-01", "2024-01-16", "2024-02-04"))
        assert prediction.variance == 4
        assert prediction.confidence == Confidence.MEDIUM

    def test_half_day_average_rounds_up(self):
        prediction = predict_next_heat(_heats("2024-01-01", "2024-01-18", "2024-02-05"))
        assert prediction.average_cycle == 18
        assert prediction.predicted_date == date(2024, 2, 23)
        assert prediction.confidence == Confidence.HIGH

    def test_other_event_types_are_ignored(self):
        events = _heats("2024-01-01", "2024-01-18") + [
            _event(ReproductionEventType.MATING, "2024-01-19"),
            _event(ReproductionEventType.WEANING, "2023-12-01"),
        ]
        prediction = predict_next_heat(events)
        assert prediction.average_cycle == 17
        assert prediction.based_on_cycles == 2

    def test_order_independent(self):
        events = _heats("2024-01-01", "2024-01-11", "2024-02-04", "2024-02-20")
        expected = predict_next_heat(events)
        assert predict_next_heat(list(reversed(events))) == expected
        assert predict_next_heat([events[2], events[0], events[3], events[1]]) == expected

    def test_to_dict(self):
        prediction = predict_next_heat(_heats("2024-01-01", "2024-01-18", "2024-02-04"))
        data = prediction.to_dict()
        assert data["predictedDate"] == "2024-02-21"
        assert data["confidence"] == "High"
        assert data["averageCycle"] == 17


class TestPredictGestation:
    def setup_method(self):
        self.engine = ReproductiveCycleEngine()
        self.mating = _event(ReproductionEventType.MATING, "2024-01-01")

    def test_no_mating_no_prediction(self):
        assert self.engine.predict_gestation(_heats("2024-01-01"), NOW) is None

    def test_early_gestation_is_low_confidence(self):
        prediction = self.engine.predict_gestation([self.mating], date(2024, 1, 21))
        assert prediction.expected_birth_date == date(2024, 5, 30)
        assert prediction.window_start == date(2024, 5, 25)
        assert prediction.window_end == date(2024, 6, 4)
        assert prediction.days_remaining == 130
        assert prediction.confidence == Confidence.LOW

    def test_unconfirmed_gestation_is_medium(self):
        prediction = self.engine.predict_gestation([self.mating], NOW)
        assert prediction.confidence == Confidence.MEDIUM

    def test_confirmed_gestation_is_high(self):
        events = [self.mating, _event(ReproductionEventType.PREGNANCY, "2024-02-15")]
        assert self.engine.predict_gestation(events, NOW).confidence == Confidence.HIGH

    def test_stored_due_date_is_kept(self):
        mating = _event(ReproductionEventType.MATING, "2024-01-01", expected_due_date="2024-05-28")
        prediction = self.engine.predict_gestation([mating], NOW)
        assert prediction.expected_birth_date == date(2024, 5, 28)

    def test_closed_by_birth(self):
        events = [self.mating, _event(ReproductionEventType.BIRTH, "2024-05-29")]
        assert self.engine.predict_gestation(events, date(2024, 6, 1)) is None

    def test_long_overdue_is_dropped(self):
        assert self.engine.predict_gestation([self.mating], date(2024, 6, 20)) is None
