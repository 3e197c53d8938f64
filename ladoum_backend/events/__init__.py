"""
Reproduction Events Module

This module contains the reproduction event definitions for the Ladoum farm
backend. Events are immutable records of reproductive facts for one female.
"""

from .event_types import (
    ReproductionEventType,
    CycleStatusLabel,
    Confidence,
    OUTCOME_EVENTS,
    InvalidDateError,
    ReproductionEvent,
    parse_event_date,
    parse_optional_date,
)

__all__ = [
    'ReproductionEventType',
    'CycleStatusLabel',
    'Confidence',
    'OUTCOME_EVENTS',
    'InvalidDateError',
    'ReproductionEvent',
    'parse_event_date',
    'parse_optional_date',
]
