"""
Wire representation of a time record as stored by the remote backend.
"""

from typing import Any, Dict, Optional

import pendulum
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from ..domain.models import TimeSlot

DATE_FORMAT = "YYYY-MM-DD"


class TimeRecord(BaseModel):
    """
    One persisted slot.

    Fields are camelCase on the wire (``startTime``, ``categoryId`` ...) and
    snake_case in Python. Unknown backend fields (audit columns and the
    like) are ignored.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str
    date: str
    start_time: int
    end_time: int
    category_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    duration: Optional[int] = None
    is_manual: int = 1
    exercise_type_id: Optional[str] = None
    exercise_count: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> str:
        """Backends may hand out numeric ids."""
        return str(value)

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        """Ensure the date is a calendar day in ``YYYY-MM-DD`` form."""
        try:
            pendulum.from_format(value, DATE_FORMAT)
        except ValueError as exc:
            raise ValueError(f"date must be YYYY-MM-DD, got '{value}'") from exc
        return value

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "TimeRecord":
        return cls(
            id=slot.id,
            date=slot.date.isoformat(),
            start_time=slot.start_time,
            end_time=slot.end_time,
            category_id=slot.category_id,
            title=slot.title,
            description=slot.description,
            color=slot.color,
            duration=slot.duration_minutes(),
            exercise_type_id=slot.exercise_type_id,
            exercise_count=slot.exercise_count,
        )

    def to_slot(self) -> TimeSlot:
        return TimeSlot(
            date=pendulum.from_format(self.date, DATE_FORMAT).date(),
            start_time=self.start_time,
            end_time=self.end_time,
            category_id=self.category_id,
            id=self.id,
            title=self.title,
            description=self.description,
            color=self.color,
            exercise_type_id=self.exercise_type_id,
            exercise_count=self.exercise_count,
        )

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the backend (camelCase, nulls dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SlotRecommendation(BaseModel):
    """Next slot suggested by the backend for a day."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    date: str
    start_time: int
    end_time: int
    category_id: str

    def to_slot(self) -> TimeSlot:
        return TimeSlot(
            date=pendulum.from_format(self.date, DATE_FORMAT).date(),
            start_time=self.start_time,
            end_time=self.end_time,
            category_id=self.category_id,
        )
