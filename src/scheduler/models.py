"""
Slot request, busy interval and candidate slot values
"""
from datetime import datetime, time
from typing import Any, Dict, List, Optional

from config.settings import Config
from utils.errors import ValidationError
from utils.validators import RequestValidator, parse_iso_timestamp


def _parse_clock(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


class BusyInterval:
    """Half-open [start, end) range during which a calendar is occupied"""

    def __init__(self, start: datetime, end: datetime):
        self.start = start
        self.end = end

    @classmethod
    def from_dict(cls, data: Dict[str, Any], index: int = 0) -> "BusyInterval":
        errors = RequestValidator.validate_busy_interval(data, index)
        if errors:
            raise ValidationError("; ".join(errors), details=errors)
        return cls(parse_iso_timestamp(data["start"]), parse_iso_timestamp(data["end"]))

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}

    def __repr__(self):
        return f"BusyInterval({self.start.isoformat()}, {self.end.isoformat()})"


class CandidateSlot:
    """A generated meeting window with its desirability score"""

    def __init__(self, start: datetime, end: datetime, duration_minutes: int, confidence: float):
        self.start = start
        self.end = end
        self.duration_minutes = duration_minutes
        self.confidence = confidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration": self.duration_minutes,
            "confidence": self.confidence,
        }

    def __eq__(self, other):
        return isinstance(other, CandidateSlot) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"CandidateSlot({self.start.isoformat()}, {self.duration_minutes}m, {self.confidence})"


class SlotRequest:
    """Validated parameters for a slot recommendation"""

    def __init__(self, duration_minutes: int, range_start: datetime, range_end: datetime,
                 working_hours_start: str = None, working_hours_end: str = None,
                 buffer_minutes: int = None, max_suggestions: int = None):
        payload = {
            "duration": duration_minutes,
            "timeMin": range_start,
            "timeMax": range_end,
            "workingHours": {
                "start": working_hours_start or Config.WORKING_HOURS_START,
                "end": working_hours_end or Config.WORKING_HOURS_END,
            },
            "bufferTime": Config.DEFAULT_BUFFER_MINUTES if buffer_minutes is None else buffer_minutes,
            "maxSuggestions": Config.DEFAULT_MAX_SUGGESTIONS if max_suggestions is None else max_suggestions,
        }
        errors = RequestValidator.validate_slot_request(payload)
        if errors:
            raise ValidationError("Invalid slot request: " + "; ".join(errors), details=errors)

        self.duration_minutes = duration_minutes
        self.range_start = parse_iso_timestamp(range_start)
        self.range_end = parse_iso_timestamp(range_end)
        self.working_hours_start = _parse_clock(payload["workingHours"]["start"])
        self.working_hours_end = _parse_clock(payload["workingHours"]["end"])
        # Accepted for callers but not applied to the conflict test
        self.buffer_minutes = payload["bufferTime"]
        self.max_suggestions = payload["maxSuggestions"]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SlotRequest":
        errors = RequestValidator.validate_slot_request(data)
        if errors:
            raise ValidationError("Invalid slot request: " + "; ".join(errors), details=errors)

        working_hours = data.get("workingHours") or {}
        return cls(
            duration_minutes=data["duration"],
            range_start=data["timeMin"],
            range_end=data["timeMax"],
            working_hours_start=working_hours.get("start"),
            working_hours_end=working_hours.get("end"),
            buffer_minutes=data.get("bufferTime"),
            max_suggestions=data.get("maxSuggestions"),
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "duration": self.duration_minutes,
            "timeMin": self.range_start.isoformat(),
            "timeMax": self.range_end.isoformat(),
            "workingHours": {
                "start": self.working_hours_start.strftime("%H:%M"),
                "end": self.working_hours_end.strftime("%H:%M"),
            },
            "bufferTime": self.buffer_minutes,
            "maxSuggestions": self.max_suggestions,
        }


class SlotPreferences:
    """Caller time-of-day preferences as HH:MM strings"""

    def __init__(self, preferred_times: List[str] = None, avoid_times: List[str] = None):
        self.preferred_times = tuple(preferred_times or ())
        self.avoid_times = tuple(avoid_times or ())

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["SlotPreferences"]:
        if data is None:
            return None
        errors = RequestValidator.validate_preferences(data)
        if errors:
            raise ValidationError("Invalid preferences: " + "; ".join(errors), details=errors)
        return cls(data.get("preferredTimes"), data.get("avoidTimes"))
