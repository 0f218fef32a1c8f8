"""
Validation and sanitization utilities for the Scheduling Intelligence Engine
"""
import re
from datetime import datetime
from typing import Dict, Any, List, Optional

from dateutil import parser as date_parser

from config.settings import Config

URGENCY_LEVELS = ("low", "medium", "high")
MEETING_TYPES = ("one-on-one", "team-meeting", "interview", "casual", "formal")

TIME_OF_DAY_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def parse_iso_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp carrying an explicit offset (or Z).

    Returns None for anything else, including naive timestamps.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else None
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError):
        return None
    return parsed if parsed.tzinfo is not None else None


class RequestValidator:
    """Validator for incoming engine requests"""

    @staticmethod
    def validate_time_of_day(value: Any) -> bool:
        """Validate a HH:MM (24h) string"""
        return isinstance(value, str) and bool(TIME_OF_DAY_PATTERN.match(value))

    @staticmethod
    def validate_slot_request(request_data: Dict[str, Any]) -> List[str]:
        """Validate a slot request payload and return list of errors"""
        errors = []

        if not isinstance(request_data, dict):
            return ["Slot request must be an object"]

        required_fields = ["duration", "timeMin", "timeMax"]
        for field in required_fields:
            if request_data.get(field) is None:
                errors.append(f"Missing required field: {field}")

        duration = request_data.get("duration")
        if duration is not None:
            if isinstance(duration, bool) or not isinstance(duration, int):
                errors.append(f"'duration' must be an integer number of minutes: {duration!r}")
            elif not Config.MIN_MEETING_DURATION <= duration <= Config.MAX_MEETING_DURATION:
                errors.append(
                    f"'duration' must be between {Config.MIN_MEETING_DURATION} and "
                    f"{Config.MAX_MEETING_DURATION} minutes: {duration}"
                )

        start = end = None
        for field in ("timeMin", "timeMax"):
            value = request_data.get(field)
            if value is None:
                continue
            parsed = parse_iso_timestamp(value)
            if parsed is None:
                errors.append(f"Invalid '{field}': {value!r}. Expected ISO-8601 with offset or Z")
            elif field == "timeMin":
                start = parsed
            else:
                end = parsed

        if start and end:
            if end < start:
                errors.append("'timeMax' must not be before 'timeMin'")
            elif (end - start).days > Config.MAX_RANGE_DAYS:
                errors.append(f"Requested range exceeds {Config.MAX_RANGE_DAYS} days")

        working_hours = request_data.get("workingHours")
        if working_hours is not None:
            if not isinstance(working_hours, dict):
                errors.append("'workingHours' must be an object with 'start' and 'end'")
            else:
                wh_start = working_hours.get("start", Config.WORKING_HOURS_START)
                wh_end = working_hours.get("end", Config.WORKING_HOURS_END)
                start_ok = RequestValidator.validate_time_of_day(wh_start)
                end_ok = RequestValidator.validate_time_of_day(wh_end)
                if not start_ok:
                    errors.append(f"Invalid working hours start: {wh_start!r}. Expected HH:MM")
                if not end_ok:
                    errors.append(f"Invalid working hours end: {wh_end!r}. Expected HH:MM")
                if start_ok and end_ok and wh_start >= wh_end:
                    errors.append("Working hours start must be before end")

        buffer_time = request_data.get("bufferTime")
        if buffer_time is not None:
            if isinstance(buffer_time, bool) or not isinstance(buffer_time, int) or buffer_time < 0:
                errors.append(f"'bufferTime' must be a non-negative integer: {buffer_time!r}")

        max_suggestions = request_data.get("maxSuggestions")
        if max_suggestions is not None:
            if isinstance(max_suggestions, bool) or not isinstance(max_suggestions, int):
                errors.append(f"'maxSuggestions' must be an integer: {max_suggestions!r}")
            elif not Config.MIN_SUGGESTIONS <= max_suggestions <= Config.MAX_SUGGESTIONS:
                errors.append(
                    f"'maxSuggestions' must be between {Config.MIN_SUGGESTIONS} and "
                    f"{Config.MAX_SUGGESTIONS}: {max_suggestions}"
                )

        return errors

    @staticmethod
    def validate_busy_interval(item: Any, index: int = 0) -> List[str]:
        """Validate one {start, end} busy interval"""
        if not isinstance(item, dict):
            return [f"Busy interval {index} must be an object with 'start' and 'end'"]

        errors = []
        start = parse_iso_timestamp(item.get("start"))
        end = parse_iso_timestamp(item.get("end"))
        if start is None:
            errors.append(f"Busy interval {index} has invalid start: {item.get('start')!r}")
        if end is None:
            errors.append(f"Busy interval {index} has invalid end: {item.get('end')!r}")
        if start and end and end < start:
            errors.append(f"Busy interval {index} ends before it starts")
        return errors

    @staticmethod
    def validate_preferences(preferences: Any) -> List[str]:
        if preferences is None:
            return []
        if not isinstance(preferences, dict):
            return ["Preferences must be an object"]

        errors = []
        for field in ("preferredTimes", "avoidTimes"):
            values = preferences.get(field)
            if values is None:
                continue
            if not isinstance(values, list):
                errors.append(f"'{field}' must be a list of HH:MM strings")
                continue
            for value in values:
                if not RequestValidator.validate_time_of_day(value):
                    errors.append(f"Invalid time in '{field}': {value!r}. Expected HH:MM")
        return errors


class DataSanitizer:
    """Sanitize untrusted data coming back from the NL oracle"""

    @staticmethod
    def sanitize_text(text: str) -> str:
        """Collapse whitespace and strip surrounding quotes"""
        text = re.sub(r'\s+', ' ', text.strip())
        return text.strip('"\'')

    @staticmethod
    def clamp(value: Any, low: float, high: float, default: float) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = default
        if number != number:  # NaN
            number = default
        return min(max(number, low), high)

    @staticmethod
    def coerce_bool(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("true", "yes", "1")
        return bool(value)

    @staticmethod
    def string_list(value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [DataSanitizer.sanitize_text(item) for item in value
                if isinstance(item, str) and item.strip()]

    @staticmethod
    def optional_string(value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        cleaned = DataSanitizer.sanitize_text(value)
        if not cleaned or cleaned.lower() in ("null", "none"):
            return None
        return cleaned

    @staticmethod
    def optional_minutes(value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        try:
            minutes = int(float(value))
        except (TypeError, ValueError):
            return None
        return minutes if minutes > 0 else None

    @staticmethod
    def sanitize_query_entities(entities: Dict[str, Any]) -> Dict[str, Any]:
        """Keep only well-typed entity fields from an oracle response"""
        attendees = DataSanitizer.string_list(entities.get("attendees"))
        return {
            "date_time": DataSanitizer.optional_string(entities.get("dateTime")),
            "duration": DataSanitizer.optional_minutes(entities.get("duration")),
            "title": DataSanitizer.optional_string(entities.get("title")),
            "current_title": DataSanitizer.optional_string(entities.get("currentTitle")),
            "new_title": DataSanitizer.optional_string(entities.get("newTitle")),
            "attendees": attendees or None,
            "location": DataSanitizer.optional_string(entities.get("location")),
            "description": DataSanitizer.optional_string(entities.get("description")),
        }

    @staticmethod
    def sanitize_scheduling_analysis(analysis: Dict[str, Any]) -> Dict[str, Any]:
        """Field-by-field sanitization of an oracle email analysis"""
        urgency = analysis.get("urgency")
        meeting_type = analysis.get("meetingType")
        duration = DataSanitizer.clamp(
            analysis.get("estimatedDuration") or Config.DEFAULT_MEETING_DURATION,
            Config.MIN_MEETING_DURATION, Config.MAX_MEETING_DURATION,
            Config.DEFAULT_MEETING_DURATION,
        )

        return {
            "has_scheduling_intent": DataSanitizer.coerce_bool(analysis.get("hasSchedulingIntent")),
            "confidence": DataSanitizer.clamp(analysis.get("confidence"), 0.0, 1.0, 0.0),
            "proposed_times": DataSanitizer.string_list(analysis.get("proposedTimes")),
            "meeting_topic": DataSanitizer.optional_string(analysis.get("meetingTopic")),
            "participants": DataSanitizer.string_list(analysis.get("participants")),
            "urgency": urgency if urgency in URGENCY_LEVELS else "medium",
            "meeting_type": meeting_type if meeting_type in MEETING_TYPES else "one-on-one",
            "estimated_duration": int(round(duration)),
            "action_items": DataSanitizer.string_list(analysis.get("actionItems")),
            "response_required": DataSanitizer.coerce_bool(analysis.get("responseRequired")),
        }
