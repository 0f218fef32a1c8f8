"""
Busy-interval adapters - turn calendar payloads into BusyInterval lists
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List

from src.scheduler.models import BusyInterval
from utils.errors import ValidationError
from utils.validators import parse_iso_timestamp

logger = logging.getLogger(__name__)


def parse_busy_intervals(items: Any) -> List[BusyInterval]:
    """Validate and convert a list of {start, end} dicts"""
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError("Busy intervals must be a list of {start, end} objects")

    intervals = []
    errors = []
    for index, item in enumerate(items):
        try:
            intervals.append(BusyInterval.from_dict(item, index))
        except ValidationError as e:
            errors.extend(e.details or [e.message])

    if errors:
        raise ValidationError("Invalid busy intervals: " + "; ".join(errors), details=errors)
    return intervals


def busy_intervals_from_freebusy(response: Dict[str, Any],
                                 calendar_ids: Iterable[str] = None) -> List[BusyInterval]:
    """Flatten a free/busy response {"calendars": {id: {"busy": [...]}}}"""
    if not isinstance(response, dict):
        raise ValidationError("Free/busy response must be an object")

    calendars = response.get("calendars") or {}
    wanted = list(calendar_ids) if calendar_ids is not None else list(calendars)

    intervals = []
    for calendar_id in wanted:
        calendar = calendars.get(calendar_id)
        if calendar is None:
            logger.warning(f"⚠️  Calendar {calendar_id} missing from free/busy response")
            continue
        for error in calendar.get("errors", []):
            logger.warning(f"⚠️  Free/busy error for {calendar_id}: {error}")
        intervals.extend(parse_busy_intervals(calendar.get("busy", [])))

    intervals.sort(key=lambda interval: interval.start)
    logger.info(f"📅 {len(intervals)} busy interval(s) across {len(wanted)} calendar(s)")
    return intervals


def busy_intervals_from_events(events: List[Dict[str, Any]]) -> List[BusyInterval]:
    """Busy intervals from calendar event resources (timed events only)"""
    intervals = []
    for event in events or []:
        start = parse_iso_timestamp(event.get("start", {}).get("dateTime"))
        end = parse_iso_timestamp(event.get("end", {}).get("dateTime"))
        if start is None or end is None:
            # All-day events carry only a date
            logger.debug(f"Skipping event without timed start/end: {event.get('summary', 'Untitled Event')}")
            continue
        if event.get("transparency") == "transparent":
            continue
        intervals.append(BusyInterval(start, end))

    intervals.sort(key=lambda interval: interval.start)
    return intervals


class StaticBusyIntervalSource:
    """In-memory busy data keyed by calendar id, for offline runs and tests"""

    def __init__(self, calendars: Dict[str, List[Dict[str, Any]]] = None):
        self.calendars = {
            calendar_id: parse_busy_intervals(items)
            for calendar_id, items in (calendars or {}).items()
        }

    def add(self, calendar_id: str, start: datetime, end: datetime):
        self.calendars.setdefault(calendar_id, []).append(BusyInterval(start, end))

    def get_busy_intervals(self, calendar_id: str, time_min: Any, time_max: Any) -> List[BusyInterval]:
        window_start = parse_iso_timestamp(time_min)
        window_end = parse_iso_timestamp(time_max)
        if window_start is None or window_end is None:
            raise ValidationError(f"Invalid window: {time_min!r} to {time_max!r}")

        intervals = [
            interval for interval in self.calendars.get(calendar_id, [])
            if interval.start < window_end and interval.end > window_start
        ]
        return sorted(intervals, key=lambda interval: interval.start)

    def get_multiple(self, calendar_ids: List[str], time_min: Any,
                     time_max: Any) -> List[BusyInterval]:
        """Union of busy intervals across calendars, sorted by start"""
        merged = []
        for calendar_id in calendar_ids:
            merged.extend(self.get_busy_intervals(calendar_id, time_min, time_max))
        return sorted(merged, key=lambda interval: interval.start)

    def freebusy(self, calendar_ids: List[str], time_min: Any,
                 time_max: Any) -> Dict[str, Any]:
        """Same data in free/busy response shape"""
        return {
            "timeMin": time_min if isinstance(time_min, str) else time_min.isoformat(),
            "timeMax": time_max if isinstance(time_max, str) else time_max.isoformat(),
            "calendars": {
                calendar_id: {
                    "busy": [i.to_dict() for i in self.get_busy_intervals(calendar_id, time_min, time_max)]
                }
                for calendar_id in calendar_ids
            },
        }
