"""
Email Action Planner - turns an email analysis into follow-up actions
(check availability, create the event, suggest other times, reply)
"""
import logging
from datetime import datetime, time, timedelta
from typing import Any, Dict, List, Optional

from src.ai_agent.models import SchedulingAnalysis, SchedulingDetails
from src.nlp.temporal_resolver import ResolvedTime, TemporalPhraseResolver
from src.scheduler.models import BusyInterval, SlotRequest
from src.scheduler.slot_recommender import MeetingSlotRecommender
from utils.errors import SchedulingEngineError
from utils.meeting_logger import MeetingLogger

logger = logging.getLogger(__name__)

MAX_CHECKED_DATES = 3
CHECK_WINDOW = timedelta(hours=1)
ALTERNATIVE_DURATION = 60
MAX_ALTERNATIVES = 3
ALTERNATIVES_DAY_START = time(9, 0)
ALTERNATIVES_DAY_END = time(17, 0)

PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}

URGENT_RESPONSE = ("Thank you for reaching out. I'll check my calendar and get back to you "
                   "shortly regarding {topic}.")
DEFAULT_RESPONSE = ("I'd be happy to schedule time for {topic}. Let me check my availability "
                    "and propose some times.")


def _overlaps(start: datetime, end: datetime, busy: BusyInterval) -> bool:
    return busy.start < end and busy.end > start


class EmailActionPlanner:
    """Plans follow-up actions for emails that carry scheduling intent"""

    def __init__(self, recommender: MeetingSlotRecommender = None,
                 temporal_resolver: TemporalPhraseResolver = None):
        self.recommender = recommender or MeetingSlotRecommender()
        self.temporal_resolver = temporal_resolver or TemporalPhraseResolver()

    def plan(self, analysis: SchedulingAnalysis, busy_intervals: List[BusyInterval] = None,
             now: datetime = None) -> Dict[str, Any]:
        result = analysis.to_dict()
        result["suggestedActions"] = []

        if not analysis.has_scheduling_intent:
            return result

        details = analysis.details
        parsed_dates = self.temporal_resolver.resolve_phrases(details.proposed_times, now)

        availability = None
        if parsed_dates:
            availability = self.check_availability(parsed_dates, busy_intervals or [])

        actions = self.suggest_actions(details, parsed_dates, availability)

        result["schedulingDetails"]["parsedDates"] = [p.to_dict() for p in parsed_dates]
        result["schedulingDetails"]["calendarAvailability"] = availability
        result["suggestedActions"] = actions

        MeetingLogger.log_email_actions({
            "topic": details.meeting_topic,
            "urgency": details.urgency,
            "parsedDates": len(parsed_dates),
        }, actions)
        return result

    def check_availability(self, parsed_dates: List[ResolvedTime],
                           busy_intervals: List[BusyInterval]) -> Dict[str, Any]:
        """Check the first proposed times as one-hour windows"""
        has_conflicts = False
        for parsed in parsed_dates[:MAX_CHECKED_DATES]:
            window_end = parsed.resolved + CHECK_WINDOW
            if any(_overlaps(parsed.resolved, window_end, busy) for busy in busy_intervals):
                logger.info(f"Proposed time {parsed.resolved.isoformat()} conflicts with the calendar")
                has_conflicts = True

        alternatives = None
        if has_conflicts:
            alternatives = self._alternatives(parsed_dates[0].resolved, busy_intervals)

        return {
            "hasConflicts": has_conflicts,
            "suggestedAlternatives": alternatives,
        }

    def _alternatives(self, first_date: datetime,
                      busy_intervals: List[BusyInterval]) -> Optional[List[Dict[str, Any]]]:
        tz = first_date.tzinfo
        day = first_date.date()
        try:
            request = SlotRequest(
                duration_minutes=ALTERNATIVE_DURATION,
                range_start=datetime.combine(day, ALTERNATIVES_DAY_START, tzinfo=tz),
                range_end=datetime.combine(day, ALTERNATIVES_DAY_END, tzinfo=tz),
                max_suggestions=MAX_ALTERNATIVES,
            )
            slots = self.recommender.recommend(request, busy_intervals)
        except SchedulingEngineError as e:
            logger.warning(f"⚠️  Could not compute alternative slots: {e}")
            return None
        return [slot.to_dict() for slot in slots]

    def suggest_actions(self, details: SchedulingDetails, parsed_dates: List[ResolvedTime],
                        availability: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
        actions = []

        if details.response_required:
            actions.append({
                "type": "draft_response",
                "priority": "high" if details.urgency == "high" else "medium",
                "description": "Draft response to scheduling request",
                "data": {"suggestedResponse": self.draft_response(details)},
            })

        has_conflicts = bool(availability and availability["hasConflicts"])

        if parsed_dates:
            actions.append({
                "type": "check_availability",
                "priority": "medium",
                "description": f"Check availability for {len(parsed_dates)} proposed time(s)",
                "data": {"proposedTimes": [p.to_dict() for p in parsed_dates]},
            })

            if availability is not None and not has_conflicts:
                actions.append({
                    "type": "create_event",
                    "priority": "high",
                    "description": "Create calendar event for confirmed time",
                    "data": {
                        "suggestedEvent": {
                            "title": details.meeting_topic,
                            "startTime": parsed_dates[0].resolved.isoformat(),
                            "duration": details.estimated_duration,
                            "attendees": details.participants,
                        }
                    },
                })

        if not parsed_dates or has_conflicts:
            actions.append({
                "type": "suggest_times",
                "priority": "medium",
                "description": "Suggest alternative meeting times",
                "data": {"alternatives": availability["suggestedAlternatives"] if availability else None},
            })

        # sorted() is stable, so equal priorities keep insertion order
        return sorted(actions, key=lambda action: PRIORITY_ORDER[action["priority"]], reverse=True)

    @staticmethod
    def draft_response(details: SchedulingDetails) -> str:
        template = URGENT_RESPONSE if details.urgency == "high" else DEFAULT_RESPONSE
        return template.format(topic=details.meeting_topic)
