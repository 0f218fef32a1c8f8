"""
Structured results produced by the query parser and the email analyzer
"""
from typing import Any, Dict, List, Optional

from utils.errors import ValidationError
from utils.validators import URGENCY_LEVELS, MEETING_TYPES


class Intent:
    """Classified purpose of a user utterance"""

    SCHEDULE = "schedule"
    QUERY = "query"
    UPDATE = "update"
    CANCEL = "cancel"
    AVAILABILITY = "availability"
    EMAIL_QUERY = "email_query"
    EMAIL_SEARCH = "email_search"

    ALL = (SCHEDULE, QUERY, UPDATE, CANCEL, AVAILABILITY, EMAIL_QUERY, EMAIL_SEARCH)

    @classmethod
    def normalize(cls, value: Any) -> Optional[str]:
        """Map "email-query" / "Email_Search" spellings onto a known intent"""
        if not isinstance(value, str):
            return None
        candidate = value.strip().lower().replace("-", "_")
        return candidate if candidate in cls.ALL else None


class EntitySet:
    """Optional fields extracted from an utterance; None means not mentioned"""

    FIELDS = ("date_time", "duration", "title", "current_title", "new_title",
              "attendees", "location", "description")

    WIRE_NAMES = {
        "date_time": "dateTime",
        "current_title": "currentTitle",
        "new_title": "newTitle",
    }

    def __init__(self, date_time: str = None, duration: int = None, title: str = None,
                 current_title: str = None, new_title: str = None,
                 attendees: List[str] = None, location: str = None,
                 description: str = None):
        self.date_time = date_time
        self.duration = duration
        self.title = title
        self.current_title = current_title
        self.new_title = new_title
        self.attendees = list(attendees) if attendees else None
        self.location = location
        self.description = description

    def merged_over(self, base: "EntitySet") -> "EntitySet":
        """Fields of self win; fields self does not mention come from base"""
        values = {}
        for field in self.FIELDS:
            mine = getattr(self, field)
            values[field] = mine if mine is not None else getattr(base, field)
        return EntitySet(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {self.WIRE_NAMES.get(field, field): getattr(self, field) for field in self.FIELDS}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EntitySet":
        """Build from wire keys; a field of the wrong type raises ValidationError"""
        data = data or {}
        values = {}
        errors = []
        for field in cls.FIELDS:
            wire = cls.WIRE_NAMES.get(field, field)
            value = data.get(wire, data.get(field))
            if value is not None and not cls._well_typed(field, value):
                errors.append(f"Entity '{wire}' has invalid value: {value!r}")
            values[field] = value

        if errors:
            raise ValidationError("Invalid context entities", details=errors)
        return cls(**values)

    @staticmethod
    def _well_typed(field: str, value: Any) -> bool:
        if field == "duration":
            return isinstance(value, int) and not isinstance(value, bool)
        if field == "attendees":
            return isinstance(value, list) and all(isinstance(item, str) for item in value)
        return isinstance(value, str)

    def __eq__(self, other):
        return isinstance(other, EntitySet) and self.to_dict() == other.to_dict()


class ParsedQuery:
    """{intent, entities, confidence} for one utterance"""

    def __init__(self, intent: str, entities: EntitySet, confidence: float, source: str = "rules"):
        self.intent = intent
        self.entities = entities
        self.confidence = confidence
        self.source = source

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent,
            "entities": self.entities.to_dict(),
            "confidence": self.confidence,
            "source": self.source,
        }


class ConversationContext:
    """Prior-turn state handed in by the caller for follow-up utterances"""

    def __init__(self, original_query: str, intent: str = None,
                 entities: EntitySet = None, missing_info: List[str] = None):
        self.original_query = original_query
        self.intent = Intent.normalize(intent)
        self.entities = entities or EntitySet()
        self.missing_info = tuple(missing_info or ())

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ConversationContext"]:
        if data is None:
            return None
        if not isinstance(data, dict):
            raise ValidationError("Conversation context must be an object")

        missing_info = data.get("missingInfo", data.get("missing_info")) or []
        if not isinstance(missing_info, list):
            raise ValidationError("'missingInfo' must be a list")

        entities = data.get("entities") or {}
        if not isinstance(entities, dict):
            raise ValidationError("Context 'entities' must be an object")

        return cls(
            original_query=str(data.get("originalQuery", data.get("original_query", ""))),
            intent=data.get("intent"),
            entities=EntitySet.from_dict(entities),
            missing_info=[str(item) for item in missing_info],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originalQuery": self.original_query,
            "intent": self.intent,
            "entities": self.entities.to_dict(),
            "missingInfo": list(self.missing_info),
        }


class SchedulingDetails:
    """Meeting details extracted from an email with scheduling intent"""

    def __init__(self, proposed_times: List[str], meeting_topic: str, participants: List[str],
                 urgency: str = "medium", meeting_type: str = "one-on-one",
                 estimated_duration: int = 60, action_items: List[str] = None,
                 response_required: bool = False):
        if urgency not in URGENCY_LEVELS:
            raise ValidationError(f"Unknown urgency: {urgency!r}")
        if meeting_type not in MEETING_TYPES:
            raise ValidationError(f"Unknown meeting type: {meeting_type!r}")

        self.proposed_times = list(proposed_times)
        self.meeting_topic = meeting_topic
        self.participants = list(participants)
        self.urgency = urgency
        self.meeting_type = meeting_type
        self.estimated_duration = estimated_duration
        self.action_items = list(action_items or [])
        self.response_required = response_required

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposedTimes": self.proposed_times,
            "meetingTopic": self.meeting_topic,
            "participants": self.participants,
            "urgency": self.urgency,
            "meetingType": self.meeting_type,
            "estimatedDuration": self.estimated_duration,
            "actionItems": self.action_items,
            "responseRequired": self.response_required,
        }


class SchedulingAnalysis:
    """Result of analyzing one email; details exist iff intent was found"""

    def __init__(self, has_scheduling_intent: bool, confidence: float,
                 details: SchedulingDetails = None, source: str = "rules"):
        if has_scheduling_intent != (details is not None):
            raise ValueError("details must be present exactly when has_scheduling_intent is true")

        self.has_scheduling_intent = has_scheduling_intent
        self.confidence = confidence
        self.details = details
        self.source = source

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasSchedulingIntent": self.has_scheduling_intent,
            "confidence": self.confidence,
            "schedulingDetails": self.details.to_dict() if self.details else None,
            "source": self.source,
        }
