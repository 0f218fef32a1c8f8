"""
Configuration settings for the Scheduling Intelligence Engine
"""
import os
from typing import Dict, Any


def _env(name: str, default):
    """Read an override from the environment, coerced to the default's type"""
    raw = os.getenv(name)
    if raw is None:
        return default
    if isinstance(default, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


class Config:
    # NL oracle (any OpenAI-compatible chat completion endpoint)
    ORACLE_ENABLED = _env("ORACLE_ENABLED", False)
    LLM_BASE_URL = _env("LLM_BASE_URL", "http://localhost:4000/v1")
    LLM_API_KEY = _env("LLM_API_KEY", "NULL")  # vLLM doesn't require API key
    DEFAULT_MODEL = _env("DEFAULT_MODEL", "llama-3.2-3b")
    LLM_TIMEOUT = _env("LLM_TIMEOUT", 10.0)  # seconds, hard bound on an oracle call
    LLM_MAX_RETRIES = _env("LLM_MAX_RETRIES", 0)  # the engine never retries itself

    QUERY_TEMPERATURE = _env("QUERY_TEMPERATURE", 0.1)
    QUERY_MAX_TOKENS = _env("QUERY_MAX_TOKENS", 500)
    EMAIL_TEMPERATURE = _env("EMAIL_TEMPERATURE", 0.2)
    EMAIL_MAX_TOKENS = _env("EMAIL_MAX_TOKENS", 600)

    # Parser constants
    FALLBACK_CONFIDENCE = 0.6
    ORACLE_DEFAULT_CONFIDENCE = 0.9
    EMAIL_INTENT_THRESHOLD = 0.4
    MAX_QUERY_LENGTH = 2000  # characters sent to the oracle
    MAX_EMAIL_LENGTH = 4000

    # Slot recommendation
    WORKING_HOURS_START = "09:00"
    WORKING_HOURS_END = "17:00"
    DEFAULT_BUFFER_MINUTES = 15
    DEFAULT_MAX_SUGGESTIONS = 5
    MIN_SUGGESTIONS = 1
    MAX_SUGGESTIONS = 10
    SLOT_STEP_MINUTES = 30
    MIN_MEETING_DURATION = 15  # minutes
    MAX_MEETING_DURATION = 480  # 8 hours
    DEFAULT_MEETING_DURATION = 60
    MAX_RANGE_DAYS = 365

    # API Configuration
    API_HOST = _env("API_HOST", "0.0.0.0")
    API_PORT = _env("API_PORT", 5000)
    LOG_LEVEL = _env("LOG_LEVEL", "INFO")

    QUERY_SYSTEM_PROMPT = """You are a calendar assistant that extracts intent and entities from natural language queries about calendar events.

CURRENT DATE CONTEXT: Today is {current_date} ({current_datetime})

AVAILABLE INTENTS:
- schedule: User wants to create/book a new event
- query: User wants to find/list existing events
- update: User wants to modify an existing event
- cancel: User wants to delete/cancel an event
- availability: User wants to check free/busy time
- email_query: User wants to see/list emails
- email_search: User wants to search for specific emails

For updates: currentTitle = the existing title to find, newTitle = the title to change it to.

Respond ONLY with valid JSON, without markdown formatting:
{{"intent": "one_of_the_intents_above", "entities": {{"dateTime": "ISO string or null", "duration": minutes or null, "title": "string or null", "currentTitle": "string or null", "newTitle": "string or null", "attendees": ["email"] or null, "location": "string or null", "description": "string or null"}}, "confidence": 0.95}}

EXAMPLES:
"Change test meeting to Project Review" -> {{"intent": "update", "entities": {{"currentTitle": "test meeting", "newTitle": "Project Review"}}, "confidence": 0.95}}
"Find emails from john@example.com" -> {{"intent": "email_search", "entities": {{"attendees": ["john@example.com"]}}, "confidence": 0.9}}"""

    QUERY_CONTEXT_PROMPT = """

CONVERSATION CONTEXT:
- Original query: "{original_query}"
- Previous intent: {intent}
- Previously extracted entities: {entities}
- Missing information: {missing_info}

The user is providing additional information to complete their original request. Merge the new information with the existing context instead of starting over."""

    EMAIL_ANALYSIS_PROMPT = """Analyze this email for scheduling/meeting intent with comprehensive extraction.

Email:
{email_text}

Extract:
1. Does this email contain a request to schedule, reschedule, or discuss scheduling a meeting/call/appointment?
2. Your confidence level (0-1)
3. All time/date references (preserve exact phrasing)
4. The main meeting topic/purpose
5. Participant names/emails mentioned
6. Urgency based on language (urgent, ASAP, soon, etc.)
7. Meeting type and formality level
8. Appropriate meeting duration in minutes
9. Action items or deadlines
10. Whether the email requires a response

Respond ONLY with valid JSON in this exact format:
{{"hasSchedulingIntent": boolean, "confidence": number, "proposedTimes": ["exact phrase"], "meetingTopic": "topic or null", "participants": ["email or name"], "urgency": "low|medium|high", "meetingType": "one-on-one|team-meeting|interview|casual|formal", "estimatedDuration": number_in_minutes, "actionItems": ["action"], "responseRequired": boolean}}"""

    @classmethod
    def get_model_config(cls, model_name: str = None) -> Dict[str, Any]:
        """Get oracle connection and generation parameters"""
        return {
            "model": model_name or cls.DEFAULT_MODEL,
            "base_url": cls.LLM_BASE_URL,
            "api_key": cls.LLM_API_KEY,
            "timeout": cls.LLM_TIMEOUT,
            "max_retries": cls.LLM_MAX_RETRIES,
        }
