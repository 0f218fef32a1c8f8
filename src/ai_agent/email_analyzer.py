"""
Email Scheduling-Intent Analyzer - decides whether an email proposes or
discusses a meeting and extracts the meeting details
"""
import logging
import re
from datetime import datetime
from typing import Optional

from config.settings import Config
from src.ai_agent.llm_client import parse_embedded_json
from src.ai_agent.models import SchedulingAnalysis, SchedulingDetails
from src.ai_agent.resolver_chain import Resolver, ResolverChain
from src.nlp.entity_extractor import extract_duration, extract_emails, extract_title
from src.nlp.temporal_resolver import TemporalPhraseResolver
from utils.errors import ValidationError
from utils.validators import DataSanitizer

logger = logging.getLogger(__name__)

SCHEDULING_INDICATORS = [
    (('schedule', 'scheduling'), 0.3),
    (('meeting', 'meet'), 0.3),
    (('appointment', 'appt'), 0.3),
    (('call', 'calling'), 0.25),
    (('available', 'availability'), 0.25),
    (('free time', 'free'), 0.2),
    (('calendar',), 0.25),
    (('book', 'booking'), 0.25),
    (('reschedule', 'rescheduling'), 0.35),
    (('catch up', 'catch-up', 'sync'), 0.2),
    (('discussion', 'discuss'), 0.15),
    (('interview',), 0.3),
]

TIME_REFERENCE_PATTERNS = [
    re.compile(r'today|tomorrow|tonight'),
    re.compile(r'next week|this week|next month'),
    re.compile(r'monday|tuesday|wednesday|thursday|friday|saturday|sunday'),
    re.compile(r'morning|afternoon|evening|night'),
    re.compile(r'\d{1,2}:\d{2}'),
    re.compile(r'\b\d{1,2}\s*(?:am|pm)\b'),
]

SCHEDULING_QUESTION_PATTERNS = [
    re.compile(r'when are you|when would you'),
    re.compile(r'are you free|are you available'),
    re.compile(r'does.*work for you|work for you'),
    re.compile(r'what time|what day'),
    re.compile(r'can we|could we.*meet'),
]

URGENCY_PATTERN = re.compile(r'urgent|asap|as soon as possible|immediately|emergency')
SUBJECT_PATTERN = re.compile(r'^\s*subject:\s*(.+)$', re.IGNORECASE | re.MULTILINE)

MEETING_TYPE_KEYWORDS = [
    ('interview', ('interview',)),
    ('team-meeting', ('team', 'standup', 'stand-up', 'all-hands', 'all hands')),
    ('casual', ('coffee', 'lunch', 'catch up', 'catch-up')),
]

DEFAULT_TOPIC = "Meeting discussion"


class RuleBasedEmailResolver(Resolver):
    """Weighted keyword scoring; never raises for content"""

    name = "rules"

    def __init__(self, temporal_resolver: TemporalPhraseResolver = None):
        self.temporal_resolver = temporal_resolver or TemporalPhraseResolver()

    def score(self, text: str):
        """(confidence, has time references, has scheduling questions)"""
        lower_text = text.lower()

        confidence = 0.0
        for phrases, weight in SCHEDULING_INDICATORS:
            if any(phrase in lower_text for phrase in phrases):
                confidence += weight

        has_time_references = any(p.search(lower_text) for p in TIME_REFERENCE_PATTERNS)
        if has_time_references:
            confidence += 0.3

        has_questions = any(p.search(lower_text) for p in SCHEDULING_QUESTION_PATTERNS)
        if has_questions:
            confidence += 0.4

        return min(confidence, 1.0), has_time_references, has_questions

    def resolve(self, email_text: str, now: datetime = None, **kwargs) -> SchedulingAnalysis:
        confidence, _, has_questions = self.score(email_text)
        confidence = round(confidence, 4)
        has_intent = confidence > Config.EMAIL_INTENT_THRESHOLD

        if not has_intent:
            return SchedulingAnalysis(False, confidence, None, source=self.name)

        lower_text = email_text.lower()
        # Time reference patterns only feed the score; the resolver decides what is a proposed time
        proposed_times = [r.original_phrase for r in self.temporal_resolver.resolve(email_text, now)]

        duration = extract_duration(email_text) or Config.DEFAULT_MEETING_DURATION
        duration = min(max(duration, Config.MIN_MEETING_DURATION), Config.MAX_MEETING_DURATION)

        details = SchedulingDetails(
            proposed_times=proposed_times,
            meeting_topic=self._topic(email_text),
            participants=extract_emails(email_text) or [],
            urgency="high" if URGENCY_PATTERN.search(lower_text) else "medium",
            meeting_type=self._meeting_type(lower_text),
            estimated_duration=duration,
            action_items=[],
            response_required=has_questions,
        )
        return SchedulingAnalysis(True, confidence, details, source=self.name)

    def _topic(self, email_text: str) -> str:
        subject = SUBJECT_PATTERN.search(email_text)
        if subject and subject.group(1).strip():
            return subject.group(1).strip()
        return extract_title(email_text) or DEFAULT_TOPIC

    def _meeting_type(self, lower_text: str) -> str:
        for meeting_type, keywords in MEETING_TYPE_KEYWORDS:
            if any(keyword in lower_text for keyword in keywords):
                return meeting_type
        return "one-on-one"


class OracleEmailResolver(Resolver):
    """Asks the oracle for the full details shape and sanitizes every field"""

    name = "oracle"

    def __init__(self, llm_client):
        self.llm_client = llm_client
        self.config = Config()

    def resolve(self, email_text: str, **kwargs) -> Optional[SchedulingAnalysis]:
        prompt = self.config.EMAIL_ANALYSIS_PROMPT.format(
            email_text=email_text[:self.config.MAX_EMAIL_LENGTH]
        )
        content = self.llm_client.complete_chat(
            [{"role": "user", "content": prompt}],
            temperature=self.config.EMAIL_TEMPERATURE,
            max_tokens=self.config.EMAIL_MAX_TOKENS,
        )

        raw = parse_embedded_json(content)
        if raw is None:
            logger.warning(f"Oracle email analysis has no JSON object: {content[:200]!r}")
            return None

        clean = DataSanitizer.sanitize_scheduling_analysis(raw)
        has_intent = clean.pop("has_scheduling_intent")
        confidence = clean.pop("confidence")

        details = None
        if has_intent:
            clean["meeting_topic"] = clean["meeting_topic"] or DEFAULT_TOPIC
            details = SchedulingDetails(**clean)

        return SchedulingAnalysis(has_intent, confidence, details, source=self.name)


class EmailSchedulingAnalyzer:
    """Oracle-first email analysis with a deterministic keyword fallback"""

    def __init__(self, llm_client=None, temporal_resolver: TemporalPhraseResolver = None):
        self.temporal_resolver = temporal_resolver or TemporalPhraseResolver()

        resolvers = []
        if llm_client is not None:
            resolvers.append(OracleEmailResolver(llm_client))
        resolvers.append(RuleBasedEmailResolver(self.temporal_resolver))
        self.chain = ResolverChain(resolvers)

    def analyze(self, email_text: str, now: datetime = None) -> SchedulingAnalysis:
        if not isinstance(email_text, str):
            raise ValidationError(f"Email text must be a string, got {type(email_text).__name__}")

        analysis = self.chain.resolve(email_text, now=now)
        logger.info(f"📧 Email analysis: intent={analysis.has_scheduling_intent} "
                    f"confidence={analysis.confidence} source={analysis.source}")
        return analysis
