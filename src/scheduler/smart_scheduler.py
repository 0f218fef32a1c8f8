"""
Smart Scheduler - caller-facing facade over the scheduling engine
"""
import logging
import time
from datetime import datetime
from typing import Dict, List, Any, Optional, Union

from config.settings import Config
from src.ai_agent.email_analyzer import EmailSchedulingAnalyzer
from src.ai_agent.models import ParsedQuery, SchedulingAnalysis
from src.ai_agent.query_parser import QueryIntentParser
from src.calendar.busy_intervals import parse_busy_intervals
from src.nlp.temporal_resolver import TemporalPhraseResolver
from src.scheduler.action_planner import EmailActionPlanner
from src.scheduler.models import BusyInterval, CandidateSlot, SlotPreferences, SlotRequest
from src.scheduler.slot_recommender import MeetingSlotRecommender
from utils.errors import ValidationError
from utils.logger import SmartCalendarLogger

logger = logging.getLogger(__name__)


class SmartScheduler:
    """
    Main entry point: query parsing, email analysis, slot recommendation
    and email action planning. Holds no per-call state.
    """

    def __init__(self, model_name: str = None, llm_client=None):
        self.config = Config()

        if llm_client is None and self.config.ORACLE_ENABLED:
            from src.ai_agent.llm_client import LLMClient
            llm_client = LLMClient(model_name)
        self.llm_client = llm_client

        if self.llm_client is not None:
            logger.info("✅ NL oracle enabled, rules used as fallback")
        else:
            logger.info("🔄 NL oracle disabled, using deterministic rules only")

        self.temporal_resolver = TemporalPhraseResolver()
        self.query_parser = QueryIntentParser(self.llm_client, self.temporal_resolver)
        self.email_analyzer = EmailSchedulingAnalyzer(self.llm_client, self.temporal_resolver)
        self.recommender = MeetingSlotRecommender()
        self.action_planner = EmailActionPlanner(self.recommender, self.temporal_resolver)

        logger.info("SmartScheduler initialized")

    def parse_query(self, query: str, context: Any = None, now: datetime = None) -> ParsedQuery:
        start_time = time.time()
        parsed = self.query_parser.parse(query, context, now)
        SmartCalendarLogger.log_engine_call(
            "parse_query",
            {"query_length": len(query), "has_context": context is not None},
            {"intent": parsed.intent, "confidence": parsed.confidence, "source": parsed.source},
            time.time() - start_time,
        )
        return parsed

    def analyze_email(self, email_text: str, now: datetime = None) -> SchedulingAnalysis:
        start_time = time.time()
        analysis = self.email_analyzer.analyze(email_text, now)
        SmartCalendarLogger.log_engine_call(
            "analyze_email",
            {"email_length": len(email_text)},
            {"has_scheduling_intent": analysis.has_scheduling_intent,
             "confidence": analysis.confidence, "source": analysis.source},
            time.time() - start_time,
        )
        return analysis

    def recommend_slots(self, request: Union[SlotRequest, Dict[str, Any]],
                        busy_intervals: List[Any] = None,
                        preferences: Union[SlotPreferences, Dict[str, Any], None] = None) -> List[CandidateSlot]:
        """Ranked conflict-free slots; dict inputs use the JSON wire keys"""
        start_time = time.time()

        if isinstance(request, dict):
            request = SlotRequest.from_dict(request)
        elif not isinstance(request, SlotRequest):
            raise ValidationError("Slot request must be a SlotRequest or an object")

        busy = self._busy_intervals(busy_intervals)

        if isinstance(preferences, dict):
            preferences = SlotPreferences.from_dict(preferences)
        elif preferences is not None and not isinstance(preferences, SlotPreferences):
            raise ValidationError("Preferences must be a SlotPreferences or an object")

        slots = self.recommender.recommend(request, busy, preferences)
        SmartCalendarLogger.log_engine_call(
            "recommend_slots",
            {**request.summary(), "busy_intervals": len(busy)},
            {"slots": len(slots)},
            time.time() - start_time,
        )
        return slots

    def plan_email_actions(self, email_text: str, busy_intervals: List[Any] = None,
                           now: datetime = None) -> Dict[str, Any]:
        """Analysis plus parsed dates, availability and suggested actions"""
        start_time = time.time()
        busy = self._busy_intervals(busy_intervals)

        analysis = self.email_analyzer.analyze(email_text, now)
        result = self.action_planner.plan(analysis, busy, now)

        SmartCalendarLogger.log_engine_call(
            "plan_email_actions",
            {"email_length": len(email_text), "busy_intervals": len(busy)},
            {"has_scheduling_intent": analysis.has_scheduling_intent,
             "actions": len(result["suggestedActions"])},
            time.time() - start_time,
        )
        return result

    def process_email_batch(self, emails: List[Any], busy_intervals: List[Any] = None,
                            now: datetime = None) -> Dict[str, Any]:
        """
        Plan actions for a list of emails.

        Each email is either its text or an object with "body" and optional
        "id" / "subject". A failing email is logged and left out of results.
        """
        if not isinstance(emails, list):
            raise ValidationError("Emails must be a list")

        busy = self._busy_intervals(busy_intervals)
        results = []
        scheduling_emails = 0
        high_priority_actions = 0

        for email in emails:
            try:
                plan = self.plan_email_actions(self._email_text(email), busy, now)
            except Exception as e:
                email_id = email.get("id", "unknown") if isinstance(email, dict) else "unknown"
                logger.error(f"❌ Failed to process email {email_id}: {e}")
                continue

            if plan["hasSchedulingIntent"]:
                scheduling_emails += 1
                high_priority_actions += sum(
                    1 for action in plan["suggestedActions"] if action["priority"] == "high"
                )
            results.append({"email": email, "analysis": plan})

        logger.info(f"📬 Batch processed: {len(results)}/{len(emails)} emails, "
                    f"{scheduling_emails} with scheduling intent")
        return {
            "processed": len(results),
            "schedulingEmails": scheduling_emails,
            "highPriorityActions": high_priority_actions,
            "results": results,
        }

    def _busy_intervals(self, busy_intervals: Optional[List[Any]]) -> List[BusyInterval]:
        if not busy_intervals:
            return []
        if all(isinstance(item, BusyInterval) for item in busy_intervals):
            return list(busy_intervals)
        return parse_busy_intervals(busy_intervals)

    def _email_text(self, email: Any) -> str:
        if isinstance(email, str):
            return email
        if isinstance(email, dict) and isinstance(email.get("body"), str):
            subject = email.get("subject")
            return f"Subject: {subject}\n\n{email['body']}" if subject else email["body"]
        raise ValidationError("Email must be a string or an object with a 'body' string")
