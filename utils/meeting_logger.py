"""
Specialized logging utilities for slot recommendation and email action planning
"""
import logging
from datetime import time
from typing import List, Dict, Any

logger = logging.getLogger(__name__)


class MeetingLogger:
    """Specialized logger for scheduling events"""

    @staticmethod
    def log_busy_intervals(busy_intervals: List, working_hours_start: time = time(9, 0),
                           working_hours_end: time = time(17, 0)):
        """Log the busy intervals a recommendation is computed against"""

        logger.info(f"📋 BUSY INTERVALS ({len(busy_intervals)})")

        if not busy_intervals:
            logger.info(f"   ✅ Calendar is free for the whole range")
            return

        off_hours = 0
        for i, interval in enumerate(busy_intervals, 1):
            start_clock = interval.start.time()
            is_off_hours = (start_clock < working_hours_start or
                            start_clock >= working_hours_end or
                            interval.start.weekday() >= 5)  # Weekend
            if is_off_hours:
                off_hours += 1
            marker = "🌙" if is_off_hours else "🏢"
            logger.debug(f"   {marker} {i}. {interval.start.isoformat()} to {interval.end.isoformat()}")

        if off_hours:
            logger.info(f"   🌙 {off_hours} interval(s) start outside working hours")

    @staticmethod
    def log_slot_recommendations(request_summary: Dict[str, Any], generated: int,
                                 conflict_free: int, slots: List):
        """Log the outcome of one recommendation run"""

        logger.info(f"🎯 SLOT RECOMMENDATION:")
        logger.info(f"   ⏰ Range: {request_summary.get('timeMin')} to {request_summary.get('timeMax')}")
        logger.info(f"   ⏱️  Duration: {request_summary.get('duration')} minutes")
        logger.info(f"   📊 Candidates: {generated} generated, {conflict_free} conflict-free")

        if not slots:
            logger.warning(f"   ⚠️  No free slot found in the requested range")
            return

        for i, slot in enumerate(slots, 1):
            logger.info(f"      {i}. {slot.start.isoformat()} (confidence {slot.confidence})")

    @staticmethod
    def log_email_actions(summary: Dict[str, Any], actions: List[Dict[str, Any]]):
        """Log the actions suggested for one email"""

        logger.info(f"📧 EMAIL ACTIONS:")
        logger.info(f"   📋 Topic: {summary.get('topic', 'N/A')}")
        logger.info(f"   🚦 Urgency: {summary.get('urgency', 'N/A')}")
        logger.info(f"   📅 Parsed dates: {summary.get('parsedDates', 0)}")

        if not actions:
            logger.info(f"   ✅ Nothing to do")
            return

        for action in actions:
            logger.info(f"   ➡️  [{action['priority']}] {action['type']}: {action['description']}")
