"""
Meeting Slot Recommender - generates, filters, scores and selects candidate
meeting windows against a calendar's busy intervals
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from config.settings import Config
from src.scheduler.models import BusyInterval, CandidateSlot, SlotPreferences, SlotRequest
from utils.errors import SchedulingEngineError, SlotRecommendationError
from utils.meeting_logger import MeetingLogger

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.8
LATE_MORNING_BONUS = 0.2      # 10:00-11:59
EARLY_AFTERNOON_BONUS = 0.15  # 14:00-15:59
OFF_PEAK_PENALTY = 0.1        # before 09:00 or after 16:59
PREFERRED_BONUS = 0.3
AVOID_PENALTY = 0.4


class SlotGenerator:
    """Dense per-day grid of candidate windows inside working hours"""

    def __init__(self, step_minutes: int = None):
        self.step = timedelta(minutes=step_minutes or Config.SLOT_STEP_MINUTES)

    def generate(self, request: SlotRequest) -> List[CandidateSlot]:
        tz = request.range_start.tzinfo
        duration = timedelta(minutes=request.duration_minutes)

        first_day = request.range_start.date()
        last_day = request.range_end.astimezone(tz).date()

        candidates = []
        day = first_day
        # Weekends are not skipped
        while day <= last_day:
            current = datetime.combine(day, request.working_hours_start, tzinfo=tz)
            day_end = datetime.combine(day, request.working_hours_end, tzinfo=tz)

            while current < day_end:
                slot_end = current + duration
                if slot_end <= day_end:
                    candidates.append(CandidateSlot(current, slot_end, request.duration_minutes, BASE_CONFIDENCE))
                current += self.step

            day += timedelta(days=1)

        return candidates


class ConflictFilter:
    """Drops candidates that collide with any busy interval"""

    @staticmethod
    def conflicts(slot: CandidateSlot, busy: BusyInterval) -> bool:
        # Start inside, end inside (inclusive of the busy start), or full containment
        return (busy.start <= slot.start < busy.end or
                busy.start <= slot.end <= busy.end or
                (slot.start <= busy.start and slot.end >= busy.end))

    def filter(self, candidates: Iterable[CandidateSlot],
               busy_intervals: List[BusyInterval]) -> List[CandidateSlot]:
        return [
            slot for slot in candidates
            if not any(self.conflicts(slot, busy) for busy in busy_intervals)
        ]


class SlotScorer:
    """Time-of-day desirability plus caller preferences, clamped to [0, 1]"""

    def score(self, slot: CandidateSlot, preferences: Optional[SlotPreferences] = None) -> float:
        score = BASE_CONFIDENCE
        hour = slot.start.hour

        if 10 <= hour < 12:
            score += LATE_MORNING_BONUS
        if 14 <= hour < 16:
            score += EARLY_AFTERNOON_BONUS
        if hour < 9 or hour > 16:
            score -= OFF_PEAK_PENALTY

        if preferences is not None:
            clock = slot.start.strftime("%H:%M")
            if clock in preferences.preferred_times:
                score += PREFERRED_BONUS
            if clock in preferences.avoid_times:
                score -= AVOID_PENALTY

        return round(min(max(score, 0.0), 1.0), 4)

    def score_all(self, candidates: List[CandidateSlot],
                  preferences: Optional[SlotPreferences] = None) -> List[CandidateSlot]:
        for slot in candidates:
            slot.confidence = self.score(slot, preferences)
        return candidates


class MeetingSlotRecommender:
    """Generate -> filter -> score -> top-N"""

    def __init__(self, generator: SlotGenerator = None, conflict_filter: ConflictFilter = None,
                 scorer: SlotScorer = None):
        self.generator = generator or SlotGenerator()
        self.conflict_filter = conflict_filter or ConflictFilter()
        self.scorer = scorer or SlotScorer()

    def recommend(self, request: SlotRequest, busy_intervals: List[BusyInterval] = None,
                  preferences: SlotPreferences = None) -> List[CandidateSlot]:
        """
        Ranked conflict-free slots for the request.

        Equal scores keep chronological order. An unexpected failure is
        raised as SlotRecommendationError carrying the request summary.
        """
        busy_intervals = busy_intervals or []

        try:
            MeetingLogger.log_busy_intervals(busy_intervals, request.working_hours_start,
                                             request.working_hours_end)

            candidates = self.generator.generate(request)
            free = self.conflict_filter.filter(candidates, busy_intervals)
            scored = self.scorer.score_all(free, preferences)

            ranked = sorted(scored, key=lambda slot: slot.confidence, reverse=True)
            selected = ranked[:request.max_suggestions]
        except SchedulingEngineError:
            raise
        except Exception as e:
            logger.error(f"❌ Slot recommendation failed: {e}")
            raise SlotRecommendationError(
                f"Slot recommendation failed: {e}", details={"request": request.summary()}
            ) from e

        MeetingLogger.log_slot_recommendations(request.summary(), len(candidates), len(free), selected)
        return selected
