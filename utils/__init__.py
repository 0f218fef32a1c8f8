"""
Utility modules for the Scheduling Intelligence Engine
"""

from .errors import SchedulingEngineError, OracleUnavailableError, ValidationError, SlotRecommendationError
from .logger import SmartCalendarLogger
from .validators import RequestValidator, DataSanitizer
from .meeting_logger import MeetingLogger

__all__ = ['SchedulingEngineError', 'OracleUnavailableError', 'ValidationError',
           'SlotRecommendationError', 'SmartCalendarLogger', 'RequestValidator',
           'DataSanitizer', 'MeetingLogger']
