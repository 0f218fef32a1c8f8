"""
Exception hierarchy for the Scheduling Intelligence Engine
"""
from typing import Any


class SchedulingEngineError(Exception):
    """Base error carrying a machine-readable code and an HTTP status"""

    def __init__(self, message: str, code: str = "SCHEDULING_ENGINE_ERROR",
                 status_code: int = 500, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details

    def to_dict(self):
        payload = {"error": self.message, "code": self.code}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class OracleUnavailableError(SchedulingEngineError):
    """The NL oracle could not be reached or returned nothing usable"""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, "ORACLE_UNAVAILABLE", 503, details)


class ValidationError(SchedulingEngineError, ValueError):
    """A structurally invalid call: wrong types or out-of-bound parameters"""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, "VALIDATION_ERROR", 400, details)


class SlotRecommendationError(SchedulingEngineError):
    """Unexpected failure while generating or scoring candidate slots"""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, "SLOT_RECOMMENDATION_ERROR", 500, details)
