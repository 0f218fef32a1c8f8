"""
Scheduling Intelligence Engine - natural-language scheduling helpers

This package provides:
- Intent and entity parsing for calendar queries
- Scheduling-intent analysis for emails
- Ranked meeting slot recommendations against busy intervals
- Suggested follow-up actions for scheduling emails
"""

__version__ = "1.0.0"
__author__ = "Smart Calendar Team"
