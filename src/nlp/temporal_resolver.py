"""
Temporal Phrase Resolver - turns "tomorrow at 2pm" style phrases into
absolute timestamps anchored to a reference instant
"""
import logging
import re
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta, MO, TU, WE, TH, FR, SA, SU

logger = logging.getLogger(__name__)

WEEKDAYS = {
    'monday': MO, 'tuesday': TU, 'wednesday': WE, 'thursday': TH,
    'friday': FR, 'saturday': SA, 'sunday': SU,
}

MONTHS = {
    'jan': 1, 'january': 1, 'feb': 2, 'february': 2, 'mar': 3, 'march': 3,
    'apr': 4, 'april': 4, 'may': 5, 'jun': 6, 'june': 6, 'jul': 7, 'july': 7,
    'aug': 8, 'august': 8, 'sep': 9, 'sept': 9, 'september': 9,
    'oct': 10, 'october': 10, 'nov': 11, 'november': 11, 'dec': 12, 'december': 12,
}

# (hour, minute, meridiem hint) implied by a time-of-day word
PERIODS = {
    'morning': (9, 0, 'am'),
    'afternoon': (14, 0, 'pm'),
    'evening': (18, 0, 'pm'),
    'night': (20, 0, 'pm'),
}

_WEEKDAY_NAMES = '|'.join(WEEKDAYS)
_MONTH_NAMES = '|'.join(sorted(MONTHS, key=len, reverse=True))

# Words allowed between two tokens of the same phrase
JOINER_PATTERN = re.compile(r'^[\s,]*(?:at|on|in the|@|by)?[\s,]*$', re.IGNORECASE)


class ResolvedTime:
    """One absolute interpretation of a literal phrase"""

    def __init__(self, original_phrase: str, resolved: datetime, confidence: float,
                 start: int = 0, end: int = 0):
        self.original_phrase = original_phrase
        self.resolved = resolved
        self.confidence = confidence
        self.start = start
        self.end = end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originalPhrase": self.original_phrase,
            "resolvedInstant": self.resolved.isoformat(),
            "confidence": self.confidence,
        }

    def __repr__(self):
        return f"ResolvedTime({self.original_phrase!r}, {self.resolved.isoformat()}, {self.confidence})"


class _Token:
    def __init__(self, start: int, end: int, date_value: Optional[date] = None,
                 clock: Optional[tuple] = None, period: Optional[str] = None,
                 instant: Optional[datetime] = None):
        self.start = start
        self.end = end
        self.date_value = date_value
        self.clock = clock  # (hour, minute, meridiem, minutes_explicit, bare)
        self.period = period
        self.instant = instant


class _Phrase:
    def __init__(self, token: _Token):
        self.start = token.start
        self.end = token.end
        self.date_value = None
        self.clock = None
        self.period = None
        self.instant = None
        self.absorb(token)

    def accepts(self, token: _Token) -> bool:
        if self.instant is not None or token.instant is not None:
            return False
        if token.date_value is not None and self.date_value is not None:
            return False
        if token.clock is not None and self.clock is not None:
            return False
        if token.period is not None and self.period is not None:
            return False
        return True

    def absorb(self, token: _Token):
        self.end = token.end
        self.date_value = self.date_value or token.date_value
        self.clock = self.clock or token.clock
        self.period = self.period or token.period
        self.instant = self.instant or token.instant


class TemporalPhraseResolver:
    """Regex resolver for relative and absolute date/time phrases"""

    def __init__(self):
        self._token_rules = [
            (re.compile(r'\b\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?',
                        re.IGNORECASE), self._iso_datetime),
            (re.compile(r'\b(\d{4})-(\d{2})-(\d{2})\b'), self._iso_date),
            (re.compile(r'\bday after tomorrow\b', re.IGNORECASE), self._relative_day(2)),
            (re.compile(r'\btomorrow\b', re.IGNORECASE), self._relative_day(1)),
            (re.compile(r'\btoday\b', re.IGNORECASE), self._relative_day(0)),
            (re.compile(r'\byesterday\b', re.IGNORECASE), self._relative_day(-1)),
            (re.compile(r'\btonight\b', re.IGNORECASE), self._tonight),
            (re.compile(r'\bnext week\b', re.IGNORECASE), self._next_week),
            (re.compile(r'\bin\s+(\d{1,3}|a|an)\s+(days?|weeks?)\b', re.IGNORECASE), self._in_days),
            (re.compile(rf'\b(?:(this|next|last)\s+)?({_WEEKDAY_NAMES})\b', re.IGNORECASE), self._weekday),
            (re.compile(rf'\b({_MONTH_NAMES})\.?\s+(\d{{1,2}})(?:st|nd|rd|th)?(?:,?\s+(\d{{4}}))?\b',
                        re.IGNORECASE), self._month_day),
            (re.compile(rf'\b(\d{{1,2}})(?:st|nd|rd|th)?\s+(?:of\s+)?({_MONTH_NAMES})(?:,?\s+(\d{{4}}))?\b',
                        re.IGNORECASE), self._day_month),
            (re.compile(r'\b(\d{1,2})(?::([0-5]\d))?\s*([ap])\.?m\b\.?', re.IGNORECASE), self._meridiem_time),
            (re.compile(r'\b([01]?\d|2[0-3]):([0-5]\d)\b'), self._clock_time),
            (re.compile(r'\bat\s+(\d{1,2})\b(?![:\d])', re.IGNORECASE), self._bare_hour),
            (re.compile(r'\bnoon\b', re.IGNORECASE), self._fixed_clock(12)),
            (re.compile(r'\bmidnight\b', re.IGNORECASE), self._fixed_clock(0)),
            (re.compile(r'\b(morning|afternoon|evening|night)\b', re.IGNORECASE), self._period),
        ]

    def resolve(self, text: str, now: datetime = None) -> List[ResolvedTime]:
        """All phrases found in text, ordered by position; empty when none"""
        if not text or not isinstance(text, str):
            return []

        now = now or datetime.now().astimezone()
        tokens = self._tokenize(text, now)
        results = []

        for phrase in self._group(tokens, text):
            resolved = self._to_resolved_time(phrase, text, now)
            if resolved is not None:
                results.append(resolved)

        if results:
            logger.debug(f"Resolved {len(results)} temporal phrase(s): {results}")
        return results

    def resolve_first(self, text: str, now: datetime = None) -> Optional[ResolvedTime]:
        results = self.resolve(text, now)
        return results[0] if results else None

    def resolve_phrases(self, phrases: List[str], now: datetime = None) -> List[ResolvedTime]:
        """Resolve literal phrases (e.g. proposed times), best confidence first"""
        now = now or datetime.now().astimezone()
        results = []

        for phrase in phrases or []:
            for resolved in self.resolve(phrase, now):
                resolved.original_phrase = phrase
                results.append(resolved)

        return sorted(results, key=lambda item: item.confidence, reverse=True)

    def _tokenize(self, text: str, now: datetime) -> List[_Token]:
        accepted = []
        for pattern, handler in self._token_rules:
            for match in pattern.finditer(text):
                if any(match.start() < token.end and token.start < match.end() for token in accepted):
                    continue
                try:
                    token = handler(match, now)
                except (ValueError, OverflowError) as e:
                    logger.debug(f"Skipping unresolvable phrase {match.group(0)!r}: {e}")
                    continue
                if token is not None:
                    accepted.append(token)
        return sorted(accepted, key=lambda token: token.start)

    def _group(self, tokens: List[_Token], text: str) -> List[_Phrase]:
        phrases = []
        for token in tokens:
            if phrases:
                current = phrases[-1]
                gap = text[current.end:token.start]
                if JOINER_PATTERN.match(gap) and current.accepts(token):
                    current.absorb(token)
                    continue
            phrases.append(_Phrase(token))
        return phrases

    def _to_resolved_time(self, phrase: _Phrase, text: str, now: datetime) -> Optional[ResolvedTime]:
        original = text[phrase.start:phrase.end].strip()

        if phrase.instant is not None:
            return ResolvedTime(original, phrase.instant, 1.0, phrase.start, phrase.end)

        confidence = 0.5
        day = phrase.date_value
        if day is not None:
            confidence += 0.2
        else:
            day = now.date()

        period = PERIODS.get(phrase.period) if phrase.period else None

        if phrase.clock is not None:
            hour, minute, meridiem, minutes_explicit, bare = phrase.clock
            hint = meridiem or (period[2] if period else None)
            if hint == 'pm' and hour < 12:
                hour += 12
            elif hint == 'am' and hour == 12:
                hour = 0
            elif hint is None and bare and 1 <= hour <= 7:
                hour += 12
            confidence += 0.3
            if minutes_explicit:
                confidence += 0.1
        elif period is not None:
            hour, minute = period[0], period[1]
            confidence += 0.15
        else:
            hour, minute = 12, 0

        if hour > 23:
            return None

        resolved = datetime.combine(day, time(hour, minute), tzinfo=now.tzinfo)
        return ResolvedTime(original, resolved, round(min(confidence, 1.0), 2), phrase.start, phrase.end)

    # Token handlers

    def _iso_datetime(self, match, now):
        instant = date_parser.isoparse(match.group(0))
        if instant.tzinfo is None and now.tzinfo is not None:
            instant = instant.replace(tzinfo=now.tzinfo)
        return _Token(match.start(), match.end(), instant=instant)

    def _iso_date(self, match, now):
        value = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        return _Token(match.start(), match.end(), date_value=value)

    def _relative_day(self, offset: int):
        def handler(match, now):
            value = now.date() + relativedelta(days=offset)
            return _Token(match.start(), match.end(), date_value=value)
        return handler

    def _tonight(self, match, now):
        return _Token(match.start(), match.end(), date_value=now.date(), period='night')

    def _next_week(self, match, now):
        value = now.date() + relativedelta(weeks=+1, weekday=MO(-1))
        return _Token(match.start(), match.end(), date_value=value)

    def _in_days(self, match, now):
        amount = match.group(1).lower()
        amount = 1 if amount in ('a', 'an') else int(amount)
        if match.group(2).lower().startswith('week'):
            value = now.date() + relativedelta(weeks=amount)
        else:
            value = now.date() + relativedelta(days=amount)
        return _Token(match.start(), match.end(), date_value=value)

    def _weekday(self, match, now):
        qualifier = (match.group(1) or '').lower()
        weekday = WEEKDAYS[match.group(2).lower()]
        today = now.date()

        if qualifier == 'next':
            value = today + relativedelta(days=+1, weekday=weekday(+1))
        elif qualifier == 'last':
            value = today + relativedelta(days=-1, weekday=weekday(-1))
        else:
            value = today + relativedelta(weekday=weekday(+1))
        return _Token(match.start(), match.end(), date_value=value)

    def _calendar_date(self, month: int, day: int, year: Optional[str], now):
        if year:
            return date(int(year), month, day)
        value = date(now.year, month, day)
        if value < now.date():
            value = date(now.year + 1, month, day)
        return value

    def _month_day(self, match, now):
        month = MONTHS[match.group(1).lower()]
        value = self._calendar_date(month, int(match.group(2)), match.group(3), now)
        return _Token(match.start(), match.end(), date_value=value)

    def _day_month(self, match, now):
        month = MONTHS[match.group(2).lower()]
        value = self._calendar_date(month, int(match.group(1)), match.group(3), now)
        return _Token(match.start(), match.end(), date_value=value)

    def _meridiem_time(self, match, now):
        hour = int(match.group(1))
        if not 1 <= hour <= 12:
            return None
        minute = int(match.group(2)) if match.group(2) else 0
        meridiem = match.group(3).lower() + 'm'
        return _Token(match.start(), match.end(),
                      clock=(hour, minute, meridiem, match.group(2) is not None, False))

    def _clock_time(self, match, now):
        return _Token(match.start(), match.end(),
                      clock=(int(match.group(1)), int(match.group(2)), None, True, False))

    def _bare_hour(self, match, now):
        hour = int(match.group(1))
        if not 1 <= hour <= 12:
            return None
        return _Token(match.start(), match.end(), clock=(hour, 0, None, False, True))

    def _fixed_clock(self, hour: int):
        def handler(match, now):
            meridiem = 'am' if hour == 0 else None
            return _Token(match.start(), match.end(), clock=(hour if hour else 12, 0, meridiem, False, False))
        return handler

    def _period(self, match, now):
        return _Token(match.start(), match.end(), period=match.group(1).lower())
