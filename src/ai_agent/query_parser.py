"""
Query Intent Parser - classifies calendar/email utterances and extracts entities
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from config.settings import Config
from src.ai_agent.llm_client import parse_fenced_json
from src.ai_agent.models import ConversationContext, EntitySet, Intent, ParsedQuery
from src.ai_agent.resolver_chain import Resolver, ResolverChain
from src.nlp.entity_extractor import extract_duration, extract_emails, extract_rename_pair, extract_title
from src.nlp.temporal_resolver import TemporalPhraseResolver
from utils.errors import ValidationError
from utils.validators import DataSanitizer

logger = logging.getLogger(__name__)

# Checked in this order; the first group with a hit decides the intent
EMAIL_KEYWORDS = ('email', 'inbox', 'unread', 'message')
EMAIL_SEARCH_KEYWORDS = ('search', 'find', 'from', 'about')
INTENT_KEYWORDS = [
    (Intent.SCHEDULE, ('schedule', 'book', 'create')),
    (Intent.CANCEL, ('cancel', 'delete')),
    (Intent.UPDATE, ('update', 'modify', 'change')),
    (Intent.AVAILABILITY, ('free', 'available', 'busy')),
]


def classify_intent(query: str) -> str:
    """Keyword intent classification in fixed priority order"""
    lower_query = query.lower()

    if any(keyword in lower_query for keyword in EMAIL_KEYWORDS):
        if any(keyword in lower_query for keyword in EMAIL_SEARCH_KEYWORDS):
            return Intent.EMAIL_SEARCH
        return Intent.EMAIL_QUERY

    for intent, keywords in INTENT_KEYWORDS:
        if any(keyword in lower_query for keyword in keywords):
            return intent

    return Intent.QUERY


class RuleBasedQueryResolver(Resolver):
    """Deterministic fallback; always produces a ParsedQuery"""

    name = "rules"

    def __init__(self, temporal_resolver: TemporalPhraseResolver = None):
        self.temporal_resolver = temporal_resolver or TemporalPhraseResolver()

    def resolve(self, query: str, context: ConversationContext = None,
                now: datetime = None, **kwargs) -> ParsedQuery:
        intent = classify_intent(query)
        if context is not None and intent == Intent.QUERY and context.intent:
            logger.debug(f"Follow-up without intent keywords, keeping '{context.intent}'")
            intent = context.intent

        first_time = self.temporal_resolver.resolve_first(query, now)

        current_title = new_title = None
        if intent == Intent.UPDATE:
            rename_pair = extract_rename_pair(query)
            if rename_pair:
                current_title, new_title = rename_pair

        entities = EntitySet(
            date_time=first_time.resolved.isoformat() if first_time else None,
            duration=extract_duration(query),
            title=extract_title(query),
            current_title=current_title,
            new_title=new_title,
            attendees=extract_emails(query),
        )
        if context is not None:
            entities = entities.merged_over(context.entities)

        return ParsedQuery(intent, entities, Config.FALLBACK_CONFIDENCE, source=self.name)


class OracleQueryResolver(Resolver):
    """Asks the NL oracle for a structured parse; declines on unusable output"""

    name = "oracle"

    def __init__(self, llm_client, temporal_resolver: TemporalPhraseResolver = None):
        self.llm_client = llm_client
        self.temporal_resolver = temporal_resolver or TemporalPhraseResolver()
        self.config = Config()

    def build_messages(self, query: str, context: ConversationContext = None,
                       now: datetime = None) -> List[Dict[str, str]]:
        now = now or datetime.now().astimezone()
        system_prompt = self.config.QUERY_SYSTEM_PROMPT.format(
            current_date=now.date().isoformat(),
            current_datetime=now.isoformat(),
        )

        if context is not None:
            system_prompt += self.config.QUERY_CONTEXT_PROMPT.format(
                original_query=context.original_query,
                intent=context.intent or "unknown",
                entities=json.dumps(context.entities.to_dict()),
                missing_info=", ".join(context.missing_info) or "none",
            )

        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": query[:self.config.MAX_QUERY_LENGTH]},
        ]

    def resolve(self, query: str, context: ConversationContext = None,
                now: datetime = None, **kwargs) -> Optional[ParsedQuery]:
        content = self.llm_client.complete_chat(
            self.build_messages(query, context, now),
            temperature=self.config.QUERY_TEMPERATURE,
            max_tokens=self.config.QUERY_MAX_TOKENS,
        )

        raw = parse_fenced_json(content)
        if raw is None:
            logger.warning(f"Failed to parse oracle response as JSON: {content[:200]!r}")
            return None

        intent = Intent.normalize(raw.get("intent"))
        entities = raw.get("entities", {})
        if intent is None or not isinstance(entities, dict):
            logger.warning(f"Oracle response has unusable shape: {raw}")
            return None

        values = DataSanitizer.sanitize_query_entities(entities)
        values["date_time"] = self._normalize_date_time(values["date_time"], now)
        confidence = DataSanitizer.clamp(raw.get("confidence"), 0.0, 1.0,
                                         self.config.ORACLE_DEFAULT_CONFIDENCE)

        return ParsedQuery(intent, EntitySet(**values), confidence, source=self.name)

    def _normalize_date_time(self, value: Optional[str], now: Optional[datetime]) -> Optional[str]:
        """ISO timestamps pass through; phrases like "tomorrow 2pm" are resolved"""
        if value is None:
            return None

        now = now or datetime.now().astimezone()
        try:
            parsed = date_parser.isoparse(value)
        except (ValueError, OverflowError):
            parsed = None

        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=now.tzinfo)
            return parsed.isoformat()

        resolved = self.temporal_resolver.resolve_first(value, now)
        return resolved.resolved.isoformat() if resolved else None


class QueryIntentParser:
    """Oracle-first query parsing with a deterministic rule fallback"""

    def __init__(self, llm_client=None, temporal_resolver: TemporalPhraseResolver = None):
        self.temporal_resolver = temporal_resolver or TemporalPhraseResolver()

        resolvers = []
        if llm_client is not None:
            resolvers.append(OracleQueryResolver(llm_client, self.temporal_resolver))
        resolvers.append(RuleBasedQueryResolver(self.temporal_resolver))
        self.chain = ResolverChain(resolvers)

    def parse(self, query: str, context: Any = None, now: datetime = None) -> ParsedQuery:
        """Parse one utterance, optionally continuing a previous turn"""
        if not isinstance(query, str):
            raise ValidationError(f"Query must be a string, got {type(query).__name__}")
        if isinstance(context, dict):
            context = ConversationContext.from_dict(context)
        elif context is not None and not isinstance(context, ConversationContext):
            raise ValidationError("Context must be a ConversationContext or an object")

        now = now or datetime.now().astimezone()
        logger.debug(f"Parsing calendar query: {query!r}")

        parsed = self.chain.resolve(query, context=context, now=now)

        # Backfill applies to both paths
        if parsed.entities.date_time is None:
            first_time = self.temporal_resolver.resolve_first(query, now)
            if first_time is not None:
                parsed.entities.date_time = first_time.resolved.isoformat()

        logger.info(f"Parsed calendar query: intent={parsed.intent} "
                    f"confidence={parsed.confidence} source={parsed.source}")
        return parsed
