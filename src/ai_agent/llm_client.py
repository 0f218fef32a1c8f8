"""
NL oracle client for the Scheduling Intelligence Engine
"""
import json
import logging
import re
import time
from typing import Dict, Any, List, Optional

import requests
from openai import OpenAI

from config.settings import Config
from utils.errors import OracleUnavailableError

logger = logging.getLogger(__name__)

CODE_FENCE_START = re.compile(r'^```(?:json)?\s*', re.IGNORECASE)
CODE_FENCE_END = re.compile(r'\s*```$')


def strip_code_fences(content: str) -> str:
    """Remove a ```json ... ``` wrapper around an oracle response"""
    cleaned = content.strip()
    cleaned = CODE_FENCE_START.sub('', cleaned)
    cleaned = CODE_FENCE_END.sub('', cleaned)
    return cleaned.strip()


def parse_fenced_json(content: str) -> Optional[Dict[str, Any]]:
    """Parse a response that is a JSON object, possibly code-fenced"""
    if not content:
        return None
    try:
        parsed = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        logger.debug(f"Oracle response is not JSON: {e}")
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_embedded_json(content: str) -> Optional[Dict[str, Any]]:
    """Parse the span between the first '{' and the last '}' of a response"""
    if not content:
        return None

    json_start = content.find('{')
    json_end = content.rfind('}')
    if json_start == -1 or json_end <= json_start:
        return None

    try:
        parsed = json.loads(content[json_start:json_end + 1])
    except json.JSONDecodeError as e:
        logger.debug(f"Embedded JSON could not be parsed: {e}")
        return None
    return parsed if isinstance(parsed, dict) else None


class LLMClient:
    """OpenAI-compatible chat completion client used as the NL oracle"""

    def __init__(self, model_name: str = None, client: OpenAI = None):
        self.config = Config()
        self.model_config = self.config.get_model_config(model_name)
        self.model_name = self.model_config["model"]
        self.base_url = self.model_config["base_url"]

        # Every call is bounded by the timeout; retries are left to callers
        self.client = client or OpenAI(
            api_key=self.model_config["api_key"],
            base_url=self.base_url,
            timeout=self.model_config["timeout"],
            max_retries=self.model_config["max_retries"],
        )

        logger.info(f"Initialized oracle client: {self.model_name} @ {self.base_url}")

    def complete_chat(self, messages: List[Dict[str, str]], temperature: float = 0.1,
                      max_tokens: int = 500) -> str:
        """Send role-tagged messages and return the raw response text.

        Raises OracleUnavailableError on network, auth, timeout or empty
        responses so the caller can fall back to deterministic rules.
        """
        start_time = time.time()
        try:
            response = self.client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise OracleUnavailableError(f"Oracle request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise OracleUnavailableError("No response content from oracle")

        logger.info(f"Oracle response in {time.time() - start_time:.2f}s")
        return content

    def check_availability(self) -> bool:
        """Probe the oracle server's model listing"""
        try:
            response = requests.get(
                f"{self.base_url}/models",
                timeout=self.config.LLM_TIMEOUT,
                headers={'Authorization': f"Bearer {self.model_config['api_key']}"},
            )
            return response.status_code == 200
        except requests.exceptions.RequestException as e:
            logger.warning(f"Oracle health probe failed: {e}")
            return False
