"""
Scripted oracle for running the engine without an external LLM
"""
import logging
from typing import Dict, Any, List, Union

from utils.errors import OracleUnavailableError

logger = logging.getLogger(__name__)


class MockLLMClient:
    """Oracle double that replays canned responses in order.

    A response that is an Exception instance is raised instead of returned;
    once the script runs out every call fails like an unreachable server.
    """

    def __init__(self, responses: List[Union[str, Exception]] = None, model_name: str = None):
        self.model_name = model_name or "mock-llm"
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []
        logger.info(f"Initialized Mock LLM client: {self.model_name}")

    def complete_chat(self, messages: List[Dict[str, str]], temperature: float = 0.1,
                      max_tokens: int = 500) -> str:
        self.calls.append({
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })

        if not self.responses:
            raise OracleUnavailableError("Mock oracle has no scripted responses left")

        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response

        logger.debug(f"🤖 MOCK: returning scripted response ({len(response)} chars)")
        return response

    def check_availability(self) -> bool:
        return bool(self.responses)
