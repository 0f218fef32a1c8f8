"""
Resolver chain - tries interchangeable resolver strategies in order
"""
import logging
from typing import Any, List

logger = logging.getLogger(__name__)


class Resolver:
    """A strategy that turns text into a structured result.

    resolve() returns None to decline, letting the next resolver try.
    """

    name = "resolver"

    def resolve(self, text: str, **kwargs) -> Any:
        raise NotImplementedError


class ResolverChain:
    """Runs resolvers in order; the last one must always produce a result"""

    def __init__(self, resolvers: List[Resolver]):
        if not resolvers:
            raise ValueError("ResolverChain needs at least one resolver")
        self.resolvers = list(resolvers)

    def resolve(self, text: str, **kwargs) -> Any:
        *optional, final = self.resolvers

        for resolver in optional:
            try:
                result = resolver.resolve(text, **kwargs)
            except Exception as e:
                logger.warning(f"⚠️  {resolver.name} resolver failed, falling back: {e}")
                continue

            if result is not None:
                return result
            logger.info(f"{resolver.name} resolver declined, falling back")

        return final.resolve(text, **kwargs)
