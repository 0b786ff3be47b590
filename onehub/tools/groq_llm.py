"""
Groq chat model access.

Wraps langchain-groq's ChatGroq with the project's defaults and a small
rate-limit backoff used by the extraction agents.
"""

import logging
import time
from collections.abc import Callable

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_groq import ChatGroq

from onehub.config import settings
from onehub.errors import UpstreamError

logger = logging.getLogger(__name__)

SERVICE = "Groq"
RATE_LIMIT_DELAYS = (2, 4)  # seconds between attempts; 3 attempts in total


def create_llm(temperature: float = 0.1, max_tokens: int = 300) -> BaseChatModel:
    """Create a Groq chat model."""
    if not settings.groq_api_key:
        raise ValueError("GROQ_API_KEY not set")

    return ChatGroq(
        model=settings.groq_model,
        api_key=settings.groq_api_key,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=settings.llm_timeout,
        max_retries=0,  # 429s are retried below
    )


def _is_rate_limited(error: Exception) -> bool:
    if getattr(error, "status_code", None) == 429:
        return True
    text = str(error).lower()
    return "429" in text or "rate limit" in text


def complete(
    llm: BaseChatModel,
    prompt: str,
    system: str | None = None,
    delays=RATE_LIMIT_DELAYS,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """
    Run a single-turn completion and return the text content.

    Makes one attempt more than there are `delays`, waiting out each delay
    after a 429. Any other failure (or the final 429) raises UpstreamError.
    """
    messages = [SystemMessage(content=system)] if system else []
    messages.append(HumanMessage(content=prompt))

    for attempt in range(len(delays) + 1):
        try:
            response = llm.invoke(messages)
            content = response.content
            return content if isinstance(content, str) else str(content)
        except Exception as e:
            if _is_rate_limited(e) and attempt < len(delays):
                logger.warning(f"{SERVICE} rate limited, retrying in {delays[attempt]}s")
                sleep(delays[attempt])
                continue
            logger.error(f"{SERVICE} completion failed: {e}")
            raise UpstreamError(SERVICE, str(e), getattr(e, "status_code", None)) from e
