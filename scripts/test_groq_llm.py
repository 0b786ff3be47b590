"""Groq completion retries on rate limiting."""

import pytest
from langchain_core.messages import AIMessage

from onehub.errors import UpstreamError
from onehub.tools.groq_llm import RATE_LIMIT_DELAYS, complete


class ScriptedLLM:
    """Raises the given errors in order, then answers 'ok'."""

    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    def invoke(self, messages):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return AIMessage(content="ok")


def rate_limited():
    return RuntimeError("Error code: 429 - Rate limit reached")


def test_persistent_rate_limit_makes_three_attempts():
    llm = ScriptedLLM(*(rate_limited() for _ in range(5)))
    sleeps = []

    with pytest.raises(UpstreamError) as exc:
        complete(llm, "prompt", sleep=sleeps.append)

    assert llm.calls == 3
    assert sleeps == [2, 4]
    assert exc.value.service == "Groq"
    assert RATE_LIMIT_DELAYS == (2, 4)


def test_recovers_on_last_attempt():
    llm = ScriptedLLM(rate_limited(), rate_limited())
    sleeps = []

    assert complete(llm, "prompt", system="Be brief", sleep=sleeps.append) == "ok"
    assert llm.calls == 3
    assert sleeps == [2, 4]


def test_other_errors_are_not_retried():
    llm = ScriptedLLM(RuntimeError("Invalid API key"))
    sleeps = []

    with pytest.raises(UpstreamError, match="Invalid API key"):
        complete(llm, "prompt", sleep=sleeps.append)

    assert llm.calls == 1
    assert sleeps == []
