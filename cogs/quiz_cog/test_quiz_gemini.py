"""
Tests for classifying Gemini explanation responses.
"""
from types import SimpleNamespace

import pytest

from cogs.quiz_cog.explanation import (
    ExplanationBlocked, ExplanationError, ExplanationStopped, ExplanationText
)
from cogs.quiz_cog import gemini
from cogs.quiz_cog.gemini import GeminiExplainer, RateLimiter


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return self.response


def make_client(response=None, error=None):
    models = FakeModels(response, error)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


def make_response(text="", finish_reason="STOP", block_reason=None, candidates=True):
    parts = [SimpleNamespace(text=text)] if text else []
    candidate = SimpleNamespace(
        content=SimpleNamespace(parts=parts),
        finish_reason=finish_reason
    )
    return SimpleNamespace(
        prompt_feedback=SimpleNamespace(block_reason=block_reason) if block_reason else None,
        candidates=[candidate] if candidates else []
    )


async def test_text_response():
    client, models = make_client(make_response(text=" Because of externalities. "))
    explainer = GeminiExplainer(client=client)

    result = await explainer.explain("Why?", "Because")

    assert result == ExplanationText(text="Because of externalities.")
    prompt = models.calls[0]["contents"]
    assert "Question: Why?" in prompt
    assert "Correct answer: Because" in prompt


async def test_blocked_prompt():
    client, _ = make_client(make_response(block_reason="SAFETY", candidates=False))

    result = await GeminiExplainer(client=client).explain("Q", "A")

    assert result == ExplanationBlocked(reason="SAFETY")


@pytest.mark.parametrize("reason", ["MAX_TOKENS", "SAFETY", "RECITATION"])
async def test_stopped_early_keeps_partial_text(reason):
    client, _ = make_client(make_response(text="Partial", finish_reason=reason))

    result = await GeminiExplainer(client=client).explain("Q", "A")

    assert result == ExplanationStopped(reason=reason, partial_text="Partial")


async def test_enum_finish_reason_uses_its_name():
    stop = SimpleNamespace(name="STOP")
    client, _ = make_client(make_response(text="Done", finish_reason=stop))

    result = await GeminiExplainer(client=client).explain("Q", "A")

    assert result == ExplanationText(text="Done")


async def test_no_candidates_is_an_error():
    client, _ = make_client(make_response(candidates=False))

    result = await GeminiExplainer(client=client).explain("Q", "A")

    assert isinstance(result, ExplanationError)


async def test_empty_text_is_an_error():
    client, _ = make_client(make_response(text=""))

    result = await GeminiExplainer(client=client).explain("Q", "A")

    assert result == ExplanationError(message="The response contained no text")


async def test_transport_failure_is_an_error():
    client, _ = make_client(error=ConnectionError("network down"))

    result = await GeminiExplainer(client=client).explain("Q", "A")

    assert result == ExplanationError(message="network down")


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(ValueError, match="GEMINI_API_KEY"):
        GeminiExplainer()


async def test_rate_limiter_waits_on_the_oldest_request_in_the_window(monkeypatch):
    now = [1000.0]
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        now[0] += seconds

    monkeypatch.setattr(gemini, "time", SimpleNamespace(time=lambda: now[0]))
    monkeypatch.setattr(gemini, "asyncio", SimpleNamespace(sleep=fake_sleep))
    limiter = RateLimiter(requests_per_minute=2)

    await limiter.wait_if_needed()
    now[0] += 10
    await limiter.wait_if_needed()
    assert sleeps == []

    now[0] += 5
    await limiter.wait_if_needed()
    assert sleeps == [pytest.approx(45.5)]
    assert len(limiter.requests) == 2

    now[0] += 60
    await limiter.wait_if_needed()
    assert len(sleeps) == 1
    assert len(limiter.requests) == 2
