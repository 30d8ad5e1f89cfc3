"""
Gemini API client for explaining quiz answers.
"""
import os
import logging
import time
import asyncio
from collections import deque
from typing import Deque

from google import genai
from google.genai import types

from .config import EXPLANATION
from .explanation import (
    ExplanationBlocked, ExplanationError, ExplanationResult,
    ExplanationStopped, ExplanationText
)

logger = logging.getLogger(__name__)


class RateLimiter:
    """Rate limiter for Gemini API calls"""

    def __init__(self, requests_per_minute: int = 15):
        self.rpm = requests_per_minute
        # Timestamps of the last rpm requests, oldest first
        self.requests: Deque[float] = deque(maxlen=requests_per_minute)

    async def wait_if_needed(self):
        """Wait if we're at rate limit"""
        now = time.time()

        if len(self.requests) >= self.rpm:
            oldest = self.requests[0]
            wait_time = 60 - (now - oldest) + 0.5

            if wait_time > 0:
                logger.info(f"Rate limit reached, waiting {wait_time:.1f}s")
                await asyncio.sleep(wait_time)

        self.requests.append(time.time())


def _reason_name(reason) -> str:
    """Readable name for an SDK enum value (or a raw string)"""
    return getattr(reason, 'name', None) or str(reason)


class GeminiExplainer:
    """Wrapper for Google Gemini API for answer explanations"""

    EXPLANATION_PROMPT = """You are helping a student review a multiple-choice quiz.

Question: {question}
Correct answer: {answer}

Explain in 2-4 sentences why this is the correct answer. Use plain language.
Do not restate the question and do not mention other options by letter."""

    def __init__(self, client=None):
        """
        Initialize Gemini client for explanations

        Args:
            client: Pre-built genai client; one is created from GEMINI_API_KEY if omitted

        Raises:
            ValueError: If no client is given and GEMINI_API_KEY is not set
        """
        if client is None:
            api_key = os.getenv('GEMINI_API_KEY')
            if not api_key:
                raise ValueError("GEMINI_API_KEY environment variable is required")
            client = genai.Client(api_key=api_key)

        self.client = client
        self.model_name = EXPLANATION.MODEL_NAME
        self.rate_limiter = RateLimiter(requests_per_minute=EXPLANATION.REQUESTS_PER_MINUTE)

        logger.info("Explanation Gemini client initialized successfully")

    async def explain(self, question: str, answer: str) -> ExplanationResult:
        """
        Ask why an answer is correct. Never raises; failures come back as results.

        Args:
            question: Question text
            answer: Text of the correct option

        Returns:
            One of ExplanationText, ExplanationBlocked, ExplanationStopped, ExplanationError
        """
        try:
            await self.rate_limiter.wait_if_needed()

            prompt = self.EXPLANATION_PROMPT.format(question=question, answer=answer)

            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=EXPLANATION.TEMPERATURE,
                    max_output_tokens=EXPLANATION.MAX_OUTPUT_TOKENS,
                )
            )
        except Exception as e:
            logger.error(f"Gemini API error while explaining '{question}': {e}", exc_info=True)
            return ExplanationError(message=str(e) or type(e).__name__)

        return self._classify(response)

    def _classify(self, response) -> ExplanationResult:
        """Turn a generate_content response into a tagged result"""
        feedback = getattr(response, 'prompt_feedback', None)
        block_reason = getattr(feedback, 'block_reason', None)
        if block_reason:
            reason = _reason_name(block_reason)
            logger.warning(f"Explanation prompt blocked: {reason}")
            return ExplanationBlocked(reason=reason)

        candidates = getattr(response, 'candidates', None) or []
        if not candidates:
            return ExplanationError(message="The response contained no candidates")

        text = self._candidate_text(candidates[0])

        finish_reason = getattr(candidates[0], 'finish_reason', None)
        if finish_reason is not None and _reason_name(finish_reason) != 'STOP':
            reason = _reason_name(finish_reason)
            logger.warning(f"Explanation stopped early: {reason}")
            return ExplanationStopped(reason=reason, partial_text=text)

        if not text:
            return ExplanationError(message="The response contained no text")

        logger.info("Successfully generated explanation")
        return ExplanationText(text=text)

    @staticmethod
    def _candidate_text(candidate) -> str:
        content = getattr(candidate, 'content', None)
        parts = getattr(content, 'parts', None) or []
        return "".join(part.text for part in parts if getattr(part, 'text', None)).strip()
