"""
Configuration constants for the quiz cog.

Magic numbers, storage keys and env-backed settings used throughout the
quiz cog live here so they are easy to find and modify.
"""

import os
from dataclasses import dataclass
from typing import Final, Optional

import discord


# =============================================================================
# QUIZ CONTENT
# =============================================================================

QUIZ_TITLE: Final[str] = "Conservation Economics Quiz"

# Optional JSON file that replaces the built-in question bank
QUIZ_DATA_FILE: Final[Optional[str]] = os.getenv('QUIZ_DATA_FILE') or None

# Four rows of five option buttons; the fifth row holds the controls
MAX_OPTIONS: Final[int] = 20
OPTIONS_PER_ROW: Final[int] = 5
CONTROL_ROW: Final[int] = 4


# =============================================================================
# PERSISTENCE
# =============================================================================

# Key under which the mistake ledger is stored (suffixed with the user id)
MISTAKES_KEY: Final[str] = "quizMistakes"


def mistakes_key(user_id: int) -> str:
    """Storage key for one user's mistake ledger"""
    return f"{MISTAKES_KEY}:{user_id}"


# =============================================================================
# EXPLANATIONS
# =============================================================================

@dataclass(frozen=True)
class ExplanationConfig:
    """Settings for the Gemini explanation side-channel."""

    MODEL_NAME: str = os.getenv('GEMINI_MODEL', 'gemini-2.0-flash-lite')
    TEMPERATURE: float = 0.4
    MAX_OUTPUT_TOKENS: int = 512
    REQUESTS_PER_MINUTE: int = 15


EXPLANATION = ExplanationConfig()


# =============================================================================
# DISPLAY
# =============================================================================

# Discord UI views time out after this many seconds of inactivity
VIEW_TIMEOUT: Final[float] = 900

# How many missed questions to list in summaries
MISTAKE_PREVIEW_LIMIT: Final[int] = 10

QUESTION_COLOR = discord.Color.dark_grey()
CORRECT_COLOR = discord.Color.teal()
WRONG_COLOR = discord.Color.red()
RESULTS_COLOR = discord.Color.gold()
EXPLANATION_COLOR = discord.Color.blurple()
NOTICE_COLOR = discord.Color.orange()
