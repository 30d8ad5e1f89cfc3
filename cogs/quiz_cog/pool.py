"""
Question pool building: shuffles a source of questions into a session pool.
"""
import logging
import random
from dataclasses import replace
from enum import Enum
from typing import List, Optional, Sequence

from .questions import QuestionRecord

logger = logging.getLogger(__name__)

_rng = random.Random()


class QuizMode(Enum):
    NORMAL = "normal"
    RETAKE = "retake"


class EmptyRetakeError(Exception):
    """Raised when a retake is requested but there are no mistakes to retake"""

    def __init__(self):
        super().__init__("No mistakes to retake")


def build_pool(source: Sequence[QuestionRecord], mode: QuizMode,
               rng: Optional[random.Random] = None) -> List[QuestionRecord]:
    """
    Build a shuffled working set of questions for one session.

    The question order and each question's option order are independent
    uniform permutations. The source is left untouched.

    Args:
        source: The full bank (normal mode) or the ledger contents (retake mode)
        mode: Which kind of session the pool is for
        rng: Random source; a module-level one is used if omitted

    Returns:
        New list of QuestionRecord copies with shuffled options

    Raises:
        EmptyRetakeError: If mode is RETAKE and source is empty
        ValueError: If mode is NORMAL and source is empty
    """
    if not source:
        if mode == QuizMode.RETAKE:
            raise EmptyRetakeError()
        raise ValueError("Question bank is empty")

    rng = rng or _rng

    pool = list(source)
    rng.shuffle(pool)

    shuffled = []
    for record in pool:
        options = list(record.options)
        rng.shuffle(options)
        shuffled.append(replace(record, options=tuple(options)))

    logger.debug(f"Built {mode.value} pool of {len(shuffled)} questions")
    return shuffled
