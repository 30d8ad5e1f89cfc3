"""
Quiz Session State Management
"""
import logging
import random
from enum import Enum
from typing import Iterator, List, Optional, Sequence, Tuple

from .explanation import ExplanationTracker
from .ledger import MistakeLedger
from .pool import QuizMode, build_pool
from .questions import QuestionRecord

logger = logging.getLogger(__name__)


class QuizPhase(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class QuizSession:
    """
    State for one user's quiz.

    Owns the shuffled pool, the current position, each slot's answer and the
    score. Answers update the mistake ledger as they are submitted.
    """

    def __init__(self, bank: Sequence[QuestionRecord], ledger: MistakeLedger,
                 rng: Optional[random.Random] = None):
        self.bank = list(bank)
        self.ledger = ledger
        self.rng = rng
        self.pool: List[QuestionRecord] = []
        self.answered: List[Optional[str]] = []
        self.position = 0
        self.mode = QuizMode.NORMAL
        self.phase = QuizPhase.NOT_STARTED
        self.generation = 0
        self.explanations = ExplanationTracker()
        self._score = 0

    # ========================
    # Lifecycle
    # ========================

    def start(self, mode: QuizMode) -> None:
        """
        Start a fresh session, replacing any previous one.

        Raises:
            EmptyRetakeError: If mode is RETAKE and the ledger is empty. No
                state is changed in that case.
        """
        source = self.ledger.all() if mode == QuizMode.RETAKE else self.bank
        pool = build_pool(source, mode, self.rng)

        self.pool = pool
        self.answered = [None] * len(pool)
        self.position = 0
        self._score = 0
        self.mode = mode
        self.phase = QuizPhase.IN_PROGRESS
        self.generation += 1
        self.explanations.discard()
        logger.info(f"Started {mode.value} quiz with {len(pool)} questions")

    def restart(self) -> None:
        """Start again in the same mode as the last session"""
        self.start(self.mode)

    # ========================
    # Answering and navigation
    # ========================

    async def submit_answer(self, option: str) -> Optional[bool]:
        """
        Answer the current question. The first answer per slot wins.

        Returns:
            Whether the answer was correct, or None if the answer was ignored
        """
        if self.phase != QuizPhase.IN_PROGRESS:
            logger.warning("Answer submitted with no quiz in progress")
            return None
        if self.answered[self.position] is not None:
            logger.warning(f"Slot {self.position} already answered, ignoring '{option}'")
            return None

        record = self.pool[self.position]
        if option not in record.options:
            logger.warning(f"'{option}' is not an option for '{record.question}'")
            return None

        self.answered[self.position] = option

        if record.is_correct(option):
            self._score += 1
            if self.mode == QuizMode.RETAKE:
                await self.ledger.remove(record)
            return True

        await self.ledger.add(record)
        return False

    async def advance(self) -> Optional[str]:
        """
        Move to the next question, or complete the session on the last one.

        Returns:
            The previously given answer for the new slot, if any
        """
        if self.phase != QuizPhase.IN_PROGRESS or self.answered[self.position] is None:
            logger.warning("Advance requested before the current question was answered")
            return None

        if self.position + 1 < len(self.pool):
            return self._move_to(self.position + 1)

        self.phase = QuizPhase.COMPLETED
        self.explanations.discard()
        logger.info(f"Quiz completed: {self._score}/{len(self.pool)}")

        if self.mode == QuizMode.RETAKE and self._score == len(self.pool):
            # A perfect retake clears every outstanding mistake, not just this pool's
            await self.ledger.clear()
            logger.info("Perfect retake, mistake ledger cleared")
        return None

    def retreat(self) -> Optional[str]:
        """
        Move back to the previous question.

        Returns:
            The previously given answer for the new slot, if any
        """
        if self.phase != QuizPhase.IN_PROGRESS or self.position == 0:
            logger.warning("Retreat requested with no previous question")
            return None
        return self._move_to(self.position - 1)

    def _move_to(self, position: int) -> Optional[str]:
        self.position = position
        self.explanations.discard()
        return self.answered[position]

    # ========================
    # Read accessors
    # ========================

    @property
    def score(self) -> int:
        return self._score

    @property
    def total(self) -> int:
        return len(self.pool)

    @property
    def current_question(self) -> Optional[QuestionRecord]:
        """The question at the current position, or None before the first start"""
        if self.position < len(self.pool):
            return self.pool[self.position]
        return None

    @property
    def current_answered_state(self) -> Optional[str]:
        """The option given for the current slot, or None if unanswered"""
        if self.position < len(self.answered):
            return self.answered[self.position]
        return None

    @property
    def is_complete(self) -> bool:
        return self.phase == QuizPhase.COMPLETED

    @property
    def progress_text(self) -> str:
        """Progress string like '3/10'"""
        return f"{self.position + 1}/{len(self.pool)}"

    @property
    def percentage(self) -> int:
        if not self.pool:
            return 0
        return round(self._score / len(self.pool) * 100)

    def review(self) -> Iterator[Tuple[QuestionRecord, Optional[str]]]:
        """Yield each question with the option chosen for it"""
        return zip(self.pool, self.answered)
