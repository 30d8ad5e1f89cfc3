"""
Explanation results and tracking of the one outstanding explanation request.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExplanationText:
    text: str


@dataclass(frozen=True)
class ExplanationBlocked:
    reason: str


@dataclass(frozen=True)
class ExplanationStopped:
    reason: str
    partial_text: str = ""


@dataclass(frozen=True)
class ExplanationError:
    message: str


ExplanationResult = Union[ExplanationText, ExplanationBlocked, ExplanationStopped, ExplanationError]


@dataclass(frozen=True)
class ExplanationTicket:
    """Handle for one explanation request, tied to the question it was asked for"""
    serial: int
    question: str


class ExplanationTracker:
    """
    Keeps at most one explanation meaningful at a time.

    A ticket is issued per request. Issuing a new ticket or discarding the
    current one makes every earlier ticket stale, and results for stale
    tickets are dropped.
    """

    def __init__(self):
        self._serial = 0
        self._current: Optional[ExplanationTicket] = None
        self._result: Optional[ExplanationResult] = None

    @property
    def pending(self) -> bool:
        """A request is outstanding and its result has not arrived yet"""
        return self._current is not None and self._result is None

    @property
    def result(self) -> Optional[ExplanationResult]:
        """The result for the current ticket, if it has arrived"""
        return self._result

    @property
    def active(self) -> bool:
        """An explanation is either pending or displayed"""
        return self._current is not None

    def issue(self, question: str) -> ExplanationTicket:
        self._serial += 1
        self._current = ExplanationTicket(serial=self._serial, question=question)
        self._result = None
        return self._current

    def discard(self) -> None:
        if self._current is not None:
            logger.debug(f"Discarding explanation for '{self._current.question}'")
        self._current = None
        self._result = None

    def is_current(self, ticket: ExplanationTicket) -> bool:
        return self._current is not None and ticket.serial == self._current.serial

    def resolve(self, ticket: ExplanationTicket, result: ExplanationResult) -> bool:
        """Store a result if its ticket is still current. Returns False for stale results"""
        if not self.is_current(ticket):
            logger.info(f"Dropping stale explanation for '{ticket.question}'")
            return False
        self._result = result
        return True
