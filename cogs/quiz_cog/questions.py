"""
Question records and the static question bank.
"""
import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .config import MAX_OPTIONS, QUIZ_DATA_FILE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionRecord:
    """A single multiple-choice question. Identity is the question text."""
    question: str
    options: Tuple[str, ...]
    answer: str

    def __post_init__(self):
        # Accept any sequence but store an immutable tuple
        object.__setattr__(self, 'options', tuple(self.options))

        if not self.question:
            raise ValueError("Question text must not be empty")
        if not self.options:
            raise ValueError(f"Question '{self.question}' has no options")
        if len(set(self.options)) != len(self.options):
            raise ValueError(f"Question '{self.question}' has duplicate options")
        if self.answer not in self.options:
            raise ValueError(f"Answer for '{self.question}' is not one of its options")

    @staticmethod
    def from_dict(d: Dict) -> "QuestionRecord":
        return QuestionRecord(
            question=str(d["question"]),
            options=tuple(str(o) for o in d["options"]),
            answer=str(d["answer"]),
        )

    def to_dict(self) -> Dict:
        return {
            "question": self.question,
            "options": list(self.options),
            "answer": self.answer,
        }

    def is_correct(self, option: str) -> bool:
        return option == self.answer


def check_option_count(record: QuestionRecord) -> None:
    """Raise ValueError if a question has more options than fit on the quiz message"""
    if len(record.options) > MAX_OPTIONS:
        raise ValueError(
            f"Question '{record.question}' has {len(record.options)} options "
            f"(maximum is {MAX_OPTIONS})"
        )


def validate_bank(records: Sequence[QuestionRecord]) -> None:
    """
    Check a question bank before it is used.

    Raises:
        ValueError: On duplicate question texts or too many options to render
    """
    seen = set()
    for record in records:
        if record.question in seen:
            raise ValueError(f"Duplicate question in bank: '{record.question}'")
        seen.add(record.question)
        check_option_count(record)


def load_question_bank(path: Optional[str] = None) -> List[QuestionRecord]:
    """
    Load the question bank.

    Args:
        path: JSON file holding a list of question objects. Falls back to the
            QUIZ_DATA_FILE setting, then to the built-in QUIZ_DATA.

    Returns:
        Validated list of QuestionRecord in source order

    Raises:
        ValueError: If the file is malformed or a record is invalid
    """
    path = path or QUIZ_DATA_FILE

    if path:
        try:
            with open(path, encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Could not read question bank '{path}': {e}") from e
        if not isinstance(raw, list):
            raise ValueError(f"Question bank '{path}' must be a JSON list")
        source = raw
        logger.info(f"Loading question bank from {path}")
    else:
        source = QUIZ_DATA

    try:
        records = [QuestionRecord.from_dict(d) for d in source]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed question record: {e}") from e

    validate_bank(records)
    logger.info(f"Loaded {len(records)} questions")
    return records


QUIZ_DATA: List[Dict] = [
    {
        "question": "What does the term 'natural capital' refer to?",
        "options": [
            "The world's stocks of natural assets such as soil, air, water and living things",
            "Money invested in national parks",
            "The capital city of a country with the most forest cover",
            "Government bonds issued for environmental projects",
        ],
        "answer": "The world's stocks of natural assets such as soil, air, water and living things",
    },
    {
        "question": "Which market failure best describes overfishing in open-access fisheries?",
        "options": [
            "Tragedy of the commons",
            "Adverse selection",
            "Natural monopoly",
            "Price discrimination",
        ],
        "answer": "Tragedy of the commons",
    },
    {
        "question": "A Pigouvian tax is designed to:",
        "options": [
            "Make polluters pay for the external cost they impose",
            "Subsidize renewable energy producers",
            "Fund the purchase of protected land",
            "Replace income taxes with consumption taxes",
        ],
        "answer": "Make polluters pay for the external cost they impose",
    },
    {
        "question": "What is 'payment for ecosystem services' (PES)?",
        "options": [
            "Paying landholders to manage land in ways that provide environmental benefits",
            "Charging tourists an entry fee to national parks",
            "A tax on ecosystem destruction",
            "Insurance against natural disasters",
        ],
        "answer": "Paying landholders to manage land in ways that provide environmental benefits",
    },
    {
        "question": "Willingness-to-pay surveys that ask people to value a hypothetical change are called:",
        "options": [
            "Contingent valuation",
            "Hedonic pricing",
            "Travel cost method",
            "Cost-benefit ratio",
        ],
        "answer": "Contingent valuation",
    },
    {
        "question": "Which value describes the benefit people get from knowing a species exists, even if they never see it?",
        "options": [
            "Existence value",
            "Direct use value",
            "Option value",
            "Market value",
        ],
        "answer": "Existence value",
    },
    {
        "question": "A cap-and-trade system controls pollution by:",
        "options": [
            "Limiting total emissions and letting firms trade emission permits",
            "Banning the most polluting industries",
            "Setting a fixed tax on every unit of emissions",
            "Requiring every firm to cut emissions by the same amount",
        ],
        "answer": "Limiting total emissions and letting firms trade emission permits",
    },
    {
        "question": "Why does a high discount rate tend to work against conservation?",
        "options": [
            "Future environmental benefits count for less in today's decisions",
            "It increases the price of land",
            "It makes conservation projects tax-exempt",
            "It lowers the cost of borrowing for developers",
        ],
        "answer": "Future environmental benefits count for less in today's decisions",
    },
    {
        "question": "A debt-for-nature swap is:",
        "options": [
            "Forgiving part of a country's foreign debt in exchange for conservation commitments",
            "Selling protected land to repay national debt",
            "A loan taken out to buy endangered species",
            "Trading carbon credits between banks",
        ],
        "answer": "Forgiving part of a country's foreign debt in exchange for conservation commitments",
    },
    {
        "question": "The hedonic pricing method estimates environmental value from:",
        "options": [
            "Differences in property prices linked to environmental quality",
            "The cost of travelling to a recreation site",
            "Surveys asking people what they would pay",
            "The market price of timber",
        ],
        "answer": "Differences in property prices linked to environmental quality",
    },
    {
        "question": "Which of these is an example of a positive externality?",
        "options": [
            "A forest on private land that reduces downstream flooding",
            "Factory smoke that damages nearby crops",
            "Traffic congestion on a public road",
            "Noise from an airport",
        ],
        "answer": "A forest on private land that reduces downstream flooding",
    },
    {
        "question": "What does 'additionality' mean for a conservation or carbon offset project?",
        "options": [
            "The benefit would not have happened without the project",
            "The project adds land to an existing park",
            "The project pays an additional tax",
            "The project is funded by more than one donor",
        ],
        "answer": "The benefit would not have happened without the project",
    },
]
