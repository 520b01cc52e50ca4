"""
Answer Scoring

NCLEX-style dichotomous grading: a question is correct only when every
correct option is selected and no wrong option is. Select-all-that-apply
questions are graded the same way. An optional partial score is derived
from per-option weights for questions flagged with partial scoring.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence


class InvalidSelection(ValueError):
    """Selected index does not refer to an option of the question."""


@dataclass(frozen=True)
class AnswerKeyEntry:
    is_correct: bool
    partial_credit: float = 0.0
    penalty_value: float = 0.0


@dataclass(frozen=True)
class ScoreResult:
    correct: int
    total: int
    incorrect: int
    is_fully_correct: bool
    is_multiple_choice: bool
    nclex_score: int
    percentage: float
    partial_score: float

    @property
    def is_partially_correct(self) -> bool:
        return not self.is_fully_correct and self.correct > 0


def _as_float(value: Optional[Decimal | float]) -> float:
    return float(value or 0)


def score(
    selected_indices: Iterable[int],
    answer_key: Sequence[AnswerKeyEntry | bool],
    use_partial_scoring: bool = False,
) -> ScoreResult:
    """
    Grade a submission against an ordered answer key.

    Args:
        selected_indices: Zero-based indices of the options the user picked.
            Duplicates count once.
        answer_key: Options in display order, either AnswerKeyEntry or a bare
            bool meaning is_correct.
        use_partial_scoring: Compute partial_score from option weights.

    Raises:
        InvalidSelection: If an index falls outside the answer key.
    """
    key = [
        entry if isinstance(entry, AnswerKeyEntry) else AnswerKeyEntry(is_correct=bool(entry))
        for entry in answer_key
    ]

    selected = set()
    for index in selected_indices:
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidSelection(f"Selection {index!r} is not an option index")
        if index < 0 or index >= len(key):
            raise InvalidSelection(
                f"Selection {index} is out of range for {len(key)} options"
            )
        selected.add(index)

    total = sum(1 for entry in key if entry.is_correct)
    correct = sum(1 for i in selected if key[i].is_correct)
    incorrect = len(selected) - correct

    is_fully_correct = total > 0 and correct == total and incorrect == 0
    nclex_score = 1 if is_fully_correct else 0
    percentage = (correct / total) * 100 if total else 0.0

    if use_partial_scoring and total:
        earned = 0.0
        for i in selected:
            entry = key[i]
            if entry.is_correct:
                earned += _as_float(entry.partial_credit) or 1 / total
            else:
                earned -= _as_float(entry.penalty_value)
        partial_score = min(max(earned, 0.0), 1.0)
    else:
        partial_score = float(nclex_score)

    return ScoreResult(
        correct=correct,
        total=total,
        incorrect=incorrect,
        is_fully_correct=is_fully_correct,
        is_multiple_choice=total == 1,
        nclex_score=nclex_score,
        percentage=percentage,
        partial_score=partial_score,
    )
