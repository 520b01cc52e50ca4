"""
Tests for NCLEX answer scoring.
"""
import pytest

from app.core.scoring import AnswerKeyEntry, InvalidSelection, score


class TestSingleAnswer:
    """Multiple choice questions with one correct option."""

    def test_correct_pick(self):
        result = score([1], [False, True, False, False])
        assert result.is_fully_correct
        assert result.nclex_score == 1
        assert result.percentage == 100.0
        assert result.is_multiple_choice
        assert result.partial_score == 1.0

    def test_wrong_pick(self):
        result = score([0], [False, True, False, False])
        assert not result.is_fully_correct
        assert result.nclex_score == 0
        assert result.correct == 0
        assert result.incorrect == 1
        assert not result.is_partially_correct

    def test_empty_selection_is_incorrect(self):
        result = score([], [True, False])
        assert not result.is_fully_correct
        assert result.correct == 0
        assert result.incorrect == 0


class TestSelectAllThatApply:
    """SATA questions are graded all-or-nothing."""

    key = [True, True, False, True, False]

    def test_all_correct_options(self):
        result = score([0, 1, 3], self.key)
        assert result.is_fully_correct
        assert result.total == 3
        assert not result.is_multiple_choice

    def test_missing_one_correct_option(self):
        result = score([0, 1], self.key)
        assert not result.is_fully_correct
        assert result.nclex_score == 0
        assert result.correct == 2
        assert result.percentage == pytest.approx(200 / 3)
        assert result.is_partially_correct

    def test_extra_wrong_option_fails(self):
        result = score([0, 1, 2, 3], self.key)
        assert not result.is_fully_correct
        assert result.correct == 3
        assert result.incorrect == 1
        assert result.percentage == 100.0

    def test_order_and_duplicates_do_not_matter(self):
        result = score([3, 0, 1, 1, 0], self.key)
        assert result.is_fully_correct
        assert result.incorrect == 0


class TestSelectionValidation:
    """Out-of-range selections are rejected rather than ignored."""

    def test_index_past_end(self):
        with pytest.raises(InvalidSelection):
            score([4], [True, False, False, False])

    def test_negative_index(self):
        with pytest.raises(InvalidSelection):
            score([-1], [True, False])

    def test_non_integer_index(self):
        with pytest.raises(InvalidSelection):
            score(["0"], [True, False])

    def test_bool_is_not_an_index(self):
        with pytest.raises(InvalidSelection):
            score([True], [True, False])

    def test_invalid_selection_is_a_value_error(self):
        assert issubclass(InvalidSelection, ValueError)


class TestNoCorrectOption:
    def test_percentage_is_zero(self):
        result = score([0], [False, False])
        assert result.total == 0
        assert result.percentage == 0.0
        assert not result.is_fully_correct


class TestPartialScoring:
    """Weighted partial credit for questions flagged with partial scoring."""

    def test_even_split_when_no_weights(self):
        key = [AnswerKeyEntry(True), AnswerKeyEntry(True), AnswerKeyEntry(False)]
        result = score([0], key, use_partial_scoring=True)
        assert result.partial_score == pytest.approx(0.5)
        assert result.nclex_score == 0

    def test_weights_and_penalties(self):
        key = [
            AnswerKeyEntry(True, partial_credit=0.6),
            AnswerKeyEntry(True, partial_credit=0.4),
            AnswerKeyEntry(False, penalty_value=0.25),
        ]
        result = score([0, 2], key, use_partial_scoring=True)
        assert result.partial_score == pytest.approx(0.35)

    def test_clamped_at_zero(self):
        key = [AnswerKeyEntry(True), AnswerKeyEntry(False, penalty_value=1.0)]
        result = score([1], key, use_partial_scoring=True)
        assert result.partial_score == 0.0

    def test_partial_scoring_off_mirrors_nclex_score(self):
        key = [AnswerKeyEntry(True, partial_credit=0.5), AnswerKeyEntry(True, partial_credit=0.5)]
        result = score([0], key)
        assert result.partial_score == 0.0
