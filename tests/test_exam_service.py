# =============================================================================
# TESTS - Scoring and review
# =============================================================================

from quiz_client.models.question_model import Question, QuestionKind, QuizSet
from quiz_client.models.session_state import AnswerLedger, Verdict
from quiz_client.services.exam_service import (
    calculate_score,
    option_style,
    review_questions,
)


def _ledger(**answers) -> AnswerLedger:
    ledger = AnswerLedger()
    for qid, value in answers.items():
        ledger.record(qid.lstrip("q"), value)
    return ledger


class TestCalculateScore:
    """Correct count, total and verdicts."""

    def test_two_correct_one_incorrect(self, mcq_quiz):
        ledger = _ledger(q1="Augustus", q2="Tiber", q3="509 BC")
        result = calculate_score(mcq_quiz, ledger)

        assert result.correct == 2
        assert result.total == 3
        assert result.topic == "Rome"
        assert result.verdict_for("3") is Verdict.INCORRECT

    def test_unanswered_counts_as_non_correct(self, mcq_quiz):
        ledger = _ledger(q1="Augustus", q2="Tiber")
        result = calculate_score(mcq_quiz, ledger)

        assert result.correct == 2
        assert result.total == 3
        assert result.verdict_for("3") is Verdict.UNANSWERED

    def test_total_independent_of_answers(self, mcq_quiz):
        result = calculate_score(mcq_quiz, AnswerLedger())
        assert result.correct == 0
        assert result.total == len(mcq_quiz.questions)
        assert all(v is Verdict.UNANSWERED for _, v in result.verdicts)

    def test_exact_equality_no_normalization(self, mcq_quiz):
        ledger = _ledger(q1="augustus", q2=" Tiber", q3="753 BC")
        result = calculate_score(mcq_quiz, ledger)
        assert result.correct == 1

    def test_deterministic(self, mcq_quiz):
        ledger = _ledger(q1="Augustus", q2="Po")
        first = calculate_score(mcq_quiz, ledger)
        second = calculate_score(mcq_quiz, ledger)
        assert (first.correct, first.total, first.verdicts) == (
            second.correct, second.total, second.verdicts
        )

    def test_bounds(self, mcq_quiz):
        ledger = _ledger(q1="Augustus", q2="Tiber", q3="753 BC", q99="x")
        result = calculate_score(mcq_quiz, ledger)
        assert 0 <= result.correct <= result.total == 3

    def test_answer_key_outside_options_never_correct(self):
        quiz = QuizSet(
            topic="Broken",
            questions=(
                Question(id="1", question_text="?", kind=QuestionKind.OBJECTIVE,
                         options=["a", "b"], answer="c"),
            ),
        )
        result = calculate_score(quiz, _ledger(q1="c"))
        assert result.correct == 0
        assert result.verdict_for("1") is Verdict.INCORRECT

    def test_history_payload(self, mcq_quiz):
        result = calculate_score(mcq_quiz, _ledger(q1="Augustus"))
        assert result.to_history_payload() == {
            "topic": "Rome", "score": 1, "totalQuestions": 3,
        }


class TestReview:
    """Display marking before and after submission."""

    def test_option_style_before_submit(self, mcq_quiz):
        q = mcq_quiz.questions[0]
        ledger = _ledger(q1="Nero")
        assert option_style(q, "Nero", ledger, submitted=False) == "selected"
        assert option_style(q, "Augustus", ledger, submitted=False) == "option"

    def test_option_style_after_submit(self, mcq_quiz):
        q = mcq_quiz.questions[0]
        ledger = _ledger(q1="Nero")
        assert option_style(q, "Augustus", ledger, submitted=True) == "correct"
        assert option_style(q, "Nero", ledger, submitted=True) == "incorrect"
        assert option_style(q, "Trajan", ledger, submitted=True) == "option"

    def test_answers_hidden_until_submitted(self, mcq_quiz):
        cards = review_questions(mcq_quiz, AnswerLedger(), submitted=False)
        assert all("answer" not in c for c in cards)
        assert [c["number"] for c in cards] == [1, 2, 3]

    def test_reference_answers_revealed_for_free_form(self, free_form_quiz):
        cards = review_questions(free_form_quiz, AnswerLedger(), submitted=True)
        assert cards[0]["answer"] == "Romulus"
        assert "verdict" not in cards[0]
        assert cards[0]["user_answer"] is None
