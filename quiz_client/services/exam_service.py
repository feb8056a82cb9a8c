"""
services/exam_service.py

Scoring and review logic.
Pure Python functions — no UI code, no global state changes.
"""

from typing import Dict, List

from quiz_client.models.question_model import Question, QuestionKind, QuizSet
from quiz_client.models.session_state import (
    UNANSWERED,
    AnswerLedger,
    AttemptResult,
    Verdict,
)


def judge(question: Question, ledger: AnswerLedger) -> Verdict:
    """
    Verdict for a single objective question.

    A question whose correct answer matches none of its options can never
    be judged correct.
    """
    value = ledger.get(question.id)
    if value is UNANSWERED:
        return Verdict.UNANSWERED
    if question.has_valid_answer_key and value == question.answer:
        return Verdict.CORRECT
    return Verdict.INCORRECT


def calculate_score(quiz: QuizSet, ledger: AnswerLedger) -> AttemptResult:
    """
    Grade the ledger against the quiz set.

    Exact value equality, no normalization. Unanswered and incorrect
    questions both count as non-correct. The total is always the number of
    questions in the quiz set, however many were answered. Free-form
    questions are not graded and never count as correct.

    Args:
        quiz:   Quiz set being graded.
        ledger: User's answer sheet.

    Returns:
        AttemptResult with the correct count, total and per-question verdicts.
    """
    verdicts = []
    correct_count = 0
    for q in quiz.questions:
        if q.kind is not QuestionKind.OBJECTIVE:
            continue
        verdict = judge(q, ledger)
        if verdict is Verdict.CORRECT:
            correct_count += 1
        verdicts.append((q.id, verdict))

    return AttemptResult(
        topic=quiz.topic,
        correct=correct_count,
        total=len(quiz.questions),
        verdicts=tuple(verdicts),
    )


def option_style(question: Question, option: str, ledger: AnswerLedger, submitted: bool) -> str:
    """
    Display marking for one option.

    Before submission the chosen option is `selected`. After submission the
    correct option is `correct`, a wrong choice is `incorrect`, the rest are
    plain.
    """
    is_user_choice = ledger.get(question.id) == option
    if submitted:
        if question.has_valid_answer_key and option == question.answer:
            return "correct"
        if is_user_choice:
            return "incorrect"
        return "option"
    return "selected" if is_user_choice else "option"


def review_questions(
    quiz: QuizSet,
    ledger: AnswerLedger,
    submitted: bool,
) -> List[Dict[str, object]]:
    """
    Question cards for display, in quiz order.

    The correct/reference answer and the verdict are included only once the
    session has been submitted.

    Returns:
        [{"id", "number", "question_text", "kind", "options",
          "user_answer", ("answer", "verdict")}, ...]
    """
    cards = []
    for number, q in enumerate(quiz.questions, start=1):
        value = ledger.get(q.id)
        card: Dict[str, object] = {
            "id": q.id,
            "number": number,
            "question_text": q.question_text,
            "kind": q.kind.value,
            "options": [
                {"text": opt, "style": option_style(q, opt, ledger, submitted)}
                for opt in q.options
            ],
            "user_answer": None if value is UNANSWERED else value,
        }
        if submitted:
            card["answer"] = q.answer
            if q.kind is QuestionKind.OBJECTIVE:
                card["verdict"] = judge(q, ledger).value
        cards.append(card)
    return cards
