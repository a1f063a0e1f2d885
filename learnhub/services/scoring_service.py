"""Scoring of a finished test attempt. Pure functions, no I/O."""
from collections.abc import Mapping, Sequence

from learnhub.models.entities import QuestionRecord, ScoreResult


def correct_variant_index(question: QuestionRecord) -> int | None:
    """Position of the first correct variant, or None if none is marked."""
    for index, variant in enumerate(question.variants):
        if variant.is_correct:
            return index
    return None


def find_malformed_questions(questions: Sequence[QuestionRecord]) -> list[tuple[int, str]]:
    """
    List ``(position, reason)`` for questions without exactly one correct
    variant. Such questions are still scored; this only feeds warnings.
    """
    problems = []
    for position, question in enumerate(questions):
        correct_count = sum(1 for variant in question.variants if variant.is_correct)
        if correct_count == 0:
            problems.append((position, "no correct variant"))
        elif correct_count > 1:
            problems.append((position, f"{correct_count} correct variants"))
    return problems


def elapsed_seconds(initial_seconds: int, remaining_seconds: int) -> int:
    """Time spent on the attempt, clamped at zero."""
    return max(0, initial_seconds - remaining_seconds)


def score_answers(
    questions: Sequence[QuestionRecord],
    answers: Mapping[int, int],
    initial_seconds: int,
    remaining_seconds: int,
) -> ScoreResult:
    """
    Score an answer map (question position -> variant position).

    Unanswered questions, out-of-range answers and questions with no correct
    variant all count as wrong. Never raises for malformed data.
    """
    correct = 0
    for position, question in enumerate(questions):
        chosen = answers.get(position)
        if chosen is None:
            continue
        expected = correct_variant_index(question)
        if expected is not None and chosen == expected:
            correct += 1

    total = len(questions)
    return ScoreResult(
        total=total,
        correct=correct,
        wrong=total - correct,
        time_taken=elapsed_seconds(initial_seconds, remaining_seconds),
    )
