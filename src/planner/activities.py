"""Study hub and break activity helpers: quiz scoring, puzzle checks."""

from collections.abc import Mapping, Sequence

from src.planner.models import PuzzleActivity, QuizQuestion, ScheduleItem, StudyGoal

# Only these sessions have a topic worth opening the study hub for
HUB_ACTIVITIES = frozenset({"Study", "Revise", "Practice"})
HUB_CLASS_NAME = "Class 10 (Boards)"


def score_quiz(quiz: Sequence[QuizQuestion], answers: Mapping[int, str]) -> int:
    """Count answers that exactly match the correct option.

    Args:
        quiz: The questions, in order.
        answers: Question index -> selected option text. Unanswered
            questions simply score nothing.
    """
    return sum(
        1
        for index, question in enumerate(quiz)
        if answers.get(index) == question.correct_answer
    )


def check_puzzle_answer(puzzle: PuzzleActivity, guess: str) -> bool:
    """Word jumble check: trimmed, case-insensitive."""
    return guess.strip().lower() == puzzle.answer.strip().lower()


def hub_available(goal: StudyGoal, item: ScheduleItem) -> bool:
    """The study hub is offered for Class 10 study/revise/practice sessions."""
    return goal.class_name == HUB_CLASS_NAME and item.activity in HUB_ACTIVITIES
