"""Tests for study hub and break activity helpers."""

from src.planner.activities import check_puzzle_answer, hub_available, score_quiz
from src.planner.models import PuzzleActivity, QuizQuestion
from src.planner.syllabus import format_custom_syllabus, syllabus_for


def test_score_quiz_counts_exact_matches():
    quiz = [
        QuizQuestion(question="2+2", options=["3", "4"], correct_answer="4"),
        QuizQuestion(question="3*3", options=["6", "9"], correct_answer="9"),
        QuizQuestion(question="1-1", options=["0", "1"], correct_answer="0"),
    ]
    assert score_quiz(quiz, {0: "4", 1: "6"}) == 1
    assert score_quiz(quiz, {}) == 0


def test_puzzle_answer_ignores_case_and_spaces():
    puzzle = PuzzleActivity(type="Puzzle", title="Jumble", jumbled_word="rbina", answer="Brain")
    assert check_puzzle_answer(puzzle, "  brain ")
    assert not check_puzzle_answer(puzzle, "bran")


def test_hub_only_for_class_10_study_sessions(goal, items):
    assert hub_available(goal, items[0])  # Study
    assert not hub_available(goal, items[3])  # Mock Test

    jee = goal.model_copy(update={"class_name": "Class 12 - Engineering (JEE)"})
    assert not hub_available(jee, items[0])


def test_syllabus_catalogue():
    assert "Polynomials" in syllabus_for("Class 10 (Boards)")["Maths"]
    assert set(syllabus_for("Class 12 - Medical (NEET)")) == {"Physics", "Biology", "Chemistry"}
    assert syllabus_for("Class 5") == {}
    assert format_custom_syllabus([" Optics ", "", "Kinematics"]) == "Optics, Kinematics"
