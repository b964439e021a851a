"""
Scoring Service
All-or-nothing scoring of single-correct-choice questions
"""
from typing import NamedTuple

from exam_engine.models.question import DEFAULT_POINTS


class ScoreResult(NamedTuple):
    score: float
    max_score: float
    breakdown: list


class ScoringService:
    """Pure scoring: no queries, no writes"""

    @staticmethod
    def point_value(points):
        """Non-positive or missing point values count as 1.0"""
        if points is None or points <= 0:
            return DEFAULT_POINTS
        return float(points)

    @staticmethod
    def score(questions, choices, selections):
        """
        Score stored selections against the exam's questions

        Args:
            questions: question rows (id, points) in paper order
            choices: mapping of choice_id -> choice row (question_id, is_correct)
            selections: mapping of question_id -> selected choice_id

        Returns:
            ScoreResult: score, max_score and one breakdown dict per question
        """
        score = 0.0
        max_score = 0.0
        breakdown = []

        for question in questions:
            points = ScoringService.point_value(question.points)
            max_score += points

            selected_choice_id = selections.get(question.id)
            choice = choices.get(selected_choice_id) if selected_choice_id is not None else None

            # Unknown choices and choices of another question score as unanswered
            is_correct = bool(
                choice is not None
                and choice.question_id == question.id
                and choice.is_correct
            )
            awarded = points if is_correct else 0.0
            score += awarded

            breakdown.append({
                'question_id': question.id,
                'selected_choice_id': selected_choice_id,
                'is_correct': is_correct,
                'points_awarded': awarded,
                'points_possible': points,
            })

        return ScoreResult(score=score, max_score=max_score, breakdown=breakdown)

    @staticmethod
    def filter_breakdown(breakdown, include_correctness):
        """Strip is_correct from breakdown entries unless the caller may see it"""
        if include_correctness:
            return [dict(item) for item in breakdown]
        return [
            {key: value for key, value in item.items() if key != 'is_correct'}
            for item in breakdown
        ]
