"""
Models Package
Exports all database models
"""
from exam_engine.models.exam import Exam, ExamStatus
from exam_engine.models.question import Question, Choice
from exam_engine.models.attempt import Attempt, AttemptStatus
from exam_engine.models.answer import AttemptAnswer

__all__ = ['Exam', 'ExamStatus', 'Question', 'Choice', 'Attempt', 'AttemptStatus', 'AttemptAnswer']
