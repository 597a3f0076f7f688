from app.models.base import Base, get_db
from app.models.attempt import Attempt, Response
from app.models.quiz import AnswerOption, CorrectAnswer, Question, QuestionType, Quiz

__all__ = [
    "Base",
    "Quiz",
    "Question",
    "QuestionType",
    "AnswerOption",
    "CorrectAnswer",
    "Attempt",
    "Response",
    "get_db",
]
