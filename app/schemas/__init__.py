from app.schemas.attempt import (
    AttemptListResponse,
    AttemptResult,
    AttemptSessionResponse,
    AttemptSubmitRequest,
    AttemptSummary,
    ManualGradeRequest,
    QuestionResult,
    QuizResultsResponse,
    ResponseRecord,
    ResponseSaveRequest,
    ResponseSubmitItem,
)
from app.schemas.quiz import (
    AnswerOptionCreate,
    CorrectAnswerCreate,
    QuestionCreate,
    QuestionSnapshot,
    QuestionView,
    QuizCreateRequest,
    QuizCreateResponse,
    QuizDetailResponse,
    QuizHeader,
    QuizSnapshot,
)

__all__ = [
    "AnswerOptionCreate",
    "CorrectAnswerCreate",
    "QuestionCreate",
    "QuizCreateRequest",
    "QuizCreateResponse",
    "QuizDetailResponse",
    "QuizHeader",
    "QuizSnapshot",
    "QuestionSnapshot",
    "QuestionView",
    "ResponseSaveRequest",
    "ResponseSubmitItem",
    "AttemptSubmitRequest",
    "ManualGradeRequest",
    "ResponseRecord",
    "AttemptSummary",
    "QuestionResult",
    "AttemptResult",
    "AttemptSessionResponse",
    "AttemptListResponse",
    "QuizResultsResponse",
]
