from app.services.attempt_service import (
    auto_submit_scheduler,
    get_attempt,
    grade_response_manually,
    list_student_attempts,
    save_response,
    save_responses,
    start_or_resume,
    submit_attempt,
)
from app.services.grading import (
    GradeOutcome,
    ScoreSummary,
    aggregate_scores,
    grade_response,
    grade_responses,
)
from app.services.quiz_service import (
    create_quiz,
    get_quiz_detail,
    list_quiz_results,
)

__all__ = [
    "create_quiz",
    "get_quiz_detail",
    "list_quiz_results",
    "start_or_resume",
    "get_attempt",
    "list_student_attempts",
    "save_response",
    "save_responses",
    "submit_attempt",
    "grade_response_manually",
    "auto_submit_scheduler",
    "GradeOutcome",
    "ScoreSummary",
    "grade_response",
    "grade_responses",
    "aggregate_scores",
]
