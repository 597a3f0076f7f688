from app.crud.attempt import (
    apply_response_grades,
    claim_submission,
    get_attempt_by_id,
    get_attempts_by_quiz_and_student,
    get_in_progress_attempts,
    get_response,
    get_submitted_attempts_by_quiz,
    insert_attempt_if_absent,
    insert_missing_responses,
    update_attempt_scores,
    upsert_response,
)
from app.crud.quiz import (
    build_snapshot,
    create_quiz_definition,
    get_quiz_by_id,
    get_quiz_definition,
)

__all__ = [
    "get_quiz_by_id",
    "get_quiz_definition",
    "create_quiz_definition",
    "build_snapshot",
    "get_attempt_by_id",
    "get_attempts_by_quiz_and_student",
    "get_submitted_attempts_by_quiz",
    "get_in_progress_attempts",
    "insert_attempt_if_absent",
    "upsert_response",
    "get_response",
    "insert_missing_responses",
    "claim_submission",
    "apply_response_grades",
    "update_attempt_scores",
]
