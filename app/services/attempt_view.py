from datetime import datetime

from app.models.attempt import Attempt
from app.models.quiz import CHOICE_TYPES, TEXT_TYPES, QuestionType
from app.schemas import attempt as attempt_schema, quiz as quiz_schema
from app.services import randomizer, session_timer


def build_question_view(question: quiz_schema.QuestionSnapshot) -> quiz_schema.QuestionView:
    """학생용 문항 (정답/선택지 배점 제외)"""
    return quiz_schema.QuestionView(
        id=question.id,
        question_type=question.question_type,
        question_text=question.question_text,
        points=question.points,
        is_required=question.is_required,
        options=[
            quiz_schema.OptionView(id=option.id, option_text=option.option_text)
            for option in question.options
        ],
    )


def build_quiz_header(snapshot: quiz_schema.QuizSnapshot) -> quiz_schema.QuizHeader:
    return quiz_schema.QuizHeader(
        id=snapshot.id,
        title=snapshot.title,
        description=snapshot.description,
        instructions=snapshot.instructions,
        time_limit_minutes=snapshot.time_limit_minutes,
        passing_score=snapshot.passing_score,
        allow_multiple_attempts=snapshot.allow_multiple_attempts,
        max_attempts=snapshot.max_attempts,
    )


def build_quiz_detail(snapshot: quiz_schema.QuizSnapshot) -> quiz_schema.QuizDetailResponse:
    """응시 전 퀴즈 미리보기 (저장 순서)"""
    header = build_quiz_header(snapshot)
    return quiz_schema.QuizDetailResponse(
        **header.model_dump(),
        question_count=len(snapshot.questions),
        total_points=snapshot.total_points,
        questions=[build_question_view(q) for q in snapshot.questions],
    )


def _build_question_result(
    question: quiz_schema.QuestionSnapshot,
    response,
    show_correct_answers: bool,
) -> attempt_schema.QuestionResult:
    options = [
        attempt_schema.OptionResult(
            id=option.id,
            option_text=option.option_text,
            is_correct=option.is_correct if show_correct_answers else None,
        )
        for option in question.options
    ]

    correct_answers = None
    question_type = QuestionType(question.question_type)
    if show_correct_answers and question_type in TEXT_TYPES:
        correct_answers = [answer.correct_answer for answer in question.correct_answers]

    return attempt_schema.QuestionResult(
        question_id=question.id,
        question_type=question_type,
        question_text=question.question_text,
        points=question.points,
        selected_option_id=response.selected_option_id if response else None,
        response_text=response.response_text if response else None,
        points_earned=response.points_earned if response else None,
        is_correct=response.is_correct if response and show_correct_answers else None,
        is_graded=response.is_graded if response else False,
        scoring_error=response.scoring_error if response else None,
        feedback=response.feedback if response else None,
        explanation=question.explanation,
        options=options if question_type in CHOICE_TYPES else [],
        correct_answers=correct_answers,
    )


def build_attempt_result(
    snapshot: quiz_schema.QuizSnapshot,
    questions: list[quiz_schema.QuestionSnapshot],
    attempt: Attempt,
) -> attempt_schema.AttemptResult:
    """제출된 응시 결과 (공개 설정에 따라 문항별 상세/정답 포함)"""
    responses = {response.question_id: response for response in attempt.responses}

    question_results = None
    if snapshot.show_results_immediately:
        question_results = [
            _build_question_result(question, responses.get(question.id), snapshot.show_correct_answers)
            for question in questions
        ]

    return attempt_schema.AttemptResult(
        total_possible_points=snapshot.total_points,
        total_questions=len(snapshot.questions),
        correct_count=sum(1 for response in attempt.responses if response.is_correct),
        passing_score=snapshot.passing_score,
        questions=question_results,
    )


def build_session_response(
    attempt: Attempt,
    now: datetime | None = None,
) -> attempt_schema.AttemptSessionResponse:
    """응시 화면 응답 생성 (저장된 표시 순서 사용)"""
    snapshot = quiz_schema.QuizSnapshot.model_validate(attempt.definition_snapshot)
    questions = randomizer.apply_presentation(snapshot, attempt.presentation)

    submitted = attempt.submitted_at is not None
    deadline = session_timer.compute_deadline(attempt.started_at, snapshot.time_limit_minutes)
    remaining = None
    if not submitted:
        remaining = session_timer.remaining_seconds(attempt.started_at, snapshot.time_limit_minutes, now)

    return attempt_schema.AttemptSessionResponse(
        attempt=attempt_schema.AttemptSummary.model_validate(attempt),
        quiz=build_quiz_header(snapshot),
        deadline=deadline,
        remaining_seconds=remaining,
        questions=[build_question_view(q) for q in questions],
        responses=[attempt_schema.ResponseRecord.model_validate(r) for r in attempt.responses],
        result=build_attempt_result(snapshot, questions, attempt) if submitted else None,
    )
