import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.crud import attempt as attempt_crud, quiz as quiz_crud
from app.exceptions import (
    AlreadyCompletedError,
    AttemptClosedError,
    AttemptLimitExceededError,
    AttemptNotFoundError,
    InvalidResponseError,
    QuizUnavailableError,
    ScoringInconsistencyError,
)
from app.models.attempt import Attempt, Response
from app.models.base import get_async_session_maker
from app.models.quiz import CHOICE_TYPES, QuestionType
from app.schemas import attempt as attempt_schema, quiz as quiz_schema
from app.services import grading, randomizer, session_timer

logger = logging.getLogger(__name__)


def _snapshot_of(attempt: Attempt) -> quiz_schema.QuizSnapshot:
    return quiz_schema.QuizSnapshot.model_validate(attempt.definition_snapshot)


def _deadline_of(attempt: Attempt) -> datetime | None:
    time_limit = (attempt.definition_snapshot or {}).get("time_limit_minutes")
    return session_timer.compute_deadline(attempt.started_at, time_limit)


def _closes_at(deadline: datetime) -> datetime:
    """자동 제출 시각 (마감 + 최종 답안 유예 시간)"""
    return deadline + timedelta(seconds=settings.submit_grace_seconds)


async def _get_owned_attempt(
    session: AsyncSession,
    attempt_id: int,
    student_id: int,
) -> Attempt:
    attempt = await attempt_crud.get_attempt_by_id(session, attempt_id)
    # 다른 학생의 응시는 존재 여부도 노출하지 않음
    if not attempt or attempt.student_id != student_id:
        raise AttemptNotFoundError(attempt_id)
    return attempt


async def _enforce_deadline(
    session: AsyncSession,
    attempt: Attempt,
    now: datetime,
) -> Attempt:
    """저장된 시작 시각 기준으로 마감이 지났으면 자동 제출"""
    if attempt.submitted_at is not None:
        return attempt
    deadline = _deadline_of(attempt)
    if deadline is None or now < _closes_at(deadline):
        return attempt
    logger.info(f"마감 경과 응시 자동 제출: attempt_id={attempt.id}, deadline={deadline.isoformat()}")
    return await submit_attempt(session, attempt.id, attempt.student_id, auto=True, now=now)


def _validate_response_content(
    question: quiz_schema.QuestionSnapshot,
    selected_option_id: int | None,
    response_text: str | None,
) -> None:
    """문항 유형에 맞는 답안 필드인지 확인"""
    if QuestionType(question.question_type) in CHOICE_TYPES:
        if response_text is not None:
            raise InvalidResponseError(f"선택형 문항에는 selected_option_id로 답해야 합니다: question_id={question.id}")
        if selected_option_id is not None and question.get_option(selected_option_id) is None:
            raise ScoringInconsistencyError(
                f"선택지 {selected_option_id}이(가) 문항 {question.id}에 없습니다"
            )
    elif selected_option_id is not None:
        raise InvalidResponseError(f"주관식/서술형 문항에는 response_text로 답해야 합니다: question_id={question.id}")


async def start_or_resume(
    session: AsyncSession,
    quiz_id: int,
    student_id: int,
    now: datetime | None = None,
) -> tuple[Attempt, bool]:
    """응시 시작 또는 재개

    Returns:
        (응시, 새로 생성했는지 여부)
    """
    now = now or session_timer.utcnow()

    quiz = await quiz_crud.get_quiz_definition(session, quiz_id)
    if not quiz or not quiz.is_published:
        raise QuizUnavailableError(quiz_id)

    attempts = await attempt_crud.get_attempts_by_quiz_and_student(session, quiz_id, student_id)

    if attempts:
        latest = attempts[0]
        if latest.submitted_at is None:
            logger.info(f"진행 중인 응시 재개: attempt_id={latest.id}, student_id={student_id}")
            return await _enforce_deadline(session, latest, now), False
        if not quiz.allow_multiple_attempts:
            raise AlreadyCompletedError(quiz_id)
        if quiz.max_attempts is not None and len(attempts) >= quiz.max_attempts:
            raise AttemptLimitExceededError(quiz_id, quiz.max_attempts)

    attempt_number = max((a.attempt_number for a in attempts), default=0) + 1
    snapshot = quiz_crud.build_snapshot(quiz)
    presentation = randomizer.build_presentation(snapshot, randomizer.new_seed())

    attempt_id = await attempt_crud.insert_attempt_if_absent(
        session,
        quiz_id=quiz_id,
        student_id=student_id,
        attempt_number=attempt_number,
        started_at=now,
        definition_snapshot=snapshot.model_dump(mode="json"),
        presentation=presentation,
    )

    if attempt_id is None:
        # 동시에 들어온 다른 요청이 같은 회차를 먼저 생성함 → 그 응시를 재개
        logger.info(
            f"응시 생성 경합, 기존 응시 재개: quiz_id={quiz_id}, student_id={student_id}, "
            f"attempt_number={attempt_number}"
        )
        attempts = await attempt_crud.get_attempts_by_quiz_and_student(session, quiz_id, student_id)
        winner = next((a for a in attempts if a.attempt_number == attempt_number), attempts[0])
        return await _enforce_deadline(session, winner, now), False

    attempt = await attempt_crud.get_attempt_by_id(session, attempt_id)

    deadline = _deadline_of(attempt)
    if deadline is not None and settings.auto_submit_enabled:
        auto_submit_scheduler.schedule(attempt.id, _closes_at(deadline), now=now)

    logger.info(
        f"응시 시작: attempt_id={attempt.id}, quiz_id={quiz_id}, student_id={student_id}, "
        f"attempt_number={attempt_number}"
    )
    return attempt, True


async def get_attempt(
    session: AsyncSession,
    attempt_id: int,
    student_id: int,
    now: datetime | None = None,
) -> Attempt:
    """응시 조회 (마감이 지났으면 자동 제출 후 반환)"""
    now = now or session_timer.utcnow()
    attempt = await _get_owned_attempt(session, attempt_id, student_id)
    return await _enforce_deadline(session, attempt, now)


async def list_student_attempts(
    session: AsyncSession,
    quiz_id: int,
    student_id: int,
) -> Sequence[Attempt]:
    """학생 본인의 응시 이력"""
    quiz = await quiz_crud.get_quiz_by_id(session, quiz_id)
    if not quiz:
        raise QuizUnavailableError(quiz_id)
    return await attempt_crud.get_attempts_by_quiz_and_student(session, quiz_id, student_id)


async def save_response(
    session: AsyncSession,
    attempt_id: int,
    student_id: int,
    question_id: int,
    request: attempt_schema.ResponseSaveRequest,
    now: datetime | None = None,
) -> Response:
    """진행 중인 응시의 문항 답안 저장"""
    now = now or session_timer.utcnow()
    attempt = await _get_owned_attempt(session, attempt_id, student_id)

    if attempt.submitted_at is not None:
        raise AttemptClosedError(attempt_id)

    deadline = _deadline_of(attempt)
    if deadline is not None and now >= deadline:
        # 마감 후에는 제출과 함께 오는 최종 답안만 유예 시간 동안 받음
        if now >= _closes_at(deadline):
            await submit_attempt(session, attempt_id, student_id, auto=True, now=now)
        raise AttemptClosedError(attempt_id)

    question = _snapshot_of(attempt).get_question(question_id)
    if question is None:
        raise ScoringInconsistencyError(f"문항 {question_id}이(가) 응시한 퀴즈에 없습니다")

    _validate_response_content(question, request.selected_option_id, request.response_text)

    saved = await attempt_crud.upsert_response(
        session,
        attempt_id=attempt_id,
        question_id=question_id,
        selected_option_id=request.selected_option_id,
        response_text=request.response_text,
    )
    if not saved:
        await session.rollback()
        logger.info(f"제출된 응시에 답안 저장 거부: attempt_id={attempt_id}, question_id={question_id}")
        raise AttemptClosedError(attempt_id)
    logger.debug(f"답안 저장: attempt_id={attempt_id}, question_id={question_id}")
    return await attempt_crud.get_response(session, attempt_id, question_id)


def validate_responses(
    snapshot: quiz_schema.QuizSnapshot,
    items: Sequence[attempt_schema.ResponseSubmitItem],
) -> None:
    """제출과 함께 온 최종 답안 전체 검증 (하나라도 틀리면 아무것도 저장하지 않도록 먼저 호출)"""
    for item in items:
        question = snapshot.get_question(item.question_id)
        if question is None:
            raise ScoringInconsistencyError(f"문항 {item.question_id}이(가) 응시한 퀴즈에 없습니다")
        _validate_response_content(question, item.selected_option_id, item.response_text)


async def save_responses(
    session: AsyncSession,
    attempt_id: int,
    items: Sequence[attempt_schema.ResponseSubmitItem],
) -> None:
    """검증된 최종 답안 일괄 저장

    제출 선점(claim_submission)을 가진 트랜잭션 안에서만 호출합니다. 커밋은 호출자 책임.
    """
    for item in items:
        await attempt_crud.upsert_response(
            session,
            attempt_id=attempt_id,
            question_id=item.question_id,
            selected_option_id=item.selected_option_id,
            response_text=item.response_text,
            commit=False,
            require_open=False,
        )


async def submit_attempt(
    session: AsyncSession,
    attempt_id: int,
    student_id: int,
    responses: Sequence[attempt_schema.ResponseSubmitItem] | None = None,
    auto: bool = False,
    now: datetime | None = None,
) -> Attempt:
    """응시 제출 및 자동 채점

    응시당 한 번만 채점됩니다. 이미 제출된 응시에 대한 재호출(중복 클릭, 수동 제출 뒤
    타이머 만료 등)은 저장된 결과를 그대로 반환합니다.
    """
    now = now or session_timer.utcnow()
    attempt = await _get_owned_attempt(session, attempt_id, student_id)

    if attempt.submitted_at is not None:
        logger.info(f"이미 제출된 응시, 재채점하지 않음: attempt_id={attempt_id}")
        return attempt

    snapshot = _snapshot_of(attempt)
    deadline = _deadline_of(attempt)

    final_responses: Sequence[attempt_schema.ResponseSubmitItem] = ()
    if responses:
        if deadline is not None and now > _closes_at(deadline):
            logger.warning(
                f"마감 이후 도착한 답안 무시: attempt_id={attempt_id}, count={len(responses)}"
            )
        else:
            validate_responses(snapshot, responses)
            final_responses = responses

    # 자동 제출은 마감 시각을 제출 시각으로 기록
    submitted_at = now
    if deadline is not None and (auto or now > deadline):
        submitted_at = min(now, deadline)

    # 응시 행을 먼저 선점한 뒤 답안 행을 씀 (자동 제출과 같은 잠금 순서)
    claimed = await attempt_crud.claim_submission(session, attempt_id, submitted_at, auto_submitted=auto)
    if not claimed:
        await session.rollback()
        logger.info(f"동시 제출 감지, 기존 결과 반환: attempt_id={attempt_id}")
        return await attempt_crud.get_attempt_by_id(session, attempt_id)

    try:
        await save_responses(session, attempt_id, final_responses)
        await attempt_crud.insert_missing_responses(session, attempt_id, snapshot.question_ids)
        attempt = await attempt_crud.get_attempt_by_id(session, attempt_id)

        outcomes = grading.grade_responses(
            snapshot,
            attempt.responses,
            close_unanswered_essays=settings.close_unanswered_essays,
        )
        summary = grading.aggregate_scores(snapshot, outcomes)

        await attempt_crud.apply_response_grades(session, attempt_id, outcomes, graded_at=now)
        await attempt_crud.update_attempt_scores(
            session,
            attempt_id,
            total_points_earned=summary.total_points_earned,
            percentage_score=summary.percentage_score,
            is_passed=summary.is_passed,
            is_graded=summary.is_graded,
        )
        await session.commit()
    except Exception as e:
        logger.error(f"응시 제출 중 오류: attempt_id={attempt_id}, error={e}", exc_info=True)
        await session.rollback()
        raise

    auto_submit_scheduler.cancel(attempt_id)

    logger.info(
        f"응시 제출 완료: attempt_id={attempt_id}, auto={auto}, "
        f"score={summary.total_points_earned}/{summary.total_possible_points} "
        f"({summary.percentage_score}%), is_passed={summary.is_passed}, is_graded={summary.is_graded}"
    )
    return await attempt_crud.get_attempt_by_id(session, attempt_id)


async def grade_response_manually(
    session: AsyncSession,
    attempt_id: int,
    question_id: int,
    request: attempt_schema.ManualGradeRequest,
    now: datetime | None = None,
) -> Attempt:
    """서술형 등 문항 수동 채점 후 응시 점수 재집계"""
    now = now or session_timer.utcnow()
    attempt = await attempt_crud.get_attempt_by_id(session, attempt_id)
    if not attempt:
        raise AttemptNotFoundError(attempt_id)
    if attempt.submitted_at is None:
        raise InvalidResponseError(f"제출되지 않은 응시는 채점할 수 없습니다: {attempt_id}")

    snapshot = _snapshot_of(attempt)
    question = snapshot.get_question(question_id)
    if question is None:
        raise ScoringInconsistencyError(f"문항 {question_id}이(가) 응시한 퀴즈에 없습니다")
    if request.points_earned > question.points:
        raise InvalidResponseError(
            f"배점({question.points}점)을 초과할 수 없습니다: points_earned={request.points_earned}"
        )

    response = next((r for r in attempt.responses if r.question_id == question_id), None)
    if response is None:
        raise ScoringInconsistencyError(f"문항 {question_id}의 답안이 없습니다: attempt_id={attempt_id}")

    response.points_earned = request.points_earned
    response.is_correct = request.points_earned >= question.points
    response.is_graded = True
    response.scoring_error = None
    response.feedback = request.feedback
    response.graded_at = now

    outcomes = {r.question_id: grading.outcome_from_response(r) for r in attempt.responses}
    summary = grading.aggregate_scores(snapshot, outcomes)

    attempt.total_points_earned = summary.total_points_earned
    attempt.percentage_score = summary.percentage_score
    attempt.is_passed = summary.is_passed
    attempt.is_graded = summary.is_graded

    await session.commit()
    logger.info(
        f"수동 채점 반영: attempt_id={attempt_id}, question_id={question_id}, "
        f"points={request.points_earned}, attempt_graded={summary.is_graded}"
    )
    return await attempt_crud.get_attempt_by_id(session, attempt_id)


async def auto_submit_attempt(attempt_id: int) -> Attempt | None:
    """타이머 만료 시 호출되는 자동 제출 (별도 DB 세션 사용)"""
    session_maker = get_async_session_maker()
    async with session_maker() as session:
        attempt = await attempt_crud.get_attempt_by_id(session, attempt_id)
        if attempt is None:
            logger.warning(f"자동 제출 대상 응시 없음: attempt_id={attempt_id}")
            return None
        return await submit_attempt(session, attempt_id, attempt.student_id, auto=True)


async def reschedule_in_progress_attempts(session: AsyncSession) -> int:
    """서버 시작 시 진행 중인 시간 제한 응시의 자동 제출 타이머 복구"""
    attempts = await attempt_crud.get_in_progress_attempts(session)
    count = 0
    for attempt in attempts:
        deadline = _deadline_of(attempt)
        if deadline is None:
            continue
        auto_submit_scheduler.schedule(attempt.id, _closes_at(deadline))
        count += 1
    logger.info(f"자동 제출 타이머 복구: {count}개")
    return count


auto_submit_scheduler = session_timer.AutoSubmitScheduler(auto_submit_attempt)
