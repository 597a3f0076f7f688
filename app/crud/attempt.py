import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import desc, literal, select, true, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.attempt import Attempt, Response

logger = logging.getLogger(__name__)


def _dialect_insert(session: AsyncSession, table):
    """연결된 DB 방언에 맞는 INSERT (ON CONFLICT 지원)"""
    dialect_name = session.get_bind().dialect.name
    if dialect_name == "postgresql":
        return postgresql.insert(table)
    if dialect_name == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"ON CONFLICT를 지원하지 않는 DB입니다: {dialect_name}")


async def get_attempt_by_id(
    session: AsyncSession,
    attempt_id: int,
) -> Attempt | None:
    """ID로 응시 조회 (답안 포함, 항상 DB 최신 상태로 갱신)"""
    stmt = (
        select(Attempt)
        .where(Attempt.id == attempt_id)
        .options(selectinload(Attempt.responses))
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_attempts_by_quiz_and_student(
    session: AsyncSession,
    quiz_id: int,
    student_id: int,
) -> Sequence[Attempt]:
    """학생의 퀴즈 응시 목록 조회 (최신 회차 우선)"""
    stmt = (
        select(Attempt)
        .where(Attempt.quiz_id == quiz_id, Attempt.student_id == student_id)
        .options(selectinload(Attempt.responses))
        .order_by(desc(Attempt.attempt_number))
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_submitted_attempts_by_quiz(
    session: AsyncSession,
    quiz_id: int,
) -> Sequence[Attempt]:
    """퀴즈의 제출 완료 응시 목록 조회 (최근 제출 우선)"""
    stmt = (
        select(Attempt)
        .where(Attempt.quiz_id == quiz_id, Attempt.submitted_at.is_not(None))
        .order_by(desc(Attempt.submitted_at), desc(Attempt.id))
    )
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_in_progress_attempts(session: AsyncSession) -> Sequence[Attempt]:
    """제출되지 않은 응시 목록 조회 (서버 재시작 시 자동 제출 타이머 복구용)"""
    stmt = select(Attempt).where(Attempt.submitted_at.is_(None)).order_by(Attempt.id)
    result = await session.execute(stmt)
    return result.scalars().all()


async def insert_attempt_if_absent(
    session: AsyncSession,
    quiz_id: int,
    student_id: int,
    attempt_number: int,
    started_at: datetime,
    definition_snapshot: dict[str, Any],
    presentation: dict[str, Any],
) -> int | None:
    """응시 생성 (같은 회차가 이미 있으면 생성하지 않음)

    (quiz_id, student_id, attempt_number) 유니크 제약에 대해 ON CONFLICT DO NOTHING으로
    삽입합니다. 동시에 다른 요청이 먼저 생성했다면 None을 반환합니다.
    """
    insert = _dialect_insert(session, Attempt)
    stmt = (
        insert.values(
            quiz_id=quiz_id,
            student_id=student_id,
            attempt_number=attempt_number,
            started_at=started_at,
            definition_snapshot=definition_snapshot,
            presentation=presentation,
            auto_submitted=False,
            is_graded=False,
        )
        .on_conflict_do_nothing(index_elements=["quiz_id", "student_id", "attempt_number"])
        .returning(Attempt.id)
    )
    result = await session.execute(stmt)
    attempt_id = result.scalar_one_or_none()
    await session.commit()
    return attempt_id


async def upsert_response(
    session: AsyncSession,
    attempt_id: int,
    question_id: int,
    selected_option_id: int | None,
    response_text: str | None,
    commit: bool = True,
    require_open: bool = True,
) -> bool:
    """(attempt_id, question_id) 단위 답안 저장 (있으면 덮어쓰기)

    require_open이면 제출되지 않은 응시에만 저장합니다. 응시 행을 공유 잠금(FOR SHARE)으로
    잡은 뒤 INSERT 문 자체도 submitted_at IS NULL 조건으로 걸러, 제출 선점과 겹쳐도 채점된
    답안은 바뀌지 않습니다. 제출 선점을 이미 가진 트랜잭션은 require_open=False로 호출합니다.

    Returns:
        저장했으면 True, 응시가 이미 제출되어 저장하지 않았으면 False
    """
    open_attempt = select(Attempt.id).where(Attempt.id == attempt_id, Attempt.submitted_at.is_(None))
    if require_open:
        locked = await session.execute(open_attempt.with_for_update(read=True))
        if locked.scalar_one_or_none() is None:
            return False

    row = select(
        literal(attempt_id, Response.attempt_id.type),
        literal(question_id, Response.question_id.type),
        literal(selected_option_id, Response.selected_option_id.type),
        literal(response_text, Response.response_text.type),
        literal(False, Response.is_graded.type),
    )
    # SQLite는 INSERT … SELECT … ON CONFLICT에 WHERE 절이 있어야 구문을 구분함
    row = row.where(open_attempt.exists() if require_open else true())

    insert = _dialect_insert(session, Response)
    stmt = insert.from_select(
        ["attempt_id", "question_id", "selected_option_id", "response_text", "is_graded"],
        row,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["attempt_id", "question_id"],
        set_={
            "selected_option_id": stmt.excluded.selected_option_id,
            "response_text": stmt.excluded.response_text,
        },
    ).returning(Response.id)
    result = await session.execute(stmt)
    saved = result.scalar_one_or_none() is not None
    if saved and commit:
        await session.commit()
    return saved


async def get_response(
    session: AsyncSession,
    attempt_id: int,
    question_id: int,
) -> Response | None:
    """응시의 문항별 답안 조회"""
    stmt = (
        select(Response)
        .where(Response.attempt_id == attempt_id, Response.question_id == question_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def insert_missing_responses(
    session: AsyncSession,
    attempt_id: int,
    question_ids: Iterable[int],
) -> None:
    """답하지 않은 문항에 빈 답안 생성 (문항당 답안 1개 보장, 커밋은 호출자 책임)"""
    insert = _dialect_insert(session, Response)
    for question_id in question_ids:
        stmt = insert.values(
            attempt_id=attempt_id,
            question_id=question_id,
            selected_option_id=None,
            response_text=None,
            is_graded=False,
        ).on_conflict_do_nothing(index_elements=["attempt_id", "question_id"])
        await session.execute(stmt)


async def claim_submission(
    session: AsyncSession,
    attempt_id: int,
    submitted_at: datetime,
    auto_submitted: bool,
) -> bool:
    """제출 선점: submitted_at이 비어 있을 때만 설정 (커밋은 호출자 책임)

    Returns:
        이번 호출이 제출을 선점했으면 True, 이미 제출된 응시면 False
    """
    stmt = (
        update(Attempt)
        .where(Attempt.id == attempt_id, Attempt.submitted_at.is_(None))
        .values(submitted_at=submitted_at, auto_submitted=auto_submitted)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount == 1


async def apply_response_grades(
    session: AsyncSession,
    attempt_id: int,
    grades: Mapping[int, Any],
    graded_at: datetime,
) -> None:
    """문항별 채점 결과 반영 (grades: question_id → GradeOutcome, 커밋은 호출자 책임)"""
    for question_id, outcome in grades.items():
        stmt = (
            update(Response)
            .where(Response.attempt_id == attempt_id, Response.question_id == question_id)
            .values(
                points_earned=outcome.points_earned,
                is_correct=outcome.is_correct,
                is_graded=outcome.is_graded,
                scoring_error=outcome.scoring_error,
                graded_at=graded_at if outcome.is_graded else None,
            )
            .execution_options(synchronize_session=False)
        )
        await session.execute(stmt)


async def update_attempt_scores(
    session: AsyncSession,
    attempt_id: int,
    total_points_earned: float,
    percentage_score: float,
    is_passed: bool | None,
    is_graded: bool,
) -> None:
    """응시 점수 반영 (커밋은 호출자 책임)"""
    stmt = (
        update(Attempt)
        .where(Attempt.id == attempt_id)
        .values(
            total_points_earned=total_points_earned,
            percentage_score=percentage_score,
            is_passed=is_passed,
            is_graded=is_graded,
        )
        .execution_options(synchronize_session=False)
    )
    await session.execute(stmt)
