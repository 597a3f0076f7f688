from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_student_id
from app.models.base import get_db
from app.schemas import attempt as attempt_schema, quiz as quiz_schema
from app.services import attempt_service, attempt_view, quiz_service

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


@router.post("", response_model=quiz_schema.QuizCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    request: quiz_schema.QuizCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """퀴즈 정의 생성 API"""
    return await quiz_service.create_quiz(db, request)


@router.get("/{quiz_id}", response_model=quiz_schema.QuizDetailResponse)
async def get_quiz(
    quiz_id: int,
    db: AsyncSession = Depends(get_db),
):
    """퀴즈 조회 API (정답 제외)"""
    return await quiz_service.get_quiz_detail(db, quiz_id)


@router.get("/{quiz_id}/results", response_model=attempt_schema.QuizResultsResponse)
async def get_quiz_results(
    quiz_id: int,
    db: AsyncSession = Depends(get_db),
):
    """퀴즈 제출 결과 목록 API (성적부 연동용)"""
    attempts = await quiz_service.list_quiz_results(db, quiz_id)
    summaries = [attempt_schema.AttemptSummary.model_validate(a) for a in attempts]
    return attempt_schema.QuizResultsResponse(quiz_id=quiz_id, attempts=summaries, total=len(summaries))


@router.post("/{quiz_id}/attempts", response_model=attempt_schema.AttemptSessionResponse)
async def start_attempt(
    quiz_id: int,
    response: Response,
    student_id: int = Depends(get_student_id),
    db: AsyncSession = Depends(get_db),
):
    """응시 시작/재개 API (새로 생성하면 201, 재개하면 200)"""
    attempt, created = await attempt_service.start_or_resume(db, quiz_id, student_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return attempt_view.build_session_response(attempt)


@router.get("/{quiz_id}/attempts", response_model=attempt_schema.AttemptListResponse)
async def list_attempts(
    quiz_id: int,
    student_id: int = Depends(get_student_id),
    db: AsyncSession = Depends(get_db),
):
    """내 응시 이력 조회 API"""
    attempts = await attempt_service.list_student_attempts(db, quiz_id, student_id)
    summaries = [attempt_schema.AttemptSummary.model_validate(a) for a in attempts]
    return attempt_schema.AttemptListResponse(attempts=summaries, total=len(summaries))
