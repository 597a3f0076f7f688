import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_student_id
from app.models.base import get_db
from app.schemas import attempt as attempt_schema
from app.services import attempt_service, attempt_view

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/attempts", tags=["attempts"])


@router.get("/{attempt_id}", response_model=attempt_schema.AttemptSessionResponse)
async def get_attempt(
    attempt_id: int,
    student_id: int = Depends(get_student_id),
    db: AsyncSession = Depends(get_db),
):
    """응시 조회 API (진행 중이면 남은 시간, 제출 후에는 결과 포함)"""
    attempt = await attempt_service.get_attempt(db, attempt_id, student_id)
    return attempt_view.build_session_response(attempt)


@router.put("/{attempt_id}/responses/{question_id}", response_model=attempt_schema.ResponseRecord)
async def save_response(
    attempt_id: int,
    question_id: int,
    request: attempt_schema.ResponseSaveRequest,
    student_id: int = Depends(get_student_id),
    db: AsyncSession = Depends(get_db),
):
    """문항 답안 저장 API"""
    saved = await attempt_service.save_response(db, attempt_id, student_id, question_id, request)
    return attempt_schema.ResponseRecord.model_validate(saved)


@router.post("/{attempt_id}/submit", response_model=attempt_schema.AttemptSessionResponse)
async def submit_attempt(
    attempt_id: int,
    request: attempt_schema.AttemptSubmitRequest | None = None,
    student_id: int = Depends(get_student_id),
    db: AsyncSession = Depends(get_db),
):
    """응시 제출 API (이미 제출된 응시는 기존 결과 반환)"""
    responses = request.responses if request else None
    attempt = await attempt_service.submit_attempt(db, attempt_id, student_id, responses=responses)
    return attempt_view.build_session_response(attempt)


@router.patch(
    "/{attempt_id}/responses/{question_id}/grade",
    response_model=attempt_schema.AttemptSessionResponse,
)
async def grade_response(
    attempt_id: int,
    question_id: int,
    request: attempt_schema.ManualGradeRequest,
    db: AsyncSession = Depends(get_db),
):
    """문항 수동 채점 API (서술형 채점 후 응시 점수 재집계)"""
    attempt = await attempt_service.grade_response_manually(db, attempt_id, question_id, request)
    logger.info(f"수동 채점 API: attempt_id={attempt_id}, question_id={question_id}")
    return attempt_view.build_session_response(attempt)
