import logging
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import attempt as attempt_crud, quiz as quiz_crud
from app.exceptions import InvalidQuizDefinitionError, QuizUnavailableError
from app.models.attempt import Attempt
from app.models.quiz import CHOICE_TYPES, TEXT_TYPES, QuestionType
from app.schemas import quiz as quiz_schema
from app.services import attempt_view

logger = logging.getLogger(__name__)


def validate_quiz_definition(request: quiz_schema.QuizCreateRequest) -> None:
    """문항 유형별 필수 구성 확인

    - 선택형: 선택지 1개 이상, 정답 선택지 1개 이상
    - 주관식/빈칸: 정답 1개 이상
    - 서술형: 선택지/정답 없음
    """
    for index, question in enumerate(request.questions, start=1):
        question_type = QuestionType(question.question_type)
        if question_type in CHOICE_TYPES:
            if not question.options:
                raise InvalidQuizDefinitionError(f"{index}번 문항: 선택지가 필요합니다")
            if not any(option.is_correct for option in question.options):
                raise InvalidQuizDefinitionError(f"{index}번 문항: 정답 선택지가 최소 1개 필요합니다")
            if question.correct_answers:
                raise InvalidQuizDefinitionError(f"{index}번 문항: 선택형 문항에는 주관식 정답을 등록할 수 없습니다")
        elif question_type in TEXT_TYPES:
            if not question.correct_answers:
                raise InvalidQuizDefinitionError(f"{index}번 문항: 정답이 최소 1개 필요합니다")
            if question.options:
                raise InvalidQuizDefinitionError(f"{index}번 문항: 주관식 문항에는 선택지를 등록할 수 없습니다")
        elif question.options or question.correct_answers:
            raise InvalidQuizDefinitionError(f"{index}번 문항: 서술형 문항에는 선택지/정답을 등록할 수 없습니다")


async def create_quiz(
    session: AsyncSession,
    request: quiz_schema.QuizCreateRequest,
) -> quiz_schema.QuizCreateResponse:
    """퀴즈 정의 생성"""
    validate_quiz_definition(request)

    quiz = await quiz_crud.create_quiz_definition(session, request)
    logger.info(f"퀴즈 생성: quiz_id={quiz.id}, questions={len(quiz.questions)}, published={quiz.is_published}")

    return quiz_schema.QuizCreateResponse(
        id=quiz.id,
        title=quiz.title,
        is_published=quiz.is_published,
        question_count=len(quiz.questions),
        total_points=sum(q.points for q in quiz.questions),
        created_at=quiz.created_at,
    )


async def get_quiz_detail(
    session: AsyncSession,
    quiz_id: int,
) -> quiz_schema.QuizDetailResponse:
    """공개된 퀴즈 미리보기 (정답 제외)"""
    quiz = await quiz_crud.get_quiz_definition(session, quiz_id)
    if not quiz or not quiz.is_published:
        raise QuizUnavailableError(quiz_id)
    return attempt_view.build_quiz_detail(quiz_crud.build_snapshot(quiz))


async def list_quiz_results(
    session: AsyncSession,
    quiz_id: int,
) -> Sequence[Attempt]:
    """퀴즈의 제출 완료 응시 목록 (성적부 연동용)"""
    quiz = await quiz_crud.get_quiz_by_id(session, quiz_id)
    if not quiz:
        raise QuizUnavailableError(quiz_id)
    return await attempt_crud.get_submitted_attempts_by_quiz(session, quiz_id)
