from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.quiz import AnswerOption, CorrectAnswer, Question, Quiz
from app.schemas import quiz as quiz_schema


async def get_quiz_by_id(
    session: AsyncSession,
    quiz_id: int,
    load_definition: bool = False,
) -> Quiz | None:
    """ID로 퀴즈 조회

    Args:
        session: 데이터베이스 세션
        quiz_id: 퀴즈 ID
        load_definition: 문항/선택지/정답을 eager load할지 여부
    """
    stmt = select(Quiz).where(Quiz.id == quiz_id)

    if load_definition:
        stmt = stmt.options(
            selectinload(Quiz.questions).selectinload(Question.options),
            selectinload(Quiz.questions).selectinload(Question.correct_answers),
        )

    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def create_quiz_definition(
    session: AsyncSession,
    request: quiz_schema.QuizCreateRequest,
) -> Quiz:
    """퀴즈 정의 생성 (문항/선택지/정답 일괄 저장)"""
    quiz = Quiz(
        title=request.title,
        description=request.description,
        instructions=request.instructions,
        time_limit_minutes=request.time_limit_minutes,
        randomize_questions=request.randomize_questions,
        randomize_answers=request.randomize_answers,
        allow_multiple_attempts=request.allow_multiple_attempts,
        max_attempts=request.max_attempts,
        passing_score=request.passing_score,
        show_results_immediately=request.show_results_immediately,
        show_correct_answers=request.show_correct_answers,
        is_published=request.is_published,
    )

    for question_index, question_request in enumerate(request.questions, start=1):
        question = Question(
            question_type=question_request.question_type.value,
            question_text=question_request.question_text,
            points=question_request.points,
            is_required=question_request.is_required,
            question_order=question_index,
            explanation=question_request.explanation,
        )
        question.options = [
            AnswerOption(
                option_text=option.option_text,
                is_correct=option.is_correct,
                points=option.points,
                option_order=option_index,
            )
            for option_index, option in enumerate(question_request.options, start=1)
        ]
        question.correct_answers = [
            CorrectAnswer(
                correct_answer=answer.correct_answer,
                case_sensitive=answer.case_sensitive,
                accept_partial=answer.accept_partial,
                answer_order=answer_index,
            )
            for answer_index, answer in enumerate(question_request.correct_answers, start=1)
        ]
        quiz.questions.append(question)

    session.add(quiz)
    await session.commit()
    await session.refresh(quiz)

    # 커밋 후 관계까지 다시 로드
    created = await get_quiz_by_id(session, quiz.id, load_definition=True)
    return created


def build_snapshot(quiz: Quiz) -> quiz_schema.QuizSnapshot:
    """퀴즈 정의를 응시용 스냅샷으로 변환 (문항/선택지/정답은 저장 순서대로)"""
    return quiz_schema.QuizSnapshot.model_validate(quiz)


async def get_quiz_definition(session: AsyncSession, quiz_id: int) -> Quiz | None:
    """문항/선택지/정답까지 포함한 퀴즈 정의 조회"""
    return await get_quiz_by_id(session, quiz_id, load_definition=True)
