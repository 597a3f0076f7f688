"""테스트 공통 fixture"""
import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.main import app
from app.models.base import Base, get_db
from app.models.quiz import AnswerOption, CorrectAnswer, Question, QuestionType, Quiz


@pytest.fixture(autouse=True)
def disable_auto_submit_timer(monkeypatch):
    """테스트에서는 백그라운드 자동 제출 타이머를 띄우지 않음 (마감은 조회 시 판단)"""
    monkeypatch.setattr(settings, "auto_submit_enabled", False)


@pytest_asyncio.fixture
async def test_engine():
    """인메모리 SQLite 엔진 (모든 세션이 같은 연결을 공유)"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db_session(session_maker):
    """테스트 데이터 준비/검증용 세션"""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    """get_db를 테스트 DB로 교체한 API 클라이언트"""

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client
    app.dependency_overrides.clear()


@pytest.fixture
def student_headers():
    return {"X-Student-Id": "1001"}


async def create_sample_quiz(session: AsyncSession, **overrides) -> Quiz:
    """객관식(5점) + 단답형(10점) + 서술형(5점) 퀴즈 생성

    선택지 순서: "서울"(정답), "부산", "대구"
    """
    fields = {
        "title": "지리 퀴즈",
        "is_published": True,
        "passing_score": 50.0,
    }
    fields.update(overrides)
    quiz = Quiz(**fields)

    choice = Question(
        question_type=QuestionType.MULTIPLE_CHOICE.value,
        question_text="대한민국의 수도는?",
        points=5,
        question_order=1,
    )
    choice.options = [
        AnswerOption(option_text="서울", is_correct=True, option_order=1),
        AnswerOption(option_text="부산", is_correct=False, option_order=2),
        AnswerOption(option_text="대구", is_correct=False, option_order=3),
    ]

    short = Question(
        question_type=QuestionType.SHORT_ANSWER.value,
        question_text="프랑스의 수도는?",
        points=10,
        question_order=2,
    )
    short.correct_answers = [CorrectAnswer(correct_answer="Paris", answer_order=1)]

    essay = Question(
        question_type=QuestionType.ESSAY.value,
        question_text="수도의 역할을 설명하시오.",
        points=5,
        question_order=3,
    )

    quiz.questions = [choice, short, essay]
    session.add(quiz)
    await session.commit()
    return quiz


@pytest.fixture
def quiz_factory(test_db_session):
    """샘플 퀴즈 생성 함수 (퀴즈 설정은 키워드 인자로 덮어씀)"""

    async def factory(**overrides) -> Quiz:
        return await create_sample_quiz(test_db_session, **overrides)

    return factory


@pytest_asyncio.fixture
async def file_session_maker(tmp_path):
    """파일 SQLite 세션 팩토리 (세션마다 별도 연결, 동시 요청 테스트용)

    쓰기 트랜잭션을 BEGIN IMMEDIATE로 시작해 동시 세션이 busy timeout 동안 기다리게 합니다.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'quiz.db'}",
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def file_quiz(file_session_maker):
    """파일 DB에 만든 샘플 퀴즈"""
    async with file_session_maker() as session:
        return await create_sample_quiz(session)
