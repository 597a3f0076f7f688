import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.v1 import attempts, quizzes
from app.core.config import settings
from app.core.logging import setup_logging
from app.exceptions import BaseAppError
from app.models.base import get_async_session_maker, get_engine
from app.services import attempt_service

# 로깅 설정
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """서버 시작 시 자동 제출 타이머 복구, 종료 시 정리"""
    if settings.auto_submit_enabled:
        session_maker = get_async_session_maker()
        async with session_maker() as session:
            await attempt_service.reschedule_in_progress_attempts(session)
    yield
    await attempt_service.auto_submit_scheduler.shutdown()


app = FastAPI(
    title="Quiz Attempt Backend API",
    description="퀴즈 응시 및 자동 채점 백엔드 API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quizzes.router, prefix="/api/v1")
app.include_router(attempts.router, prefix="/api/v1")


def create_cors_response(
    status_code: int,
    content: dict,
    request: Request,
) -> JSONResponse:
    """CORS 헤더를 포함한 JSONResponse 생성"""
    response = JSONResponse(status_code=status_code, content=content)
    # 예외 핸들러 응답은 CORS 미들웨어를 거치지 않음
    origin = request.headers.get("origin")
    if origin and origin in settings.allowed_origins_list:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"
    return response


def request_context(request: Request) -> dict:
    """로그 extra에 남길 요청 정보"""
    context = {"path": request.url.path, "method": request.method}
    student_id = request.headers.get("x-student-id")
    if student_id:
        context["student_id"] = student_id
    return context


def error_code(exc: BaseAppError) -> str:
    """예외 클래스 이름에서 클라이언트용 오류 코드 생성 (AttemptLimitExceededError → AttemptLimitExceeded)"""
    name = exc.__class__.__name__
    return name[:-len("Error")] if name.endswith("Error") else name


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """검증 오류의 ctx에 담긴 예외 객체를 문자열로 변환"""
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


def server_error_response(request: Request, exc: Exception, public_detail: str) -> JSONResponse:
    """500 응답 (프로덕션에서는 상세 메시지 숨김)"""
    if settings.environment == "production":
        content = {"detail": public_detail}
    else:
        content = {"detail": str(exc), "type": exc.__class__.__name__}
    return create_cors_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        request=request,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """요청 검증 오류 핸들러"""
    errors = jsonable_errors(exc)
    logger.warning(f"요청 검증 오류: {errors}", extra=request_context(request))
    return create_cors_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": errors},
        request=request,
    )


@app.exception_handler(BaseAppError)
async def app_exception_handler(request: Request, exc: BaseAppError):
    """애플리케이션 예외 핸들러 (응시 규칙 위반 등 사용자에게 보여줄 오류)"""
    code = error_code(exc)
    # 정의 변경으로 인한 채점 불일치는 운영자가 확인해야 함
    log = logger.error if code == "ScoringInconsistency" else logger.warning
    log(
        f"Application error: {code} - {exc.message}",
        extra={**request_context(request), "status_code": exc.status_code},
    )
    return create_cors_response(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": code},
        request=request,
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """데이터베이스 예외 핸들러"""
    logger.error(
        f"Database error: {exc.__class__.__name__}",
        exc_info=True,
        extra=request_context(request),
    )
    return server_error_response(request, exc, "Database error occurred")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """전역 예외 핸들러 - 모든 미처리 예외를 로깅"""
    logger.error(
        f"Unhandled exception: {exc.__class__.__name__}",
        exc_info=True,
        extra={**request_context(request), "query_params": dict(request.query_params)},
    )
    return server_error_response(request, exc, "Internal Server Error")


@app.get("/")
async def root():
    """루트 엔드포인트"""
    return {"message": "Quiz Attempt Backend API", "version": "0.1.0"}


@app.get("/health")
async def health_check():
    """헬스 체크 엔드포인트"""
    return {"status": "healthy"}


@app.get("/health/db")
async def health_check_db():
    """데이터베이스 연결 상태 확인"""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "disconnected"},
        )
    return {
        "status": "healthy",
        "database": "connected",
        "auto_submit_timers": attempt_service.auto_submit_scheduler.active_count,
    }
