from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from app.models.quiz import QuestionType
from app.schemas.quiz import QuestionView, QuizHeader


class ResponseSaveRequest(BaseModel):
    """답안 저장 요청 스키마 (선택형은 selected_option_id, 주관식/서술형은 response_text)"""
    selected_option_id: int | None = Field(None, description="선택한 선택지 ID")
    response_text: str | None = Field(None, description="주관식/서술형 답안")

    @model_validator(mode="after")
    def check_single_content(self) -> "ResponseSaveRequest":
        if self.selected_option_id is not None and self.response_text is not None:
            raise ValueError("selected_option_id와 response_text 중 하나만 입력할 수 있습니다")
        return self


class ResponseSubmitItem(ResponseSaveRequest):
    """제출 시 함께 보내는 최종 답안"""
    question_id: int


class AttemptSubmitRequest(BaseModel):
    """응시 제출 요청 스키마"""
    responses: list[ResponseSubmitItem] = Field(default_factory=list, description="마지막으로 저장할 답안 (선택)")


class ManualGradeRequest(BaseModel):
    """수동 채점 요청 스키마 (서술형 등)"""
    points_earned: float = Field(..., ge=0, description="부여할 점수")
    feedback: str | None = Field(None, description="채점 코멘트")


class ResponseRecord(BaseModel):
    """저장된 답안 응답 스키마"""
    question_id: int
    selected_option_id: int | None
    response_text: str | None

    model_config = {"from_attributes": True}


class AttemptSummary(BaseModel):
    """응시 요약 스키마"""
    id: int
    quiz_id: int
    student_id: int
    attempt_number: int
    status: str
    started_at: datetime
    submitted_at: datetime | None
    auto_submitted: bool
    total_points_earned: float | None
    percentage_score: float | None
    is_passed: bool | None
    is_graded: bool

    model_config = {"from_attributes": True}


class OptionResult(BaseModel):
    id: int
    option_text: str
    is_correct: bool | None = Field(None, description="정답 공개 설정 시에만 포함")


class QuestionResult(BaseModel):
    """문항별 채점 결과"""
    question_id: int
    question_type: QuestionType
    question_text: str
    points: float
    selected_option_id: int | None
    response_text: str | None
    points_earned: float | None
    is_correct: bool | None = Field(None, description="정답 공개 설정 시에만 포함")
    is_graded: bool
    scoring_error: str | None = None
    feedback: str | None = None
    explanation: str | None = None
    options: list[OptionResult] = Field(default_factory=list)
    correct_answers: list[str] | None = Field(None, description="정답 공개 설정 시에만 포함")


class AttemptResult(BaseModel):
    """제출된 응시의 채점 결과"""
    total_possible_points: float
    total_questions: int
    correct_count: int
    passing_score: float | None
    questions: list[QuestionResult] | None = Field(None, description="결과 즉시 공개 설정 시에만 포함")


class AttemptSessionResponse(BaseModel):
    """응시 화면 응답 스키마 (진행 중이면 문항/답안, 제출 후에는 결과 포함)"""
    attempt: AttemptSummary
    quiz: QuizHeader
    deadline: datetime | None
    remaining_seconds: int | None
    questions: list[QuestionView]
    responses: list[ResponseRecord]
    result: AttemptResult | None = None


class AttemptListResponse(BaseModel):
    """응시 목록 응답 스키마"""
    attempts: list[AttemptSummary]
    total: int


class QuizResultsResponse(BaseModel):
    """퀴즈별 제출 결과 목록 (성적부 연동용)"""
    quiz_id: int
    attempts: list[AttemptSummary]
    total: int
