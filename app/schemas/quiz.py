from datetime import datetime

from pydantic import BaseModel, Field

from app.models.quiz import QuestionType


class AnswerOptionCreate(BaseModel):
    """선택지 생성 스키마"""
    option_text: str = Field(..., min_length=1, description="선택지 텍스트")
    is_correct: bool = Field(False, description="정답 여부")
    points: float | None = Field(None, ge=0, description="선택지별 배점 (없으면 문항 배점)")


class CorrectAnswerCreate(BaseModel):
    """주관식 정답 생성 스키마"""
    correct_answer: str = Field(..., min_length=1, description="정답 텍스트")
    case_sensitive: bool = Field(False, description="대소문자 구분 여부")
    accept_partial: bool = Field(False, description="부분 일치(포함) 허용 여부")


class QuestionCreate(BaseModel):
    """문항 생성 스키마"""
    question_type: QuestionType
    question_text: str = Field(..., min_length=1)
    points: float = Field(1, gt=0, description="문항 배점")
    is_required: bool = False
    explanation: str | None = None
    options: list[AnswerOptionCreate] = Field(default_factory=list)
    correct_answers: list[CorrectAnswerCreate] = Field(default_factory=list)


class QuizCreateRequest(BaseModel):
    """퀴즈 정의 생성 요청 스키마"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    instructions: str | None = None
    time_limit_minutes: int | None = Field(None, ge=1, description="제한 시간 (분, None이면 무제한)")
    randomize_questions: bool = False
    randomize_answers: bool = False
    allow_multiple_attempts: bool = False
    max_attempts: int | None = Field(None, ge=1, description="최대 응시 횟수 (None이면 무제한)")
    passing_score: float | None = Field(None, ge=0, le=100, description="합격 기준 (%)")
    show_results_immediately: bool = True
    show_correct_answers: bool = True
    is_published: bool = False
    questions: list[QuestionCreate] = Field(..., min_length=1)


class QuizCreateResponse(BaseModel):
    """퀴즈 정의 생성 응답 스키마"""
    id: int
    title: str
    is_published: bool
    question_count: int
    total_points: float
    created_at: datetime


# --- 응시 스냅샷: 응시 시작 시점의 퀴즈 정의 (채점 기준) ---


class OptionSnapshot(BaseModel):
    id: int
    option_text: str
    is_correct: bool
    points: float | None = None
    option_order: int = 0

    model_config = {"from_attributes": True, "frozen": True}


class CorrectAnswerSnapshot(BaseModel):
    id: int
    correct_answer: str
    case_sensitive: bool = False
    accept_partial: bool = False
    answer_order: int = 0

    model_config = {"from_attributes": True, "frozen": True}


class QuestionSnapshot(BaseModel):
    id: int
    question_type: QuestionType
    question_text: str
    points: float
    is_required: bool = False
    question_order: int = 0
    explanation: str | None = None
    options: list[OptionSnapshot] = Field(default_factory=list)
    correct_answers: list[CorrectAnswerSnapshot] = Field(default_factory=list)

    model_config = {"from_attributes": True, "frozen": True}

    def get_option(self, option_id: int) -> OptionSnapshot | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


class QuizSnapshot(BaseModel):
    """응시 단위로 고정되는 퀴즈 정의"""
    id: int
    title: str
    description: str | None = None
    instructions: str | None = None
    time_limit_minutes: int | None = None
    randomize_questions: bool = False
    randomize_answers: bool = False
    allow_multiple_attempts: bool = False
    max_attempts: int | None = None
    passing_score: float | None = None
    show_results_immediately: bool = True
    show_correct_answers: bool = True
    questions: list[QuestionSnapshot] = Field(default_factory=list)

    model_config = {"from_attributes": True, "frozen": True}

    def get_question(self, question_id: int) -> QuestionSnapshot | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    @property
    def question_ids(self) -> list[int]:
        return [q.id for q in self.questions]

    @property
    def total_points(self) -> float:
        return sum(q.points for q in self.questions)


# --- 학생용 조회 스키마 (정답 정보 제외) ---


class OptionView(BaseModel):
    id: int
    option_text: str


class QuestionView(BaseModel):
    id: int
    question_type: QuestionType
    question_text: str
    points: float
    is_required: bool
    options: list[OptionView] = Field(default_factory=list)


class QuizHeader(BaseModel):
    id: int
    title: str
    description: str | None = None
    instructions: str | None = None
    time_limit_minutes: int | None = None
    passing_score: float | None = None
    allow_multiple_attempts: bool = False
    max_attempts: int | None = None


class QuizDetailResponse(QuizHeader):
    """퀴즈 조회 응답 스키마 (응시 전 미리보기)"""
    question_count: int
    total_points: float
    questions: list[QuestionView]
