from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin

# 운영(PostgreSQL)은 JSONB, 테스트(SQLite)는 JSON
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Attempt(Base, TimestampMixin):
    __tablename__ = "quiz_attempts"
    __table_args__ = (
        UniqueConstraint("quiz_id", "student_id", "attempt_number", name="uq_quiz_attempts_quiz_student_number"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    quiz_id: Mapped[int] = mapped_column(ForeignKey("quizzes.id"), nullable=False, index=True)
    student_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    attempt_number: Mapped[int] = mapped_column(Integer, nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    auto_submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    total_points_earned: Mapped[float | None] = mapped_column(Float, default=None)
    percentage_score: Mapped[float | None] = mapped_column(Float, default=None)
    is_passed: Mapped[bool | None] = mapped_column(Boolean, default=None)
    is_graded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    # 응시 시작 시점의 퀴즈 정의 (채점 기준)
    definition_snapshot: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)
    # 응시 시작 시 한 번 결정된 문항/선택지 표시 순서
    presentation: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)

    quiz: Mapped["Quiz"] = relationship("Quiz", back_populates="attempts")
    responses: Mapped[list["Response"]] = relationship(
        "Response",
        back_populates="attempt",
        order_by="Response.question_id",
    )

    @property
    def status(self) -> str:
        if self.submitted_at is None:
            return "in_progress"
        if not self.is_graded:
            return "pending_manual_grade"
        return "graded"


class Response(Base, TimestampMixin):
    __tablename__ = "quiz_responses"
    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_quiz_responses_attempt_question"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    attempt_id: Mapped[int] = mapped_column(ForeignKey("quiz_attempts.id"), nullable=False, index=True)
    # 스냅샷 기준 문항 ID (정의가 바뀌어도 응답은 유지)
    question_id: Mapped[int] = mapped_column(Integer, nullable=False)
    selected_option_id: Mapped[int | None] = mapped_column(Integer, default=None)
    response_text: Mapped[str | None] = mapped_column(Text, default=None)
    points_earned: Mapped[float | None] = mapped_column(Float, default=None)
    is_correct: Mapped[bool | None] = mapped_column(Boolean, default=None)
    is_graded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    scoring_error: Mapped[str | None] = mapped_column(Text, default=None)
    feedback: Mapped[str | None] = mapped_column(Text, default=None)
    graded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    attempt: Mapped["Attempt"] = relationship("Attempt", back_populates="responses")
