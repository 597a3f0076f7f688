"""자동 채점 엔진 및 점수 집계

문항 유형별 채점 규칙:
- MULTIPLE_CHOICE / TRUE_FALSE: 선택한 선택지가 정답이면 선택지 배점(없으면 문항 배점)
- SHORT_ANSWER / FILL_BLANK: 등록된 정답을 순서대로 비교, 처음 일치한 정답 기준
- ESSAY: 0점, 수동 채점 대기
"""
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from app.models.quiz import CHOICE_TYPES, TEXT_TYPES, QuestionType
from app.schemas.quiz import QuestionSnapshot, QuizSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GradeOutcome:
    points_earned: float
    is_correct: bool
    is_graded: bool
    scoring_error: str | None = None


@dataclass(frozen=True)
class ScoreSummary:
    total_points_earned: float
    total_possible_points: float
    percentage_score: float
    is_passed: bool | None
    is_graded: bool
    correct_count: int


def _incorrect() -> GradeOutcome:
    return GradeOutcome(points_earned=0.0, is_correct=False, is_graded=True)


def _normalize(text: str, case_sensitive: bool) -> str:
    text = text.strip()
    return text if case_sensitive else text.lower()


def _grade_choice(question: QuestionSnapshot, selected_option_id: int | None) -> GradeOutcome:
    if selected_option_id is None:
        return _incorrect()

    option = question.get_option(selected_option_id)
    if option is None:
        return GradeOutcome(
            points_earned=0.0,
            is_correct=False,
            is_graded=False,
            scoring_error=f"선택지 {selected_option_id}이(가) 문항 {question.id}에 없습니다",
        )

    if not option.is_correct:
        return _incorrect()

    points = option.points if option.points is not None else question.points
    return GradeOutcome(points_earned=float(points), is_correct=True, is_graded=True)


def _grade_text(question: QuestionSnapshot, response_text: str | None) -> GradeOutcome:
    if response_text is None or not response_text.strip():
        return _incorrect()

    for answer in question.correct_answers:
        expected = _normalize(answer.correct_answer, answer.case_sensitive)
        if not expected:
            continue
        actual = _normalize(response_text, answer.case_sensitive)
        if actual == expected or (answer.accept_partial and expected in actual):
            return GradeOutcome(points_earned=float(question.points), is_correct=True, is_graded=True)

    return _incorrect()


def _grade_essay(response_text: str | None, close_unanswered: bool) -> GradeOutcome:
    unanswered = response_text is None or not response_text.strip()
    if unanswered and close_unanswered:
        return _incorrect()
    return GradeOutcome(points_earned=0.0, is_correct=False, is_graded=False)


def grade_response(
    question: QuestionSnapshot,
    response: Any | None,
    close_unanswered_essays: bool = False,
) -> GradeOutcome:
    """문항 하나 채점

    Args:
        question: 스냅샷 문항
        response: selected_option_id / response_text 속성을 가진 답안 (없으면 미응답)
        close_unanswered_essays: 미응답 서술형을 0점 채점 완료로 처리할지 여부
    """
    selected_option_id = getattr(response, "selected_option_id", None)
    response_text = getattr(response, "response_text", None)

    question_type = QuestionType(question.question_type)
    if question_type in CHOICE_TYPES:
        return _grade_choice(question, selected_option_id)
    if question_type in TEXT_TYPES:
        return _grade_text(question, response_text)
    return _grade_essay(response_text, close_unanswered_essays)


def grade_responses(
    snapshot: QuizSnapshot,
    responses: Iterable[Any],
    close_unanswered_essays: bool = False,
) -> dict[int, GradeOutcome]:
    """응시 전체 채점 (question_id → GradeOutcome)

    한 문항의 채점 실패가 나머지 문항 채점을 중단시키지 않습니다.
    실패한 문항은 scoring_error가 기록되고 수동 검토 대상(is_graded=False)이 됩니다.
    """
    by_question = {response.question_id: response for response in responses}
    outcomes: dict[int, GradeOutcome] = {}

    for question in snapshot.questions:
        try:
            outcomes[question.id] = grade_response(
                question,
                by_question.get(question.id),
                close_unanswered_essays=close_unanswered_essays,
            )
        except Exception as e:
            logger.error(
                f"문항 채점 실패: quiz_id={snapshot.id}, question_id={question.id}, "
                f"error={e.__class__.__name__}: {str(e)}",
                exc_info=True,
            )
            outcomes[question.id] = GradeOutcome(
                points_earned=0.0,
                is_correct=False,
                is_graded=False,
                scoring_error=f"채점 중 오류가 발생했습니다: {e.__class__.__name__}",
            )

    known_ids = set(snapshot.question_ids)
    for question_id in by_question:
        if question_id not in known_ids:
            logger.warning(f"스냅샷에 없는 문항의 답안: quiz_id={snapshot.id}, question_id={question_id}")
            outcomes[question_id] = GradeOutcome(
                points_earned=0.0,
                is_correct=False,
                is_graded=False,
                scoring_error=f"문항 {question_id}이(가) 퀴즈 정의에 없습니다",
            )

    return outcomes


def aggregate_scores(
    snapshot: QuizSnapshot,
    outcomes: Mapping[int, GradeOutcome],
) -> ScoreSummary:
    """문항별 채점 결과를 응시 점수로 집계

    백분율의 분모는 응답 여부와 관계없이 모든 문항의 배점 합계입니다.
    """
    total_earned = sum(outcome.points_earned for outcome in outcomes.values())
    total_possible = snapshot.total_points

    percentage = (total_earned / total_possible) * 100 if total_possible > 0 else 0.0

    is_passed = None
    if snapshot.passing_score is not None:
        is_passed = percentage >= snapshot.passing_score

    return ScoreSummary(
        total_points_earned=float(total_earned),
        total_possible_points=float(total_possible),
        percentage_score=round(percentage, 2),
        is_passed=is_passed,
        is_graded=all(outcome.is_graded for outcome in outcomes.values()),
        correct_count=sum(1 for outcome in outcomes.values() if outcome.is_correct),
    )


def outcome_from_response(response: Any) -> GradeOutcome:
    """저장된 답안의 채점 상태를 GradeOutcome으로 변환 (수동 채점 후 재집계용)"""
    return GradeOutcome(
        points_earned=float(response.points_earned or 0),
        is_correct=bool(response.is_correct),
        is_graded=bool(response.is_graded),
        scoring_error=response.scoring_error,
    )
