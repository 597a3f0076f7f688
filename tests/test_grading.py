"""채점 엔진 / 점수 집계 테스트"""
from types import SimpleNamespace

import pytest

from app.models.quiz import QuestionType
from app.schemas.quiz import CorrectAnswerSnapshot, OptionSnapshot, QuestionSnapshot, QuizSnapshot
from app.services import grading


def answer(question_id=1, selected_option_id=None, response_text=None):
    return SimpleNamespace(
        question_id=question_id,
        selected_option_id=selected_option_id,
        response_text=response_text,
    )


@pytest.fixture
def choice_question():
    """5점 객관식 (A 정답)"""
    return QuestionSnapshot(
        id=1,
        question_type=QuestionType.MULTIPLE_CHOICE,
        question_text="정답은?",
        points=5,
        options=[
            OptionSnapshot(id=11, option_text="A", is_correct=True),
            OptionSnapshot(id=12, option_text="B", is_correct=False),
        ],
    )


def short_answer_question(accept_partial=False, case_sensitive=False, question_id=2, points=10):
    return QuestionSnapshot(
        id=question_id,
        question_type=QuestionType.SHORT_ANSWER,
        question_text="프랑스의 수도는?",
        points=points,
        correct_answers=[
            CorrectAnswerSnapshot(
                id=21,
                correct_answer="Paris",
                case_sensitive=case_sensitive,
                accept_partial=accept_partial,
            )
        ],
    )


def essay_question(question_id=3, points=5):
    return QuestionSnapshot(
        id=question_id,
        question_type=QuestionType.ESSAY,
        question_text="설명하시오.",
        points=points,
    )


def test_multiple_choice_correct(choice_question):
    """정답 선택 시 문항 배점 획득"""
    outcome = grading.grade_response(choice_question, answer(selected_option_id=11))
    assert outcome.points_earned == 5
    assert outcome.is_correct is True
    assert outcome.is_graded is True


def test_multiple_choice_incorrect(choice_question):
    """오답 선택 시 0점"""
    outcome = grading.grade_response(choice_question, answer(selected_option_id=12))
    assert outcome.points_earned == 0
    assert outcome.is_correct is False
    assert outcome.is_graded is True


def test_multiple_choice_no_selection(choice_question):
    """미선택/미응답은 0점 오답"""
    assert grading.grade_response(choice_question, answer()).points_earned == 0
    outcome = grading.grade_response(choice_question, None)
    assert outcome.is_correct is False
    assert outcome.is_graded is True


def test_multiple_choice_option_points_override():
    """선택지 배점이 있으면 문항 배점 대신 사용 (0점 선택지도 유효)"""
    question = QuestionSnapshot(
        id=1,
        question_type=QuestionType.MULTIPLE_CHOICE,
        question_text="정답은?",
        points=5,
        options=[
            OptionSnapshot(id=11, option_text="A", is_correct=True, points=3),
            OptionSnapshot(id=12, option_text="B", is_correct=True, points=0),
        ],
    )
    assert grading.grade_response(question, answer(selected_option_id=11)).points_earned == 3
    zero = grading.grade_response(question, answer(selected_option_id=12))
    assert zero.points_earned == 0
    assert zero.is_correct is True


def test_multiple_choice_unknown_option(choice_question):
    """스냅샷에 없는 선택지는 0점 처리하지 않고 채점 오류로 표시"""
    outcome = grading.grade_response(choice_question, answer(selected_option_id=999))
    assert outcome.is_graded is False
    assert outcome.scoring_error is not None


def test_true_false_uses_choice_rules():
    question = QuestionSnapshot(
        id=1,
        question_type=QuestionType.TRUE_FALSE,
        question_text="하늘은 파랗다",
        points=2,
        options=[
            OptionSnapshot(id=1, option_text="O", is_correct=True),
            OptionSnapshot(id=2, option_text="X", is_correct=False),
        ],
    )
    assert grading.grade_response(question, answer(selected_option_id=1)).points_earned == 2
    assert grading.grade_response(question, answer(selected_option_id=2)).is_correct is False


def test_short_answer_case_insensitive():
    """대소문자 무시, 부분 일치 불가"""
    question = short_answer_question()
    assert grading.grade_response(question, answer(question_id=2, response_text="paris")).is_correct is True
    assert grading.grade_response(question, answer(question_id=2, response_text="  PARIS ")).is_correct is True
    assert grading.grade_response(question, answer(question_id=2, response_text="paris, France")).is_correct is False


def test_short_answer_accept_partial():
    """부분 일치 허용 시 정답 포함이면 정답"""
    question = short_answer_question(accept_partial=True)
    outcome = grading.grade_response(question, answer(question_id=2, response_text="paris, France"))
    assert outcome.is_correct is True
    assert outcome.points_earned == 10


def test_short_answer_case_sensitive():
    question = short_answer_question(case_sensitive=True)
    assert grading.grade_response(question, answer(question_id=2, response_text="paris")).is_correct is False
    assert grading.grade_response(question, answer(question_id=2, response_text="Paris")).is_correct is True


def test_short_answer_first_match_wins():
    """여러 정답 중 하나라도 일치하면 정답"""
    question = QuestionSnapshot(
        id=2,
        question_type=QuestionType.FILL_BLANK,
        question_text="빈칸",
        points=4,
        correct_answers=[
            CorrectAnswerSnapshot(id=1, correct_answer="colour"),
            CorrectAnswerSnapshot(id=2, correct_answer="color"),
        ],
    )
    outcome = grading.grade_response(question, answer(question_id=2, response_text="Color"))
    assert outcome.is_correct is True
    assert outcome.points_earned == 4


def test_short_answer_blank_is_incorrect():
    question = short_answer_question()
    outcome = grading.grade_response(question, answer(question_id=2, response_text="   "))
    assert outcome.is_correct is False
    assert outcome.is_graded is True


def test_essay_deferred():
    """서술형은 0점, 수동 채점 대기"""
    outcome = grading.grade_response(essay_question(), answer(question_id=3, response_text="긴 답안"))
    assert outcome.points_earned == 0
    assert outcome.is_graded is False


def test_unanswered_essay_closed_when_configured():
    outcome = grading.grade_response(essay_question(), None, close_unanswered_essays=True)
    assert outcome.is_graded is True
    assert outcome.points_earned == 0


def make_snapshot(questions, passing_score=None):
    return QuizSnapshot(id=1, title="퀴즈", passing_score=passing_score, questions=questions)


def test_percentage_and_pass_fail():
    """10점 + 20점 문항에서 15점 획득 → 50%"""
    questions = [
        short_answer_question(question_id=1, points=10),
        essay_question(question_id=2, points=20),
    ]
    outcomes = {
        1: grading.GradeOutcome(points_earned=10, is_correct=True, is_graded=True),
        2: grading.GradeOutcome(points_earned=5, is_correct=False, is_graded=True),
    }

    passed = grading.aggregate_scores(make_snapshot(questions, passing_score=50), outcomes)
    assert passed.percentage_score == 50.0
    assert passed.total_points_earned == 15
    assert passed.total_possible_points == 30
    assert passed.is_passed is True

    failed = grading.aggregate_scores(make_snapshot(questions, passing_score=51), outcomes)
    assert failed.is_passed is False


def test_pass_fail_uses_unrounded_percentage():
    """반올림 전 값으로 합격 판정 (66.666...% < 66.67)"""
    questions = [short_answer_question(question_id=i, points=1) for i in (1, 2, 3)]
    outcomes = {
        1: grading.GradeOutcome(points_earned=1, is_correct=True, is_graded=True),
        2: grading.GradeOutcome(points_earned=1, is_correct=True, is_graded=True),
        3: grading.GradeOutcome(points_earned=0, is_correct=False, is_graded=True),
    }
    summary = grading.aggregate_scores(make_snapshot(questions, passing_score=66.67), outcomes)
    assert summary.percentage_score == 66.67
    assert summary.is_passed is False


def test_no_passing_score():
    questions = [short_answer_question(question_id=1)]
    outcomes = {1: grading.GradeOutcome(points_earned=10, is_correct=True, is_graded=True)}
    assert grading.aggregate_scores(make_snapshot(questions), outcomes).is_passed is None


def test_zero_passing_score_is_applied():
    """합격 기준 0점도 기준으로 취급"""
    questions = [short_answer_question(question_id=1)]
    outcomes = {1: grading.GradeOutcome(points_earned=0, is_correct=False, is_graded=True)}
    assert grading.aggregate_scores(make_snapshot(questions, passing_score=0), outcomes).is_passed is True


def test_zero_total_points():
    summary = grading.aggregate_scores(make_snapshot([]), {})
    assert summary.percentage_score == 0.0
    assert summary.is_graded is True


def test_grade_responses_with_essay(choice_question):
    """서술형이 있으면 응시 is_graded=False, 점수는 자동 채점 문항 기준"""
    snapshot = make_snapshot(
        [choice_question, short_answer_question(), essay_question()],
        passing_score=50,
    )
    outcomes = grading.grade_responses(
        snapshot,
        [
            answer(question_id=1, selected_option_id=11),
            answer(question_id=2, response_text="paris"),
            answer(question_id=3, response_text="수도는 정치의 중심"),
        ],
    )
    summary = grading.aggregate_scores(snapshot, outcomes)

    assert summary.is_graded is False
    assert summary.total_points_earned == 15
    assert summary.percentage_score == 75.0
    assert summary.correct_count == 2


def test_grade_responses_unanswered_questions(choice_question):
    """응답이 없는 문항도 0점으로 채점 대상에 포함"""
    snapshot = make_snapshot([choice_question, short_answer_question()])
    outcomes = grading.grade_responses(snapshot, [])

    assert set(outcomes) == {1, 2}
    assert all(outcome.points_earned == 0 for outcome in outcomes.values())
    assert all(outcome.is_graded for outcome in outcomes.values())


def test_grade_responses_partial_failure_continues(choice_question, monkeypatch):
    """한 문항 채점 실패가 다른 문항 채점을 막지 않음"""
    snapshot = make_snapshot([choice_question, short_answer_question()])

    def broken_grade_text(question, response_text):
        raise RuntimeError("정답 조회 실패")

    monkeypatch.setattr(grading, "_grade_text", broken_grade_text)
    outcomes = grading.grade_responses(
        snapshot,
        [answer(question_id=1, selected_option_id=11), answer(question_id=2, response_text="Paris")],
    )

    assert outcomes[1].points_earned == 5
    assert outcomes[2].is_graded is False
    assert outcomes[2].scoring_error is not None
    assert grading.aggregate_scores(snapshot, outcomes).is_graded is False


def test_grade_responses_unknown_question(choice_question):
    """스냅샷에 없는 문항의 답안은 채점 오류로 표시"""
    snapshot = make_snapshot([choice_question])
    outcomes = grading.grade_responses(
        snapshot,
        [answer(question_id=1, selected_option_id=11), answer(question_id=99, response_text="?")],
    )
    assert outcomes[99].scoring_error is not None
    assert outcomes[99].is_graded is False
