import random
import secrets
from typing import Any

from app.schemas.quiz import QuestionSnapshot, QuizSnapshot


def new_seed() -> int:
    """응시별 표시 순서 시드 생성"""
    return secrets.randbits(32)


def build_presentation(snapshot: QuizSnapshot, seed: int) -> dict[str, Any]:
    """응시 시작 시 한 번 문항/선택지 표시 순서 결정

    같은 시드와 스냅샷이면 항상 같은 순서가 나옵니다.
    JSON 저장을 위해 option_order의 키는 문자열 문항 ID입니다.
    """
    rng = random.Random(seed)

    question_order = [question.id for question in snapshot.questions]
    if snapshot.randomize_questions:
        rng.shuffle(question_order)

    option_order: dict[str, list[int]] = {}
    for question in snapshot.questions:
        option_ids = [option.id for option in question.options]
        if snapshot.randomize_answers:
            rng.shuffle(option_ids)
        option_order[str(question.id)] = option_ids

    return {
        "seed": seed,
        "question_order": question_order,
        "option_order": option_order,
    }


def _ordered(items: list, order: list[int]) -> list:
    position = {item_id: index for index, item_id in enumerate(order)}
    # 저장된 순서에 없는 항목은 원래 순서대로 뒤에 붙임
    return sorted(items, key=lambda item: position.get(item.id, len(position)))


def apply_presentation(
    snapshot: QuizSnapshot,
    presentation: dict[str, Any],
) -> list[QuestionSnapshot]:
    """저장된 표시 순서를 적용한 문항 목록 (스냅샷은 변경하지 않음)"""
    question_order = presentation.get("question_order") or []
    option_order = presentation.get("option_order") or {}

    questions = []
    for question in _ordered(list(snapshot.questions), question_order):
        order = option_order.get(str(question.id))
        if order:
            question = question.model_copy(update={"options": _ordered(list(question.options), order)})
        questions.append(question)
    return questions
