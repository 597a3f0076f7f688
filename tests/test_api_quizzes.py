"""Quizzes API 통합 테스트"""
import pytest


def quiz_payload(**overrides):
    payload = {
        "title": "ADsP 모의고사",
        "time_limit_minutes": 30,
        "passing_score": 60,
        "is_published": True,
        "questions": [
            {
                "question_type": "MULTIPLE_CHOICE",
                "question_text": "데이터 분석 단계로 옳은 것은?",
                "points": 5,
                "options": [
                    {"option_text": "분석 기획", "is_correct": True},
                    {"option_text": "데이터 폐기", "is_correct": False},
                ],
            },
            {
                "question_type": "SHORT_ANSWER",
                "question_text": "SQL의 S는?",
                "points": 10,
                "correct_answers": [{"correct_answer": "Structured"}],
            },
            {
                "question_type": "ESSAY",
                "question_text": "빅데이터의 특징을 설명하시오.",
                "points": 15,
            },
        ],
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_quiz(client):
    """퀴즈 정의 생성"""
    response = await client.post("/api/v1/quizzes", json=quiz_payload())

    assert response.status_code == 201
    data = response.json()
    assert data["id"] > 0
    assert data["title"] == "ADsP 모의고사"
    assert data["question_count"] == 3
    assert data["total_points"] == 30
    assert data["is_published"] is True


@pytest.mark.asyncio
async def test_create_quiz_choice_without_correct_option(client):
    """정답 선택지가 없는 객관식은 400"""
    payload = quiz_payload(
        questions=[
            {
                "question_type": "MULTIPLE_CHOICE",
                "question_text": "정답 없는 문항",
                "options": [{"option_text": "A"}, {"option_text": "B"}],
            }
        ]
    )
    response = await client.post("/api/v1/quizzes", json=payload)

    assert response.status_code == 400
    assert "정답 선택지" in response.json()["detail"]


@pytest.mark.asyncio
async def test_create_quiz_short_answer_without_answers(client):
    payload = quiz_payload(
        questions=[{"question_type": "SHORT_ANSWER", "question_text": "정답 미등록"}]
    )
    response = await client.post("/api/v1/quizzes", json=payload)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_quiz_without_questions(client):
    """문항이 없는 퀴즈는 요청 검증 오류"""
    response = await client.post("/api/v1/quizzes", json=quiz_payload(questions=[]))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_quiz_hides_answers(client):
    """학생용 퀴즈 조회에는 정답 정보가 없음"""
    created = (await client.post("/api/v1/quizzes", json=quiz_payload())).json()

    response = await client.get(f"/api/v1/quizzes/{created['id']}")

    assert response.status_code == 200
    data = response.json()
    assert data["question_count"] == 3
    assert data["total_points"] == 30
    assert data["time_limit_minutes"] == 30
    assert [q["question_type"] for q in data["questions"]] == ["MULTIPLE_CHOICE", "SHORT_ANSWER", "ESSAY"]
    options = data["questions"][0]["options"]
    assert [o["option_text"] for o in options] == ["분석 기획", "데이터 폐기"]
    assert all("is_correct" not in o for o in options)
    assert "correct_answers" not in data["questions"][1]


@pytest.mark.asyncio
async def test_get_unpublished_quiz(client):
    created = (await client.post("/api/v1/quizzes", json=quiz_payload(is_published=False))).json()

    response = await client.get(f"/api/v1/quizzes/{created['id']}")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_quiz_not_found(client):
    response = await client.get("/api/v1/quizzes/9999")
    assert response.status_code == 404
    assert "9999" in response.json()["detail"]


@pytest.mark.asyncio
async def test_quiz_results_lists_submitted_attempts(client, quiz_factory):
    """제출 완료 응시만 결과 목록에 포함"""
    quiz = await quiz_factory(allow_multiple_attempts=True)

    first = (await client.post(f"/api/v1/quizzes/{quiz.id}/attempts", headers={"X-Student-Id": "1"})).json()
    await client.post(f"/api/v1/attempts/{first['attempt']['id']}/submit", headers={"X-Student-Id": "1"})
    await client.post(f"/api/v1/quizzes/{quiz.id}/attempts", headers={"X-Student-Id": "2"})

    response = await client.get(f"/api/v1/quizzes/{quiz.id}/results")

    assert response.status_code == 200
    data = response.json()
    assert data["quiz_id"] == quiz.id
    assert data["total"] == 1
    assert data["attempts"][0]["student_id"] == 1
    assert data["attempts"][0]["status"] == "pending_manual_grade"


@pytest.mark.asyncio
async def test_list_my_attempts(client, quiz_factory, student_headers):
    """내 응시 이력 (최신 회차 우선)"""
    quiz = await quiz_factory(allow_multiple_attempts=True)

    for _ in range(2):
        started = (await client.post(f"/api/v1/quizzes/{quiz.id}/attempts", headers=student_headers)).json()
        await client.post(f"/api/v1/attempts/{started['attempt']['id']}/submit", headers=student_headers)

    response = await client.get(f"/api/v1/quizzes/{quiz.id}/attempts", headers=student_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [a["attempt_number"] for a in data["attempts"]] == [2, 1]


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
