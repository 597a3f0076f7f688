#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""응시 기록 DB 직접 조회 스크립트"""
import asyncio
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

# 환경변수 로드
from dotenv import load_dotenv
env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)

from sqlalchemy import func, select, text
from app.crud import attempt as attempt_crud
from app.models.attempt import Attempt
from app.models.base import get_engine, get_async_session_maker


async def query_attempts(quiz_id: int, student_id: int | None = None):
    """퀴즈의 응시 기록과 답안 채점 상태 조회"""
    print(f"\n{'='*60}")
    print(f"응시 기록 조회: quiz_id={quiz_id}, student_id={student_id}")
    print(f"{'='*60}\n")

    from app.core.config import settings
    print(f"[INFO] DATABASE_URL: {settings.database_url[:50]}...")

    try:
        engine = get_engine()
        async with engine.begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            print(f"[OK] DB 연결 성공: {result.scalar()}")

        session_maker = get_async_session_maker()
        async with session_maker() as session:
            total = await session.scalar(
                select(func.count()).select_from(Attempt).where(Attempt.quiz_id == quiz_id)
            )
            print(f"[INFO] 전체 응시 수: {total}")

            if student_id is not None:
                attempts = await attempt_crud.get_attempts_by_quiz_and_student(session, quiz_id, student_id)
            else:
                attempts = await attempt_crud.get_submitted_attempts_by_quiz(session, quiz_id)

            if not attempts:
                print(f"[WARN] 응시 기록이 없습니다")
                return

            for attempt in attempts:
                print(f"\n- attempt_id={attempt.id} (student={attempt.student_id}, #{attempt.attempt_number})")
                print(f"  status: {attempt.status}")
                print(f"  started_at: {attempt.started_at}, submitted_at: {attempt.submitted_at}")
                print(f"  auto_submitted: {attempt.auto_submitted}")
                print(f"  score: {attempt.total_points_earned} ({attempt.percentage_score}%), passed={attempt.is_passed}")

                full = await attempt_crud.get_attempt_by_id(session, attempt.id)
                for response in full.responses:
                    flag = "채점 완료" if response.is_graded else "채점 대기"
                    error = f", error={response.scoring_error}" if response.scoring_error else ""
                    print(
                        f"    question_id={response.question_id}: points={response.points_earned}, "
                        f"correct={response.is_correct} ({flag}{error})"
                    )

    except Exception as e:
        print(f"\n[ERROR] 에러 발생: {e.__class__.__name__}: {str(e)}")
        import traceback
        traceback.print_exc()
        print(f"\n[INFO] 가능한 원인:")
        print(f"  1. DB 연결 정보가 잘못되었습니다 (.env 파일 확인)")
        print(f"  2. DB 서버가 실행 중이지 않습니다")
        print(f"  3. 마이그레이션이 적용되지 않았습니다 (alembic upgrade head)")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="응시 기록 DB 직접 조회")
    parser.add_argument("--quiz-id", type=int, default=1, help="퀴즈 ID (기본값: 1)")
    parser.add_argument("--student-id", type=int, default=None, help="학생 ID (없으면 제출 완료 응시 전체)")

    args = parser.parse_args()

    asyncio.run(query_attempts(args.quiz_id, args.student_id))
