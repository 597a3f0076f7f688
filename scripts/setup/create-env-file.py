#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""로컬 개발용 .env 파일 생성"""
import os
from pathlib import Path

# 프로젝트 루트
project_root = Path(__file__).parent.parent.parent
env_file = project_root / ".env"

# 주의: DB 계정 정보는 서버 담당자로부터 별도로 받아서 수동으로 입력해야 함
env_content = """# Database
DATABASE_URL=postgresql+asyncpg://<DB_USER>:<DB_PASSWORD>@localhost:5432/quiz_attempt_db
# SQL 로그 출력 (디버깅용)
DB_ECHO=false

# CORS
ALLOWED_ORIGINS=http://localhost:5173

# Environment
# production이면 에러 상세 메시지를 숨기고 파일 로그를 남김
ENVIRONMENT=development
LOG_DIR=./logs

# 시험 응시 정책
# 제한 시간 종료 시 서버에서 자동 제출
AUTO_SUBMIT_ENABLED=true
# 마감 직후 도착한 최종 답안을 받아주는 유예 시간 (초)
SUBMIT_GRACE_SECONDS=5
# 미응답 서술형을 0점 채점 완료로 처리 (false면 수동 채점 대기)
CLOSE_UNANSWERED_ESSAYS=false
PORT=8001
"""


def create_env_file():
    """.env 파일 생성 (UTF-8, BOM 없음)"""
    print(f"[INFO] .env 파일 생성 중: {env_file}")

    # 기존 파일이 있으면 백업
    if env_file.exists():
        backup_file = project_root / ".env.backup"
        print(f"[INFO] 기존 .env 파일 백업: {backup_file}")
        backup_file.write_text(env_file.read_text(encoding='utf-8'), encoding='utf-8', newline='\n')

    with open(env_file, 'w', encoding='utf-8', newline='\n') as f:
        f.write(env_content)

    print(f"[OK] .env 파일 생성 완료: {env_file} ({env_file.stat().st_size} bytes)")

    # Windows에서는 chmod 스킵
    if os.name != 'nt':
        os.chmod(env_file, 0o600)
        print(f"[INFO] 파일 권한 설정: 600")


if __name__ == "__main__":
    try:
        create_env_file()
        print("\n[OK] 작업 완료")
    except Exception as e:
        print(f"\n[ERROR] 에러 발생: {e.__class__.__name__}: {str(e)}")
        import traceback
        traceback.print_exc()
        exit(1)
